# Copyright 2025 fab-diagram contributors
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# This file was created or modified with the assistance of an AI (Large Language Model).
# Review required for correctness, security, and licensing.
"""Tests for live cluster record collection."""

from __future__ import annotations

import subprocess
from types import SimpleNamespace
from typing import Callable

import pytest

from fab_diagram import live
from fab_diagram.errors import LiveReadError
from fab_diagram.live import (
    LIVE_RESOURCES,
    _build_kubectl_command,
    _classify_kubectl_error,
    read_live_records,
)

KUBECTL_OUTPUT = """\
apiVersion: v1
kind: List
items:
  - apiVersion: wiring.githedgehog.com/v1beta1
    kind: Switch
    metadata:
      name: leaf-01
      namespace: default
    spec:
      role: server-leaf
  - apiVersion: wiring.githedgehog.com/v1beta1
    kind: Server
    metadata:
      name: server-01
      namespace: default
    spec: {}
"""


def _fake_run(
    returncode: int, stdout: str = "", stderr: str = ""
) -> tuple[Callable[..., SimpleNamespace], list[list[str]]]:
    calls: list[list[str]] = []

    def run(command: list[str], **kwargs: object) -> SimpleNamespace:
        calls.append(command)
        return SimpleNamespace(returncode=returncode, stdout=stdout, stderr=stderr)

    return run, calls


def test_build_kubectl_command() -> None:
    command = _build_kubectl_command("kubectl", "/tmp/kubeconfig")

    assert command == [
        "kubectl",
        "--kubeconfig",
        "/tmp/kubeconfig",
        "get",
        ",".join(LIVE_RESOURCES),
        "--all-namespaces",
        "-o",
        "yaml",
    ]


@pytest.mark.parametrize(
    ("output", "code"),
    [
        ('Error from server (Forbidden): switches is forbidden: User "x"', "KUBE_FORBIDDEN"),
        (
            'error: the server doesn\'t have a resource type "fabnodes"',
            "KUBE_RESOURCE_MISSING",
        ),
        (
            "Unable to connect to the server: dial tcp 127.0.0.1:6443: connect: connection refused",
            "KUBE_UNREACHABLE",
        ),
        ("something unexpected", "KUBE_UNKNOWN_ERROR"),
    ],
)
def test_classify_kubectl_error(output: str, code: str) -> None:
    assert _classify_kubectl_error(output) == code


def test_read_live_records_parses_list(monkeypatch: pytest.MonkeyPatch) -> None:
    run, calls = _fake_run(0, stdout=KUBECTL_OUTPUT)
    monkeypatch.setattr(live, "_command_exists", lambda command: True)
    monkeypatch.setattr(live.subprocess, "run", run)

    records = read_live_records("/tmp/kubeconfig")

    assert [(record.kind, record.name) for record in records] == [
        ("Switch", "leaf-01"),
        ("Server", "server-01"),
    ]
    assert calls[0][:3] == ["kubectl", "--kubeconfig", "/tmp/kubeconfig"]


def test_read_live_records_missing_command(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(live, "_command_exists", lambda command: False)

    with pytest.raises(LiveReadError) as excinfo:
        read_live_records("/tmp/kubeconfig", kubectl_cmd="kubectl-missing")

    assert excinfo.value.code == "KUBE_COMMAND_MISSING"


def test_read_live_records_classifies_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    run, _ = _fake_run(1, stderr="Unable to connect to the server: no such host")
    monkeypatch.setattr(live, "_command_exists", lambda command: True)
    monkeypatch.setattr(live.subprocess, "run", run)

    with pytest.raises(LiveReadError, match="KUBE_UNREACHABLE") as excinfo:
        read_live_records("/tmp/kubeconfig")

    assert excinfo.value.code == "KUBE_UNREACHABLE"


def test_read_live_records_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    def run(command: list[str], **kwargs: object) -> None:
        raise subprocess.TimeoutExpired(command, 5)

    monkeypatch.setattr(live, "_command_exists", lambda command: True)
    monkeypatch.setattr(live.subprocess, "run", run)

    with pytest.raises(LiveReadError) as excinfo:
        read_live_records("/tmp/kubeconfig", timeout=5)

    assert excinfo.value.code == "KUBE_UNREACHABLE"


def test_read_live_records_os_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def run(command: list[str], **kwargs: object) -> None:
        raise PermissionError("not executable")

    monkeypatch.setattr(live, "_command_exists", lambda command: True)
    monkeypatch.setattr(live.subprocess, "run", run)

    with pytest.raises(LiveReadError) as excinfo:
        read_live_records("/tmp/kubeconfig")

    assert excinfo.value.code == "KUBE_COMMAND_FAILED"
