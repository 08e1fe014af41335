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
"""Record collection from a running cluster using the kubectl CLI."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

from fab_diagram.errors import LiveReadError
from fab_diagram.models import Record
from fab_diagram.records import parse_records

_LOGGER = logging.getLogger(__name__)

LIVE_RESOURCES = (
    "fabnodes.fabricator.githedgehog.com",
    "switches.wiring.githedgehog.com",
    "servers.wiring.githedgehog.com",
    "connections.wiring.githedgehog.com",
    "externals.vpc.githedgehog.com",
    "externalattachments.vpc.githedgehog.com",
)


def read_live_records(
    kubeconfig: str | Path,
    kubectl_cmd: str = "kubectl",
    timeout: int = 30,
) -> list[Record]:
    """Read wiring records from a live cluster.

    The output of ``kubectl get -o yaml`` goes through the same parser as
    wiring files.

    Raises:
        LiveReadError: kubectl is missing, failed or timed out
    """

    if not _command_exists(kubectl_cmd):
        _LOGGER.error("kubectl command not found: %s", kubectl_cmd)
        raise LiveReadError("KUBE_COMMAND_MISSING", f"command not found: {kubectl_cmd}")

    command = _build_kubectl_command(kubectl_cmd, kubeconfig)
    _LOGGER.debug("Running kubectl: %s", " ".join(command))
    try:
        result = subprocess.run(
            command,
            check=False,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        _LOGGER.error("kubectl timed out after %s seconds", timeout)
        raise LiveReadError("KUBE_UNREACHABLE", f"timed out after {timeout}s") from exc
    except OSError as exc:
        _LOGGER.error("Failed to run kubectl: %s", exc)
        raise LiveReadError("KUBE_COMMAND_FAILED", str(exc)) from exc

    if result.returncode != 0:
        combined_output = "\n".join([result.stdout, result.stderr]).strip()
        error_code = _classify_kubectl_error(combined_output)
        _LOGGER.warning(
            "kubectl failed (%s). stderr=%s", error_code, result.stderr.strip() or "<empty>"
        )
        raise LiveReadError(error_code, result.stderr.strip() or "kubectl failed")

    records = parse_records(result.stdout, source="kubectl")
    _LOGGER.info("Read %s records from the cluster", len(records))
    return records


def _command_exists(command: str) -> bool:
    """Check if a command exists on PATH."""

    return Path(command).is_file() or bool(shutil.which(command))


def _build_kubectl_command(kubectl_cmd: str, kubeconfig: str | Path) -> list[str]:
    """Build the kubectl command listing every wiring resource."""

    return [
        kubectl_cmd,
        "--kubeconfig",
        str(kubeconfig),
        "get",
        ",".join(LIVE_RESOURCES),
        "--all-namespaces",
        "-o",
        "yaml",
    ]


def _classify_kubectl_error(output: str) -> str:
    """Classify kubectl error output into a stable error code."""

    lowered = output.lower()
    forbidden_markers = (
        "forbidden",
        "unauthorized",
        "you must be logged in",
    )
    if any(marker in lowered for marker in forbidden_markers):
        return "KUBE_FORBIDDEN"

    missing_markers = (
        "the server doesn't have a resource type",
        "no matches for kind",
        "could not find the requested resource",
    )
    if any(marker in lowered for marker in missing_markers):
        return "KUBE_RESOURCE_MISSING"

    reachability_markers = (
        "connection refused",
        "unable to connect to the server",
        "no route to host",
        "i/o timeout",
        "was refused",
        "no such host",
    )
    if any(marker in lowered for marker in reachability_markers):
        return "KUBE_UNREACHABLE"

    return "KUBE_UNKNOWN_ERROR"
