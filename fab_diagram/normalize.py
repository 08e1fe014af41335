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
"""Port name and identifier normalization utilities."""

from __future__ import annotations

import re

_ID_UNSAFE = re.compile(r"[^A-Za-z0-9_]")


def split_port_name(port: str) -> tuple[str, str]:
    """Split a port-qualified name into its node id and port name."""

    device, sep, name = port.partition("/")
    if not sep:
        return port, ""
    return device, name


def port_device(port: str) -> str:
    """Return the node id portion of a port-qualified name."""

    return split_port_name(port)[0]


def extract_port(port: str) -> str:
    """Return the port portion of a port-qualified name for labels."""

    device, name = split_port_name(port)
    return name if name else device


def sanitize_id(name: str) -> str:
    """Sanitize a node name for use as an identifier in diagram languages."""

    return _ID_UNSAFE.sub("_", name)


def mermaid_id(name: str) -> str:
    """Build a Mermaid node ID with capitalized underscore-separated parts."""

    parts = sanitize_id(name).split("_")
    return "_".join(part[:1].upper() + part[1:] for part in parts)
