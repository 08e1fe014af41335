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
"""Exceptions raised by fab-diagram."""

from __future__ import annotations


class DiagramError(Exception):
    """Base class for diagram generation failures."""


class RecordParseError(DiagramError, ValueError):
    """The record stream could not be parsed."""


class UnsupportedFormatError(DiagramError, ValueError):
    """Requested output format is not supported."""


class UnsupportedStyleError(DiagramError, ValueError):
    """Requested style name is not one of the built-in themes."""


class LiveReadError(DiagramError):
    """Reading records from a live cluster failed."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
