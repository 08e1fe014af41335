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
"""Diagram file writing."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

_LOGGER = logging.getLogger(__name__)

FILE_MODE = 0o600


def write_diagram(path: str | Path, text: str) -> Path:
    """Write diagram text to ``path`` all-or-nothing.

    The text goes to a temporary file beside the target, which is restricted
    to the owner and then renamed over the target. On failure the temporary
    file is removed and the error propagates.
    """

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    handle = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        newline="",
        dir=target.parent,
        prefix=f".{target.name}.",
        suffix=".tmp",
        delete=False,
    )
    temp_path = Path(handle.name)
    try:
        with handle:
            handle.write(text)
        os.chmod(temp_path, FILE_MODE)
        os.replace(temp_path, target)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise

    _LOGGER.debug("Wrote %s bytes to %s", len(text.encode("utf-8")), target)
    return target
