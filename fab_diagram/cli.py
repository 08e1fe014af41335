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
"""CLI entrypoint."""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Sequence

from fab_diagram.errors import LiveReadError
from fab_diagram.extract import build_topology
from fab_diagram.live import read_live_records
from fab_diagram.records import load_records
from fab_diagram.render import DiagramFormat, generate_diagram, parse_format
from fab_diagram.styles import StyleType, parse_style

_LOGGER = logging.getLogger(__name__)

RESULT_DIR = "result"
INCLUDE_DIR = "include"


def build_parser() -> argparse.ArgumentParser:
    """Build argument parser."""

    formats = ", ".join(item.value for item in DiagramFormat)
    styles = ", ".join(item.value for item in StyleType)
    parser = argparse.ArgumentParser(
        prog="fab-diagram", description="Generate fabric topology diagrams"
    )
    parser.add_argument(
        "--wiring",
        action="append",
        default=[],
        help="wiring YAML file or directory (repeatable, default: <workdir>/include)",
    )
    parser.add_argument("--workdir", default=".", help="working directory (default: .)")
    parser.add_argument(
        "--format", default=DiagramFormat.DRAWIO.value, help=f"diagram format: {formats}"
    )
    parser.add_argument(
        "--style",
        default=StyleType.DEFAULT.value,
        help=f"diagram style, draw.io only: {styles}",
    )
    parser.add_argument(
        "--output",
        help="output file path (default: <workdir>/result/<format default file name>)",
    )
    parser.add_argument(
        "--live",
        action="store_true",
        help="read the topology from a running cluster instead of wiring files",
    )
    parser.add_argument(
        "--kubeconfig",
        help="kubeconfig for --live (default: $KUBECONFIG or <workdir>/vlab/kubeconfig)",
    )
    parser.add_argument("--kubectl", default="kubectl", help="kubectl command for --live")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["INFO", "DEBUG", "WARN"],
        help="log level",
    )
    return parser


def configure_logging(level: str) -> None:
    """Configure logging."""

    logging.basicConfig(level=getattr(logging, level), format="%(levelname)s %(message)s")


def main(argv: Sequence[str] | None = None) -> int:
    """Run fab-diagram."""

    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    workdir = Path(args.workdir)
    try:
        diagram_format = parse_format(args.format)
        style = parse_style(args.style)
    except ValueError as exc:
        _LOGGER.error("Invalid input: %s", exc)
        return 3
    if style != StyleType.DEFAULT and diagram_format != DiagramFormat.DRAWIO:
        _LOGGER.warning("--style only applies to the drawio format, ignoring %s", style.value)

    if args.live:
        kubeconfig = (
            args.kubeconfig
            or os.environ.get("KUBECONFIG")
            or workdir / "vlab" / "kubeconfig"
        )
        try:
            records = read_live_records(kubeconfig, kubectl_cmd=args.kubectl)
        except LiveReadError as exc:
            _LOGGER.error("Failed to read the live topology: %s", exc)
            return 2
        except ValueError as exc:
            _LOGGER.error("Invalid input: %s", exc)
            return 3
    else:
        paths = args.wiring or [workdir / INCLUDE_DIR]
        try:
            records = load_records(paths)
        except (ValueError, OSError) as exc:
            _LOGGER.error("Invalid input: %s", exc)
            return 3

    topology = build_topology(records)
    _LOGGER.info("Topology has %s nodes and %s links", len(topology.nodes), len(topology.links))

    try:
        generate_diagram(
            topology,
            workdir / RESULT_DIR,
            diagram_format,
            style,
            output=args.output,
        )
    except OSError as exc:
        _LOGGER.error("Failed to write diagram: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
