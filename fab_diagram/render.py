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
"""Format registry and the render entrypoints."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Protocol

from fab_diagram.drawio import DrawioEmitter
from fab_diagram.errors import UnsupportedFormatError
from fab_diagram.graphviz import DotEmitter
from fab_diagram.layers import sort_nodes
from fab_diagram.layout import Layout, compute_layout
from fab_diagram.mermaid import MermaidEmitter
from fab_diagram.models import Topology
from fab_diagram.output import write_diagram
from fab_diagram.styles import Style, StyleType, get_style

_LOGGER = logging.getLogger(__name__)


class DiagramFormat(str, Enum):
    DRAWIO = "drawio"
    DOT = "dot"
    MERMAID = "mermaid"


DEFAULT_FILENAMES = {
    DiagramFormat.DRAWIO: "diagram.drawio",
    DiagramFormat.DOT: "diagram.dot",
    DiagramFormat.MERMAID: "diagram.mmd",
}


class Emitter(Protocol):
    def emit(self, topology: Topology, layout: Layout, style: Style) -> str:
        ...


EMITTERS: dict[DiagramFormat, Emitter] = {
    DiagramFormat.DRAWIO: DrawioEmitter(),
    DiagramFormat.DOT: DotEmitter(),
    DiagramFormat.MERMAID: MermaidEmitter(),
}

USAGE_HINTS = {
    DiagramFormat.DRAWIO: (
        "Open {path} with https://app.diagrams.net/ or the desktop draw.io application",
        "You can edit the diagram and export to PNG, SVG, PDF or other formats",
    ),
    DiagramFormat.DOT: (
        "Install Graphviz: https://graphviz.org/download/",
        "Convert to PNG: dot -Tpng {path} -o diagram.png",
        "Convert to SVG: dot -Tsvg {path} -o diagram.svg",
        "Convert to PDF: dot -Tpdf {path} -o diagram.pdf",
    ),
    DiagramFormat.MERMAID: (
        "Visit https://mermaid.live/ or use a Markdown editor with Mermaid support",
        "Copy the contents of {path} into the editor",
    ),
}


def parse_format(name: str | DiagramFormat) -> DiagramFormat:
    """Validate a format name.

    Raises:
        UnsupportedFormatError: The name is not one of the supported formats
    """

    try:
        return DiagramFormat(name)
    except ValueError as exc:
        choices = ", ".join(item.value for item in DiagramFormat)
        raise UnsupportedFormatError(
            f"unsupported diagram format {name!r} (choose from {choices})"
        ) from exc


def render_diagram(
    topology: Topology,
    fmt: str | DiagramFormat,
    style: str | StyleType = StyleType.DEFAULT,
) -> str:
    """Render a topology to diagram text.

    Format and style are validated before any work is done.
    """

    diagram_format = parse_format(fmt)
    theme = get_style(style)
    layers = sort_nodes(topology)
    layout = compute_layout(topology, layers)
    return EMITTERS[diagram_format].emit(topology, layout, theme)


def generate_diagram(
    topology: Topology,
    out_dir: str | Path,
    fmt: str | DiagramFormat = DiagramFormat.DRAWIO,
    style: str | StyleType = StyleType.DEFAULT,
    output: str | Path | None = None,
) -> Path:
    """Render a topology and write it to disk.

    Args:
        topology: Topology to render
        out_dir: Result directory used with the default file name
        fmt: Output format name
        style: Theme name (only changes draw.io output)
        output: Explicit output path overriding the default file name

    Returns:
        Path of the written file
    """

    diagram_format = parse_format(fmt)
    text = render_diagram(topology, diagram_format, style)
    path = Path(output) if output else Path(out_dir) / DEFAULT_FILENAMES[diagram_format]
    write_diagram(path, text)

    _LOGGER.info("Generated %s diagram: %s", diagram_format.value, path)
    for hint in USAGE_HINTS[diagram_format]:
        _LOGGER.info(hint.format(path=path))
    return path
