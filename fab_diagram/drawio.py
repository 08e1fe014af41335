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
"""draw.io (mxGraph XML) emitter."""

from __future__ import annotations

import html
import xml.etree.ElementTree as ET
from typing import Sequence

from fab_diagram.layers import adjacent_pairs
from fab_diagram.layout import Box, EdgeGeometry, EndpointLabel, Layout
from fab_diagram.legend import LEGEND_LABELS, legend_categories, link_category
from fab_diagram.models import Node, Tier, Topology
from fab_diagram.styles import Style, format_node_value

XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'

LEGEND_X = -400
LEGEND_Y = 10
LEGEND_WIDTH = 320
LEGEND_ROW = 30
LEGEND_FIRST_ROW = 50

TIER_PADDING = 20.0
TIER_TITLE = 30.0
PAIR_PADDING = 10.0
PAIR_TITLE = 20.0

TIER_TITLES = {
    Tier.GATEWAY: "Gateways",
    Tier.SPINE: "Spines",
    Tier.LEAF: "Leaves",
    Tier.SERVER: "Servers",
    Tier.EXTERNAL: "Externals",
}

_CONTAINER_STYLE = (
    "rounded=1;whiteSpace=wrap;html=1;fillColor=none;dashed=1;strokeColor=#999999;"
    "verticalAlign=top;align=left;spacingLeft=8;fontSize=12;container=1;collapsible=0;"
)
_PAIR_STYLE = (
    "rounded=1;whiteSpace=wrap;html=1;fillColor=none;dashed=1;strokeColor=#cccccc;"
    "verticalAlign=top;align=center;fontSize=10;container=1;collapsible=0;"
)
_TEXT_STYLE = (
    "text;html=1;strokeColor=none;fillColor=none;verticalAlign=middle;"
    "whiteSpace=wrap;rounded=0;fontSize=14;"
)
_LABEL_STYLE = "edgeLabel;html=1;align=center;verticalAlign=middle;resizable=0;rotation={rotation};"


class DrawioEmitter:
    """Serialize a laid-out topology as a draw.io document."""

    def emit(self, topology: Topology, layout: Layout, style: Style) -> str:
        model = ET.Element("mxGraphModel", _model_attributes(layout, style))
        root = ET.SubElement(model, "root")
        _cell(root, id="0")
        _cell(root, id="1", parent="0")

        _add_legend(root, topology, style)
        _add_nodes(root, layout, style)
        for edge in layout.edges:
            _add_edge(root, edge, style)

        mxfile = ET.Element("mxfile", {"host": "fab-diagram", "type": "device"})
        diagram = ET.SubElement(mxfile, "diagram", {"id": "fabric", "name": "Fabric"})
        diagram.append(model)
        ET.indent(mxfile, space="  ")
        return XML_HEADER + ET.tostring(mxfile, encoding="unicode") + "\n"


def _model_attributes(layout: Layout, style: Style) -> dict[str, str]:
    bottom = max((box.y + box.height for box in layout.boxes.values()), default=0.0)
    attributes = {
        "dx": "1000",
        "dy": "800",
        "grid": "1",
        "gridSize": "10",
        "guides": "1",
        "tooltips": "1",
        "connect": "1",
        "arrows": "1",
        "fold": "1",
        "page": "1",
        "pageScale": "1",
        "pageWidth": _fmt(layout.canvas_width),
        "pageHeight": _fmt(max(1000.0, bottom + 200.0)),
    }
    if style.background:
        attributes["background"] = style.background
    return attributes


def _add_legend(root: ET.Element, topology: Topology, style: Style) -> None:
    """Add a legend listing only the link categories present."""

    categories = legend_categories(topology.links)
    if not categories:
        return
    height = LEGEND_FIRST_ROW + LEGEND_ROW * len(categories)
    _vertex(
        root,
        "legend_container",
        "1",
        "group",
        Box(LEGEND_X, LEGEND_Y, LEGEND_WIDTH, height),
    )
    _vertex(
        root,
        "legend_bg",
        "legend_container",
        "rounded=0;whiteSpace=wrap;html=1;fillColor=#ffffff;strokeColor=#666666;",
        Box(0, 0, LEGEND_WIDTH, height),
    )
    _vertex(
        root,
        "legend_title",
        "legend_container",
        _TEXT_STYLE + "align=center;fontStyle=1",
        Box(0, 10, LEGEND_WIDTH, 20),
        value="Network Connection Types",
    )
    for index, category in enumerate(categories):
        y = LEGEND_FIRST_ROW + index * LEGEND_ROW
        prefix = f"legend_{category.value}"
        _vertex(root, f"{prefix}_start", "legend_container", "point;", Box(20, y, 1, 1))
        _vertex(root, f"{prefix}_end", "legend_container", "point;", Box(60, y, 1, 1))
        line = _cell(
            root,
            id=f"{prefix}_line",
            parent="legend_container",
            style=style.link_styles[category],
            edge="1",
            source=f"{prefix}_start",
            target=f"{prefix}_end",
        )
        ET.SubElement(line, "mxGeometry", {"relative": "1", "as": "geometry"})
        _vertex(
            root,
            f"{prefix}_text",
            "legend_container",
            _TEXT_STYLE + "align=left;",
            Box(70, y - 10, 230, 20),
            value=LEGEND_LABELS[category],
        )


def _add_nodes(root: ET.Element, layout: Layout, style: Style) -> None:
    """Add one container per non-empty tier with pair sub-containers inside."""

    layers = layout.layers
    pairs_by_tier = {Tier.LEAF: layers.leaf_pairs, Tier.SERVER: layers.server_pairs}
    for tier, nodes in layers.tiers():
        boxes = [layout.boxes[node.id] for node in nodes if node.id in layout.boxes]
        if not boxes:
            continue
        container_id = f"cluster_{tier.value}"
        container = _bounds(boxes, TIER_PADDING, TIER_TITLE)
        _vertex(root, container_id, "1", _CONTAINER_STYLE, container, value=TIER_TITLES[tier])

        parents: dict[str, tuple[str, Box]] = {}
        for pair in adjacent_pairs(nodes, pairs_by_tier.get(tier, [])):
            pair_id = f"pair_{pair.kind.value}_{pair.first}_{pair.second}"
            pair_box = _bounds(
                [layout.boxes[pair.first], layout.boxes[pair.second]], PAIR_PADDING, PAIR_TITLE
            )
            _vertex(
                root,
                pair_id,
                container_id,
                _PAIR_STYLE,
                _relative_to(pair_box, container),
                value=pair.kind.value.upper(),
            )
            parents[pair.first] = (pair_id, pair_box)
            parents[pair.second] = (pair_id, pair_box)

        for node in nodes:
            box = layout.boxes.get(node.id)
            if box is None:
                continue
            parent_id, parent_box = parents.get(node.id, (container_id, container))
            _add_node(root, node, tier, parent_id, _relative_to(box, parent_box), style)


def node_cell_id(node_id: str) -> str:
    """Cell id of a node, prefixed so it never clashes with generated cell ids."""

    return f"node_{node_id}"


def _add_node(root: ET.Element, node: Node, tier: Tier, parent: str, box: Box, style: Style) -> None:
    _vertex(
        root,
        node_cell_id(node.id),
        parent,
        style.node_style(tier),
        box,
        value=format_node_value(node, style),
    )


def _add_edge(root: ET.Element, edge: EdgeGeometry, style: Style) -> None:
    link = edge.link
    anchors = (
        f"exitX={edge.exit.x:.3f};exitY={edge.exit.y:.3f};exitDx=0;exitDy=0;"
        f"entryX={edge.entry.x:.3f};entryY={edge.entry.y:.3f};entryDx=0;entryDy=0;"
    )
    cell = _cell(
        root,
        id=edge.edge_id,
        parent="1",
        style=style.link_style(link_category(link)) + anchors,
        edge="1",
        source=node_cell_id(link.source),
        target=node_cell_id(link.target),
    )
    ET.SubElement(cell, "mxGeometry", {"relative": "1", "as": "geometry"})
    _add_label(root, f"{edge.edge_id}_1", edge.edge_id, edge.source_label)
    _add_label(root, f"{edge.edge_id}_2", edge.edge_id, edge.target_label)


def _add_label(root: ET.Element, cell_id: str, edge_id: str, label: EndpointLabel) -> None:
    if not label.text:
        return
    cell = _cell(
        root,
        id=cell_id,
        parent=edge_id,
        value=f'<span style="font-size:10px;">{html.escape(label.text)}</span>',
        style=_LABEL_STYLE.format(rotation=f"{label.rotation:.2f}"),
        vertex="1",
        connectable="0",
    )
    geometry = ET.SubElement(
        cell, "mxGeometry", {"x": _fmt(label.position), "relative": "1", "as": "geometry"}
    )
    ET.SubElement(
        geometry, "mxPoint", {"x": _fmt(label.offset[0]), "y": _fmt(label.offset[1]), "as": "offset"}
    )


def _cell(root: ET.Element, **attributes: str) -> ET.Element:
    return ET.SubElement(root, "mxCell", attributes)


def _vertex(
    root: ET.Element, cell_id: str, parent: str, style: str, box: Box, value: str = ""
) -> ET.Element:
    attributes = {"id": cell_id, "parent": parent}
    if value:
        attributes["value"] = value
    attributes.update(style=style, vertex="1")
    cell = _cell(root, **attributes)
    ET.SubElement(
        cell,
        "mxGeometry",
        {
            "x": _fmt(box.x),
            "y": _fmt(box.y),
            "width": _fmt(box.width),
            "height": _fmt(box.height),
            "as": "geometry",
        },
    )
    return cell


def _bounds(boxes: Sequence[Box], padding: float, title: float) -> Box:
    left = min(box.x for box in boxes) - padding
    top = min(box.y for box in boxes) - title
    right = max(box.x + box.width for box in boxes) + padding
    bottom = max(box.y + box.height for box in boxes) + padding
    return Box(left, top, right - left, bottom - top)


def _relative_to(box: Box, parent: Box) -> Box:
    return Box(box.x - parent.x, box.y - parent.y, box.width, box.height)


def _fmt(value: float) -> str:
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text
