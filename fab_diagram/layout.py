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
"""Layout geometry: tier placement, edge anchors and port label placement.

Coordinates use the screen convention (y grows downward). Anchors are
relative to the node box, ``(0, 0)`` top-left and ``(1, 1)`` bottom-right.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from fab_diagram.layers import sort_nodes
from fab_diagram.models import ConnectionType, LayeredNodes, Link, Node, Tier, Topology
from fab_diagram.normalize import extract_port

_LOGGER = logging.getLogger(__name__)

CANVAS_WIDTH = 1000.0
TOP_ROW_Y = 100.0
ROW_GAP = 250.0

NODE_SIZES: dict[Tier, tuple[float, float]] = {
    Tier.GATEWAY: (100.0, 100.0),
    Tier.SPINE: (100.0, 90.0),
    Tier.LEAF: (100.0, 90.0),
    Tier.SERVER: (100.0, 60.0),
    Tier.EXTERNAL: (100.0, 100.0),
}

# (max count, left-edge pitch); None closes the band list.
LEAF_SPACING = ((3, 200.0), (5, 160.0), (None, 120.0))
SERVER_SPACING = ((4, 160.0), (8, 130.0), (None, 115.0))
TOP_ROW_SPACING = ((3, 200.0), (5, 160.0), (None, 120.0))
SPINE_SPACING = ((2, 300.0), (4, 220.0), (None, 150.0))
MIN_SPINE_SPACING = 120.0
SPINE_SPAN_RATIO = (0.5, 1.5)

SECTOR_DEGREES = 15.0
ANCHOR_NUDGE = 3.0
SPINE_ANCHOR_NUDGE = 4.5
PARALLEL_STEP = 10.0
LEAF_LEAF_NUDGE = 12.0
CROSSING_NUDGE = 8.0
CROSSING_MIN_SPINES = 3
CROSSING_MIN_LEAVES = 4

LABEL_DISTANCE = 25.0
LABEL_OFFSET_AXIS = 12.0
LABEL_OFFSET_DIAGONAL = 6.0
AXIS_TOLERANCE = 20.0

Point = tuple[float, float]


@dataclass(frozen=True)
class Box:
    """Absolute node rectangle."""

    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Point:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def relative(self, point: Point) -> Anchor:
        """Convert an absolute point to an anchor clamped to the box."""

        rx = (point[0] - self.x) / self.width
        ry = (point[1] - self.y) / self.height
        return Anchor(x=_clamp(rx, 0.0, 1.0), y=_clamp(ry, 0.0, 1.0))

    def snap(self, point: Point) -> Anchor:
        """Convert an absolute point to an anchor on the box perimeter.

        Points inside the box move straight out to the nearest side.
        """

        anchor = self.relative(point)
        if 0.0 < anchor.x < 1.0 and 0.0 < anchor.y < 1.0:
            sides = (
                (anchor.x * self.width, Anchor(0.0, anchor.y)),
                ((1.0 - anchor.x) * self.width, Anchor(1.0, anchor.y)),
                (anchor.y * self.height, Anchor(anchor.x, 0.0)),
                ((1.0 - anchor.y) * self.height, Anchor(anchor.x, 1.0)),
            )
            anchor = min(sides, key=lambda side: side[0])[1]
        return anchor

    def absolute(self, anchor: Anchor) -> Point:
        return (self.x + anchor.x * self.width, self.y + anchor.y * self.height)


@dataclass(frozen=True)
class Anchor:
    """Relative attachment point on a node box."""

    x: float
    y: float


@dataclass(frozen=True)
class EndpointLabel:
    """Port label near one end of an edge.

    ``position`` is the location along the edge from -1 (source) to 1
    (target); ``offset`` is the perpendicular displacement in pixels.
    """

    text: str
    x: float
    y: float
    position: float
    offset: Point
    rotation: float


@dataclass(frozen=True)
class EdgeGeometry:
    edge_id: str
    link: Link
    source_point: Point
    target_point: Point
    exit: Anchor
    entry: Anchor
    source_label: EndpointLabel
    target_label: EndpointLabel


@dataclass
class Layout:
    """Geometry shared by every renderer for one render call."""

    layers: LayeredNodes
    boxes: dict[str, Box] = field(default_factory=dict)
    edges: list[EdgeGeometry] = field(default_factory=list)
    canvas_width: float = CANVAS_WIDTH

    def box(self, node_id: str) -> Box | None:
        return self.boxes.get(node_id)


def compute_layout(topology: Topology, layers: LayeredNodes | None = None) -> Layout:
    """Lay out a topology with a fresh session."""

    if layers is None:
        layers = sort_nodes(topology)
    return LayoutSession(layers).run(topology.links)


def band_spacing(count: int, bands: Sequence[tuple[int | None, float]]) -> float:
    """Pick the pitch for ``count`` nodes from a band table."""

    for limit, spacing in bands:
        if limit is None or count <= limit:
            return spacing
    return bands[-1][1]


def spine_spacing(spine_count: int, leaf_count: int) -> float:
    """Pitch of the spine row, kept proportional to the leaf row span."""

    spacing = band_spacing(spine_count, SPINE_SPACING)
    if spine_count > 1 and leaf_count > 1:
        leaf_span = (leaf_count - 1) * band_spacing(leaf_count, LEAF_SPACING)
        low, high = SPINE_SPAN_RATIO
        span = _clamp((spine_count - 1) * spacing, leaf_span * low, leaf_span * high)
        spacing = span / (spine_count - 1)
    return max(spacing, MIN_SPINE_SPACING)


def quantize_angle(angle: float) -> float:
    """Snap an angle in degrees to the nearest sector boundary in (-180, 180]."""

    sector = math.floor(angle / SECTOR_DEGREES + 0.5) * SECTOR_DEGREES
    if sector <= -180.0:
        sector += 360.0
    return sector


def ray_anchor(box: Box, angle: float) -> Anchor:
    """Intersect a ray from the box centre at ``angle`` degrees with the box edge."""

    dx = math.cos(math.radians(angle))
    dy = math.sin(math.radians(angle))
    scales = []
    if abs(dx) > 1e-9:
        scales.append((box.width / 2) / abs(dx))
    if abs(dy) > 1e-9:
        scales.append((box.height / 2) / abs(dy))
    if not scales:
        return Anchor(0.5, 0.5)
    scale = min(scales)
    cx, cy = box.center
    return box.snap((cx + dx * scale, cy + dy * scale))


def label_rotation(angle: float) -> float:
    """Fold an edge angle into (-90, 90] so text never reads upside-down."""

    if angle > 90:
        return angle - 180
    if angle <= -90:
        return angle + 180
    return angle


def label_offset(angle: float) -> float:
    """Perpendicular label offset: larger near the axes, smaller on diagonals."""

    folded = abs(angle) % 90
    if folded <= AXIS_TOLERANCE or folded >= 90 - AXIS_TOLERANCE:
        return LABEL_OFFSET_AXIS
    return LABEL_OFFSET_DIAGONAL


class LayoutSession:
    """Working state for laying out one topology.

    Anchor usage counters and node boxes live here, so independent sessions
    never share state.
    """

    def __init__(self, layers: LayeredNodes, canvas_width: float = CANVAS_WIDTH) -> None:
        self.layers = layers
        self.canvas_width = canvas_width
        self._tier_of = layers.tier_of()
        self._boxes: dict[str, Box] = {}
        self._anchor_usage: defaultdict[tuple[str, float], int] = defaultdict(int)

    def run(self, links: Iterable[Link]) -> Layout:
        boxes = self.place_nodes()
        edges = self.route_links(links)
        _LOGGER.debug("Laid out %s nodes and %s edges", len(boxes), len(edges))
        return Layout(layers=self.layers, boxes=boxes, edges=edges, canvas_width=self.canvas_width)

    def place_nodes(self) -> dict[str, Box]:
        """Assign a box to every tiered node, one centred row per tier group."""

        layers = self.layers
        rows: list[tuple[list[tuple[Tier, Node]], float]] = []
        top = [(Tier.GATEWAY, node) for node in layers.gateway]
        top.extend((Tier.EXTERNAL, node) for node in layers.external)
        if top:
            rows.append((top, band_spacing(len(top), TOP_ROW_SPACING)))
        if layers.spine:
            rows.append(
                (
                    [(Tier.SPINE, node) for node in layers.spine],
                    spine_spacing(len(layers.spine), len(layers.leaf)),
                )
            )
        rows.append(
            ([(Tier.LEAF, node) for node in layers.leaf], band_spacing(len(layers.leaf), LEAF_SPACING))
        )
        rows.append(
            (
                [(Tier.SERVER, node) for node in layers.server],
                band_spacing(len(layers.server), SERVER_SPACING),
            )
        )

        for index, (members, pitch) in enumerate(rows):
            self._place_row(members, pitch, TOP_ROW_Y + index * ROW_GAP)
        return dict(self._boxes)

    def anchor(self, node_id: str, toward: Point) -> Anchor:
        """Choose the anchor on ``node_id`` for an edge heading to ``toward``.

        Repeated use of a sector on the same node fans out by a fixed angle
        per previous use. Usage is counted once per neighbour, so parallel
        links to the same neighbour share one anchor and are spread by their
        perpendicular offset instead.
        """

        box = self._boxes[node_id]
        cx, cy = box.center
        if (toward[0], toward[1]) == (cx, cy):
            return Anchor(0.5, 0.5)
        sector = quantize_angle(math.degrees(math.atan2(toward[1] - cy, toward[0] - cx)))
        uses = self._anchor_usage[(node_id, sector)]
        self._anchor_usage[(node_id, sector)] = uses + 1
        step = SPINE_ANCHOR_NUDGE if self._tier_of.get(node_id) == Tier.SPINE else ANCHOR_NUDGE
        return ray_anchor(box, sector + uses * step)

    def route_links(self, links: Iterable[Link]) -> list[EdgeGeometry]:
        """Compute anchors and labels for every drawable link."""

        edges: list[EdgeGeometry] = []
        for group_index, group in enumerate(self._group_links(links)):
            edges.extend(self._route_group(group_index, group))
        return edges

    def _place_row(self, members: list[tuple[Tier, Node]], pitch: float, y: float) -> None:
        if not members:
            return
        widths = [NODE_SIZES[tier][0] for tier, _ in members]
        span = (len(members) - 1) * pitch + widths[-1]
        start = (self.canvas_width - span) / 2
        for index, (tier, node) in enumerate(members):
            width, height = NODE_SIZES[tier]
            self._boxes[node.id] = Box(x=start + index * pitch, y=y, width=width, height=height)

    def _group_links(self, links: Iterable[Link]) -> list[list[Link]]:
        """Group links per unordered node pair, in first-appearance order."""

        groups: dict[frozenset[str], list[Link]] = {}
        for link in links:
            if link.source == link.target:
                continue
            if link.source not in self._boxes or link.target not in self._boxes:
                continue
            groups.setdefault(frozenset((link.source, link.target)), []).append(link)
        return list(groups.values())

    def _route_group(self, group_index: int, group: list[Link]) -> list[EdgeGeometry]:
        first = group[0]
        source_box = self._boxes[first.source]
        target_box = self._boxes[first.target]
        exit_anchor = self.anchor(first.source, target_box.center)
        entry_anchor = self.anchor(first.target, source_box.center)
        base_source = source_box.absolute(exit_anchor)
        base_target = target_box.absolute(entry_anchor)
        _, (px, py) = _unit_and_normal(base_source, base_target)

        edges: list[EdgeGeometry] = []
        count = len(group)
        for index, link in enumerate(group):
            # Reversed members of a group share the geometry of the first link.
            if link.source == first.source:
                start, end = base_source, base_target
                start_box, end_box = source_box, target_box
            else:
                start, end = base_target, base_source
                start_box, end_box = target_box, source_box

            shift = PARALLEL_STEP * (index - (count - 1) / 2)
            dy = self._vertical_nudge(link, start_box, end_box)
            start = (start[0] + px * shift, start[1] + py * shift + dy)
            end = (end[0] + px * shift, end[1] + py * shift + dy)

            exit_rel = start_box.snap(start)
            entry_rel = end_box.snap(end)
            start = start_box.absolute(exit_rel)
            end = end_box.absolute(entry_rel)
            source_label, target_label = _endpoint_labels(link, start, end)
            edges.append(
                EdgeGeometry(
                    edge_id=f"e{group_index}_{index}",
                    link=link,
                    source_point=start,
                    target_point=end,
                    exit=exit_rel,
                    entry=entry_rel,
                    source_label=source_label,
                    target_label=target_label,
                )
            )
        return edges

    def _vertical_nudge(self, link: Link, source_box: Box, target_box: Box) -> float:
        tiers = (self._tier_of.get(link.source), self._tier_of.get(link.target))
        if tiers == (Tier.LEAF, Tier.LEAF):
            return LEAF_LEAF_NUDGE
        if link.type != ConnectionType.FABRIC or set(tiers) != {Tier.SPINE, Tier.LEAF}:
            return 0.0
        if len(self.layers.spine) < CROSSING_MIN_SPINES or len(self.layers.leaf) < CROSSING_MIN_LEAVES:
            return 0.0

        spine_box, leaf_box = (
            (source_box, target_box) if tiers[0] == Tier.SPINE else (target_box, source_box)
        )
        middle = self.canvas_width / 2
        spine_left = spine_box.center[0] < middle
        leaf_left = leaf_box.center[0] < middle
        if spine_left == leaf_left:
            return 0.0
        return CROSSING_NUDGE if spine_left else -CROSSING_NUDGE


def _unit_and_normal(start: Point, end: Point) -> tuple[Point, Point]:
    vx = end[0] - start[0]
    vy = end[1] - start[1]
    length = math.hypot(vx, vy) or 1.0
    ux, uy = vx / length, vy / length
    return (ux, uy), (-uy, ux)


def _endpoint_labels(link: Link, start: Point, end: Point) -> tuple[EndpointLabel, EndpointLabel]:
    """Place the source and target port labels of one edge."""

    (ux, uy), (px, py) = _unit_and_normal(start, end)
    length = math.hypot(end[0] - start[0], end[1] - start[1])
    angle = math.degrees(math.atan2(end[1] - start[1], end[0] - start[0]))
    rotation = label_rotation(angle)
    perpendicular = label_offset(angle)
    offset = (px * perpendicular, py * perpendicular)
    distance = min(LABEL_DISTANCE, length / 2)
    position = -1.0 + 2.0 * distance / length if length else 0.0

    source = EndpointLabel(
        text=extract_port(link.source_port) if link.source_port else "",
        x=start[0] + ux * distance + offset[0],
        y=start[1] + uy * distance + offset[1],
        position=position,
        offset=offset,
        rotation=rotation,
    )
    target = EndpointLabel(
        text=extract_port(link.target_port) if link.target_port else "",
        x=end[0] - ux * distance + offset[0],
        y=end[1] - uy * distance + offset[1],
        position=-position,
        offset=offset,
        rotation=rotation,
    )
    return source, target


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
