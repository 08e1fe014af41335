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
"""Mermaid flowchart generation for fabric topology visualization."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from fab_diagram.layers import adjacent_pairs
from fab_diagram.layout import Layout
from fab_diagram.legend import LEGEND_LABELS, LinkCategory, legend_categories, link_category
from fab_diagram.models import Link, Node, RedundancyPair, Tier, Topology
from fab_diagram.normalize import extract_port, mermaid_id
from fab_diagram.styles import Style

_LOGGER = logging.getLogger(__name__)

CLASS_DEFS = {
    "gateway": "fill:#FFF2CC,stroke:#999,stroke-width:1px,color:#000",
    "spine": "fill:#F8CECC,stroke:#B85450,stroke-width:1px,color:#000",
    "leaf": "fill:#DAE8FC,stroke:#6C8EBF,stroke-width:1px,color:#000",
    "server": "fill:#D5E8D4,stroke:#82B366,stroke-width:1px,color:#000",
    "external": "fill:#E1D5E7,stroke:#9673A6,stroke-width:1px,color:#000",
    "mclag": "fill:#F0F8FF,stroke:#6C8EBF,stroke-width:1px,color:#000",
    "eslag": "fill:#FFF8F0,stroke:#D79B00,stroke-width:1px,color:#000",
    "legend": "fill:none,stroke:none,color:#000",
}

LINK_STYLES: dict[LinkCategory, str] = {
    LinkCategory.FABRIC: "stroke:#CC3333,stroke-width:4px",
    LinkCategory.MCLAG_PEER: "stroke:#2F5597,stroke-width:3px,stroke-dasharray:5 5",
    LinkCategory.MCLAG_SESSION: "stroke:#4472C4,stroke-width:2px,stroke-dasharray:5 5",
    LinkCategory.MCLAG_SERVER: "stroke:#99CCFF,stroke-width:4px,stroke-dasharray:5 5",
    LinkCategory.BUNDLED: "stroke:#66CC66,stroke-width:4px",
    LinkCategory.UNBUNDLED: "stroke:#999999,stroke-width:2px",
    LinkCategory.ESLAG: "stroke:#CC9900,stroke-width:4px,stroke-dasharray:5 5",
    LinkCategory.GATEWAY: "stroke:#D6B656,stroke-width:2px",
    LinkCategory.EXTERNAL: "stroke:#9673A6,stroke-width:2px,stroke-dasharray:3 3",
}

TIER_SUBGRAPHS = {
    Tier.GATEWAY: ("Gateways", "TB"),
    Tier.SPINE: ("Spines", "TB"),
    Tier.LEAF: ("Leaves", "LR"),
    Tier.SERVER: ("Servers", "LR"),
    Tier.EXTERNAL: ("Externals", "TB"),
}

LEGEND_ID = "Legend"


class MermaidEmitter:
    def emit(self, topology: Topology, layout: Layout, style: Style) -> str:
        return generate_mermaid_diagram(topology, layout)


class MermaidIds:
    """Per-render map from node ids to unique Mermaid identifiers.

    Node ids are case-sensitive but ``mermaid_id`` folds case and punctuation,
    so colliding names get a ``_2``, ``_3``... suffix. Nodes are allocated in
    id order, then pair subgraphs, so the mapping does not depend on record
    order. Tier subgraph and legend identifiers are reserved up front.
    """

    def __init__(self, node_ids: Iterable[str]) -> None:
        self._used: set[str] = {title for title, _ in TIER_SUBGRAPHS.values()}
        self._used.add(LEGEND_ID)
        self.legend: dict[LinkCategory, tuple[str, str]] = {}
        for category in LinkCategory:
            name = mermaid_id(f"legend_{category.value}")
            self.legend[category] = (f"{name}_A", f"{name}_B")
            self._used.update(self.legend[category])

        self.nodes: dict[str, str] = {}
        for node_id in sorted(set(node_ids)):
            self.nodes[node_id] = self._allocate(mermaid_id(node_id))
        self._pairs: dict[RedundancyPair, str] = {}

    def node(self, node_id: str) -> str:
        return self.nodes[node_id]

    def pair(self, pair: RedundancyPair) -> str:
        if pair not in self._pairs:
            base = f"{pair.kind.value.upper()}_{self.node(pair.first)}_{self.node(pair.second)}"
            self._pairs[pair] = self._allocate(base)
        return self._pairs[pair]

    def _allocate(self, base: str) -> str:
        candidate = base
        suffix = 2
        while candidate in self._used:
            candidate = f"{base}_{suffix}"
            suffix += 1
        self._used.add(candidate)
        return candidate


def generate_mermaid_diagram(topology: Topology, layout: Layout) -> str:
    """Generate a Mermaid flowchart from a laid-out topology.

    Args:
        topology: Topology to render; every link becomes one edge
        layout: Shared layout providing tier order and redundancy pairs

    Returns:
        Mermaid diagram text ending with a newline
    """

    layers = layout.layers
    pairs_by_tier = {Tier.LEAF: layers.leaf_pairs, Tier.SERVER: layers.server_pairs}
    categories = legend_categories(topology.links)
    ids = MermaidIds(
        [node.id for node in topology.nodes]
        + [node.id for node in layers.all_nodes()]
        + [endpoint for link in topology.links for endpoint in (link.source, link.target)]
    )

    body: list[str] = []
    used_classes: dict[str, list[str]] = {}
    for tier, nodes in layers.tiers():
        if not nodes:
            continue
        pairs = adjacent_pairs(nodes, pairs_by_tier.get(tier, []))
        body.extend(_tier_subgraph(tier, nodes, pairs, ids))
        used_classes.setdefault(tier.value, []).extend(ids.node(node.id) for node in nodes)
        for pair in pairs:
            used_classes.setdefault(pair.kind.value, []).append(ids.pair(pair))

    edges: list[str] = []
    indices: dict[LinkCategory, list[int]] = {}
    for index, link in enumerate(topology.links):
        edges.append(_edge(link, ids))
        indices.setdefault(link_category(link), []).append(index)

    legend: list[str] = []
    if categories:
        legend.append(f"subgraph {LEGEND_ID} [Connection Types]")
        legend.append("\tdirection TB")
        for offset, category in enumerate(categories):
            start, end = ids.legend[category]
            legend.append(f'\t{start}[" "] ---|"{LEGEND_LABELS[category]}"| {end}[" "]')
            # Legend edges follow the topology edges in document order.
            indices.setdefault(category, []).append(len(edges) + offset)
            used_classes.setdefault("legend", []).extend((start, end))
        legend.append("end")

    lines = ["graph TD", ""]
    for name in CLASS_DEFS:
        if name in used_classes:
            lines.append(f"classDef {name} {CLASS_DEFS[name]}")
    if used_classes:
        lines.append("")
    lines.extend(body)
    if edges:
        lines.append("%% Links")
        lines.extend(edges)
        lines.append("")
    if legend:
        lines.extend(legend)
        lines.append("")

    for name in CLASS_DEFS:
        if name in used_classes:
            lines.append(f"class {','.join(used_classes[name])} {name}")
    if indices:
        lines.append("linkStyle default stroke:#666,stroke-width:2px")
        for category in LinkCategory:
            if category in indices:
                joined = ",".join(str(index) for index in indices[category])
                lines.append(f"linkStyle {joined} {LINK_STYLES[category]}")
    for tier, nodes in layers.tiers():
        if nodes:
            lines.append(f"style {TIER_SUBGRAPHS[tier][0]} fill:none,stroke:none")

    _LOGGER.debug("Mermaid diagram has %s edges", len(topology.links))
    return "\n".join(lines) + "\n"


def _tier_subgraph(
    tier: Tier, nodes: Sequence[Node], pairs: list[RedundancyPair], ids: MermaidIds
) -> list[str]:
    title, direction = TIER_SUBGRAPHS[tier]
    lines = [f"subgraph {title} [{title}]", f"\tdirection {direction}"]
    pair_of = {}
    for pair in pairs:
        pair_of[pair.first] = pair
        pair_of[pair.second] = pair
    done: set[str] = set()
    for node in nodes:
        if node.id in done:
            continue
        pair = pair_of.get(node.id)
        if pair is None:
            lines.append(f"\t{_node(node, ids)}")
            continue
        partner = pair.second if node.id == pair.first else pair.first
        members = [node] + [item for item in nodes if item.id == partner]
        lines.append(f"\tsubgraph {ids.pair(pair)} [{pair.kind.value.upper()}]")
        lines.append("\t\tdirection LR")
        for member in members:
            lines.append(f"\t\t{_node(member, ids)}")
            done.add(member.id)
        lines.append("\tend")
    lines.append("end")
    lines.append("")
    return lines


def _node(node: Node, ids: MermaidIds) -> str:
    label = _escape(node.label).replace("\n", "<br>")
    return f'{ids.node(node.id)}["{label}"]'


def _edge(link: Link, ids: MermaidIds) -> str:
    source_port = extract_port(link.source_port) if link.source_port else ""
    target_port = extract_port(link.target_port) if link.target_port else ""
    label = f"{target_port}↔{source_port}" if source_port or target_port else ""
    connector = f'---|"{_escape(label)}"|' if label else "---"
    return f"{ids.node(link.source)} {connector} {ids.node(link.target)}"


def _escape(text: str) -> str:
    return text.replace('"', "#quot;")
