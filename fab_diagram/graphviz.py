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
"""Graphviz DOT emitter."""

from __future__ import annotations

from typing import Iterable, Sequence

from fab_diagram.layout import Layout
from fab_diagram.legend import LEGEND_LABELS, LinkCategory, legend_categories, link_category
from fab_diagram.models import ConnectionType, Link, Node, RedundancyPair, Tier, Topology
from fab_diagram.normalize import extract_port, sanitize_id
from fab_diagram.styles import Style

# (color, line style) per category.
EDGE_STYLES: dict[LinkCategory, tuple[str, str]] = {
    LinkCategory.FABRIC: ("red", "solid"),
    LinkCategory.MCLAG_PEER: ("navy", "dashed"),
    LinkCategory.MCLAG_SESSION: ("royalblue", "dashed"),
    LinkCategory.MCLAG_SERVER: ("blue", "dashed"),
    LinkCategory.BUNDLED: ("green", "solid"),
    LinkCategory.UNBUNDLED: ("gray", "solid"),
    LinkCategory.ESLAG: ("orange", "dashed"),
    LinkCategory.GATEWAY: ("goldenrod", "solid"),
    LinkCategory.EXTERNAL: ("purple", "dashed"),
}

# (fill, border, style, shape) per tier.
NODE_STYLES: dict[Tier, tuple[str, str, str, str]] = {
    Tier.GATEWAY: ("#fff2cc", "#d6b656", "rounded,filled", "box"),
    Tier.SPINE: ("#f8cecc", "#b85450", "rounded,filled", "box"),
    Tier.LEAF: ("#dae8fc", "#6c8ebf", "rounded,filled", "box"),
    Tier.SERVER: ("#d5e8d4", "#82b366", "filled", "box"),
    Tier.EXTERNAL: ("#e1d5e7", "#9673a6", "filled", "ellipse"),
}

_HEADER = (
    "digraph network_topology {\n"
    "\tgraph [rankdir=TB, nodesep=1.5, ranksep=2.5, splines=line, newrank=true];\n"
    '\tnode [shape=box, style=rounded, fontname="Arial", fontsize=12, height=0.4, width=1.2];\n'
    '\tedge [fontname="Arial", fontsize=8, dir=none];\n'
)


class DotEmitter:
    """Serialize a topology as a DOT digraph.

    Positions are left to Graphviz; tier order is pinned with rank
    constraints and invisible chain edges.
    """

    def emit(self, topology: Topology, layout: Layout, style: Style) -> str:
        layers = layout.layers
        top_row = layers.gateway + layers.external
        lines = [_HEADER]

        lines.extend(_legend(topology.links))

        for rank, nodes in (
            ("min", top_row),
            ("same", layers.spine),
            ("same", layers.leaf),
            ("max", layers.server),
        ):
            if nodes:
                members = "".join(f"{_quote(node.id)}; " for node in nodes)
                lines.append(f"\t{{rank={rank}; {members}}}\n")
        lines.append("\n")

        for tier, nodes in layers.tiers():
            fill, color, node_style, shape = NODE_STYLES[tier]
            for node in nodes:
                lines.append(
                    f"\t{_quote(node.id)} [label={_quote(node.label)}, shape={shape}, "
                    f'fillcolor="{fill}", style="{node_style}", color="{color}"];\n'
                )
        lines.append("\n")

        for pair in layers.leaf_pairs + layers.server_pairs:
            lines.extend(_pair_cluster(pair))

        for nodes in (top_row, layers.spine, layers.leaf, layers.server):
            lines.extend(_chain(nodes))
        lines.append("\n")

        spines = {node.id for node in layers.spine}
        leaves = {node.id for node in layers.leaf}
        lines.append("\tedge [style=solid, weight=1];\n")
        for group in collapse_fabric_links(topology.links, spines, leaves):
            lines.append(_edge(group))
        lines.append("}\n")
        return "".join(lines)


def collapse_fabric_links(
    links: Iterable[Link], spines: set[str], leaves: set[str]
) -> list[list[Link]]:
    """Group same-direction spine-to-leaf fabric links; other links stay single."""

    groups: list[list[Link]] = []
    fabric: dict[tuple[str, str], list[Link]] = {}
    for link in links:
        if link.type == ConnectionType.FABRIC and link.source in spines and link.target in leaves:
            key = (link.source, link.target)
            if key in fabric:
                fabric[key].append(link)
                continue
            fabric[key] = [link]
            groups.append(fabric[key])
        else:
            groups.append([link])
    return groups


def _legend(links: Iterable[Link]) -> list[str]:
    categories = legend_categories(links)
    if not categories:
        return []
    lines = [
        "\n\tsubgraph cluster_legend {\n",
        '\t\tlabel="Connection Types";\n',
        '\t\tlabelloc="top";\n',
        "\t\tfontsize=12;\n",
        '\t\tstyle="rounded";\n',
        '\t\tcolor="#999999";\n',
        "\t\tlegend [shape=none, margin=0, label=<\n",
        '\t\t\t<TABLE BORDER="0" CELLBORDER="0" CELLSPACING="4" CELLPADDING="0">\n',
    ]
    for category in categories:
        color, line_style = EDGE_STYLES[category]
        sample = "- - - -" if line_style == "dashed" else "────"
        lines.extend(
            [
                "\t\t\t<TR>\n",
                f'\t\t\t<TD ALIGN="LEFT" VALIGN="MIDDLE"><FONT COLOR="{color}">{sample}</FONT></TD>\n',
                f'\t\t\t<TD ALIGN="LEFT">{LEGEND_LABELS[category]}</TD>\n',
                "\t\t\t</TR>\n",
            ]
        )
    lines.extend(["\t\t\t</TABLE>\n", "\t\t>];\n", "\t}\n"])
    return lines


def _pair_cluster(pair: RedundancyPair) -> list[str]:
    name = sanitize_id(f"cluster_{pair.kind.value}_{pair.first}_{pair.second}")
    return [
        f"\tsubgraph {name} {{\n",
        f'\t\tlabel="{pair.kind.value.upper()}";\n',
        '\t\tstyle="dashed";\n',
        '\t\tcolor="#999999";\n',
        f"\t\t{_quote(pair.first)}; {_quote(pair.second)};\n",
        "\t}\n",
    ]


def _chain(nodes: Sequence[Node]) -> list[str]:
    return [
        f"\t{_quote(first.id)} -> {_quote(second.id)} [style=invis, weight=100];\n"
        for first, second in zip(nodes, nodes[1:])
    ]


def _edge(group: list[Link]) -> str:
    link = group[0]
    color, line_style = EDGE_STYLES[link_category(link)]
    head = ", ".join(extract_port(item.target_port) for item in group if item.target_port)
    tail = ", ".join(extract_port(item.source_port) for item in group if item.source_port)
    attributes = [
        f'color="{color}"',
        f'style="{line_style}"',
        f"headlabel={_quote(head)}",
        f"taillabel={_quote(tail)}",
        "labeldistance=2",
        "labelangle=0",
    ]
    if len(group) > 1:
        attributes.append(f"penwidth={len(group) + 1}")
    return f"\t{_quote(link.source)} -> {_quote(link.target)} [{', '.join(attributes)}];\n"


def _quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'
