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
"""Tests for the DOT emitter."""

import re

from fab_diagram.graphviz import DotEmitter, collapse_fabric_links
from fab_diagram.layout import compute_layout
from fab_diagram.models import ConnectionType, Link, Node, NodeType, Topology
from fab_diagram.styles import DEFAULT_STYLE

SPINES = ["spine-01", "spine-02"]
LEAVES = ["leaf-01", "leaf-02", "leaf-03", "leaf-04"]


def _render(topology: Topology) -> str:
    return DotEmitter().emit(topology, compute_layout(topology), DEFAULT_STYLE)


def _spine_leaf_topology() -> Topology:
    nodes = [Node(name, NodeType.SWITCH, name, {"role": "spine"}) for name in SPINES]
    nodes.extend(Node(name, NodeType.SWITCH, name, {"role": "server-leaf"}) for name in LEAVES)
    links = [
        Link(spine, leaf, ConnectionType.FABRIC, f"{spine}/E1/{index}", f"{leaf}/E1/4{spine[-1]}")
        for spine in SPINES
        for index, leaf in enumerate(LEAVES, start=1)
    ]
    return Topology(nodes=nodes, links=links)


def test_spine_leaf_fabric() -> None:
    text = _render(_spine_leaf_topology())

    fabric_edges = re.findall(r'"spine-0\d" -> "leaf-0\d" \[color=', text)

    assert text.startswith("digraph network_topology {\n")
    assert text.endswith("}\n")
    assert len(fabric_edges) == 8
    assert '\t{rank=same; "leaf-01"; "leaf-02"; "leaf-03"; "leaf-04"; }\n' in text
    assert '\t{rank=same; "spine-01"; "spine-02"; }\n' in text
    assert "rank=max" not in text


def test_tier_chain_keeps_order() -> None:
    text = _render(_spine_leaf_topology())

    assert '\t"leaf-01" -> "leaf-02" [style=invis, weight=100];\n' in text
    assert '\t"spine-01" -> "spine-02" [style=invis, weight=100];\n' in text


def test_parallel_fabric_links_collapse() -> None:
    links = [
        Link("spine-01", "leaf-01", ConnectionType.FABRIC, "spine-01/E1/1", "leaf-01/E1/41"),
        Link("spine-01", "leaf-01", ConnectionType.FABRIC, "spine-01/E1/2", "leaf-01/E1/42"),
        Link("leaf-01", "leaf-02", ConnectionType.MCLAG, "leaf-01/E1/1", "leaf-02/E1/1"),
        Link("leaf-01", "leaf-02", ConnectionType.MCLAG, "leaf-01/E1/2", "leaf-02/E1/2"),
    ]

    groups = collapse_fabric_links(links, {"spine-01"}, {"leaf-01", "leaf-02"})

    assert [len(group) for group in groups] == [2, 1, 1]


def test_collapsed_edge_joins_port_labels() -> None:
    topology = _spine_leaf_topology()
    topology.links.append(
        Link("spine-01", "leaf-01", ConnectionType.FABRIC, "spine-01/E1/9", "leaf-01/E1/49")
    )

    text = _render(topology)

    edge = next(line for line in text.splitlines() if line.startswith('\t"spine-01" -> "leaf-01" [color='))
    assert 'headlabel="E1/41, E1/49"' in edge
    assert 'taillabel="E1/1, E1/9"' in edge
    assert "penwidth=3" in edge


def test_pairs_become_clusters(fabric_topology: Topology) -> None:
    text = _render(fabric_topology)

    assert "\tsubgraph cluster_mclag_server_01_server_02 {\n" in text
    assert "\tsubgraph cluster_mclag_leaf_01_leaf_02 {\n" in text


def test_top_row_and_servers_use_min_and_max_rank(fabric_topology: Topology) -> None:
    text = _render(fabric_topology)

    assert '\t{rank=min; "gw-01"; "ext-01"; }\n' in text
    assert (
        '\t{rank=max; "server-01"; "server-02"; "server-03"; "server-04"; }\n' in text
    )


def test_legend_lists_present_categories(fabric_topology: Topology) -> None:
    text = _render(fabric_topology)

    assert "subgraph cluster_legend" in text
    assert "Fabric Links" in text
    assert "External Links" in text
    assert "ESLAG" not in text


def test_labels_are_quoted() -> None:
    node = Node("spine-01", NodeType.SWITCH, 'spine-01\n"core"', {"role": "spine"})

    text = _render(Topology(nodes=[node], links=[]))

    assert '"spine-01" [label="spine-01\\n\\"core\\""' in text


def test_empty_topology() -> None:
    text = _render(Topology())

    assert text.startswith("digraph network_topology {")
    assert "cluster_legend" not in text
    assert "{rank=" not in text
