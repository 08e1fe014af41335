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
"""Tests for topology extraction."""

import random

from fab_diagram.extract import build_topology, deduplicate_links
from fab_diagram.models import ConnectionType, Link, MCLAGType, NodeType, Record, Topology


def _links_of(topology: Topology, conn_type: ConnectionType) -> list[Link]:
    return [link for link in topology.links if link.type == conn_type]


def test_build_topology_creates_nodes(fabric_topology: Topology) -> None:
    nodes = {node.id: node for node in fabric_topology.nodes}

    assert len(nodes) == 12
    assert nodes["spine-01"].type == NodeType.SWITCH
    assert nodes["spine-01"].label == "spine-01\nspine"
    assert nodes["spine-01"].role == "spine"
    assert nodes["gw-01"].type == NodeType.GATEWAY
    assert nodes["ext-01"].type == NodeType.EXTERNAL
    assert nodes["server-03"].label == "server-03"


def test_build_topology_extracts_every_connection_shape(fabric_topology: Topology) -> None:
    assert len(_links_of(fabric_topology, ConnectionType.FABRIC)) == 8
    assert len(_links_of(fabric_topology, ConnectionType.MCLAG)) == 7
    assert len(_links_of(fabric_topology, ConnectionType.UNBUNDLED)) == 1
    assert len(_links_of(fabric_topology, ConnectionType.BUNDLED)) == 2
    assert len(_links_of(fabric_topology, ConnectionType.GATEWAY)) == 1
    assert len(_links_of(fabric_topology, ConnectionType.EXTERNAL)) == 1
    assert len(fabric_topology.links) == 20


def test_fabric_link_keeps_qualified_ports(fabric_topology: Topology) -> None:
    link = next(
        link
        for link in _links_of(fabric_topology, ConnectionType.FABRIC)
        if link.source == "spine-01" and link.target == "leaf-02"
    )

    assert link.source_port == "spine-01/E1/2"
    assert link.target_port == "leaf-02/E1/41"


def test_mclag_domain_links_carry_sub_type(fabric_topology: Topology) -> None:
    domain = [
        link
        for link in _links_of(fabric_topology, ConnectionType.MCLAG)
        if link.mclag_type is not None
    ]

    assert sorted(link.mclag_type.value for link in domain) == ["peer", "peer", "session"]
    assert all((link.source, link.target) == ("leaf-01", "leaf-02") for link in domain)


def test_gateway_link_points_from_gateway(fabric_topology: Topology) -> None:
    (link,) = _links_of(fabric_topology, ConnectionType.GATEWAY)

    assert (link.source, link.target) == ("gw-01", "spine-01")


def test_external_link_uses_attachment(fabric_topology: Topology) -> None:
    (link,) = _links_of(fabric_topology, ConnectionType.EXTERNAL)

    assert link.source == "ext-01"
    assert link.target == "leaf-04"
    assert link.target_port == "leaf-04/E1/10"


def test_external_link_without_attachment_picks_smallest_external() -> None:
    records = [
        Record(kind="Switch", name="leaf-01", spec={"role": "border-leaf"}),
        Record(kind="External", name="ext-b", spec={}),
        Record(kind="External", name="ext-a", spec={}),
        Record(
            kind="Connection",
            name="leaf-01--external",
            spec={"external": {"link": {"switch": {"port": "leaf-01/E1/5"}}}},
        ),
    ]

    topology = build_topology(records)

    assert topology.links == [
        Link(
            source="ext-a",
            target="leaf-01",
            type=ConnectionType.EXTERNAL,
            target_port="leaf-01/E1/5",
        )
    ]


def test_external_link_dropped_without_any_external() -> None:
    records = [
        Record(kind="Switch", name="leaf-01", spec={"role": "border-leaf"}),
        Record(
            kind="Connection",
            name="leaf-01--external",
            spec={"external": {"link": {"switch": {"port": "leaf-01/E1/5"}}}},
        ),
    ]

    assert build_topology(records).links == []


def test_several_attachments_share_one_external_link() -> None:
    records = [
        Record(kind="Switch", name="leaf-01", spec={"role": "border-leaf"}),
        Record(kind="External", name="ext-a", spec={}),
        Record(kind="External", name="ext-b", spec={}),
        Record(
            kind="Connection",
            name="leaf-01--external",
            spec={"external": {"link": {"switch": {"port": "leaf-01/E1/5"}}}},
        ),
        Record(
            kind="ExternalAttachment",
            name="z-attach",
            spec={"connection": "leaf-01--external", "external": "ext-a"},
        ),
        Record(
            kind="ExternalAttachment",
            name="a-attach",
            spec={"connection": "leaf-01--external", "external": "ext-b"},
        ),
    ]

    links = build_topology(records).links

    assert [(link.source, link.target) for link in links] == [("ext-b", "leaf-01")]


def test_duplicate_names_resolve_independently_of_record_order() -> None:
    records = [
        Record(kind="Server", name="dup", spec={}),
        Record(kind="Switch", name="dup", spec={"role": "spine"}),
        Record(kind="Switch", name="dup", spec={"role": "server-leaf"}),
    ]

    for ordering in (records, records[::-1], records[1:] + records[:1]):
        (node,) = build_topology(ordering).nodes
        assert node.type == NodeType.SWITCH
        assert node.role == "server-leaf"


def test_duplicate_connection_names_pick_one_external_port() -> None:
    def connection(port: str) -> Record:
        return Record(
            kind="Connection",
            name="leaf-01--external",
            spec={"external": {"link": {"switch": {"port": port}}}},
        )

    records = [
        Record(kind="Switch", name="leaf-01", spec={"role": "border-leaf"}),
        Record(kind="External", name="ext-01", spec={}),
        connection("leaf-01/E1/20"),
        connection("leaf-01/E1/10"),
    ]

    for ordering in (records, records[::-1]):
        (link,) = build_topology(ordering).links
        assert link.target_port == "leaf-01/E1/10"


def test_non_gateway_node_is_dropped() -> None:
    records = [Record(kind="Node", name="ctrl-01", spec={"roles": ["control"]})]

    assert build_topology(records).nodes == []


def test_malformed_records_are_skipped() -> None:
    records = [
        Record(kind="Switch", name="", spec={"role": "spine"}),
        Record(kind="Switch", name="leaf-01", spec="not-a-map"),
        Record(kind="Switch", name="leaf-02", spec={"role": "server-leaf"}),
        Record(kind="Server", name="server-01", spec={}),
        Record(kind="Connection", name="broken", spec=["not", "a", "map"]),
        Record(
            kind="Connection",
            name="partial",
            spec={
                "unbundled": {"link": {"server": {"port": "server-01/enp2s1"}}},
                "bundled": {"links": ["junk", {"server": {}, "switch": {"port": "leaf-02/E1/1"}}]},
            },
        ),
    ]

    topology = build_topology(records)

    assert [node.id for node in topology.nodes] == ["leaf-02", "server-01"]
    assert topology.links == []


def test_links_to_unknown_nodes_are_dropped() -> None:
    records = [
        Record(kind="Switch", name="leaf-01", spec={"role": "server-leaf"}),
        Record(
            kind="Connection",
            name="server-09--unbundled--leaf-01",
            spec={
                "unbundled": {
                    "link": {
                        "server": {"port": "server-09/enp2s1"},
                        "switch": {"port": "leaf-01/E1/1"},
                    }
                }
            },
        ),
    ]

    assert build_topology(records).links == []


def test_duplicate_connection_is_idempotent(fabric_records: list[Record]) -> None:
    once = build_topology(fabric_records)
    connections = [record for record in fabric_records if record.kind == "Connection"]

    twice = build_topology(fabric_records + connections)

    assert twice.links == once.links


def test_deduplicate_links_keys_on_target_port() -> None:
    first = Link("server-01", "leaf-01", ConnectionType.BUNDLED, "server-01/a", "leaf-01/E1/1")
    same_target = Link("server-01", "leaf-01", ConnectionType.BUNDLED, "server-01/b", "leaf-01/E1/1")
    other_target = Link("server-01", "leaf-01", ConnectionType.BUNDLED, "server-01/a", "leaf-01/E1/2")

    links = deduplicate_links([other_target, same_target, first])

    assert links == [first, other_target]


def test_extraction_ignores_record_order(fabric_records: list[Record]) -> None:
    expected = build_topology(fabric_records)

    for seed in range(5):
        shuffled = list(fabric_records)
        random.Random(seed).shuffle(shuffled)
        assert build_topology(shuffled) == expected


def test_peer_link_sub_type_is_preserved_on_dedup() -> None:
    records = [
        Record(kind="Switch", name="leaf-01", spec={"role": "server-leaf"}),
        Record(kind="Switch", name="leaf-02", spec={"role": "server-leaf"}),
        Record(
            kind="Connection",
            name="domain",
            spec={
                "mclagDomain": {
                    "peerLinks": [
                        {"switch1": {"port": "leaf-01/E1/1"}, "switch2": {"port": "leaf-02/E1/1"}}
                    ]
                }
            },
        ),
    ]

    (link,) = build_topology(records).links

    assert link.mclag_type == MCLAGType.PEER
