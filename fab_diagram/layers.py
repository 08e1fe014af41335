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
"""Tier classification, redundancy pairing and node ordering."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from fab_diagram.models import (
    SERVER_PREFIX,
    SWITCH_ROLE_SPINE,
    ConnectionType,
    LayeredNodes,
    Link,
    Node,
    NodeType,
    RedundancyPair,
    RedundancyType,
    ServerConnection,
    Topology,
)

_LOGGER = logging.getLogger(__name__)


def sort_nodes(topology: Topology) -> LayeredNodes:
    """Partition topology nodes into ordered tiers.

    The result depends only on node ids, declared properties and links, never
    on the order records were supplied in.
    """

    layers = LayeredNodes()
    linked = {link.source for link in topology.links} | {link.target for link in topology.links}

    for node in topology.nodes:
        if node.type == NodeType.SWITCH:
            if node.role == SWITCH_ROLE_SPINE:
                layers.spine.append(node)
            else:
                layers.leaf.append(node)
        elif node.type == NodeType.SERVER:
            layers.server.append(node)
        elif node.type == NodeType.GATEWAY:
            layers.gateway.append(node)
        elif node.type == NodeType.EXTERNAL and node.id in linked:
            layers.external.append(node)

    layers.spine.sort(key=_switch_sort_key)
    layers.leaf.sort(key=_switch_sort_key)
    layers.gateway.sort(key=lambda node: node.id)
    layers.external.sort(key=lambda node: node.id)

    leaf_ids = [node.id for node in layers.leaf]
    connections = find_server_connections(topology.links)
    assign_leaves(connections, leaf_ids)
    layers.server_connections = connections
    layers.server_pairs = server_pairs(connections)
    layers.leaf_pairs = find_leaf_pairs(topology.links, leaf_ids)

    order = order_servers(connections, leaf_ids)
    position = {server: index for index, server in enumerate(order)}
    layers.server.sort(key=lambda node: (position.get(node.id, len(order)), node.id))

    _LOGGER.debug(
        "Tiers: %s gateways, %s spines, %s leaves, %s servers, %s externals",
        len(layers.gateway),
        len(layers.spine),
        len(layers.leaf),
        len(layers.server),
        len(layers.external),
    )
    return layers


def find_server_connections(links: Iterable[Link]) -> dict[str, ServerConnection]:
    """Collect per-server leaf connection types and infer redundancy partners.

    Only links with a ``server-`` prefixed endpoint are considered. Two
    unpaired servers with identical leaf sets and identical sorted type lists
    per leaf are paired: MCLAG when any shared type is ``mclag``, else ESLAG
    when any is ``eslag``. A server is paired at most once.
    """

    connections: dict[str, ServerConnection] = {}
    for link in links:
        if link.source.startswith(SERVER_PREFIX):
            server, leaf = link.source, link.target
        elif link.target.startswith(SERVER_PREFIX):
            server, leaf = link.target, link.source
        else:
            continue
        connection = connections.setdefault(server, ServerConnection())
        connection.conn_types.setdefault(leaf, []).append(link.type)

    for connection in connections.values():
        for types in connection.conn_types.values():
            types.sort(key=lambda item: item.value)

    servers = sorted(connections)
    for index, first in enumerate(servers):
        conn1 = connections[first]
        if conn1.partner:
            continue
        for second in servers[index + 1 :]:
            conn2 = connections[second]
            if conn2.partner:
                continue
            pair_type = _pair_type(conn1, conn2)
            if pair_type is None:
                continue
            if pair_type == RedundancyType.MCLAG:
                conn1.mclag_pair, conn2.mclag_pair = second, first
            else:
                conn1.eslag_pair, conn2.eslag_pair = second, first
            break

    return {server: connections[server] for server in servers}


def assign_leaves(connections: dict[str, ServerConnection], leaf_order: Sequence[str]) -> None:
    """Pick the primary and secondary leaf of every server."""

    rank = {leaf: index for index, leaf in enumerate(leaf_order)}
    for connection in connections.values():
        leaves = sorted(connection.conn_types, key=lambda leaf: (rank.get(leaf, len(rank)), leaf))
        if not leaves:
            continue
        if len(leaves) == 1:
            connection.primary_leaf = leaves[0]
            continue

        primary = next(
            (leaf for leaf in leaves if ConnectionType.BUNDLED in connection.conn_types[leaf]),
            leaves[0],
        )
        connection.primary_leaf = primary
        # Only the first non-primary leaf is tracked.
        connection.secondary_leaf = next(leaf for leaf in leaves if leaf != primary)


def order_servers(connections: dict[str, ServerConnection], leaf_order: Sequence[str]) -> list[str]:
    """Return server ids grouped by primary leaf with partners kept adjacent."""

    by_leaf: dict[str, list[str]] = {}
    for server, connection in connections.items():
        if connection.primary_leaf:
            by_leaf.setdefault(connection.primary_leaf, []).append(server)

    half = len(leaf_order) // 2
    ordered: list[str] = []
    seen: set[str] = set()
    for index, leaf in enumerate(leaf_order):
        is_left = index < half
        group = sorted(
            by_leaf.get(leaf, []),
            key=lambda server: _server_group_key(server, connections, is_left),
        )
        for server in group:
            if server in seen:
                continue
            ordered.append(server)
            seen.add(server)
            partner = connections[server].partner
            if partner and partner not in seen:
                ordered.append(partner)
                seen.add(partner)
    return ordered


def server_pairs(connections: dict[str, ServerConnection]) -> list[RedundancyPair]:
    """Return each inferred server pair once, ordered by first member."""

    pairs: list[RedundancyPair] = []
    for server, connection in connections.items():
        partner = connection.partner
        if not partner or partner < server:
            continue
        kind = RedundancyType.MCLAG if connection.mclag_pair else RedundancyType.ESLAG
        pairs.append(RedundancyPair(kind=kind, first=server, second=partner))
    return pairs


def find_leaf_pairs(links: Iterable[Link], leaf_order: Sequence[str]) -> list[RedundancyPair]:
    """Infer leaf redundancy groups from MCLAG domain links and shared ESLAG servers."""

    leaf_set = set(leaf_order)
    rank = {leaf: index for index, leaf in enumerate(leaf_order)}
    mclag: set[tuple[str, str]] = set()
    eslag_leaves: dict[str, set[str]] = {}

    for link in links:
        if link.type == ConnectionType.MCLAG and link.source in leaf_set and link.target in leaf_set:
            if link.source != link.target:
                mclag.add(tuple(sorted((link.source, link.target))))
        elif link.type == ConnectionType.ESLAG:
            if link.source.startswith(SERVER_PREFIX) and link.target in leaf_set:
                eslag_leaves.setdefault(link.source, set()).add(link.target)
            elif link.target.startswith(SERVER_PREFIX) and link.source in leaf_set:
                eslag_leaves.setdefault(link.target, set()).add(link.source)

    eslag: set[tuple[str, str]] = set()
    for leaves in eslag_leaves.values():
        ordered = sorted(leaves, key=lambda leaf: rank[leaf])
        for index, first in enumerate(ordered):
            for second in ordered[index + 1 :]:
                eslag.add(tuple(sorted((first, second))))

    candidates = [(RedundancyType.MCLAG, pair) for pair in mclag]
    candidates.extend((RedundancyType.ESLAG, pair) for pair in eslag - mclag)
    candidates.sort(
        key=lambda item: (
            min(rank[item[1][0]], rank[item[1][1]]),
            max(rank[item[1][0]], rank[item[1][1]]),
            item[0] != RedundancyType.MCLAG,
        )
    )

    paired: set[str] = set()
    pairs: list[RedundancyPair] = []
    for kind, (first, second) in candidates:
        if first in paired or second in paired:
            continue
        paired.update((first, second))
        pairs.append(RedundancyPair(kind=kind, first=first, second=second))
    return pairs


def adjacent_pairs(nodes: Sequence[Node], pairs: Iterable[RedundancyPair]) -> list[RedundancyPair]:
    """Return the pairs whose members sit next to each other in ``nodes``."""

    position = {node.id: index for index, node in enumerate(nodes)}
    result: list[RedundancyPair] = []
    for pair in pairs:
        first = position.get(pair.first)
        second = position.get(pair.second)
        if first is None or second is None or abs(first - second) != 1:
            continue
        result.append(pair)
    return sorted(result, key=lambda pair: min(position[pair.first], position[pair.second]))


def _switch_sort_key(node: Node) -> tuple[int, str, str]:
    description = node.description or ""
    return (0 if description else 1, description, node.id)


def _pair_type(conn1: ServerConnection, conn2: ServerConnection) -> RedundancyType | None:
    if conn1.conn_types.keys() != conn2.conn_types.keys():
        return None
    pair_type: RedundancyType | None = None
    for leaf, types in conn1.conn_types.items():
        if types != conn2.conn_types[leaf]:
            return None
        if ConnectionType.MCLAG in types:
            pair_type = RedundancyType.MCLAG
        elif ConnectionType.ESLAG in types and pair_type is None:
            pair_type = RedundancyType.ESLAG
    return pair_type


def _server_group_key(
    server: str, connections: dict[str, ServerConnection], is_left: bool
) -> tuple[int, int, str, str]:
    """Sort key of a server inside its primary leaf group.

    Partners share the key of the lower id so they stay adjacent.
    """

    connection = connections[server]
    anchor = min(server, connection.partner) if connection.partner else server
    eslag = 1 if connection.eslag_pair else 0
    single_homed = not connection.multi_homed
    homing = 0 if single_homed == is_left else 1
    return (eslag, homing, anchor, server)
