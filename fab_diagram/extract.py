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
"""Topology extraction from wiring records."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from fab_diagram.models import (
    NODE_ROLE_GATEWAY,
    ConnectionType,
    Link,
    MCLAGType,
    Node,
    NodeType,
    Record,
    Topology,
)
from fab_diagram.normalize import port_device

_LOGGER = logging.getLogger(__name__)

KIND_SWITCH = "Switch"
KIND_SERVER = "Server"
KIND_NODE = "Node"
KIND_EXTERNAL = "External"
KIND_CONNECTION = "Connection"
KIND_EXTERNAL_ATTACHMENT = "ExternalAttachment"

# A name belongs to the first kind in this order that declares it.
_NODE_KIND_ORDER = (KIND_NODE, KIND_SWITCH, KIND_SERVER, KIND_EXTERNAL)

_SERVER_LINK_TYPES = (
    ("mclag", ConnectionType.MCLAG),
    ("bundled", ConnectionType.BUNDLED),
    ("eslag", ConnectionType.ESLAG),
)


def build_topology(records: Iterable[Record]) -> Topology:
    """Build a topology from typed wiring records.

    Malformed records and links with unknown endpoints are dropped silently.
    """

    records = list(records)
    nodes = _collect_nodes(records)

    links: list[Link] = []
    switch_ports: dict[str, str] = {}
    attachments: list[tuple[str, str, str]] = []
    for record in records:
        if record.kind not in (KIND_CONNECTION, KIND_EXTERNAL_ATTACHMENT):
            continue
        if not record.name or not isinstance(record.spec, dict):
            _LOGGER.debug("Skipping malformed %s record %r", record.kind, record.name)
            continue
        if record.kind == KIND_CONNECTION:
            links.extend(connection_links(record.spec))
            port = _external_switch_port(record.spec)
            if port:
                previous = switch_ports.get(record.name)
                switch_ports[record.name] = min(port, previous) if previous else port
        else:
            connection = record.spec.get("connection")
            external = record.spec.get("external")
            if isinstance(connection, str) and isinstance(external, str):
                attachments.append((record.name, connection, external))

    external_names = sorted(node.id for node in nodes.values() if node.type == NodeType.EXTERNAL)
    links.extend(_external_links(switch_ports, attachments, external_names))

    resolved = [link for link in links if link.source in nodes and link.target in nodes]
    if len(resolved) != len(links):
        _LOGGER.debug("Dropped %s links with unresolved endpoints", len(links) - len(resolved))

    topology = Topology(
        nodes=sorted(nodes.values(), key=lambda node: node.id),
        links=deduplicate_links(resolved),
    )
    _LOGGER.debug(
        "Extracted %s nodes and %s links from %s records",
        len(topology.nodes),
        len(topology.links),
        len(records),
    )
    return topology


def deduplicate_links(links: Iterable[Link]) -> list[Link]:
    """Sort links and drop repeats of the same (source, target, type, target port)."""

    seen: set[tuple[str, str, str, str]] = set()
    deduped: list[Link] = []
    for link in sorted(links, key=lambda item: item.sort_key):
        if link.dedup_key in seen:
            continue
        seen.add(link.dedup_key)
        deduped.append(link)
    return deduped


def connection_links(spec: dict[str, Any]) -> list[Link]:
    """Expand a Connection spec into one link per physical cable."""

    links: list[Link] = []
    for entry in _entries(spec.get("fabric"), "links"):
        links.extend(_make_link(entry, "spine", "leaf", ConnectionType.FABRIC))
    for key, conn_type in _SERVER_LINK_TYPES:
        for entry in _entries(spec.get(key), "links"):
            links.extend(_make_link(entry, "server", "switch", conn_type))
    for entry in _entries(spec.get("unbundled"), "link"):
        links.extend(_make_link(entry, "server", "switch", ConnectionType.UNBUNDLED))

    domain = spec.get("mclagDomain")
    for entry in _entries(domain, "peerLinks"):
        links.extend(
            _make_link(entry, "switch1", "switch2", ConnectionType.MCLAG, MCLAGType.PEER)
        )
    for entry in _entries(domain, "sessionLinks"):
        links.extend(
            _make_link(entry, "switch1", "switch2", ConnectionType.MCLAG, MCLAGType.SESSION)
        )

    for entry in _entries(spec.get("gateway"), "links"):
        links.extend(_make_link(entry, "gateway", "switch", ConnectionType.GATEWAY))
    return links


def _collect_nodes(records: list[Record]) -> dict[str, Node]:
    """Create one node per device record name.

    Earlier kinds in the kind order win a name. Duplicates of one kind keep
    the node with the smallest content, whatever the record order.
    """

    nodes: dict[str, Node] = {}
    for kind in _NODE_KIND_ORDER:
        candidates: dict[str, Node] = {}
        for record in records:
            if record.kind != kind:
                continue
            node = _node_from_record(record)
            if node is None:
                continue
            if node.id in nodes:
                _LOGGER.debug("Duplicate node name, skipping %s %s", record.kind, record.name)
                continue
            current = candidates.get(node.id)
            if current is not None:
                _LOGGER.debug("Duplicate %s record %s", record.kind, record.name)
                if _node_key(current) <= _node_key(node):
                    continue
            candidates[node.id] = node
        nodes.update(candidates)
    return nodes


def _node_key(node: Node) -> tuple[str, str, list[tuple[str, str]]]:
    return (node.label, node.description or "", sorted(node.properties.items()))


def _node_from_record(record: Record) -> Node | None:
    """Convert a device record into a node, or None when it is not drawable."""

    if not record.name:
        return None
    spec = record.spec if isinstance(record.spec, dict) else {}
    if record.spec is not None and not isinstance(record.spec, dict):
        _LOGGER.debug("Skipping %s %s with non-mapping spec", record.kind, record.name)
        return None

    if record.kind == KIND_SWITCH:
        role = spec.get("role")
        role = role if isinstance(role, str) else ""
        description = spec.get("description")
        description = description if isinstance(description, str) and description else None
        properties = {"role": role}
        if description:
            properties["description"] = description
        label = f"{record.name}\n{role}" if role else record.name
        return Node(
            id=record.name,
            type=NodeType.SWITCH,
            label=label,
            properties=properties,
            description=description,
        )
    if record.kind == KIND_SERVER:
        return Node(id=record.name, type=NodeType.SERVER, label=record.name)
    if record.kind == KIND_EXTERNAL:
        return Node(id=record.name, type=NodeType.EXTERNAL, label=record.name)
    if record.kind == KIND_NODE:
        roles = spec.get("roles")
        if not isinstance(roles, list) or NODE_ROLE_GATEWAY not in roles:
            _LOGGER.debug("Node %s is not a gateway, skipping", record.name)
            return None
        return Node(id=record.name, type=NodeType.GATEWAY, label=record.name)
    return None


def _entries(section: Any, key: str) -> list[dict[str, Any]]:
    """Return link entries under a connection section, single or list form."""

    if not isinstance(section, dict):
        return []
    value = section.get(key)
    if isinstance(value, dict):
        return [value]
    if isinstance(value, list):
        return [entry for entry in value if isinstance(entry, dict)]
    return []


def _endpoint_port(entry: dict[str, Any], key: str) -> str | None:
    """Read the port-qualified name of one side of a link entry."""

    endpoint = entry.get(key)
    if not isinstance(endpoint, dict):
        return None
    port = endpoint.get("port")
    if not isinstance(port, str) or not port:
        return None
    return port


def _make_link(
    entry: dict[str, Any],
    source_key: str,
    target_key: str,
    conn_type: ConnectionType,
    mclag_type: MCLAGType | None = None,
) -> list[Link]:
    """Build a link from a link entry, or nothing when a port is missing."""

    source_port = _endpoint_port(entry, source_key)
    target_port = _endpoint_port(entry, target_key)
    if source_port is None or target_port is None:
        return []
    return [
        Link(
            source=port_device(source_port),
            target=port_device(target_port),
            type=conn_type,
            source_port=source_port,
            target_port=target_port,
            mclag_type=mclag_type,
        )
    ]


def _external_switch_port(spec: dict[str, Any]) -> str | None:
    """Read external.link.switch.port from a Connection spec."""

    external = spec.get("external")
    if not isinstance(external, dict):
        return None
    link = external.get("link")
    if not isinstance(link, dict):
        return None
    return _endpoint_port(link, "switch")


def _external_links(
    switch_ports: dict[str, str],
    attachments: list[tuple[str, str, str]],
    external_names: list[str],
) -> list[Link]:
    """Synthesize one external link per external connection.

    Only the first attachment of a connection is drawn, so several logical
    attachments over one cable show as a single edge.
    """

    externals_by_connection: dict[str, list[str]] = {}
    for _, connection, external in sorted(attachments):
        externals_by_connection.setdefault(connection, []).append(external)

    links: list[Link] = []
    for connection in sorted(switch_ports):
        candidates = externals_by_connection.get(connection) or external_names
        if not candidates:
            _LOGGER.debug("No external for connection %s, skipping", connection)
            continue
        switch_port = switch_ports[connection]
        links.append(
            Link(
                source=candidates[0],
                target=port_device(switch_port),
                type=ConnectionType.EXTERNAL,
                source_port="",
                target_port=switch_port,
            )
        )
    return links
