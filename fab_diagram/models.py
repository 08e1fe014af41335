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
"""Data models for fab-diagram."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator

SERVER_PREFIX = "server-"
SWITCH_ROLE_SPINE = "spine"
NODE_ROLE_GATEWAY = "gateway"


class NodeType(str, Enum):
    """Kind of device a node represents."""

    SWITCH = "switch"
    SERVER = "server"
    GATEWAY = "gateway"
    EXTERNAL = "external"


class ConnectionType(str, Enum):
    """Connection type of a physical link."""

    FABRIC = "fabric"
    MCLAG = "mclag"
    BUNDLED = "bundled"
    UNBUNDLED = "unbundled"
    ESLAG = "eslag"
    GATEWAY = "gateway"
    EXTERNAL = "external"


class MCLAGType(str, Enum):
    """Sub-type of an MCLAG link between the two switches of a domain."""

    PEER = "peer"
    SESSION = "session"


class Tier(str, Enum):
    """Horizontal layer of the rendered diagram, top to bottom."""

    GATEWAY = "gateway"
    SPINE = "spine"
    LEAF = "leaf"
    SERVER = "server"
    EXTERNAL = "external"


class RedundancyType(str, Enum):
    """Dual-homing scheme inferred for a pair of nodes."""

    MCLAG = "mclag"
    ESLAG = "eslag"


@dataclass(frozen=True)
class Record:
    """Typed resource record as produced by a loader."""

    kind: str
    name: str
    spec: Any = None


@dataclass(frozen=True)
class Node:
    """Device in the topology."""

    id: str
    type: NodeType
    label: str
    properties: dict[str, str] = field(default_factory=dict, compare=False)
    description: str | None = None

    @property
    def role(self) -> str | None:
        return self.properties.get("role")


@dataclass(frozen=True)
class Link:
    """Physical link between two nodes.

    Ports are port-qualified names (``"<nodeID>/<portName>"``).
    """

    source: str
    target: str
    type: ConnectionType
    source_port: str = ""
    target_port: str = ""
    mclag_type: MCLAGType | None = None

    @property
    def dedup_key(self) -> tuple[str, str, str, str]:
        return (self.source, self.target, self.type.value, self.target_port)

    @property
    def sort_key(self) -> tuple[str, str, str, str, str, str]:
        return (
            self.source,
            self.target,
            self.type.value,
            self.source_port,
            self.target_port,
            self.mclag_type.value if self.mclag_type else "",
        )


@dataclass
class Topology:
    """Nodes and links passed between pipeline stages."""

    nodes: list[Node] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)


@dataclass(frozen=True)
class RedundancyPair:
    """Two nodes inferred to form an MCLAG or ESLAG redundancy group."""

    kind: RedundancyType
    first: str
    second: str


@dataclass
class ServerConnection:
    """Per-server working state used while pairing and ordering servers."""

    conn_types: dict[str, list[ConnectionType]] = field(default_factory=dict)
    primary_leaf: str = ""
    secondary_leaf: str = ""
    mclag_pair: str = ""
    eslag_pair: str = ""

    @property
    def partner(self) -> str:
        return self.mclag_pair or self.eslag_pair

    @property
    def multi_homed(self) -> bool:
        return bool(self.secondary_leaf)


@dataclass
class LayeredNodes:
    """Ordered tiers of a topology, recomputed for every render."""

    gateway: list[Node] = field(default_factory=list)
    spine: list[Node] = field(default_factory=list)
    leaf: list[Node] = field(default_factory=list)
    server: list[Node] = field(default_factory=list)
    external: list[Node] = field(default_factory=list)
    server_connections: dict[str, ServerConnection] = field(default_factory=dict)
    server_pairs: list[RedundancyPair] = field(default_factory=list)
    leaf_pairs: list[RedundancyPair] = field(default_factory=list)

    def tier(self, tier: Tier) -> list[Node]:
        return getattr(self, tier.value)

    def tiers(self) -> Iterator[tuple[Tier, list[Node]]]:
        for tier in Tier:
            yield tier, self.tier(tier)

    def all_nodes(self) -> list[Node]:
        return [node for _, nodes in self.tiers() for node in nodes]

    def tier_of(self) -> dict[str, Tier]:
        return {node.id: tier for tier, nodes in self.tiers() for node in nodes}
