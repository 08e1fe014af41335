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
"""Shared sample fabrics."""

from __future__ import annotations

import pytest

from fab_diagram.extract import build_topology
from fab_diagram.models import Record, Topology

SPINES = ("spine-01", "spine-02")
LEAVES = ("leaf-01", "leaf-02", "leaf-03", "leaf-04")


def _switch(name: str, role: str) -> Record:
    return Record(kind="Switch", name=name, spec={"role": role})


def _fabric_link(spine: str, leaf: str, port: int) -> Record:
    return Record(
        kind="Connection",
        name=f"{spine}--fabric--{leaf}",
        spec={
            "fabric": {
                "links": [
                    {
                        "spine": {"port": f"{spine}/E1/{port}"},
                        "leaf": {"port": f"{leaf}/E1/{40 + int(spine[-1])}"},
                    }
                ]
            }
        },
    )


def build_fabric_records() -> list[Record]:
    """Two spines, four leaves, a gateway, an external and four servers."""

    records = [_switch(name, "spine") for name in SPINES]
    records.extend(_switch(name, "server-leaf") for name in LEAVES)
    records.append(Record(kind="Node", name="gw-01", spec={"roles": ["gateway"]}))
    records.append(Record(kind="External", name="ext-01", spec={"ipv4Namespace": "default"}))
    records.extend(
        Record(kind="Server", name=f"server-0{index}", spec={}) for index in range(1, 5)
    )

    for spine in SPINES:
        for port, leaf in enumerate(LEAVES, start=1):
            records.append(_fabric_link(spine, leaf, port))

    records.append(
        Record(
            kind="Connection",
            name="leaf-01--mclag-domain--leaf-02",
            spec={
                "mclagDomain": {
                    "peerLinks": [
                        {"switch1": {"port": "leaf-01/E1/1"}, "switch2": {"port": "leaf-02/E1/1"}},
                        {"switch1": {"port": "leaf-01/E1/2"}, "switch2": {"port": "leaf-02/E1/2"}},
                    ],
                    "sessionLinks": [
                        {"switch1": {"port": "leaf-01/E1/3"}, "switch2": {"port": "leaf-02/E1/3"}},
                    ],
                }
            },
        )
    )
    for server in ("server-01", "server-02"):
        port = server[-1]
        records.append(
            Record(
                kind="Connection",
                name=f"{server}--mclag--leaf-01--leaf-02",
                spec={
                    "mclag": {
                        "links": [
                            {
                                "server": {"port": f"{server}/enp2s1"},
                                "switch": {"port": f"leaf-01/E1/1{port}"},
                            },
                            {
                                "server": {"port": f"{server}/enp2s2"},
                                "switch": {"port": f"leaf-02/E1/1{port}"},
                            },
                        ]
                    }
                },
            )
        )
    records.append(
        Record(
            kind="Connection",
            name="server-03--unbundled--leaf-03",
            spec={
                "unbundled": {
                    "link": {
                        "server": {"port": "server-03/enp2s1"},
                        "switch": {"port": "leaf-03/E1/13"},
                    }
                }
            },
        )
    )
    records.append(
        Record(
            kind="Connection",
            name="server-04--bundled--leaf-04",
            spec={
                "bundled": {
                    "links": [
                        {"server": {"port": "server-04/enp2s1"}, "switch": {"port": "leaf-04/E1/14"}},
                        {"server": {"port": "server-04/enp2s2"}, "switch": {"port": "leaf-04/E1/15"}},
                    ]
                }
            },
        )
    )
    records.append(
        Record(
            kind="Connection",
            name="gw-01--gateway--spine-01",
            spec={
                "gateway": {
                    "links": [
                        {"gateway": {"port": "gw-01/enp2s1"}, "switch": {"port": "spine-01/E1/20"}}
                    ]
                }
            },
        )
    )
    records.append(
        Record(
            kind="Connection",
            name="leaf-04--external",
            spec={"external": {"link": {"switch": {"port": "leaf-04/E1/10"}}}},
        )
    )
    records.append(
        Record(
            kind="ExternalAttachment",
            name="leaf-04--ext-01",
            spec={"connection": "leaf-04--external", "external": "ext-01"},
        )
    )
    return records


@pytest.fixture
def fabric_records() -> list[Record]:
    return build_fabric_records()


@pytest.fixture
def fabric_topology(fabric_records: list[Record]) -> Topology:
    return build_topology(fabric_records)


@pytest.fixture
def eslag_records() -> list[Record]:
    """Two leaves with an ESLAG server pair and no MCLAG."""

    records = [
        Record(kind="Switch", name="leaf-01", spec={"role": "server-leaf"}),
        Record(kind="Switch", name="leaf-02", spec={"role": "server-leaf"}),
    ]
    for server in ("server-01", "server-02"):
        records.append(Record(kind="Server", name=server, spec={}))
        records.append(
            Record(
                kind="Connection",
                name=f"{server}--eslag--leaf-01--leaf-02",
                spec={
                    "eslag": {
                        "links": [
                            {
                                "server": {"port": f"{server}/enp2s1"},
                                "switch": {"port": f"leaf-01/E1/{server[-1]}"},
                            },
                            {
                                "server": {"port": f"{server}/enp2s2"},
                                "switch": {"port": f"leaf-02/E1/{server[-1]}"},
                            },
                        ]
                    }
                },
            )
        )
    return records


FABRIC_YAML = """\
apiVersion: wiring.githedgehog.com/v1beta1
kind: Switch
metadata:
  name: spine-01
spec:
  role: spine
---
apiVersion: wiring.githedgehog.com/v1beta1
kind: Switch
metadata:
  name: leaf-01
spec:
  role: server-leaf
  description: rack 1
---
apiVersion: wiring.githedgehog.com/v1beta1
kind: Server
metadata:
  name: server-01
spec: {}
---
apiVersion: wiring.githedgehog.com/v1beta1
kind: Connection
metadata:
  name: spine-01--fabric--leaf-01
spec:
  fabric:
    links:
      - spine:
          port: spine-01/E1/1
        leaf:
          port: leaf-01/E1/49
---
apiVersion: wiring.githedgehog.com/v1beta1
kind: Connection
metadata:
  name: server-01--unbundled--leaf-01
spec:
  unbundled:
    link:
      server:
        port: server-01/enp2s1
      switch:
        port: leaf-01/E1/1
"""


@pytest.fixture
def fabric_yaml() -> str:
    return FABRIC_YAML
