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
"""Link categories shown in diagram legends."""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from fab_diagram.models import ConnectionType, Link, MCLAGType


class LinkCategory(str, Enum):
    """Visual category of a link; one legend entry each."""

    FABRIC = "fabric"
    MCLAG_PEER = "mclag_peer"
    MCLAG_SESSION = "mclag_session"
    MCLAG_SERVER = "mclag_server"
    BUNDLED = "bundled"
    UNBUNDLED = "unbundled"
    ESLAG = "eslag"
    GATEWAY = "gateway"
    EXTERNAL = "external"


LEGEND_LABELS: dict[LinkCategory, str] = {
    LinkCategory.FABRIC: "Fabric Links",
    LinkCategory.MCLAG_PEER: "MCLAG Peer Links",
    LinkCategory.MCLAG_SESSION: "MCLAG Session Links",
    LinkCategory.MCLAG_SERVER: "MCLAG Server Links",
    LinkCategory.BUNDLED: "Bundled Server Links",
    LinkCategory.UNBUNDLED: "Unbundled Server Links",
    LinkCategory.ESLAG: "ESLAG Server Links",
    LinkCategory.GATEWAY: "Gateway Links",
    LinkCategory.EXTERNAL: "External Links",
}

_BY_TYPE: dict[ConnectionType, LinkCategory] = {
    ConnectionType.FABRIC: LinkCategory.FABRIC,
    ConnectionType.BUNDLED: LinkCategory.BUNDLED,
    ConnectionType.UNBUNDLED: LinkCategory.UNBUNDLED,
    ConnectionType.ESLAG: LinkCategory.ESLAG,
    ConnectionType.GATEWAY: LinkCategory.GATEWAY,
    ConnectionType.EXTERNAL: LinkCategory.EXTERNAL,
}

_BY_MCLAG_TYPE: dict[MCLAGType | None, LinkCategory] = {
    MCLAGType.PEER: LinkCategory.MCLAG_PEER,
    MCLAGType.SESSION: LinkCategory.MCLAG_SESSION,
    None: LinkCategory.MCLAG_SERVER,
}


def link_category(link: Link) -> LinkCategory:
    """Map a link to its legend category."""

    if link.type == ConnectionType.MCLAG:
        return _BY_MCLAG_TYPE[link.mclag_type]
    return _BY_TYPE[link.type]


def legend_categories(links: Iterable[Link]) -> list[LinkCategory]:
    """Return the categories present in ``links``, in legend order."""

    present = {link_category(link) for link in links}
    return [category for category in LinkCategory if category in present]
