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
"""Built-in draw.io themes."""

from __future__ import annotations

import html
from dataclasses import dataclass
from enum import Enum

from fab_diagram.errors import UnsupportedStyleError
from fab_diagram.legend import LinkCategory
from fab_diagram.models import Node, NodeType, Tier


class StyleType(str, Enum):
    DEFAULT = "default"
    CISCO = "cisco"
    HEDGEHOG = "hedgehog"


@dataclass(frozen=True)
class Style:
    """Immutable theme mapping every tier and link category to a style string."""

    name: StyleType
    node_styles: dict[Tier, str]
    link_styles: dict[LinkCategory, str]
    background: str = ""
    icon_labels: bool = False

    def node_style(self, tier: Tier) -> str:
        return self.node_styles[tier]

    def link_style(self, category: LinkCategory) -> str:
        return self.link_styles[category] + "fontSize=10;spacing=5;"


_EDGE = "endArrow=none;html=1;"

_SERVER_LINKS = {
    LinkCategory.BUNDLED: _EDGE + "strokeWidth=2;strokeColor=#82b366;",
    LinkCategory.UNBUNDLED: _EDGE + "strokeWidth=2;strokeColor=#666666;",
    LinkCategory.ESLAG: _EDGE + "strokeWidth=2;strokeColor=#d79b00;dashed=1;",
    LinkCategory.GATEWAY: _EDGE + "strokeWidth=2;strokeColor=#d6b656;",
    LinkCategory.EXTERNAL: _EDGE + "strokeWidth=2;strokeColor=#9673a6;dashed=1;",
}

_BLUE_MCLAG = {
    LinkCategory.MCLAG_PEER: _EDGE + "strokeWidth=2;strokeColor=#2f5597;dashed=1;",
    LinkCategory.MCLAG_SESSION: _EDGE + "strokeWidth=2;strokeColor=#4472c4;dashed=1;",
    LinkCategory.MCLAG_SERVER: _EDGE + "strokeWidth=2;strokeColor=#9cc1f7;dashed=1;",
}

_ICON_SWITCH = (
    "shape=mxgraph.cisco19.rect;prIcon=nexus_9300;html=1;"
    "fillColor={fill};strokeColor={stroke};strokeWidth=2;"
    "fontColor=#000000;fontSize=11;"
    "align=center;verticalLabelPosition=middle;verticalAlign=middle;"
)
_ICON_SERVER = (
    "shape=mxgraph.cisco19.rect;prIcon=ucs_c_series_server;html=1;"
    "fillColor={fill};strokeColor=#999999;strokeWidth=2;"
    "fontColor=#000000;fontSize=11;"
    "align=right;verticalAlign=bottom;spacingRight=8;spacingBottom=8;"
)
_ICON_GATEWAY = (
    "shape=mxgraph.cisco19.rect;prIcon=router;html=1;"
    "fillColor={fill};strokeColor={stroke};strokeWidth=2;"
    "fontColor=#000000;fontSize=11;"
    "align=center;verticalLabelPosition=middle;verticalAlign=middle;"
)
_CLOUD = "ellipse;shape=cloud;whiteSpace=wrap;html=1;fontSize=11;fillColor={fill};strokeColor={stroke};"

DEFAULT_STYLE = Style(
    name=StyleType.DEFAULT,
    node_styles={
        Tier.GATEWAY: "shape=rectangle;rounded=1;whiteSpace=wrap;html=1;fontSize=11;"
        "fillColor=#fff2cc;strokeColor=#d6b656;",
        Tier.SPINE: "shape=rectangle;rounded=1;whiteSpace=wrap;html=1;fontSize=11;"
        "fillColor=#f8cecc;strokeColor=#b85450;",
        Tier.LEAF: "shape=rectangle;rounded=1;whiteSpace=wrap;html=1;fontSize=11;"
        "fillColor=#dae8fc;strokeColor=#6c8ebf;",
        Tier.SERVER: "shape=rectangle;rounded=0;whiteSpace=wrap;html=1;fontSize=11;"
        "fillColor=#d5e8d4;strokeColor=#82b366;",
        Tier.EXTERNAL: _CLOUD.format(fill="#e1d5e7", stroke="#9673a6"),
    },
    link_styles={
        LinkCategory.FABRIC: _EDGE + "strokeWidth=3;strokeColor=#b85450;",
        **_BLUE_MCLAG,
        **_SERVER_LINKS,
    },
)

CISCO_STYLE = Style(
    name=StyleType.CISCO,
    node_styles={
        Tier.GATEWAY: _ICON_GATEWAY.format(fill="#ffffff", stroke="#00589C"),
        Tier.SPINE: _ICON_SWITCH.format(fill="#ffffff", stroke="#00589C"),
        Tier.LEAF: _ICON_SWITCH.format(fill="#ffffff", stroke="#00589C"),
        Tier.SERVER: _ICON_SERVER.format(fill="#ffffff"),
        Tier.EXTERNAL: _CLOUD.format(fill="#ffffff", stroke="#00589C"),
    },
    link_styles={
        LinkCategory.FABRIC: _EDGE + "strokeWidth=3;strokeColor=#00589C;",
        **_BLUE_MCLAG,
        **_SERVER_LINKS,
    },
    background="#ffffff",
    icon_labels=True,
)

_DARK_BROWN = "#5D4037"
_SAND_BROWN = "#D7B98E"

HEDGEHOG_STYLE = Style(
    name=StyleType.HEDGEHOG,
    node_styles={
        Tier.GATEWAY: _ICON_GATEWAY.format(fill="#FFFFFF", stroke=_SAND_BROWN),
        Tier.SPINE: _ICON_SWITCH.format(fill="#FFFFFF", stroke=_SAND_BROWN),
        Tier.LEAF: _ICON_SWITCH.format(fill="#FFFFFF", stroke=_SAND_BROWN),
        Tier.SERVER: _ICON_SERVER.format(fill="#FFFFFF"),
        Tier.EXTERNAL: _CLOUD.format(fill="#FFFFFF", stroke=_DARK_BROWN),
    },
    link_styles={
        LinkCategory.FABRIC: _EDGE + f"strokeWidth=3;strokeColor={_DARK_BROWN};",
        LinkCategory.MCLAG_PEER: _EDGE + "strokeWidth=2;strokeColor=#8D6E63;dashed=1;",
        LinkCategory.MCLAG_SESSION: _EDGE + "strokeWidth=2;strokeColor=#A1887F;dashed=1;",
        LinkCategory.MCLAG_SERVER: _EDGE + "strokeWidth=2;strokeColor=#BCAAA4;dashed=1;",
        **_SERVER_LINKS,
    },
    background="#FFFFFF",
    icon_labels=True,
)

STYLES: dict[StyleType, Style] = {
    StyleType.DEFAULT: DEFAULT_STYLE,
    StyleType.CISCO: CISCO_STYLE,
    StyleType.HEDGEHOG: HEDGEHOG_STYLE,
}


def parse_style(name: str | StyleType) -> StyleType:
    """Validate a style name.

    Raises:
        UnsupportedStyleError: The name is not a built-in theme
    """

    try:
        return StyleType(name)
    except ValueError as exc:
        choices = ", ".join(style.value for style in StyleType)
        raise UnsupportedStyleError(f"unsupported style {name!r} (choose from {choices})") from exc


def get_style(name: str | StyleType = StyleType.DEFAULT) -> Style:
    return STYLES[parse_style(name)]


def format_node_value(node: Node, style: Style) -> str:
    """Return the draw.io cell value of a node under ``style``.

    Icon themes put the switch name above the icon and the role below it.
    """

    name, _, role = node.label.partition("\n")
    if not role and node.role and node.label != node.role:
        role = node.role

    if style.icon_labels and node.type == NodeType.SWITCH:
        font = '<font style="color: rgb(0, 0, 0);">{}</font>'
        if role:
            return font.format(html.escape(name)) + "<br>" * 5 + font.format(html.escape(role))
        return font.format(html.escape(name))

    if role:
        return f"{html.escape(name)}<br>{html.escape(role)}"
    return html.escape(node.label)
