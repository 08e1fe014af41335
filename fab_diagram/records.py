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
"""Wiring record stream parsing."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Sequence

import yaml

from fab_diagram.errors import RecordParseError
from fab_diagram.models import Record

_LOGGER = logging.getLogger(__name__)

KIND_LIST = "List"
KIND_ALIASES = {"FabNode": "Node"}
_YAML_SUFFIXES = (".yaml", ".yml")


def parse_records(text: str, source: str = "<string>") -> list[Record]:
    """Parse a multi-document YAML stream into records.

    Args:
        text: YAML text, one resource per document
        source: Name of the stream used in error messages

    Returns:
        Records in stream order. Records with an empty name or an unexpected
        spec are kept; the extractor decides what to skip.

    Raises:
        RecordParseError: The stream is not valid YAML or a document is not a mapping
    """

    try:
        documents = list(yaml.safe_load_all(text))
    except yaml.YAMLError as exc:
        raise RecordParseError(f"{source}: invalid YAML: {exc}") from exc

    records: list[Record] = []
    for index, document in enumerate(documents, start=1):
        if document is None:
            continue
        if not isinstance(document, dict):
            raise RecordParseError(f"{source}: document {index} is not a mapping")
        records.extend(_records_from_document(document, source, index))

    _LOGGER.debug("Parsed %s records from %s", len(records), source)
    return records


def load_records(paths: Iterable[str | Path]) -> list[Record]:
    """Load records from YAML files and directories of YAML files."""

    records: list[Record] = []
    for path in _expand_paths(paths):
        text = path.read_text(encoding="utf-8")
        records.extend(parse_records(text, str(path)))
    return records


def _expand_paths(paths: Iterable[str | Path]) -> list[Path]:
    """Expand directories into their YAML files in sorted order."""

    expanded: list[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            expanded.extend(
                sorted(
                    child
                    for child in path.iterdir()
                    if child.is_file() and child.suffix in _YAML_SUFFIXES
                )
            )
        else:
            expanded.append(path)
    return expanded


def _records_from_document(document: dict[str, Any], source: str, index: int) -> list[Record]:
    """Convert a YAML document into records, expanding List documents."""

    kind = document.get("kind")
    if kind == KIND_LIST:
        items = document.get("items") or []
        if not isinstance(items, Sequence) or isinstance(items, str):
            raise RecordParseError(f"{source}: document {index} has invalid items")
        records: list[Record] = []
        for item in items:
            if not isinstance(item, dict):
                raise RecordParseError(f"{source}: document {index} has a non-mapping item")
            records.append(_to_record(item))
        return records
    return [_to_record(document)]


def _to_record(document: dict[str, Any]) -> Record:
    """Build a record from a single resource mapping."""

    kind = document.get("kind")
    kind = kind if isinstance(kind, str) else ""
    kind = KIND_ALIASES.get(kind, kind)

    metadata = document.get("metadata")
    name = metadata.get("name") if isinstance(metadata, dict) else None
    name = name.strip() if isinstance(name, str) else ""

    return Record(kind=kind, name=name, spec=document.get("spec"))
