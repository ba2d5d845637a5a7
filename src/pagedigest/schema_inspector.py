# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""JSON-LD inspection: implemented types, content-suggested opportunities, conflicts.

Each ``<script type="application/ld+json">`` block is parsed on its own; a
block that fails to parse is logged and skipped without affecting the rest.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from pagedigest.document import DocumentSnapshot
from pagedigest.errors import MalformedStructuredDataError
from pagedigest.patterns import DEFAULT_REGISTRY, PatternRegistry, SchemaTypeSpec

logger = logging.getLogger(__name__)

_LD_JSON_TYPE = "application/ld+json"


@dataclass(frozen=True, slots=True)
class SchemaRecord:
    """One parsed JSON-LD block and the types it declares."""

    data: Any
    types: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class SchemaOpportunity:
    type: str
    required_fields_present: frozenset[str]
    valuable_fields_present: frozenset[str]
    content_indicator_score: int
    implemented: bool


@dataclass(frozen=True, slots=True)
class SchemaConflict:
    types: tuple[str, str]
    message: str


@dataclass(frozen=True, slots=True)
class SchemaFindings:
    records: tuple[SchemaRecord, ...] = ()
    implemented_types: tuple[str, ...] = ()
    opportunities: tuple[SchemaOpportunity, ...] = ()
    conflicts: tuple[SchemaConflict, ...] = ()
    malformed_blocks: int = 0


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _type_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [v for v in value if isinstance(v, str)]
    return []


def _typed_objects(data: Any) -> Iterator[tuple[dict, list[str]]]:
    """Yield ``(object, declared types)`` for the block and its @graph / array members."""
    if isinstance(data, list):
        for member in data:
            if isinstance(member, dict):
                yield member, _type_list(member.get("@type"))
        return
    if not isinstance(data, dict):
        return
    if "@type" in data:
        yield data, _type_list(data["@type"])
        return
    graph = data.get("@graph")
    if isinstance(graph, list):
        for member in graph:
            if isinstance(member, dict):
                yield member, _type_list(member.get("@type"))


def declared_types(data: Any) -> tuple[str, ...]:
    """Distinct declared types of one block, first-seen order."""
    seen: dict[str, None] = {}
    for _, types in _typed_objects(data):
        for t in types:
            seen.setdefault(t, None)
    return tuple(seen)


def parse_structured_data(
    snapshot: DocumentSnapshot,
) -> tuple[list[SchemaRecord], list[MalformedStructuredDataError]]:
    """Parse every JSON-LD block.

    Returns:
        Tuple of (records in document order, errors for blocks that were skipped)
    """
    records: list[SchemaRecord] = []
    failures: list[MalformedStructuredDataError] = []
    scripts = [s for s in snapshot.xpath("//script[@type]") if s.get("type", "").strip().lower() == _LD_JSON_TYPE]
    for idx, script in enumerate(scripts):
        raw = script.text or ""
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, RecursionError) as e:
            err = MalformedStructuredDataError(f"JSON-LD block {idx} is malformed: {e}", block_index=idx)
            logger.warning("%s", err)
            failures.append(err)
            continue
        records.append(SchemaRecord(data=data, types=declared_types(data)))
    return records, failures


def implemented_types(records: Sequence[SchemaRecord]) -> tuple[str, ...]:
    """Ordered union of all record types, duplicates collapsed."""
    seen: dict[str, None] = {}
    for record in records:
        for t in record.types:
            seen.setdefault(t, None)
    return tuple(seen)


# ---------------------------------------------------------------------------
# Opportunities and conflicts
# ---------------------------------------------------------------------------


def indicator_score(type_spec: SchemaTypeSpec, body_text: str, markup: str) -> int:
    """Plain indicators (body or markup) + every implied match + local cues."""
    score = sum(1 for p in type_spec.indicators if p.found(body_text) or p.found(markup))
    score += sum(p.count(body_text) for p in type_spec.implied)
    score += sum(1 for p in type_spec.local if p.found(body_text))
    return score


def _fields_present(records: Sequence[SchemaRecord], schema_type: str) -> frozenset[str]:
    keys: set[str] = set()
    for record in records:
        for obj, types in _typed_objects(record.data):
            if schema_type in types:
                keys.update(k for k in obj if isinstance(k, str))
    return frozenset(keys)


def find_opportunities(
    records: Sequence[SchemaRecord],
    registry: PatternRegistry,
    body_text: str,
    markup: str,
) -> tuple[SchemaOpportunity, ...]:
    implemented = set(implemented_types(records))
    found: list[SchemaOpportunity] = []
    for schema_type, type_spec in registry.schema_types.items():
        score = indicator_score(type_spec, body_text, markup)
        if score <= 0:
            continue
        present = _fields_present(records, schema_type)
        found.append(
            SchemaOpportunity(
                type=schema_type,
                required_fields_present=present & frozenset(type_spec.required),
                valuable_fields_present=present & frozenset(type_spec.valuable),
                content_indicator_score=score,
                implemented=schema_type in implemented,
            )
        )
    return tuple(found)


def find_conflicts(types: Sequence[str], registry: PatternRegistry) -> tuple[SchemaConflict, ...]:
    """Listed pairs, in listed order, where both members are implemented."""
    present = set(types)
    return tuple(
        SchemaConflict(types=rule.types, message=rule.message)
        for rule in registry.schema_conflicts
        if all(t in present for t in rule.types)
    )


def inspect_schema(
    snapshot: DocumentSnapshot,
    registry: PatternRegistry = DEFAULT_REGISTRY,
    body_text: str | None = None,
) -> SchemaFindings:
    """Full schema inspection for one document.

    Args:
        snapshot: parsed document (read-only)
        registry: schema catalog and conflict table
        body_text: lower-cased body text; defaults to the snapshot's
    """
    if body_text is None:
        body_text = snapshot.body_text_lower
    records, failures = parse_structured_data(snapshot)
    types = implemented_types(records)
    return SchemaFindings(
        records=tuple(records),
        implemented_types=types,
        opportunities=find_opportunities(records, registry, body_text, snapshot.markup.lower()),
        conflicts=find_conflicts(types, registry),
        malformed_blocks=len(failures),
    )
