# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Passage extraction: one fixed-priority walk over the document.

Order is priority-encoded, not content-driven:

  title → meta description → h1 (≥3 words) → h2 + section body → paragraphs
  → lists → FAQ regions → h3 → structured-data name/description

Within a category, document order is preserved. Because categories are
appended in priority order, cutting the tail at ``max_passages`` drops the
least valuable passages first.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import lxml.html

from pagedigest import Passage, PassageKind
from pagedigest.config import DigestConfig
from pagedigest.document import DocumentSnapshot, count_words, normalize_ws, tag_of, text_of
from pagedigest.patterns import DEFAULT_REGISTRY, PatternRegistry
from pagedigest.sanitizer import clean_text

MAX_PARAGRAPH_PASSAGES = 10
PRIMARY_PARAGRAPHS = 3
MAX_LISTS = 5
MIN_H1_WORDS = 3
MIN_LIST_ITEM_CHARS = 20
LIST_ITEM_DELIMITER = " | "

_SECTION_BOUNDARY_TAGS = frozenset({"h1", "h2"})
_SECTION_CONTENT_TAGS = frozenset({"p", "ul", "ol"})


class _PassageBuffer:
    """Collects passages, dropping empty text and enforcing the length cap."""

    __slots__ = ("_items", "_max_len")

    def __init__(self, max_len: int) -> None:
        self._items: list[Passage] = []
        self._max_len = max_len

    def add(self, kind: PassageKind, text: str, position: str) -> bool:
        text = clean_text(text, self._max_len)
        if not text:
            return False
        self._items.append(Passage(kind=kind, text=text, position=position))
        return True

    def result(self, limit: int) -> tuple[Passage, ...]:
        return tuple(self._items[:limit])


def _section_text(heading: lxml.html.HtmlElement) -> str:
    """Text of p/ul/ol siblings following *heading* up to the next h1/h2."""
    parts: list[str] = []
    for sibling in heading.itersiblings():
        tag = tag_of(sibling)
        if tag in _SECTION_BOUNDARY_TAGS:
            break
        if tag in _SECTION_CONTENT_TAGS:
            parts.append(text_of(sibling))
    return normalize_ws(" ".join(parts))


def _list_text(list_el: lxml.html.HtmlElement) -> str:
    items = (normalize_ws(text_of(child)) for child in list_el if isinstance(child.tag, str))
    return LIST_ITEM_DELIMITER.join(t for t in items if len(t) >= MIN_LIST_ITEM_CHARS)


def qualifying_h1s(snapshot: DocumentSnapshot) -> list[tuple[int, str]]:
    """(index, text) of h1 headings long enough to become passages."""
    found = []
    for idx, h1 in enumerate(snapshot.elements("h1")):
        text = normalize_ws(text_of(h1))
        if count_words(text) >= MIN_H1_WORDS:
            found.append((idx, text))
    return found


def passage_lists(snapshot: DocumentSnapshot) -> list[tuple[int, str]]:
    """(index, joined items) of the leading lists that yield a list passage."""
    found = []
    for idx, list_el in enumerate(snapshot.elements("ul", "ol")[:MAX_LISTS]):
        text = _list_text(list_el)
        if text:
            found.append((idx, text))
    return found


def _schema_texts(schema_records: Sequence) -> Iterable[tuple[PassageKind, str, str]]:
    for j, record in enumerate(schema_records):
        data = record.data
        if not isinstance(data, dict):
            continue
        name = data.get("name") or data.get("headline")
        if isinstance(name, str):
            yield PassageKind.SCHEMA_NAME, name, f"schema_{j}"
        description = data.get("description")
        if isinstance(description, str):
            yield PassageKind.SCHEMA_DESCRIPTION, description, f"schema_{j}"


def extract_passages(
    snapshot: DocumentSnapshot,
    config: DigestConfig,
    schema_records: Sequence = (),
    registry: PatternRegistry = DEFAULT_REGISTRY,
) -> tuple[Passage, ...]:
    """Extract the ordered, weighted passage sequence (≤ ``config.max_passages``).

    Args:
        snapshot: parsed document (read-only)
        config: word minimum, chunk length and passage cap
        schema_records: parsed JSON-LD records for schema name/description passages
        registry: supplies FAQ region XPaths and the question heuristic
    """
    buf = _PassageBuffer(config.max_chunk_length)

    # 1-2. Header
    buf.add(PassageKind.TITLE, snapshot.title, "header")
    buf.add(PassageKind.META_DESCRIPTION, snapshot.meta_description, "header")

    # 3. h1 with at least three words
    for idx, text in qualifying_h1s(snapshot):
        buf.add(PassageKind.H1, text, f"h1_{idx}")

    # 4. h2 + section body
    for idx, h2 in enumerate(snapshot.elements("h2")):
        if not buf.add(PassageKind.H2, text_of(h2), f"h2_{idx}"):
            continue
        section = _section_text(h2)
        if count_words(section) >= config.min_words:
            buf.add(PassageKind.H2_CONTENT, section, f"h2_content_{idx}")

    # 5. Paragraphs: first N qualifying, first few of those elevated
    captured = 0
    for idx, p in enumerate(snapshot.elements("p")):
        if captured >= MAX_PARAGRAPH_PASSAGES:
            break
        text = normalize_ws(text_of(p))
        if count_words(text) < config.min_words:
            continue
        kind = PassageKind.PARAGRAPH_PRIMARY if captured < PRIMARY_PARAGRAPHS else PassageKind.PARAGRAPH
        buf.add(kind, text, f"p_{idx}")
        captured += 1

    # 6. Lists
    for idx, text in passage_lists(snapshot):
        buf.add(PassageKind.LIST, text, f"list_{idx}")

    # 7. FAQ-like regions that read as a question
    for idx, region in enumerate(snapshot.select_distinct(registry.faq_regions)):
        text = normalize_ws(text_of(region))
        if text and registry.faq_question.found(text):
            buf.add(PassageKind.FAQ, text, f"faq_{idx}")

    # 8. h3 headings
    for idx, h3 in enumerate(snapshot.elements("h3")):
        buf.add(PassageKind.H3, text_of(h3), f"h3_{idx}")

    # 9. Structured-data names and descriptions
    for kind, text, position in _schema_texts(schema_records):
        buf.add(kind, text, position)

    return buf.result(config.max_passages)
