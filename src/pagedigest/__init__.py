# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Page Digest: weighted content digest of a single web page for LLM analysis.

Turns one rendered HTML document into an immutable digest containing:
- passages: prioritized, weighted text units (title, headings, paragraphs, lists, FAQ)
- signals: heuristic LLM-optimization metrics (answers, freshness, authority, structure)
- schema findings: implemented JSON-LD types, missing opportunities, type conflicts
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class PassageKind(StrEnum):
    """Passage categories, declared in extraction priority order."""

    TITLE = "title"
    META_DESCRIPTION = "meta_description"
    H1 = "h1"
    H2 = "h2"
    H2_CONTENT = "h2_content"
    PARAGRAPH_PRIMARY = "paragraph_primary"
    PARAGRAPH = "paragraph"
    LIST = "list"
    FAQ = "faq"
    H3 = "h3"
    SCHEMA_NAME = "schema_name"
    SCHEMA_DESCRIPTION = "schema_description"


# Information value per kind. Values are distinct so kinds are strictly ordered.
PASSAGE_WEIGHTS: dict[PassageKind, float] = {
    PassageKind.TITLE: 2.0,
    PassageKind.META_DESCRIPTION: 1.8,
    PassageKind.H1: 1.7,
    PassageKind.FAQ: 1.6,
    PassageKind.H2: 1.5,
    PassageKind.PARAGRAPH_PRIMARY: 1.4,
    PassageKind.H2_CONTENT: 1.3,
    PassageKind.H3: 1.2,
    PassageKind.LIST: 1.1,
    PassageKind.PARAGRAPH: 1.0,
    PassageKind.SCHEMA_NAME: 0.9,
    PassageKind.SCHEMA_DESCRIPTION: 0.8,
}


class ContentType(StrEnum):
    """Coarse page classification handed to the downstream analyst."""

    PRODUCT = "product"
    ARTICLE = "article"
    TECHNICAL = "technical"
    FAQ = "faq"
    RECIPE = "recipe"
    LOCAL = "local"
    PROFESSIONAL = "professional"
    FINANCIAL = "financial"
    CATEGORY = "category"
    GENERAL = "general"


class SkipReason(StrEnum):
    """Why a page was deliberately not analyzed."""

    URL_EXCLUDED = "url_excluded"
    INSUFFICIENT_CONTENT = "insufficient_content"


@dataclass(frozen=True, slots=True)
class Passage:
    """A bounded, weighted unit of extracted text."""

    kind: PassageKind
    text: str
    position: str  # header, h1_0, h2_content_3, p_7, list_1, faq_0, schema_0

    @property
    def weight(self) -> float:
        return PASSAGE_WEIGHTS[self.kind]

    def __str__(self) -> str:
        return f"[{self.position}] {self.kind} ({self.weight}): {self.text[:80]}"


@dataclass(frozen=True, slots=True)
class PageStats:
    """Structural counts; each matches the number of nodes in its category."""

    word_count: int = 0
    h1_count: int = 0
    h2_count: int = 0
    h3_count: int = 0
    p_count: int = 0
    list_count: int = 0
    table_count: int = 0
    img_count: int = 0
    link_count: int = 0
    faq_count: int = 0
    implied_faq_count: int = 0
    video_count: int = 0
    review_count: int = 0
    review_opportunities: int = 0


@dataclass(frozen=True, slots=True)
class SkippedPage:
    """Deliberate no-op outcome: the page was excluded before analysis."""

    url: str
    reason: SkipReason
    word_count: int = 0

    @property
    def message(self) -> str:
        if self.reason is SkipReason.URL_EXCLUDED:
            return "URL contains excluded pattern"
        return f"Insufficient content ({self.word_count} words)"
