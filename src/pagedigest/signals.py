# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Heuristic LLM-optimization signals and page statistics.

Each scanner is a pure function ``(snapshot, registry) -> partial`` that
returns one frozen slice of the ``SignalDigest``. Scanners never read each
other's output, so they can run in any order. ``analyze_signals`` runs them
all and isolates failures: a scanner that raises is logged and replaced by
its empty slice, and a warning is recorded for the digest.

Signals always scan the whole body text, never the passage subset.
"""

from __future__ import annotations

import dataclasses
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from urllib.parse import urlparse

from pagedigest import PageStats
from pagedigest.document import DocumentSnapshot, normalize_ws, text_of
from pagedigest.passages import passage_lists, qualifying_h1s
from pagedigest.patterns import DEFAULT_REGISTRY, PatternRegistry, phrases

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200
TECHNICAL_TERM_MIN_LEN = 8  # "longer than 7 characters"
ALT_TEXT_MIN_EXCLUSIVE = 10
ALT_TEXT_MAX_EXCLUSIVE = 125


# ---------------------------------------------------------------------------
# Signal slices
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AnswerEngineSignals:
    direct_answers: int = 0
    definition_patterns: int = 0
    comparison_tables: int = 0
    pros_cons_sections: int = 0
    lists_quality_score: float = 0.0


@dataclass(frozen=True, slots=True)
class ContentPatternSignals:
    examples_count: int = 0
    step_by_step_sections: int = 0
    summary_sections: int = 0
    natural_language_score: int = 0


@dataclass(frozen=True, slots=True)
class InformationGainSignals:
    expert_quotes: int = 0
    statistics_count: int = 0
    case_studies: int = 0


@dataclass(frozen=True, slots=True)
class ContentStructureSignals:
    hierarchy_clarity: int = 0
    scannable_elements: int = 0


@dataclass(frozen=True, slots=True)
class EngagementSignals:
    estimated_read_time: int = 0
    interactive_elements: int = 0
    visual_elements: int = 0
    descriptive_alt_texts: int = 0


@dataclass(frozen=True, slots=True)
class AuthorityMarkers:
    external_citations: int = 0
    internal_links: int = 0
    author_bio_present: bool = False
    last_updated: str | None = None
    trust_signals: int = 0


@dataclass(frozen=True, slots=True)
class FreshnessSignals:
    current_year_mentions: int = 0
    temporal_keywords: int = 0


@dataclass(frozen=True, slots=True)
class QueryAlignmentSignals:
    question_types_covered: frozenset[str] = frozenset()
    voice_search_optimization: int = 0


@dataclass(frozen=True, slots=True)
class SemanticCoverageSignals:
    related_concepts: int = 0
    unique_terms: frozenset[str] = field(default=frozenset(), repr=False)


@dataclass(frozen=True, slots=True)
class SignalDigest:
    """All signal slices for one document. Fixed shape."""

    answer_engine: AnswerEngineSignals = field(default_factory=AnswerEngineSignals)
    content_patterns: ContentPatternSignals = field(default_factory=ContentPatternSignals)
    information_gain: InformationGainSignals = field(default_factory=InformationGainSignals)
    content_structure: ContentStructureSignals = field(default_factory=ContentStructureSignals)
    engagement_signals: EngagementSignals = field(default_factory=EngagementSignals)
    authority_markers: AuthorityMarkers = field(default_factory=AuthorityMarkers)
    freshness_signals: FreshnessSignals = field(default_factory=FreshnessSignals)
    query_alignment: QueryAlignmentSignals = field(default_factory=QueryAlignmentSignals)
    semantic_coverage: SemanticCoverageSignals = field(default_factory=SemanticCoverageSignals)

    def to_dict(self) -> dict:
        """JSON-ready dict. Sets become sorted lists; the raw term set is omitted."""
        out: dict[str, dict] = {}
        for f in dataclasses.fields(self):
            part = getattr(self, f.name)
            row = {}
            for pf in dataclasses.fields(part):
                if pf.name == "unique_terms":
                    continue
                value = getattr(part, pf.name)
                row[pf.name] = sorted(value) if isinstance(value, frozenset) else value
            out[f.name] = row
        return out


# ---------------------------------------------------------------------------
# Shared counting helpers
# ---------------------------------------------------------------------------


def _nonempty_count(snapshot: DocumentSnapshot, tag: str) -> int:
    return sum(1 for el in snapshot.elements(tag) if normalize_ws(text_of(el)))


def _count_present(patterns, text: str) -> int:
    """+1 per pattern present at least once."""
    return sum(1 for p in patterns if p.found(text))


def _count_occurrences(patterns, text: str) -> int:
    """Every occurrence of every pattern."""
    return sum(p.count(text) for p in patterns)


def _link_host(href: str) -> str | None:
    """Host of an absolute or protocol-relative href; "" for root-relative; None otherwise."""
    href = href.strip()
    lowered = href.lower()
    try:
        if href.startswith("//"):
            return (urlparse("http:" + href).hostname or "").lower() or None
        if lowered.startswith(("http://", "https://")):
            return (urlparse(href).hostname or "").lower() or None
    except ValueError:
        return None
    if href.startswith("/"):
        return ""
    return None


def count_links(snapshot: DocumentSnapshot) -> tuple[int, int]:
    """(external, internal) hyperlink counts relative to the page host."""
    external = internal = 0
    for a in snapshot.xpath("//a[@href]"):
        host = _link_host(a.get("href") or "")
        if host is None:
            continue
        if host == "" or (snapshot.host and host == snapshot.host):
            internal += 1
        else:
            external += 1
    return external, internal


# ---------------------------------------------------------------------------
# Scanners
# ---------------------------------------------------------------------------


def scan_answer_engine(snapshot: DocumentSnapshot, registry: PatternRegistry) -> AnswerEngineSignals:
    direct = definitions = 0
    for p in snapshot.elements("p"):
        text = text_of(p)
        direct += _count_present(registry.direct_answers, text)
        definitions += _count_present(registry.definitions, text)

    body = snapshot.body_text_lower
    lists = snapshot.elements("ul", "ol")
    items = sum(len(lst.xpath(".//li")) for lst in lists)
    quality = min(100.0, items / len(lists) * 10) if lists else 0.0

    return AnswerEngineSignals(
        direct_answers=direct,
        definition_patterns=definitions,
        comparison_tables=_count_present(registry.comparisons, body),
        pros_cons_sections=_count_present(registry.pros_cons, body),
        lists_quality_score=quality,
    )


def scan_content_patterns(snapshot: DocumentSnapshot, registry: PatternRegistry) -> ContentPatternSignals:
    body = snapshot.body_text_lower
    return ContentPatternSignals(
        examples_count=_count_occurrences(registry.examples, body),
        step_by_step_sections=_count_present(registry.step_patterns, body),
        summary_sections=_count_present(registry.summaries, body),
        natural_language_score=_count_present(registry.conversational, body),
    )


def scan_information_gain(snapshot: DocumentSnapshot, registry: PatternRegistry) -> InformationGainSignals:
    body = snapshot.body_text_lower
    return InformationGainSignals(
        expert_quotes=_count_occurrences(registry.expert_signals, body),
        statistics_count=registry.statistics.count(body),
        case_studies=_count_present(registry.case_studies, body),
    )


def scan_freshness(snapshot: DocumentSnapshot, registry: PatternRegistry, *, year: int) -> FreshnessSignals:
    body = snapshot.body_text_lower
    keywords = registry.freshness + phrases(str(year - 1), str(year))
    return FreshnessSignals(
        current_year_mentions=body.count(str(year)),
        temporal_keywords=_count_occurrences(keywords, body),
    )


def scan_authority(snapshot: DocumentSnapshot, registry: PatternRegistry) -> AuthorityMarkers:
    body = snapshot.body_text_lower
    external, internal = count_links(snapshot)

    last_updated = None
    for pattern in registry.last_updated:
        last_updated = pattern.first_group(body)
        if last_updated:
            break

    return AuthorityMarkers(
        external_citations=external,
        internal_links=internal,
        author_bio_present=bool(snapshot.select_distinct(registry.author_regions)),
        last_updated=last_updated,
        trust_signals=_count_present(registry.trust_indicators, body),
    )


def scan_structure(snapshot: DocumentSnapshot, registry: PatternRegistry) -> ContentStructureSignals:
    h1 = len(qualifying_h1s(snapshot))
    h2 = _nonempty_count(snapshot, "h2")
    lists = len(passage_lists(snapshot))
    tables = len(snapshot.elements("table"))
    images = len(snapshot.elements("img"))
    return ContentStructureSignals(
        hierarchy_clarity=100 if h1 > 0 and h2 > h1 else 50,
        scannable_elements=h2 + lists + tables + images,
    )


def scan_engagement(snapshot: DocumentSnapshot, registry: PatternRegistry) -> EngagementSignals:
    images = snapshot.elements("img")
    descriptive = sum(
        1 for img in images if ALT_TEXT_MIN_EXCLUSIVE < len(img.get("alt") or "") < ALT_TEXT_MAX_EXCLUSIVE
    )
    return EngagementSignals(
        estimated_read_time=math.ceil(snapshot.word_count / WORDS_PER_MINUTE),
        interactive_elements=len(snapshot.select_distinct(registry.interactive_elements)),
        visual_elements=len(images),
        descriptive_alt_texts=descriptive,
    )


def scan_query_alignment(snapshot: DocumentSnapshot, registry: PatternRegistry) -> QueryAlignmentSignals:
    body = snapshot.body_text_lower
    covered = frozenset(q for q, pattern in registry.question_type_patterns() if pattern.found(body))
    return QueryAlignmentSignals(
        question_types_covered=covered,
        voice_search_optimization=_count_present(registry.voice_search, body),
    )


def scan_semantic_coverage(snapshot: DocumentSnapshot, registry: PatternRegistry) -> SemanticCoverageSignals:
    terms = frozenset(w for w in snapshot.body_text_lower.split() if len(w) >= TECHNICAL_TERM_MIN_LEN)
    return SemanticCoverageSignals(related_concepts=len(terms), unique_terms=terms)


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


def analyze_signals(
    snapshot: DocumentSnapshot,
    registry: PatternRegistry = DEFAULT_REGISTRY,
    *,
    year: int,
) -> tuple[SignalDigest, list[str]]:
    """Run every scanner over *snapshot*.

    Args:
        snapshot: parsed document (read-only)
        registry: pattern catalog
        year: reference year for freshness numerals

    Returns:
        Tuple of (signal digest, warning messages for scanners that failed)
    """
    scanners: dict[str, Callable[[], object]] = {
        "answer_engine": lambda: scan_answer_engine(snapshot, registry),
        "content_patterns": lambda: scan_content_patterns(snapshot, registry),
        "information_gain": lambda: scan_information_gain(snapshot, registry),
        "content_structure": lambda: scan_structure(snapshot, registry),
        "engagement_signals": lambda: scan_engagement(snapshot, registry),
        "authority_markers": lambda: scan_authority(snapshot, registry),
        "freshness_signals": lambda: scan_freshness(snapshot, registry, year=year),
        "query_alignment": lambda: scan_query_alignment(snapshot, registry),
        "semantic_coverage": lambda: scan_semantic_coverage(snapshot, registry),
    }
    warnings: list[str] = []
    slices: dict[str, object] = {}
    for name, scan in scanners.items():
        try:
            slices[name] = scan()
        except Exception as e:  # noqa: BLE001
            logger.warning("Signal scanner %s failed: %s", name, e)
            warnings.append(f"Signal scanner {name} failed ({type(e).__name__}): {name} signals are empty")
    return SignalDigest(**slices), warnings


def collect_stats(snapshot: DocumentSnapshot, registry: PatternRegistry = DEFAULT_REGISTRY) -> PageStats:
    """Structural statistics.

    h1 and list counts follow the passage rules: only h1s of three or more
    words and only the leading lists that yield a list passage are counted.
    """
    body = snapshot.body_text_lower
    external, internal = count_links(snapshot)
    faq_spec = registry.schema_types.get("FAQPage")
    review_spec = registry.schema_types.get("Review")
    return PageStats(
        word_count=snapshot.word_count,
        h1_count=len(qualifying_h1s(snapshot)),
        h2_count=_nonempty_count(snapshot, "h2"),
        h3_count=len(snapshot.elements("h3")),
        p_count=len(snapshot.elements("p")),
        list_count=len(passage_lists(snapshot)),
        table_count=len(snapshot.elements("table")),
        img_count=len(snapshot.elements("img")),
        link_count=external + internal,
        faq_count=len(snapshot.select_distinct(registry.faq_regions)),
        implied_faq_count=_count_occurrences(faq_spec.implied, body) if faq_spec else 0,
        video_count=len(snapshot.select_distinct(registry.video_elements)),
        review_count=len(snapshot.select_distinct(registry.review_regions)),
        review_opportunities=_count_present(review_spec.review_opportunities, body) if review_spec else 0,
    )
