# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""PageDigest assembly: the single entry point from HTML to digest.

Pipeline:
1. Pre-filter on URL (skip patterns), then HTML size guard
2. Parse into a read-only DocumentSnapshot
3. Pre-filter on body word count
4. Schema inspection → passages → signals → stats → content type
5. Assemble one immutable PageDigest, re-checking global bounds

A skip is returned as ``SkippedPage``, never raised. Only
``InputShapeError`` and ``ResourceExhaustionError`` escape.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

import lxml.html

from pagedigest import ContentType, PageStats, Passage, SkippedPage, SkipReason
from pagedigest.config import DigestConfig
from pagedigest.content_type import classify_content_type
from pagedigest.document import DocumentSnapshot, parse_document, snapshot_from_tree
from pagedigest.errors import InputShapeError, ResourceExhaustionError
from pagedigest.passages import extract_passages
from pagedigest.patterns import DEFAULT_REGISTRY, PatternRegistry
from pagedigest.sanitizer import clean_text
from pagedigest.schema_inspector import (
    SchemaConflict,
    SchemaFindings,
    SchemaOpportunity,
    SchemaRecord,
    implemented_types,
    inspect_schema,
)
from pagedigest.signals import SignalDigest, analyze_signals, collect_stats

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PageDigest:
    """Immutable digest of one document. Pure function of (HTML, URL, config, registry)."""

    url: str
    title: str
    meta_description: str
    passages: tuple[Passage, ...]
    schema_records: tuple[SchemaRecord, ...]
    schema_opportunities: tuple[SchemaOpportunity, ...]
    schema_conflicts: tuple[SchemaConflict, ...]
    signals: SignalDigest
    stats: PageStats
    content_type: ContentType = ContentType.GENERAL
    warnings: tuple[str, ...] = field(default=())

    @property
    def schema_types(self) -> tuple[str, ...]:
        """Implemented schema types, ordered union across all records."""
        return implemented_types(self.schema_records)


# ---------------------------------------------------------------------------
# Pre-filter
# ---------------------------------------------------------------------------


def check_url(url: str, config: DigestConfig) -> SkippedPage | None:
    """Skip when any configured pattern is a substring of *url*."""
    if any(pattern in url for pattern in config.skip_url_patterns):
        return SkippedPage(url=url, reason=SkipReason.URL_EXCLUDED)
    return None


def check_word_count(snapshot: DocumentSnapshot, config: DigestConfig) -> SkippedPage | None:
    """Skip when the body has fewer than ``min_word_count_to_analyze`` words."""
    if snapshot.word_count < config.min_word_count_to_analyze:
        return SkippedPage(url=snapshot.url, reason=SkipReason.INSUFFICIENT_CONTENT, word_count=snapshot.word_count)
    return None


def _check_html_size(html: str | bytes, limit: int) -> None:
    """Reject HTML over *limit* bytes."""
    html_size = len(html) if isinstance(html, bytes) else len(html.encode("utf-8"))
    if html_size > limit:
        raise ResourceExhaustionError(
            f"HTML size {html_size:,} bytes exceeds {limit:,} byte limit. Try a lighter page."
        )


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


def assemble_digest(
    *,
    url: str,
    title: str,
    meta_description: str,
    passages: Sequence[Passage],
    schema: SchemaFindings,
    signals: SignalDigest,
    stats: PageStats,
    content_type: ContentType,
    config: DigestConfig,
    warnings: Sequence[str] = (),
) -> PageDigest:
    """Compose the digest, re-enforcing the passage cap and text length bounds.

    Raises:
        InputShapeError: a component handed over a value of the wrong shape.
    """
    if not isinstance(url, str):
        raise InputShapeError(f"URL must be a string, got {type(url).__name__}")
    if not isinstance(content_type, ContentType):
        raise InputShapeError(f"Unknown content type {content_type!r}")
    bounded: list[Passage] = []
    for passage in passages[: config.max_passages]:
        if not isinstance(passage, Passage):
            raise InputShapeError(f"Expected Passage, got {type(passage).__name__}")
        text = clean_text(passage.text, config.max_chunk_length)
        if not text:
            continue
        if text != passage.text:
            passage = Passage(kind=passage.kind, text=text, position=passage.position)
        bounded.append(passage)

    return PageDigest(
        url=url,
        title=clean_text(title, config.max_chunk_length),
        meta_description=clean_text(meta_description, config.max_chunk_length),
        passages=tuple(bounded),
        schema_records=schema.records,
        schema_opportunities=schema.opportunities,
        schema_conflicts=schema.conflicts,
        signals=signals,
        stats=stats,
        content_type=content_type,
        warnings=tuple(warnings),
    )


def _reference_year(config: DigestConfig) -> int:
    return config.reference_year if config.reference_year is not None else datetime.now(UTC).year


def digest_snapshot(
    snapshot: DocumentSnapshot,
    config: DigestConfig,
    registry: PatternRegistry = DEFAULT_REGISTRY,
) -> PageDigest:
    """Run every component over an already-filtered snapshot."""
    t0 = time.perf_counter()
    schema = inspect_schema(snapshot, registry)
    passages = extract_passages(snapshot, config, schema.records, registry)
    signals, warnings = analyze_signals(snapshot, registry, year=_reference_year(config))
    if schema.malformed_blocks:
        warnings.append(f"Skipped {schema.malformed_blocks} malformed JSON-LD block(s)")
    stats = collect_stats(snapshot, registry)
    content_type = classify_content_type(schema.implemented_types, snapshot.url, snapshot.body_text_lower, registry)

    digest = assemble_digest(
        url=snapshot.url,
        title=snapshot.title,
        meta_description=snapshot.meta_description,
        passages=passages,
        schema=schema,
        signals=signals,
        stats=stats,
        content_type=content_type,
        config=config,
        warnings=warnings,
    )
    elapsed_ms = (time.perf_counter() - t0) * 1000
    logger.info(
        "PageDigest built: %d passages, %d words, %d schema types, content type %s, %.0fms",
        len(digest.passages),
        stats.word_count,
        len(schema.implemented_types),
        content_type,
        elapsed_ms,
    )
    return digest


def build_page_digest(
    source: str | bytes | lxml.html.HtmlElement | DocumentSnapshot,
    url: str,
    config: DigestConfig | None = None,
    registry: PatternRegistry = DEFAULT_REGISTRY,
) -> PageDigest | SkippedPage:
    """Build a digest for one page, or the reason it was skipped.

    Args:
        source: raw HTML, a parsed lxml tree, or a prepared snapshot
        url: resolved page URL
        config: bounds and gates (defaults to ``DigestConfig()``)
        registry: pattern catalog

    Raises:
        InputShapeError: the document is empty, unparseable, or has no body.
        ResourceExhaustionError: raw HTML exceeds ``config.max_html_bytes``.
    """
    config = config or DigestConfig()

    skipped = check_url(url, config)
    if skipped is not None:
        logger.info("Skipping %s: %s", url, skipped.message)
        return skipped

    if isinstance(source, DocumentSnapshot):
        snapshot = source
    elif isinstance(source, (str, bytes)):
        _check_html_size(source, config.max_html_bytes)
        snapshot = parse_document(source, url)
    elif isinstance(source, lxml.html.HtmlElement):
        snapshot = snapshot_from_tree(source, url)
    else:
        raise InputShapeError(f"Unsupported document source {type(source).__name__}")

    skipped = check_word_count(snapshot, config)
    if skipped is not None:
        logger.info("Skipping %s: %s", url, skipped.message)
        return skipped

    return digest_snapshot(snapshot, config, registry)
