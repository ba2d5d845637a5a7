# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""PageDigest serialization to plain dicts and JSON.

Key order is fixed and sets are emitted as sorted lists, so the same digest
always serializes to the same bytes.
"""

from __future__ import annotations

import json
from typing import Any

from pagedigest import Passage, SkippedPage
from pagedigest.digest import PageDigest
from pagedigest.schema_inspector import SchemaOpportunity


def passage_to_dict(passage: Passage) -> dict[str, Any]:
    return {
        "type": str(passage.kind),
        "text": passage.text,
        "position": passage.position,
        "weight": passage.weight,
    }


def _opportunity_to_dict(opp: SchemaOpportunity) -> dict[str, Any]:
    return {
        "type": opp.type,
        "required_fields_present": sorted(opp.required_fields_present),
        "valuable_fields_present": sorted(opp.valuable_fields_present),
        "content_indicator_score": opp.content_indicator_score,
        "implemented": opp.implemented,
    }


def digest_to_dict(digest: PageDigest) -> dict[str, Any]:
    """JSON-ready dict of *digest*."""
    return {
        "url": digest.url,
        "title": digest.title,
        "meta_description": digest.meta_description,
        "content_type": str(digest.content_type),
        "passages": [passage_to_dict(p) for p in digest.passages],
        "schema_records": [{"types": list(r.types), "data": r.data} for r in digest.schema_records],
        "schema_types": list(digest.schema_types),
        "schema_opportunities": [_opportunity_to_dict(o) for o in digest.schema_opportunities],
        "schema_conflicts": [{"types": list(c.types), "message": c.message} for c in digest.schema_conflicts],
        "signals": digest.signals.to_dict(),
        "stats": {
            "word_count": digest.stats.word_count,
            "h1_count": digest.stats.h1_count,
            "h2_count": digest.stats.h2_count,
            "h3_count": digest.stats.h3_count,
            "p_count": digest.stats.p_count,
            "list_count": digest.stats.list_count,
            "table_count": digest.stats.table_count,
            "img_count": digest.stats.img_count,
            "link_count": digest.stats.link_count,
            "faq_count": digest.stats.faq_count,
            "implied_faq_count": digest.stats.implied_faq_count,
            "video_count": digest.stats.video_count,
            "review_count": digest.stats.review_count,
            "review_opportunities": digest.stats.review_opportunities,
        },
        **({"warnings": list(digest.warnings)} if digest.warnings else {}),
    }


def skipped_to_dict(skipped: SkippedPage) -> dict[str, Any]:
    return {
        "url": skipped.url,
        "skipped": True,
        "reason": str(skipped.reason),
        "message": skipped.message,
        "word_count": skipped.word_count,
    }


def to_json(result: PageDigest | SkippedPage, indent: int | None = 2) -> str:
    """Serialize a digest (or skip outcome) to a JSON string.

    Args:
        result: digest or skip outcome
        indent: JSON indentation level (None for compact)
    """
    data = skipped_to_dict(result) if isinstance(result, SkippedPage) else digest_to_dict(result)
    return json.dumps(data, ensure_ascii=False, indent=indent)
