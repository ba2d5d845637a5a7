# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for pagedigest.serializer — digest and skip outcomes as JSON."""

from __future__ import annotations

import json

from _html_helpers import RUNNING_SHOES_PAGE, URL

from pagedigest import Passage, PassageKind, SkippedPage, SkipReason
from pagedigest.config import DigestConfig
from pagedigest.digest import build_page_digest
from pagedigest.serializer import digest_to_dict, passage_to_dict, skipped_to_dict, to_json

CONFIG = DigestConfig(reference_year=2025)


class TestPassageToDict:
    def test_fields(self):
        passage = Passage(PassageKind.H2_CONTENT, "Section body", "h2_content_0")
        assert passage_to_dict(passage) == {
            "type": "h2_content",
            "text": "Section body",
            "position": "h2_content_0",
            "weight": 1.3,
        }


class TestDigestToDict:
    def setup_method(self):
        self.digest = build_page_digest(RUNNING_SHOES_PAGE, URL, CONFIG)
        self.data = digest_to_dict(self.digest)

    def test_top_level_keys(self):
        assert list(self.data) == [
            "url",
            "title",
            "meta_description",
            "content_type",
            "passages",
            "schema_records",
            "schema_types",
            "schema_opportunities",
            "schema_conflicts",
            "signals",
            "stats",
        ]

    def test_content_type_is_plain_string(self):
        assert self.data["content_type"] == "product"
        assert type(self.data["content_type"]) is str

    def test_passages_in_order(self):
        assert self.data["passages"][0]["type"] == "title"
        assert len(self.data["passages"]) == len(self.digest.passages)

    def test_schema_records_keep_data(self):
        (record,) = self.data["schema_records"]
        assert record["types"] == ["Product"]
        assert record["data"]["name"] == "Trail Runner X"

    def test_opportunity_field_sets_sorted(self):
        product = next(o for o in self.data["schema_opportunities"] if o["type"] == "Product")
        assert product["required_fields_present"] == ["name", "offers"]
        assert product["implemented"] is True

    def test_signals_have_no_term_set(self):
        assert "unique_terms" not in self.data["signals"]["semantic_coverage"]

    def test_stats_complete(self):
        assert self.data["stats"]["word_count"] == self.digest.stats.word_count
        assert len(self.data["stats"]) == 14

    def test_warnings_only_when_present(self):
        assert "warnings" not in self.data


class TestSkippedToDict:
    def test_fields(self):
        skipped = SkippedPage(url=URL, reason=SkipReason.INSUFFICIENT_CONTENT, word_count=42)
        assert skipped_to_dict(skipped) == {
            "url": URL,
            "skipped": True,
            "reason": "insufficient_content",
            "message": "Insufficient content (42 words)",
            "word_count": 42,
        }


class TestToJson:
    def test_round_trips_through_json(self):
        digest = build_page_digest(RUNNING_SHOES_PAGE, URL, CONFIG)
        assert json.loads(to_json(digest)) == digest_to_dict(digest)

    def test_compact(self):
        digest = build_page_digest(RUNNING_SHOES_PAGE, URL, CONFIG)
        assert "\n" not in to_json(digest, indent=None)

    def test_deterministic(self):
        first = to_json(build_page_digest(RUNNING_SHOES_PAGE, URL, CONFIG))
        second = to_json(build_page_digest(RUNNING_SHOES_PAGE, URL, CONFIG))
        assert first == second

    def test_skipped(self):
        data = json.loads(to_json(SkippedPage(url="https://example.com/tag/x", reason=SkipReason.URL_EXCLUDED)))
        assert data["skipped"] is True
        assert data["reason"] == "url_excluded"

    def test_non_ascii_kept(self):
        digest = build_page_digest(
            RUNNING_SHOES_PAGE.replace("Best Running Shoes 2025</title>", "Laufschuhe für 2025</title>"),
            URL,
            CONFIG,
        )
        assert "für" in to_json(digest)
