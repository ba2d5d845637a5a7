# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for pagedigest.digest — pre-filters, guards, assembly, end-to-end digests."""

from __future__ import annotations

import logging

import lxml.html
import pytest
from _html_helpers import RUNNING_SHOES_PAGE, URL, ld_json, page, words

from pagedigest import ContentType, PageStats, Passage, PassageKind, SkippedPage, SkipReason
from pagedigest.config import DigestConfig
from pagedigest.digest import PageDigest, assemble_digest, build_page_digest, check_url
from pagedigest.document import parse_document
from pagedigest.errors import InputShapeError, ResourceExhaustionError
from pagedigest.schema_inspector import SchemaFindings
from pagedigest.signals import SignalDigest

CONFIG = DigestConfig(reference_year=2025)


class TestUrlPreFilter:
    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/tag/running",
            "https://example.com/author/sam",
            "https://example.com/blog/page/2",
            "https://example.com/search?q=shoes",
            "https://example.com/guide#fit",
        ],
    )
    def test_default_patterns_skip(self, url):
        result = build_page_digest(RUNNING_SHOES_PAGE, url, CONFIG)
        assert isinstance(result, SkippedPage)
        assert result.reason is SkipReason.URL_EXCLUDED
        assert result.message == "URL contains excluded pattern"

    def test_checked_before_parsing(self):
        result = build_page_digest("", "https://example.com/tag/x", CONFIG)
        assert isinstance(result, SkippedPage)

    def test_custom_patterns(self):
        config = DigestConfig(skip_url_patterns=("/cart",))
        assert check_url("https://example.com/cart/1", config) is not None
        assert check_url("https://example.com/tag/1", config) is None


class TestWordCountPreFilter:
    def test_below_threshold_skipped(self):
        result = build_page_digest(page(f"<p>{words(99)}</p>"), URL, CONFIG)
        assert isinstance(result, SkippedPage)
        assert result.reason is SkipReason.INSUFFICIENT_CONTENT
        assert result.word_count == 99
        assert result.message == "Insufficient content (99 words)"

    def test_at_threshold_analyzed(self):
        result = build_page_digest(page(f"<p>{words(100)}</p>"), URL, CONFIG)
        assert isinstance(result, PageDigest)
        assert result.stats.word_count == 100

    def test_custom_threshold(self):
        result = build_page_digest(page(f"<p>{words(5)}</p>"), URL, DigestConfig(min_word_count_to_analyze=5))
        assert isinstance(result, PageDigest)


class TestGuards:
    def test_oversized_html_rejected(self):
        with pytest.raises(ResourceExhaustionError, match="exceeds"):
            build_page_digest(page(f"<p>{words(200)}</p>"), URL, DigestConfig(max_html_bytes=100))

    def test_size_counts_utf8_bytes(self):
        html = page("<p>" + "é" * 60 + "</p>")
        with pytest.raises(ResourceExhaustionError):
            build_page_digest(html, URL, DigestConfig(max_html_bytes=len(html) + 10))

    def test_empty_document(self):
        with pytest.raises(InputShapeError):
            build_page_digest("", URL, CONFIG)

    def test_unsupported_source(self):
        with pytest.raises(InputShapeError, match="Unsupported"):
            build_page_digest(12345, URL, CONFIG)


class TestSources:
    def test_tree_and_snapshot_match_raw_html(self):
        from_html = build_page_digest(RUNNING_SHOES_PAGE, URL, CONFIG)
        from_tree = build_page_digest(lxml.html.document_fromstring(RUNNING_SHOES_PAGE), URL, CONFIG)
        from_snapshot = build_page_digest(parse_document(RUNNING_SHOES_PAGE, URL), URL, CONFIG)
        assert from_tree.passages == from_html.passages
        assert from_snapshot == from_html


class TestRunningShoesDigest:
    def setup_method(self):
        self.digest = build_page_digest(RUNNING_SHOES_PAGE, URL, CONFIG)

    def test_header_fields(self):
        assert self.digest.url == URL
        assert self.digest.title == "Best Running Shoes 2025"
        assert self.digest.meta_description == "Top picks for every runner, updated for 2025."

    def test_first_passages(self):
        assert self.digest.passages[0].kind is PassageKind.TITLE
        assert self.digest.passages[0].text == "Best Running Shoes 2025"
        assert self.digest.passages[1].kind is PassageKind.META_DESCRIPTION

    def test_schema_drives_content_type(self):
        assert self.digest.schema_types == ("Product",)
        assert self.digest.content_type is ContentType.PRODUCT

    def test_stats(self):
        stats = self.digest.stats
        assert stats.h1_count == 1
        assert stats.h2_count == 2
        assert stats.h3_count == 1
        assert stats.p_count == 4
        assert stats.list_count == 1
        assert stats.faq_count == 1
        assert stats.word_count >= 100

    def test_freshness_uses_reference_year(self):
        assert self.digest.signals.freshness_signals.current_year_mentions == 1

    def test_no_warnings(self):
        assert self.digest.warnings == ()

    def test_idempotent(self):
        assert build_page_digest(RUNNING_SHOES_PAGE, URL, CONFIG) == self.digest

    def test_digest_is_frozen(self):
        with pytest.raises(AttributeError):
            self.digest.title = "changed"

    def test_info_log_line(self, caplog):
        with caplog.at_level(logging.INFO, logger="pagedigest.digest"):
            build_page_digest(RUNNING_SHOES_PAGE, URL, CONFIG)
        assert "PageDigest built" in caplog.text


class TestComparisonPage:
    def setup_method(self):
        html = page(
            f"<p>{words(30)}</p>",
            f"<p>{words(30)}</p>",
            f"<p>{words(30)}</p>",
            "<h2>Comparison</h2>",
            "<p>Road shoes versus trail shoes: the trail pair grips better on loose dirt.</p>",
            head=ld_json({"@context": "https://schema.org", "@type": "Product", "name": "Trail Runner X"}),
            title="Best Running Shoes 2025",
        )
        self.digest = build_page_digest(html, URL, CONFIG)

    def test_product_content_type(self):
        assert self.digest.content_type is ContentType.PRODUCT

    def test_single_product_record(self):
        assert len(self.digest.schema_records) == 1
        assert self.digest.schema_types == ("Product",)

    def test_comparison_detected(self):
        assert self.digest.signals.answer_engine.comparison_tables >= 1

    def test_title_and_heading_weights(self):
        title = self.digest.passages[0]
        assert title.kind is PassageKind.TITLE
        assert title.text == "Best Running Shoes 2025"
        assert title.weight == 2.0
        h2 = [p for p in self.digest.passages if p.kind is PassageKind.H2]
        assert [(p.text, p.weight) for p in h2] == [("Comparison", 1.5)]


class TestBlogProductPage:
    def test_product_schema_on_blog_url(self):
        html = page(f"<p>{words(120)}</p>", head=ld_json({"@type": "Product", "name": "Trail Runner X"}))
        result = build_page_digest(html, "https://example.com/blog/trail-runner-x", CONFIG)
        assert result.content_type is ContentType.PRODUCT


class TestWarnings:
    def test_malformed_json_ld_recorded(self):
        html = page(
            f"<p>{words(120)}</p>",
            head='<script type="application/ld+json">{not json}</script>' + ld_json({"@type": "Article"}),
        )
        result = build_page_digest(html, URL, CONFIG)
        assert result.schema_types == ("Article",)
        assert result.warnings == ("Skipped 1 malformed JSON-LD block(s)",)

    def test_failed_scanner_recorded(self, monkeypatch):
        def _boom(*args, **kwargs):
            raise ValueError("bad scan")

        monkeypatch.setattr("pagedigest.signals.scan_engagement", _boom)
        result = build_page_digest(page(f"<p>{words(120)}</p>"), URL, CONFIG)
        assert isinstance(result, PageDigest)
        assert len(result.warnings) == 1
        assert "engagement_signals" in result.warnings[0]


class TestAssembleDigest:
    def _assemble(self, **overrides):
        kwargs = {
            "url": URL,
            "title": "Title",
            "meta_description": "",
            "passages": [],
            "schema": SchemaFindings(),
            "signals": SignalDigest(),
            "stats": PageStats(),
            "content_type": ContentType.GENERAL,
            "config": DigestConfig(max_passages=2, max_chunk_length=10),
        }
        kwargs.update(overrides)
        return assemble_digest(**kwargs)

    def test_caps_and_truncates(self):
        passages = [Passage(PassageKind.PARAGRAPH, "x" * 50, f"p_{i}") for i in range(5)]
        digest = self._assemble(passages=passages, title="a very long page title")
        assert len(digest.passages) == 2
        assert all(len(p.text) == 10 for p in digest.passages)
        assert digest.title == "a very lon"

    def test_drops_passages_that_clean_to_empty(self):
        digest = self._assemble(passages=[Passage(PassageKind.H3, "\u200b\u200b", "h3_0")])
        assert digest.passages == ()

    def test_rejects_foreign_passage(self):
        with pytest.raises(InputShapeError, match="Passage"):
            self._assemble(passages=[{"type": "title", "text": "x"}])

    def test_rejects_unknown_content_type(self):
        with pytest.raises(InputShapeError, match="content type"):
            self._assemble(content_type="blog")

    def test_rejects_non_string_url(self):
        with pytest.raises(InputShapeError, match="URL"):
            self._assemble(url=None)
