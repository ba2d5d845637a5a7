# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for pagedigest.patterns — phrase/regex matchers and the default registry."""

from __future__ import annotations

import logging
import re

import pytest

from pagedigest import ContentType
from pagedigest.patterns import DEFAULT_REGISTRY, PhrasePattern, RegexPattern, phrases, regexes


class TestPhrasePattern:
    def test_counts_non_overlapping(self):
        assert PhrasePattern("aa").count("aaaa") == 2

    def test_literal_dots(self):
        p = PhrasePattern("e.g.")
        assert p.found("see e.g. below")
        assert not p.found("see eXgX below")

    def test_empty_phrase_never_matches(self):
        assert PhrasePattern("").count("anything") == 0
        assert not PhrasePattern("").found("anything")

    def test_case_sensitive(self):
        assert not PhrasePattern("refers to").found("REFERS TO")


class TestRegexPattern:
    def test_count_every_match(self):
        assert RegexPattern(r"\d+").count("1 and 22 and 333") == 3

    def test_first_group(self):
        p = RegexPattern(r"updated:?\s*(\d{1,2}/\d{1,2}/\d{4})")
        assert p.first_group("last updated: 3/15/2025") == "3/15/2025"

    def test_first_group_without_groups_returns_match(self):
        assert RegexPattern(r"\d{4}").first_group("in 2025") == "2025"

    def test_first_group_no_match(self):
        assert RegexPattern(r"\d{4}").first_group("no year") is None

    def test_flags_applied(self):
        assert RegexPattern(r"step \d", re.IGNORECASE).found("STEP 1")

    def test_invalid_source_degrades_to_substring(self, caplog):
        with caplog.at_level(logging.WARNING, logger="pagedigest.patterns"):
            p = RegexPattern("price (")
        assert p.degraded
        assert p.found("the price (usd)")
        assert not p.found("the price")
        assert p.count("price ( price (") == 1
        assert p.first_group("a price (b") == "price ("
        assert "Invalid pattern" in caplog.text

    def test_valid_source_not_degraded(self):
        assert not RegexPattern(r"\bhow\b").degraded


class TestHelpers:
    def test_phrases_builds_tuple(self):
        built = phrases("a", "b")
        assert built == (PhrasePattern("a"), PhrasePattern("b"))

    def test_regexes_default_ignorecase(self):
        (p,) = regexes(r"what is")
        assert p.found("WHAT IS this")


class TestDefaultRegistry:
    def test_question_type_patterns_whole_word(self):
        patterns = dict(DEFAULT_REGISTRY.question_type_patterns())
        assert set(patterns) == {"what", "why", "how", "when", "where", "who", "which"}
        assert not patterns["where"].found("somewhere else")
        assert patterns["where"].found("where to run")

    def test_no_bare_question_mark_faq_indicator(self):
        faq = DEFAULT_REGISTRY.schema_types["FAQPage"]
        assert PhrasePattern("?") not in faq.indicators

    @pytest.mark.parametrize(
        "schema_type",
        ["Product", "FAQPage", "Article", "HowTo", "Recipe", "LocalBusiness", "Review", "VideoObject"],
    )
    def test_catalog_has_required_fields(self, schema_type):
        type_spec = DEFAULT_REGISTRY.schema_types[schema_type]
        assert type_spec.required
        assert type_spec.indicators

    def test_registry_is_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_REGISTRY.schema_types["Event"] = DEFAULT_REGISTRY.schema_types["Product"]

    def test_schema_label_order_puts_product_first(self):
        assert DEFAULT_REGISTRY.schema_type_labels[0] == ("Product", ContentType.PRODUCT)

    def test_no_degraded_default_patterns(self):
        regex_groups = [
            DEFAULT_REGISTRY.definitions,
            DEFAULT_REGISTRY.step_patterns,
            DEFAULT_REGISTRY.last_updated,
            (DEFAULT_REGISTRY.statistics, DEFAULT_REGISTRY.faq_question),
            tuple(p for p, _ in DEFAULT_REGISTRY.url_rules),
            tuple(p for p, _ in DEFAULT_REGISTRY.body_rules),
        ]
        for group in regex_groups:
            assert not any(p.degraded for p in group)

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("45% of runners", 1),
            ("costs $ 120 today", 1),
            ("3 million pairs and 2.5 % growth", 2),
            ("no numbers here", 0),
        ],
    )
    def test_statistics_pattern(self, text, expected):
        assert DEFAULT_REGISTRY.statistics.count(text) == expected
