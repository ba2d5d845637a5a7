# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for pagedigest.report — plain-text report rendering."""

from __future__ import annotations

import dataclasses

import pytest
from _html_helpers import RUNNING_SHOES_PAGE, URL

from pagedigest import SkippedPage, SkipReason
from pagedigest.analysis import LlmoAnalysis
from pagedigest.config import DigestConfig
from pagedigest.digest import build_page_digest
from pagedigest.report import SEPARATOR, format_raw_report, format_report, format_skip

ANALYSIS = {
    "primary_topic": "running shoes",
    "overall_llmo_score": 72,
    "potential_llmo_score": 90,
    "primary_limiting_factors": ["No FAQ schema", "Thin comparisons"],
    "answer_engine_readiness": {"overall_score": 65, "answer_gaps": ["sizing"]},
    "content_quality_metrics": {
        "topic_coverage_score": 80,
        "eeat_scores": {"experience": 60, "expertise": 70, "authoritativeness": 50, "trustworthiness": 75},
    },
    "schema_analysis": {
        "implemented_schemas": [{"type": "Product", "completeness_score": 60, "validation_issues": ["no image"]}],
        "missing_schemas": [
            {"type": "FAQPage", "priority": "HIGH", "supporting_content": "FAQ block", "expected_impact": "Rich results"},
            {"type": "BreadcrumbList", "priority": "LOW"},
        ],
        "total_opportunities": 5,
        "implemented_count": 2,
        "schema_coverage_score": 40,
        "industry_benchmark": {"average": 4, "excellent": 8, "your_count": 2, "competitive_position": "below"},
    },
    "optimization_roadmap": {
        "critical_fixes": [{"issue": "No direct answer", "fix": "Add a definition", "impact": "HIGH", "effort": "15m"}],
        "quick_wins": ["Add alt text", {"action": "Add FAQ schema"}],
    },
    "target_queries": [{"query": "best running shoes", "current_score": 3.5, "potential_score_with_optimization": 4.8}],
    "generated_faqs": [{"question": "How long do shoes last?", "answer": "x" * 200}],
    "key_recommendations": [{"action": "Add FAQ section", "effort": "low", "impact": "high"}, "Cite sources"],
}


@pytest.fixture
def digest():
    return build_page_digest(RUNNING_SHOES_PAGE, URL, DigestConfig(reference_year=2025))


class TestFormatReport:
    def test_ends_with_separator(self, digest):
        report = format_report(LlmoAnalysis.model_validate(ANALYSIS), digest)
        assert report.endswith(f"\n\n{SEPARATOR}\n\n")
        assert len(SEPARATOR) == 80

    def test_overview(self, digest):
        report = format_report(LlmoAnalysis.model_validate(ANALYSIS), digest)
        assert "OVERALL LLMO SCORE: 72/100" in report
        assert "POTENTIAL SCORE: 90/100" in report
        assert "OPTIMIZATION PRIORITY: MEDIUM" in report
        assert "PRIMARY LIMITING FACTORS: No FAQ schema, Thin comparisons" in report

    def test_score_sections(self, digest):
        report = format_report(LlmoAnalysis.model_validate(ANALYSIS), digest)
        assert "Answer Gaps: sizing" in report
        assert "• Expertise: 70/100" in report
        assert "Content Depth: N/A" in report
        assert "=== LLM PARSING OPTIMIZATION ===" not in report

    def test_schema_status(self, digest):
        report = format_report(LlmoAnalysis.model_validate(ANALYSIS), digest)
        assert "SCHEMA COVERAGE SCORE: 40%" in report
        assert "Industry Average: 4 schemas" in report
        assert "  - Product (60% complete)" in report
        assert "    Issues: no image" in report
        assert "MISSING OPPORTUNITIES: 3 schemas" in report
        assert "  - FAQPage (HIGH)" in report
        assert "BreadcrumbList" not in report.split("=== RAW JSON DATA ===")[0]

    def test_roadmap(self, digest):
        report = format_report(LlmoAnalysis.model_validate(ANALYSIS), digest)
        assert "• No direct answer" in report
        assert "  Fix: Add a definition (15m, Impact: HIGH)" in report
        assert "• Add alt text" in report
        assert "• Add FAQ schema" in report
        assert '1. "best running shoes"' in report
        assert "1. Add FAQ section" in report
        assert "   Effort: low | Impact: high" in report
        assert "2. Cite sources" in report

    def test_faq_answer_preview(self, digest):
        report = format_report(LlmoAnalysis.model_validate(ANALYSIS), digest)
        assert f"   A: {'x' * 150}..." in report

    def test_page_statistics(self, digest):
        report = format_report(LlmoAnalysis.model_validate(ANALYSIS), digest)
        assert f"• Word Count: {digest.stats.word_count}" in report
        assert "  - Current Schemas: Product" in report
        assert "• Content Type: product" in report

    def test_raw_json_tail(self, digest):
        report = format_report(LlmoAnalysis.model_validate({"overall_llmo_score": 10}), digest)
        raw = report.split("=== RAW JSON DATA ===\n")[1]
        assert raw.startswith('{\n  "overall_llmo_score": 10\n}')

    def test_sparse_analysis(self, digest):
        report = format_report(LlmoAnalysis(), digest)
        assert "OVERALL LLMO SCORE: N/A/100" in report
        assert "PRIMARY LIMITING FACTORS: None identified" in report
        assert "=== COMPREHENSIVE PAGE STATISTICS ===" in report

    def test_digest_warnings_listed(self, digest):
        warned = dataclasses.replace(digest, warnings=("Skipped 1 malformed JSON-LD block(s)",))
        report = format_report(LlmoAnalysis(), warned)
        assert "=== DIGEST WARNINGS ===" in report
        assert "• Skipped 1 malformed JSON-LD block(s)" in report


class TestRawReport:
    def test_layout(self):
        report = format_raw_report("not json", "Expecting value: line 1 column 1 (char 0)")
        assert report.startswith("=== LLMO ANALYSIS (RAW) ===")
        assert "Parse Error: Expecting value" in report
        assert report.endswith(f"{SEPARATOR}\n\n")

    def test_text_truncated(self):
        report = format_raw_report("y" * 5000, "bad")
        assert "y" * 1000 in report
        assert "y" * 1001 not in report


class TestSkip:
    @pytest.mark.parametrize(
        ("skipped", "line"),
        [
            (SkippedPage(url=URL, reason=SkipReason.URL_EXCLUDED), "=== SKIPPED: URL contains excluded pattern ==="),
            (
                SkippedPage(url=URL, reason=SkipReason.INSUFFICIENT_CONTENT, word_count=12),
                "=== SKIPPED: Insufficient content (12 words) ===",
            ),
        ],
    )
    def test_format(self, skipped, line):
        assert format_skip(skipped) == f"{line}\n\n{SEPARATOR}\n\n"
