# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Plain-text rendering of analysis results for bulk exports.

Every report ends with an 80-character ``=`` separator so reports for many
pages can be concatenated into one file and still split cleanly.
"""

from __future__ import annotations

import json
from typing import Any

from pagedigest import SkippedPage
from pagedigest.analysis import LlmoAnalysis
from pagedigest.digest import PageDigest

SEPARATOR = "=" * 80
_MAX_LISTED = 5
_FAQ_ANSWER_PREVIEW = 150
_RAW_PREVIEW = 1000


def _v(value: Any, default: str = "N/A") -> str:
    return default if value is None or value == "" else str(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _item_text(item: Any, *keys: str) -> str:
    """A string item as-is; a dict item via the first present key."""
    if isinstance(item, dict):
        for key in keys:
            if item.get(key):
                return str(item[key])
        return json.dumps(item, ensure_ascii=False)
    return str(item)


def _finish(lines: list[str]) -> str:
    return "\n".join(lines) + f"\n\n{SEPARATOR}\n\n"


def _overview(a: LlmoAnalysis) -> list[str]:
    factors = ", ".join(str(f) for f in a.primary_limiting_factors) or "None identified"
    return [
        "=== LLMO ANALYSIS RESULTS ===",
        "",
        f"OVERALL LLMO SCORE: {_v(a.overall_llmo_score)}/100",
        f"POTENTIAL SCORE: {_v(a.potential_llmo_score)}/100",
        f"OPTIMIZATION PRIORITY: {_v(a.optimization_priority, 'MEDIUM')}",
        f"PRIMARY LIMITING FACTORS: {factors}",
        "",
    ]


def _score_sections(a: LlmoAnalysis) -> list[str]:
    out: list[str] = []
    if (ae := a.answer_engine_readiness) is not None:
        out += [
            "=== ANSWER ENGINE READINESS ===",
            f"Overall Score: {_v(ae.overall_score)}/100",
            f"Direct Answer Quality: {_v(ae.direct_answer_quality)}",
            f"Featured Snippet Potential: {_v(ae.featured_snippet_potential)}",
        ]
        if ae.answer_gaps:
            out.append(f"Answer Gaps: {', '.join(str(g) for g in ae.answer_gaps)}")
        out.append("")
    if (cq := a.content_quality_metrics) is not None:
        out += [
            "=== CONTENT QUALITY METRICS ===",
            f"Topic Coverage: {_v(cq.topic_coverage_score)}/100",
            f"Information Uniqueness: {_v(cq.information_uniqueness)}/100",
            f"Content Depth: {_v(cq.content_depth)}",
        ]
        if (e := cq.eeat_scores) is not None:
            out += [
                "",
                "E-E-A-T Scores:",
                f"• Experience: {_v(e.experience)}/100",
                f"• Expertise: {_v(e.expertise)}/100",
                f"• Authority: {_v(e.authoritativeness)}/100",
                f"• Trust: {_v(e.trustworthiness)}/100",
            ]
        out.append("")
    if (lo := a.llm_optimization_scores) is not None:
        out += [
            "=== LLM PARSING OPTIMIZATION ===",
            f"Chunk Quality: {_v(lo.chunk_quality)}/100",
            f"Context Independence: {_v(lo.context_independence)}/100",
            f"Semantic Clarity: {_v(lo.semantic_clarity)}/100",
            f"Overall LLM Readiness: {_v(lo.overall_llm_readiness)}/100",
            "",
        ]
    if (qp := a.query_performance_analysis) is not None:
        out += [
            "=== QUERY PERFORMANCE ===",
            f"Multi-Intent Coverage: {_v(qp.multi_intent_coverage)}",
            f"Voice Search Readiness: {_v(qp.voice_search_readiness)}",
            f"Query Expansion Opportunities: {_v(qp.query_expansion_opportunities)}",
            "",
        ]
    if (ca := a.competitive_analysis) is not None:
        out += [
            "=== COMPETITIVE ANALYSIS ===",
            f"Unique Value Score: {_v(ca.unique_value_score)}/100",
            f"Format Innovation: {_v(ca.format_innovation_score)}/100",
        ]
        if ca.missing_vs_competitors:
            out.append("Missing vs Competitors:")
            out += [f"• {item}" for item in ca.missing_vs_competitors]
        out.append("")
    if (ep := a.engagement_predictions) is not None:
        out += [
            "=== ENGAGEMENT PREDICTIONS ===",
            f"Estimated Dwell Time: {_v(ep.estimated_dwell_time)}",
            f"Shareability Score: {_v(ep.shareability_score)}/100",
            f"Reference Value: {_v(ep.reference_value)}/100",
            f"Return Visit Likelihood: {_v(ep.return_visit_likelihood)}",
            "",
        ]
    return out


def _schema_status(a: LlmoAnalysis) -> list[str]:
    sa = a.schema_analysis
    if sa is None:
        return []
    out = [f"SCHEMA COVERAGE SCORE: {_v(sa.schema_coverage_score)}%", ""]
    bm = sa.industry_benchmark
    if bm is not None and bm.average is not None:
        out += [
            "=== INDUSTRY SCHEMA BENCHMARK ===",
            f"Industry Average: {bm.average} schemas",
            f"Excellence Level: {_v(bm.excellent)} schemas",
            f"Your Count: {_v(bm.your_count)} schemas",
            f"Competitive Position: {_v(bm.competitive_position)}",
            "",
        ]
    out += ["=== SCHEMA IMPLEMENTATION STATUS ===", f"IMPLEMENTED: {_v(sa.implemented_count, '0')} schemas"]
    for s in sa.implemented_schemas:
        if isinstance(s, dict):
            out.append(f"  - {_v(s.get('type'))} ({_v(s.get('completeness_score'))}% complete)")
            if issues := s.get("validation_issues"):
                out.append(f"    Issues: {', '.join(str(i) for i in issues)}")
        else:
            out.append(f"  - {s}")
    if sa.schema_conflicts:
        out.append("")
        out.append("SCHEMA CONFLICTS:")
        out += [f"  - {_item_text(c, 'message', 'types')}" for c in sa.schema_conflicts]
    if _is_number(sa.total_opportunities) and _is_number(sa.implemented_count):
        out += ["", f"MISSING OPPORTUNITIES: {sa.total_opportunities - sa.implemented_count:g} schemas"]

    critical = [
        s for s in sa.missing_schemas if isinstance(s, dict) and s.get("priority") in ("CRITICAL", "HIGH")
    ]
    if critical:
        out += ["", "HIGH-VALUE MISSING SCHEMAS:"]
        for s in critical:
            out.append(f"  - {_v(s.get('type'))} ({s['priority']})")
            if s.get("supporting_content"):
                out.append(f"    → {s['supporting_content']}")
            if s.get("expected_impact"):
                out.append(f"    → Impact: {s['expected_impact']}")
    elif sa.missing_schemas:
        out += ["", "MISSING SCHEMAS:"]
        out += [f"  - {_item_text(s, 'type')}" for s in sa.missing_schemas[:_MAX_LISTED]]
    return out


def _roadmap(a: LlmoAnalysis) -> list[str]:
    out: list[str] = []
    rm = a.optimization_roadmap
    if rm is not None and rm.critical_fixes:
        out += ["", "=== CRITICAL FIXES ==="]
        for fix in rm.critical_fixes:
            if isinstance(fix, dict):
                out.append(f"• {_v(fix.get('issue'))}")
                out.append(f"  Fix: {_v(fix.get('fix'))} ({_v(fix.get('effort'))}, Impact: {_v(fix.get('impact'))})")
            else:
                out.append(f"• {fix}")
    if rm is not None and rm.quick_wins:
        out += ["", "=== QUICK WINS ==="]
        out += [f"• {_item_text(w, 'action', 'issue')}" for w in rm.quick_wins]
    if a.target_queries:
        out += ["", "=== TARGET QUERIES & COMPREHENSIVE IMPACT ==="]
        for idx, q in enumerate(a.target_queries[:_MAX_LISTED], 1):
            out.append(f'{idx}. "{_v(q.query)}"')
            out.append(f"   Current Score: {_v(q.current_score)}/5 → Potential: {_v(q.potential_score_with_optimization)}/5")
            if q.answer_quality:
                out.append(f"   Answer Quality: {q.answer_quality}")
            if q.limiting_factors:
                out.append(f"   Limited by: {', '.join(str(f) for f in q.limiting_factors)}")
    if a.generated_faqs:
        out += ["", "=== SUGGESTED FAQS FROM CONTENT ==="]
        for idx, faq in enumerate(a.generated_faqs[:_MAX_LISTED], 1):
            answer = faq.answer or ""
            preview = answer if len(answer) <= _FAQ_ANSWER_PREVIEW else answer[:_FAQ_ANSWER_PREVIEW] + "..."
            out.append(f"{idx}. Q: {_v(faq.question)}")
            out.append(f"   A: {preview}")
    if rm is not None and rm.content_additions:
        out += ["", "=== CONTENT ADDITIONS NEEDED ==="]
        for addition in rm.content_additions:
            if isinstance(addition, dict) and addition.get("issue"):
                out.append(f"• {addition['issue']}: {_v(addition.get('fix'), '')}")
            else:
                out.append(f"• {_item_text(addition, 'action')}")
    if a.key_recommendations:
        out += ["", "=== TOP RECOMMENDATIONS ==="]
        for idx, rec in enumerate(a.key_recommendations[:_MAX_LISTED], 1):
            if isinstance(rec, dict):
                out.append(f"{idx}. {_item_text(rec, 'action', 'recommendation')}")
                extras = [f"{k.title()}: {rec[k]}" for k in ("effort", "impact") if rec.get(k)]
                if extras:
                    out.append("   " + " | ".join(extras))
                if rec.get("details"):
                    out.append(f"   Details: {rec['details']}")
            else:
                out.append(f"{idx}. {rec}")
    return out


def _page_statistics(digest: PageDigest) -> list[str]:
    st, sig = digest.stats, digest.signals
    schemas = ", ".join(digest.schema_types) or "None"
    return [
        "",
        "=== COMPREHENSIVE PAGE STATISTICS ===",
        f"• Word Count: {st.word_count}",
        f"• Reading Time: {sig.engagement_signals.estimated_read_time} minutes",
        "• Content Structure:",
        f"  - H1 Tags: {st.h1_count}",
        f"  - H2 Tags: {st.h2_count}",
        f"  - H3 Tags: {st.h3_count}",
        f"  - Paragraphs: {st.p_count}",
        f"  - Lists: {st.list_count}",
        f"  - Tables: {st.table_count}",
        f"  - Images: {st.img_count}",
        "• LLM Signals:",
        f"  - Direct Answers: {sig.answer_engine.direct_answers}",
        f"  - Examples Provided: {sig.content_patterns.examples_count}",
        f"  - Statistics/Data: {sig.information_gain.statistics_count}",
        f"  - Expert Quotes: {sig.information_gain.expert_quotes}",
        f"  - External Links: {sig.authority_markers.external_citations}",
        f"  - Internal Links: {sig.authority_markers.internal_links}",
        "• Schema Status:",
        f"  - Current Schemas: {schemas}",
        f"  - FAQ Indicators: {st.faq_count}",
        f"  - Implied FAQ Patterns: {st.implied_faq_count}",
        f"  - Review Opportunities: {st.review_opportunities}",
        f"• Content Type: {digest.content_type}",
    ]


def format_report(analysis: LlmoAnalysis, digest: PageDigest) -> str:
    """Full text report: analyst scores, schema status, roadmap, page statistics, raw JSON."""
    lines = _overview(analysis) + _score_sections(analysis) + _schema_status(analysis)
    lines += _roadmap(analysis) + _page_statistics(digest)
    if digest.warnings:
        lines += ["", "=== DIGEST WARNINGS ==="] + [f"• {w}" for w in digest.warnings]
    raw = json.dumps(analysis.model_dump(mode="json", exclude_unset=True), ensure_ascii=False, indent=2)
    lines += ["", "", "=== RAW JSON DATA ===", raw]
    return _finish(lines)


def format_raw_report(text: str, error: str) -> str:
    """Report for a response that could not be parsed as analysis JSON."""
    return _finish(["=== LLMO ANALYSIS (RAW) ===", "", f"Parse Error: {error}", "", text[:_RAW_PREVIEW]])


def format_skip(skipped: SkippedPage) -> str:
    return _finish([f"=== SKIPPED: {skipped.message} ==="])
