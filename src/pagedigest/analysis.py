# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Pydantic models for the analyst's JSON response.

Every field is optional and unknown keys are kept: the model is asked for a
fixed shape but does not always follow it, and a partial answer is still
worth reporting. Scores accept numbers or strings ("85", "high").
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

Score = int | float | str | None


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="allow")


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


class AnswerEngineReadiness(_Lenient):
    overall_score: Score = None
    direct_answer_quality: str | None = None
    featured_snippet_potential: str | None = None
    answer_gaps: list[Any] = Field(default_factory=list)


class EeatScores(_Lenient):
    experience: Score = None
    expertise: Score = None
    authoritativeness: Score = None
    trustworthiness: Score = None


class ContentQualityMetrics(_Lenient):
    topic_coverage_score: Score = None
    information_uniqueness: Score = None
    content_depth: str | None = None
    eeat_scores: EeatScores | None = None


class LlmOptimizationScores(_Lenient):
    chunk_quality: Score = None
    context_independence: Score = None
    semantic_clarity: Score = None
    overall_llm_readiness: Score = None


class QueryPerformanceAnalysis(_Lenient):
    multi_intent_coverage: str | None = None
    primary_intents_covered: list[Any] = Field(default_factory=list)
    query_expansion_opportunities: Score = None
    voice_search_readiness: str | None = None


class CompetitiveAnalysis(_Lenient):
    unique_value_score: Score = None
    content_differentiation: list[Any] = Field(default_factory=list)
    missing_vs_competitors: list[Any] = Field(default_factory=list)
    format_innovation_score: Score = None


class IndustryBenchmarkView(_Lenient):
    average: Score = None
    excellent: Score = None
    your_count: Score = None
    competitive_position: str | None = None


class SchemaAnalysis(_Lenient):
    implemented_schemas: list[Any] = Field(default_factory=list)
    missing_schemas: list[Any] = Field(default_factory=list)
    schema_conflicts: list[Any] = Field(default_factory=list)
    total_opportunities: Score = None
    implemented_count: Score = None
    schema_coverage_score: Score = None
    industry_benchmark: IndustryBenchmarkView | None = None


class EngagementPredictions(_Lenient):
    estimated_dwell_time: Score = None
    shareability_score: Score = None
    reference_value: Score = None
    return_visit_likelihood: str | None = None


class TargetQuery(_Lenient):
    query: str | None = None
    current_score: Score = None
    potential_score_with_optimization: Score = None
    limiting_factors: list[Any] = Field(default_factory=list)
    best_passages: list[Any] = Field(default_factory=list)
    answer_quality: str | None = None


class OptimizationRoadmap(_Lenient):
    critical_fixes: list[Any] = Field(default_factory=list)
    quick_wins: list[Any] = Field(default_factory=list)
    content_additions: list[Any] = Field(default_factory=list)
    structural_improvements: list[Any] = Field(default_factory=list)
    schema_implementations: list[Any] = Field(default_factory=list)


class GeneratedFaq(_Lenient):
    question: str | None = None
    answer: str | None = None


# ---------------------------------------------------------------------------
# Top level
# ---------------------------------------------------------------------------


class LlmoAnalysis(_Lenient):
    """Scored analysis returned by the reasoning step."""

    primary_topic: str | None = Field(None, description="Main topic/entity of the page")
    content_type_confirmed: str | None = None
    industry_type: str | None = Field(None, description="financial|ecommerce|local|saas|general")
    answer_engine_readiness: AnswerEngineReadiness | None = None
    content_quality_metrics: ContentQualityMetrics | None = None
    llm_optimization_scores: LlmOptimizationScores | None = None
    query_performance_analysis: QueryPerformanceAnalysis | None = None
    competitive_analysis: CompetitiveAnalysis | None = None
    schema_analysis: SchemaAnalysis | None = None
    engagement_predictions: EngagementPredictions | None = None
    target_queries: list[TargetQuery] = Field(default_factory=list)
    optimization_roadmap: OptimizationRoadmap | None = None
    overall_llmo_score: Score = None
    potential_llmo_score: Score = None
    optimization_priority: str | None = None
    primary_limiting_factors: list[Any] = Field(default_factory=list)
    generated_faqs: list[GeneratedFaq] = Field(default_factory=list)
    key_recommendations: list[Any] = Field(default_factory=list)


def parse_analysis(text: str) -> LlmoAnalysis:
    """Parse the analyst's JSON text.

    Raises:
        ValueError: not JSON, or not an object of the expected shape
            (``pydantic.ValidationError`` is a ValueError).
    """
    return LlmoAnalysis.model_validate_json(text)
