# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Host-side runner: one page in, one report (or problem) out.

The host provides a ``ResultSink``; every outcome lands there. Skips and
reports go to ``sink.data``; failures go to ``sink.error`` as RFC 9457
problem JSON. Nothing raises past ``run_page_analysis``.
"""

from __future__ import annotations

import logging
from typing import Protocol

from pagedigest import SkippedPage
from pagedigest.config import DigestConfig
from pagedigest.digest import build_page_digest
from pagedigest.patterns import DEFAULT_REGISTRY, PatternRegistry
from pagedigest.problem_details import ProblemDetail, from_exception
from pagedigest.prompt import build_analysis_prompt
from pagedigest.reasoner import AnalysisResult
from pagedigest.report import format_raw_report, format_report, format_skip

logger = logging.getLogger(__name__)


class ResultSink(Protocol):
    def data(self, text: str) -> None: ...

    def error(self, text: str) -> None: ...


class Reasoner(Protocol):
    def analyze(self, prompt: str) -> AnalysisResult: ...


class CollectingSink:
    """In-memory sink; keeps every data and error message in arrival order."""

    def __init__(self) -> None:
        self.outputs: list[str] = []
        self.errors: list[str] = []

    def data(self, text: str) -> None:
        self.outputs.append(text)

    def error(self, text: str) -> None:
        self.errors.append(text)


def run_page_analysis(
    html: str | bytes,
    url: str,
    sink: ResultSink,
    *,
    reasoner: Reasoner,
    config: DigestConfig | None = None,
    registry: PatternRegistry = DEFAULT_REGISTRY,
    max_prompt_tokens: int | None = None,
) -> ProblemDetail | None:
    """Pre-filter, digest, prompt, reason, report.

    Returns:
        The problem reported to ``sink.error``, or None on success or skip.
    """
    try:
        result = build_page_digest(html, url, config, registry)
        if isinstance(result, SkippedPage):
            sink.data(format_skip(result))
            return None
        prompt = build_analysis_prompt(result, max_prompt_tokens=max_prompt_tokens, registry=registry)
        outcome = reasoner.analyze(prompt)
        if outcome.analysis is None:
            sink.data(format_raw_report(outcome.text, outcome.parse_error))
        else:
            sink.data(format_report(outcome.analysis, result))
        return None
    except Exception as e:  # noqa: BLE001
        problem = from_exception(e, instance=url)
        logger.warning("Page analysis failed for %s: %s", url, problem.detail)
        sink.error(problem.to_json())
        return problem
