# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Gemini ``generateContent`` client for the analysis step.

Synchronous httpx client; one request per page. The API key travels in the
``x-goog-api-key`` header, never in the URL. Timeouts and HTTP failures
become ``ReasoningError``; a response whose text is not valid analysis JSON
is returned as a raw result instead of an error.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from pagedigest.analysis import LlmoAnalysis, parse_analysis
from pagedigest.config import ReasonerConfig
from pagedigest.errors import ReasoningError

logger = logging.getLogger(__name__)

_SNIPPET_LEN = 500


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """Outcome of one analysis call: parsed model, or raw text plus the parse error."""

    text: str
    analysis: LlmoAnalysis | None = None
    parse_error: str = ""

    @property
    def parsed(self) -> bool:
        return self.analysis is not None


def _snippet(value: Any, limit: int = _SNIPPET_LEN) -> str:
    text = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)
    return text[:limit]


def extract_text(data: Any) -> str:
    """Walk candidates → content → parts → text.

    Raises:
        ReasoningError: at the first missing or malformed level.
    """
    if not isinstance(data, dict):
        raise ReasoningError("Response is not a JSON object")
    candidates = data.get("candidates")
    if candidates is None:
        raise ReasoningError(f"No candidates in response. Full response: {_snippet(data, 1000)}")
    if not isinstance(candidates, list) or not candidates:
        raise ReasoningError(f"Candidates is not an array or is empty. Response: {_snippet(data, 1000)}")
    candidate = candidates[0]
    if not isinstance(candidate, dict):
        raise ReasoningError("First candidate is undefined")
    content = candidate.get("content")
    if not isinstance(content, dict):
        raise ReasoningError(f"Candidate has no content. Candidate: {_snippet(candidate)}")
    parts = content.get("parts")
    if parts is None:
        raise ReasoningError(f"Content has no parts. Content: {_snippet(content)}")
    if not isinstance(parts, list) or not parts:
        raise ReasoningError(f"Parts is not an array or is empty. Content: {_snippet(content)}")
    part = parts[0]
    if not isinstance(part, dict):
        raise ReasoningError("First part is undefined")
    text = part.get("text")
    if not isinstance(text, str) or not text:
        raise ReasoningError(f"Text is empty or undefined. Part: {_snippet(part)}")
    return text


class GeminiReasoner:
    """Sends analyst prompts to Gemini and returns the parsed analysis."""

    def __init__(self, config: ReasonerConfig, *, client: httpx.Client | None = None) -> None:
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.Client(
            base_url=config.api_base,
            timeout=httpx.Timeout(config.timeout_s, connect=10.0),
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> GeminiReasoner:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _payload(self, prompt: str) -> dict[str, Any]:
        cfg = self.config
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": cfg.temperature,
                "topK": cfg.top_k,
                "topP": cfg.top_p,
                "maxOutputTokens": cfg.max_output_tokens,
                "responseMimeType": "application/json",
            },
        }

    def generate(self, prompt: str) -> str:
        """POST *prompt* and return the first candidate's text.

        Raises:
            ReasoningError: missing key, transport failure, non-200 status,
                or a response without candidate text.
        """
        if not self.config.api_key:
            raise ReasoningError("GEMINI_API_KEY is not set")
        url = f"{self.config.api_base.rstrip('/')}/models/{self.config.model}:generateContent"
        try:
            response = self._client.post(
                url,
                json=self._payload(prompt),
                headers={"x-goog-api-key": self.config.api_key},
            )
        except httpx.TimeoutException as e:
            raise ReasoningError(f"Request timed out after {self.config.timeout_s:g}s") from e
        except httpx.RequestError as e:
            raise ReasoningError(f"Request error: {e}") from e

        if response.status_code != 200:
            raise ReasoningError(
                f"API Error {response.status_code}: {response.text[:_SNIPPET_LEN]}",
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as e:
            raise ReasoningError(
                f"Failed to parse API response: {e}. Raw response: {response.text[:_SNIPPET_LEN]}",
                status_code=response.status_code,
            ) from e
        return extract_text(data)

    def analyze(self, prompt: str) -> AnalysisResult:
        """generate() plus validation into ``LlmoAnalysis``; unparseable text is kept raw."""
        text = self.generate(prompt)
        try:
            analysis = parse_analysis(text)
        except ValueError as e:
            logger.warning("Analysis response is not valid JSON: %s", e)
            return AnalysisResult(text=text, parse_error=str(e))
        logger.info("Analysis received: overall LLMO score %s", analysis.overall_llmo_score)
        return AnalysisResult(text=text, analysis=analysis)
