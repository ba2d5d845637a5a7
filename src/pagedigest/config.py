# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Explicit configuration values threaded through every digest call.

Nothing in the engine reads ambient state: callers build a ``DigestConfig``
(directly or via ``from_env``) and pass it down.
"""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping

DEFAULT_SKIP_URL_PATTERNS: tuple[str, ...] = ("/tag/", "/author/", "/page/", "?", "#")

MAX_HTML_SIZE_BYTES = 5 * 1024 * 1024

_ENV_PREFIX = "PAGEDIGEST_"


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(_ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{_ENV_PREFIX}{name} must be an integer, got {raw!r}") from None


@dataclasses.dataclass(frozen=True, slots=True, kw_only=True)
class DigestConfig:
    """Bounds and gates for one digest run."""

    max_passages: int = 100
    min_words: int = 10
    max_chunk_length: int = 500
    min_word_count_to_analyze: int = 100
    skip_url_patterns: tuple[str, ...] = DEFAULT_SKIP_URL_PATTERNS
    max_html_bytes: int = MAX_HTML_SIZE_BYTES
    reference_year: int | None = None  # None = current UTC year

    def __post_init__(self) -> None:
        for name in ("max_passages", "min_words", "max_chunk_length", "max_html_bytes"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.min_word_count_to_analyze < 0:
            raise ValueError("min_word_count_to_analyze must be >= 0")
        if not isinstance(self.skip_url_patterns, tuple):
            object.__setattr__(self, "skip_url_patterns", tuple(self.skip_url_patterns))

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> DigestConfig:
        """Build a config from ``PAGEDIGEST_*`` variables, defaults elsewhere."""
        env = os.environ if env is None else env
        skip_raw = env.get(_ENV_PREFIX + "SKIP_PATTERNS")
        skip = (
            tuple(p for p in (s.strip() for s in skip_raw.split(",")) if p)
            if skip_raw is not None
            else DEFAULT_SKIP_URL_PATTERNS
        )
        return cls(
            max_passages=_env_int(env, "MAX_PASSAGES", 100),
            min_words=_env_int(env, "MIN_WORDS", 10),
            max_chunk_length=_env_int(env, "MAX_CHUNK_LENGTH", 500),
            min_word_count_to_analyze=_env_int(env, "MIN_WORD_COUNT", 100),
            skip_url_patterns=skip,
        )


@dataclasses.dataclass(frozen=True, slots=True, kw_only=True)
class ReasonerConfig:
    """Settings for the remote analysis call."""

    api_key: str = dataclasses.field(default="", repr=False)
    model: str = "gemini-2.0-flash"
    api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    temperature: float = 0.2
    max_output_tokens: int = 4096
    top_k: int = 40
    top_p: float = 0.95
    timeout_s: float = 120.0

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> ReasonerConfig:
        env = os.environ if env is None else env
        return cls(
            api_key=env.get("GEMINI_API_KEY", ""),
            model=env.get(_ENV_PREFIX + "MODEL", "gemini-2.0-flash"),
        )
