# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""PageDigest exception hierarchy.

All PageDigest-specific errors inherit from PageDigestError, allowing callers
to catch the base class for any failure or specific subclasses for targeted
handling. Only InputShapeError and ResourceExhaustionError abort a document;
the per-item errors are logged where they occur and never propagate.
"""

from __future__ import annotations


class PageDigestError(Exception):
    """Base exception for all PageDigest errors."""


class InputShapeError(PageDigestError):
    """Document snapshot lacks expected structure (unparseable, no body)."""


class ResourceExhaustionError(PageDigestError):
    """Document exceeds resource limits (HTML size)."""


class MalformedStructuredDataError(PageDigestError):
    """A single JSON-LD block failed to parse. Contained per block."""

    def __init__(self, message: str, *, block_index: int = -1) -> None:
        super().__init__(message)
        self.block_index = block_index


class PatternEvaluationError(PageDigestError):
    """A dynamically built pattern is invalid. Degrades to substring matching."""

    def __init__(self, message: str, *, source: str = "") -> None:
        super().__init__(message)
        self.source = source


class ReasoningError(PageDigestError):
    """Remote analysis call failed or returned an unusable response."""

    def __init__(self, message: str, *, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code
