# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""RFC 9457 Problem Details for digest and analysis failures.

Maps internal exceptions to structured problem detail objects so a host
never sees an uncaught exception, only a ``ProblemDetail`` value. The module
is a near-leaf dependency (stdlib + errors.py) and can be imported from any
layer.

Key public API:

- ``ProblemType``   — error taxonomy (StrEnum).
- ``ProblemDetail`` — frozen dataclass (→ JSON / CLI text).
- ``sanitize_detail()`` — scrub secrets & paths from error messages.
- ``from_exception()`` — build a ``ProblemDetail`` from any exception.

Type URI namespace: ``https://www.retio.ai/pagedigest/errors/{slug}``
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

# ── Constants ────────────────────────────────────────────────────────

_ERROR_BASE = "https://www.retio.ai/pagedigest/errors"

MAX_DETAIL_LENGTH = 200

# ── ProblemType taxonomy ─────────────────────────────────────────────


class ProblemType(StrEnum):
    """Error taxonomy for PageDigest."""

    # Document (fatal for that document only)
    INPUT_SHAPE = "input-shape"
    RESOURCE_EXHAUSTED = "resource-exhausted"

    # Contained per item (surface only when raised directly)
    MALFORMED_STRUCTURED_DATA = "malformed-structured-data"
    PATTERN_EVALUATION = "pattern-evaluation"

    # Outer collaborators
    INVALID_CONFIGURATION = "invalid-configuration"
    REASONING_FAILED = "reasoning-failed"
    INTERNAL = "internal"

    @property
    def uri(self) -> str:
        """Full type URI for RFC 9457 ``type`` field."""
        return f"{_ERROR_BASE}/{self.value}"


# ── Per-type metadata: (status, title, cli_hint) ─────────────────────

_TYPE_METADATA: dict[ProblemType, tuple[int, str, str]] = {
    ProblemType.INPUT_SHAPE: (422, "Invalid Document", "Check that the file is a complete HTML page with a <body>."),
    ProblemType.RESOURCE_EXHAUSTED: (413, "Resource Limit Exceeded", "The page is too large. Save a lighter page."),
    ProblemType.MALFORMED_STRUCTURED_DATA: (422, "Malformed Structured Data", ""),
    ProblemType.PATTERN_EVALUATION: (500, "Pattern Evaluation Failed", ""),
    ProblemType.INVALID_CONFIGURATION: (400, "Invalid Configuration", "Check the PAGEDIGEST_* environment variables."),
    ProblemType.REASONING_FAILED: (502, "Analysis Failed", "Check GEMINI_API_KEY and network access, then retry."),
    ProblemType.INTERNAL: (500, "Internal Error", ""),
}

# ── Secret sanitization patterns ─────────────────────────────────────

_SECRET_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"AIza[0-9A-Za-z_-]{20,}"), "<redacted>"),
    (re.compile(r"sk-[a-zA-Z0-9_-]{8,}"), "<redacted>"),
    (re.compile(r"Bearer\s+\S+"), "Bearer <redacted>"),
    (
        re.compile(
            r"(?:API_KEY|SECRET|TOKEN|PASSWORD|CREDENTIAL)\s*[=:]\s*\S+",
            re.IGNORECASE,
        ),
        "<redacted>",
    ),
    (re.compile(r"([?&]key=)[^&\s]+"), r"\1<redacted>"),
    (re.compile(r"://[^@\s]+@"), "://<redacted>@"),
]

_PATH_PATTERN = re.compile(
    r"(/(?:Users|home|tmp|var|etc|opt|root|srv|proc|sys|usr|Library"
    r"|Applications|private|snap|mnt|media|nix)/[\w./-]+"
    r"|[A-Z]:\\[\w.\\-]+)"
)


def sanitize_detail(text: str) -> str:
    """Scrub secrets and filesystem paths from *text*.

    Applies ``_SECRET_PATTERNS`` and ``_PATH_PATTERN``, then truncates
    to ``MAX_DETAIL_LENGTH`` characters.
    """
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    text = _PATH_PATTERN.sub("<path>", text)
    if len(text) > MAX_DETAIL_LENGTH:
        text = text[:MAX_DETAIL_LENGTH] + "..."
    return text


def _sanitize_extensions(extensions: dict[str, Any]) -> dict[str, Any]:
    """Sanitize string values in extensions dict."""
    result: dict[str, Any] = {}
    for key, value in extensions.items():
        if isinstance(value, str):
            result[key] = sanitize_detail(value)
        else:
            result[key] = value
    return result


# ── ProblemDetail dataclass ──────────────────────────────────────────

# Standard RFC 9457 fields that extensions must never shadow.
_STANDARD_FIELDS = frozenset({"type", "title", "status", "detail", "instance"})


@dataclass(frozen=True, slots=True)
class ProblemDetail:
    """RFC 9457 Problem Detail object.

    Immutable representation of a structured error. Supports
    serialisation to JSON dict, JSON string and CLI text.
    """

    type: str = "about:blank"
    title: str = ""
    status: int = 500
    detail: str = ""
    instance: str = ""
    extensions: dict[str, Any] = field(default_factory=dict)

    # -- Serialisation --

    def to_dict(self) -> dict[str, Any]:
        """RFC 9457 JSON dict. Empty optional fields omitted, extensions merged at top level."""
        d: dict[str, Any] = {"type": self.type, "status": self.status}
        if self.title:
            d["title"] = self.title
        if self.detail:
            d["detail"] = self.detail
        if self.instance:
            d["instance"] = self.instance
        for k, v in self.extensions.items():
            if k not in _STANDARD_FIELDS:
                d[k] = v
        return d

    def to_json(self) -> str:
        """JSON string (``ensure_ascii=False``)."""
        return json.dumps(self.to_dict(), ensure_ascii=False)

    def to_cli_text(self) -> str:
        """Human-friendly error message.

        Format::

            Error: <detail>
            Hint: <hint>
        """
        hint = _CLI_HINTS.get(self.type, "")
        lines = [f"Error: {self.detail}"]
        if hint:
            lines.append(f"Hint: {hint}")
        return "\n".join(lines)


_CLI_HINTS: dict[str, str] = {pt.uri: hint for pt, (_, _, hint) in _TYPE_METADATA.items() if hint}


# ── Exception → ProblemType mapping ──────────────────────────────────


def _exception_type_map() -> dict[type, ProblemType]:
    """Lazy-build mapping from exception classes to ProblemType."""
    from .errors import (
        InputShapeError,
        MalformedStructuredDataError,
        PatternEvaluationError,
        ReasoningError,
        ResourceExhaustionError,
    )

    return {
        InputShapeError: ProblemType.INPUT_SHAPE,
        ResourceExhaustionError: ProblemType.RESOURCE_EXHAUSTED,
        MalformedStructuredDataError: ProblemType.MALFORMED_STRUCTURED_DATA,
        PatternEvaluationError: ProblemType.PATTERN_EVALUATION,
        ReasoningError: ProblemType.REASONING_FAILED,
    }


def build(problem_type: ProblemType, detail: str, *, instance: str = "", **extensions: Any) -> ProblemDetail:
    """Build a ProblemDetail of *problem_type* with a sanitized *detail*."""
    status, title, _ = _TYPE_METADATA[problem_type]
    return ProblemDetail(
        type=problem_type.uri,
        title=title,
        status=status,
        detail=sanitize_detail(detail),
        instance=instance,
        extensions=_sanitize_extensions(extensions),
    )


def from_exception(
    exc: BaseException,
    *,
    instance: str = "",
    extensions: dict[str, Any] | None = None,
) -> ProblemDetail:
    """Build a ProblemDetail from an exception.

    Maps known PageDigest exception types to specific ProblemType values.
    ``ValueError`` (config validation) maps to INVALID_CONFIGURATION; any
    other exception becomes INTERNAL with only its class name and a
    sanitized message.
    """
    from .errors import ReasoningError

    ext = dict(extensions) if extensions else {}
    for exc_type, problem_type in _exception_type_map().items():
        if isinstance(exc, exc_type):
            if isinstance(exc, ReasoningError) and exc.status_code:
                ext.setdefault("upstream_status", exc.status_code)
            return build(problem_type, str(exc), instance=instance, **ext)

    if isinstance(exc, ValueError):
        return build(ProblemType.INVALID_CONFIGURATION, str(exc), instance=instance, **ext)

    message = str(exc)
    detail = f"{type(exc).__name__}: {message}" if message else type(exc).__name__
    return build(ProblemType.INTERNAL, detail, instance=instance, **ext)
