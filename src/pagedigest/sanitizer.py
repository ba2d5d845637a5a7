# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Text cleanup for digest fields and prompt-injection defense.

Page text ends up verbatim inside the analyst prompt, so it passes three layers:

1. clean_text() — every digest text field: control chars, ANSI, whitespace, length cap
2. sanitize_for_prompt() / sanitize_block() — prompt rendering only: also strips
   role prefixes and boundary tags that could steer the analyst model
3. wrap_page_content() — nonce-tagged markers around untrusted page content
"""

from __future__ import annotations

import re
import secrets

# Zero-width chars, bidi overrides, interlinear annotations, C0/C1 controls
_CONTROL_CHAR_RE = re.compile(
    r"[\u200B-\u200F\u202A-\u202E\u2060-\u2069\uFEFF\uFFF9-\uFFFB"
    r"\u0000-\u0008\u000B\u000C\u000E-\u001F\u007F-\u009F]"
)

_ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*[a-zA-Z]")

# "[SYSTEM: ...]", "ASSISTANT:" and similar role markers
_ROLE_PREFIX_RE = re.compile(
    r"\[?\s*(?:SYSTEM|ASSISTANT|USER|HUMAN|AI|ADMIN|INSTRUCTION|OVERRIDE"
    r"|IMPORTANT|IGNORE|COMMAND)\s*[:\]]\s*",
    re.IGNORECASE,
)

_BOUNDARY_TAG_RE = re.compile(r"<\s*/?\s*page_content[\w]*[^>]*>", re.IGNORECASE)

_WS_RE = re.compile(r"\s+")


def truncate(text: str, max_len: int) -> str:
    """Cut *text* to at most *max_len* characters. Never pads."""
    return text if len(text) <= max_len else text[:max_len]


def clean_text(text: str, max_len: int) -> str:
    """Normalize a single-line digest field and cap its length."""
    if not text:
        return ""
    text = _ANSI_ESCAPE_RE.sub("", text)
    text = _CONTROL_CHAR_RE.sub("", text)
    text = _WS_RE.sub(" ", text).strip()
    return truncate(text, max_len)


def sanitize_for_prompt(text: str, max_len: int = 1000) -> str:
    """clean_text() plus removal of role prefixes and boundary tags."""
    text = clean_text(text, max_len)
    text = _ROLE_PREFIX_RE.sub("", text)
    text = _BOUNDARY_TAG_RE.sub("", text)
    return _WS_RE.sub(" ", text).strip()


def sanitize_block(text: str, max_len: int = 50_000) -> str:
    """Sanitize a multi-line block (JSON dumps). Newlines and tabs survive."""
    if not text:
        return ""
    text = _ANSI_ESCAPE_RE.sub("", text)
    text = _CONTROL_CHAR_RE.sub("", text)
    text = _BOUNDARY_TAG_RE.sub("", text)
    return truncate(text, max_len)


def wrap_page_content(text: str, source_url: str) -> str:
    """Wrap untrusted page content in markers the page cannot forge.

    The tag name carries a random nonce (``<page_content_3fa1...>``), so a
    closing tag embedded in page text never matches.
    """
    tag = f"page_content_{secrets.token_hex(8)}"
    text = _BOUNDARY_TAG_RE.sub("", text)
    return f'<{tag} source="{_escape_attr(source_url)}">\n{text}\n</{tag}>'


def _escape_attr(value: str) -> str:
    return value.replace("&", "&amp;").replace('"', "&quot;").replace("<", "&lt;").replace(">", "&gt;")
