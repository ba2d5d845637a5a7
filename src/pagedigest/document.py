# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Read-only document snapshot over an lxml HTML tree.

Every component receives the same ``DocumentSnapshot`` and only queries it
(XPath, text extraction); nothing here or downstream mutates the tree.
Text inside script/style/noscript/template subtrees never counts as content.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from urllib.parse import urlparse

import lxml.html
from lxml import etree

from pagedigest.errors import InputShapeError

logger = logging.getLogger(__name__)

_NON_CONTENT_TAGS = ("script", "style", "noscript", "template")

_TEXT_XPATH = etree.XPath(
    "descendant-or-self::text()[not(" + " or ".join(f"ancestor::{t}" for t in _NON_CONTENT_TAGS) + ")]"
)

_WS_RE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class DocumentSnapshot:
    """Immutable view of one rendered page.

    ``body_text`` keeps the original case (paragraph-level scanners are
    case-sensitive); ``body_text_lower`` feeds the whole-body scanners.
    """

    url: str
    host: str
    root: lxml.html.HtmlElement
    body: lxml.html.HtmlElement
    markup: str
    body_text: str
    body_text_lower: str
    word_count: int

    def xpath(self, expr: str) -> list:
        """Evaluate *expr* against the document root."""
        return self.root.xpath(expr)

    def elements(self, *tags: str) -> list[lxml.html.HtmlElement]:
        """All elements with any of *tags*, in document order."""
        return self.root.xpath(" | ".join(f"//{t}" for t in tags))

    def select_distinct(self, xpaths: tuple[str, ...]) -> list[lxml.html.HtmlElement]:
        """Distinct elements matched by any of *xpaths*, in document order."""
        if not xpaths:
            return []
        return [el for el in self.root.xpath(" | ".join(xpaths)) if isinstance(el.tag, str)]

    @property
    def title(self) -> str:
        return normalize_ws(self.root.xpath("string((//title)[1])"))

    @property
    def meta_description(self) -> str:
        for meta in self.root.iter("meta"):
            if (meta.get("name") or "").strip().lower() == "description":
                return normalize_ws(meta.get("content") or "")
        return ""


# --- Text helpers ---


def text_of(el: lxml.html.HtmlElement) -> str:
    """Visible text of *el* (textContent semantics minus non-content subtrees)."""
    return "".join(_TEXT_XPATH(el))


def normalize_ws(text: str) -> str:
    """Collapse whitespace runs to single spaces and strip."""
    return _WS_RE.sub(" ", text).strip()


def count_words(text: str) -> int:
    return len(text.split())


def tag_of(el: etree._Element) -> str:
    return el.tag.lower() if isinstance(el.tag, str) else ""


def host_of(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


# --- Construction ---


def parse_document(html: str | bytes, url: str) -> DocumentSnapshot:
    """Parse raw HTML into a snapshot.

    Raises:
        InputShapeError: HTML is empty, unparseable, or has no <body>.
    """
    if not html or not html.strip():
        raise InputShapeError("Document is empty")
    try:
        root = lxml.html.document_fromstring(html)
    except (etree.ParserError, etree.ParseError, ValueError) as e:
        raise InputShapeError(f"Document could not be parsed: {e}") from e
    markup = html if isinstance(html, str) else html.decode("utf-8", errors="replace")
    return snapshot_from_tree(root, url, markup=markup)


def snapshot_from_tree(root: lxml.html.HtmlElement, url: str, *, markup: str | None = None) -> DocumentSnapshot:
    """Wrap an already-parsed tree. *markup* defaults to the tree's serialization."""
    bodies = root.xpath("//body")
    if not bodies:
        raise InputShapeError("Document has no <body>")
    body = bodies[0]
    if markup is None:
        markup = etree.tostring(root, encoding="unicode", method="html")
    body_text = text_of(body)
    return DocumentSnapshot(
        url=url,
        host=host_of(url),
        root=root,
        body=body,
        markup=markup,
        body_text=body_text,
        body_text_lower=body_text.lower(),
        word_count=count_words(body_text),
    )
