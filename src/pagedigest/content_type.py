# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Content type classification: strict first-match decision list.

Priority: schema types → URL path → body text → ``general``.
No scoring or voting; the first rule that fires decides.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from urllib.parse import urlparse

from pagedigest import ContentType
from pagedigest.patterns import DEFAULT_REGISTRY, PatternRegistry

logger = logging.getLogger(__name__)


def _url_path(url: str) -> str:
    try:
        return urlparse(url).path.lower()
    except ValueError:
        return ""


def classify_content_type(
    types: Sequence[str],
    url: str,
    body_text: str,
    registry: PatternRegistry = DEFAULT_REGISTRY,
) -> ContentType:
    """Classify a page into one ``ContentType``.

    Args:
        types: implemented schema types (a table key matches any type name containing it)
        url: page URL; only its path is matched
        body_text: lower-cased body text
        registry: decision tables
    """
    for key, label in registry.schema_type_labels:
        if any(key in t for t in types):
            logger.debug("Content type %s from schema type %s", label, key)
            return label

    path = _url_path(url)
    for pattern, label in registry.url_rules:
        if pattern.found(path):
            logger.debug("Content type %s from URL path %s", label, path)
            return label

    for pattern, label in registry.body_rules:
        if pattern.found(body_text):
            logger.debug("Content type %s from body text", label)
            return label

    return ContentType.GENERAL
