# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import pagedigest  # noqa: F401
except ImportError:
    raise ImportError("pagedigest is not installed. Run: pip install -e '.[dev]'") from None

import os

import pytest


def pytest_collection_modifyitems(config, items):
    """Skip network-marked tests unless PAGEDIGEST_NETWORK_TESTS=1."""
    if os.environ.get("PAGEDIGEST_NETWORK_TESTS") == "1":
        return
    skip_marker = pytest.mark.skip(reason="network tests disabled (set PAGEDIGEST_NETWORK_TESTS=1)")
    for item in items:
        if "network" in item.keywords:
            item.add_marker(skip_marker)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep host configuration out of the tests."""
    for name in list(os.environ):
        if name.startswith("PAGEDIGEST_") and name != "PAGEDIGEST_NETWORK_TESTS":
            monkeypatch.delenv(name)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
