# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Token counting for prompt budgets (tiktoken cl100k_base).

The encoding is loaded on first use: tiktoken downloads the BPE file the
first time, so importing the package never touches the network.
"""

from __future__ import annotations

import functools

import tiktoken


@functools.lru_cache(maxsize=1)
def _get_encoder() -> tiktoken.Encoding:
    return tiktoken.get_encoding("cl100k_base")


def count_tokens(text: str) -> int:
    """Count tokens using cl100k_base."""
    return len(_get_encoder().encode(text))
