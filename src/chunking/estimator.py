# src/chunking/estimator.py — v1
"""Token cost estimation from a fixed characters-per-token ratio."""

from __future__ import annotations

import math

DEFAULT_CHARS_PER_TOKEN = 4
DEFAULT_MAX_TOKENS = 3000


def estimate_tokens(text: str, chars_per_token: int = DEFAULT_CHARS_PER_TOKEN) -> int:
    """Approximate token count: ceil(len(text) / chars_per_token).

    Deterministic and monotonic in the text length, so identical content
    always re-chunks identically.
    """
    if chars_per_token <= 0:
        raise ValueError("chars_per_token must be > 0")
    return math.ceil(len(text) / chars_per_token)
