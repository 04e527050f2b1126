from __future__ import annotations

import re
from typing import List

NON_TOKEN_RE = re.compile(r"[^a-z0-9\s]")
WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(value: object) -> str:
    """Lowercase, strip punctuation and collapse whitespace."""
    if value is None:
        return ""
    if not isinstance(value, str):
        value = str(value)
    normalized = value.lower()
    normalized = NON_TOKEN_RE.sub("", normalized)
    normalized = WHITESPACE_RE.sub(" ", normalized)
    return normalized.strip()


def tokenize(value: object) -> List[str]:
    """
    Return the ordered comparison tokens for a piece of text.

    Empty and punctuation-only input yields an empty list rather than a
    single empty-string token.
    """
    normalized = normalize_text(value)
    return [token for token in normalized.split(" ") if token]
