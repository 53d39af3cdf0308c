"""Free-text query tokenizer.

Splits a search string into double-quoted phrases and bare words.
Quoted spans keep their inner whitespace and any backslash escapes
verbatim; everything else is split on whitespace runs.
"""

from __future__ import annotations

import re

# A quoted span (with backslash escapes) or a run of non-whitespace
_TOKEN_RE = re.compile(r'"((?:\\.|[^\\"])*)"|(\S+)')


def normalize(raw: str) -> str:
    """Lower-case and trim a raw query string."""
    return raw.strip().lower()


def tokenize(raw: str) -> list[str]:
    """Split a query into tokens in left-to-right order.

    Args:
        raw: Raw search text as typed by the user.

    Returns:
        Phrase and word tokens, lower-cased, blanks removed.
        Empty list for blank input.
    """
    text = normalize(raw)
    if not text:
        return []

    tokens: list[str] = []
    for match in _TOKEN_RE.finditer(text):
        phrase, word = match.groups()
        token = phrase if phrase is not None else word
        if token and token.strip():
            tokens.append(token)
    return tokens
