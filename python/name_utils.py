"""
Name normalization and similarity scoring

Canonical form: lowercase, Unicode letters/digits/whitespace only,
whitespace collapsed to single spaces, ends trimmed. Similarity is a
normalized Levenshtein score in [0, 1] computed on the token-sorted
canonical form, so name-part order does not affect matching.
"""

import re
import unicodedata
from typing import Any

from rapidfuzz.distance import Levenshtein

_WHITESPACE_RUN = re.compile(r'\s+')


def _is_name_char(char: str) -> bool:
    """Unicode letter (L*), Unicode number (N*) or whitespace"""
    return char.isspace() or unicodedata.category(char)[0] in ('L', 'N')


def canonicalize(raw: Any) -> str:
    """Normalize a raw name for comparison

    Non-string input yields an empty string.

    >>> canonicalize("  O'Brien,  José ")
    'o brien josé'
    """
    if not isinstance(raw, str):
        return ''
    lowered = raw.lower()
    cleaned = ''.join(c if _is_name_char(c) else ' ' for c in lowered)
    return _WHITESPACE_RUN.sub(' ', cleaned).strip()


def reordered_canonical(raw: Any) -> str:
    """Canonical form with tokens sorted, so "Smith Alex" == "Alex Smith"."""
    tokens = [t for t in canonicalize(raw).split(' ') if t]
    return ' '.join(sorted(tokens))


def edit_distance(a: str, b: str) -> int:
    """Minimum single-character insertions, deletions and substitutions"""
    return Levenshtein.distance(a, b)


def similarity(a: str, b: str) -> float:
    """Levenshtein similarity between two strings in [0, 1]

    Identical strings (including two empty strings) score 1; a non-empty
    string against an empty one scores 0.
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    max_len = max(len(a), len(b))
    return 1.0 - edit_distance(a, b) / max_len


def name_similarity(name1: Any, name2: Any) -> float:
    """Compare two raw names with token reordering tolerance"""
    return similarity(reordered_canonical(name1), reordered_canonical(name2))
