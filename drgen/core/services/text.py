"""
Text comparison helpers — catch a decision that only repeats its title.
"""

from __future__ import annotations

import re
import unicodedata

_WHITESPACE = re.compile(r"[\s\u3000]+")
_PUNCTUATION = re.compile(r"[\"'`“”‘’.,:;!?()\[\]{}<>|\\/\-_=+*~^$#@]+")

# Max length difference for "one contains the other" to still count as a repeat.
MAX_CONTAINED_DIFF = 8


def normalize_comparable(value: str) -> str:
    """NFKC, trimmed, lowercased, with whitespace and punctuation removed."""
    value = unicodedata.normalize("NFKC", value).strip().lower()
    value = _WHITESPACE.sub("", value)
    return _PUNCTUATION.sub("", value)


def title_and_decision_too_similar(title: str, decision: str) -> bool:
    t = normalize_comparable(title)
    d = normalize_comparable(decision)

    if not t or not d:
        return False
    if t == d:
        return True

    shorter, longer = (t, d) if len(t) <= len(d) else (d, t)
    if shorter not in longer:
        return False
    return len(longer) - len(shorter) <= MAX_CONTAINED_DIFF
