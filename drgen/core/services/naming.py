"""
Output folder naming — ``<date>__<slug>__<id>`` per decision.

Keeps Unicode letters (non-Latin titles stay readable) and drops only
characters that are invalid or awkward in file names.
"""

from __future__ import annotations

import re
import unicodedata
from pathlib import Path

from drgen.core.integrity.hashing import digest
from drgen.core.models.record import DecisionRecord

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

MAX_SLUG_LENGTH = 60
MAX_SUFFIX = 10_000

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_SLASHES = re.compile(r"[\\/]")
_INVALID_CHARS = re.compile(r'[:*?"<>|]')
_WHITESPACE = re.compile(r"\s+")
_DASH_RUNS = re.compile(r"-+")


def sanitize_path_segment(value: str) -> str:
    value = unicodedata.normalize("NFKC", value).strip()
    value = _CONTROL_CHARS.sub("", value)
    value = _SLASHES.sub("-", value)
    value = _INVALID_CHARS.sub("", value)
    value = _WHITESPACE.sub("-", value)
    value = _DASH_RUNS.sub("-", value)
    return value.strip("-")


def safe_date_prefix(date: str | None) -> str:
    if date is None:
        return "undated"
    date = date.strip()
    return date if ISO_DATE_RE.match(date) else "undated"


def decision_short_id(record: DecisionRecord) -> str:
    """Deterministic 8-hex id from title, date and decider (not a signature)."""
    basis = "\n".join([record.title, record.date or "", record.decider or ""])
    return digest(basis)[:8]


def decision_folder_name(record: DecisionRecord) -> str:
    slug = sanitize_path_segment(record.title)[:MAX_SLUG_LENGTH] or "decision"
    return f"{safe_date_prefix(record.date)}__{slug}__{decision_short_id(record)}"


def find_available_name(base_dirs: list[Path], desired: str) -> str:
    """First of ``desired``, ``desired__2``, ... that is free in every base dir.

    Raises:
        RuntimeError: If no free name is found.
    """
    def _free(name: str) -> bool:
        return not any((base / name).exists() for base in base_dirs)

    if _free(desired):
        return desired
    for i in range(2, MAX_SUFFIX):
        candidate = f"{desired}__{i}"
        if _free(candidate):
            return candidate
    raise RuntimeError(f"Unable to find an available directory name for {desired!r}")
