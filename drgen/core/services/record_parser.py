"""
Decision input parsing — ``decision.yaml`` into a ``DecisionRecord``.

Lenient on optional fields (wrong types are dropped), strict on the shape
of the document and on ``title``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from drgen.core.models.record import DecisionRecord

logger = logging.getLogger(__name__)

OPTIONAL_STRING_FIELDS = (
    "date",
    "decider",
    "status",
    "supersedes",
    "context",
    "why",
    "decision",
    "alternatives",
    "consequences",
)


class RecordParseError(Exception):
    """Raised when decision input is unreadable or invalid."""


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _optional_str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    if not all(isinstance(item, str) for item in value):
        return []
    return list(value)


def record_from_mapping(data: Any) -> DecisionRecord:
    """Build a record from an already-loaded YAML document.

    Raises:
        RecordParseError: If ``data`` is not a mapping or has no title.
    """
    if not isinstance(data, dict):
        raise RecordParseError("decision.yaml must be a YAML mapping (object).")

    title = _optional_str(data.get("title"))
    if title is None or not title.strip():
        raise RecordParseError("`title` is required and must be a non-empty string.")

    fields = {key: _optional_str(data.get(key)) for key in OPTIONAL_STRING_FIELDS}
    if fields["decision"] is None:
        # Older inputs call the decision "rule".
        fields["decision"] = _optional_str(data.get("rule"))

    return DecisionRecord(title=title, tags=_optional_str_list(data.get("tags")), **fields)


def parse_record_text(text: str) -> DecisionRecord:
    """Parse YAML text into a record."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise RecordParseError(f"Invalid YAML: {e}") from e
    return record_from_mapping(data)


def parse_record_file(path: Path) -> DecisionRecord:
    """Read and parse a ``decision.yaml`` file.

    Raises:
        RecordParseError: If the file cannot be read or is invalid.
    """
    logger.debug("Parsing decision input %s", path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise RecordParseError(f"Cannot read {path}: {e}") from e

    try:
        return parse_record_text(raw)
    except RecordParseError as e:
        raise RecordParseError(f"{path}: {e}") from e


def render_record_yaml(record: DecisionRecord) -> str:
    """Serialize a record back to ``decision.yaml`` (stable key order)."""
    data = {
        "title": record.title,
        "date": record.date or "",
        "decider": record.decider or "",
        "status": record.status or "",
        "supersedes": record.supersedes or "",
        "context": record.context or "",
        "why": record.why or "",
        "decision": record.decision or "",
        "alternatives": record.alternatives or "",
        "consequences": record.consequences or "",
        "tags": list(record.tags),
    }
    return yaml.safe_dump(
        data,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=float("inf"),
    )
