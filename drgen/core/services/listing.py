"""
Decision listing — scan an output base directory and render a report.

Every decision lives in its own ``YYYY-MM-DD__<slug>__<id>`` folder. The
listing reads ``summary.json`` and the first line of the Decision section
of ``decision-record.md``; unreadable files degrade to missing fields
rather than failing the whole listing.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from drgen.core.persistence.transaction import is_transient_name
from drgen.core.services.naming import ISO_DATE_RE
from drgen.core.services.record_render import RECORD_FILENAME, SUMMARY_FILENAME

logger = logging.getLogger(__name__)

DEFAULT_MAX_DECISION_LEN = 80

_FOLDER_ID_RE = re.compile(r"^[0-9a-f]{8}$", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


class DecisionSummary(BaseModel):
    title: str | None = None
    date: str | None = None
    decider: str | None = None
    status: str | None = None
    supersedes: str | None = None


class ListedDecision(BaseModel):
    folder_name: str
    out_dir: str
    date_from_folder: str | None = None
    summary: DecisionSummary | None = None
    decision_excerpt: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


def check_iso_date(value: str, label: str) -> None:
    """Raise ``ValueError`` unless ``value`` is ``YYYY-MM-DD``."""
    if not ISO_DATE_RE.match(value):
        raise ValueError(f"{label} must be YYYY-MM-DD (got: {value})")


def folder_date(folder_name: str) -> str | None:
    if len(folder_name) < 12 or folder_name[10:12] != "__":
        return None
    candidate = folder_name[:10]
    return candidate if ISO_DATE_RE.match(candidate) else None


def folder_id(folder_name: str) -> str:
    """Trailing 8-hex id of a folder name, or the whole name."""
    last = folder_name.split("__")[-1]
    return last if _FOLDER_ID_RE.match(last) else folder_name


def _read_summary(decision_dir: Path) -> DecisionSummary | None:
    try:
        data = json.loads((decision_dir / SUMMARY_FILENAME).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.debug("No usable summary in %s: %s", decision_dir, e)
        return None
    if not isinstance(data, dict):
        return None
    return DecisionSummary(
        **{
            key: data[key]
            for key in DecisionSummary.model_fields
            if isinstance(data.get(key), str)
        }
    )


def section_first_line(markdown: str, heading: str) -> str | None:
    """First non-blank line under ``heading``, whitespace collapsed."""
    in_section = False
    for line in markdown.splitlines():
        if not in_section:
            if line.strip() == heading:
                in_section = True
            continue
        if line.startswith("## "):
            return None
        stripped = line.strip()
        if stripped:
            return _WHITESPACE.sub(" ", stripped)
    return None


def decision_excerpt(markdown: str) -> str | None:
    # "## Rule" is the heading older records used.
    return section_first_line(markdown, "## Decision") or section_first_line(markdown, "## Rule")


def _read_excerpt(decision_dir: Path) -> str | None:
    try:
        markdown = (decision_dir / RECORD_FILENAME).read_text(encoding="utf-8")
    except (OSError, ValueError) as e:
        logger.debug("No usable record in %s: %s", decision_dir, e)
        return None
    return decision_excerpt(markdown)


def _in_range(date: str, date_from: str | None, date_to: str | None) -> bool:
    # ISO dates compare correctly as strings.
    if date_from and date < date_from:
        return False
    if date_to and date > date_to:
        return False
    return True


def list_decisions(
    out_dir: Path,
    date_from: str | None = None,
    date_to: str | None = None,
) -> list[ListedDecision]:
    """List decision folders under ``out_dir``, newest first.

    Folders without a date prefix are skipped when a bound is given.

    Raises:
        ValueError: A bound is not ``YYYY-MM-DD``.
        OSError: ``out_dir`` cannot be listed.
    """
    date_from = (date_from or "").strip() or None
    date_to = (date_to or "").strip() or None
    if date_from:
        check_iso_date(date_from, "--from")
    if date_to:
        check_iso_date(date_to, "--to")

    items: list[ListedDecision] = []
    for entry in out_dir.iterdir():
        if not entry.is_dir() or is_transient_name(entry.name):
            continue

        date = folder_date(entry.name)
        if date is None:
            if date_from or date_to:
                continue
        elif not _in_range(date, date_from, date_to):
            continue

        items.append(
            ListedDecision(
                folder_name=entry.name,
                out_dir=str(entry),
                date_from_folder=date,
                summary=_read_summary(entry),
                decision_excerpt=_read_excerpt(entry),
            )
        )

    # Title ascending, then date descending (stable sort), undated last.
    items.sort(key=lambda i: (i.summary.title if i.summary and i.summary.title else ""))
    items.sort(key=lambda i: i.date_from_folder or "", reverse=True)
    logger.debug("Listed %d decision(s) in %s", len(items), out_dir)
    return items


# ═══════════════════════════════════════════════════════════════════
#  Markdown report
# ═══════════════════════════════════════════════════════════════════


def md_escape(value: str) -> str:
    return value.replace("|", "\\|").replace("\r\n", " ").replace("\n", " ")


def truncate_one_line(value: str, max_chars: int) -> str:
    normalized = _WHITESPACE.sub(" ", value).strip()
    if len(normalized) <= max_chars:
        return normalized
    if max_chars <= 1:
        return "…"
    return normalized[: max_chars - 1] + "…"


def render_report_markdown(
    items: list[ListedDecision],
    *,
    out_dir: str,
    generated_at: str,
    date_from: str | None = None,
    date_to: str | None = None,
    max_decision_len: int = DEFAULT_MAX_DECISION_LEN,
) -> str:
    period_parts = []
    if date_from and date_from.strip():
        period_parts.append(f"from {date_from}")
    if date_to and date_to.strip():
        period_parts.append(f"to {date_to}")
    period = " ".join(period_parts) if period_parts else "all"

    lines = [
        "# Decision Record Report",
        "",
        f"- Out dir: {out_dir}",
        f"- Period: {period}",
        f"- Generated at: {generated_at}",
        "",
        "## Decisions",
        "",
    ]

    for item in items:
        summary = item.summary or DecisionSummary()
        fields = (
            ("Date", summary.date or item.date_from_folder),
            ("Title", summary.title),
            ("Status", summary.status),
            ("Decider", summary.decider),
        )
        lines.append(f"- ID: {md_escape(folder_id(item.folder_name))}")
        for label, value in fields:
            if value:
                lines.append(f"  - {label}: {md_escape(value)}")
        if item.decision_excerpt:
            clipped = truncate_one_line(item.decision_excerpt, max_decision_len)
            lines.append(f"  - Decision: {md_escape(clipped)}")
        lines.append("")

    return "\n".join(lines)
