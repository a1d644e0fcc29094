"""
Output rendering — the text of every file in a decision's output set.

Pure functions: a ``DecisionRecord`` in, strings out. Hashing and writing
happen elsewhere.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime

from drgen.core.integrity.manifest_builder import MANIFEST_FILENAME, assemble_output_set
from drgen.core.models.record import DecisionRecord

RECORD_FILENAME = "decision-record.md"
SUMMARY_FILENAME = "summary.json"
REPRO_FILENAME = "repro.md"

OUTPUT_FILES = {
    "record": RECORD_FILENAME,
    "summary": SUMMARY_FILENAME,
    "repro": REPRO_FILENAME,
    "manifest": MANIFEST_FILENAME,
}


def generated_at_now() -> str:
    """Current UTC time, ISO-8601 with milliseconds and a ``Z`` suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _section(lines: list[str], heading: str, body: str | None) -> None:
    lines.append(f"## {heading}")
    lines.append(body or "")
    lines.append("")


def render_record_markdown(record: DecisionRecord) -> str:
    lines = [f"# {record.title}", ""]

    meta = [
        f"**{label}**: {value}"
        for label, value in (
            ("Date", record.date),
            ("Decider", record.decider),
            ("Status", record.status),
            ("Supersedes", record.supersedes),
        )
        if value
    ]
    if meta:
        # Two trailing spaces force Markdown line breaks inside the block.
        lines.append("  \n".join(meta))
        lines.append("")

    _section(lines, "Context", record.context)
    _section(lines, "Why", record.why)
    _section(lines, "Decision", record.decision)
    _section(lines, "Alternatives Considered", record.alternatives)
    _section(lines, "Consequences", record.consequences)

    if record.tags:
        lines.append(f"**Tags**: {', '.join(record.tags)}")
        lines.append("")

    return "\n".join(lines)


def render_summary_json(record: DecisionRecord) -> str:
    payload = record.summary_dict()
    payload["files"] = dict(OUTPUT_FILES)
    return json.dumps(payload, indent=2, ensure_ascii=False)


def render_repro_markdown(record: DecisionRecord) -> str:
    lines = [
        "# Reproducibility Notes",
        "",
        "## Decision",
        record.title,
        "",
        "## Context",
        record.context or "",
        "",
        "## How to Reproduce This Decision",
        "1. Review the context and constraints",
    ]

    steps = (
        ("2. Evaluate alternatives", record.alternatives),
        ("3. Consider consequences", record.consequences),
        ("4. Apply the decision", record.decision),
    )
    for step, detail in steps:
        if (detail or "").strip():
            lines.append(f"{step}: {detail}")
        else:
            lines.append(step)
    lines.append("")

    lines.extend(
        [
            "## Verification",
            f"- Check {MANIFEST_FILENAME} for file integrity",
            "- Compare SHA256 hashes to detect tampering (`dr-gen verify <dir>`)",
            "",
        ]
    )
    return "\n".join(lines)


def render_outputs(record: DecisionRecord) -> dict[str, str]:
    """Record, summary and repro files, keyed by filename (no manifest)."""
    return {
        RECORD_FILENAME: render_record_markdown(record),
        SUMMARY_FILENAME: render_summary_json(record),
        REPRO_FILENAME: render_repro_markdown(record),
    }


def build_output_set(record: DecisionRecord, generated_at: str | None = None) -> dict[str, str]:
    """Full output set including ``manifest.json``, ready to commit."""
    return assemble_output_set(
        record.title,
        generated_at or generated_at_now(),
        render_outputs(record),
    )
