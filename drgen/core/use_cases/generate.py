"""
Generate use case — decision input → committed, manifest-protected outputs.

Channel-independent: returns result objects, never prints.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from drgen.core.models.record import DecisionRecord
from drgen.core.persistence.transaction import (
    CommitResult,
    InvalidOutputSetError,
    TransactionalWriter,
)
from drgen.core.services.naming import decision_folder_name, find_available_name
from drgen.core.services.record_parser import (
    RecordParseError,
    parse_record_file,
    render_record_yaml,
)
from drgen.core.services.record_render import build_output_set
from drgen.core.services.template import decision_yaml_template
from drgen.core.services.text import title_and_decision_too_similar

logger = logging.getLogger(__name__)

INPUT_FILENAME = "decision.yaml"


@dataclass
class GenerateResult:
    """Result of a generate / new run."""

    ok: bool = False
    input_path: Path | None = None
    out_dir: Path | None = None
    template_created: bool = False
    input_written: bool = False
    record: DecisionRecord | None = None
    commit: CommitResult | None = None
    missing_fields: list[str] = field(default_factory=list)
    similar_title: bool = False
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "input_path": str(self.input_path) if self.input_path else None,
            "out_dir": str(self.out_dir) if self.out_dir else None,
            "template_created": self.template_created,
            "input_written": self.input_written,
            "title": self.record.title if self.record else None,
            "missing_fields": self.missing_fields,
            "similar_title": self.similar_title,
            "commit": self.commit.to_dict() if self.commit else None,
            "error": self.error,
        }


def _review(record: DecisionRecord, result: GenerateResult) -> None:
    result.record = record
    result.missing_fields = record.missing_core_fields()
    result.similar_title = bool(record.decision) and title_and_decision_too_similar(
        record.title, record.decision or ""
    )


def write_outputs(
    record: DecisionRecord,
    out_dir: Path,
    *,
    writer: TransactionalWriter | None = None,
    generated_at: str | None = None,
) -> CommitResult:
    """Render, hash and commit the full output set into ``out_dir``."""
    outputs = build_output_set(record, generated_at)
    return (writer or TransactionalWriter()).commit(out_dir, outputs)


def _commit_outputs(
    record: DecisionRecord,
    out_dir: Path,
    result: GenerateResult,
    writer: TransactionalWriter | None,
    generated_at: str | None,
) -> GenerateResult:
    result.out_dir = out_dir
    try:
        commit = write_outputs(record, out_dir, writer=writer, generated_at=generated_at)
    except (InvalidOutputSetError, UnicodeEncodeError) as e:
        result.error = str(e)
        return result
    result.commit = commit
    if not commit.ok:
        result.error = commit.summary()
        return result
    result.ok = True
    return result


def generate_from_file(
    input_path: Path,
    out_base: Path,
    *,
    writer: TransactionalWriter | None = None,
    generated_at: str | None = None,
) -> GenerateResult:
    """Generate outputs for ``input_path`` under a fresh folder of ``out_base``.

    When ``input_path`` does not exist, writes the input template there
    instead and reports ``template_created``.
    """
    result = GenerateResult(input_path=input_path)
    writer = writer or TransactionalWriter()

    if not input_path.exists():
        try:
            commit = writer.commit(input_path.parent, {input_path.name: decision_yaml_template()})
        except InvalidOutputSetError as e:
            result.error = str(e)
            return result
        result.commit = commit
        if not commit.ok:
            result.error = commit.summary()
            return result
        logger.info("Created input template %s", input_path)
        result.template_created = True
        result.ok = True
        return result

    try:
        record = parse_record_file(input_path)
    except RecordParseError as e:
        result.error = str(e)
        return result
    _review(record, result)

    try:
        folder = find_available_name([out_base], decision_folder_name(record))
    except RuntimeError as e:
        result.error = str(e)
        return result

    return _commit_outputs(record, out_base / folder, result, writer, generated_at)


def create_record(
    record: DecisionRecord,
    in_base: Path,
    out_base: Path,
    *,
    input_path: Path | None = None,
    force: bool = False,
    writer: TransactionalWriter | None = None,
    generated_at: str | None = None,
) -> GenerateResult:
    """Write ``decision.yaml`` for ``record`` and generate its outputs.

    The folder name is chosen so it is free under both ``in_base`` and
    ``out_base``. An existing input file is only replaced with ``force``.
    """
    result = GenerateResult()
    writer = writer or TransactionalWriter()
    _review(record, result)

    try:
        folder = find_available_name([in_base, out_base], decision_folder_name(record))
    except RuntimeError as e:
        result.error = str(e)
        return result

    yaml_path = input_path or in_base / folder / INPUT_FILENAME
    result.input_path = yaml_path
    if yaml_path.exists() and not force:
        result.error = f"File already exists: {yaml_path}"
        return result

    try:
        commit = writer.commit(yaml_path.parent, {yaml_path.name: render_record_yaml(record)})
    except InvalidOutputSetError as e:
        result.error = str(e)
        return result
    if not commit.ok:
        result.commit = commit
        result.error = commit.summary()
        return result
    result.input_written = True

    return _commit_outputs(record, out_base / folder, result, writer, generated_at)
