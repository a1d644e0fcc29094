"""
Transactional writer — all-or-nothing commit of an output set.

Phases, in order:

    prepare   target directory exists (created if absent) and is a directory;
              no output name is an existing directory
    stage     every file written into a fresh ``.dr-gen-tmp-*`` directory
              inside the target; no target file is touched
    backup    each target file that already exists is renamed to a unique
              ``.dr-gen-bak-*`` sibling (single rename, bytes preserved)
    promote   each staged file is renamed into its final path
    finalize  backups and the temp directory are removed

A failure during backup or promote rolls back every file already moved,
walking the per-file state list backward. Rollback is best-effort per file;
every rollback failure is logged and reported on the ``CommitResult``.
An interrupt (``KeyboardInterrupt``, ``SystemExit``) during staging, backup
or promote is rolled back the same way and then re-raised.

Transient entries (temp directory, backups) start with ``.dr-gen-`` and
are never part of the output set.

Concurrency: commits against the same directory are NOT isolated from
each other. Callers must serialize commits per directory (e.g. with an
external lock) if concurrent invocation is possible.
"""

from __future__ import annotations

import itertools
import logging
import os
import secrets
import shutil
import tempfile
import time
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

from drgen.core.integrity.hashing import encode

logger = logging.getLogger(__name__)

TRANSIENT_PREFIX = ".dr-gen-"
TEMP_DIR_PREFIX = f"{TRANSIENT_PREFIX}tmp-"
BACKUP_PREFIX = f"{TRANSIENT_PREFIX}bak-"

# Unique within this process run: pid + start time salt, then a counter.
_PROCESS_SALT = f"{os.getpid():x}{time.time_ns():x}"
_sequence = itertools.count(1)


def is_transient_name(name: str) -> bool:
    """Whether ``name`` is writer-owned tooling state, not a real output."""
    return name.startswith(TRANSIENT_PREFIX)


def backup_name(filename: str) -> str:
    """Unique backup artifact name for ``filename``.

    Does not rely on wall-clock resolution: two calls in the same clock
    tick still differ by the sequence number and the random part.
    """
    seq = next(_sequence)
    return f"{BACKUP_PREFIX}{_PROCESS_SALT}-{seq:06d}-{secrets.token_hex(4)}-{filename}"


# ═══════════════════════════════════════════════════════════════════
#  Errors and results
# ═══════════════════════════════════════════════════════════════════


class InvalidOutputSetError(ValueError):
    """The output set cannot be written safely (bad or transient filename)."""


class CommitError(Exception):
    """A commit did not succeed. ``result`` carries the full detail."""

    def __init__(self, result: CommitResult):
        self.result = result
        super().__init__(result.summary())


class CommitResult(BaseModel):
    """Outcome of one commit.

    status:
        ok               every file promoted, backups removed
        failed           precondition or staging failure; nothing outside
                         the temp directory changed
        rolled_back      mid-transaction failure, prior state restored
        rollback_failed  rollback itself hit errors; see
                         ``inconsistent_files`` and ``kept_backups``
    """

    status: Literal["ok", "failed", "rolled_back", "rollback_failed"]
    target_dir: str
    phase: Literal["prepare", "stage", "backup", "promote", "finalize"] | None = None
    files: list[str] = Field(default_factory=list)
    error: str | None = None
    rollback_errors: list[str] = Field(default_factory=list)
    inconsistent_files: list[str] = Field(default_factory=list)
    kept_backups: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def summary(self) -> str:
        if self.ok:
            return f"committed {len(self.files)} file(s) to {self.target_dir}"
        text = f"commit {self.status} during {self.phase}: {self.error}"
        if self.inconsistent_files:
            text += f" (inconsistent: {', '.join(self.inconsistent_files)})"
        return text

    def raise_for_status(self) -> None:
        """Raise ``CommitError`` unless the commit succeeded."""
        if not self.ok:
            raise CommitError(self)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


# ═══════════════════════════════════════════════════════════════════
#  Per-file transaction log
# ═══════════════════════════════════════════════════════════════════


class FileState(StrEnum):
    """Where one file is in the transaction."""

    STAGED = "staged"
    BACKED_UP = "backed_up"
    PROMOTED = "promoted"
    FINALIZED = "finalized"


@dataclass
class FileEntry:
    """Transaction log entry for one output file."""

    name: str
    target: Path
    staged: Path
    state: FileState = FileState.STAGED
    backup: Path | None = None


@dataclass
class _RollbackReport:
    errors: list[str]
    inconsistent: list[str]
    kept_backups: list[str]


def _check_filename(name: object) -> None:
    if not isinstance(name, str) or not name:
        raise InvalidOutputSetError(f"Invalid output filename: {name!r}")
    if name in (".", "..") or "/" in name or "\\" in name or "\x00" in name:
        raise InvalidOutputSetError(f"Output filename must be a plain file name: {name!r}")
    if is_transient_name(name):
        raise InvalidOutputSetError(f"Output filename uses the reserved prefix {TRANSIENT_PREFIX!r}: {name!r}")


# ═══════════════════════════════════════════════════════════════════
#  Writer
# ═══════════════════════════════════════════════════════════════════


class TransactionalWriter:
    """Writes an output set into one directory, all-or-nothing.

    Stateless between calls; one instance may be reused for many commits
    as long as commits to the same directory are not concurrent.
    """

    def commit(
        self,
        target_dir: str | Path,
        file_contents: Mapping[str, str | bytes],
    ) -> CommitResult:
        """Commit ``file_contents`` (filename → text) into ``target_dir``.

        I/O failures are reported through the returned ``CommitResult``.

        Raises:
            InvalidOutputSetError: Empty set or a filename that would escape
                the target directory. Raised before any filesystem change.
            UnicodeEncodeError: Content that cannot be encoded.
        """
        started = time.monotonic()
        target = Path(target_dir)

        if not file_contents:
            raise InvalidOutputSetError("Output set is empty")
        for name in file_contents:
            _check_filename(name)
        payloads = {name: encode(content) for name, content in file_contents.items()}
        names = list(payloads)

        def _result(status: str, **kwargs: Any) -> CommitResult:
            return CommitResult(
                status=status,
                target_dir=str(target),
                files=names,
                duration_ms=int((time.monotonic() - started) * 1000),
                **kwargs,
            )

        # ── Prepare ─────────────────────────────────────────────
        try:
            self._prepare(target, names)
        except OSError as e:
            logger.error("Cannot prepare %s: %s", target, e)
            return _result("failed", phase="prepare", error=str(e))

        # ── Stage ───────────────────────────────────────────────
        try:
            temp_dir = Path(tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX, dir=target))
        except OSError as e:
            logger.error("Cannot create staging directory in %s: %s", target, e)
            return _result("failed", phase="stage", error=str(e))

        entries = [
            FileEntry(name=name, target=target / name, staged=temp_dir / name)
            for name in names
        ]
        try:
            for entry in entries:
                self._stage(entry, payloads[entry.name])
        except OSError as e:
            logger.error("Staging failed in %s: %s", temp_dir, e)
            warnings = self._remove_temp_dir(temp_dir)
            return _result("failed", phase="stage", error=str(e), warnings=warnings)
        except BaseException:
            self._remove_temp_dir(temp_dir)
            raise
        logger.debug("Staged %d file(s) in %s", len(entries), temp_dir)

        # ── Backup + promote ────────────────────────────────────
        phase = "backup"
        try:
            for entry in entries:
                self._backup(entry)
            phase = "promote"
            for entry in entries:
                self._promote(entry)
        except Exception as e:
            logger.warning("Commit to %s failed during %s, rolling back: %s", target, phase, e)
            report = self._rollback(entries)
            warnings = self._remove_temp_dir(temp_dir)
            status = "rollback_failed" if report.errors else "rolled_back"
            return _result(
                status,
                phase=phase,
                error=f"{type(e).__name__}: {e}",
                rollback_errors=report.errors,
                inconsistent_files=report.inconsistent,
                kept_backups=report.kept_backups,
                warnings=warnings,
            )
        except BaseException:
            # Interrupted (KeyboardInterrupt, SystemExit): restore, then let it propagate.
            logger.warning("Commit to %s interrupted during %s, rolling back", target, phase)
            self._rollback(entries)
            self._remove_temp_dir(temp_dir)
            raise

        # ── Finalize ────────────────────────────────────────────
        warnings = self._finalize(entries)
        warnings.extend(self._remove_temp_dir(temp_dir))
        result = _result("ok", phase="finalize", warnings=warnings)
        logger.info("Committed %d file(s) to %s (%dms)", len(names), target, result.duration_ms)
        return result

    # ── Phase steps ─────────────────────────────────────────────

    def _prepare(self, target: Path, names: list[str]) -> None:
        if target.exists() and not target.is_dir():
            raise NotADirectoryError(f"Output path is not a directory: {target}")
        # Only regular files (or symlinks) are ever replaced.
        for name in names:
            path = target / name
            if path.is_dir() and not path.is_symlink():
                raise IsADirectoryError(f"Output file path is a directory: {path}")
        target.mkdir(parents=True, exist_ok=True)

    def _stage(self, entry: FileEntry, payload: bytes) -> None:
        entry.staged.write_bytes(payload)
        entry.state = FileState.STAGED

    def _backup(self, entry: FileEntry) -> None:
        if not os.path.lexists(entry.target):
            return
        backup = entry.target.parent / backup_name(entry.name)
        while os.path.lexists(backup):
            backup = entry.target.parent / backup_name(entry.name)
        os.rename(entry.target, backup)
        entry.backup = backup
        entry.state = FileState.BACKED_UP
        logger.debug("Backed up %s → %s", entry.target.name, backup.name)

    def _promote(self, entry: FileEntry) -> None:
        os.replace(entry.staged, entry.target)
        entry.state = FileState.PROMOTED
        logger.debug("Promoted %s", entry.target.name)

    def _finalize(self, entries: list[FileEntry]) -> list[str]:
        warnings: list[str] = []
        for entry in entries:
            if entry.backup is not None:
                try:
                    entry.backup.unlink()
                except OSError as e:
                    msg = f"Could not remove backup {entry.backup.name}: {e}"
                    logger.warning("%s", msg)
                    warnings.append(msg)
            entry.state = FileState.FINALIZED
        return warnings

    def _rollback(self, entries: list[FileEntry]) -> _RollbackReport:
        """Undo promotions and restore backups, newest first.

        A backup whose restore fails is left on disk for manual recovery.
        """
        report = _RollbackReport(errors=[], inconsistent=[], kept_backups=[])

        for entry in reversed(entries):
            if entry.state == FileState.STAGED:
                continue

            if entry.backup is not None:
                # Replacing the promoted file (if any) restores the original atomically.
                try:
                    os.replace(entry.backup, entry.target)
                    logger.debug("Restored %s from backup", entry.name)
                except OSError as e:
                    msg = f"restore {entry.name} from {entry.backup.name}: {e}"
                    logger.error("Rollback failed: %s", msg)
                    report.errors.append(msg)
                    report.inconsistent.append(entry.name)
                    report.kept_backups.append(entry.backup.name)
                    continue
            elif entry.state == FileState.PROMOTED:
                try:
                    entry.target.unlink()
                    logger.debug("Removed promoted %s", entry.name)
                except OSError as e:
                    msg = f"remove {entry.name}: {e}"
                    logger.error("Rollback failed: %s", msg)
                    report.errors.append(msg)
                    report.inconsistent.append(entry.name)
                    continue

            entry.state = FileState.STAGED
            entry.backup = None

        return report

    def _remove_temp_dir(self, temp_dir: Path) -> list[str]:
        try:
            shutil.rmtree(temp_dir)
        except FileNotFoundError:
            pass
        except OSError as e:
            msg = f"Could not remove staging directory {temp_dir.name}: {e}"
            logger.warning("%s", msg)
            return [msg]
        return []


def commit(target_dir: str | Path, file_contents: Mapping[str, str | bytes]) -> CommitResult:
    """Commit an output set with a default ``TransactionalWriter``."""
    return TransactionalWriter().commit(target_dir, file_contents)
