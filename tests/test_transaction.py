"""
Tests for the transactional writer — commit, rollback, and reporting.

Failures are injected by monkeypatching the writer's phase steps, so the
assertions are about what is left on disk afterwards.
"""

import os
from pathlib import Path

import pytest

from conftest import snapshot
from drgen.core.persistence import transaction
from drgen.core.persistence.transaction import (
    BACKUP_PREFIX,
    CommitError,
    FileEntry,
    InvalidOutputSetError,
    TransactionalWriter,
    backup_name,
    commit,
    is_transient_name,
)


def _fail_promote_on(name: str, monkeypatch):
    original = TransactionalWriter._promote

    def _promote(self, entry: FileEntry):
        if entry.name == name:
            raise OSError(f"injected promote failure for {name}")
        return original(self, entry)

    monkeypatch.setattr(TransactionalWriter, "_promote", _promote)


class TestCommitSuccess:
    def test_writes_into_new_directory(self, tmp_path: Path):
        target = tmp_path / "nested" / "out"
        result = commit(target, {"a.md": "hello", "b.json": "{}"})

        assert result.ok
        assert result.status == "ok"
        assert result.files == ["a.md", "b.json"]
        assert (target / "a.md").read_text(encoding="utf-8") == "hello"
        assert sorted(p.name for p in target.iterdir()) == ["a.md", "b.json"]

    def test_replaces_existing_files_and_leaves_no_transients(self, tmp_path: Path):
        (tmp_path / "a.md").write_text("old")
        (tmp_path / "keep.txt").write_text("untouched")

        result = commit(tmp_path, {"a.md": "new"})

        assert result.ok
        assert (tmp_path / "a.md").read_text() == "new"
        assert (tmp_path / "keep.txt").read_text() == "untouched"
        assert not [p for p in tmp_path.iterdir() if is_transient_name(p.name)]

    def test_writes_exact_utf8_bytes(self, tmp_path: Path):
        commit(tmp_path, {"a.md": "決定\n"})
        assert (tmp_path / "a.md").read_bytes() == "決定\n".encode("utf-8")

    def test_bytes_content(self, tmp_path: Path):
        commit(tmp_path, {"blob.bin": b"\x00\x01"})
        assert (tmp_path / "blob.bin").read_bytes() == b"\x00\x01"

    def test_to_dict(self, tmp_path: Path):
        d = commit(tmp_path, {"a.md": "x"}).to_dict()
        assert d["status"] == "ok"
        assert d["files"] == ["a.md"]
        assert d["rollback_errors"] == []


class TestCommitPreconditions:
    @pytest.mark.parametrize(
        "files",
        [
            {},
            {"": "x"},
            {"../escape.md": "x"},
            {"sub/a.md": "x"},
            {"..": "x"},
            {".dr-gen-bak-x": "x"},
        ],
    )
    def test_invalid_output_set(self, tmp_path: Path, files):
        target = tmp_path / "out"
        with pytest.raises(InvalidOutputSetError):
            commit(target, files)
        assert not target.exists()

    def test_unencodable_content_raises_before_writing(self, tmp_path: Path):
        target = tmp_path / "out"
        with pytest.raises(UnicodeEncodeError):
            commit(target, {"a.md": "bad \ud800"})
        assert not target.exists()

    def test_target_is_a_file(self, tmp_path: Path):
        target = tmp_path / "out"
        target.write_text("i am a file")

        result = commit(target, {"a.md": "x"})

        assert result.status == "failed"
        assert result.phase == "prepare"
        assert target.read_text() == "i am a file"

    def test_output_name_is_a_directory(self, tmp_path: Path):
        """A directory in the way is refused up front, never backed up."""
        (tmp_path / "a.md").mkdir()
        (tmp_path / "a.md" / "inner.txt").write_text("keep")

        result = commit(tmp_path, {"a.md": "x", "b.md": "y"})

        assert result.status == "failed"
        assert result.phase == "prepare"
        assert (tmp_path / "a.md" / "inner.txt").read_text() == "keep"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["a.md"]


class TestStagingFailure:
    def test_target_untouched(self, tmp_path: Path, monkeypatch):
        (tmp_path / "a.md").write_text("old")
        before = snapshot(tmp_path)

        def _stage(self, entry, payload):
            raise OSError("disk full")

        monkeypatch.setattr(TransactionalWriter, "_stage", _stage)
        result = commit(tmp_path, {"a.md": "new", "b.md": "new"})

        assert result.status == "failed"
        assert result.phase == "stage"
        assert "disk full" in result.error
        assert snapshot(tmp_path) == before


class TestRollback:
    def test_promote_failure_restores_prior_state(self, tmp_path: Path, monkeypatch):
        """a.md existed, b.md did not; promoting b.md fails."""
        (tmp_path / "a.md").write_text("old")
        before = snapshot(tmp_path)
        _fail_promote_on("b.md", monkeypatch)

        result = commit(tmp_path, {"a.md": "new", "b.md": "new"})

        assert result.status == "rolled_back"
        assert result.phase == "promote"
        assert "injected" in result.error
        assert (tmp_path / "a.md").read_text() == "old"
        assert not (tmp_path / "b.md").exists()
        assert snapshot(tmp_path) == before

    def test_first_file_failure(self, tmp_path: Path, monkeypatch):
        (tmp_path / "a.md").write_text("old-a")
        (tmp_path / "b.md").write_text("old-b")
        before = snapshot(tmp_path)
        _fail_promote_on("a.md", monkeypatch)

        result = commit(tmp_path, {"a.md": "new", "b.md": "new"})

        assert result.status == "rolled_back"
        assert snapshot(tmp_path) == before

    def test_new_files_removed_on_rollback(self, tmp_path: Path, monkeypatch):
        _fail_promote_on("c.md", monkeypatch)

        result = commit(tmp_path, {"a.md": "1", "b.md": "2", "c.md": "3"})

        assert result.status == "rolled_back"
        assert list(tmp_path.iterdir()) == []

    def test_backup_failure_rolls_back(self, tmp_path: Path, monkeypatch):
        (tmp_path / "a.md").write_text("old-a")
        (tmp_path / "b.md").write_text("old-b")
        before = snapshot(tmp_path)
        original = TransactionalWriter._backup

        def _backup(self, entry):
            if entry.name == "b.md":
                raise PermissionError("injected backup failure")
            return original(self, entry)

        monkeypatch.setattr(TransactionalWriter, "_backup", _backup)
        result = commit(tmp_path, {"a.md": "new", "b.md": "new"})

        assert result.status == "rolled_back"
        assert result.phase == "backup"
        assert snapshot(tmp_path) == before

    def test_rollback_failure_is_reported(self, tmp_path: Path, monkeypatch):
        """A backup that cannot be restored is kept and named in the result."""
        (tmp_path / "a.md").write_text("old")
        _fail_promote_on("b.md", monkeypatch)

        real_replace = os.replace

        def _replace(src, dst):
            if Path(src).name.startswith(BACKUP_PREFIX):
                raise OSError("injected restore failure")
            return real_replace(src, dst)

        monkeypatch.setattr(transaction.os, "replace", _replace)
        result = commit(tmp_path, {"a.md": "new", "b.md": "new"})

        assert result.status == "rollback_failed"
        assert result.inconsistent_files == ["a.md"]
        assert len(result.rollback_errors) == 1
        assert len(result.kept_backups) == 1
        kept = tmp_path / result.kept_backups[0]
        assert kept.read_text() == "old"
        assert "inconsistent" in result.summary()

    def test_failed_removal_of_new_file_is_reported(self, tmp_path: Path, monkeypatch):
        """A promoted file with no backup that cannot be removed is inconsistent."""
        _fail_promote_on("c.md", monkeypatch)
        real_unlink = Path.unlink

        def _unlink(self, missing_ok=False):
            if self.name == "b.md" and self.parent == tmp_path:
                raise PermissionError("injected unlink failure")
            return real_unlink(self, missing_ok=missing_ok)

        monkeypatch.setattr(Path, "unlink", _unlink)
        result = commit(tmp_path, {"a.md": "1", "b.md": "2", "c.md": "3"})

        assert result.status == "rollback_failed"
        assert result.inconsistent_files == ["b.md"]
        assert len(result.rollback_errors) == 1
        assert result.kept_backups == []
        assert not (tmp_path / "a.md").exists()

    def test_interrupt_during_promote_rolls_back(self, tmp_path: Path, monkeypatch):
        """KeyboardInterrupt still restores the directory before propagating."""
        (tmp_path / "a.md").write_text("old")
        before = snapshot(tmp_path)
        original = TransactionalWriter._promote

        def _promote(self, entry: FileEntry):
            if entry.name == "b.md":
                raise KeyboardInterrupt
            return original(self, entry)

        monkeypatch.setattr(TransactionalWriter, "_promote", _promote)
        with pytest.raises(KeyboardInterrupt):
            commit(tmp_path, {"a.md": "new", "b.md": "new"})

        assert snapshot(tmp_path) == before

    def test_interrupt_during_stage_removes_temp_dir(self, tmp_path: Path, monkeypatch):
        (tmp_path / "a.md").write_text("old")
        before = snapshot(tmp_path)

        def _stage(self, entry, payload):
            raise SystemExit(1)

        monkeypatch.setattr(TransactionalWriter, "_stage", _stage)
        with pytest.raises(SystemExit):
            commit(tmp_path, {"a.md": "new"})

        assert snapshot(tmp_path) == before


class TestBackupNames:
    def test_unique_when_clock_is_frozen(self, monkeypatch):
        monkeypatch.setattr(transaction.time, "time_ns", lambda: 0)
        names = {backup_name("a.md") for _ in range(1000)}
        assert len(names) == 1000

    def test_transient_and_keeps_filename(self):
        name = backup_name("decision-record.md")
        assert is_transient_name(name)
        assert name.startswith(BACKUP_PREFIX)
        assert name.endswith("-decision-record.md")


class TestCommitResult:
    def test_raise_for_status_ok(self, tmp_path: Path):
        commit(tmp_path, {"a.md": "x"}).raise_for_status()

    def test_raise_for_status_failed(self, tmp_path: Path):
        target = tmp_path / "file"
        target.write_text("x")
        result = commit(target, {"a.md": "x"})
        with pytest.raises(CommitError) as exc_info:
            result.raise_for_status()
        assert exc_info.value.result is result
        assert "prepare" in str(exc_info.value)

    def test_writer_is_reusable(self, tmp_path: Path):
        writer = TransactionalWriter()
        assert writer.commit(tmp_path / "one", {"a.md": "1"}).ok
        assert writer.commit(tmp_path / "one", {"a.md": "2"}).ok
        assert (tmp_path / "one" / "a.md").read_text() == "2"
