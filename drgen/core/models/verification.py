"""
Verification result models — per-file outcomes of a manifest check.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class FileVerification(BaseModel):
    """Outcome for one file named in the manifest.

    ``ok``        digest and size both match
    ``mismatch``  the file was read but digest or size differ
    ``error``     the file could not be read (missing, permissions, ...)
    """

    filename: str
    status: Literal["ok", "mismatch", "error"]
    expected_sha256: str
    expected_size_bytes: int
    actual_sha256: str | None = None
    actual_size_bytes: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "filename": self.filename,
            "ok": self.ok,
            "status": self.status,
            "expected_sha256": self.expected_sha256,
            "expected_size_bytes": self.expected_size_bytes,
        }
        if self.actual_sha256 is not None:
            data["actual_sha256"] = self.actual_sha256
            data["actual_size_bytes"] = self.actual_size_bytes
        if self.error is not None:
            data["error"] = self.error
        return data


class VerifyResult(BaseModel):
    """Whole-directory verification result.

    Keeps every per-file outcome, sorted by filename. ``untracked`` lists
    regular files present in the directory but absent from the manifest;
    it is informational and does not affect ``ok``.
    """

    target_dir: str
    manifest_path: str
    results: list[FileVerification] = Field(default_factory=list)
    untracked: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results)

    @property
    def failures(self) -> list[FileVerification]:
        return [r for r in self.results if not r.ok]

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "target_dir": self.target_dir,
            "manifest_path": self.manifest_path,
            "per_file": [r.to_dict() for r in self.results],
            "untracked": self.untracked,
        }
