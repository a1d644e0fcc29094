"""
Verify use case — integrity check of one output directory for the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from drgen.core.integrity.verifier import (
    ManifestError,
    ManifestFormatError,
    verify_directory,
)
from drgen.core.models.verification import VerifyResult


@dataclass
class VerifyOutcome:
    """A ``VerifyResult``, or the manifest error that prevented one."""

    target_dir: Path
    result: VerifyResult | None = None
    error: str | None = None
    error_kind: Literal["not_found", "format"] | None = None

    @property
    def ok(self) -> bool:
        return self.result is not None and self.result.ok

    def to_dict(self) -> dict[str, Any]:
        if self.result is not None:
            return self.result.to_dict()
        return {
            "ok": False,
            "target_dir": str(self.target_dir),
            "error": self.error,
            "error_kind": self.error_kind,
            "per_file": [],
        }


def verify_outputs(target_dir: Path) -> VerifyOutcome:
    outcome = VerifyOutcome(target_dir=target_dir)
    try:
        outcome.result = verify_directory(target_dir)
    except ManifestError as e:
        outcome.error = str(e)
        outcome.error_kind = "format" if isinstance(e, ManifestFormatError) else "not_found"
    return outcome
