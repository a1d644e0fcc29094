"""
Verifier — detect drift between a manifest and the files it names.

One-shot and read-only. The manifest is parsed strictly before any file
is touched; a missing or malformed manifest raises a ``ManifestError``
subclass. Per-file problems never raise: each listed file gets an
``ok`` / ``mismatch`` / ``error`` outcome in the ``VerifyResult``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from drgen.core.integrity.hashing import byte_length, digest
from drgen.core.integrity.manifest_builder import MANIFEST_FILENAME
from drgen.core.models.manifest import Manifest
from drgen.core.models.verification import FileVerification, VerifyResult
from drgen.core.persistence.transaction import is_transient_name

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("generated_at", "dr_title", "files", "signature")


class ManifestError(Exception):
    """The manifest cannot be used for verification."""


class ManifestNotFoundError(ManifestError):
    """No readable manifest in the directory."""


class ManifestFormatError(ManifestError):
    """The manifest is not well-formed for this version."""


def _check_entry(name: str, info: Any) -> None:
    if not name or name in (".", "..") or "/" in name or "\\" in name or "\x00" in name:
        raise ManifestFormatError(f"files key must be a plain file name: {name!r}")
    if name == MANIFEST_FILENAME or is_transient_name(name):
        raise ManifestFormatError(f"files must not list {name!r}")
    if not isinstance(info, dict):
        raise ManifestFormatError(f"files.{name} must be an object")
    sha256 = info.get("sha256")
    size_bytes = info.get("size_bytes")
    # bool is an int subclass; reject it explicitly.
    if not isinstance(sha256, str) or not isinstance(size_bytes, int) or isinstance(size_bytes, bool):
        raise ManifestFormatError(
            f"files.{name} must contain sha256 (string) and size_bytes (integer)"
        )


def parse_manifest(raw: str | bytes) -> Manifest:
    """Parse and validate manifest JSON.

    Rejects, rather than coerces: non-object documents, missing top-level
    fields, a non-object ``files``, malformed file entries, and any
    ``signature`` other than null.

    Raises:
        ManifestFormatError: On any violation.
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ManifestFormatError(f"manifest is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ManifestFormatError("manifest must be a JSON object")

    missing = [key for key in REQUIRED_FIELDS if key not in data]
    if missing:
        raise ManifestFormatError(f"manifest is missing required field(s): {', '.join(missing)}")

    if data["signature"] is not None:
        raise ManifestFormatError(
            "manifest signature must be null (signatures are not supported in this version)"
        )
    if not isinstance(data["generated_at"], str) or not isinstance(data["dr_title"], str):
        raise ManifestFormatError("generated_at and dr_title must be strings")

    files = data["files"]
    if not isinstance(files, dict):
        raise ManifestFormatError("manifest files must be an object")
    for name, info in files.items():
        _check_entry(name, info)

    try:
        return Manifest.model_validate(
            {
                "generated_at": data["generated_at"],
                "dr_title": data["dr_title"],
                "files": {
                    name: {"sha256": info["sha256"], "size_bytes": info["size_bytes"]}
                    for name, info in files.items()
                },
            }
        )
    except ValidationError as e:
        raise ManifestFormatError(f"manifest failed validation: {e}") from e


def load_manifest(target_dir: Path) -> Manifest:
    """Read and parse ``manifest.json`` from ``target_dir``."""
    manifest_path = target_dir / MANIFEST_FILENAME
    try:
        raw = manifest_path.read_bytes()
    except FileNotFoundError as e:
        raise ManifestNotFoundError(f"Manifest not found: {manifest_path}") from e
    except OSError as e:
        raise ManifestNotFoundError(f"Cannot read manifest {manifest_path}: {e}") from e
    return parse_manifest(raw)


def _verify_file(target_dir: Path, filename: str, expected_sha256: str, expected_size: int) -> FileVerification:
    try:
        data = (target_dir / filename).read_bytes()
    except OSError as e:
        return FileVerification(
            filename=filename,
            status="error",
            expected_sha256=expected_sha256,
            expected_size_bytes=expected_size,
            error=str(e),
        )

    actual_sha256 = digest(data)
    actual_size = byte_length(data)
    matches = actual_sha256 == expected_sha256 and actual_size == expected_size
    return FileVerification(
        filename=filename,
        status="ok" if matches else "mismatch",
        expected_sha256=expected_sha256,
        expected_size_bytes=expected_size,
        actual_sha256=actual_sha256,
        actual_size_bytes=actual_size,
    )


def _untracked_files(target_dir: Path, tracked: set[str]) -> list[str]:
    try:
        names = [p.name for p in target_dir.iterdir() if p.is_file()]
    except OSError as e:
        logger.debug("Cannot list %s: %s", target_dir, e)
        return []
    return sorted(
        name for name in names
        if name != MANIFEST_FILENAME and name not in tracked and not is_transient_name(name)
    )


def verify_directory(target_dir: str | Path) -> VerifyResult:
    """Recompute digests for every file the manifest in ``target_dir`` lists.

    Results are ordered by filename. ``VerifyResult.ok`` is true only when
    every listed file matches.

    Raises:
        ManifestNotFoundError: No readable manifest.
        ManifestFormatError: Malformed manifest or non-null signature.
    """
    target = Path(target_dir)
    manifest = load_manifest(target)

    results = [
        _verify_file(target, name, info.sha256, info.size_bytes)
        for name, info in sorted(manifest.files.items())
    ]
    result = VerifyResult(
        target_dir=str(target),
        manifest_path=str(target / MANIFEST_FILENAME),
        results=results,
        untracked=_untracked_files(target, set(manifest.files)),
    )

    if result.ok:
        logger.info("Verified %d file(s) in %s", len(results), target)
    else:
        logger.info(
            "Verification failed in %s: %s",
            target, ", ".join(f"{r.filename}={r.status}" for r in result.failures),
        )
    return result
