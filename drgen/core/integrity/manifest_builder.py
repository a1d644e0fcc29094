"""
Manifest builder — hash every rendered file and record it.

The manifest never lists itself: callers pass the non-manifest files and
``assemble_output_set`` appends the serialized manifest as the last entry.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from drgen.core.integrity.hashing import byte_length, digest
from drgen.core.models.manifest import FileDigest, Manifest

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "manifest.json"


def build_manifest(
    title: str,
    generated_at: str,
    file_contents: Mapping[str, str],
) -> Manifest:
    """Build a manifest over ``file_contents``.

    Deterministic for identical inputs; ``generated_at`` is supplied by
    the caller and stored verbatim.

    Raises:
        ValueError: If ``file_contents`` contains the manifest filename.
        UnicodeEncodeError: If any content cannot be encoded.
    """
    if MANIFEST_FILENAME in file_contents:
        raise ValueError(f"{MANIFEST_FILENAME} cannot be listed in its own manifest")

    files = {
        name: FileDigest(sha256=digest(content), size_bytes=byte_length(content))
        for name, content in file_contents.items()
    }
    logger.debug("Built manifest for %r over %d file(s)", title, len(files))
    return Manifest(generated_at=generated_at, title=title, files=files)


def assemble_output_set(
    title: str,
    generated_at: str,
    file_contents: Mapping[str, str],
) -> dict[str, str]:
    """Return ``file_contents`` plus ``manifest.json``, ready to commit."""
    manifest = build_manifest(title, generated_at, file_contents)
    outputs = dict(file_contents)
    outputs[MANIFEST_FILENAME] = manifest.to_json()
    return outputs
