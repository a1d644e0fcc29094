"""
Manifest model — per-file digests for a generated output set.

Serialized as ``manifest.json`` next to the files it describes:

    {
      "generated_at": "2026-01-02T03:04:05.678Z",
      "dr_title": "Use Postgres",
      "files": {"decision-record.md": {"sha256": "...", "size_bytes": 123}},
      "signature": null
    }

The signature slot is reserved. It is modelled as a tagged variant so that
signing can later be added as a new variant; in this version only
``SignatureAbsent`` exists on a manifest and it always serializes as null.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr


SHA256_HEX_PATTERN = r"^[0-9a-f]{64}$"


@dataclass(frozen=True)
class SignatureAbsent:
    """No signature present (the only variant written or accepted today)."""

    def to_json(self) -> None:
        return None


@dataclass(frozen=True)
class SignaturePresent:
    """Raw signature bytes found in a manifest.

    Never produced by the builder. The verifier reports it as a format
    violation instead of accepting it.
    """

    value: bytes


Signature = Union[SignatureAbsent, SignaturePresent]

ABSENT = SignatureAbsent()


class FileDigest(BaseModel):
    """Digest and size of one file, as recorded in the manifest."""

    model_config = ConfigDict(frozen=True)

    sha256: StrictStr = Field(pattern=SHA256_HEX_PATTERN)
    size_bytes: StrictInt = Field(ge=0)


class Manifest(BaseModel):
    """Integrity manifest for one output directory.

    ``signature`` is a read-only property rather than a field, so it
    cannot be set through the constructor or ``model_validate``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    generated_at: str
    title: str = Field(alias="dr_title")
    files: dict[str, FileDigest] = Field(default_factory=dict)

    @property
    def signature(self) -> Signature:
        return ABSENT

    def to_dict(self) -> dict[str, Any]:
        return {
            "generated_at": self.generated_at,
            "dr_title": self.title,
            "files": {
                name: {"sha256": info.sha256, "size_bytes": info.size_bytes}
                for name, info in self.files.items()
            },
            "signature": self.signature.to_json(),
        }

    def to_json(self) -> str:
        """Pretty JSON, 2-space indent, no trailing newline."""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)
