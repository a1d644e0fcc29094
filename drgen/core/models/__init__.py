"""
Domain models — Pydantic types for dr-gen.

    from drgen.core.models import DecisionRecord, Manifest, VerifyResult
"""

from drgen.core.models.manifest import (
    ABSENT,
    FileDigest,
    Manifest,
    Signature,
    SignatureAbsent,
    SignaturePresent,
)
from drgen.core.models.record import DecisionRecord
from drgen.core.models.verification import FileVerification, VerifyResult

__all__ = [
    # manifest.py
    "ABSENT",
    "FileDigest",
    "Manifest",
    "Signature",
    "SignatureAbsent",
    "SignaturePresent",
    # record.py
    "DecisionRecord",
    # verification.py
    "FileVerification",
    "VerifyResult",
]
