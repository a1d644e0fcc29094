"""
Shared test fixtures and configuration.
"""

import logging
from pathlib import Path

import pytest

from drgen.core.models.record import DecisionRecord

FIXED_GENERATED_AT = "2026-01-02T03:04:05.678Z"


@pytest.fixture(autouse=True)
def _reset_drgen_logging():
    """CLI runs attach handlers to captured streams; drop them after each test."""
    yield
    logger = logging.getLogger("drgen")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def generated_at() -> str:
    """A fixed manifest timestamp."""
    return FIXED_GENERATED_AT


@pytest.fixture
def record() -> DecisionRecord:
    """A fully populated decision record."""
    return DecisionRecord(
        title="Use Postgres",
        date="2026-01-02",
        decider="platform-team",
        status="accepted",
        context="We need a relational store for billing.",
        why="Strong consistency and mature tooling.",
        decision="All new services store relational data in Postgres.",
        alternatives="MySQL, DynamoDB",
        consequences="Ops must run backups.",
        tags=["db", "infra"],
    )


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    """An output base directory that does not exist yet."""
    return tmp_path / "out"


def snapshot(directory: Path) -> dict[str, bytes]:
    """Every entry name in ``directory`` mapped to its bytes (dirs map to b"")."""
    return {
        p.name: (p.read_bytes() if p.is_file() else b"")
        for p in sorted(directory.iterdir())
    }
