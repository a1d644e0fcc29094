"""
Decision record model — the structured input every output is rendered from.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator


class DecisionRecord(BaseModel):
    """A single decision, as read from ``decision.yaml``.

    Only ``title`` is required. ``decision`` is the rule everyone should
    follow from now on (older inputs call it ``rule``).
    """

    title: str
    date: str | None = None
    decider: str | None = None
    status: str | None = None
    supersedes: str | None = None
    context: str | None = None
    why: str | None = None
    decision: str | None = None
    alternatives: str | None = None
    consequences: str | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must be a non-empty string")
        return value

    def missing_core_fields(self) -> list[str]:
        """Names of the fields that make a record useful but are empty."""
        missing = []
        if not (self.why or "").strip():
            missing.append("why")
        if not (self.decision or "").strip():
            missing.append("decision")
        return missing

    def summary_dict(self) -> dict[str, Any]:
        """Identity/lifecycle fields, omitting the ones that are unset."""
        data: dict[str, Any] = {"title": self.title}
        for key in ("date", "decider", "status", "supersedes"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.tags:
            data["tags"] = list(self.tags)
        return data
