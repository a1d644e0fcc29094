"""
Input template — the ``decision.yaml`` skeleton written for a new input path.
"""

from __future__ import annotations

TEMPLATE_LINES = (
    'title: "TODO: Decision title"',
    'date: ""',
    'decider: ""',
    'status: ""',
    'supersedes: ""',
    'context: ""',
    'why: ""',
    'decision: ""',
    'alternatives: ""',
    'consequences: ""',
    "tags: []",
)


def decision_yaml_template() -> str:
    return "\n".join(TEMPLATE_LINES) + "\n"
