"""
User-facing message lines for the CLI.

Kept out of ``main.py`` so wording is tested in one place.
"""

from __future__ import annotations


def template_created_lines(input_path: str) -> list[str]:
    return [
        f"Created template: {input_path}",
        "Next steps:",
        "1) Open the file and fill in at least the title",
        f"2) Run: dr-gen generate {input_path}",
    ]


def signature_ignored_lines() -> list[str]:
    return ["Warning: --signature is not implemented yet (ignored)."]


def missing_core_fields_lines(input_path: str, missing: list[str]) -> list[str]:
    lines = [
        f"Warning: {input_path} is missing: {', '.join(missing)}.",
        "Tip: Decision records are much more useful with the reason (why) "
        "and the decision (the rule everyone follows).",
        "Open the file and add, for example:",
    ]
    if "why" in missing:
        lines.append('  why: "<reason / goal>"')
    if "decision" in missing:
        lines.append('  decision: "<rule everyone should follow>"')
    return lines


def similar_title_lines() -> list[str]:
    return [
        "Warning: the decision repeats the title.",
        "Tip: the title names the decision; the decision states the rule to follow.",
    ]


def wrote_input_lines(input_path: str) -> list[str]:
    return [f"Wrote: {input_path}"]


def generated_output_lines(out_dir: str) -> list[str]:
    return [f"Generated: {out_dir}"]


def new_intro_lines(include_date: bool, today: str) -> list[str]:
    lines = [
        "Answer a few questions. Short answers are OK.",
        "Tip: Focus on the reason (Why) and the rule (Decision).",
    ]
    if include_date:
        lines.append(f"Date will be set to today ({today}). Use --no-date to disable.")
    return lines


PROMPT_TITLE = "Title (required): what did you decide? (one sentence)"
PROMPT_WHY = "Why (required): reason / goal behind the decision"
PROMPT_DECISION = "Decision (required): what rule should everyone follow from now on?"
PROMPT_CONTEXT = "Context (optional): background / constraints"
