"""
dr-gen — CLI entrypoint.

Usage:
    dr-gen --help
    dr-gen generate in/decision.yaml --out-dir out
    dr-gen new
    dr-gen verify out/2026-01-02__Use-Postgres__1a2b3c4d
    dr-gen list --from 2026-01-01
    dr-gen report --output report.md
"""

from __future__ import annotations

import json
import os
import sys
from datetime import date
from pathlib import Path

import click

from drgen import __version__
from drgen.core.config.loader import ConfigError, Settings, load_settings
from drgen.core.observability.logging_config import (
    ENV_FILE,
    ENV_FILE_LEVEL,
    ENV_LEVEL,
    setup_logging,
)
from drgen.core.services import messages

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_MANIFEST_ERROR = 2


def _settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


def _echo_lines(lines: list[str], *, err: bool = False, fg: str | None = None) -> None:
    for line in lines:
        click.secho(line, err=err, fg=fg)


@click.group()
@click.version_option(version=__version__, prog_name="dr-gen")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to drgen.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """dr-gen — lightweight decision records with tamper-evident outputs."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get(ENV_LEVEL, "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get(ENV_FILE),
        log_file_level=os.environ.get(ENV_FILE_LEVEL),
    )

    try:
        ctx.obj["settings"] = load_settings(Path(config_path) if config_path else None)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        ctx.exit(EXIT_FAILED)


# ── Generate ────────────────────────────────────────────────────


def _report_review(result, input_label: str) -> None:
    if result.missing_fields:
        _echo_lines(messages.missing_core_fields_lines(input_label, result.missing_fields), err=True, fg="yellow")
    if result.similar_title:
        _echo_lines(messages.similar_title_lines(), err=True, fg="yellow")


def _report_commit_failure(result) -> None:
    click.secho(f"❌ {result.error}", fg="red", err=True)
    commit = result.commit
    if commit is None:
        return
    for err in commit.rollback_errors:
        click.echo(f"   • rollback: {err}", err=True)
    if commit.inconsistent_files:
        click.secho(
            f"   ⚠️  May be inconsistent: {', '.join(commit.inconsistent_files)}",
            fg="yellow",
            err=True,
        )
    if commit.kept_backups:
        click.echo(f"   Backups kept for manual recovery: {', '.join(commit.kept_backups)}", err=True)


@cli.command()
@click.argument("input_path", metavar="INPUT", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--out-dir", "-o", "out_dir", default=None, help="Output base directory (created if missing).")
@click.option("--signature", is_flag=True, help="Reserved for future signatures (ignored).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def generate(
    ctx: click.Context,
    input_path: Path,
    out_dir: str | None,
    signature: bool,
    as_json: bool,
) -> None:
    """Generate decision record outputs from a decision.yaml file.

    If INPUT does not exist, a template is written there instead.
    """
    from drgen.core.use_cases.generate import generate_from_file

    if signature and not as_json:
        _echo_lines(messages.signature_ignored_lines(), err=True, fg="yellow")

    out_base = Path(out_dir or _settings(ctx).out_dir)
    result = generate_from_file(input_path, out_base)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        sys.exit(EXIT_OK if result.ok else EXIT_FAILED)

    if result.template_created:
        _echo_lines(messages.template_created_lines(str(input_path)))
        return

    if result.record is not None:
        _report_review(result, str(input_path))

    if not result.ok:
        _report_commit_failure(result)
        sys.exit(EXIT_FAILED)

    if not ctx.obj.get("quiet"):
        _echo_lines(messages.generated_output_lines(str(result.out_dir)))


@cli.command()
@click.option("--in-dir", "in_dir", default=None, help="Base directory for inputs.")
@click.option("--path", "-p", "yaml_path", default=None, help="Where to write decision.yaml (overrides --in-dir).")
@click.option("--out-dir", "-o", "out_dir", default=None, help="Output base directory (created if missing).")
@click.option("--date/--no-date", "include_date", default=None, help="Auto-fill today's date.")
@click.option("--force", is_flag=True, help="Overwrite decision.yaml if it already exists.")
@click.pass_context
def new(
    ctx: click.Context,
    in_dir: str | None,
    yaml_path: str | None,
    out_dir: str | None,
    include_date: bool | None,
    force: bool,
) -> None:
    """Create decision.yaml by answering questions, then generate outputs."""
    from drgen.core.models.record import DecisionRecord
    from drgen.core.use_cases.generate import create_record

    settings = _settings(ctx)
    if include_date is None:
        include_date = settings.include_date
    today = date.today().isoformat()

    _echo_lines(messages.new_intro_lines(include_date, today))

    def _required(text: str) -> str:
        return click.prompt(text, value_proc=_non_blank).strip()

    title = _required(messages.PROMPT_TITLE)
    why = _required(messages.PROMPT_WHY)
    decision = _required(messages.PROMPT_DECISION)
    context = click.prompt(messages.PROMPT_CONTEXT, default="", show_default=False).strip()

    record = DecisionRecord(
        title=title,
        why=why,
        decision=decision,
        context=context or None,
        date=today if include_date else None,
    )

    result = create_record(
        record,
        Path(in_dir or settings.in_dir),
        Path(out_dir or settings.out_dir),
        input_path=Path(yaml_path) if yaml_path else None,
        force=force,
    )

    if result.input_written:
        _echo_lines(messages.wrote_input_lines(str(result.input_path)))
    _report_review(result, str(result.input_path))

    if not result.ok:
        _report_commit_failure(result)
        sys.exit(EXIT_FAILED)

    _echo_lines(messages.generated_output_lines(str(result.out_dir)))


def _non_blank(value: str) -> str:
    if not value.strip():
        raise click.BadParameter("This field is required (cannot be empty).")
    return value


# ── Verify ──────────────────────────────────────────────────────


@cli.command()
@click.argument("target_dir", metavar="DIR", default=".", type=click.Path(file_okay=False, path_type=Path))
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def verify(ctx: click.Context, target_dir: Path, as_json: bool) -> None:
    """Verify DIR against its manifest.json.

    Exit codes: 0 all files match, 1 mismatch or unreadable file,
    2 manifest missing or malformed.
    """
    from drgen.core.use_cases.verify import verify_outputs

    outcome = verify_outputs(target_dir)

    if as_json:
        click.echo(json.dumps(outcome.to_dict(), indent=2, ensure_ascii=False))
    elif outcome.result is None:
        click.secho(f"❌ {outcome.error}", fg="red", err=True)
    else:
        result = outcome.result
        for item in result.results:
            if item.ok:
                if not ctx.obj.get("quiet"):
                    click.secho(f"   ✓ {item.filename}", fg="green")
            elif item.status == "mismatch":
                click.secho(f"   ✗ {item.filename} ", fg="red", nl=False)
                click.echo(
                    f"(expected {item.expected_sha256[:12]}… {item.expected_size_bytes}B, "
                    f"got {(item.actual_sha256 or '')[:12]}… {item.actual_size_bytes}B)"
                )
            else:
                click.secho(f"   ✗ {item.filename} ", fg="red", nl=False)
                click.echo(f"({item.error})")

        if result.untracked and ctx.obj.get("verbose"):
            click.secho(f"   Untracked: {', '.join(result.untracked)}", fg="yellow")

        click.echo()
        if result.ok:
            click.secho(f"✅ {len(result.results)} file(s) verified", fg="green", bold=True)
        else:
            click.secho(
                f"❌ {len(result.failures)}/{len(result.results)} file(s) failed verification",
                fg="red",
                bold=True,
            )

    if outcome.result is None:
        sys.exit(EXIT_MANIFEST_ERROR)
    sys.exit(EXIT_OK if outcome.ok else EXIT_FAILED)


# ── List / report ───────────────────────────────────────────────


def _load_listing(out_base: Path, date_from: str | None, date_to: str | None):
    from drgen.core.services.listing import list_decisions

    if not out_base.is_dir():
        raise click.ClickException(f"Output directory not found: {out_base}")
    try:
        return list_decisions(out_base, date_from, date_to)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


@cli.command("list")
@click.option("--out-dir", "-o", "out_dir", default=None, help="Output base directory.")
@click.option("--from", "date_from", default=None, help="Earliest date (YYYY-MM-DD).")
@click.option("--to", "date_to", default=None, help="Latest date (YYYY-MM-DD).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(
    ctx: click.Context,
    out_dir: str | None,
    date_from: str | None,
    date_to: str | None,
    as_json: bool,
) -> None:
    """List generated decisions, newest first."""
    items = _load_listing(Path(out_dir or _settings(ctx).out_dir), date_from, date_to)

    if as_json:
        click.echo(json.dumps([i.to_dict() for i in items], indent=2, ensure_ascii=False))
        return

    if not items:
        click.echo("No decisions found.")
        return

    for item in items:
        summary = item.summary
        title = summary.title if summary and summary.title else ""
        when = item.date_from_folder or "undated"
        click.secho(f"   {when} ", fg="cyan", nl=False)
        click.echo(f"{title or item.folder_name}")
        if summary and summary.status:
            click.echo(f"      status: {summary.status}")
        if item.decision_excerpt and ctx.obj.get("verbose"):
            click.echo(f"      {item.decision_excerpt}")


@cli.command()
@click.option("--out-dir", "-o", "out_dir", default=None, help="Output base directory.")
@click.option("--from", "date_from", default=None, help="Earliest date (YYYY-MM-DD).")
@click.option("--to", "date_to", default=None, help="Latest date (YYYY-MM-DD).")
@click.option("--max-decision-len", type=click.IntRange(min=2), default=None, help="Clip decision excerpts.")
@click.option("--output", "output_path", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Write the report to a file instead of stdout.")
@click.pass_context
def report(
    ctx: click.Context,
    out_dir: str | None,
    date_from: str | None,
    date_to: str | None,
    max_decision_len: int | None,
    output_path: Path | None,
) -> None:
    """Render a Markdown report of generated decisions."""
    from drgen.core.persistence.transaction import CommitError, TransactionalWriter
    from drgen.core.services.listing import render_report_markdown
    from drgen.core.services.record_render import generated_at_now

    settings = _settings(ctx)
    out_base = Path(out_dir or settings.out_dir)
    items = _load_listing(out_base, date_from, date_to)

    text = render_report_markdown(
        items,
        out_dir=str(out_base),
        generated_at=generated_at_now(),
        date_from=date_from,
        date_to=date_to,
        max_decision_len=max_decision_len or settings.max_decision_len,
    )

    if output_path is None:
        click.echo(text)
        return

    try:
        TransactionalWriter().commit(output_path.parent, {output_path.name: text}).raise_for_status()
    except CommitError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(EXIT_FAILED)
    if not ctx.obj.get("quiet"):
        click.echo(f"Wrote: {output_path}")


if __name__ == "__main__":
    cli()
