#!/usr/bin/env python3
"""
j: CLI for a plain-text journal

Usage:
    j                              # Open today's entry
    j -1                           # Open yesterday's entry
    j date --tag=ai                # Pick a tagged entry by date
    j search                       # Search content, open at the match
    j note ideas/cli               # Open (or create) a note
    j extract 2024-01-01 todo --lines=3-7
"""

from __future__ import annotations

import difflib
import json
import re
import sys
from collections.abc import Sequence
from typing import Any, NoReturn

import click
from click.exceptions import ClickException, UsageError

from . import __version__ as JNOTES_VERSION

_DAYS_AGO_RE = re.compile(r"^-\d+$")
_LINE_RANGE_RE = re.compile(r"^\s*(\d+)\s*(?:-\s*(\d+))?\s*$")


# ─────────────────────────────────────────────────────────────────────────────
# Output Formatting
# ─────────────────────────────────────────────────────────────────────────────


def format_table(rows: list[dict], columns: list[str], max_widths: dict | None = None) -> str:
    """Format rows as a simple table."""
    if not rows:
        return ""

    max_widths = max_widths or {}
    widths = {col: len(col) for col in columns}

    def cell(row: dict, col: str) -> str:
        val = str(row.get(col, ""))
        limit = max_widths.get(col, 50)
        if len(val) > limit:
            val = val[: limit - 3] + "..."
        return val

    for row in rows:
        for col in columns:
            widths[col] = max(widths[col], len(cell(row, col)))

    header = "  ".join(col.upper().ljust(widths[col]) for col in columns)
    separator = "  ".join("-" * widths[col] for col in columns)

    lines = [header, separator]
    for row in rows:
        lines.append("  ".join(cell(row, col).ljust(widths[col]) for col in columns))

    return "\n".join(lines)


def output(data, as_json: bool = False):
    """Output data as JSON or formatted text."""
    if as_json:
        click.echo(json.dumps(data, indent=2, default=str))
    else:
        click.echo(data)


def _handle_error(ctx: click.Context | None, error: Exception, exit_code: int = 1) -> NoReturn:
    """Report an error on stderr and exit.

    If --json-errors is enabled, outputs structured JSON error.
    Otherwise, outputs a single human-readable line.
    """
    from .errors import ErrorCode, JnotesError, format_error_json

    json_errors = bool(ctx and ctx.obj and ctx.obj.get("json_errors"))

    if isinstance(error, JnotesError):
        if json_errors:
            click.echo(error.to_json(), err=True)
        else:
            click.echo(f"Error: {error.message}", err=True)
    else:
        message = str(error)
        if isinstance(error, OSError) and error.filename and error.strerror:
            message = f"{error.strerror}: {error.filename}"
        if json_errors:
            click.echo(format_error_json(ErrorCode.FILE_ERROR, message), err=True)
        else:
            click.echo(f"Error: {message}", err=True)

    sys.exit(exit_code)


def get_error_code_for_exception(exc: Exception) -> str:
    """Map Click exceptions to error codes."""
    # MissingParameter subclasses BadParameter
    if isinstance(exc, click.MissingParameter):
        return "MISSING_ARGUMENT"
    elif isinstance(exc, click.BadParameter):
        return "INVALID_ARGUMENT"
    elif isinstance(exc, click.NoSuchOption):
        return "UNKNOWN_OPTION"
    elif isinstance(exc, UsageError):
        return "USAGE_ERROR"
    elif isinstance(exc, ClickException):
        return "CLI_ERROR"
    return "UNKNOWN_ERROR"


def normalize_argv(argv: Sequence[str]) -> list[str]:
    """Rewrite shorthand arguments into regular commands.

    - ``j -N`` becomes ``j days-ago N``
    - a misplaced ``--json-errors`` is moved to the front
    """
    args = list(argv)
    if "--json-errors" in args:
        args = [a for a in args if a != "--json-errors"]
        args.insert(0, "--json-errors")

    for i, arg in enumerate(args):
        if arg in ("--json-errors", "--quiet", "-q"):
            continue
        if _DAYS_AGO_RE.match(arg):
            args[i : i + 1] = ["days-ago", arg[1:]]
        break

    return args


# ─────────────────────────────────────────────────────────────────────────────
# Command Group
# ─────────────────────────────────────────────────────────────────────────────


class JnotesGroup(click.Group):
    """Click group that renders jnotes errors and suggests commands for typos.

    Core errors (JnotesError) and I/O errors (OSError) escaping a command
    become a single "Error: ..." line (or a JSON object with --json-errors)
    and exit status 1.
    """

    def resolve_command(self, ctx, args):
        """Override to suggest similar commands for typos."""
        try:
            return super().resolve_command(ctx, args)
        except UsageError as e:
            cmd_name = args[0] if args else ""
            if cmd_name and "No such command" in str(e):
                matches = difflib.get_close_matches(
                    cmd_name, self.list_commands(ctx), n=1, cutoff=0.6
                )
                if matches:
                    raise UsageError(f"No such command '{cmd_name}'. Did you mean '{matches[0]}'?")
            raise

    def invoke(self, ctx):
        """Override invoke to catch and format errors."""
        from .errors import JnotesError

        try:
            return super().invoke(ctx)
        except (JnotesError, OSError, UnicodeDecodeError) as e:
            _handle_error(ctx, e)
        except ClickException as e:
            if ctx.params.get("json_errors"):
                from .errors import format_error_json

                code = get_error_code_for_exception(e)
                click.echo(format_error_json(code, e.format_message()), err=True)
                raise SystemExit(1)
            raise

    def main(
        self,
        args: Sequence[str] | None = None,
        prog_name: str | None = None,
        complete_var: str | None = None,
        standalone_mode: bool = True,
        **extra: Any,
    ) -> Any:
        """Override main to rewrite shorthand arguments and catch parse errors.

        With --json-errors, Click runs with standalone_mode=False so errors
        raised during argument parsing can be reported as JSON.
        """
        argv = normalize_argv(args if args is not None else sys.argv[1:])

        if "--json-errors" not in argv:
            return super().main(argv, prog_name, complete_var, standalone_mode, **extra)

        from .errors import format_error_json

        try:
            return super().main(argv, prog_name, complete_var, standalone_mode=False, **extra)
        except ClickException as e:
            code = get_error_code_for_exception(e)
            click.echo(format_error_json(code, e.format_message()), err=True)
            raise SystemExit(1)


def _config(ctx: click.Context):
    return ctx.obj["config"]


def _toolbox(ctx: click.Context):
    from .tools import Toolbox

    if ctx.obj.get("toolbox") is None:
        ctx.obj["toolbox"] = Toolbox.from_config(_config(ctx))
    return ctx.obj["toolbox"]


def _emit_open(result, as_json: bool) -> None:
    if result is None:
        return
    if as_json:
        output(result.model_dump(), as_json=True)


@click.group(cls=JnotesGroup, invoke_without_command=True)
@click.version_option(version=JNOTES_VERSION, prog_name="j")
@click.option(
    "--json-errors",
    "json_errors",
    is_flag=True,
    help="Output errors as JSON (for programmatic use)",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    envvar="JNOTES_QUIET",
    help="Suppress informational log messages",
)
@click.pass_context
def cli(ctx: click.Context, json_errors: bool, quiet: bool):
    """j: plain-text journal entries and notes.

    \b
    Entries are ~/journal/YYYY-MM-DD.md, notes are ~/journal/notes/<slug>.md.
    Tags live on line 2 of an entry ("tags: ai, work" or "#ai #work").

    \b
    Open:
      j                        # Today's entry
      j -N                     # Entry N days ago (j -1 = yesterday)
      j open notes/ideas       # Any entry or note by reference
      j note [SLUG]            # Open a note, or pick one
      j continue               # Last opened (or last modified) document

    \b
    Browse:
      j date [--tag=ai]        # Pick an entry by date
      j timeline [--tag=ai]    # Chronological list with previews
      j tag [TAG]              # Browse entries with a tag
      j tags | j notes         # List tags / note slugs
      j search                 # Content search, open at the match

    \b
    Restructure:
      j sections 2024-01-01                     # Show sections
      j extract 2024-01-01 ideas --lines=3-9    # Move lines into a note
      j extract 2024-01-01 ideas --section=2    # Move sections into a note

    Every command accepts --json for structured output.
    """
    from ._logging import set_quiet_mode
    from .config import load_config

    ctx.ensure_object(dict)
    ctx.obj["json_errors"] = json_errors
    ctx.obj["quiet"] = quiet

    if quiet:
        set_quiet_mode(True)

    ctx.obj["config"] = load_config()

    if ctx.invoked_subcommand is None:
        ctx.invoke(today)


# ─────────────────────────────────────────────────────────────────────────────
# Open Commands
# ─────────────────────────────────────────────────────────────────────────────


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print the entry instead of opening it")
@click.pass_context
def today(ctx: click.Context, as_json: bool = False):
    """Open today's journal entry."""
    from .core import open_today

    toolbox = None if as_json else _toolbox(ctx)
    _emit_open(open_today(_config(ctx), toolbox, launch=not as_json), as_json)


@cli.command("days-ago")
@click.argument("days", type=click.IntRange(min=0))
@click.option("--json", "as_json", is_flag=True, help="Print the entry instead of opening it")
@click.pass_context
def days_ago(ctx: click.Context, days: int, as_json: bool):
    """Open the entry for DAYS days ago (shorthand: j -DAYS).

    \b
    Examples:
      j days-ago 1     # yesterday
      j -7             # a week ago
    """
    from .core import open_days_ago

    toolbox = None if as_json else _toolbox(ctx)
    _emit_open(open_days_ago(_config(ctx), days, toolbox, launch=not as_json), as_json)


@cli.command("open")
@click.argument("ref")
@click.option("--line", "-l", type=click.IntRange(min=1), help="Start at this line")
@click.option("--json", "as_json", is_flag=True, help="Print the document instead of opening it")
@click.pass_context
def open_cmd(ctx: click.Context, ref: str, line: int | None, as_json: bool):
    """Open an entry or note by reference, creating it if needed.

    \b
    REF may be a date, notes/<slug>, a bare slug, or an absolute path.
    Examples:
      j open 2024-01-01
      j open notes/projects/jnotes.md
      j open reading-list --line=12
    """
    from .core import open_source

    toolbox = None if as_json else _toolbox(ctx)
    result = open_source(_config(ctx), ref, toolbox, line=line, launch=not as_json)
    _emit_open(result, as_json)


@cli.command()
@click.argument("slug", required=False)
@click.option("--json", "as_json", is_flag=True, help="Print the note instead of opening it")
@click.pass_context
def note(ctx: click.Context, slug: str | None, as_json: bool):
    """Open note SLUG, or pick one from the list when omitted."""
    from .core import browse_notes, open_note

    config = _config(ctx)
    if as_json:
        if not slug:
            raise UsageError("SLUG is required with --json (use 'j notes --json' to list notes)")
        _emit_open(open_note(config, slug, launch=False), as_json)
        return
    browse_notes(config, _toolbox(ctx), slug)


@cli.command("continue")
@click.option("--json", "as_json", is_flag=True, help="Print the document instead of opening it")
@click.pass_context
def continue_cmd(ctx: click.Context, as_json: bool):
    """Open the last opened document, else the most recently modified one."""
    from .core import open_most_recent

    toolbox = None if as_json else _toolbox(ctx)
    _emit_open(open_most_recent(_config(ctx), toolbox, launch=not as_json), as_json)


# ─────────────────────────────────────────────────────────────────────────────
# Browse Commands
# ─────────────────────────────────────────────────────────────────────────────


@cli.command()
@click.option("--tag", "-t", help="Only entries with this tag on line 2")
@click.option("--json", "as_json", is_flag=True, help="List entries as JSON instead of picking")
@click.pass_context
def date(ctx: click.Context, tag: str | None, as_json: bool):
    """Pick an entry by date (most recent first) and open it."""
    from .core import browse_by_date
    from .store import StoreScanner

    config = _config(ctx)
    if as_json:
        files = StoreScanner(config).list_entry_files(tag)
        output([{"date": p.stem, "path": str(p)} for p in files], as_json=True)
        return
    browse_by_date(config, _toolbox(ctx), tag)


@cli.command()
@click.option("--tag", "-t", help="Only entries with this tag on line 2")
@click.option("--json", "as_json", is_flag=True, help="List rows as JSON instead of picking")
@click.pass_context
def timeline(ctx: click.Context, tag: str | None, as_json: bool):
    """Browse entries chronologically with a one-line preview."""
    from .core import timeline_view
    from .store import StoreScanner

    config = _config(ctx)
    if as_json:
        rows = StoreScanner(config).timeline(tag)
        output([row.model_dump() for row in rows], as_json=True)
        return
    timeline_view(config, _toolbox(ctx), tag)


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def tags(ctx: click.Context, as_json: bool):
    """List all tags used on line 2 of entries."""
    from .store import StoreScanner

    result = StoreScanner(_config(ctx)).list_tags()
    if as_json:
        output(result, as_json=True)
    elif result:
        click.echo("\n".join(result))
    else:
        click.echo("No tags found.")


@cli.command()
@click.argument("tag_name", metavar="TAG", required=False)
@click.option("--json", "as_json", is_flag=True, help="List matching entries as JSON")
@click.pass_context
def tag(ctx: click.Context, tag_name: str | None, as_json: bool):
    """Browse entries with TAG (pick the tag first when omitted)."""
    from .core import browse_tag
    from .store import StoreScanner

    config = _config(ctx)
    if as_json:
        scanner = StoreScanner(config)
        if not tag_name:
            output(scanner.list_tags(), as_json=True)
            return
        files = scanner.list_entry_files(tag_name)
        output([{"date": p.stem, "path": str(p)} for p in files], as_json=True)
        return
    browse_tag(config, _toolbox(ctx), tag_name)


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def notes(ctx: click.Context, as_json: bool):
    """List note slugs."""
    from .store import StoreScanner

    result = StoreScanner(_config(ctx)).list_note_slugs()
    if as_json:
        output(result, as_json=True)
    elif result:
        click.echo("\n".join(result))
    else:
        click.echo("No notes found.")


@cli.command()
@click.argument("pattern", default="")
@click.option("--json", "as_json", is_flag=True, help="List matches as JSON instead of picking")
@click.pass_context
def search(ctx: click.Context, pattern: str, as_json: bool):
    """Search the content of all entries and notes.

    Without PATTERN every line is a candidate and the picker does the
    filtering.
    """
    from .core import search_content

    config = _config(ctx)
    toolbox = _toolbox(ctx)
    if as_json:
        matches = toolbox.search.search(config.journal_root, pattern)
        output([m.model_dump() for m in matches], as_json=True)
        return
    search_content(config, toolbox, pattern)


# ─────────────────────────────────────────────────────────────────────────────
# Sections and Extraction
# ─────────────────────────────────────────────────────────────────────────────


@cli.command()
@click.argument("ref")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def sections(ctx: click.Context, ref: str, as_json: bool):
    """List the separator-delimited sections of a document."""
    from .core import list_sections

    path, found = list_sections(_config(ctx), ref)
    if as_json:
        output({"path": str(path), "sections": [s.model_dump() for s in found]}, as_json=True)
        return
    if not found:
        click.echo("No sections found.")
        return

    rows = [
        {"#": s.index, "lines": f"{s.start_line}-{s.end_line}", "title": s.title}
        for s in found
    ]
    click.echo(format_table(rows, ["#", "lines", "title"], {"title": 60}))


def parse_line_range(value: str) -> tuple[int, int]:
    """Parse ``A-B`` (or a single ``A``) into an inclusive line range."""
    m = _LINE_RANGE_RE.match(value)
    if not m:
        raise click.BadParameter(f"expected START-END, got {value!r}", param_hint="--lines")
    start = int(m.group(1))
    end = int(m.group(2)) if m.group(2) else start
    return start, end


@cli.command()
@click.argument("ref")
@click.argument("target")
@click.option("--lines", "line_range", help="Line range to move, e.g. 3-7")
@click.option(
    "--section",
    "-s",
    "section_indices",
    type=int,
    multiple=True,
    help="Section number to move (repeatable, see 'j sections')",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def extract(
    ctx: click.Context,
    ref: str,
    target: str,
    line_range: str | None,
    section_indices: tuple[int, ...],
    as_json: bool,
):
    """Move lines or sections of REF into note TARGET, leaving a link.

    The moved content is appended to notes/TARGET.md (created if needed)
    below a "Source:" backlink. With neither --lines nor --section, pick
    sections interactively.

    \b
    Examples:
      j extract 2024-01-01 recipes --lines=5-12
      j extract 2024-01-01 recipes --section=2 --section=4
      j extract notes/inbox projects/garden
    """
    from .core import pick_sections
    from .extract import extract_range, extract_sections

    if line_range and section_indices:
        raise UsageError("Use either --lines or --section, not both")

    config = _config(ctx)
    if line_range:
        start, end = parse_line_range(line_range)
        result = extract_range(config, ref, start, end, target)
    else:
        indices = list(section_indices)
        if not indices:
            indices = pick_sections(config, _toolbox(ctx), ref)
            if not indices:
                return
        result = extract_sections(config, ref, indices, target)

    if as_json:
        output(result.model_dump(), as_json=True)
    else:
        click.echo(f"Moved {result.lines_moved} line(s) to {result.target}")


# ─────────────────────────────────────────────────────────────────────────────
# Aliases
# ─────────────────────────────────────────────────────────────────────────────


@cli.command("recent", hidden=True)
@click.option("--json", "as_json", is_flag=True, help="Print the document instead of opening it")
@click.pass_context
def recent_alias(ctx: click.Context, as_json: bool):
    """Alias for j continue."""
    ctx.invoke(continue_cmd, as_json=as_json)


# ─────────────────────────────────────────────────────────────────────────────
# Entry Point
# ─────────────────────────────────────────────────────────────────────────────


def main():
    """Entry point for j CLI."""
    from ._logging import configure_logging

    configure_logging()
    cli()


if __name__ == "__main__":
    main()
