"""Core operations for jnotes.

This module contains the user-level operations the CLI exposes: opening
entries and notes, browsing by date, tag and timeline, content search,
continuing the last document, and listing sections.

Design principles:
- Every operation receives the StoreConfig explicitly; nothing is global.
- External programs are reached only through a Toolbox (see tools.py).
- An empty picker selection means the user declined: the operation returns
  None and changes nothing.
"""

from __future__ import annotations

import logging
import shlex
from pathlib import Path

from .config import StoreConfig
from .errors import NotFoundError, SourceNotFoundError
from .last_opened import LastOpenedTracker
from .models import OpenResult, Section, SourceRef, TimelineRow
from .parser.sections import collect_sections
from .paths import (
    date_days_ago,
    document_path,
    ensure_document,
    normalize_slug,
    read_document,
    resolve_source,
    today_date,
)
from .store import StoreScanner
from .tools import Toolbox, parse_search_output

log = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Opening documents
# ─────────────────────────────────────────────────────────────────────────────


def open_ref(
    config: StoreConfig,
    ref: SourceRef,
    toolbox: Toolbox | None = None,
    line: int | None = None,
    launch: bool = True,
) -> OpenResult:
    """Create the document if needed, remember it, and open it in the editor.

    With ``launch=False`` the document is prepared and recorded but no
    editor is started (structured output mode).
    """
    if not ref.resolved:
        raise SourceNotFoundError(f"Cannot resolve document: {ref.id!r}", {"ref": ref.id})

    path = document_path(config, ref)
    created = ensure_document(path, ref.id)
    return _launch(config, path, ref, toolbox, line, launch, created)


def _launch(
    config: StoreConfig,
    path: Path,
    ref: SourceRef,
    toolbox: Toolbox | None,
    line: int | None,
    launch: bool,
    created: bool = False,
) -> OpenResult:
    if launch:
        toolbox = toolbox or Toolbox.from_config(config)
        toolbox.editor.open(path, line)

    LastOpenedTracker(config.state_file).record(path)
    return OpenResult(path=str(path), kind=ref.kind, id=ref.id, created=created, line=line)


def open_path(
    config: StoreConfig,
    path: Path,
    toolbox: Toolbox | None = None,
    line: int | None = None,
    launch: bool = True,
) -> OpenResult:
    """Open a file found on disk (by a scan, a search or the picker) as is."""
    path = Path(path)
    if path.is_file():
        return _launch(config, path, resolve_source(str(path), config), toolbox, line, launch)
    return open_source(config, str(path), toolbox, line=line, launch=launch)


def open_source(
    config: StoreConfig,
    source: str,
    toolbox: Toolbox | None = None,
    line: int | None = None,
    launch: bool = True,
) -> OpenResult:
    """Open any reference accepted by :func:`~jnotes.paths.resolve_source`."""
    ref = resolve_source(source, config)
    if not ref.resolved:
        raise SourceNotFoundError(f"Cannot resolve document: {source}", {"ref": source})
    return open_ref(config, ref, toolbox, line=line, launch=launch)


def open_entry(
    config: StoreConfig, day: str, toolbox: Toolbox | None = None, launch: bool = True
) -> OpenResult:
    return open_ref(config, SourceRef(kind="entry", id=day), toolbox, launch=launch)


def open_today(config: StoreConfig, toolbox: Toolbox | None = None, launch: bool = True) -> OpenResult:
    return open_entry(config, today_date(), toolbox, launch=launch)


def open_days_ago(
    config: StoreConfig, days: int, toolbox: Toolbox | None = None, launch: bool = True
) -> OpenResult:
    return open_entry(config, date_days_ago(days), toolbox, launch=launch)


def open_note(
    config: StoreConfig, slug: str, toolbox: Toolbox | None = None, launch: bool = True
) -> OpenResult:
    normalized = normalize_slug(slug, config)
    if not normalized:
        raise SourceNotFoundError(f"Cannot resolve document: {slug}", {"ref": slug})
    return open_ref(config, SourceRef(kind="note", id=normalized), toolbox, launch=launch)


def open_most_recent(
    config: StoreConfig, toolbox: Toolbox | None = None, launch: bool = True
) -> OpenResult:
    """Open the last opened document, or else the most recently modified one.

    Raises:
        NotFoundError: If the store holds no documents at all.
    """
    path = LastOpenedTracker(config.state_file).resolve()
    if path is None:
        scanner = StoreScanner(config)
        path = scanner.most_recently_modified(scanner.all_documents())
    if path is None:
        raise NotFoundError("No entries found.")

    log.debug("Continuing with %s", path)
    return open_path(config, path, toolbox, launch=launch)


# ─────────────────────────────────────────────────────────────────────────────
# Browsing
# ─────────────────────────────────────────────────────────────────────────────


def _pick_one(toolbox: Toolbox, lines: list[str], **options) -> str:
    selection = toolbox.picker.select(lines, **options)
    return selection[0] if selection else ""


def browse_by_date(
    config: StoreConfig, toolbox: Toolbox, tag: str | None = None
) -> OpenResult | None:
    """Pick an entry (most recent first, optionally tagged) and open it."""
    files = StoreScanner(config).list_entry_files(tag)
    relative = [path.relative_to(config.journal_root).as_posix() for path in files]
    root = shlex.quote(str(config.journal_root))
    selection = _pick_one(
        toolbox,
        relative,
        preview=f"cat {root}/{{}}",
        preview_window="right:60%:wrap",
        prompt=f"Select date{f' (tag: {tag})' if tag else ''}: ",
    )
    if not selection:
        return None
    return open_path(config, config.journal_root / selection, toolbox)


def browse_tag(config: StoreConfig, toolbox: Toolbox, tag: str | None = None) -> OpenResult | None:
    """Browse entries with *tag*, picking the tag first when none is given."""
    selected = tag or ""
    if not selected:
        tags = StoreScanner(config).list_tags()
        selected = _pick_one(toolbox, tags, prompt="Select tag: ")
    if not selected:
        return None
    return browse_by_date(config, toolbox, selected)


def timeline_line(row: TimelineRow) -> str:
    """Picker line: the entry path as a hidden field, then date and preview."""
    return f"{row.path}\t{row.date}  \x1b[90m{row.preview}\x1b[0m"


def timeline_view(
    config: StoreConfig, toolbox: Toolbox, tag: str | None = None
) -> OpenResult | None:
    """Pick an entry from a chronological list with one-line previews."""
    rows = StoreScanner(config).timeline(tag)
    selection = _pick_one(
        toolbox,
        [timeline_line(row) for row in rows],
        ansi=True,
        no_sort=True,
        delimiter="\t",
        with_nth="2..",
        preview="cat {1}",
        preview_window="right:65%:wrap",
        prompt=f"Timeline{f' (tag: {tag})' if tag else ''}: ",
    )
    path = selection.split("\t", 1)[0].strip()
    if not path:
        return None
    return open_path(config, Path(path), toolbox)


def search_content(
    config: StoreConfig, toolbox: Toolbox, pattern: str = ""
) -> OpenResult | None:
    """Search the whole store, pick a matching line and open it there."""
    matches = toolbox.search.search(config.journal_root, pattern)
    if not matches:
        return None

    selection = _pick_one(
        toolbox,
        [f"{m.path}:{m.line}:{m.text}" for m in matches],
        delimiter=":",
        preview="bat --color=always --highlight-line {2} {1} 2>/dev/null || cat {1}",
        preview_window="right:60%:wrap:+{2}-10",
        prompt="Search content: ",
    )
    picked = parse_search_output(selection)
    if not picked:
        return None
    return open_path(config, Path(picked[0].path), toolbox, line=picked[0].line)


def browse_notes(
    config: StoreConfig, toolbox: Toolbox, slug: str | None = None
) -> OpenResult | None:
    """Open note *slug*, or pick one from the store when omitted."""
    selected = slug or ""
    if not selected:
        notes_root = shlex.quote(str(config.notes_root))
        selected = _pick_one(
            toolbox,
            StoreScanner(config).list_note_slugs(),
            prompt="Select note: ",
            preview=f"cat {notes_root}/{{}}.md",
            preview_window="right:60%:wrap",
        )
    if not selected:
        return None
    return open_note(config, selected, toolbox)


# ─────────────────────────────────────────────────────────────────────────────
# Sections
# ─────────────────────────────────────────────────────────────────────────────


def list_sections(config: StoreConfig, source: str) -> tuple[Path, list[Section]]:
    """Resolve an existing document and return its sections.

    Raises:
        SourceNotFoundError: If *source* does not name an existing document.
    """
    ref = resolve_source(source, config)
    if not ref.resolved:
        raise SourceNotFoundError(f"Source not found: {source}", {"source": source})
    path = document_path(config, ref)
    if not path.is_file():
        raise SourceNotFoundError(f"Source not found: {path}", {"source": source})
    return path, collect_sections(read_document(path))


def section_line(section: Section) -> str:
    return f"{section.index}\t{section.title}  (lines {section.start_line}-{section.end_line})"


def pick_sections(config: StoreConfig, toolbox: Toolbox, source: str) -> list[int]:
    """Let the user pick sections of *source* (multi-select); [] if declined."""
    _, sections = list_sections(config, source)
    selection = toolbox.picker.select(
        [section_line(s) for s in sections],
        prompt="Select sections: ",
        multi=True,
        no_sort=True,
        delimiter="\t",
    )
    indices = []
    for line in selection:
        head = line.split("\t", 1)[0].strip()
        if head.isdigit():
            indices.append(int(head))
    return indices
