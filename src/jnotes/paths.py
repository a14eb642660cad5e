"""Store layout and document identity.

Maps user-supplied references ("2024-01-01", "notes/ideas", an absolute path,
a bare slug) to a :class:`SourceRef`, and documents to their paths on disk.
"""

from __future__ import annotations

import logging
import os
from datetime import date, timedelta
from pathlib import Path

from .config import DATE_PATTERN, DOCUMENT_TEMPLATE, NOTES_DIRNAME, StoreConfig
from .errors import DocumentDecodeError
from .models import SourceRef

log = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Dates
# ─────────────────────────────────────────────────────────────────────────────


def format_date(day: date) -> str:
    return day.strftime("%Y-%m-%d")


def today_date() -> str:
    return format_date(date.today())


def date_days_ago(days: int, today: date | None = None) -> str:
    """Return the ``YYYY-MM-DD`` date *days* before *today* (local time)."""
    base = today or date.today()
    return format_date(base - timedelta(days=days))


def is_date_id(value: str) -> bool:
    return bool(DATE_PATTERN.match(value))


# ─────────────────────────────────────────────────────────────────────────────
# Paths
# ─────────────────────────────────────────────────────────────────────────────


def entry_path_for_date(config: StoreConfig, day: str) -> Path:
    return config.journal_root / f"{day}.md"


def note_path_for_slug(config: StoreConfig, slug: str) -> Path:
    return config.notes_root / f"{slug}.md"


def document_path(config: StoreConfig, ref: SourceRef) -> Path:
    """Return the on-disk path for a resolved reference.

    Raises:
        ValueError: If *ref* is unresolved.
    """
    if ref.kind == "entry":
        return entry_path_for_date(config, ref.id)
    if ref.kind == "note" and ref.id:
        return note_path_for_slug(config, ref.id)
    raise ValueError(f"Cannot build a path for unresolved reference: {ref.id!r}")


def document_label(ref: SourceRef) -> str:
    """Short display label: the entry date, or the note's basename."""
    if ref.kind == "note":
        return ref.id.rsplit("/", 1)[-1]
    return ref.id


def _strip_md_suffix(value: str) -> str:
    value = value.strip()
    if value.lower().endswith(".md"):
        value = value[:-3]
    return value


def _to_slug(value: str) -> str:
    return value.replace(os.sep, "/").strip("/")


def _relative_within(path: str, root: Path) -> str | None:
    """Express *path* relative to *root*, or None if it escapes the root."""
    try:
        rel = os.path.relpath(os.path.abspath(path), os.path.abspath(root))
    except ValueError:
        # Different drives on Windows
        return None

    if os.path.isabs(rel) or rel == os.pardir or rel.startswith(os.pardir + os.sep):
        return None
    if rel == os.curdir:
        return ""
    return rel


def _strip_notes_prefix(value: str) -> str | None:
    for prefix in (f"{NOTES_DIRNAME}/", f"{NOTES_DIRNAME}{os.sep}"):
        if value.startswith(prefix):
            return value[len(prefix) :]
    return None


# ─────────────────────────────────────────────────────────────────────────────
# Resolution
# ─────────────────────────────────────────────────────────────────────────────


def resolve_source(ref: str, config: StoreConfig) -> SourceRef:
    """Classify a user-supplied reference as an entry, a note, or unknown.

    Resolution order matters: absolute paths are placed by containment first
    (notes root, then journal root) before any pattern matching, so a note
    whose slug looks like a date is still a note.

    Examples:
        "2024-01-01"                  -> entry 2024-01-01
        "notes/ideas/cli.md"          -> note ideas/cli
        "/home/me/journal/2024-01-01" -> entry 2024-01-01
        "reading-list"                -> note reading-list
    """
    value = _strip_md_suffix(ref)
    if not value:
        return SourceRef(kind="unknown")

    value = os.path.expanduser(value)

    if os.path.isabs(value):
        rel_note = _relative_within(value, config.notes_root)
        if rel_note is not None:
            slug = _to_slug(rel_note)
            return SourceRef(kind="note", id=slug) if slug else SourceRef(kind="unknown")

        rel_journal = _relative_within(value, config.journal_root)
        if rel_journal is not None:
            basename = os.path.basename(rel_journal)
            if is_date_id(basename):
                return SourceRef(kind="entry", id=basename)

        return SourceRef(kind="unknown", id=value)

    stripped = _strip_notes_prefix(value)
    if stripped is None and is_date_id(value):
        return SourceRef(kind="entry", id=value)

    candidate = config.notes_root / (stripped if stripped is not None else value)
    rel = _relative_within(str(candidate), config.notes_root)
    if rel is None:
        return SourceRef(kind="unknown", id=value)
    slug = _to_slug(rel)
    return SourceRef(kind="note", id=slug) if slug else SourceRef(kind="unknown")


def normalize_slug(value: str, config: StoreConfig) -> str:
    """Normalize an extraction target to a note slug ("" when unusable).

    Unlike :func:`resolve_source`, a target is always a note: a date-looking
    target names a note, not an entry.
    """
    value = _strip_md_suffix(value)
    if not value:
        return ""

    value = os.path.expanduser(value)

    if os.path.isabs(value):
        rel = _relative_within(value, config.notes_root)
        return _to_slug(rel) if rel else ""

    stripped = _strip_notes_prefix(value)
    if stripped is not None:
        value = stripped

    slug = _to_slug(value)
    # ".." segments must not lead out of the notes root
    rel = _relative_within(str(config.notes_root / slug), config.notes_root)
    return _to_slug(rel) if rel else ""


# ─────────────────────────────────────────────────────────────────────────────
# Creation and reading
# ─────────────────────────────────────────────────────────────────────────────


def ensure_document(path: Path, title: str) -> bool:
    """Create *path* with the document template if it does not exist yet.

    Returns:
        True if the file was created, False if it already existed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with path.open("x", encoding="utf-8") as fh:
            fh.write(DOCUMENT_TEMPLATE.format(title=title))
    except FileExistsError:
        return False

    log.info("Created %s", path)
    return True


def read_document(path: Path) -> str:
    """Read a document as UTF-8.

    Raises:
        DocumentDecodeError: If the file is not valid UTF-8.
    """
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise DocumentDecodeError(str(path), e.reason) from e
