"""Moving a block of a document into a note, leaving a link behind.

Two entry points:

- :func:`extract_range` moves an explicit line range.
- :func:`extract_sections` moves one or more sections (see
  :mod:`jnotes.parser.sections`).

In both, the moved lines are replaced in the source by a link line
``[<slug>](notes/<slug>.md)`` and appended to ``notes/<slug>.md`` below a
``Source:`` backlink. All validation happens before the first write; a
rejected request leaves both files untouched.

Files are read and written whole, without locking. Two processes editing the
same source at once can lose an update (last writer wins).
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from .config import NOTES_DIRNAME, StoreConfig
from .errors import (
    InvalidRangeError,
    MissingSlugError,
    NoSectionsSelectedError,
    SourceNotFoundError,
)
from .models import ExtractResult, Section, SourceRef
from .parser.sections import collect_sections, join_lines, split_lines
from .paths import (
    document_label,
    document_path,
    ensure_document,
    normalize_slug,
    note_path_for_slug,
    read_document,
    resolve_source,
)

log = logging.getLogger(__name__)

_INDENT_RE = re.compile(r"^[ \t]*")


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────


def append_with_spacing(existing: str, addition: str) -> str:
    """Append *addition* leaving at most one blank line before it."""
    addition = addition.rstrip("\n") + "\n"
    if not existing:
        return addition
    if existing.endswith("\n\n"):
        separator = ""
    elif existing.endswith("\n"):
        separator = "\n"
    else:
        separator = "\n\n"
    return existing + separator + addition


def link_line(slug: str, first_line: str = "") -> str:
    """Link to a note, indented like *first_line*."""
    indent = _INDENT_RE.match(first_line).group(0)
    return f"{indent}[{slug}]({NOTES_DIRNAME}/{slug}.md)"


def backlink_line(config: StoreConfig, ref: SourceRef, source_path: Path) -> str:
    rel = os.path.relpath(source_path, config.notes_root)
    return f"Source: [{document_label(ref)}]({Path(rel).as_posix()})"


def _resolve_existing_source(config: StoreConfig, source: str) -> tuple[SourceRef, Path]:
    ref = resolve_source(source, config)
    if not ref.resolved:
        raise SourceNotFoundError(f"Source not found: {source}", {"source": source})
    path = document_path(config, ref)
    if not path.is_file():
        raise SourceNotFoundError(f"Source not found: {path}", {"source": source})
    return ref, path


def _require_slug(config: StoreConfig, target_slug: str) -> str:
    slug = normalize_slug(target_slug, config)
    if not slug:
        raise MissingSlugError("Target note slug is required", {"target": target_slug})
    return slug


def _append_to_target(
    config: StoreConfig,
    slug: str,
    ref: SourceRef,
    source_path: Path,
    payload: str,
) -> tuple[Path, bool, bool]:
    """Ensure the target note exists and append *payload* to it.

    Returns:
        (target_path, created, appended)
    """
    target_path = note_path_for_slug(config, slug)
    created = ensure_document(target_path, slug)

    if not payload.strip():
        return target_path, created, False

    addition = f"{backlink_line(config, ref, source_path)}\n\n{payload}"
    existing = read_document(target_path)
    target_path.write_text(append_with_spacing(existing, addition), encoding="utf-8")
    return target_path, created, True


# ─────────────────────────────────────────────────────────────────────────────
# Entry points
# ─────────────────────────────────────────────────────────────────────────────


def extract_range(
    config: StoreConfig,
    source: str,
    start_line: int,
    end_line: int,
    target_slug: str,
) -> ExtractResult:
    """Move lines ``start_line..end_line`` (1-based, inclusive) into a note.

    Raises:
        SourceNotFoundError: If *source* does not name an existing document.
        InvalidRangeError: If the range is not within the document.
        MissingSlugError: If *target_slug* is empty after normalization.
    """
    ref, source_path = _resolve_existing_source(config, source)
    lines, trailing_newline = split_lines(read_document(source_path))

    if not 1 <= start_line <= end_line <= len(lines):
        raise InvalidRangeError(
            f"Invalid line range {start_line}-{end_line} (document has {len(lines)} lines)",
            {"start": start_line, "end": end_line, "line_count": len(lines)},
        )

    slug = _require_slug(config, target_slug)

    extracted = lines[start_line - 1 : end_line]
    link = link_line(slug, extracted[0])
    lines[start_line - 1 : end_line] = [link]
    source_path.write_text(join_lines(lines, trailing_newline), encoding="utf-8")

    target_path, created, appended = _append_to_target(
        config, slug, ref, source_path, "\n".join(extracted)
    )

    log.info(
        "Moved lines %d-%d of %s to %s", start_line, end_line, source_path.name, target_path
    )
    return ExtractResult(
        source=str(source_path),
        target=str(target_path),
        target_slug=slug,
        link_line=link,
        lines_moved=len(extracted),
        target_created=created,
        appended=appended,
    )


def select_sections(sections: list[Section], indices: list[int]) -> list[Section]:
    """Look up 1-based *indices*, de-duplicated and ascending; unknown ones are dropped."""
    by_index = {section.index: section for section in sections}
    return [by_index[i] for i in sorted(set(indices)) if i in by_index]


def extract_sections(
    config: StoreConfig,
    source: str,
    section_indices: list[int],
    target_slug: str,
) -> ExtractResult:
    """Move the selected sections into a note.

    Each section's ``start_line..block_end_line`` span is replaced by its own
    link line. Bodies are appended together under one backlink, separated by
    a blank line.

    Raises:
        SourceNotFoundError: If *source* does not name an existing document.
        NoSectionsSelectedError: If no requested index names a section.
        MissingSlugError: If *target_slug* is empty after normalization.
    """
    ref, source_path = _resolve_existing_source(config, source)
    content = read_document(source_path)

    selected = select_sections(collect_sections(content), section_indices)
    if not selected:
        raise NoSectionsSelectedError(
            "No sections selected", {"requested": sorted(set(section_indices))}
        )

    slug = _require_slug(config, target_slug)

    lines, trailing_newline = split_lines(content)
    bodies = ["\n".join(lines[s.start_line - 1 : s.end_line]) for s in selected]
    lines_moved = 0
    link = ""

    # Splice bottom-up: replacing a later span first keeps the line numbers
    # of every earlier span valid.
    for section in sorted(selected, key=lambda s: s.start_line, reverse=True):
        link = link_line(slug, lines[section.start_line - 1])
        lines_moved += section.block_end_line - section.start_line + 1
        lines[section.start_line - 1 : section.block_end_line] = [link]

    source_path.write_text(join_lines(lines, trailing_newline), encoding="utf-8")

    target_path, created, appended = _append_to_target(
        config, slug, ref, source_path, "\n\n".join(bodies)
    )

    log.info(
        "Moved %d section(s) of %s to %s", len(selected), source_path.name, target_path
    )
    return ExtractResult(
        source=str(source_path),
        target=str(target_path),
        target_slug=slug,
        link_line=link,
        lines_moved=lines_moved,
        target_created=created,
        appended=appended,
        sections=[s.index for s in selected],
    )
