"""Enumerating entries and notes on disk.

Filesystem access goes through two small adapters with fixed return shapes,
:class:`DirectoryLister` and :class:`FileStat`, so the scanner never inspects
OS objects directly and tests can substitute in-memory fakes.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import NamedTuple, Protocol

from .config import (
    NOTES_DIRNAME,
    PREVIEW_MAX_CHARS,
    PREVIEW_SCAN_LINES,
    StoreConfig,
)
from .models import TimelineRow
from .parser.tags import file_has_tag, is_tags_line, list_tags
from .paths import read_document

log = logging.getLogger(__name__)


class DirEntry(NamedTuple):
    name: str
    is_dir: bool
    is_file: bool


class DirectoryLister(Protocol):
    def list_dir(self, path: Path) -> list[DirEntry]:
        """List the immediate children of *path*.

        Raises:
            FileNotFoundError: If *path* does not exist.
        """
        ...


class FileStat(Protocol):
    def mtime(self, path: Path) -> float:
        """Modification time of *path* in seconds since the epoch."""
        ...


class LocalFilesystem:
    """DirectoryLister and FileStat backed by the local filesystem."""

    def list_dir(self, path: Path) -> list[DirEntry]:
        with os.scandir(path) as it:
            return [
                DirEntry(name=e.name, is_dir=e.is_dir(), is_file=e.is_file())
                for e in it
            ]

    def mtime(self, path: Path) -> float:
        return path.stat().st_mtime


def preview_line(content: str) -> str:
    """First body line of a document, for one-line listings.

    Skips headings, the ``tags:`` line and blank lines within the first
    few lines; returns "" when nothing qualifies.
    """
    for line in content.splitlines()[:PREVIEW_SCAN_LINES]:
        if line.lstrip().startswith("#"):
            continue
        if is_tags_line(line):
            continue
        if not line.strip():
            continue
        return line[:PREVIEW_MAX_CHARS]
    return ""


class StoreScanner:
    """Lists entries and notes of one store."""

    def __init__(
        self,
        config: StoreConfig,
        lister: DirectoryLister | None = None,
        stat: FileStat | None = None,
    ) -> None:
        self.config = config
        fs = LocalFilesystem()
        self.lister = lister or fs
        self.stat = stat or fs

    # ------------------------------------------------------------------
    # Walking
    # ------------------------------------------------------------------

    def walk_markdown(self, root: Path, exclude_dir_names: Sequence[str] = ()) -> list[Path]:
        """Recursively collect ``*.md`` files under *root*.

        Directories named in *exclude_dir_names* are skipped at any depth.
        A missing root yields an empty list.
        """
        results: list[Path] = []

        def walk(directory: Path) -> None:
            for entry in self.lister.list_dir(directory):
                full_path = directory / entry.name
                if entry.is_dir:
                    if entry.name in exclude_dir_names:
                        continue
                    walk(full_path)
                elif entry.is_file and entry.name.endswith(".md"):
                    results.append(full_path)

        try:
            walk(root)
        except FileNotFoundError:
            log.debug("Store root %s does not exist yet", root)
            return []

        return results

    # ------------------------------------------------------------------
    # Entries and notes
    # ------------------------------------------------------------------

    def list_entry_files(self, tag: str | None = None) -> list[Path]:
        """Entry files, most recent date first, optionally filtered by tag."""
        entries = self.walk_markdown(self.config.journal_root, [NOTES_DIRNAME])
        ordered = sorted(entries, key=str, reverse=True)
        if not tag:
            return ordered
        return [path for path in ordered if file_has_tag(path, tag)]

    def list_note_slugs(self) -> list[str]:
        notes_root = self.config.notes_root
        slugs = []
        for path in self.walk_markdown(notes_root):
            rel = path.relative_to(notes_root).as_posix()
            slugs.append(rel[: -len(".md")])
        return sorted(slugs)

    def list_tags(self) -> list[str]:
        return list_tags(self.list_entry_files())

    def all_documents(self) -> list[Path]:
        """Every entry and note in the store."""
        return self.walk_markdown(self.config.journal_root)

    # ------------------------------------------------------------------
    # Recency
    # ------------------------------------------------------------------

    def most_recently_modified(self, files: Iterable[Path]) -> Path | None:
        """Pick the file with the greatest mtime (whole seconds).

        Ties go to the file seen last, so iteration order decides between
        files touched within the same second.
        """
        best: Path | None = None
        best_mtime = -1
        for path in files:
            mtime = int(self.stat.mtime(path))
            if mtime >= best_mtime:
                best_mtime = mtime
                best = path
        return best

    # ------------------------------------------------------------------
    # Timeline
    # ------------------------------------------------------------------

    def timeline(self, tag: str | None = None) -> list[TimelineRow]:
        rows = []
        for path in self.list_entry_files(tag):
            content = read_document(path)
            rows.append(
                TimelineRow(
                    date=path.stem,
                    path=str(path),
                    preview=preview_line(content) or "(empty)",
                )
            )
        return rows
