"""Tag extraction from line 2 of a document.

Tags are declared on the second line only, in either notation (both are
parsed and unioned):

    tags: ai, work
    tags: [ai, work]
    #ai #work

No other line is ever interpreted as tags. Tags are an entries-only concept:
callers pass entry files, never notes.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path

from ..paths import read_document

_NON_TAG_CHARS_RE = re.compile(r"[^A-Za-z0-9_-]")
_HASHTAG_RE = re.compile(r"#[A-Za-z0-9_-]+")
_TAGS_PREFIX_RE = re.compile(r"^\s*tags\s*:\s*", re.IGNORECASE)
_TAG_LIST_PUNCT_RE = re.compile(r"[\[\],]")
_LINE_SPLIT_RE = re.compile(r"\r?\n")


def normalize_tag(value: str) -> str:
    """Keep only ``[A-Za-z0-9_-]`` and lower-case the result."""
    return _NON_TAG_CHARS_RE.sub("", value).lower()


def second_line(content: str) -> str:
    lines = _LINE_SPLIT_RE.split(content, maxsplit=2)
    return lines[1] if len(lines) > 1 else ""


def tags_on_line2(content: str) -> set[str]:
    """Return the normalized tags declared on line 2 of *content*."""
    line = second_line(content)
    tags: set[str] = set()

    for match in _HASHTAG_RE.finditer(line):
        tags.add(normalize_tag(match.group(0)[1:]))

    prefix = _TAGS_PREFIX_RE.match(line)
    if prefix:
        cleaned = _TAG_LIST_PUNCT_RE.sub(" ", line[prefix.end() :])
        for part in cleaned.split():
            tags.add(normalize_tag(part))

    tags.discard("")
    return tags


def is_tags_line(line: str) -> bool:
    return bool(_TAGS_PREFIX_RE.match(line))


def content_has_tag(content: str, want: str) -> bool:
    wanted = normalize_tag(want)
    if not wanted:
        return False
    return wanted in tags_on_line2(content)


def file_has_tag(path: Path, want: str) -> bool:
    """Check whether the document at *path* declares *want* on line 2."""
    if not normalize_tag(want):
        return False
    return content_has_tag(read_document(path), want)


def list_tags(entry_files: Iterable[Path]) -> list[str]:
    """Sorted union of line-2 tags across *entry_files*."""
    found: set[str] = set()
    for path in entry_files:
        found |= tags_on_line2(read_document(path))
    return sorted(found)
