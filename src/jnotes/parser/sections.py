"""Separator-delimited sections of a document.

A section is a maximal run of content between separator lines (``---``,
``***``, ``___`` or longer, surrounding whitespace ignored) or the document
start/end. Sections are computed on every read and never stored.

Line numbers are 1-based and count lines the same way the extract engine
does (see :func:`split_lines`), so a section's numbers can be used directly
as an extraction range.
"""

from __future__ import annotations

import re

from ..config import EMPTY_SECTION_TITLE
from ..models import Section

_SEPARATOR_RE = re.compile(r"^\s*([-*_])\1{2,}\s*$")


def is_separator(line: str) -> bool:
    return bool(_SEPARATOR_RE.match(line))


def _is_blank(line: str) -> bool:
    return not line.strip()


def split_lines(content: str) -> tuple[list[str], bool]:
    """Split *content* into lines, reporting whether it ended with a newline.

    Only ``\\n`` separates lines; a ``\\r`` from CRLF files stays on its line
    and is written back unchanged by :func:`join_lines`.
    """
    if not content:
        return [], False
    trailing_newline = content.endswith("\n")
    body = content[:-1] if trailing_newline else content
    return body.split("\n"), trailing_newline


def join_lines(lines: list[str], trailing_newline: bool) -> str:
    text = "\n".join(lines)
    if trailing_newline and lines:
        text += "\n"
    return text


def _section_title(lines: list[str], start: int, end: int) -> str:
    for line in lines[start - 1 : end]:
        if not _is_blank(line):
            return line.strip()
    return EMPTY_SECTION_TITLE


def _block_end(lines: list[str], end: int) -> int:
    """Extend *end* to a trailing separator that follows only blank lines."""
    i = end + 1
    while i <= len(lines) and _is_blank(lines[i - 1]):
        i += 1
    if i <= len(lines) and is_separator(lines[i - 1]):
        return i
    return end


def collect_sections(content: str) -> list[Section]:
    """Split *content* into ordered sections.

    A document without separators yields at most one section spanning all
    non-blank content; a blank-only document yields none.
    """
    lines, _ = split_lines(content)
    spans: list[tuple[int, int]] = []
    open_start: int | None = None

    def close(start: int, end: int) -> None:
        while end >= start and _is_blank(lines[end - 1]):
            end -= 1
        if end >= start:
            spans.append((start, end))

    for number, line in enumerate(lines, start=1):
        if is_separator(line):
            if open_start is not None:
                close(open_start, number - 1)
                open_start = None
        elif open_start is None and not _is_blank(line):
            open_start = number

    if open_start is not None:
        close(open_start, len(lines))

    return [
        Section(
            index=index,
            start_line=start,
            end_line=end,
            block_end_line=_block_end(lines, end),
            title=_section_title(lines, start, end),
        )
        for index, (start, end) in enumerate(spans, start=1)
    ]
