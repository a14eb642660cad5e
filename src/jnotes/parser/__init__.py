"""Parsing of journal documents: line-2 tags and separator sections."""

from .sections import collect_sections, is_separator, join_lines, split_lines
from .tags import (
    content_has_tag,
    file_has_tag,
    list_tags,
    normalize_tag,
    tags_on_line2,
)

__all__ = [
    "collect_sections",
    "content_has_tag",
    "file_has_tag",
    "is_separator",
    "join_lines",
    "list_tags",
    "normalize_tag",
    "split_lines",
    "tags_on_line2",
]
