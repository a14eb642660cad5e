"""Pydantic models for the journal store."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

DocumentKind = Literal["entry", "note", "unknown"]


class SourceRef(BaseModel):
    """Identity of a document derived from a user-supplied reference."""

    kind: DocumentKind
    id: str = ""

    @property
    def resolved(self) -> bool:
        return self.kind != "unknown" and bool(self.id)


class Section(BaseModel):
    """A separator-delimited block of a document (1-based line numbers)."""

    index: int
    start_line: int
    end_line: int  # last non-blank line of the section
    block_end_line: int  # end_line, or the trailing separator that closes it
    title: str

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1


class LastOpenedRecord(BaseModel):
    """The persisted pointer to the most recently opened document."""

    model_config = ConfigDict(populate_by_name=True)

    last_opened_path: str = Field(alias="lastOpenedPath")
    updated_at: datetime = Field(alias="updatedAt")
    schema_version: int = Field(default=1, alias="schemaVersion")


class SearchMatch(BaseModel):
    """One line reported by the content search tool."""

    path: str
    line: int
    text: str


class TimelineRow(BaseModel):
    """An entry as shown in the timeline view."""

    date: str
    path: str
    preview: str


class OpenResult(BaseModel):
    """A document that was resolved (and possibly created) for opening."""

    path: str
    kind: DocumentKind
    id: str
    created: bool = False
    line: int | None = None


class ExtractResult(BaseModel):
    """Outcome of moving content from a source document into a note."""

    source: str
    target: str
    target_slug: str
    link_line: str
    lines_moved: int
    target_created: bool = False
    appended: bool = False
    sections: list[int] = Field(default_factory=list)
