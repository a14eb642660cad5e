"""Error taxonomy for jnotes.

Every error the core reports to a caller is a :class:`JnotesError` carrying a
stable :class:`ErrorCode`, so the CLI can render it either as a single
human-readable line or as a JSON object (``--json-errors``).

Three families:
- NotFound: a document or state file is absent. Often not fatal; callers
  usually create the document or fall back to a default instead.
- Validation: bad line range, empty target slug, no sections selected.
  Always raised before anything is written.
- External tool failure: picker, search tool or editor missing or broken.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable error codes for programmatic consumers."""

    NOT_FOUND = "NOT_FOUND"
    SOURCE_NOT_FOUND = "SOURCE_NOT_FOUND"
    INVALID_RANGE = "INVALID_RANGE"
    MISSING_SLUG = "MISSING_SLUG"
    NO_SECTIONS_SELECTED = "NO_SECTIONS_SELECTED"
    EXTERNAL_TOOL_FAILURE = "EXTERNAL_TOOL_FAILURE"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    FILE_ERROR = "FILE_ERROR"


def format_error_json(code: ErrorCode | str, message: str, details: dict | None = None) -> str:
    """Format an error as JSON for --json-errors output."""
    code_value = code.value if isinstance(code, ErrorCode) else code
    error: dict[str, dict[str, Any]] = {"error": {"code": code_value, "message": message}}
    if details:
        error["error"]["details"] = details
    return json.dumps(error)


class JnotesError(Exception):
    """Base class for errors reported to the user."""

    code: ErrorCode = ErrorCode.FILE_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload

    def to_json(self) -> str:
        return json.dumps({"error": self.to_dict()})


class NotFoundError(JnotesError):
    code = ErrorCode.NOT_FOUND


class SourceNotFoundError(NotFoundError):
    """The source reference does not resolve to an existing document."""

    code = ErrorCode.SOURCE_NOT_FOUND


class ExtractValidationError(JnotesError):
    """Base class for extraction requests rejected before any write."""


class InvalidRangeError(ExtractValidationError):
    code = ErrorCode.INVALID_RANGE


class MissingSlugError(ExtractValidationError):
    code = ErrorCode.MISSING_SLUG


class NoSectionsSelectedError(ExtractValidationError):
    code = ErrorCode.NO_SECTIONS_SELECTED


class ExternalToolError(JnotesError):
    """An external program (picker, search, editor) is missing or failed."""

    code = ErrorCode.EXTERNAL_TOOL_FAILURE

    def __init__(self, tool: str, message: str) -> None:
        self.tool = tool
        super().__init__(message, {"tool": tool})


class DocumentDecodeError(JnotesError):
    """A document on disk is not valid UTF-8."""

    code = ErrorCode.FILE_ERROR

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Cannot read {path} as UTF-8: {reason}", {"path": path})
