"""Persistent pointer to the most recently opened document."""

from __future__ import annotations

import json
import logging
import tempfile
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from .config import STATE_SCHEMA_VERSION
from .models import LastOpenedRecord

log = logging.getLogger(__name__)


class LastOpenedTracker:
    """Reads and writes the single last-opened record of a store.

    The record is advisory: a missing, unreadable or stale record resolves
    to None and callers fall back to the most recently modified document.
    """

    def __init__(self, state_file: Path) -> None:
        self.state_file = Path(state_file)

    def record(self, path: Path) -> LastOpenedRecord:
        """Overwrite the record with *path*.

        Uses atomic write pattern (write to temp, then rename).
        """
        entry = LastOpenedRecord(
            last_opened_path=str(path),
            updated_at=datetime.now(UTC),
            schema_version=STATE_SCHEMA_VERSION,
        )

        dir_path = self.state_file.parent
        dir_path.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w", dir=dir_path, delete=False, suffix=".tmp", encoding="utf-8"
        ) as f:
            f.write(entry.model_dump_json(by_alias=True, indent=2))
            temp_path = Path(f.name)

        temp_path.replace(self.state_file)
        return entry

    def load(self) -> LastOpenedRecord | None:
        if not self.state_file.exists():
            return None

        try:
            payload = json.loads(self.state_file.read_text(encoding="utf-8"))
            entry = LastOpenedRecord.model_validate(payload)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError, ValidationError) as e:
            log.warning("Ignoring unreadable state file %s: %s", self.state_file, e)
            return None

        if entry.schema_version != STATE_SCHEMA_VERSION:
            return None  # Reset on schema change
        return entry

    def resolve(self) -> Path | None:
        """Path of the last opened document, if it still exists."""
        entry = self.load()
        if entry is None:
            return None

        path = Path(entry.last_opened_path)
        if not path.is_file():
            log.debug("Last opened document %s no longer exists", path)
            return None
        return path
