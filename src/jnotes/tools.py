"""Adapters for the external programs jnotes drives.

- Picker: interactive fuzzy selection (fzf)
- ContentSearch: line-oriented content search (ripgrep)
- Editor: interactive editing ($EDITOR, nvim by default)

Each capability is a Protocol with one concrete subprocess-backed
implementation. A cancelled picker (non-zero exit or empty selection) is
reported as an empty result, never as an error. A missing binary raises
:class:`~jnotes.errors.ExternalToolError`.
"""

from __future__ import annotations

import json
import logging
import re
import shlex
import shutil
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .config import StoreConfig
from .errors import ExternalToolError
from .models import SearchMatch

log = logging.getLogger(__name__)

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")
# path:line:text (non-greedy path so Windows drive letters survive)
_TEXT_MATCH_RE = re.compile(r"^(.*?):(\d+):(.*)$")


def _require_binary(name: str) -> str:
    found = shutil.which(name)
    if not found:
        raise ExternalToolError(name, f"Required tool not found on PATH: {name}")
    return found


# ─────────────────────────────────────────────────────────────────────────────
# Protocols
# ─────────────────────────────────────────────────────────────────────────────


class Picker(Protocol):
    def select(
        self,
        lines: Sequence[str],
        *,
        prompt: str | None = None,
        preview: str | None = None,
        preview_window: str | None = None,
        ansi: bool = False,
        no_sort: bool = False,
        multi: bool = False,
        delimiter: str | None = None,
        with_nth: str | None = None,
    ) -> list[str]: ...


class ContentSearch(Protocol):
    def search(self, root: Path, pattern: str = "") -> list[SearchMatch]: ...


class Editor(Protocol):
    def open(self, path: Path, line: int | None = None) -> int: ...


# ─────────────────────────────────────────────────────────────────────────────
# Implementations
# ─────────────────────────────────────────────────────────────────────────────


class FzfPicker:
    """Picker backed by fzf."""

    def __init__(self, command: str = "fzf") -> None:
        self.command = command

    def build_args(
        self,
        *,
        prompt: str | None = None,
        preview: str | None = None,
        preview_window: str | None = None,
        ansi: bool = False,
        no_sort: bool = False,
        multi: bool = False,
        delimiter: str | None = None,
        with_nth: str | None = None,
    ) -> list[str]:
        args = [self.command]
        if ansi:
            args.append("--ansi")
        if no_sort:
            args.append("--no-sort")
        args.append("--multi" if multi else "--no-multi")
        if delimiter:
            args += ["--delimiter", delimiter]
        if with_nth:
            args += ["--with-nth", with_nth]
        if preview:
            args += ["--preview", preview]
        if preview_window:
            args += ["--preview-window", preview_window]
        if prompt:
            args += ["--prompt", prompt]
        return args

    def select(
        self,
        lines: Sequence[str],
        *,
        prompt: str | None = None,
        preview: str | None = None,
        preview_window: str | None = None,
        ansi: bool = False,
        no_sort: bool = False,
        multi: bool = False,
        delimiter: str | None = None,
        with_nth: str | None = None,
    ) -> list[str]:
        if not lines:
            return []

        _require_binary(self.command)
        args = self.build_args(
            prompt=prompt,
            preview=preview,
            preview_window=preview_window,
            ansi=ansi,
            no_sort=no_sort,
            multi=multi,
            delimiter=delimiter,
            with_nth=with_nth,
        )
        log.debug("Running picker: %s", shlex.join(args))
        result = subprocess.run(
            args,
            input="\n".join(lines) + "\n",
            stdout=subprocess.PIPE,
            text=True,
        )
        if result.returncode != 0:
            # 1 = no match, 130 = cancelled
            return []
        return [line for line in result.stdout.splitlines() if line.strip()]


def parse_search_output(text: str) -> list[SearchMatch]:
    """Parse search tool output in JSON-lines or ``path:line:text`` form.

    JSON lines follow ripgrep's ``--json`` schema; only ``match`` records are
    kept. Textual lines may carry ANSI colour codes.
    """
    matches: list[SearchMatch] = []
    for raw in text.splitlines():
        if not raw.strip():
            continue

        if raw.lstrip().startswith("{"):
            try:
                record = json.loads(raw)
            except json.JSONDecodeError:
                log.debug("Skipping malformed search record: %s", raw)
                continue
            if record.get("type") != "match":
                continue
            data = record.get("data", {})
            path = data.get("path", {}).get("text")
            line_number = data.get("line_number")
            line_text = data.get("lines", {}).get("text", "")
            if path is None or line_number is None:
                continue
            matches.append(
                SearchMatch(path=path, line=int(line_number), text=line_text.rstrip("\r\n"))
            )
            continue

        m = _TEXT_MATCH_RE.match(_ANSI_RE.sub("", raw))
        if m:
            matches.append(SearchMatch(path=m.group(1), line=int(m.group(2)), text=m.group(3)))

    return matches


class RipgrepSearch:
    """ContentSearch backed by ripgrep."""

    def __init__(self, command: str = "rg") -> None:
        self.command = command

    def search(self, root: Path, pattern: str = "") -> list[SearchMatch]:
        if not root.exists():
            return []

        _require_binary(self.command)
        args = [self.command, "--json", "--smart-case", pattern, str(root)]
        log.debug("Running search: %s", shlex.join(args))
        result = subprocess.run(args, capture_output=True, text=True)

        # 0 = matches, 1 = no matches, 2 = error (possibly with partial output)
        if result.returncode >= 2 and not result.stdout:
            raise ExternalToolError(
                self.command, f"{self.command} failed: {result.stderr.strip() or result.returncode}"
            )
        return parse_search_output(result.stdout)


class CommandEditor:
    """Editor launched as a subprocess attached to the terminal."""

    def __init__(self, command: str = "nvim", extra_args: Sequence[str] = ()) -> None:
        self.command = command
        self.extra_args = tuple(extra_args)

    def build_args(self, path: Path, line: int | None = None) -> list[str]:
        args = shlex.split(self.command) + list(self.extra_args)
        if line:
            args.append(f"+{line}")
        args.append(str(path))
        return args

    def open(self, path: Path, line: int | None = None) -> int:
        args = self.build_args(path, line)
        _require_binary(args[0])
        log.debug("Running editor: %s", shlex.join(args))
        returncode = subprocess.run(args).returncode
        if returncode != 0:
            log.debug("Editor exited with status %d", returncode)
        return returncode


@dataclass
class Toolbox:
    """The external collaborators one invocation uses."""

    picker: Picker
    search: ContentSearch
    editor: Editor

    @classmethod
    def from_config(cls, config: StoreConfig) -> "Toolbox":
        return cls(
            picker=FzfPicker(config.picker),
            search=RipgrepSearch(config.search_tool),
            editor=CommandEditor(config.editor, config.editor_args),
        )
