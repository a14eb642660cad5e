"""Shared test fixtures for the jnotes test suite.

Design:
- tmp_store: Creates an isolated journal root in a temp directory and points
  the JNOTES_* environment at it
- store_config: A StoreConfig for the same root (for core-level tests)
- fake_tools: A Toolbox of in-memory fakes (no fzf, rg or editor needed)
- runner / cli_invoke: CliRunner with the fakes injected through ctx.obj
"""

from collections.abc import Sequence
from pathlib import Path
from typing import Generator

import pytest
from click.testing import CliRunner

from jnotes.cli import cli
from jnotes.config import StoreConfig
from jnotes.models import SearchMatch
from jnotes.tools import Toolbox


# ─────────────────────────────────────────────────────────────────────────────
# Fakes
# ─────────────────────────────────────────────────────────────────────────────


class FakePicker:
    """Picker that returns canned selections and records what it was shown.

    ``choose`` may be a list of selections (returned as-is), or a callable
    receiving the candidate lines and returning the selection.
    """

    def __init__(self, choose=None) -> None:
        self.choose = choose
        self.calls: list[dict] = []

    def select(self, lines: Sequence[str], **options) -> list[str]:
        self.calls.append({"lines": list(lines), **options})
        if callable(self.choose):
            return list(self.choose(list(lines)))
        return list(self.choose or [])


class FakeSearch:
    def __init__(self, matches: list[SearchMatch] | None = None) -> None:
        self.matches = matches or []
        self.calls: list[tuple[Path, str]] = []

    def search(self, root: Path, pattern: str = "") -> list[SearchMatch]:
        self.calls.append((root, pattern))
        return list(self.matches)


class FakeEditor:
    def __init__(self) -> None:
        self.opened: list[tuple[Path, int | None]] = []

    def open(self, path: Path, line: int | None = None) -> int:
        self.opened.append((Path(path), line))
        return 0


# ─────────────────────────────────────────────────────────────────────────────
# Core Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def runner() -> CliRunner:
    """CLI runner with isolated environment."""
    return CliRunner()


@pytest.fixture
def tmp_store(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Create an isolated journal root with an empty notes directory.

    Sets JNOTES_JOURNAL_ROOT and JNOTES_STATE_FILE to temp locations and
    points JNOTES_CONFIG at a file that does not exist, so no user config
    leaks into tests.

    Usage:
        def test_something(tmp_store):
            (tmp_store / "2024-01-01.md").write_text("# 2024-01-01\\n")
    """
    journal_root = tmp_path / "journal"
    (journal_root / "notes").mkdir(parents=True)

    monkeypatch.setenv("JNOTES_JOURNAL_ROOT", str(journal_root))
    monkeypatch.setenv("JNOTES_STATE_FILE", str(tmp_path / "state" / "state.json"))
    monkeypatch.setenv("JNOTES_CONFIG", str(tmp_path / "no-config.yaml"))
    monkeypatch.delenv("JNOTES_EDITOR", raising=False)
    monkeypatch.delenv("EDITOR", raising=False)

    yield journal_root


@pytest.fixture
def store_config(tmp_store: Path) -> StoreConfig:
    """StoreConfig for the tmp_store root."""
    return StoreConfig.for_root(tmp_store, state_file=tmp_store.parent / "state" / "state.json")


@pytest.fixture
def fake_tools() -> Toolbox:
    """Toolbox of fakes. Tests set ``fake_tools.picker.choose`` as needed."""
    return Toolbox(picker=FakePicker(), search=FakeSearch(), editor=FakeEditor())


@pytest.fixture
def cli_invoke(runner: CliRunner, tmp_store: Path, fake_tools: Toolbox):
    """Helper for invoking the CLI against tmp_store with fake tools.

    Usage:
        def test_tags(cli_invoke):
            result = cli_invoke(["tags", "--json"])
            assert result.exit_code == 0
    """

    def _invoke(args: list[str], input: str | None = None, catch_exceptions: bool = False):
        return runner.invoke(
            cli,
            args,
            input=input,
            catch_exceptions=catch_exceptions,
            obj={"toolbox": fake_tools},
        )

    return _invoke


# ─────────────────────────────────────────────────────────────────────────────
# Helper Functions (for test code, not fixtures)
# ─────────────────────────────────────────────────────────────────────────────


def write_entry(
    root: Path, day: str, body: str = "", tags: list[str] | None = None, hashtags: bool = False
) -> Path:
    """Create an entry with the standard two-line header.

    Usage in tests:
        from conftest import write_entry
        entry = write_entry(tmp_store, "2024-01-01", "Went hiking.", ["outdoors"])
    """
    if tags and hashtags:
        tag_line = " ".join(f"#{t}" for t in tags)
    else:
        tag_line = f"tags: {', '.join(tags or [])}".rstrip()
    path = root / f"{day}.md"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"# {day}\n{tag_line}\n\n{body}", encoding="utf-8")
    return path


def write_note(root: Path, slug: str, content: str) -> Path:
    path = root / "notes" / f"{slug}.md"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path
