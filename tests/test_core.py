"""Tests for user-level operations (jnotes.core).

All external programs are replaced by the fakes from conftest.py, so
these tests exercise real files in tmp_store but never spawn a process.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from conftest import FakePicker, write_entry, write_note
from jnotes.core import (
    browse_by_date,
    browse_notes,
    browse_tag,
    list_sections,
    open_days_ago,
    open_most_recent,
    open_note,
    open_source,
    open_today,
    pick_sections,
    search_content,
    timeline_view,
)
from jnotes.errors import NotFoundError, SourceNotFoundError
from jnotes.last_opened import LastOpenedTracker
from jnotes.models import SearchMatch
from jnotes.paths import date_days_ago, today_date


def last_opened(config) -> Path | None:
    return LastOpenedTracker(config.state_file).resolve()


# ─────────────────────────────────────────────────────────────────────────────
# Opening
# ─────────────────────────────────────────────────────────────────────────────


class TestOpen:
    def test_open_today_creates_and_records(self, store_config, fake_tools, tmp_store):
        result = open_today(store_config, fake_tools)

        path = tmp_store / f"{today_date()}.md"
        assert result.created is True
        assert result.kind == "entry"
        assert path.read_text() == f"# {today_date()}\ntags:\n\n"
        assert fake_tools.editor.opened == [(path, None)]
        assert last_opened(store_config) == path

    def test_open_existing_does_not_rewrite(self, store_config, fake_tools, tmp_store):
        path = write_entry(tmp_store, today_date(), "keep")

        result = open_today(store_config, fake_tools)

        assert result.created is False
        assert path.read_text().endswith("keep")

    def test_open_days_ago(self, store_config, fake_tools, tmp_store):
        result = open_days_ago(store_config, 3, fake_tools)
        assert result.id == date_days_ago(3)
        assert (tmp_store / f"{date_days_ago(3)}.md").exists()

    def test_open_without_launch_skips_editor(self, store_config, fake_tools):
        result = open_source(store_config, "notes/ideas", fake_tools, launch=False)

        assert fake_tools.editor.opened == []
        assert result.kind == "note"
        assert Path(result.path).exists()
        assert last_opened(store_config) == Path(result.path)

    def test_open_at_line(self, store_config, fake_tools, tmp_store):
        open_source(store_config, "2024-01-01", fake_tools, line=5)
        assert fake_tools.editor.opened == [(tmp_store / "2024-01-01.md", 5)]

    def test_unresolvable_reference(self, store_config, fake_tools, tmp_path):
        with pytest.raises(SourceNotFoundError):
            open_source(store_config, str(tmp_path / "elsewhere.md"), fake_tools)
        assert fake_tools.editor.opened == []

    def test_open_note_normalises_slug(self, store_config, fake_tools, tmp_store):
        result = open_note(store_config, "notes/ideas.md", fake_tools)

        assert result.id == "ideas"
        assert fake_tools.editor.opened == [(tmp_store / "notes" / "ideas.md", None)]

    @pytest.mark.parametrize("slug", ["../escaped", "notes/../../escaped", "   "])
    def test_open_note_outside_notes_fails(self, store_config, fake_tools, tmp_store, slug):
        with pytest.raises(SourceNotFoundError):
            open_note(store_config, slug, fake_tools)

        assert fake_tools.editor.opened == []
        assert not (tmp_store / "escaped.md").exists()
        assert not (tmp_store.parent / "escaped.md").exists()


class TestOpenMostRecent:
    def test_uses_last_opened(self, store_config, fake_tools, tmp_store):
        older = write_entry(tmp_store, "2024-01-01")
        newer = write_entry(tmp_store, "2024-01-02")
        os.utime(older, (2_000_000_000, 2_000_000_000))
        LastOpenedTracker(store_config.state_file).record(newer)

        result = open_most_recent(store_config, fake_tools)

        assert result.path == str(newer)

    def test_falls_back_to_newest_mtime(self, store_config, fake_tools, tmp_store):
        entry = write_entry(tmp_store, "2024-01-01")
        note = write_note(tmp_store, "idea", "x\n")
        os.utime(entry, (1_000_000_000, 1_000_000_000))
        os.utime(note, (2_000_000_000, 2_000_000_000))

        result = open_most_recent(store_config, fake_tools)

        assert result.path == str(note)
        assert result.kind == "note"
        assert fake_tools.editor.opened == [(note, None)]

    def test_stale_pointer_falls_back(self, store_config, fake_tools, tmp_store):
        entry = write_entry(tmp_store, "2024-01-01")
        gone = write_entry(tmp_store, "2024-01-02")
        LastOpenedTracker(store_config.state_file).record(gone)
        gone.unlink()

        assert open_most_recent(store_config, fake_tools).path == str(entry)

    def test_undecodable_state_falls_back(self, store_config, fake_tools, tmp_store):
        entry = write_entry(tmp_store, "2024-01-01")
        store_config.state_file.parent.mkdir(parents=True, exist_ok=True)
        store_config.state_file.write_bytes(b"\xff\xfe{")

        assert open_most_recent(store_config, fake_tools).path == str(entry)

    def test_empty_store(self, store_config, fake_tools):
        with pytest.raises(NotFoundError, match="No entries found."):
            open_most_recent(store_config, fake_tools)


# ─────────────────────────────────────────────────────────────────────────────
# Browsing
# ─────────────────────────────────────────────────────────────────────────────


class TestBrowse:
    def test_browse_by_date_opens_pick(self, store_config, fake_tools, tmp_store):
        write_entry(tmp_store, "2024-01-01")
        nested = write_entry(tmp_store / "2023", "2023-12-31")
        fake_tools.picker.choose = ["2023/2023-12-31.md"]

        result = browse_by_date(store_config, fake_tools)

        assert fake_tools.picker.calls[0]["lines"] == ["2024-01-01.md", "2023/2023-12-31.md"]
        assert result.path == str(nested)
        assert fake_tools.editor.opened == [(nested, None)]

    def test_cancel_opens_nothing(self, store_config, fake_tools, tmp_store):
        write_entry(tmp_store, "2024-01-01")

        assert browse_by_date(store_config, fake_tools) is None
        assert fake_tools.editor.opened == []
        assert last_opened(store_config) is None

    def test_browse_tag_picks_tag_then_entry(self, store_config, fake_tools, tmp_store):
        write_entry(tmp_store, "2024-01-01", tags=["ai"])
        write_entry(tmp_store, "2024-01-02", tags=["work"])
        picks = iter([["work"], ["2024-01-02.md"]])
        fake_tools.picker = FakePicker(lambda lines: next(picks))

        result = browse_tag(store_config, fake_tools)

        assert fake_tools.picker.calls[0]["lines"] == ["ai", "work"]
        assert fake_tools.picker.calls[1]["lines"] == ["2024-01-02.md"]
        assert result.id == "2024-01-02"

    def test_timeline_maps_selection_to_entry(self, store_config, fake_tools, tmp_store):
        write_entry(tmp_store, "2024-01-01", "first")
        write_entry(tmp_store, "2024-01-02", "second")
        fake_tools.picker.choose = lambda lines: [lines[1]]

        result = timeline_view(store_config, fake_tools)

        assert result.path == str(tmp_store / "2024-01-01.md")
        call = fake_tools.picker.calls[0]
        assert call["ansi"] is True
        assert call["no_sort"] is True
        assert call["delimiter"] == "\t"
        assert call["with_nth"] == "2.."
        assert call["preview"] == "cat {1}"
        assert call["lines"][0].startswith(f"{tmp_store / '2024-01-02.md'}\t2024-01-02  ")

    def test_timeline_opens_nested_entry_at_its_path(self, store_config, fake_tools, tmp_store):
        write_entry(tmp_store, "2024-01-01", "top level")
        nested = write_entry(tmp_store / "2023", "2023-12-31", "archived")
        fake_tools.picker.choose = lambda lines: [lines[1]]

        result = timeline_view(store_config, fake_tools)

        assert result.path == str(nested)
        assert fake_tools.editor.opened == [(nested, None)]
        assert not (tmp_store / "2023-12-31.md").exists()

    def test_timeline_cancel_opens_nothing(self, store_config, fake_tools, tmp_store):
        write_entry(tmp_store, "2024-01-01", "first")

        assert timeline_view(store_config, fake_tools) is None
        assert fake_tools.editor.opened == []

    def test_search_opens_at_line(self, store_config, fake_tools, tmp_store):
        path = write_entry(tmp_store, "2024-01-01", "needle: here\n")
        fake_tools.search.matches = [SearchMatch(path=str(path), line=4, text="needle: here")]
        fake_tools.picker.choose = lambda lines: lines

        result = search_content(store_config, fake_tools, "needle")

        assert fake_tools.search.calls == [(tmp_store, "needle")]
        assert fake_tools.editor.opened == [(path, 4)]
        assert result.line == 4

    def test_search_without_matches_skips_picker(self, store_config, fake_tools):
        assert search_content(store_config, fake_tools) is None
        assert fake_tools.picker.calls == []

    def test_browse_notes(self, store_config, fake_tools, tmp_store):
        write_note(tmp_store, "b", "b\n")
        write_note(tmp_store, "a/x", "x\n")
        fake_tools.picker.choose = ["a/x"]

        result = browse_notes(store_config, fake_tools)

        assert fake_tools.picker.calls[0]["lines"] == ["a/x", "b"]
        assert result.id == "a/x"

    def test_browse_notes_with_slug_creates(self, store_config, fake_tools, tmp_store):
        result = browse_notes(store_config, fake_tools, "fresh")

        assert fake_tools.picker.calls == []
        assert result.created is True
        assert (tmp_store / "notes" / "fresh.md").exists()


# ─────────────────────────────────────────────────────────────────────────────
# Sections
# ─────────────────────────────────────────────────────────────────────────────


class TestSections:
    def test_list_sections(self, store_config, tmp_store):
        write_note(tmp_store, "doc", "one\n---\ntwo\n")

        path, sections = list_sections(store_config, "notes/doc")

        assert path == tmp_store / "notes" / "doc.md"
        assert [s.title for s in sections] == ["one", "two"]

    def test_list_sections_missing_source(self, store_config):
        with pytest.raises(SourceNotFoundError):
            list_sections(store_config, "notes/missing")

    def test_pick_sections_parses_indices(self, store_config, fake_tools, tmp_store):
        write_note(tmp_store, "doc", "one\n---\ntwo\n---\nthree\n")
        fake_tools.picker.choose = lambda lines: [lines[0], lines[2]]

        assert pick_sections(store_config, fake_tools, "notes/doc") == [1, 3]
        assert fake_tools.picker.calls[0]["multi"] is True
        assert fake_tools.picker.calls[0]["lines"][1] == "2\ttwo  (lines 3-3)"
