"""Tests for configuration resolution (jnotes.config)."""

from __future__ import annotations

from pathlib import Path

import pytest

from jnotes.config import ConfigurationError, get_config_path, load_config, load_config_file


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    for var in (
        "JNOTES_JOURNAL_ROOT",
        "JNOTES_STATE_FILE",
        "JNOTES_EDITOR",
        "JNOTES_CONFIG",
        "EDITOR",
        "XDG_CONFIG_HOME",
        "XDG_STATE_HOME",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    return tmp_path


class TestLoadConfig:
    def test_defaults(self, clean_env):
        config = load_config(clean_env / "missing.yaml")

        home = clean_env / "home"
        assert config.journal_root == home / "journal"
        assert config.notes_root == home / "journal" / "notes"
        assert config.state_file == home / ".local" / "state" / "jnotes" / "state.json"
        assert (config.editor, config.picker, config.search_tool) == ("nvim", "fzf", "rg")

    def test_yaml_file(self, clean_env):
        path = clean_env / "config.yaml"
        path.write_text(
            "journal_root: ~/notes-here\n"
            "editor: hx\n"
            "editor_args: --vsplit -n\n"
            "picker: sk\n"
        )

        config = load_config(path)

        assert config.journal_root == clean_env / "home" / "notes-here"
        assert config.editor == "hx"
        assert config.editor_args == ("--vsplit", "-n")
        assert config.picker == "sk"

    def test_environment_overrides_file(self, clean_env, monkeypatch):
        path = clean_env / "config.yaml"
        path.write_text("journal_root: /from/file\neditor: hx\n")
        monkeypatch.setenv("JNOTES_JOURNAL_ROOT", str(clean_env / "env-root"))
        monkeypatch.setenv("JNOTES_EDITOR", "vim")

        config = load_config(path)

        assert config.journal_root == clean_env / "env-root"
        assert config.editor == "vim"

    def test_editor_env_is_last_resort(self, clean_env, monkeypatch):
        monkeypatch.setenv("EDITOR", "nano")
        assert load_config(clean_env / "missing.yaml").editor == "nano"

    def test_state_dir_from_xdg(self, clean_env, monkeypatch):
        monkeypatch.setenv("XDG_STATE_HOME", str(clean_env / "xdg-state"))
        config = load_config(clean_env / "missing.yaml")
        assert config.state_file == clean_env / "xdg-state" / "jnotes" / "state.json"


class TestConfigFile:
    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config_file(path) == {}

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("journal_root: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_config_file(path)

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config_file(path)

    def test_bad_editor_args(self, clean_env):
        path = clean_env / "config.yaml"
        path.write_text("editor_args: {a: 1}\n")
        with pytest.raises(ConfigurationError):
            load_config(path)


class TestConfigPath:
    def test_explicit(self, clean_env, monkeypatch):
        monkeypatch.setenv("JNOTES_CONFIG", str(clean_env / "c.yaml"))
        assert get_config_path() == clean_env / "c.yaml"

    def test_xdg(self, clean_env, monkeypatch):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(clean_env / "cfg"))
        assert get_config_path() == clean_env / "cfg" / "jnotes" / "config.yaml"
