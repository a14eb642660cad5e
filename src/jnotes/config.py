"""Configuration management for jnotes.

This module contains the store configuration and all tunable constants.
Magic numbers are documented here rather than scattered throughout the codebase.

There is no global "current store": :func:`load_config` builds a
:class:`StoreConfig` once per invocation and every operation receives it
explicitly.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ErrorCode, JnotesError


class ConfigurationError(JnotesError):
    """Raised when the configuration file is present but unusable."""

    code = ErrorCode.CONFIGURATION_ERROR


# =============================================================================
# Store Layout
# =============================================================================

# Notes live in this subdirectory of the journal root. Entry scans skip it.
NOTES_DIRNAME = "notes"

# Entry identity: a calendar date used as the file stem.
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Template written to every freshly created document. Line 2 holds tags.
DOCUMENT_TEMPLATE = "# {title}\ntags:\n\n"


# =============================================================================
# Sections and Previews
# =============================================================================

# Title used for a section whose range contains no non-blank line.
EMPTY_SECTION_TITLE = "(empty section)"

# Timeline previews look at this many leading lines for the first body line.
PREVIEW_SCAN_LINES = 12

# Timeline previews are cut to this many characters.
PREVIEW_MAX_CHARS = 80


# =============================================================================
# State
# =============================================================================

STATE_FILENAME = "state.json"

# Bumped when the state record layout changes; older records are ignored.
STATE_SCHEMA_VERSION = 1


# =============================================================================
# External Tools
# =============================================================================

DEFAULT_EDITOR = "nvim"
DEFAULT_PICKER = "fzf"
DEFAULT_SEARCH_TOOL = "rg"


@dataclass(frozen=True)
class StoreConfig:
    """Resolved locations and tools for one store."""

    journal_root: Path
    state_file: Path
    editor: str = DEFAULT_EDITOR
    editor_args: tuple[str, ...] = field(default_factory=tuple)
    picker: str = DEFAULT_PICKER
    search_tool: str = DEFAULT_SEARCH_TOOL

    @property
    def notes_root(self) -> Path:
        return self.journal_root / NOTES_DIRNAME

    @classmethod
    def for_root(cls, journal_root: Path, state_file: Path | None = None) -> "StoreConfig":
        """Build a config for *journal_root* with default tools."""
        journal_root = Path(journal_root)
        return cls(
            journal_root=journal_root,
            state_file=state_file or default_state_file(),
        )


def _expand(value: str) -> Path:
    return Path(os.path.expandvars(value)).expanduser()


def get_config_path() -> Path:
    """Get the YAML config file location.

    Discovery order:
    1. JNOTES_CONFIG environment variable
    2. $XDG_CONFIG_HOME/jnotes/config.yaml
    3. ~/.config/jnotes/config.yaml
    """
    explicit = os.environ.get("JNOTES_CONFIG")
    if explicit:
        return _expand(explicit)

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg_config) if xdg_config else Path.home() / ".config"
    return base / "jnotes" / "config.yaml"


def default_state_file() -> Path:
    """Get the default state file under the platform state directory."""
    xdg_state = os.environ.get("XDG_STATE_HOME")
    base = Path(xdg_state) if xdg_state else Path.home() / ".local" / "state"
    return base / "jnotes" / STATE_FILENAME


def load_config_file(path: Path | None = None) -> dict:
    """Load the YAML config file, returning ``{}`` when it does not exist.

    Raises:
        ConfigurationError: If the file exists but is not a valid YAML mapping.
    """
    import yaml

    config_path = path or get_config_path()
    if not config_path.exists():
        return {}

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read config file {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")
    return data


def _parse_editor_args(value: object) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        import shlex

        return tuple(shlex.split(value))
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise ConfigurationError("editor_args must be a string or a list of strings")


def load_config(config_path: Path | None = None) -> StoreConfig:
    """Resolve the store configuration.

    Each setting is taken from the first source that provides it:
    1. Environment (JNOTES_JOURNAL_ROOT, JNOTES_STATE_FILE, JNOTES_EDITOR, EDITOR)
    2. The YAML config file (see :func:`get_config_path`)
    3. Defaults (~/journal, platform state dir, nvim, fzf, rg)
    """
    data = load_config_file(config_path)

    root = os.environ.get("JNOTES_JOURNAL_ROOT") or data.get("journal_root")
    journal_root = _expand(str(root)) if root else Path.home() / "journal"

    state = os.environ.get("JNOTES_STATE_FILE") or data.get("state_file")
    state_file = _expand(str(state)) if state else default_state_file()

    editor = (
        os.environ.get("JNOTES_EDITOR")
        or data.get("editor")
        or os.environ.get("EDITOR")
        or DEFAULT_EDITOR
    )

    return StoreConfig(
        journal_root=journal_root,
        state_file=state_file,
        editor=str(editor),
        editor_args=_parse_editor_args(data.get("editor_args")),
        picker=str(data.get("picker") or DEFAULT_PICKER),
        search_tool=str(data.get("search_tool") or DEFAULT_SEARCH_TOOL),
    )
