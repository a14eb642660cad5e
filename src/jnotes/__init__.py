"""jnotes: plain-text journal entries and notes."""

__version__ = "0.3.0"
