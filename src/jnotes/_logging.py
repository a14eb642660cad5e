"""Logging configuration for jnotes.

This module provides consistent logging across the codebase.

Usage in other modules:
    import logging
    log = logging.getLogger(__name__)

    log.debug("Detailed info for debugging")
    log.info("General operational info")
    log.warning("Unexpected but handled situation")

The log level can be configured via the JNOTES_LOG_LEVEL environment variable:
    - DEBUG: Directory walks, external tool invocations
    - INFO: Document creation and extraction (default)
    - WARNING: Ignored state or config problems
    - ERROR: Errors that prevented an operation
"""

import logging
import os
import sys

PACKAGE_LOGGER = "jnotes"


def configure_logging() -> None:
    """Configure logging for the jnotes package.

    Call this once at application startup (the ``j`` entry point does).
    Subsequent calls are no-ops.
    """
    root_logger = logging.getLogger(PACKAGE_LOGGER)

    # Skip if already configured (has handlers)
    if root_logger.handlers:
        return

    level_name = os.environ.get("JNOTES_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    # Use a clean format: [level] logger: message
    formatter = logging.Formatter(
        fmt="[%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)

    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    # Prevent propagation to root logger (avoids duplicate messages)
    root_logger.propagate = False


def set_quiet_mode(quiet: bool) -> None:
    """Raise the package log level to WARNING (or restore the configured level).

    Used by the global ``--quiet`` flag.
    """
    root_logger = logging.getLogger(PACKAGE_LOGGER)
    if quiet:
        level = logging.WARNING
    else:
        level_name = os.environ.get("JNOTES_LOG_LEVEL", "INFO").upper()
        level = getattr(logging, level_name, logging.INFO)

    root_logger.setLevel(level)
    for handler in root_logger.handlers:
        handler.setLevel(level)
