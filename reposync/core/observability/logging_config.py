"""
Logging setup, called once by the CLI before any command runs.

Step progress is the tool's main output, so the console handler prints
bare messages at INFO (each step line already carries its timestamp)
and switches to a diagnostic format only at DEBUG.

Level precedence: CLI flag > REPOSYNC_LOG_LEVEL > INFO.
REPOSYNC_LOG_FILE adds a file handler, optionally at its own
REPOSYNC_LOG_FILE_LEVEL.
"""

from __future__ import annotations

import logging
import sys

_CONSOLE_FMT = "%(message)s"
_DETAIL_FMT = "%(asctime)s %(levelname)-7s %(name)s:%(lineno)d  %(message)s"
_DETAIL_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Install console (stderr) and optional file handlers on the root logger.

    Args:
        level: Console level name; unknown names fall back to INFO.
        log_file: Also log to this file when set.
        log_file_level: Level for the file; defaults to ``level``.
    """
    console_level = _parse_level(level)
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    if console_level <= logging.DEBUG:
        console.setFormatter(logging.Formatter(_DETAIL_FMT, datefmt=_DETAIL_DATEFMT))
    else:
        console.setFormatter(logging.Formatter(_CONSOLE_FMT))

    handlers: list[logging.Handler] = [console]
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(_parse_level(log_file_level or level))
        file_handler.setFormatter(logging.Formatter(_DETAIL_FMT, datefmt=_DETAIL_DATEFMT))
        handlers.append(file_handler)

    root = logging.getLogger()
    root.handlers[:] = handlers
    # Root must pass everything either handler wants
    root.setLevel(min(h.level for h in handlers))

    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    value = logging.getLevelName((level or "INFO").upper())
    return value if isinstance(value, int) else logging.INFO
