"""
Logging setup for the hanif-formula CLI.

main.py calls ``setup_logging`` once per invocation; modules log through
``logging.getLogger(__name__)`` and never configure handlers themselves.

Level precedence:
    --debug / --verbose / --quiet  >  HANIF_LOG_LEVEL  >  WARNING

HANIF_LOG_FILE adds a file handler (level HANIF_LOG_FILE_LEVEL, else the
console level) so install transcripts can be kept next to the keg.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_PACKAGE_LOGGER = "hanif_formula"

# (max level, format, datefmt): first row whose level >= the console level wins
_CONSOLE_FORMATS = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d: %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    (logging.CRITICAL, "==> %(message)s", None),
)

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s: %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Install console (stderr) and optional file handlers on the root logger.

    Args:
        level: Console level name.
        log_file: Path of an optional transcript file; parent dirs are created.
        log_file_level: File level name, defaults to ``level``.
        quiet_third_party: Cap every non-hanif logger at WARNING unless
            the console runs at DEBUG.
    """
    console_level = _parse_level(level)
    fmt, datefmt = next(
        (f, d) for limit, f, d in _CONSOLE_FORMATS if console_level <= limit
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.addHandler(console)

    lowest = console_level
    if log_file:
        file_level = _parse_level(log_file_level or level)
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        transcript = logging.FileHandler(path, encoding="utf-8")
        transcript.setLevel(file_level)
        transcript.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        root.addHandler(transcript)
        lowest = min(lowest, file_level)

    root.setLevel(lowest)

    if quiet_third_party and console_level > logging.DEBUG:
        for name in list(logging.root.manager.loggerDict):
            if not name.startswith(_PACKAGE_LOGGER):
                logging.getLogger(name).setLevel(logging.WARNING)

    # CliRunner swaps sys.stderr between invocations
    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Map a level name to its number; unknown or empty names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = logging.getLevelName(level.strip().upper())
    return numeric if isinstance(numeric, int) else logging.WARNING
