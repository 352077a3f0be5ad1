"""
Logging configuration — one setup call for the whole process.

The CLI calls ``setup_logging`` once; modules just do
``logger = logging.getLogger(__name__)``.

Console level, highest precedence first:
    --debug / --verbose / --quiet  >  DEVSETUP_LOG_LEVEL  >  WARNING

A second, independent file handler is added when DEVSETUP_LOG_FILE is
set (its level comes from DEVSETUP_LOG_FILE_LEVEL).
"""

from __future__ import annotations

import logging
import os
import sys

ENV_LEVEL = "DEVSETUP_LOG_LEVEL"
ENV_FILE = "DEVSETUP_LOG_FILE"
ENV_FILE_LEVEL = "DEVSETUP_LOG_FILE_LEVEL"

_DETAILED = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"

# (threshold, format, datefmt): first row whose threshold >= level wins
_CONSOLE_FORMATS = (
    (logging.DEBUG, _DETAILED, "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    (logging.CRITICAL, "%(message)s", None),
)

_FILE_FORMAT = (_DETAILED, "%Y-%m-%d %H:%M:%S")

# Held at WARNING below debug level
_CHATTY = ("urllib3", "asyncio")


def resolve_level(debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """Console level name for the given CLI flags."""
    for flag, name in ((debug, "DEBUG"), (verbose, "INFO"), (quiet, "ERROR")):
        if flag:
            return name
    return os.environ.get(ENV_LEVEL, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Install the console handler (and the optional file handler) on the root logger.

    Args:
        level: Console level name. Unknown names mean WARNING.
        log_file: Log file path, else DEVSETUP_LOG_FILE, else no file.
        log_file_level: File level, else DEVSETUP_LOG_FILE_LEVEL, else ``level``.
        quiet_third_party: Hold chatty library loggers at WARNING.
    """
    console_level = _to_level(level)
    fmt, datefmt = next(
        (f, d) for threshold, f, d in _CONSOLE_FORMATS if console_level <= threshold
    )
    handlers = [_handler(logging.StreamHandler(sys.stderr), console_level, fmt, datefmt)]

    log_file = log_file or os.environ.get(ENV_FILE)
    if log_file:
        file_level = _to_level(log_file_level or os.environ.get(ENV_FILE_LEVEL) or level)
        handlers.append(
            _handler(logging.FileHandler(log_file, encoding="utf-8"), file_level, *_FILE_FORMAT)
        )

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(min(h.level for h in handlers))

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _CHATTY:
            logging.getLogger(name).setLevel(logging.WARNING)

    # A broken stderr must not abort a half-finished run
    logging.raiseExceptions = False


def _handler(handler: logging.Handler, level: int, fmt: str, datefmt: str | None) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _to_level(name: str | None) -> int:
    value = logging.getLevelName(name.upper()) if name else None
    return value if isinstance(value, int) else logging.WARNING
