"""Logging for cshape; stdout is reserved for the extracted JSON."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_ROOT = "cshape"
_CONSOLE_FORMAT = "[cshape] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``cshape.<name>``, or the package logger when ``name`` is empty."""
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)


def _drop_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send cshape diagnostics to stderr and, optionally, to ``log_file``.

    The console shows warnings and errors only, or everything with ``verbose``.
    A log file always records DEBUG. Calling this again replaces (and closes)
    the handlers installed by the previous call.
    """
    console_level = logging.DEBUG if verbose else logging.WARNING
    logger = logging.getLogger(_ROOT)
    logger.propagate = False
    _drop_handlers(logger)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is None:
        logger.setLevel(console_level)
        return logger

    log_file.parent.mkdir(parents=True, exist_ok=True)
    sink = logging.FileHandler(log_file, encoding="utf-8")
    sink.setLevel(logging.DEBUG)
    sink.setFormatter(logging.Formatter(_FILE_FORMAT))
    logger.addHandler(sink)
    logger.setLevel(logging.DEBUG)
    return logger


__all__ = ["configure_logging", "get_logger"]
