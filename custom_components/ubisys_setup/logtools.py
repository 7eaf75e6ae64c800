"""Logging helpers for the ubisys setup integration.

Banner summaries frame a calibration or setup session; compact key=value
lines keep per-phase logs easy to scan in Home Assistant.
"""

from __future__ import annotations

import logging
import time
from typing import Any


def _fmt_kv(**kvs: Any) -> str:
    """Format key=value pairs sorted by key."""
    return ", ".join(f"{key}={kvs[key]}" for key in sorted(kvs))


def info_banner(logger: logging.Logger, title: str, **kvs: Any) -> None:
    """Log a framed three-line banner at INFO level."""
    line = _fmt_kv(**kvs) if kvs else ""
    width = max(1, len(title) + (len(line) + 2 if line else 0))
    logger.info("╔%s╗", "═" * width)
    if line:
        logger.info("║  %s  %s", title, line)
    else:
        logger.info("║  %s", title)
    logger.info("╚%s╝", "═" * width)


def kv(logger: logging.Logger, level: int, msg: str, **kvs: Any) -> None:
    """Log a message followed by key=value pairs at the given level.

    Nothing is formatted when the logger is not enabled for the level.
    """
    if not logger.isEnabledFor(level):
        return
    if kvs:
        logger.log(level, "%s | %s", msg, _fmt_kv(**kvs))
    else:
        logger.log(level, "%s", msg)


def phase_level(verbose: bool) -> int:
    """Return the log level used for phase transitions."""
    return logging.INFO if verbose else logging.DEBUG


class Stopwatch:
    """Measure elapsed wall time for an operation."""

    def __init__(self) -> None:
        self._start = time.monotonic()

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self._start
