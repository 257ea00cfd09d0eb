"""Canonical log levels and severity helpers."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class LogLevel(str, Enum):
    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"
    UNKNOWN = "unknown"


# Higher rank means more severe. UNKNOWN ranks below everything so an
# unparseable level never crosses a severity threshold.
SEVERITY_ORDER: Dict[LogLevel, int] = {
    LogLevel.UNKNOWN: -1,
    LogLevel.TRACE: 0,
    LogLevel.DEBUG: 1,
    LogLevel.INFO: 2,
    LogLevel.WARN: 3,
    LogLevel.ERROR: 4,
    LogLevel.FATAL: 5,
}

UNPARSEABLE_LEVEL = LogLevel.UNKNOWN
DEFAULT_META_INFO_THRESHOLD = LogLevel.WARN

# Host report levels that are not canonical level names.
LEVEL_ALIASES: Dict[str, LogLevel] = {
    "success": LogLevel.INFO,
    "failure": LogLevel.ERROR,
    "warning": LogLevel.WARN,
}


def parse_level(value: Optional[str]) -> LogLevel:
    """Map a host level name onto a canonical level; never raises."""
    normalized = (value or "").strip().lower()
    try:
        return LogLevel(normalized)
    except ValueError:
        pass
    alias = LEVEL_ALIASES.get(normalized)
    if alias is not None:
        return alias
    logger.debug("Unknown log level: %r", value)
    return UNPARSEABLE_LEVEL


def meets_minimum_severity(level: LogLevel, threshold: LogLevel) -> bool:
    """True when ``level`` is at least as severe as ``threshold``."""
    return SEVERITY_ORDER[level] >= SEVERITY_ORDER[threshold]
