from __future__ import annotations

import pytest

from listener.core.levels import (
    DEFAULT_META_INFO_THRESHOLD,
    SEVERITY_ORDER,
    UNPARSEABLE_LEVEL,
    LogLevel,
    meets_minimum_severity,
    parse_level,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Info", LogLevel.INFO),
        ("DEBUG", LogLevel.DEBUG),
        ("trace", LogLevel.TRACE),
        ("Warn", LogLevel.WARN),
        ("Warning", LogLevel.WARN),
        ("Error", LogLevel.ERROR),
        ("FATAL", LogLevel.FATAL),
        ("Success", LogLevel.INFO),
        ("Failure", LogLevel.ERROR),
        ("Unknown", LogLevel.UNKNOWN),
        ("Verbose", LogLevel.UNKNOWN),
        ("", LogLevel.UNKNOWN),
        (None, LogLevel.UNKNOWN),
    ],
)
def test_parse_level_is_case_insensitive_and_total(raw, expected: LogLevel) -> None:
    assert parse_level(raw) == expected


def test_every_level_has_a_rank() -> None:
    assert set(SEVERITY_ORDER) == set(LogLevel)
    assert UNPARSEABLE_LEVEL == LogLevel.UNKNOWN
    assert DEFAULT_META_INFO_THRESHOLD == LogLevel.WARN


def test_meets_minimum_severity_compares_ranks() -> None:
    assert meets_minimum_severity(LogLevel.ERROR, LogLevel.WARN) is True
    assert meets_minimum_severity(LogLevel.WARN, LogLevel.WARN) is True
    assert meets_minimum_severity(LogLevel.INFO, LogLevel.WARN) is False
    assert meets_minimum_severity(LogLevel.UNKNOWN, LogLevel.WARN) is False
    assert meets_minimum_severity(LogLevel.FATAL, LogLevel.ERROR) is True
