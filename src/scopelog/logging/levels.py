"""Log levels and their numeric ordering."""

from __future__ import annotations

from enum import StrEnum


class LogLevel(StrEnum):
    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"

    @property
    def number(self) -> int:
        return LEVEL_VALUES[self]


LEVEL_VALUES: dict[LogLevel, int] = {
    LogLevel.TRACE: 10,
    LogLevel.DEBUG: 20,
    LogLevel.INFO: 30,
    LogLevel.WARN: 40,
    LogLevel.ERROR: 50,
    LogLevel.FATAL: 60,
}

_BY_NUMBER = {v: k for k, v in LEVEL_VALUES.items()}
_ALIASES = {"warning": LogLevel.WARN, "err": LogLevel.ERROR, "critical": LogLevel.FATAL}


def parse_level(value: object) -> LogLevel | None:
    """Accept a level, its name (any case), a common alias, or its number; ``None`` if unrecognized."""
    if isinstance(value, LogLevel):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return _BY_NUMBER.get(value)
    if not isinstance(value, str):
        return None
    name = value.strip().lower()
    if name in _ALIASES:
        return _ALIASES[name]
    try:
        return LogLevel(name)
    except ValueError:
        pass
    return _BY_NUMBER.get(int(name)) if name.isdigit() else None


def coerce_level(value: LogLevel | str | int) -> LogLevel:
    """Like :func:`parse_level` but raises ``ValueError`` for unknown input."""
    if (level := parse_level(value)) is None:
        raise ValueError(f"Unknown log level: {value!r}. Use trace, debug, info, warn, error, or fatal")
    return level
