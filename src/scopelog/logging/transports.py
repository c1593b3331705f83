"""Sinks for assembled log entries.

A transport is any ``Callable[[LogEntry], None]``. The logger calls every
configured transport, in registration order, for each entry that survives
level filtering and sampling. Transports own their buffering and flushing.
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Literal, TextIO

import orjson

from ..foundation.errors import JsonDict
from ..serialization import normalize_value
from .levels import LogLevel

LogEntry = JsonDict
Transport = Callable[[LogEntry], None]
LogFormat = Literal["json", "pretty"]

DEFAULT_STDERR_LEVELS: frozenset[str] = frozenset({LogLevel.ERROR, LogLevel.FATAL})

_RESET = "\033[0m"
_LEVEL_COLORS: dict[str, str] = {
    LogLevel.TRACE: "\033[90m",
    LogLevel.DEBUG: "\033[36m",
    LogLevel.INFO: "\033[32m",
    LogLevel.WARN: "\033[33m",
    LogLevel.ERROR: "\033[31m",
    LogLevel.FATAL: "\033[35m",
}
_PRETTY_SKIP = frozenset({"level", "levelValue", "timestamp", "message", "logger"})


def safe_json_dumps(value: Any) -> str:
    """Single-line JSON that tolerates cycles, big integers and exotic types."""
    return orjson.dumps(normalize_value(value, max_depth=64), option=orjson.OPT_NON_STR_KEYS).decode()


def format_pretty(entry: LogEntry, colors: bool = False) -> str:
    """``<timestamp> <LEVEL> <logger> <message> <json of remaining fields>``."""
    level = str(entry.get("level", "info"))
    label = f"{_LEVEL_COLORS.get(level, '')}{level.upper()}{_RESET}" if colors else level.upper()
    parts = [str(entry["timestamp"])] if entry.get("timestamp") else []
    parts.append(label)
    if entry.get("logger"):
        parts.append(str(entry["logger"]))
    if entry.get("message"):
        parts.append(str(entry["message"]))
    if meta := {k: v for k, v in entry.items() if k not in _PRETTY_SKIP}:
        parts.append(safe_json_dumps(meta))
    return " ".join(parts).rstrip()


@dataclass(slots=True)
class ConsoleTransport:
    """Line-oriented console sink with JSON or human-readable output.

    Entries whose level is in ``stderr_levels`` go to ``stderr``, all others to
    ``stdout``. An explicit ``stream`` receives everything.

    Example:
        >>> transport = ConsoleTransport(format="json", stream=io.StringIO())
        >>> transport({"level": "info", "levelValue": 30, "message": "hello"})
    """

    format: LogFormat = "pretty"
    colors: bool | None = None  # None = on for pretty, off for json
    stderr_levels: frozenset[str] = DEFAULT_STDERR_LEVELS
    stream: TextIO | None = None
    stdout: TextIO = field(default_factory=lambda: sys.stdout)
    stderr: TextIO = field(default_factory=lambda: sys.stderr)

    def __post_init__(self) -> None:
        if self.format not in ("json", "pretty"):
            raise ValueError(f"Unknown format: {self.format}. Use 'json' or 'pretty'")
        if self.colors is None:
            self.colors = self.format == "pretty"
        self.stderr_levels = frozenset(str(level) for level in self.stderr_levels)

    def __call__(self, entry: LogEntry) -> None:
        line = safe_json_dumps(entry) if self.format == "json" else format_pretty(entry, bool(self.colors))
        self.stream_for(entry).write(f"{line}\n")

    def stream_for(self, entry: LogEntry) -> TextIO:
        if self.stream is not None:
            return self.stream
        return self.stderr if str(entry.get("level")) in self.stderr_levels else self.stdout


@dataclass(slots=True)
class MemoryTransport:
    """Collects entries in memory; useful in tests and for embedding."""

    entries: list[LogEntry] = field(default_factory=list)

    def __call__(self, entry: LogEntry) -> None:
        self.entries.append(entry)

    def __len__(self) -> int:
        return len(self.entries)

    def messages(self) -> list[str | None]:
        return [e.get("message") for e in self.entries]

    def clear(self) -> None:
        self.entries.clear()


def create_console_transport(format: LogFormat = "pretty", colors: bool | None = None,  # noqa: A002
                             stderr_levels: Iterable[str] | None = None, stream: TextIO | None = None) -> Transport:
    return ConsoleTransport(
        format=format,
        colors=colors,
        stderr_levels=frozenset(stderr_levels) if stderr_levels is not None else DEFAULT_STDERR_LEVELS,
        stream=stream,
    )
