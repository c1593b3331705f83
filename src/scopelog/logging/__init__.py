"""Structured logging enriched with the active scope store.

    >>> from scopelog.logging import create_logger, MemoryTransport
    >>> sink = MemoryTransport()
    >>> log = create_logger(name="worker", transport=sink)
    >>> log.info("ready", queue="emails")
    >>> sink.entries[0]["data"]
    {'queue': 'emails'}
"""

from .levels import LEVEL_VALUES, LogLevel, coerce_level, parse_level
from .logger import (
    Logger,
    LoggerOptions,
    configure_logging,
    create_logger,
    extract_parts,
    get_logger,
    normalize_data,
    pick_context,
)
from .transports import (
    DEFAULT_STDERR_LEVELS,
    ConsoleTransport,
    LogEntry,
    LogFormat,
    MemoryTransport,
    Transport,
    create_console_transport,
    format_pretty,
    safe_json_dumps,
)

__all__ = [
    # Levels
    "LogLevel", "LEVEL_VALUES", "parse_level", "coerce_level",
    # Logger
    "Logger", "LoggerOptions", "create_logger", "configure_logging", "get_logger",
    "extract_parts", "normalize_data", "pick_context",
    # Transports
    "LogEntry", "LogFormat", "Transport", "ConsoleTransport", "MemoryTransport",
    "DEFAULT_STDERR_LEVELS", "create_console_transport", "format_pretty", "safe_json_dumps",
]
