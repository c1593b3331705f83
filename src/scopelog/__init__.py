"""Scopelog - task-scoped context stores and a structured logger that reads them.

A mutable key/value store follows a unit of work (a request, a job, a
task tree) across sync calls, ``await`` points and spawned tasks without
being passed around. The logger attaches the active store to every entry,
with redaction, sampling and pluggable transports.

Quick Start:
    >>> from scopelog import context, create_logger
    >>>
    >>> log = create_logger(name="api", format="json")
    >>>
    >>> async def handle(order_id: str) -> None:
    ...     context.add_value("order_id", order_id)
    ...     log.info("charging card", {"amount": 42}, token="tok_123")
    >>>
    >>> await context.run({"request_id": "r-1"}, lambda: handle("o-9"))
    # {"level":"info","levelValue":30,"message":"charging card",...,
    #  "data":{"amount":42,"token":"[REDACTED]"},
    #  "context":{"request_id":"r-1","order_id":"o-9"}}

Timing:
    >>> context.run(lambda: context.measure("db.query", run_query))
    >>> end = log.start_timer()
    >>> end("import finished", {"rows": 120})   # data.duration_ms added

From the environment:
    >>> from scopelog import create_logger_from_env
    >>> log = create_logger_from_env(name="worker")   # LOG_LEVEL, LOG_FORMAT, LOG_PRESET, ...

ASGI:
    >>> from scopelog.integrations import ContextMiddleware
    >>> app = ContextMiddleware(app, id_key="request_id")
"""

from __future__ import annotations

__version__ = "0.3.0"

# Context
from . import context
from .context import PerformanceEntry, ScopedContext, get_context

# Errors
from .foundation.errors import (
    ContextErrorCode,
    KeyNotObjectError,
    MissingCallbackError,
    MissingValueError,
    NoActiveScopeError,
    RemovalNotFoundError,
    ScopeError,
)

# Serialization
from .serialization import Redactor, normalize_value, serialize_error

# Logging
from .logging import (
    ConsoleTransport,
    LogEntry,
    Logger,
    LoggerOptions,
    LogLevel,
    MemoryTransport,
    Transport,
    configure_logging,
    create_console_transport,
    create_logger,
    get_logger,
)

# Config
from .foundation.config import (
    LoggerEnvResolution,
    LoggerEnvWarning,
    create_logger_from_env,
    logger_preset,
    resolve_logger_env,
)

# Integrations
from .integrations import ContextMiddleware, scoped_job

__all__ = [
    # Version
    "__version__",
    # Context
    "context", "ScopedContext", "get_context", "PerformanceEntry",
    # Errors
    "ContextErrorCode", "ScopeError", "NoActiveScopeError", "MissingValueError",
    "KeyNotObjectError", "RemovalNotFoundError", "MissingCallbackError",
    # Serialization
    "normalize_value", "serialize_error", "Redactor",
    # Logging
    "Logger", "LoggerOptions", "LogLevel", "LogEntry", "Transport", "ConsoleTransport",
    "MemoryTransport", "create_console_transport", "create_logger", "configure_logging", "get_logger",
    # Config
    "LoggerEnvWarning", "LoggerEnvResolution", "logger_preset", "resolve_logger_env",
    "create_logger_from_env",
    # Integrations
    "ContextMiddleware", "scoped_job",
]
