"""Structured logger enriched with the active scope store.

Every entry is assembled from the call arguments, the logger's static
bindings and (optionally) the store of the active scope, then normalized,
redacted, and handed to each transport.

Quick Start:
    >>> from scopelog import context
    >>> from scopelog.logging import create_logger
    >>>
    >>> log = create_logger(name="api", format="json", bindings={"service": "billing"})
    >>> log.info("started")
    >>>
    >>> def handle():
    ...     log.info("charging", {"amount": 42}, password="hunter2")
    >>> context.run({"request_id": "r-1"}, handle)
    # => {"level":"info","levelValue":30,"message":"charging",...,
    #     "data":{"amount":42,"password":"[REDACTED]"},
    #     "bindings":{"service":"billing"},"context":{"request_id":"r-1"}}

Argument dispatch for ``log(level, *args)`` (0 to 3 positional arguments):
    log.info("msg", {"k": 1}, err)     # message, data, error
    log.info("msg", err, {"k": 1})     # message, error, data
    log.info(err, "msg", {"k": 1})     # error, message, data
    log.info({"k": 1}, "msg", err)     # data, message, error
Keyword arguments are merged into the data bag.

``log()`` never raises: normalization tolerates cycles and exotic values,
and a failing transport is reported on the stdlib ``scopelog.logging``
logger without affecting the others.
"""

from __future__ import annotations

import inspect
import logging
import os
import random
import socket
import sys
import time
from collections.abc import Callable, Mapping, Sequence, Set
from datetime import UTC, datetime
from functools import wraps
from typing import Any, ParamSpec, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..context import ScopedContext, get_context
from ..foundation.errors import JsonDict
from ..serialization import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_PLACEHOLDER,
    Redactor,
    format_datetime,
    is_error_like,
    normalize_value,
    serialize_error,
)
from .levels import LEVEL_VALUES, LogLevel, coerce_level, parse_level
from .transports import ConsoleTransport, LogEntry, LogFormat, Transport

P = ParamSpec("P")
T = TypeVar("T")

_log = logging.getLogger("scopelog.logging")


def _utc_now() -> datetime:
    return datetime.now(UTC)


# ─────────────────────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────────────────────


class LoggerOptions(BaseModel):
    """Immutable logger configuration. ``child()`` copies it by value.

    Attributes:
        level: Minimum level to emit
        name: Emitted as ``logger`` when set
        bindings: Static fields emitted under ``bindings``
        context: Attach the active scope store
        context_key: Entry field holding the store
        context_keys: Allow-list of store keys (empty = whole store)
        redact: Run field-name redaction at all
        redact_defaults: Include the built-in sensitive field names
        redact_field_names: Extra sensitive field names
        redact_keys: Dot paths redacted after the name pass (``*`` wildcard)
        redact_placeholder: Replacement for redacted values
        timestamp: Emit an ISO-8601 ``timestamp``
        time_fn: Clock used for timestamps
        sample_rate: Fraction of eligible entries emitted, clamped to [0, 1]
        include_pid: Emit ``pid``
        include_hostname: Emit ``hostname``
        format: Console format when no transports are given
        colors: Console colors when no transports are given
        max_depth: Normalization depth limit
        rng: Uniform [0, 1) source for sampling
        scoped_context: Store source; the process default when unset
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    level: LogLevel = LogLevel.INFO
    name: str | None = None
    bindings: JsonDict = Field(default_factory=dict)
    context: bool = True
    context_key: str = "context"
    context_keys: tuple[str, ...] = ()
    redact: bool = True
    redact_defaults: bool = True
    redact_field_names: tuple[str, ...] = ()
    redact_keys: tuple[str, ...] = ()
    redact_placeholder: str = DEFAULT_PLACEHOLDER
    timestamp: bool = True
    time_fn: Callable[[], datetime] = Field(default=_utc_now, repr=False)
    sample_rate: float = 1.0
    include_pid: bool = True
    include_hostname: bool = False
    format: LogFormat = "pretty"
    colors: bool | None = None
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1)
    rng: Callable[[], float] = Field(default=random.random, repr=False)
    scoped_context: ScopedContext | None = Field(default=None, repr=False)

    @field_validator("level", mode="before")
    @classmethod
    def _parse_level(cls, v: object) -> LogLevel:
        return coerce_level(v)  # type: ignore[arg-type]

    @field_validator("sample_rate", mode="after")
    @classmethod
    def _clamp_rate(cls, v: float) -> float:
        return min(1.0, max(0.0, v)) if v == v else 1.0

    def redactor(self) -> Redactor:
        return Redactor(
            enabled=self.redact,
            include_defaults=self.redact_defaults,
            field_names=self.redact_field_names,
            paths=self.redact_keys,
            placeholder=self.redact_placeholder,
        )


# ─────────────────────────────────────────────────────────────────────────────
# Argument handling
# ─────────────────────────────────────────────────────────────────────────────


def normalize_data(value: object, *, max_depth: int = DEFAULT_MAX_DEPTH) -> JsonDict | None:
    """Coerce a data argument into a dict: mappings as-is, sequences under ``items``,
    errors under ``error``, anything else under ``value``."""
    if value is None:
        return None
    if isinstance(value, Mapping):
        return normalize_value(value, max_depth=max_depth)  # type: ignore[return-value]
    if is_error_like(value):
        return {"error": serialize_error(value, max_depth=max_depth)}
    if isinstance(value, (list, tuple, Set)):
        return {"items": normalize_value(value, max_depth=max_depth)}
    return {"value": normalize_value(value, max_depth=max_depth)}


def extract_parts(args: Sequence[object], *, max_depth: int = DEFAULT_MAX_DEPTH
                  ) -> tuple[str | None, JsonDict | None, JsonDict | None]:
    """Resolve ``(message, data, error)`` from up to three positional arguments."""
    if not args:
        return None, None, None
    first, second, third = (*args[:3], None, None)[:3]

    def data(v: object) -> JsonDict | None:
        return normalize_data(v, max_depth=max_depth)

    def error(v: object) -> JsonDict | None:
        return serialize_error(v, max_depth=max_depth)

    if isinstance(first, str):
        if is_error_like(second):
            return first, data(third), error(second)
        return first, data(second), error(third)
    if is_error_like(first):
        if isinstance(second, str):
            return second, data(third), error(first)
        return None, data(second), error(first)
    message = second if isinstance(second, str) else None
    return message, data(first), error(second if is_error_like(second) else third)


def pick_context(store: Mapping[str, Any], keys: Sequence[str] = (), *,
                 max_depth: int = DEFAULT_MAX_DEPTH) -> JsonDict:
    """Normalized copy of ``store``, restricted to ``keys`` when given."""
    snapshot = normalize_value(store, max_depth=max_depth)
    if not isinstance(snapshot, dict):
        return {}
    if not keys:
        return snapshot
    return {k: snapshot[k] for k in keys if k in snapshot}


# ─────────────────────────────────────────────────────────────────────────────
# Logger
# ─────────────────────────────────────────────────────────────────────────────


class Logger:
    """Structured logger bound to static fields and the active scope store.

    Example:
        >>> sink = MemoryTransport()
        >>> log = Logger(level="debug", transports=[sink], bindings={"service": "api"})
        >>> log.child({"request_id": "r-1"}).debug("hello")
        >>> sink.entries[0]["bindings"]
        {'service': 'api', 'request_id': 'r-1'}
    """

    __slots__ = ("_options", "_level", "_bindings", "_transports", "_redactor", "_context", "_hostname")

    def __init__(self, options: LoggerOptions | None = None, *, transport: Transport | None = None,
                 transports: list[Transport] | None = None, **overrides: Any) -> None:
        opts = options or LoggerOptions()
        if overrides:
            opts = LoggerOptions(**{**dict(opts), **overrides})
        self._options = opts
        self._level = opts.level
        self._bindings: JsonDict = normalize_data(opts.bindings, max_depth=opts.max_depth) or {}
        if transports is None and transport is not None:
            transports = [transport]
        if transports:
            self._transports = transports
        else:
            self._transports = [ConsoleTransport(format=opts.format, colors=opts.colors)]
        self._redactor = opts.redactor()
        self._context = opts.scoped_context
        self._hostname: str | None = None

    def __repr__(self) -> str:
        return f"Logger(name={self._options.name!r}, level={self._level.value!r})"

    @property
    def options(self) -> LoggerOptions:
        return self._options

    @property
    def bindings(self) -> JsonDict:
        return dict(self._bindings)

    @property
    def transports(self) -> list[Transport]:
        return self._transports

    @property
    def level(self) -> LogLevel:
        return self._level

    def set_level(self, level: LogLevel | str | int) -> None:
        self._level = coerce_level(level)

    def is_level_enabled(self, level: LogLevel | str | int) -> bool:
        parsed = parse_level(level)
        return parsed is not None and LEVEL_VALUES[parsed] >= LEVEL_VALUES[self._level]

    # ─────────────────────────────────────────────────────────────────────
    # Composition
    # ─────────────────────────────────────────────────────────────────────

    def child(self, bindings: Mapping[str, Any] | None = None, **overrides: Any) -> Logger:
        """New logger with merged bindings; every option not overridden is inherited.

        Transports are shared by reference unless ``transports``/``transport``
        are given, or ``format``/``colors`` are overridden (which builds a
        fresh console transport).
        """
        transports: list[Transport] | None = overrides.pop("transports", None)
        if transports is None and (single := overrides.pop("transport", None)) is not None:
            transports = [single]
        if transports is None and not {"format", "colors"} & overrides.keys():
            transports = self._transports
        extra = normalize_data(overrides.pop("bindings", None), max_depth=self._options.max_depth) or {}
        merged = {**self._bindings, **extra, **(normalize_data(bindings, max_depth=self._options.max_depth) or {})}
        opts = LoggerOptions(**{**dict(self._options), "level": self._level, **overrides, "bindings": merged})
        return Logger(opts, transports=transports)

    def with_bindings(self, bindings: Mapping[str, Any], callback: Callable[[Logger], T]) -> T:
        """Call ``callback`` with a child logger carrying ``bindings``."""
        return callback(self.child(bindings))

    # ─────────────────────────────────────────────────────────────────────
    # Emission
    # ─────────────────────────────────────────────────────────────────────

    def log(self, level: LogLevel | str | int, /, *args: Any, **fields: Any) -> None:
        """Emit one entry at ``level``. Never raises."""
        if (lvl := parse_level(level)) is None:
            _log.warning("dropping log call with unknown level %r", level)
            return
        if LEVEL_VALUES[lvl] < LEVEL_VALUES[self._level]:
            return
        try:
            if not self._sampled():
                return
            entry = self._assemble(lvl, args, fields)
        except Exception:  # noqa: BLE001 - logging must never fail the caller
            _log.warning("failed to assemble log entry", exc_info=True)
            return
        for transport in self._transports:
            try:
                transport(entry)
            except Exception:  # noqa: BLE001
                _log.warning("transport %r failed", transport, exc_info=True)

    def trace(self, /, *args: Any, **fields: Any) -> None: self.log(LogLevel.TRACE, *args, **fields)
    def debug(self, /, *args: Any, **fields: Any) -> None: self.log(LogLevel.DEBUG, *args, **fields)
    def info(self, /, *args: Any, **fields: Any) -> None: self.log(LogLevel.INFO, *args, **fields)
    def warn(self, /, *args: Any, **fields: Any) -> None: self.log(LogLevel.WARN, *args, **fields)
    def error(self, /, *args: Any, **fields: Any) -> None: self.log(LogLevel.ERROR, *args, **fields)
    def fatal(self, /, *args: Any, **fields: Any) -> None: self.log(LogLevel.FATAL, *args, **fields)

    warning = warn

    def exception(self, message: str, data: object = None, /, **fields: Any) -> None:
        """Log at error level with the exception currently being handled."""
        if (exc := sys.exception()) is None:
            self.log(LogLevel.ERROR, message, data, **fields)
        else:
            self.log(LogLevel.ERROR, message, exc, data, **fields)

    def _sampled(self) -> bool:
        rate = self._options.sample_rate
        if rate >= 1:
            return True
        if rate <= 0:
            return False
        return self._options.rng() <= rate

    def _assemble(self, level: LogLevel, args: tuple[Any, ...], fields: dict[str, Any]) -> LogEntry:
        o = self._options
        message, data, error = extract_parts(args, max_depth=o.max_depth)
        if fields:
            data = {**(data or {}), **normalize_value(fields, max_depth=o.max_depth)}  # type: ignore[dict-item]

        entry: LogEntry = {"level": level.value, "levelValue": LEVEL_VALUES[level]}
        if message is not None:
            entry["message"] = message
        if o.timestamp:
            entry["timestamp"] = format_datetime(o.time_fn())
        if o.name:
            entry["logger"] = o.name
        if o.include_pid:
            entry["pid"] = os.getpid()
        if o.include_hostname:
            entry["hostname"] = self._hostname or self._resolve_hostname()
        if data:
            entry["data"] = data
        if error is not None:
            entry["error"] = error
        if self._bindings:
            entry["bindings"] = normalize_value(self._bindings, max_depth=o.max_depth)
        if o.context:
            store = (self._context or get_context()).get_store()
            if store is not None:
                entry[o.context_key] = pick_context(store, o.context_keys, max_depth=o.max_depth)
        return self._redactor.apply(entry)

    def _resolve_hostname(self) -> str:
        self._hostname = socket.gethostname()
        return self._hostname

    # ─────────────────────────────────────────────────────────────────────
    # Timing
    # ─────────────────────────────────────────────────────────────────────

    def start_timer(self, level: LogLevel | str = LogLevel.INFO) -> Callable[..., None]:
        """Capture a monotonic start; the returned ``end(message, data)`` logs ``duration_ms``."""
        lvl = coerce_level(level)
        start = time.perf_counter()

        def end(message: str = "operation completed", data: object = None, /, **fields: Any) -> None:
            duration = (time.perf_counter() - start) * 1000
            payload = {**(normalize_data(data, max_depth=self._options.max_depth) or {}), **fields,
                       "duration_ms": duration}
            self.log(lvl, message, payload)

        return end

    def timed(self, event: str | None = None, *, level: LogLevel | str = LogLevel.INFO
              ) -> Callable[[Callable[P, T]], Callable[P, T]]:
        """Decorator logging each call's ``duration_ms``; failures are logged at error level and re-raised."""
        lvl = coerce_level(level)

        def decorator(func: Callable[P, T]) -> Callable[P, T]:
            label = event or f"{func.__qualname__} completed"
            failure = f"{event or func.__qualname__} failed"

            def finish(start: float, err: BaseException | None = None) -> None:
                data = {"function": func.__qualname__, "duration_ms": round((time.perf_counter() - start) * 1000, 3)}
                if err is None:
                    self.log(lvl, label, data)
                else:
                    self.log(LogLevel.ERROR, failure, err, data)

            @wraps(func)
            def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
                start = time.perf_counter()
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    finish(start, e)
                    raise
                finish(start)
                return result

            @wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
                start = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)  # type: ignore[misc]
                except Exception as e:
                    finish(start, e)
                    raise
                finish(start)
                return result

            return async_wrapper if inspect.iscoroutinefunction(func) else wrapper  # type: ignore[return-value]

        return decorator


# ─────────────────────────────────────────────────────────────────────────────
# Module helpers
# ─────────────────────────────────────────────────────────────────────────────


_default_logger: Logger | None = None


def create_logger(options: LoggerOptions | None = None, **kwargs: Any) -> Logger:
    """``Logger(options, **kwargs)``; ``transport``/``transports`` are accepted as keywords."""
    return Logger(options, **kwargs)


def configure_logging(options: LoggerOptions | None = None, **kwargs: Any) -> Logger:
    """Replace the process default logger returned by :func:`get_logger`."""
    global _default_logger
    _default_logger = Logger(options, **kwargs)
    return _default_logger


def get_logger(name: str | None = None, **bindings: Any) -> Logger:
    """Child of the process default logger, named ``name`` and carrying ``bindings``."""
    global _default_logger
    if _default_logger is None:
        _default_logger = Logger()
    if name is None and not bindings:
        return _default_logger
    return _default_logger.child(bindings, **({"name": name} if name else {}))
