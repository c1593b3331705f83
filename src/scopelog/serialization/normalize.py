"""Conversion of arbitrary runtime values into JSON-safe trees.

Everything downstream of the normalizer (redaction, transports) only ever sees
plain scalars, lists and string-keyed dicts. Cycles are detected by identity
along the current ancestor path and replaced with ``"[Circular]"``; subtrees
beyond ``max_depth`` are replaced with ``"[MaxDepth]"``.

Example:
    >>> normalize_value({"when": date(2020, 1, 1), "tags": {"a"}})
    {'when': '2020-01-01', 'tags': ['a']}
"""

from __future__ import annotations

import dataclasses
import functools
import inspect
import traceback
from collections.abc import Mapping, Sequence, Set
from datetime import UTC, date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel

from ..foundation.errors import JsonDict, JsonValue

CIRCULAR = "[Circular]"
MAX_DEPTH = "[MaxDepth]"
DEFAULT_MAX_DEPTH = 10

# orjson (and most JSON consumers) reject integers outside the signed 64-bit range
_INT_MIN, _INT_MAX = -(2**63), 2**63 - 1


def normalize_value(value: object, *, max_depth: int = DEFAULT_MAX_DEPTH) -> JsonValue:
    """Recursively convert ``value`` into a JSON-safe equivalent. Never raises."""
    return _Walker(max_depth).walk(value, 0)


def serialize_error(error: object, *, max_depth: int = DEFAULT_MAX_DEPTH) -> JsonDict | None:
    """Describe an error-like value as a dict, or ``None`` when there is nothing to describe.

    Exceptions yield ``{name, message, stack?, cause?}``, strings yield
    ``{message}``, and any other thrown value is wrapped with its normalized
    form under ``details``.
    """
    if error is None:
        return None
    if isinstance(error, BaseException):
        return _Walker(max_depth).error(error, 0)
    if isinstance(error, str):
        return {"message": error}
    return {"message": "Non-Error value thrown", "details": normalize_value(error, max_depth=max_depth)}


def is_error_like(value: object) -> bool:
    return isinstance(value, BaseException)


def format_datetime(value: datetime) -> str:
    """ISO-8601 with millisecond precision; aware datetimes are rendered in UTC with a ``Z`` suffix."""
    if value.tzinfo is None:
        return value.isoformat(timespec="milliseconds")
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def describe_callable(fn: object) -> str:
    target = fn.func if isinstance(fn, functools.partial) else fn
    name = getattr(target, "__qualname__", None) or getattr(target, "__name__", None)
    if not name or name == "<lambda>" or name.endswith(".<lambda>"):
        name = "anonymous"
    return f"[Function {name}]"


class _Walker:
    """Single normalization pass; holds the ancestor set for cycle detection."""

    __slots__ = ("_max_depth", "_ancestors")

    def __init__(self, max_depth: int) -> None:
        self._max_depth = max_depth
        self._ancestors: set[int] = set()

    def walk(self, value: object, depth: int) -> JsonValue:
        match value:
            case None | bool() | str() | float():
                return value
            case int():
                return value if _INT_MIN <= value <= _INT_MAX else str(value)
            case Decimal():
                return str(value)
            case Enum():
                return self.walk(value.value, depth)
            case datetime():
                return format_datetime(value)
            case date() | time():
                return value.isoformat()
            case bytes() | bytearray() | memoryview():
                return bytes(value).decode("utf-8", errors="replace")
        if isinstance(value, BaseException):
            return self._guard(value, depth, self.error)
        if isinstance(value, type):
            return str(value)
        if inspect.isroutine(value) or isinstance(value, functools.partial):
            return describe_callable(value)
        if isinstance(value, Mapping):
            return self._guard(value, depth, self._mapping)
        if isinstance(value, (list, tuple, Set, Sequence)):
            return self._guard(value, depth, self._sequence)
        if isinstance(value, BaseModel):
            return self._guard(value, depth, self._model)
        if dataclasses.is_dataclass(value):
            return self._guard(value, depth, self._dataclass)
        return _safe_str(value)

    def error(self, exc: BaseException, depth: int) -> JsonDict:
        out: JsonDict = {"name": type(exc).__name__, "message": _safe_str(exc)}
        if exc.__traceback__ is not None:
            out["stack"] = "".join(traceback.format_exception(exc)).rstrip()
        cause = exc.__cause__ if exc.__cause__ is not None else (
            None if exc.__suppress_context__ else exc.__context__)
        if cause is not None:
            out["cause"] = self.walk(cause, depth + 1)
        return out

    def _guard(self, value: Any, depth: int, convert: Any) -> JsonValue:
        marker = id(value)
        if marker in self._ancestors:
            return CIRCULAR
        if depth >= self._max_depth:
            return MAX_DEPTH
        self._ancestors.add(marker)
        try:
            return convert(value, depth)
        finally:
            self._ancestors.discard(marker)

    def _mapping(self, value: Mapping[Any, Any], depth: int) -> JsonDict:
        return {_key(k): self.walk(v, depth + 1) for k, v in list(value.items())}

    def _sequence(self, value: Any, depth: int) -> list[JsonValue]:
        return [self.walk(item, depth + 1) for item in list(value)]

    def _model(self, value: BaseModel, depth: int) -> JsonValue:
        try:
            dumped = value.model_dump(by_alias=True)
        except Exception:  # noqa: BLE001 - fall back to repr of broken models
            return _safe_str(value)
        return self._mapping(dumped, depth)

    def _dataclass(self, value: Any, depth: int) -> JsonDict:
        return {f.name: self.walk(getattr(value, f.name, None), depth + 1) for f in dataclasses.fields(value)}


def _key(key: object) -> str:
    return key if isinstance(key, str) else _safe_str(key)


def _safe_str(value: object) -> str:
    try:
        return str(value)
    except Exception:  # noqa: BLE001 - normalization must never raise
        return f"[Unserializable {type(value).__name__}]"
