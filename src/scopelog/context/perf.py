"""Performance entries recorded into the active store by ``measure``."""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, SerializerFunctionWrapHandler, model_serializer
from pydantic.alias_generators import to_camel

from ..foundation.errors import JsonDict
from ..serialization import normalize_value

PerformanceMode = Literal["append", "overwrite"]

DEFAULT_PERF_KEY = "perf"


def _without_none(dumped: JsonDict) -> JsonDict:
    return {k: v for k, v in dumped.items() if v is not None}


def wall_clock_ms() -> float:
    """Milliseconds since the epoch."""
    return time.time() * 1000


class PerformanceError(BaseModel):
    """Normalized ``{name?, message}`` descriptor of a failed measurement."""

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    message: str

    @model_serializer(mode="wrap")
    def _drop_unset(self, handler: SerializerFunctionWrapHandler) -> JsonDict:
        return _without_none(handler(self))

    @classmethod
    def from_error(cls, error: object) -> PerformanceError:
        if isinstance(error, BaseException):
            return cls(name=type(error).__name__, message=str(error))
        if isinstance(error, str):
            return cls(message=error)
        message = getattr(error, "message", None)
        name = getattr(error, "name", None)
        if message is not None or name is not None:
            return cls(name=name if isinstance(name, str) else None,
                       message=message if isinstance(message, str) else "Unknown error")
        return cls(message=str(error))


class PerformanceEntry(BaseModel):
    """Timing of one measured unit of work.

    Serialized by alias (``startedAt``, ``endedAt``, ``durationMs``) so log
    output keeps the camelCase wire shape.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    name: str
    started_at: float
    ended_at: float
    duration_ms: float = Field(ge=0)
    data: JsonDict | None = None
    error: PerformanceError | None = None

    @model_serializer(mode="wrap")
    def _drop_unset(self, handler: SerializerFunctionWrapHandler) -> JsonDict:
        return _without_none(handler(self))

    @classmethod
    def build(cls, name: str, started_at: float, ended_at: float, *, data: Mapping[str, Any] | None = None,
              error: object = None, failed: bool = False) -> PerformanceEntry:
        return cls(
            name=name,
            started_at=started_at,
            ended_at=ended_at,
            duration_ms=max(0.0, ended_at - started_at),
            data=normalize_value(data) if data else None,
            error=PerformanceError.from_error(error) if failed else None,
        )

    def to_dict(self) -> JsonDict:
        return self.model_dump(by_alias=True)
