"""Task-scoped stores: creation, derivation, lookup, mutation and timing.

The module-level functions operate on the process-wide default
:class:`ScopedContext` returned by :func:`get_context`. Libraries that need an
isolated slot construct their own ``ScopedContext``.

    >>> from scopelog import context
    >>> context.run({"tenant": "acme"}, lambda: context.require_value("tenant"))
    'acme'
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from ..foundation.errors import ContextStore
from .perf import DEFAULT_PERF_KEY, PerformanceEntry, PerformanceError, PerformanceMode, wall_clock_ms
from .scope import ScopedContext, get_context

T = TypeVar("T")


def run(*args: Any) -> Any:
    """``run(callback)`` or ``run(initial_store, callback)`` on the default context."""
    return get_context().run(*args)


def derive(overlay: Mapping[str, Any] | None, callback: Callable[[], T]) -> T:
    return get_context().derive(overlay, callback)


def enter_with(store: Mapping[str, Any]) -> None:
    get_context().enter_with(store)


def get_store() -> ContextStore | None:
    return get_context().get_store()


def require_store() -> ContextStore:
    return get_context().require_store()


def get_value(key: str, default: Any = None) -> Any:
    return get_context().get_value(key, default)


def require_value(key: str) -> Any:
    return get_context().require_value(key)


def has(key: str) -> bool:
    return get_context().has(key)


def set_default(key: str, value: T) -> T:
    return get_context().set_default(key, value)


def snapshot() -> ContextStore | None:
    return get_context().snapshot()


def reset() -> ContextStore:
    return get_context().reset()


def add_value(key: str, value: Any) -> ContextStore:
    return get_context().add_value(key, value)


def add_object_value(values: Mapping[str, Any]) -> ContextStore:
    return get_context().add_object_value(values)


def add_options(options: Mapping[str, Any], key: str = "options") -> ContextStore:
    return get_context().add_options(options, key)


def remove(key: str) -> ContextStore:
    return get_context().remove(key)


def safe_remove(key: str) -> ContextStore:
    return get_context().safe_remove(key)


def measure(name: str, work: Callable[[], T], **options: Any) -> T:
    """See :meth:`ScopedContext.measure`."""
    return get_context().measure(name, work, **options)


__all__ = [
    # Service
    "ScopedContext", "get_context",
    # Lifecycle
    "run", "derive", "enter_with",
    # Lookup
    "get_store", "require_store", "get_value", "require_value", "has", "snapshot",
    # Mutation
    "set_default", "reset", "add_value", "add_object_value", "add_options", "remove", "safe_remove",
    # Timing
    "measure", "PerformanceEntry", "PerformanceError", "PerformanceMode", "DEFAULT_PERF_KEY", "wall_clock_ms",
]
