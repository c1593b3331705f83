"""Task-scoped key/value stores propagated through ``contextvars``.

A :class:`ScopedContext` owns one :class:`~contextvars.ContextVar`. Entering a
scope makes a store active for all code that runs inside it, including code
resumed after ``await`` and tasks spawned from inside (``asyncio`` copies the
current context into every new task). Independently started work sees no
store, or its own.

Quick Start:
    >>> from scopelog.context import get_context
    >>> ctx = get_context()
    >>> ctx.run({"request_id": "r-1"}, lambda: ctx.get_value("request_id"))
    'r-1'

    >>> async def handler():
    ...     ctx.add_value("user", 42)
    ...     await do_work()          # still sees request_id and user
    >>> await ctx.run({"request_id": "r-2"}, handler)

Derived scopes start from a shallow copy of the parent store merged with an
overlay; writes in the child never reach the parent:
    >>> with ctx.scope({"parent": True}):
    ...     with ctx.derived({"child": True}):
    ...         ctx.get_store()
    {'parent': True, 'child': True}

A callable that never completes keeps its store (and everything it references)
alive for as long as something holds the pending work.
"""

from __future__ import annotations

import contextvars
import inspect
import itertools
import logging
from collections.abc import Awaitable, Callable, Iterator, Mapping, MutableMapping
from contextlib import contextmanager
from functools import lru_cache, wraps
from typing import Any, ParamSpec, TypeVar, overload

from ..foundation.errors import (
    ContextStore,
    KeyNotObjectError,
    MissingCallbackError,
    MissingValueError,
    NoActiveScopeError,
    RemovalNotFoundError,
)
from .perf import DEFAULT_PERF_KEY, PerformanceEntry, PerformanceMode, wall_clock_ms

P = ParamSpec("P")
T = TypeVar("T")

_log = logging.getLogger("scopelog.context")

_MISSING: Any = object()
_instances = itertools.count()


class ScopedContext:
    """Owner of one task-local store slot and every operation on it.

    Create one per process (see :func:`get_context`) or inject a dedicated
    instance into a library so its stores never mix with the application's.
    """

    __slots__ = ("_var", "name")

    def __init__(self, name: str | None = None) -> None:
        self.name = name or f"scopelog-{next(_instances)}"
        self._var: contextvars.ContextVar[ContextStore | None] = contextvars.ContextVar(self.name, default=None)

    def __repr__(self) -> str:
        return f"ScopedContext(name={self.name!r}, active={self._var.get() is not None})"

    # ─────────────────────────────────────────────────────────────────────
    # Scope lifecycle
    # ─────────────────────────────────────────────────────────────────────

    @overload
    def run(self, callback: Callable[[], T], /) -> T: ...
    @overload
    def run(self, initial_store: Mapping[str, Any] | None, callback: Callable[[], T], /) -> T: ...

    def run(self, initial_store_or_callback: Any = _MISSING, callback: Any = _MISSING, /) -> Any:
        """Run ``callback`` inside a new scope and return its result.

        If the callback is a coroutine function (or returns an awaitable) the
        returned coroutine awaits it with the scope active.

        Raises:
            MissingCallbackError: No callable was supplied
        """
        if callback is _MISSING and callable(initial_store_or_callback) and not isinstance(
                initial_store_or_callback, Mapping):
            store, callback = {}, initial_store_or_callback
        else:
            store = initial_store_or_callback
            if store is _MISSING:
                store = None
        if callback is _MISSING or not callable(callback):
            raise MissingCallbackError("run")
        return self._run_in(_as_store(store), callback)

    def derive(self, overlay: Mapping[str, Any] | None, callback: Callable[[], T]) -> T:
        """Run ``callback`` in a child scope: shallow copy of the current store merged with ``overlay``."""
        if not callable(callback):
            raise MissingCallbackError("derive")
        return self._run_in(self._derived_store(overlay), callback)

    def enter_with(self, store: Mapping[str, Any]) -> None:
        """Make ``store`` active for the rest of the current execution context.

        Advanced use only: nothing restores the previous store, and sibling
        branches started from the same point will share the replacement.
        """
        self._var.set(_as_store(store))

    @contextmanager
    def scope(self, initial_store: Mapping[str, Any] | None = None) -> Iterator[ContextStore]:
        """Activate a new scope for a ``with`` block; yields the live store."""
        store = _as_store(initial_store)
        token = self._var.set(store)
        try:
            yield store
        finally:
            self._var.reset(token)

    @contextmanager
    def derived(self, overlay: Mapping[str, Any] | None = None) -> Iterator[ContextStore]:
        """``with``-block counterpart of :meth:`derive`."""
        with self.scope(self._derived_store(overlay)) as store:
            yield store

    def bind(self, fn: Callable[P, T], initial_store: Mapping[str, Any] | None = None) -> Callable[P, T]:
        """Wrap ``fn`` so every call runs in a fresh scope seeded with a copy of ``initial_store``."""
        seed = dict(initial_store or {})
        if inspect.iscoroutinefunction(fn):
            @wraps(fn)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> Any:
                with self.scope(dict(seed)):
                    return await fn(*args, **kwargs)
            return async_wrapper  # type: ignore[return-value]

        @wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return self.run(dict(seed), lambda: fn(*args, **kwargs))
        return wrapper

    def _derived_store(self, overlay: Mapping[str, Any] | None) -> ContextStore:
        parent = self._var.get()
        return {**(parent or {}), **(overlay or {})}

    def _run_in(self, store: ContextStore, callback: Callable[[], Any]) -> Any:
        result = contextvars.copy_context().run(self._call_with, store, callback)
        if inspect.isawaitable(result):
            return self._await_with(store, result)
        return result

    def _call_with(self, store: ContextStore, callback: Callable[[], Any]) -> Any:
        self._var.set(store)
        return callback()

    async def _await_with(self, store: ContextStore, awaitable: Awaitable[T]) -> T:
        token = self._var.set(store)
        try:
            return await awaitable
        finally:
            self._var.reset(token)

    # ─────────────────────────────────────────────────────────────────────
    # Lookup
    # ─────────────────────────────────────────────────────────────────────

    def get_store(self) -> ContextStore | None:
        """The active store, or ``None`` outside any scope."""
        return self._var.get()

    def require_store(self) -> ContextStore:
        """The active store.

        Raises:
            NoActiveScopeError: Called outside any scope
        """
        if (store := self._var.get()) is None:
            raise NoActiveScopeError()
        return store

    @property
    def active(self) -> bool:
        return self._var.get() is not None

    def get_value(self, key: str, default: Any = None) -> Any:
        """Value for ``key``; a key explicitly holding ``None`` is returned as ``None``, not ``default``."""
        store = self._var.get()
        if store is None or key not in store:
            return default
        return store[key]

    def require_value(self, key: str) -> Any:
        store = self.require_store()
        if key not in store:
            raise MissingValueError(key)
        return store[key]

    def has(self, key: str) -> bool:
        store = self._var.get()
        return store is not None and key in store

    def snapshot(self) -> ContextStore | None:
        """Shallow copy of the active store, or ``None`` outside any scope."""
        store = self._var.get()
        return None if store is None else dict(store)

    # ─────────────────────────────────────────────────────────────────────
    # Mutation
    # ─────────────────────────────────────────────────────────────────────

    def set_default(self, key: str, value: T) -> T:
        """Set ``key`` only if absent; return the now-current value."""
        return self.require_store().setdefault(key, value)

    def reset(self) -> ContextStore:
        """Remove every key from the active store (same instance)."""
        store = self.require_store()
        store.clear()
        return store

    def add_value(self, key: str, value: Any) -> ContextStore:
        store = self.require_store()
        store[key] = value
        return store

    def add_object_value(self, values: Mapping[str, Any]) -> ContextStore:
        """Shallow-merge ``values`` into the active store."""
        store = self.require_store()
        store.update(values)
        return store

    def add_options(self, options: Mapping[str, Any], key: str = "options") -> ContextStore:
        """Merge ``options`` into the nested bag at ``key``.

        The bag is created as a copy of ``options`` when absent and merged in
        place when it is a mutable mapping.

        Raises:
            KeyNotObjectError: ``key`` holds a non-mapping (lists included)
        """
        store = self.require_store()
        existing = store.get(key, _MISSING)
        if existing is _MISSING:
            store[key] = dict(options)
        elif isinstance(existing, MutableMapping):
            existing.update(options)
        else:
            raise KeyNotObjectError(key)
        return store

    def remove(self, key: str) -> ContextStore:
        """Delete ``key`` if present."""
        store = self.require_store()
        store.pop(key, None)
        return store

    def safe_remove(self, key: str) -> ContextStore:
        """Delete ``key``.

        Raises:
            RemovalNotFoundError: ``key`` is absent
        """
        store = self.require_store()
        if key not in store:
            raise RemovalNotFoundError(key)
        del store[key]
        return store

    # ─────────────────────────────────────────────────────────────────────
    # Timing
    # ─────────────────────────────────────────────────────────────────────

    def record_performance(self, entry: PerformanceEntry, *, key: str = DEFAULT_PERF_KEY,
                           mode: PerformanceMode = "append") -> None:
        """Store ``entry`` at ``key``; silently ignored outside any scope."""
        if (store := self._var.get()) is None:
            return
        if mode == "overwrite":
            store[key] = entry
            return
        existing = store.get(key, _MISSING)
        if existing is _MISSING:
            store[key] = [entry]
        elif isinstance(existing, list):
            existing.append(entry)
        else:
            store[key] = [existing, entry]

    def measure(self, name: str, work: Callable[[], T], *, data: Mapping[str, Any] | None = None,
                key: str = DEFAULT_PERF_KEY, mode: PerformanceMode = "append",
                now: Callable[[], float] | None = None) -> T:
        """Run ``work`` (sync or async) and record its timing.

        The entry is recorded on success and on failure; the work's own result
        or exception reaches the caller unchanged. For async work a coroutine
        is returned and the entry is recorded when it settles.
        """
        clock = now or wall_clock_ms
        started_at = clock()

        def finish(error: object = None, failed: bool = False) -> None:
            try:
                entry = PerformanceEntry.build(name, started_at, clock(), data=data, error=error, failed=failed)
                self.record_performance(entry, key=key, mode=mode)
            except Exception:  # noqa: BLE001 - recording must not replace the outcome
                _log.warning("failed to record performance entry %r", name, exc_info=True)

        try:
            result = work()
        except BaseException as exc:
            finish(exc, failed=True)
            raise
        if inspect.isawaitable(result):
            return self._measure_awaitable(result, finish)  # type: ignore[return-value]
        finish()
        return result

    @staticmethod
    async def _measure_awaitable(awaitable: Awaitable[T], finish: Callable[..., None]) -> T:
        try:
            value = await awaitable
        except BaseException as exc:
            finish(exc, failed=True)
            raise
        finish()
        return value


def _as_store(initial: Mapping[str, Any] | None) -> ContextStore:
    """Use a dict as-is (shared instance); copy any other mapping into one."""
    if initial is None:
        return {}
    return initial if isinstance(initial, dict) else dict(initial)


@lru_cache(maxsize=1)
def get_context() -> ScopedContext:
    """The process-wide default :class:`ScopedContext` (created once)."""
    return ScopedContext("scopelog")
