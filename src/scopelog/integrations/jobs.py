"""Run background jobs, CLI commands or queue consumers inside a fresh scope."""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping
from functools import wraps
from typing import Any, ParamSpec, TypeVar

from ..context import ScopedContext, get_context
from ..foundation.errors import ContextStore
from .asgi import default_id_factory

P = ParamSpec("P")
T = TypeVar("T")

JobSeed = Mapping[str, Any] | Callable[..., Mapping[str, Any] | None]


def scoped_job(seed: JobSeed | None = None, *, id_key: str = "job_id",
               id_factory: Callable[[], str] = default_id_factory,
               context: ScopedContext | None = None) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator giving every call of a sync or async job its own store.

    A callable ``seed`` receives the job's arguments.

    Example:
        >>> @scoped_job(lambda tenant, *_: {"tenant": tenant})
        ... async def rebuild_index(tenant: str) -> None:
        ...     log.info("rebuilding")   # context: {"tenant": ..., "job_id": ...}
    """
    ctx = context or get_context()

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        def store_for(args: tuple[Any, ...], kwargs: dict[str, Any]) -> ContextStore:
            values = seed(*args, **kwargs) if callable(seed) else seed
            return {**(values or {}), id_key: id_factory()}

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> Any:
                with ctx.scope(store_for(args, kwargs)):
                    return await func(*args, **kwargs)
            return async_wrapper  # type: ignore[return-value]

        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return ctx.run(store_for(args, kwargs), lambda: func(*args, **kwargs))
        return wrapper

    return decorator
