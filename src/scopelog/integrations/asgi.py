"""ASGI middleware that runs every request inside a fresh scope.

Works with any ASGI 3 application (Starlette, FastAPI, Quart, ...):

    >>> app = ContextMiddleware(app, id_key="request_id",
    ...                         seed=lambda scope: {"method": scope.get("method"), "path": scope.get("path")})

Handlers and everything they await then see ``request_id``, ``method`` and
``path`` through :mod:`scopelog.context` and in every log entry.
"""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable, Mapping, MutableMapping
from typing import Any

from ..context import ScopedContext, get_context
from ..foundation.errors import ContextStore

AsgiScope = MutableMapping[str, Any]
Receive = Callable[[], Awaitable[MutableMapping[str, Any]]]
Send = Callable[[MutableMapping[str, Any]], Awaitable[None]]
AsgiApp = Callable[[AsgiScope, Receive, Send], Awaitable[None]]
Seed = Mapping[str, Any] | Callable[[AsgiScope], Mapping[str, Any] | None]

SCOPED_TYPES = frozenset({"http", "websocket"})


def default_id_factory() -> str:
    return uuid.uuid4().hex


def build_store(seed: Seed | None, source: Any, id_key: str, id_factory: Callable[[], str]) -> ContextStore:
    """Seed values (mapping, or result of ``seed(source)``) plus a generated id under ``id_key``."""
    values = seed(source) if callable(seed) else seed
    return {**(values or {}), id_key: id_factory()}


class ContextMiddleware:
    """Seed a new store per ``http``/``websocket`` connection; ``lifespan`` passes through."""

    def __init__(self, app: AsgiApp, *, id_key: str = "instance_id",
                 id_factory: Callable[[], str] = default_id_factory, seed: Seed | None = None,
                 context: ScopedContext | None = None) -> None:
        self.app = app
        self.id_key = id_key
        self.id_factory = id_factory
        self.seed = seed
        self.context = context or get_context()

    async def __call__(self, scope: AsgiScope, receive: Receive, send: Send) -> None:
        if scope["type"] not in SCOPED_TYPES:
            await self.app(scope, receive, send)
            return
        store = build_store(self.seed, scope, self.id_key, self.id_factory)
        with self.context.scope(store):
            await self.app(scope, receive, send)
