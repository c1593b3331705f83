"""Tests for ASGI and job scope seeding."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from scopelog.context import ScopedContext
from scopelog.integrations import ContextMiddleware, scoped_job
from scopelog.logging import MemoryTransport, create_logger


@pytest.fixture
def ctx() -> ScopedContext:
    return ScopedContext("integration-test")


def counter(prefix: str = "id"):
    state = {"n": 0}

    def next_id() -> str:
        state["n"] += 1
        return f"{prefix}-{state['n']}"
    return next_id


async def receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


# ═════════════════════════════════════════════════════════════════════════════
# ASGI
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_middleware_seeds_store_per_request(ctx: ScopedContext) -> None:
    seen: list[dict[str, Any] | None] = []

    async def app(scope: Any, receive: Any, send: Any) -> None:
        await asyncio.sleep(0)
        seen.append(ctx.snapshot())
        await send({"type": "http.response.start", "status": 200, "headers": []})

    sent: list[dict[str, Any]] = []

    async def send(message: dict[str, Any]) -> None:
        sent.append(message)

    middleware = ContextMiddleware(app, id_key="request_id", id_factory=counter("req"), context=ctx,
                                   seed=lambda scope: {"method": scope["method"], "path": scope["path"]})
    await asyncio.gather(
        middleware({"type": "http", "method": "GET", "path": "/a"}, receive, send),
        middleware({"type": "http", "method": "POST", "path": "/b"}, receive, send),
    )

    assert sorted(seen, key=lambda s: s["path"]) == [
        {"method": "GET", "path": "/a", "request_id": "req-1"},
        {"method": "POST", "path": "/b", "request_id": "req-2"},
    ]
    assert len(sent) == 2
    assert ctx.get_store() is None


@pytest.mark.asyncio
async def test_middleware_accepts_static_seed(ctx: ScopedContext) -> None:
    seen: list[Any] = []

    async def app(scope: Any, receive: Any, send: Any) -> None:
        seen.append(ctx.snapshot())

    middleware = ContextMiddleware(app, seed={"service": "api"}, id_factory=lambda: "fixed", context=ctx)
    await middleware({"type": "websocket"}, receive, None)  # type: ignore[arg-type]
    assert seen == [{"service": "api", "instance_id": "fixed"}]


@pytest.mark.asyncio
async def test_middleware_passes_lifespan_through(ctx: ScopedContext) -> None:
    seen: list[Any] = []

    async def app(scope: Any, receive: Any, send: Any) -> None:
        seen.append(ctx.get_store())

    await ContextMiddleware(app, context=ctx)({"type": "lifespan"}, receive, None)  # type: ignore[arg-type]
    assert seen == [None]


@pytest.mark.asyncio
async def test_middleware_restores_after_error(ctx: ScopedContext) -> None:
    async def app(scope: Any, receive: Any, send: Any) -> None:
        raise RuntimeError("handler failed")

    with pytest.raises(RuntimeError):
        await ContextMiddleware(app, context=ctx)({"type": "http"}, receive, None)  # type: ignore[arg-type]
    assert ctx.get_store() is None


@pytest.mark.asyncio
async def test_log_entries_carry_request_context(ctx: ScopedContext) -> None:
    sink = MemoryTransport()
    log = create_logger(transport=sink, scoped_context=ctx)

    async def app(scope: Any, receive: Any, send: Any) -> None:
        log.info("handling")

    await ContextMiddleware(app, id_factory=lambda: "abc", context=ctx)({"type": "http"}, receive, None)  # type: ignore[arg-type]
    assert sink.entries[0]["context"] == {"instance_id": "abc"}


def test_default_id_is_uuid_hex(ctx: ScopedContext) -> None:
    seen: list[Any] = []

    async def app(scope: Any, receive: Any, send: Any) -> None:
        seen.append(ctx.get_value("instance_id"))

    asyncio.run(ContextMiddleware(app, context=ctx)({"type": "http"}, receive, None))  # type: ignore[arg-type]
    assert len(seen[0]) == 32
    int(seen[0], 16)


# ═════════════════════════════════════════════════════════════════════════════
# Jobs
# ═════════════════════════════════════════════════════════════════════════════


def test_scoped_job_sync(ctx: ScopedContext) -> None:
    @scoped_job({"queue": "emails"}, id_factory=counter("job"), context=ctx)
    def send_email(to: str) -> dict:
        ctx.add_value("to", to)
        return ctx.snapshot()

    assert send_email("a@example.com") == {"queue": "emails", "job_id": "job-1", "to": "a@example.com"}
    assert send_email("b@example.com") == {"queue": "emails", "job_id": "job-2", "to": "b@example.com"}
    assert ctx.get_store() is None


@pytest.mark.asyncio
async def test_scoped_job_async_with_seed_callable(ctx: ScopedContext) -> None:
    @scoped_job(lambda tenant, **_: {"tenant": tenant}, id_key="run", id_factory=lambda: "r", context=ctx)
    async def rebuild(tenant: str, *, full: bool = False) -> Any:
        await asyncio.sleep(0)
        return ctx.snapshot()

    assert await rebuild("acme", full=True) == {"tenant": "acme", "run": "r"}
    assert rebuild.__name__ == "rebuild"
