"""Seed a scope per unit of work: ASGI requests and background jobs."""

from .asgi import ContextMiddleware, build_store, default_id_factory
from .jobs import scoped_job

__all__ = ["ContextMiddleware", "scoped_job", "build_store", "default_id_factory"]
