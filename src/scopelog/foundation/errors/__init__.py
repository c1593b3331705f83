"""Typed store failures and shared JSON aliases.

- ContextErrorCode: classification of store failures
- ScopeError and subclasses: raised by store operations at the call site
- JsonDict/JsonValue/ContextStore: aliases used across the package
"""

from .errors import (
    ContextErrorCode,
    KeyNotObjectError,
    MissingCallbackError,
    MissingValueError,
    NoActiveScopeError,
    RemovalNotFoundError,
    ScopeError,
)
from .types import ContextStore, JsonDict, JsonPrimitive, JsonValue

__all__ = [
    # Failures
    "ContextErrorCode", "ScopeError", "NoActiveScopeError", "MissingValueError",
    "KeyNotObjectError", "RemovalNotFoundError", "MissingCallbackError",
    # Types
    "ContextStore", "JsonDict", "JsonPrimitive", "JsonValue",
]
