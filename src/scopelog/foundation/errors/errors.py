"""Typed failures raised by scope store operations.

Store-contract violations surface immediately at the call site so misuse is
caught during development. The logger never raises these: it only reads the
store through the non-raising lookups.
"""

from __future__ import annotations

from enum import StrEnum


class ContextErrorCode(StrEnum):
    """Machine-readable classification of store failures."""
    NO_ACTIVE_SCOPE = "NO_ACTIVE_SCOPE"
    MISSING_VALUE = "MISSING_VALUE"
    KEY_NOT_OBJECT = "KEY_NOT_OBJECT"
    REMOVAL_NOT_FOUND = "REMOVAL_NOT_FOUND"
    MISSING_CALLBACK = "MISSING_CALLBACK"


class ScopeError(Exception):
    """Base exception for scope store failures.

    Attributes:
        code: Error classification for programmatic handling
        key: Store key involved in the failure, if any
    """

    __slots__ = ("code", "key")

    code: ContextErrorCode
    key: str | None

    def __init__(self, message: str, code: ContextErrorCode, *, key: str | None = None) -> None:
        self.code = code
        self.key = key
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        """Flat representation for structured output."""
        out = {"code": self.code.value, "message": str(self)}
        if self.key is not None:
            out["key"] = self.key
        return out


class NoActiveScopeError(ScopeError):
    """A store-dependent call was made with no active scope."""

    def __init__(self, message: str = "No active context found. Use run(...) or the context middleware.") -> None:
        super().__init__(message, ContextErrorCode.NO_ACTIVE_SCOPE)


class MissingValueError(ScopeError):
    """require_value() on a key the store does not hold."""

    def __init__(self, key: str) -> None:
        super().__init__(f'Context value "{key}" was not found.', ContextErrorCode.MISSING_VALUE, key=key)


class KeyNotObjectError(ScopeError):
    """add_options() target exists and is not a mergeable mapping."""

    def __init__(self, key: str) -> None:
        super().__init__(f'Context value "{key}" is not an object.', ContextErrorCode.KEY_NOT_OBJECT, key=key)


class RemovalNotFoundError(ScopeError):
    """safe_remove() on a key the store does not hold."""

    def __init__(self, key: str) -> None:
        super().__init__("You are trying to remove something that does not exist.",
                         ContextErrorCode.REMOVAL_NOT_FOUND, key=key)


class MissingCallbackError(ScopeError):
    """run() invoked without a callable."""

    def __init__(self, operation: str = "run") -> None:
        super().__init__(f"{operation} requires a callback.", ContextErrorCode.MISSING_CALLBACK)
