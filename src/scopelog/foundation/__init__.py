"""Foundation - typed failures, shared aliases and env configuration.

Contains: errors, config.
"""

from __future__ import annotations

__all__ = [
    # Errors
    "ContextErrorCode", "ScopeError", "NoActiveScopeError", "MissingValueError",
    "KeyNotObjectError", "RemovalNotFoundError", "MissingCallbackError",
    "ContextStore", "JsonDict", "JsonPrimitive", "JsonValue",
    # Config
    "LoggerEnv", "LoggerEnvWarning", "LoggerEnvResolution", "logger_preset",
    "resolve_logger_env", "create_logger_from_env",
]


def __getattr__(name: str):
    """Lazy imports to avoid circular dependencies (config depends on the logger)."""
    if name in __all__[:11]:
        from . import errors
        return getattr(errors, name)
    if name in __all__:
        from . import config
        return getattr(config, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
