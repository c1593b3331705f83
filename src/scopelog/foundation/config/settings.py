"""Logger configuration from environment variables using pydantic-settings.

Each setting accepts a ``LOG_*`` name and a ``LOGGER_*`` name; the first
non-empty one wins. Values are read raw and parsed leniently: an invalid
value produces a :class:`LoggerEnvWarning` and is otherwise ignored, so a
bad deployment variable never prevents the logger from starting.

Example:
    >>> resolution = resolve_logger_env({"LOG_PRESET": "production", "LOG_LEVEL": "verbose"})
    >>> resolution.options["format"]
    'json'
    >>> [w.key for w in resolution.warnings]
    ['LOG_LEVEL']

    # Or straight from os.environ:
    # LOG_LEVEL=debug LOG_FORMAT=json LOG_BINDINGS="service=api,region=eu"
    >>> log = create_logger_from_env(name="api")
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ...logging.logger import Logger, create_logger
from .parsers import (
    logger_preset,
    parse_bindings_env,
    parse_boolean_env,
    parse_list_env,
    parse_log_format_env,
    parse_log_level_env,
    parse_logger_preset_env,
    parse_sample_rate_env,
)

ENV_KEYS: dict[str, tuple[str, ...]] = {
    "preset": ("LOG_PRESET", "LOGGER_PRESET"),
    "name": ("LOG_NAME", "LOGGER_NAME"),
    "bindings": ("LOG_BINDINGS", "LOGGER_BINDINGS"),
    "level": ("LOG_LEVEL", "LOGLEVEL", "LOGGER_LEVEL", "LOGGER_LOGLEVEL"),
    "format": ("LOG_FORMAT", "LOGGER_FORMAT"),
    "colors": ("LOG_COLORS", "LOG_COLOURS", "LOGGER_COLORS", "LOGGER_COLOURS"),
    "context": ("LOG_CONTEXT", "LOGGER_CONTEXT"),
    "context_key": ("LOG_CONTEXT_KEY", "LOGGER_CONTEXT_KEY"),
    "context_keys": ("LOG_CONTEXT_KEYS", "LOGGER_CONTEXT_KEYS"),
    "redact_keys": ("LOG_REDACT_KEYS", "LOGGER_REDACT_KEYS"),
    "redact_defaults": ("LOG_REDACT_DEFAULTS", "LOGGER_REDACT_DEFAULTS"),
    "redact_fields": ("LOG_REDACT_FIELDS", "LOGGER_REDACT_FIELDS"),
    "redact_placeholder": ("LOG_REDACT_PLACEHOLDER", "LOGGER_REDACT_PLACEHOLDER"),
    "sample_rate": ("LOG_SAMPLE_RATE", "LOGGER_SAMPLE_RATE"),
    "include_pid": ("LOG_INCLUDE_PID", "LOGGER_INCLUDE_PID"),
    "include_hostname": ("LOG_INCLUDE_HOSTNAME", "LOGGER_INCLUDE_HOSTNAME"),
    "timestamp": ("LOG_TIMESTAMP", "LOGGER_TIMESTAMP"),
}

_BOOLEAN_HINT = "Invalid boolean. Use true/false, 1/0, yes/no, on/off."
_LIST_HINT = "Invalid list. Use comma-separated values or JSON array."


def _env(field: str) -> Any:
    return Field(default=None, validation_alias=AliasChoices(*ENV_KEYS[field]))


class LoggerEnv(BaseSettings):
    """Raw (unparsed) logger settings as found in the environment."""

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
    )

    preset: str | None = _env("preset")
    name: str | None = _env("name")
    bindings: str | None = _env("bindings")
    level: str | None = _env("level")
    format: str | None = _env("format")
    colors: str | None = _env("colors")
    context: str | None = _env("context")
    context_key: str | None = _env("context_key")
    context_keys: str | None = _env("context_keys")
    redact_keys: str | None = _env("redact_keys")
    redact_defaults: str | None = _env("redact_defaults")
    redact_fields: str | None = _env("redact_fields")
    redact_placeholder: str | None = _env("redact_placeholder")
    sample_rate: str | None = _env("sample_rate")
    include_pid: str | None = _env("include_pid")
    include_hostname: str | None = _env("include_hostname")
    timestamp: str | None = _env("timestamp")

    @classmethod
    def load(cls, env: Mapping[str, str | None] | None = None) -> LoggerEnv:
        """Read ``os.environ`` when ``env`` is ``None``, otherwise only ``env``."""
        if env is None:
            return cls()
        return cls.model_validate({k: v for k, v in env.items() if v not in (None, "")})


class LoggerEnvWarning(BaseModel):
    """An environment value that was present but could not be used."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: str
    reason: str


class LoggerEnvResolution(BaseModel):
    """Logger keyword options resolved from the environment, plus any warnings."""

    model_config = ConfigDict(frozen=True)

    options: dict[str, Any] = Field(default_factory=dict)
    warnings: list[LoggerEnvWarning] = Field(default_factory=list)


class _Resolver:
    """Pairs each raw setting with the variable name that supplied it."""

    __slots__ = ("raw", "source", "warnings")

    def __init__(self, raw: LoggerEnv, source: Mapping[str, str | None]) -> None:
        self.raw, self.source = raw, source
        self.warnings: list[LoggerEnvWarning] = []

    def key_for(self, field: str) -> str:
        for key in ENV_KEYS[field]:
            if self.source.get(key):
                return key
        return ENV_KEYS[field][0]

    def parse(self, field: str, parser: Callable[[str], Any], reason: str) -> Any:
        if (value := getattr(self.raw, field)) is None:
            return None
        if (parsed := parser(value)) is None:
            self.warn(field, value, reason)
        return parsed

    def warn(self, field: str, value: str, reason: str) -> None:
        self.warnings.append(LoggerEnvWarning(key=self.key_for(field), value=value, reason=reason))


def resolve_logger_env(env: Mapping[str, str | None] | None = None, *,
                       defaults: Mapping[str, Any] | None = None, name: str | None = None) -> LoggerEnvResolution:
    """Layer preset, ``defaults`` and environment values into logger options.

    Precedence (lowest first): ``LOG_PRESET``, ``defaults``, individual
    ``LOG_*`` variables. An explicit ``name`` beats ``LOG_NAME``.
    """
    source: Mapping[str, str | None] = os.environ if env is None else env
    r = _Resolver(LoggerEnv.load(env), source)

    preset = r.parse("preset", parse_logger_preset_env, "Invalid preset. Use development, production, or test.")
    options: dict[str, Any] = {**(logger_preset(preset) if preset else {}), **(defaults or {})}

    if resolved_name := name or r.raw.name:
        options["name"] = resolved_name

    bindings = r.parse("bindings", parse_bindings_env, "Invalid bindings. Use JSON object or key=value pairs.")
    if bindings is not None:
        options["bindings"] = {**(options.get("bindings") or {}), **bindings}

    if level := r.parse("level", parse_log_level_env,
                        "Invalid log level. Use trace, debug, info, warn, error, or fatal."):
        options["level"] = level
    if fmt := r.parse("format", parse_log_format_env, "Invalid format. Use json or pretty."):
        options["format"] = fmt

    for field in ("colors", "context", "redact_defaults", "include_pid", "include_hostname", "timestamp"):
        if (flag := r.parse(field, parse_boolean_env, _BOOLEAN_HINT)) is not None:
            options[field] = flag

    if r.raw.context_key:
        options["context_key"] = r.raw.context_key
    for field, option in (("context_keys", "context_keys"), ("redact_keys", "redact_keys"),
                          ("redact_fields", "redact_field_names")):
        if (items := r.parse(field, parse_list_env, _LIST_HINT)) is not None:
            options[option] = tuple(items)
    if r.raw.redact_placeholder:
        options["redact_placeholder"] = r.raw.redact_placeholder

    rate = r.parse("sample_rate", parse_sample_rate_env, "Invalid number. Use 0..1 or percent (25 or 25%).")
    if rate is not None:
        clamped = min(1.0, max(0.0, rate))
        if clamped != rate:
            r.warn("sample_rate", r.raw.sample_rate or "", f"Out of range (0..1). Clamped to {clamped:g}.")
        options["sample_rate"] = clamped

    return LoggerEnvResolution(options=options, warnings=r.warnings)


def create_logger_from_env(env: Mapping[str, str | None] | None = None, *,
                           defaults: Mapping[str, Any] | None = None, name: str | None = None,
                           on_warning: Callable[[LoggerEnvWarning], None] | None = None) -> Logger:
    """Build a :class:`Logger` from :func:`resolve_logger_env`, reporting each warning to ``on_warning``."""
    resolution = resolve_logger_env(env, defaults=defaults, name=name)
    if on_warning is not None:
        for warning in resolution.warnings:
            on_warning(warning)
    return create_logger(**resolution.options)
