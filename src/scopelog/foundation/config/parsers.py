"""Lenient parsers for logger environment values.

Every parser returns ``None`` for a missing or unparseable value so the
caller can tell "not configured" from "configured badly" and warn.
"""

from __future__ import annotations

import math
import re
from typing import Any, Literal

import orjson

from ...logging.levels import LogLevel, parse_level

LoggerPreset = Literal["development", "production", "test"]

_TRUE = frozenset({"1", "true", "yes", "y", "on"})
_FALSE = frozenset({"0", "false", "no", "n", "off"})
_LEVEL_ALIASES = {"warning": "warn", "err": "error"}
_CSV_SPLIT = re.compile(r"[;,]")


def parse_boolean_env(value: str | None) -> bool | None:
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in _TRUE:
        return True
    if normalized in _FALSE:
        return False
    return None


def parse_number_env(value: str | None) -> float | None:
    """Finite float or ``None`` (``NaN``/``Infinity`` are rejected)."""
    if value is None:
        return None
    try:
        parsed = float(value)
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def parse_sample_rate_env(value: str | None) -> float | None:
    """Parse ``0.25``, ``25%``, or a bare integer ``2..100`` read as a percentage.

    The result is not clamped; ``"2"`` becomes ``0.02`` but ``"1.5"`` stays ``1.5``.
    """
    if value is None or not (trimmed := value.strip()):
        return None
    raw, percent = trimmed, False
    if trimmed.endswith("%"):
        raw, percent = trimmed[:-1].strip(), True
    if (parsed := parse_number_env(raw)) is None:
        return None
    if percent:
        return parsed / 100
    if 1 < parsed <= 100 and raw.isdigit():
        return parsed / 100
    return parsed


def parse_csv_env(value: str | None) -> list[str] | None:
    """Split on ``,`` or ``;``; blank items are dropped."""
    if value is None:
        return None
    if not (trimmed := value.strip()):
        return []
    return [item for part in _CSV_SPLIT.split(trimmed) if (item := part.strip())]


def _list_item(item: Any) -> str:
    return (item if isinstance(item, str) else orjson.dumps(item).decode()).strip()


def parse_json_array_env(value: str | None) -> list[str] | None:
    if value is None:
        return None
    if not (trimmed := value.strip()):
        return []
    if not trimmed.startswith("["):
        return None
    try:
        parsed = orjson.loads(trimmed)
    except orjson.JSONDecodeError:
        return None
    if not isinstance(parsed, list):
        return None
    return [text for item in parsed if (text := _list_item(item))]


def parse_list_env(value: str | None) -> list[str] | None:
    """CSV or JSON array, de-duplicated in first-seen order."""
    if value is None:
        return None
    if not value.strip():
        return []
    parsed = parse_json_array_env(value) if value.strip().startswith("[") else parse_csv_env(value)
    return None if parsed is None else list(dict.fromkeys(parsed))


def parse_json_object_env(value: str | None) -> dict[str, Any] | None:
    if value is None:
        return None
    if not (trimmed := value.strip()):
        return {}
    if not trimmed.startswith("{"):
        return None
    try:
        parsed = orjson.loads(trimmed)
    except orjson.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def coerce_primitive(value: str) -> str | int | float | bool:
    """``"true"``/``"false"`` to bool, numeric text to a number, anything else stripped."""
    normalized = value.strip()
    lower = normalized.lower()
    if lower in ("true", "false"):
        return lower == "true"
    try:
        return int(normalized)
    except ValueError:
        pass
    number = parse_number_env(normalized) if normalized else None
    return normalized if number is None else number


def parse_key_value_env(value: str) -> dict[str, Any] | None:
    """``a=1, b=two`` pairs; ``None`` when any pair lacks a key or ``=``."""
    parsed: dict[str, Any] = {}
    for entry in (e.strip() for e in value.split(",")):
        if not entry:
            continue
        key, sep, raw = entry.partition("=")
        if not sep or not key.strip():
            return None
        parsed[key.strip()] = coerce_primitive(raw)
    return parsed


def parse_bindings_env(value: str | None) -> dict[str, Any] | None:
    """JSON object or ``key=value`` pairs."""
    if value is None:
        return None
    if not (trimmed := value.strip()):
        return {}
    if trimmed.startswith("{"):
        return parse_json_object_env(trimmed)
    return parse_key_value_env(trimmed)


def parse_log_level_env(value: str | None) -> LogLevel | None:
    """Level name (any case), ``warning``/``err``, or a number 10..60."""
    if not value:
        return None
    normalized = value.strip().lower()
    normalized = _LEVEL_ALIASES.get(normalized, normalized)
    if normalized in LogLevel.__members__.values():
        return LogLevel(normalized)
    return parse_level(normalized) if normalized.isdigit() else None


def parse_log_format_env(value: str | None) -> Literal["json", "pretty"] | None:
    if not value:
        return None
    normalized = value.strip().lower()
    return normalized if normalized in ("json", "pretty") else None  # type: ignore[return-value]


def parse_logger_preset_env(value: str | None) -> LoggerPreset | None:
    if not value:
        return None
    normalized = value.strip().lower()
    return normalized if normalized in ("development", "production", "test") else None  # type: ignore[return-value]


def logger_preset(preset: LoggerPreset) -> dict[str, Any]:
    """Logger keyword options for a named environment.

    Example:
        >>> logger_preset("production")["format"]
        'json'
    """
    match preset:
        case "development":
            return {"level": LogLevel.DEBUG, "format": "pretty", "colors": True, "context": True,
                    "include_pid": True, "include_hostname": False, "timestamp": True}
        case "production":
            return {"level": LogLevel.INFO, "format": "json", "colors": False, "context": True,
                    "include_pid": True, "include_hostname": True, "timestamp": True}
        case "test":
            return {"level": LogLevel.WARN, "format": "json", "colors": False, "context": False,
                    "include_pid": False, "include_hostname": False, "timestamp": False}
    raise ValueError(f"Unknown preset: {preset!r}. Use development, production, or test")
