"""Tests for environment parsing and logger resolution."""

from __future__ import annotations

import pytest

from scopelog.foundation.config import (
    LoggerEnv,
    LoggerEnvWarning,
    create_logger_from_env,
    logger_preset,
    parse_bindings_env,
    parse_boolean_env,
    parse_csv_env,
    parse_list_env,
    parse_log_format_env,
    parse_log_level_env,
    parse_logger_preset_env,
    parse_number_env,
    parse_sample_rate_env,
    resolve_logger_env,
)
from scopelog.logging import LogLevel, MemoryTransport

# ═════════════════════════════════════════════════════════════════════════════
# Parsers
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize(("raw", "expected"), [
    ("true", True), ("FALSE", False), ("1", True), ("0", False), ("yes", True), ("no", False),
    ("on", True), ("off", False), ("y", True), ("n", False), ("  YES  ", True),
    ("maybe", None), ("", None), (None, None),
])
def test_parse_boolean_env(raw: str | None, expected: bool | None) -> None:
    assert parse_boolean_env(raw) is expected


@pytest.mark.parametrize(("raw", "expected"), [
    ("1.5", 1.5), ("0", 0), ("-5", -5), (" 2 ", 2), ("abc", None), ("NaN", None), ("Infinity", None), (None, None),
])
def test_parse_number_env(raw: str | None, expected: float | None) -> None:
    assert parse_number_env(raw) == expected


@pytest.mark.parametrize(("raw", "expected"), [
    ("0.25", 0.25), ("25%", 0.25), ("25", 0.25), ("100", 1.0), ("1", 1.0), ("1.5", 1.5),
    ("150%", 1.5), ("abc", None), ("", None), (None, None),
])
def test_parse_sample_rate_env(raw: str | None, expected: float | None) -> None:
    assert parse_sample_rate_env(raw) == expected


def test_parse_csv_env() -> None:
    assert parse_csv_env("a,b,c") == ["a", "b", "c"]
    assert parse_csv_env(" a ; b ,, c, ") == ["a", "b", "c"]
    assert parse_csv_env("  ") == []
    assert parse_csv_env(None) is None


def test_parse_list_env() -> None:
    assert parse_list_env("a,b,a") == ["a", "b"]
    assert parse_list_env('["x", " y ", "x", 3, true]') == ["x", "y", "3", "true"]
    assert parse_list_env("[not json") is None
    assert parse_list_env('{"a": 1}') == ['{"a": 1}']
    assert parse_list_env("") == []


def test_parse_bindings_env() -> None:
    assert parse_bindings_env('{"service": "api", "n": 1}') == {"service": "api", "n": 1}
    assert parse_bindings_env("service=api, shard=3, ratio=0.5, on=true") == \
        {"service": "api", "shard": 3, "ratio": 0.5, "on": True}
    assert parse_bindings_env("") == {}
    assert parse_bindings_env("novalue") is None
    assert parse_bindings_env("=x") is None
    assert parse_bindings_env("[1, 2]") is None
    assert parse_bindings_env("{broken") is None


@pytest.mark.parametrize(("raw", "expected"), [
    ("WARN", LogLevel.WARN), ("warning", LogLevel.WARN), ("err", LogLevel.ERROR), ("Fatal", LogLevel.FATAL),
    (" info ", LogLevel.INFO), ("20", LogLevel.DEBUG), ("60", LogLevel.FATAL),
    ("15", None), ("unknown", None), ("", None), (None, None),
])
def test_parse_log_level_env(raw: str | None, expected: LogLevel | None) -> None:
    assert parse_log_level_env(raw) == expected


def test_parse_format_and_preset() -> None:
    assert parse_log_format_env("JSON") == "json"
    assert parse_log_format_env("pretty") == "pretty"
    assert parse_log_format_env("xml") is None
    assert parse_logger_preset_env("PRODUCTION") == "production"
    assert parse_logger_preset_env("staging") is None


def test_logger_presets() -> None:
    assert logger_preset("development")["format"] == "pretty"
    assert logger_preset("production")["format"] == "json"
    assert logger_preset("production")["include_hostname"] is True
    assert logger_preset("test")["context"] is False
    assert logger_preset("test")["level"] is LogLevel.WARN


# ═════════════════════════════════════════════════════════════════════════════
# Settings & resolution
# ═════════════════════════════════════════════════════════════════════════════


def test_logger_env_reads_aliases() -> None:
    raw = LoggerEnv.load({"LOGGER_LEVEL": "debug", "LOG_COLOURS": "no", "UNRELATED": "x"})
    assert raw.level == "debug"
    assert raw.colors == "no"
    assert raw.format is None


def test_logger_env_prefers_first_alias() -> None:
    raw = LoggerEnv.load({"LOG_LEVEL": "warn", "LOGGER_LEVEL": "debug"})
    assert raw.level == "warn"


def test_logger_env_ignores_empty_values() -> None:
    raw = LoggerEnv.load({"LOG_LEVEL": "", "LOGGER_LEVEL": "error"})
    assert raw.level == "error"


def test_logger_env_reads_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_FORMAT", "json")
    monkeypatch.setenv("LOGGER_NAME", "from-env")
    raw = LoggerEnv.load()
    assert raw.format == "json"
    assert raw.name == "from-env"


def test_resolve_full_environment() -> None:
    env = {
        "LOG_PRESET": "production",
        "LOG_LEVEL": "debug",
        "LOG_COLORS": "false",
        "LOG_CONTEXT": "false",
        "LOG_CONTEXT_KEY": "ctx",
        "LOG_CONTEXT_KEYS": "requestId,tenantId",
        "LOG_REDACT_KEYS": "ctx.token",
        "LOG_REDACT_DEFAULTS": "false",
        "LOG_REDACT_FIELDS": "creditCard",
        "LOG_REDACT_PLACEHOLDER": "XXX",
        "LOG_SAMPLE_RATE": "50%",
        "LOG_INCLUDE_PID": "false",
        "LOG_TIMESTAMP": "true",
        "LOG_NAME": "api",
        "LOG_BINDINGS": "service=billing",
    }
    resolution = resolve_logger_env(env)
    options = resolution.options

    assert resolution.warnings == []
    assert options["level"] is LogLevel.DEBUG
    assert options["format"] == "json"
    assert options["colors"] is False
    assert options["context"] is False
    assert options["context_key"] == "ctx"
    assert options["context_keys"] == ("requestId", "tenantId")
    assert options["redact_keys"] == ("ctx.token",)
    assert options["redact_defaults"] is False
    assert options["redact_field_names"] == ("creditCard",)
    assert options["redact_placeholder"] == "XXX"
    assert options["sample_rate"] == 0.5
    assert options["include_pid"] is False
    assert options["include_hostname"] is True
    assert options["name"] == "api"
    assert options["bindings"] == {"service": "billing"}


def test_invalid_values_become_warnings() -> None:
    env = {
        "LOG_PRESET": "staging",
        "LOG_LEVEL": "verbose",
        "LOG_FORMAT": "xml",
        "LOG_COLORS": "maybe",
        "LOGGER_CONTEXT": "yup",
        "LOG_SAMPLE_RATE": "150%",
        "LOG_BINDINGS": "oops",
    }
    resolution = resolve_logger_env(env)

    assert sorted(w.key for w in resolution.warnings) == sorted([
        "LOG_PRESET", "LOG_LEVEL", "LOG_FORMAT", "LOG_COLORS", "LOGGER_CONTEXT", "LOG_SAMPLE_RATE", "LOG_BINDINGS",
    ])
    assert resolution.options == {"sample_rate": 1.0}
    clamp = next(w for w in resolution.warnings if w.key == "LOG_SAMPLE_RATE")
    assert clamp == LoggerEnvWarning(key="LOG_SAMPLE_RATE", value="150%", reason="Out of range (0..1). Clamped to 1.")


def test_unparseable_sample_rate_warns_without_option() -> None:
    resolution = resolve_logger_env({"LOG_SAMPLE_RATE": "lots"})
    assert "sample_rate" not in resolution.options
    assert resolution.warnings[0].reason.startswith("Invalid number")


def test_precedence_preset_defaults_env() -> None:
    resolution = resolve_logger_env(
        {"LOG_PRESET": "test", "LOG_TIMESTAMP": "yes", "LOG_BINDINGS": '{"b": 2}'},
        defaults={"level": "error", "timestamp": False, "bindings": {"a": 1}},
        name="explicit",
    )
    options = resolution.options
    assert options["level"] == "error"
    assert options["format"] == "json"
    assert options["timestamp"] is True
    assert options["bindings"] == {"a": 1, "b": 2}
    assert options["name"] == "explicit"


def test_create_logger_from_env() -> None:
    sink = MemoryTransport()
    warnings: list[LoggerEnvWarning] = []
    log = create_logger_from_env(
        {"LOG_PRESET": "production", "LOG_LEVEL": "debug", "LOG_NAME": "api", "LOG_FORMAT": "html"},
        defaults={"transport": sink},
        on_warning=warnings.append,
    )
    log.debug("hello")

    assert len(sink) == 1
    assert sink.entries[0]["logger"] == "api"
    assert "hostname" in sink.entries[0]
    assert [w.key for w in warnings] == ["LOG_FORMAT"]
