"""Logger configuration from environment variables.

Lenient parsers plus a pydantic-settings model that layers presets,
defaults and ``LOG_*`` variables into logger options.
"""

from .parsers import (
    LoggerPreset,
    coerce_primitive,
    logger_preset,
    parse_bindings_env,
    parse_boolean_env,
    parse_csv_env,
    parse_json_array_env,
    parse_json_object_env,
    parse_key_value_env,
    parse_list_env,
    parse_log_format_env,
    parse_log_level_env,
    parse_logger_preset_env,
    parse_number_env,
    parse_sample_rate_env,
)
from .settings import (
    ENV_KEYS,
    LoggerEnv,
    LoggerEnvResolution,
    LoggerEnvWarning,
    create_logger_from_env,
    resolve_logger_env,
)

__all__ = [
    # Parsers
    "parse_boolean_env", "parse_number_env", "parse_sample_rate_env", "parse_csv_env",
    "parse_json_array_env", "parse_list_env", "parse_json_object_env", "parse_key_value_env",
    "parse_bindings_env", "parse_log_level_env", "parse_log_format_env", "parse_logger_preset_env",
    "coerce_primitive",
    # Presets
    "LoggerPreset", "logger_preset",
    # Settings
    "ENV_KEYS", "LoggerEnv", "LoggerEnvWarning", "LoggerEnvResolution",
    "resolve_logger_env", "create_logger_from_env",
]
