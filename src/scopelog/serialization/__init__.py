"""JSON-safe normalization and redaction primitives.

Shared by the logger and by any collaborator that forwards store contents to
an external service.
"""

from .normalize import (
    CIRCULAR,
    DEFAULT_MAX_DEPTH,
    MAX_DEPTH,
    describe_callable,
    format_datetime,
    is_error_like,
    normalize_value,
    serialize_error,
)
from .redaction import (
    DEFAULT_PLACEHOLDER,
    DEFAULT_REDACT_FIELDS,
    Redactor,
    build_redaction_key_set,
    normalize_redaction_key,
    redact_field_names,
    redact_paths,
    split_redaction_path,
)

__all__ = [
    # Normalization
    "CIRCULAR", "MAX_DEPTH", "DEFAULT_MAX_DEPTH", "normalize_value", "serialize_error",
    "is_error_like", "format_datetime", "describe_callable",
    # Redaction
    "DEFAULT_PLACEHOLDER", "DEFAULT_REDACT_FIELDS", "Redactor", "build_redaction_key_set",
    "normalize_redaction_key", "redact_field_names", "redact_paths", "split_redaction_path",
]
