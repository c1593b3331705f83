"""Shared type aliases for JSON-safe trees and scope stores."""

from __future__ import annotations

from typing import Any, Union

# JSON type aliases - Any for recursive slots
JsonPrimitive = Union[str, int, float, bool, None]
JsonValue = Union[JsonPrimitive, list[Any], dict[str, Any]]
JsonDict = dict[str, Any]

# The mutable mapping owned by a scope; values are arbitrary until normalized
ContextStore = dict[str, Any]
