"""Masking of sensitive values in normalized trees.

Two composable passes, both operating in place:

- Field-name redaction: any key whose normalized name (lowercase, alphanumerics
  only) is in the key set has its value replaced, without descending into it.
- Path redaction: explicit dot paths where ``*`` matches every key of a dict or
  every index of a list; only existing terminal values are replaced.

The :class:`Redactor` runs the name pass first, then the path pass.

Example:
    >>> r = Redactor(field_names=("creditCard",), paths=("data.items.*.pin",))
    >>> r.apply({"data": {"password": "x", "items": [{"pin": 1}]}})
    {'data': {'password': '[REDACTED]', 'items': [{'pin': '[REDACTED]'}]}}
"""

from __future__ import annotations

import re
from functools import cached_property
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PLACEHOLDER = "[REDACTED]"

DEFAULT_REDACT_FIELDS: tuple[str, ...] = (
    "password", "pass", "pwd", "secret", "token", "access_token", "refresh_token", "id_token",
    "authorization", "cookie", "set_cookie", "session", "sessionid", "api_key", "apikey",
    "x_api_key", "client_secret", "private_key", "signature", "jwt", "bearer", "csrf", "xsrf",
)

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_redaction_key(name: str) -> str:
    """``"X-Api-Key"`` -> ``"xapikey"``."""
    return _NON_ALNUM.sub("", name.lower())


def build_redaction_key_set(fields: Iterable[str] | None = None, include_defaults: bool = True) -> frozenset[str]:
    combined = [*(DEFAULT_REDACT_FIELDS if include_defaults else ()), *(fields or ())]
    return frozenset(k for k in map(normalize_redaction_key, combined) if k)


def redact_field_names(tree: Any, keys: frozenset[str] | set[str], placeholder: str = DEFAULT_PLACEHOLDER) -> Any:
    """Replace values of matching keys anywhere in ``tree``. Returns ``tree``."""
    if not keys or not isinstance(tree, (dict, list)):
        return tree
    seen: set[int] = set()
    stack: list[Any] = [tree]
    while stack:
        node = stack.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))
        if isinstance(node, list):
            stack.extend(item for item in node if isinstance(item, (dict, list)))
            continue
        for key, value in node.items():
            if isinstance(key, str) and normalize_redaction_key(key) in keys:
                node[key] = placeholder
            elif isinstance(value, (dict, list)):
                stack.append(value)
    return tree


def split_redaction_path(path: str, roots: Iterable[str] = ()) -> list[str]:
    """Split a dot path, dropping empty segments and one leading root name."""
    parts = [p for p in path.split(".") if p]
    if parts and parts[0] in set(roots):
        parts.pop(0)
    return parts


def redact_paths(tree: Any, paths: Iterable[str], placeholder: str = DEFAULT_PLACEHOLDER,
                 roots: Iterable[str] = ()) -> Any:
    """Replace the values addressed by each dot path. Returns ``tree``."""
    if not isinstance(tree, (dict, list)):
        return tree
    roots = tuple(roots)
    for path in paths:
        if parts := split_redaction_path(path, roots):
            _redact_path(tree, parts, placeholder)
    return tree


def _redact_path(target: dict[str, Any] | list[Any], parts: list[str], placeholder: str) -> None:
    head, tail = parts[0], parts[1:]
    if head == "*":
        slots = range(len(target)) if isinstance(target, list) else list(target)
    elif isinstance(target, list):
        index = _index(head, len(target))
        slots = [] if index is None else [index]
    else:
        slots = [head] if head in target else []
    for slot in slots:
        if not tail:
            target[slot] = placeholder  # type: ignore[index]
            continue
        child = target[slot]  # type: ignore[index]
        if isinstance(child, (dict, list)):
            _redact_path(child, tail, placeholder)


def _index(segment: str, length: int) -> int | None:
    if not segment.isdigit():
        return None
    index = int(segment)
    return index if index < length else None


class Redactor(BaseModel):
    """Immutable redaction configuration.

    Attributes:
        enabled: Run the field-name pass at all
        include_defaults: Union ``field_names`` with :data:`DEFAULT_REDACT_FIELDS`
        field_names: Extra sensitive key names (compared normalized)
        paths: Dot paths for the path pass, ``*`` as wildcard segment
        placeholder: Replacement value
        roots: Leading path segments stripped before resolution
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = True
    include_defaults: bool = True
    field_names: tuple[str, ...] = ()
    paths: tuple[str, ...] = ()
    placeholder: str = DEFAULT_PLACEHOLDER
    roots: tuple[str, ...] = Field(default=(), repr=False)

    @cached_property
    def key_set(self) -> frozenset[str]:
        if not self.enabled:
            return frozenset()
        return build_redaction_key_set(self.field_names, self.include_defaults)

    def apply(self, tree: Any) -> Any:
        """Name pass then path pass, in place. Returns ``tree``."""
        redact_field_names(tree, self.key_set, self.placeholder)
        return redact_paths(tree, self.paths, self.placeholder, self.roots)
