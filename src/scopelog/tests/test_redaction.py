"""Tests for field-name and path redaction."""

from __future__ import annotations

import pytest

from scopelog.serialization import (
    DEFAULT_PLACEHOLDER,
    Redactor,
    build_redaction_key_set,
    normalize_redaction_key,
    redact_field_names,
    redact_paths,
    split_redaction_path,
)


@pytest.mark.parametrize(("raw", "expected"), [
    ("X-Api-Key", "xapikey"),
    ("access_token", "accesstoken"),
    ("Set-Cookie", "setcookie"),
    ("--", ""),
])
def test_normalize_redaction_key(raw: str, expected: str) -> None:
    assert normalize_redaction_key(raw) == expected


def test_key_set_defaults_and_extras() -> None:
    keys = build_redaction_key_set(["creditCard"])
    assert {"password", "apikey", "creditcard"} <= keys
    assert build_redaction_key_set(["creditCard"], include_defaults=False) == {"creditcard"}


# ═════════════════════════════════════════════════════════════════════════════
# Field-name pass
# ═════════════════════════════════════════════════════════════════════════════


def test_field_names_matched_at_any_depth() -> None:
    tree = {
        "user": {"name": "ada", "Password": "x", "profile": {"API-KEY": "k"}},
        "items": [{"token": "t"}, {"safe": 1}],
    }
    redact_field_names(tree, build_redaction_key_set())
    assert tree == {
        "user": {"name": "ada", "Password": DEFAULT_PLACEHOLDER, "profile": {"API-KEY": DEFAULT_PLACEHOLDER}},
        "items": [{"token": DEFAULT_PLACEHOLDER}, {"safe": 1}],
    }


def test_matching_subtree_is_replaced_whole() -> None:
    tree = {"session": {"id": 1, "nested": {"deep": True}}}
    redact_field_names(tree, build_redaction_key_set())
    assert tree == {"session": DEFAULT_PLACEHOLDER}


def test_field_name_pass_tolerates_cycles() -> None:
    tree: dict = {"secret": "s"}
    tree["self"] = tree
    redact_field_names(tree, build_redaction_key_set(), "***")
    assert tree["secret"] == "***"


def test_empty_key_set_is_noop() -> None:
    tree = {"password": "x"}
    assert redact_field_names(tree, frozenset()) == {"password": "x"}


# ═════════════════════════════════════════════════════════════════════════════
# Path pass
# ═════════════════════════════════════════════════════════════════════════════


def test_split_path_strips_one_root() -> None:
    assert split_redaction_path("context.user.ssn", roots=("context",)) == ["user", "ssn"]
    assert split_redaction_path("a..b.") == ["a", "b"]
    assert split_redaction_path("context.context.x", roots=("context",)) == ["context", "x"]


def test_paths_with_wildcards_and_indices() -> None:
    tree = {
        "data": {"cards": [{"number": "4111", "brand": "visa"}, {"number": "5500"}]},
        "rows": [["a", "b"], ["c", "d"]],
        "headers": {"x": 1, "y": 2},
    }
    redact_paths(tree, ["data.cards.*.number", "rows.1.0", "headers.*"])
    assert tree == {
        "data": {"cards": [{"number": DEFAULT_PLACEHOLDER, "brand": "visa"}, {"number": DEFAULT_PLACEHOLDER}]},
        "rows": [["a", "b"], [DEFAULT_PLACEHOLDER, "d"]],
        "headers": {"x": DEFAULT_PLACEHOLDER, "y": DEFAULT_PLACEHOLDER},
    }


def test_paths_never_create_missing_keys() -> None:
    tree = {"data": {"present": 1}, "list": [1]}
    redact_paths(tree, ["data.absent", "missing.deep", "list.5", "list.x", "data.present.deeper"])
    assert tree == {"data": {"present": 1}, "list": [1]}


def test_redactor_runs_name_pass_before_path_pass() -> None:
    redactor = Redactor(field_names=("creditCard",), paths=("context.ssn",), placeholder="###")
    entry = {"data": {"creditCard": "4111", "password": "p"}, "context": {"ssn": "123", "ok": 1}}
    assert redactor.apply(entry) == {
        "data": {"creditCard": "###", "password": "###"},
        "context": {"ssn": "###", "ok": 1},
    }


def test_redactor_disabled_still_applies_paths() -> None:
    redactor = Redactor(enabled=False, paths=("data.password",))
    entry = {"data": {"password": "p", "token": "t"}}
    assert redactor.apply(entry) == {"data": {"password": DEFAULT_PLACEHOLDER, "token": "t"}}
    assert redactor.key_set == frozenset()


def test_redactor_key_set_is_computed_once() -> None:
    redactor = Redactor(field_names=("creditCard",))
    assert redactor.key_set is redactor.key_set
    assert "creditcard" in redactor.key_set


def test_redactor_without_defaults() -> None:
    redactor = Redactor(include_defaults=False, field_names=("pin",))
    assert redactor.apply({"password": "p", "PIN": 1}) == {"password": "p", "PIN": DEFAULT_PLACEHOLDER}
