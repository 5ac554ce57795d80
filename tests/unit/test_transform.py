from __future__ import annotations

import pytest

from import_wizard.models import TransformationConfig, TransformationOptions, TransformationType
from import_wizard.services.transform import (
    parse_number,
    register_custom_transform,
    transform,
    unregister_custom_transform,
)


def _cfg(kind: TransformationType, **options) -> TransformationConfig:
    return TransformationConfig(type=kind, options=TransformationOptions(**options))


@pytest.mark.parametrize("kind", list(TransformationType))
def test_empty_value_is_returned_unchanged(kind):
    assert transform("", _cfg(kind)) == ""


def test_text_transformations():
    assert transform("  hello ", _cfg(TransformationType.TRIM)) == "hello"
    assert transform("Hello", _cfg(TransformationType.UPPERCASE)) == "HELLO"
    assert transform("Hello", _cfg(TransformationType.LOWERCASE)) == "hello"
    assert transform("hELLO wORLD", _cfg(TransformationType.CAPITALIZE)) == "Hello World"
    assert transform("as is", _cfg(TransformationType.NONE)) == "as is"


def test_capitalize_collapses_whitespace():
    assert transform("  mary   ann ", _cfg(TransformationType.CAPITALIZE)) == "Mary Ann"


def test_number_formatting():
    assert transform("3.14159", _cfg(TransformationType.NUMBER, decimal_places=2)) == "3.14"
    assert transform(" 42 ", _cfg(TransformationType.NUMBER)) == "42"
    assert transform("2.5", _cfg(TransformationType.NUMBER, decimal_places=0)) == "3"


@pytest.mark.parametrize(
    ("raw", "places", "expected"),
    [
        ("0.5", 0, "1"),
        ("2.5", 0, "3"),
        ("-2.5", 0, "-3"),
        ("1.25", 1, "1.3"),
        ("1e21", 0, "1000000000000000000000"),
    ],
)
def test_number_ties_round_away_from_zero(raw, places, expected):
    assert transform(raw, _cfg(TransformationType.NUMBER, decimal_places=places)) == expected


def test_number_unparseable_returns_original():
    assert transform("abc", _cfg(TransformationType.NUMBER, decimal_places=2)) == "abc"
    assert transform("inf", _cfg(TransformationType.NUMBER)) == "inf"


def test_parse_number():
    assert parse_number("1e3") == 1000.0
    assert parse_number(" -7.5 ") == -7.5
    assert parse_number("12abc") is None
    assert parse_number("nan") is None


def test_boolean_default_lexicon():
    cfg = _cfg(TransformationType.BOOLEAN)
    assert transform("Yes", cfg) == "true"
    assert transform("0", cfg) == "false"
    assert transform("maybe", cfg) == "maybe"


def test_boolean_custom_lexicon_is_case_insensitive():
    cfg = _cfg(TransformationType.BOOLEAN, true_values=("Y",), false_values=("N",))
    assert transform("y", cfg) == "true"
    assert transform("n", cfg) == "false"
    assert transform("yes", cfg) == "yes"


def test_date_formatting_tokens():
    assert transform("2024-03-05", _cfg(TransformationType.DATE, date_format="MM/DD/YYYY")) == "03/05/2024"
    assert transform("2024-03-05", _cfg(TransformationType.DATE, date_format="DD/MM/YYYY")) == "05/03/2024"
    assert transform("March 5, 2024", _cfg(TransformationType.DATE, date_format="YYYY-MM-DD")) == "2024-03-05"


def test_date_unparseable_returns_original():
    assert transform("not a date", _cfg(TransformationType.DATE, date_format="YYYY-MM-DD")) == "not a date"


def test_custom_placeholder_without_hook():
    assert transform("x", _cfg(TransformationType.CUSTOM, custom_formula="missing")) == "x (custom)"


def test_custom_hook_and_failure():
    register_custom_transform("reverse", lambda v: v[::-1])
    assert transform("abc", _cfg(TransformationType.CUSTOM, custom_formula="reverse")) == "cba"

    def boom(value: str) -> str:
        raise RuntimeError("boom")

    register_custom_transform("boom", boom)
    # フック例外は元の値へ退避
    assert transform("abc", _cfg(TransformationType.CUSTOM, custom_formula="boom")) == "abc"
    unregister_custom_transform("reverse")
    assert transform("abc", _cfg(TransformationType.CUSTOM, custom_formula="reverse")) == "abc (custom)"


def test_config_dict_round_trip_and_unknown_type():
    cfg = TransformationConfig.from_dict({"type": "number", "options": {"decimal_places": 1}})
    assert cfg.type is TransformationType.NUMBER
    assert cfg.to_dict() == {"type": "number", "options": {"decimal_places": 1}}
    assert TransformationConfig.from_dict({"type": "rot13"}).type is TransformationType.NONE
    assert TransformationConfig.from_dict(None) == TransformationConfig()


@pytest.mark.parametrize("value", ["abc", "MiXeD case", "  ", "ß"])
def test_uppercase_is_idempotent(value):
    cfg = _cfg(TransformationType.UPPERCASE)
    assert transform(transform(value, cfg), cfg) == transform(value, cfg)
