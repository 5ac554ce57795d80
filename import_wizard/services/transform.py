from __future__ import annotations

import logging
import math
from collections.abc import Callable
from decimal import ROUND_HALF_UP, Context, Decimal

import pandas as pd

from ..models.mapping import (
    DEFAULT_FALSE_VALUES,
    DEFAULT_TRUE_VALUES,
    TransformationConfig,
    TransformationType,
)

"""Cell value transformation.

``transform(value, config)`` never raises. Every failure path (unparseable
number or date, failing custom hook) degrades to returning the original
value; the condition becomes visible later through validation.

Empty / falsy input is returned unchanged for every transformation type.
"""

__all__ = [
    "parse_number",
    "register_custom_transform",
    "unregister_custom_transform",
    "transform",
]

logger = logging.getLogger(__name__)

CustomTransform = Callable[[str], str]

# custom 変換のフック (名前 → 関数)。式評価は行わない
_CUSTOM_TRANSFORMS: dict[str, CustomTransform] = {}

# float の整数部は最大 309 桁
_DECIMAL_PRECISION = 330

_DATE_TOKENS = (("YYYY", "%Y"), ("YY", "%y"), ("MM", "%m"), ("DD", "%d"))


def register_custom_transform(name: str, fn: CustomTransform) -> None:
    """Register a named hook usable as ``custom_formula`` of a custom transformation."""
    _CUSTOM_TRANSFORMS[name] = fn


def unregister_custom_transform(name: str) -> None:
    _CUSTOM_TRANSFORMS.pop(name, None)


def _capitalize(value: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in value.lower().split())


def parse_number(value: str) -> float | None:
    try:
        num = float(value.strip())
    except ValueError:
        return None
    if not math.isfinite(num):
        return None
    return num


def _format_number(value: str, config: TransformationConfig) -> str:
    num = parse_number(value)
    if num is None:
        return value
    places = config.options.decimal_places
    if places is None or places < 0:
        places = 0
    # ちょうど中間の値は絶対値の大きい側へ丸める
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(num).quantize(
        quantum, rounding=ROUND_HALF_UP, context=Context(prec=_DECIMAL_PRECISION + places)
    )
    return f"{rounded:f}"


def _format_boolean(value: str, config: TransformationConfig) -> str:
    true_values = config.options.true_values or DEFAULT_TRUE_VALUES
    false_values = config.options.false_values or DEFAULT_FALSE_VALUES
    lowered = value.lower()
    if lowered in {v.lower() for v in true_values}:
        return "true"
    if lowered in {v.lower() for v in false_values}:
        return "false"
    return value


def _strftime_pattern(date_format: str | None) -> str:
    if not date_format:
        return "%x"
    if "%" in date_format:
        return date_format
    pattern = date_format
    for token, directive in _DATE_TOKENS:
        pattern = pattern.replace(token, directive)
    return pattern


def _format_date(value: str, config: TransformationConfig) -> str:
    try:
        parsed = pd.to_datetime(value.strip())
    except (ValueError, TypeError, OverflowError):
        return value
    if pd.isna(parsed):
        return value
    try:
        return parsed.strftime(_strftime_pattern(config.options.date_format))
    except ValueError:
        return value


def _apply_custom(value: str, config: TransformationConfig) -> str:
    hook = _CUSTOM_TRANSFORMS.get(config.options.custom_formula or "")
    if hook is None:
        return f"{value} (custom)"
    try:
        return str(hook(value))
    except Exception as e:
        logger.warning(f"custom transform '{config.options.custom_formula}' failed: {e}")
        return value


def transform(value: str, config: TransformationConfig) -> str:
    """Apply one transformation to a (merged) cell value.

    Args:
        value: Raw cell value; empty / None is returned as-is
        config: Transformation type and options

    Returns:
        Transformed string, or the original value when it cannot be transformed
    """
    if not value:
        return value

    kind = config.type
    if kind is TransformationType.TRIM:
        return value.strip()
    if kind is TransformationType.UPPERCASE:
        return value.upper()
    if kind is TransformationType.LOWERCASE:
        return value.lower()
    if kind is TransformationType.CAPITALIZE:
        return _capitalize(value)
    if kind is TransformationType.NUMBER:
        return _format_number(value, config)
    if kind is TransformationType.BOOLEAN:
        return _format_boolean(value, config)
    if kind is TransformationType.DATE:
        return _format_date(value, config)
    if kind is TransformationType.CUSTOM:
        return _apply_custom(value, config)
    # none / 未知の型は恒等
    return value
