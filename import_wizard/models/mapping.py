from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""Column mapping and transformation models.

ExpectedColumn describes one target field of the consuming system.
ColumnMapping binds a target field to a primary source column plus any
number of additional source columns whose values are merged (space-joined)
after the primary value. TransformationConfig describes the single
transformation applied to the merged value.
"""

__all__ = [
    "AdditionalSource",
    "ColumnMapping",
    "ExpectedColumn",
    "TransformationConfig",
    "TransformationOptions",
    "TransformationType",
    "DEFAULT_TRUE_VALUES",
    "DEFAULT_FALSE_VALUES",
]

DEFAULT_TRUE_VALUES: tuple[str, ...] = ("true", "yes", "1")
DEFAULT_FALSE_VALUES: tuple[str, ...] = ("false", "no", "0")


class TransformationType(Enum):
    NONE = "none"
    TRIM = "trim"
    UPPERCASE = "uppercase"
    LOWERCASE = "lowercase"
    CAPITALIZE = "capitalize"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ExpectedColumn:
    """One target field the import must produce.

    ``field`` is an opaque key; dotted / bracketed paths such as
    ``address.city`` are left for the export consumer to interpret.
    ``data_type`` is an open set (text, number, boolean, date, float, json, ...).
    """
    field: str
    label: str
    required: bool = False
    data_type: str = "text"


@dataclass(frozen=True)
class TransformationOptions:
    date_format: str | None = None  # advisory, MM/DD/YYYY 等
    decimal_places: int | None = None
    true_values: tuple[str, ...] | None = None
    false_values: tuple[str, ...] | None = None
    custom_formula: str | None = None  # 登録済みフック名

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.date_format is not None:
            out["date_format"] = self.date_format
        if self.decimal_places is not None:
            out["decimal_places"] = self.decimal_places
        if self.true_values is not None:
            out["true_values"] = list(self.true_values)
        if self.false_values is not None:
            out["false_values"] = list(self.false_values)
        if self.custom_formula is not None:
            out["custom_formula"] = self.custom_formula
        return out


@dataclass(frozen=True)
class TransformationConfig:
    type: TransformationType = TransformationType.NONE
    options: TransformationOptions = field(default_factory=TransformationOptions)

    @staticmethod
    def from_dict(data: dict[str, Any] | None) -> TransformationConfig:
        """Build from a plain dict (YAML / JSON shape).

        Unknown type names fall back to ``none``.
        """
        if not data:
            return TransformationConfig()
        try:
            kind = TransformationType(data.get("type", "none"))
        except ValueError:
            kind = TransformationType.NONE
        raw = data.get("options") or {}
        true_values = raw.get("true_values")
        false_values = raw.get("false_values")
        options = TransformationOptions(
            date_format=raw.get("date_format"),
            decimal_places=raw.get("decimal_places"),
            true_values=tuple(true_values) if true_values is not None else None,
            false_values=tuple(false_values) if false_values is not None else None,
            custom_formula=raw.get("custom_formula"),
        )
        return TransformationConfig(type=kind, options=options)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type.value}
        opts = self.options.to_dict()
        if opts:
            out["options"] = opts
        return out


@dataclass(frozen=True)
class AdditionalSource:
    source_index: int
    label: str


@dataclass(frozen=True)
class ColumnMapping:
    """Mapping of one target field to its source column(s).

    Invariant: an index in ``additional_sources`` never equals
    ``source_index`` and never appears twice (enforced by ColumnMapper).
    """
    target_field: str
    source_index: int | None = None
    required: bool = False
    transformation: TransformationConfig = field(default_factory=TransformationConfig)
    additional_sources: tuple[AdditionalSource, ...] = ()

    @property
    def is_mapped(self) -> bool:
        return self.source_index is not None

    @staticmethod
    def from_dict(data: dict[str, Any]) -> ColumnMapping:
        return ColumnMapping(
            target_field=data["target_field"],
            source_index=data.get("source_index"),
            required=bool(data.get("required", False)),
            transformation=TransformationConfig.from_dict(data.get("transformation")),
            additional_sources=tuple(
                AdditionalSource(source_index=s["source_index"], label=s.get("label", ""))
                for s in data.get("additional_sources") or []
            ),
        )
