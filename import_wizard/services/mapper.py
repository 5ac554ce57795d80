from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import replace
from typing import Protocol

from ..models.dataset import TabularDataset, cell
from ..models.mapping import (
    DEFAULT_FALSE_VALUES,
    DEFAULT_TRUE_VALUES,
    AdditionalSource,
    ColumnMapping,
    ExpectedColumn,
    TransformationConfig,
    TransformationOptions,
    TransformationType,
)
from .transform import transform

"""Column mapping service.

Holds one ColumnMapping per expected column, keyed by target field. Every
update replaces the affected mapping (and the stored tuple) instead of
mutating a shared object, so callers holding an earlier ``mappings`` value
never see it change underneath them.

Merge rule: the effective value of a field is the primary cell followed by
each additional-source cell that exists, space-joined. The field's single
transformation is applied to that joined string as a whole.
"""

__all__ = [
    "AutoMatchStrategy",
    "ColumnMapper",
    "DEFAULT_KEYWORDS",
    "KeywordMatchStrategy",
    "NoAutoMatch",
    "effective_value",
    "transformed_value",
]

logger = logging.getLogger(__name__)

# 部分一致ヒューリスティック (英語ヘッダ前提、差し替え可能)
DEFAULT_KEYWORDS: dict[str, tuple[str, ...]] = {
    "name": ("first", "fname"),
    "surname": ("last", "lname"),
    "team": ("department", "group"),
}


class AutoMatchStrategy(Protocol):
    """Suggests related source columns for a field that has no exact header match."""

    def candidates(self, target_field: str, header_row: Sequence[str]) -> list[AdditionalSource]:
        ...


class KeywordMatchStrategy:
    """Match header cells containing any of a field's keywords (case-insensitive).

    Each keyword contributes the first header cell containing it; results keep
    keyword order and are de-duplicated.
    """

    def __init__(self, keywords: Mapping[str, Iterable[str]] | None = None) -> None:
        source = DEFAULT_KEYWORDS if keywords is None else keywords
        self.keywords = {k.lower(): tuple(v) for k, v in source.items()}

    def candidates(self, target_field: str, header_row: Sequence[str]) -> list[AdditionalSource]:
        found: list[AdditionalSource] = []
        seen: set[int] = set()
        lowered = [h.lower() for h in header_row]
        for keyword in self.keywords.get(target_field.lower(), ()):
            needle = keyword.lower()
            for idx, header in enumerate(lowered):
                if needle in header:
                    if idx not in seen:
                        seen.add(idx)
                        found.append(AdditionalSource(source_index=idx, label=header_row[idx]))
                    break
        return found


class NoAutoMatch:
    def candidates(self, target_field: str, header_row: Sequence[str]) -> list[AdditionalSource]:
        return []


def effective_value(row: Sequence[str], mapping: ColumnMapping) -> str:
    """Merged raw value: primary cell then additional-source cells, space-joined.

    Absent cells (unset index or past the row end) are skipped.
    """
    values: list[str] = []
    primary = cell(row, mapping.source_index)
    if primary is not None:
        values.append(primary)
    for source in mapping.additional_sources:
        extra = cell(row, source.source_index)
        if extra is not None:
            values.append(extra)
    return " ".join(values)


def transformed_value(row: Sequence[str], mapping: ColumnMapping) -> str:
    return transform(effective_value(row, mapping), mapping.transformation)


def _suggest_transformation(column: ExpectedColumn | None, current: TransformationConfig) -> TransformationConfig:
    if column is None:
        return current
    if column.data_type == "number":
        return TransformationConfig(
            type=TransformationType.NUMBER,
            options=TransformationOptions(decimal_places=0),
        )
    if column.data_type == "boolean":
        return TransformationConfig(
            type=TransformationType.BOOLEAN,
            options=TransformationOptions(
                true_values=DEFAULT_TRUE_VALUES,
                false_values=DEFAULT_FALSE_VALUES,
            ),
        )
    if "name" in column.field.lower():
        return TransformationConfig(type=TransformationType.TRIM)
    return current


class ColumnMapper:
    """Maintains the target-field → source-column(s) mapping list."""

    def __init__(
        self,
        expected_columns: Iterable[ExpectedColumn] = (),
        *,
        strategy: AutoMatchStrategy | None = None,
    ) -> None:
        self.strategy: AutoMatchStrategy = strategy if strategy is not None else KeywordMatchStrategy()
        self._columns: tuple[ExpectedColumn, ...] = ()
        self._mappings: tuple[ColumnMapping, ...] = ()
        self.initialize(expected_columns)

    @property
    def mappings(self) -> tuple[ColumnMapping, ...]:
        return self._mappings

    @property
    def expected_columns(self) -> tuple[ExpectedColumn, ...]:
        return self._columns

    def get(self, target_field: str) -> ColumnMapping | None:
        for m in self._mappings:
            if m.target_field == target_field:
                return m
        return None

    def replace_all(self, mappings: Iterable[ColumnMapping]) -> None:
        self._mappings = tuple(mappings)

    def initialize(self, expected_columns: Iterable[ExpectedColumn]) -> None:
        """Derive a fresh, fully unmapped mapping list (no stale state is merged)."""
        self._columns = tuple(expected_columns)
        self._mappings = tuple(
            ColumnMapping(target_field=col.field, required=col.required) for col in self._columns
        )

    def _column(self, target_field: str) -> ExpectedColumn | None:
        for col in self._columns:
            if col.field == target_field:
                return col
        return None

    def _update(self, target_field: str, **changes: object) -> bool:
        updated: list[ColumnMapping] = []
        hit = False
        for m in self._mappings:
            if m.target_field == target_field:
                m = replace(m, **changes)  # type: ignore[arg-type]
                hit = True
            updated.append(m)
        if not hit:
            logger.debug(f"mapping update skipped: unknown target field '{target_field}'")
            return False
        self._mappings = tuple(updated)
        return True

    def auto_map(
        self,
        header_row: Sequence[str],
        expected_columns: Iterable[ExpectedColumn] | None = None,
    ) -> tuple[ColumnMapping, ...]:
        """Map fields to header cells by exact, case-insensitive name.

        - exact match: ``source_index`` is set; a transformation suggested by the
          column's data type is applied only when the field moves from unmapped to
          mapped, so a transformation chosen by the user is never overwritten
        - no exact match: the first strategy candidate becomes the primary source
          when the field is unmapped; the remaining candidates replace the
          additional sources, so columns picked under an earlier header row do
          not linger
        """
        if expected_columns is not None:
            self._columns = tuple(expected_columns)
        lowered = [h.strip().lower() for h in header_row]
        updated: list[ColumnMapping] = []
        for mapping in self._mappings:
            try:
                match = lowered.index(mapping.target_field.lower())
            except ValueError:
                match = -1

            if match != -1:
                transformation = mapping.transformation
                if mapping.source_index is None:
                    transformation = _suggest_transformation(
                        self._column(mapping.target_field), mapping.transformation
                    )
                updated.append(
                    replace(
                        mapping,
                        source_index=match,
                        transformation=transformation,
                        additional_sources=tuple(
                            s for s in mapping.additional_sources if s.source_index != match
                        ),
                    )
                )
                continue

            # 追加ソースは現在のヘッダ行の候補で置き換える
            candidates = self.strategy.candidates(mapping.target_field, header_row)
            primary = mapping.source_index
            if primary is None and candidates:
                primary = candidates[0].source_index
                candidates = candidates[1:]
            extra = tuple(c for c in candidates if c.source_index != primary)
            updated.append(replace(mapping, source_index=primary, additional_sources=extra))

        self._mappings = tuple(updated)
        logger.debug(
            f"auto-map: {sum(1 for m in self._mappings if m.is_mapped)}/{len(self._mappings)} fields mapped"
        )
        return self._mappings

    def set_mapping(self, target_field: str, source_index: int | None) -> None:
        """Replace only the primary source of one field."""
        self._update(target_field, source_index=source_index)

    def set_transformation(self, target_field: str, config: TransformationConfig) -> None:
        self._update(target_field, transformation=config)

    def add_additional_source(self, target_field: str, source_index: int, label: str) -> None:
        """Append an additional source; duplicates and the primary index are ignored."""
        mapping = self.get(target_field)
        if mapping is None:
            logger.debug(f"add source skipped: unknown target field '{target_field}'")
            return
        if source_index == mapping.source_index:
            return
        if any(s.source_index == source_index for s in mapping.additional_sources):
            return
        self._update(
            target_field,
            additional_sources=(*mapping.additional_sources, AdditionalSource(source_index, label)),
        )

    def remove_additional_source(self, target_field: str, source_index: int) -> None:
        mapping = self.get(target_field)
        if mapping is None:
            return
        self._update(
            target_field,
            additional_sources=tuple(
                s for s in mapping.additional_sources if s.source_index != source_index
            ),
        )

    def set_additional_sources(
        self,
        target_field: str,
        source_indices: Iterable[int],
        header_row: Sequence[str],
    ) -> None:
        """Replace the whole additional-source list (multi-select)."""
        mapping = self.get(target_field)
        if mapping is None:
            return
        sources: list[AdditionalSource] = []
        for idx in source_indices:
            if idx < 0 or idx == mapping.source_index:
                continue
            if any(s.source_index == idx for s in sources):
                continue
            label = header_row[idx] if idx < len(header_row) and header_row[idx] else f"Column {idx + 1}"
            sources.append(AdditionalSource(source_index=idx, label=label))
        self._update(target_field, additional_sources=tuple(sources))

    def effective_value(self, row: Sequence[str], mapping: ColumnMapping) -> str:
        return effective_value(row, mapping)

    def active_transformations(self) -> int:
        return sum(1 for m in self._mappings if m.transformation.type is not TransformationType.NONE)

    def missing_required(self) -> list[str]:
        return [m.target_field for m in self._mappings if m.required and m.source_index is None]

    def preview(
        self,
        dataset: TabularDataset,
        header_row: int,
        limit: int = 3,
    ) -> list[dict[str, str | None]]:
        """Transformed effective values of the first data rows (unmapped fields → None)."""
        out: list[dict[str, str | None]] = []
        for _, row in dataset.data_rows(header_row)[:limit]:
            out.append(
                {
                    m.target_field: transformed_value(row, m) if m.is_mapped else None
                    for m in self._mappings
                }
            )
        return out

    def cleaned_export(self, data_rows: Iterable[Sequence[str]]) -> list[dict[str, str]]:
        """One flat record per data row keyed by target field.

        Raw values are merged first, then transformed. Unmapped fields are
        omitted from the record entirely.
        """
        mapped = [m for m in self._mappings if m.is_mapped]
        return [{m.target_field: transformed_value(row, m) for m in mapped} for row in data_rows]
