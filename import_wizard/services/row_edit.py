from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from ..models.dataset import Row, TabularDataset
from ..models.mapping import ColumnMapping
from .mapper import effective_value

"""Row edit session.

Buffers in-progress edits keyed by absolute row index, then target field.
Nothing reaches the dataset until ``commit``, which returns a new dataset.

Commit collapses merged fields: the edited value is written to the primary
source cell and every additional-source cell of that field is cleared to "".
"""

__all__ = [
    "RowEditSession",
    "is_boolean_like",
]

logger = logging.getLogger(__name__)


def is_boolean_like(value: object) -> bool:
    """True for values edited with a tri-state toggle instead of free text."""
    if value is True or value is False:
        return True
    if type(value) is int:
        return value in (0, 1)
    return value in ("true", "false", "0", "1")


def _to_cell(value: object) -> str:
    if value is True or value is False:
        return "true" if value else "false"
    return "" if value is None else str(value)


class RowEditSession:
    def __init__(self) -> None:
        self._buffer: dict[int, dict[str, str]] = {}

    @property
    def active(self) -> bool:
        return bool(self._buffer)

    @property
    def edits(self) -> dict[int, dict[str, str]]:
        return {idx: dict(fields) for idx, fields in self._buffer.items()}

    @staticmethod
    def _snapshot(row: Row, mappings: Sequence[ColumnMapping]) -> dict[str, str]:
        return {m.target_field: effective_value(row, m) for m in mappings if m.is_mapped}

    def begin_edit_all(
        self,
        visible_rows: Iterable[tuple[int, Row]],
        mappings: Sequence[ColumnMapping],
    ) -> None:
        """Snapshot the merged value of every mapped field for each visible row.

        Any previous buffer is replaced.
        """
        self._buffer = {idx: self._snapshot(row, mappings) for idx, row in visible_rows}
        logger.debug(f"edit session started for {len(self._buffer)} rows")

    def begin_edit_row(self, row_index: int, row: Row, mappings: Sequence[ColumnMapping]) -> None:
        self._buffer[row_index] = self._snapshot(row, mappings)

    def set_field(self, row_index: int, field: str, value: object) -> None:
        self._buffer.setdefault(row_index, {})[field] = _to_cell(value)

    def get_field(self, row_index: int, field: str) -> str | None:
        return self._buffer.get(row_index, {}).get(field)

    def discard(self) -> None:
        self._buffer = {}

    def commit(self, dataset: TabularDataset, mappings: Sequence[ColumnMapping]) -> TabularDataset:
        """Write buffered values back and clear the buffer.

        Empty edited values, unknown fields, unmapped fields and rows that no
        longer exist are skipped silently.
        """
        by_field = {m.target_field: m for m in mappings}
        rows = [list(r) for r in dataset.rows]
        written = 0
        for row_index, fields in self._buffer.items():
            if not 0 <= row_index < len(rows):
                logger.debug(f"edit skipped: row {row_index} no longer exists")
                continue
            row = rows[row_index]
            for field, value in fields.items():
                mapping = by_field.get(field)
                if not value or mapping is None or mapping.source_index is None:
                    continue
                _set_cell(row, mapping.source_index, value)
                for source in mapping.additional_sources:
                    _set_cell(row, source.source_index, "")
                written += 1
        self._buffer = {}
        logger.debug(f"edit session committed: {written} fields written")
        return dataset.replace_rows(rows)


def _set_cell(row: list[str], index: int, value: str) -> None:
    if index >= len(row):
        row.extend([""] * (index + 1 - len(row)))
    row[index] = value
