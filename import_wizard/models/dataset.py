from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace

"""TabularDataset model for the import wizard.

A dataset is the parsed content of one uploaded file: an ordered sequence of
rows, each an ordered sequence of string cells. Rows may be ragged; a cell
past the end of a row is treated as absent (``None``), never as "".

The dataset is replaced wholesale on every edit / filter / delete
(replace-on-write). Nothing in this package mutates rows in place.
"""

__all__ = [
    "Row",
    "TabularDataset",
    "cell",
    "remove_empty_rows",
]

Row = tuple[str, ...]


def cell(row: Sequence[str], index: int | None) -> str | None:
    """Return ``row[index]`` or None when the index is unset or past the row end."""
    if index is None or index < 0 or index >= len(row):
        return None
    return row[index]


@dataclass(frozen=True)
class TabularDataset:
    """Immutable in-memory representation of an uploaded file.

    Attributes:
        rows: File rows in file order (header and rows above it included)
        file_name: Informational only
    """
    rows: tuple[Row, ...]
    file_name: str = ""

    @staticmethod
    def from_rows(rows: Iterable[Sequence[str]], file_name: str = "") -> TabularDataset:
        return TabularDataset(rows=tuple(tuple(r) for r in rows), file_name=file_name)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def width(self) -> int:
        """Cell count of the widest row."""
        return max((len(r) for r in self.rows), default=0)

    def header(self, header_row: int) -> Row:
        if 0 <= header_row < len(self.rows):
            return self.rows[header_row]
        return ()

    def data_rows(self, header_row: int) -> list[tuple[int, Row]]:
        """Rows strictly after the header row paired with their absolute index."""
        start = header_row + 1
        return [(start + offset, row) for offset, row in enumerate(self.rows[start:])]

    def replace_rows(self, rows: Iterable[Sequence[str]]) -> TabularDataset:
        return replace(self, rows=tuple(tuple(r) for r in rows))

    def delete_rows(self, indices: Iterable[int]) -> TabularDataset:
        """Drop the rows at the given absolute indices, keeping the order of the rest."""
        drop = set(indices)
        return replace(self, rows=tuple(r for i, r in enumerate(self.rows) if i not in drop))

    def truncated(self, max_rows: int) -> TabularDataset:
        if len(self.rows) <= max_rows:
            return self
        return replace(self, rows=self.rows[:max_rows])


def remove_empty_rows(
    dataset: TabularDataset,
    expected_fields: Iterable[str],
    header_row: int,
) -> TabularDataset:
    """Drop data rows whose cells under every expected-field column are empty.

    Columns are located by case-insensitive header name. Rows at or above the
    header are always kept. When no header cell names an expected field there
    is nothing to judge emptiness by, so the dataset is returned unchanged.
    """
    header = dataset.header(header_row)
    lowered = [h.strip().lower() for h in header]
    matched: list[int] = []
    for field in expected_fields:
        try:
            matched.append(lowered.index(field.lower()))
        except ValueError:
            continue
    if not matched:
        return dataset

    kept: list[Row] = []
    for idx, row in enumerate(dataset.rows):
        if idx <= header_row:
            kept.append(row)
            continue
        if any((cell(row, i) or "").strip() != "" for i in matched):
            kept.append(row)
    return dataset.replace_rows(kept)
