from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.dataset import TabularDataset

"""Tabular file reader (CSV / XLSX / XLS).

Every cell is read as text, without header inference: choosing the header row
is the user's job in the wizard. Blank CSV lines are skipped, missing
trailing cells are dropped (ragged rows), and inner missing cells become "".
A CSV row may be wider than the first line (title or note rows above the
table); the frame is as wide as the widest row.

At most ``max_rows`` rows are handed to the wizard.
"""

__all__ = [
    "DEFAULT_MAX_ROWS",
    "FileParseError",
    "SUPPORTED_EXTENSIONS",
    "UnreadableFileError",
    "UnsupportedFormatError",
    "read_tabular_file",
]

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROWS = 10000
SUPPORTED_EXTENSIONS = (".csv", ".xlsx", ".xls")


class FileParseError(Exception):
    """Base class for upload parse failures."""


class UnsupportedFormatError(FileParseError):
    """Raised when the file extension is not csv / xlsx / xls."""


class UnreadableFileError(FileParseError):
    """Raised when the file is missing or the parser rejects its content."""


def _to_text(value: Any) -> str | None:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return str(value)


def _frame_to_rows(
    df: pd.DataFrame,
    *,
    blank_is_absent: bool = False,
    widths: list[int] | None = None,
) -> list[list[str]]:
    rows: list[list[str]] = []
    for i, raw in enumerate(df.itertuples(index=False, name=None)):
        cells = [_to_text(v) for v in raw]
        if widths is not None:
            # 元のレコードの項目数で切り詰める (短い行の補完分を除去)
            cells = cells[: widths[i]]
        # 末尾の欠損セルは「存在しない」扱い
        while cells and (cells[-1] is None or (blank_is_absent and cells[-1] == "")):
            cells.pop()
        rows.append(["" if c is None else c for c in cells])
    return rows


def _csv_record_widths(path: Path, max_rows: int) -> list[int]:
    """Field count of every physical CSV record, 0 for blank lines.

    Stops once ``max_rows`` non-blank records are counted; trailing blank
    lines are not included.
    """
    widths: list[int] = []
    kept = 0
    with path.open(newline="", encoding="utf-8") as f:
        for record in csv.reader(f):
            if kept >= max_rows:
                break
            widths.append(len(record))
            if record:
                kept += 1
    while widths and widths[-1] == 0:
        widths.pop()
    return widths


def _read_csv_rows(path: Path, max_rows: int) -> list[list[str]]:
    widths = _csv_record_widths(path, max_rows)
    if not widths:
        return []
    df = pd.read_csv(
        path,
        header=None,
        names=list(range(max(widths))),
        dtype=str,
        keep_default_na=False,
        na_values=[],
        skip_blank_lines=False,
        nrows=len(widths),
    )
    if len(df) != len(widths):
        raise ValueError(f"expected {len(widths)} records, parsed {len(df)}")
    rows = _frame_to_rows(df, widths=widths)
    return [row for row, width in zip(rows, widths) if width > 0]


def read_tabular_file(path: Path, max_rows: int = DEFAULT_MAX_ROWS) -> TabularDataset:
    """Read the first sheet of a spreadsheet or a CSV file into a dataset.

    Parameters
    ----------
    path: 読み込むファイル
    max_rows: 取り込む最大行数 (超過分は切り捨て)

    Raises
    ------
    UnsupportedFormatError: unknown extension
    UnreadableFileError: missing file or unparseable content
    """
    ext = path.suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFormatError(f"Unsupported file format: {path.name}")
    if not path.is_file():
        raise UnreadableFileError(f"File could not be read: {path}")

    try:
        if ext == ".csv":
            rows = _read_csv_rows(path, max_rows)
        else:
            try:
                df = pd.read_excel(
                    path,
                    sheet_name=0,
                    header=None,
                    dtype=str,
                    keep_default_na=False,
                    na_values=[],
                    nrows=max_rows,
                )
            except pd.errors.EmptyDataError:
                df = pd.DataFrame()
            # Excel は空セルと欠損セルを区別できないため末尾の空文字も欠損扱い
            rows = _frame_to_rows(df, blank_is_absent=True)
    except Exception as e:  # parser / engine 由来の例外は全て読込失敗として扱う
        raise UnreadableFileError(f"File could not be read: {path.name}: {e}") from e

    if len(rows) >= max_rows:
        logger.warning(f"{path.name}: row limit {max_rows} reached, remaining rows ignored")
    logger.debug(f"read {path.name}: rows={len(rows)} cols={max((len(r) for r in rows), default=0)}")
    return TabularDataset.from_rows(rows[:max_rows], file_name=path.name)
