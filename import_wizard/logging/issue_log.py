from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

from ..models.issue import ValidationIssue

"""Issue log buffering.

- JSON Lines, fixed schema: timestamp, file, row, column, severity, message
- one file per process start: ``logs/issues-YYYYMMDD-HHMMSS.log`` (UTC)
- records are buffered and written on flush(); nothing is created while empty
"""

__all__ = [
    "IssueLogBuffer",
    "to_log_line",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


def to_log_line(file_name: str, issue: ValidationIssue) -> str:
    record = {
        "timestamp": datetime.now(UTC).isoformat(),
        "file": file_name,
        "row": issue.row,
        "column": issue.column,
        "severity": issue.severity.value,
        "message": issue.message,
    }
    return json.dumps(record, ensure_ascii=False)


class IssueLogBuffer:
    """In-memory buffer of validation issues, flushed as JSON Lines.

    Not thread safe; the CLI flushes once per run.
    """
    def __init__(self, logs_dir: Path | None = None) -> None:
        self._logs_dir = logs_dir if logs_dir is not None else LOGS_DIR
        self._lines: list[str] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"issues-{stamp}.log"
        return self._file_path

    def append(self, file_name: str, issue: ValidationIssue) -> None:
        self._lines.append(to_log_line(file_name, issue))

    def extend(self, file_name: str, issues: list[ValidationIssue] | tuple[ValidationIssue, ...]) -> None:
        for issue in issues:
            self.append(file_name, issue)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._lines)

    def flush(self) -> Path | None:
        """Append buffered records to the log file.

        Returns:
            The file written to, or None when the buffer was empty
        """
        if not self._lines:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for line in self._lines:
                f.write(line + "\n")
        self._lines.clear()
        return fp
