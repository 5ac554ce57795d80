from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

"""ValidationIssue model.

Issues are data, not exceptions: the whole list is recomputed on every
validation run and never mutated individually.

``row`` is the absolute 0-based index into the full row sequence of the file
(header and rows above it included). ``row == 0`` means "not row specific",
e.g. a required field that is not mapped at all.
"""

__all__ = [
    "GLOBAL_ROW",
    "Severity",
    "ValidationIssue",
    "has_blocking_errors",
]

GLOBAL_ROW = 0


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    row: int
    column: str  # target field key
    message: str
    severity: Severity

    @property
    def is_global(self) -> bool:
        return self.row == GLOBAL_ROW

    def to_dict(self) -> dict[str, object]:
        return {
            "row": self.row,
            "column": self.column,
            "message": self.message,
            "severity": self.severity.value,
        }

    def to_json_line(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


def has_blocking_errors(issues: Iterable[ValidationIssue]) -> bool:
    """True when any issue has error severity. Gating policy is left to the caller."""
    return any(i.severity is Severity.ERROR for i in issues)
