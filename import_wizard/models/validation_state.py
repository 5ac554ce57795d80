from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .issue import Severity, ValidationIssue

"""Validation run state and result models.

State transitions: idle → running(progress 0..100) → complete(issues)
Starting a new run replaces any previous complete state.
"""

__all__ = [
    "ValidationReport",
    "ValidationState",
    "ValidationStatus",
]


class ValidationStatus(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETE = "complete"


@dataclass(frozen=True)
class ValidationState:
    status: ValidationStatus = ValidationStatus.IDLE
    progress: int = 0
    issues: tuple[ValidationIssue, ...] = ()
    generation: int = 0


@dataclass(frozen=True)
class ValidationReport:
    """Result of one completed (non-superseded) validation run."""
    generation: int
    issues: tuple[ValidationIssue, ...]
    data_row_count: int
    elapsed_seconds: float

    @property
    def error_count(self) -> int:
        return sum(1 for i in self.issues if i.severity is Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for i in self.issues if i.severity is Severity.WARNING)

    @property
    def has_blocking_errors(self) -> bool:
        return self.error_count > 0
