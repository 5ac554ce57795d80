from __future__ import annotations

import asyncio
import logging
import math
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace

from ..models.config_models import RuleConfig
from ..models.dataset import Row, TabularDataset
from ..models.issue import GLOBAL_ROW, Severity, ValidationIssue
from ..models.mapping import ColumnMapping, ExpectedColumn
from ..models.validation_state import ValidationReport, ValidationState, ValidationStatus
from .mapper import transformed_value
from .transform import parse_number

"""Validation engine.

A run checks, in order:
1. required fields that are not mapped (one global issue each, row 0)
2. every data row (rows strictly after the header), row-major, against each
   rule; rows made only of empty / whitespace cells are skipped, and a rule
   whose field has no primary source column is skipped

Rows are processed in batches; control is yielded to the event loop between
batches so progress is observable while a large dataset is validated.

Each run gets a generation number. Only the latest generation may publish
progress or results; an older run that is still in flight stops at its next
batch boundary and returns None.
"""

__all__ = [
    "AllowedValuesRule",
    "NumericRule",
    "ProgressCallback",
    "ValidationEngine",
    "ValidationRule",
    "build_rules",
]

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100

ProgressCallback = Callable[[int], None]


class ValidationRule(ABC):
    """A per-field check applied to the transformed, merged cell value."""

    severity: Severity = Severity.ERROR

    def __init__(self, field: str) -> None:
        self.field = field

    @abstractmethod
    def check(self, value: str) -> str | None:
        """Return an issue message, or None when the value passes."""


class NumericRule(ValidationRule):
    severity = Severity.ERROR

    def check(self, value: str) -> str | None:
        # 空値は数値チェック対象外 (必須判定はマッピング側)
        if not value or not value.strip():
            return None
        if parse_number(value) is None:
            return f'Invalid {self.field} value: "{value}"'
        return None


class AllowedValuesRule(ValidationRule):
    severity = Severity.WARNING

    def __init__(self, field: str, allowed: Iterable[str]) -> None:
        super().__init__(field)
        self.allowed = frozenset(v.lower() for v in allowed)

    def check(self, value: str) -> str | None:
        if not value:
            return None
        lowered = value.lower()
        if lowered not in self.allowed:
            return f'{self.field} value "{lowered}" is not standardized'
        return None


def build_rules(
    rule_configs: Sequence[RuleConfig] | None,
    expected_columns: Iterable[ExpectedColumn] = (),
) -> list[ValidationRule]:
    """Instantiate rules from configuration.

    With no configured rules, a numeric rule is derived for every
    number / float column.
    """
    if rule_configs is None:
        return [
            NumericRule(col.field)
            for col in expected_columns
            if col.data_type in ("number", "float")
        ]
    rules: list[ValidationRule] = []
    for rc in rule_configs:
        if rc.type == "numeric":
            rules.append(NumericRule(rc.field))
        elif rc.type == "allowed_values":
            rules.append(AllowedValuesRule(rc.field, rc.values))
        else:
            raise ValueError(f"unknown validation rule type: {rc.type}")
    return rules


def _progress(processed: int, total: int) -> int:
    if total == 0:
        return 100
    # Math.round 互換 (四捨五入)
    return min(100, math.floor(100 * processed / total + 0.5))


def _is_blank(row: Row) -> bool:
    return not any(c and c.strip() for c in row)


class ValidationEngine:
    """Computes the ordered list of validation issues for a dataset.

    Attributes:
        rules: Row-level rules, applied in order for every data row
        batch_size: Rows processed between two yields to the event loop
        on_progress: Optional callback receiving the progress percentage
    """

    def __init__(
        self,
        rules: Iterable[ValidationRule] = (),
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.rules = list(rules)
        self.batch_size = batch_size
        self.on_progress = on_progress
        self._generation = 0
        self._state = ValidationState()

    @property
    def state(self) -> ValidationState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def issues(self) -> tuple[ValidationIssue, ...]:
        return self._state.issues

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def supersede(self) -> None:
        """Make any in-flight run stale so it never publishes its result."""
        self._generation += 1
        if self._state.status is ValidationStatus.RUNNING:
            self._state = replace(self._state, status=ValidationStatus.IDLE, generation=self._generation)

    def _publish_progress(self, generation: int, progress: int) -> None:
        if not self._is_current(generation):
            return
        self._state = replace(self._state, progress=progress)
        if self.on_progress is not None:
            self.on_progress(progress)

    @staticmethod
    def required_mapping_issues(mappings: Iterable[ColumnMapping]) -> list[ValidationIssue]:
        return [
            ValidationIssue(
                row=GLOBAL_ROW,
                column=m.target_field,
                message=f'Required column "{m.target_field}" is not mapped',
                severity=Severity.ERROR,
            )
            for m in mappings
            if m.required and m.source_index is None
        ]

    def check_row(
        self,
        row_index: int,
        row: Row,
        mappings_by_field: dict[str, ColumnMapping],
    ) -> list[ValidationIssue]:
        """Issues for one data row; ``row_index`` is the absolute row index."""
        if _is_blank(row):
            return []
        found: list[ValidationIssue] = []
        for rule in self.rules:
            mapping = mappings_by_field.get(rule.field)
            if mapping is None or mapping.source_index is None:
                continue
            message = rule.check(transformed_value(row, mapping))
            if message is not None:
                found.append(
                    ValidationIssue(
                        row=row_index,
                        column=rule.field,
                        message=message,
                        severity=rule.severity,
                    )
                )
        return found

    async def run(
        self,
        dataset: TabularDataset,
        header_row: int,
        mappings: Sequence[ColumnMapping],
    ) -> ValidationReport | None:
        """Run a full validation pass.

        Returns:
            The report, or None when a newer run started before this one finished
        """
        self._generation += 1
        generation = self._generation
        started = time.perf_counter()
        self._state = ValidationState(
            status=ValidationStatus.RUNNING, progress=0, issues=(), generation=generation
        )

        issues = self.required_mapping_issues(mappings)
        by_field = {m.target_field: m for m in mappings}
        data_rows = dataset.data_rows(header_row)
        total = len(data_rows)
        logger.debug(f"validation #{generation} started: {total} data rows, {len(self.rules)} rules")

        if total == 0:
            self._publish_progress(generation, 100)

        for start in range(0, total, self.batch_size):
            end = min(start + self.batch_size, total)
            for row_index, row in data_rows[start:end]:
                issues.extend(self.check_row(row_index, row, by_field))
            self._publish_progress(generation, _progress(end, total))
            if end < total:
                await asyncio.sleep(0)
                if not self._is_current(generation):
                    logger.debug(f"validation #{generation} superseded by #{self._generation}")
                    return None

        if not self._is_current(generation):
            return None

        report = ValidationReport(
            generation=generation,
            issues=tuple(issues),
            data_row_count=total,
            elapsed_seconds=time.perf_counter() - started,
        )
        self._state = ValidationState(
            status=ValidationStatus.COMPLETE,
            progress=100,
            issues=report.issues,
            generation=generation,
        )
        logger.debug(
            f"validation #{generation} complete: errors={report.error_count} warnings={report.warning_count}"
        )
        return report

    def validate(
        self,
        dataset: TabularDataset,
        header_row: int,
        mappings: Sequence[ColumnMapping],
    ) -> ValidationReport:
        """Blocking convenience wrapper around ``run`` (not usable inside a running loop)."""
        report = asyncio.run(self.run(dataset, header_row, mappings))
        if report is None:
            raise RuntimeError("validation run was superseded")
        return report
