from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

from ..excel.reader import DEFAULT_MAX_ROWS, read_tabular_file
from ..models.config_models import WizardConfig
from ..models.dataset import Row, TabularDataset, remove_empty_rows
from ..models.issue import ValidationIssue, has_blocking_errors
from ..models.mapping import ColumnMapping, ExpectedColumn, TransformationConfig
from ..models.step import StepView, WizardStep, derive_steps
from ..models.template import TransformationTemplate
from ..models.validation_state import ValidationReport, ValidationState, ValidationStatus
from .mapper import AutoMatchStrategy, ColumnMapper, KeywordMatchStrategy
from .row_edit import RowEditSession
from .templates import TemplateStore
from .validation import ProgressCallback, ValidationEngine, ValidationRule, build_rules

"""Import wizard orchestration.

Owns the step state machine (Upload → SelectHeader → MatchColumns → Validate)
and wires dataset, column mapper, validation engine, row edit session and
template store together. The presentation layer reads the properties exposed
here and calls the operations in response to user input.

Validation is re-run whenever the dataset is replaced (rows edited or deleted)
and whenever the validate step is entered, but never while an edit session is
open.
"""

__all__ = [
    "ImportWizardController",
    "Reader",
]

logger = logging.getLogger(__name__)

Reader = Callable[[Path, int], TabularDataset]


class ImportWizardController:
    def __init__(
        self,
        expected_columns: Iterable[ExpectedColumn],
        *,
        rules: Iterable[ValidationRule] | None = None,
        batch_size: int = 100,
        max_rows: int = DEFAULT_MAX_ROWS,
        strategy: AutoMatchStrategy | None = None,
        templates: Iterable[TransformationTemplate] = (),
        reader: Reader | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self.expected_columns: tuple[ExpectedColumn, ...] = tuple(expected_columns)
        self.mapper = ColumnMapper(self.expected_columns, strategy=strategy)
        self.engine = ValidationEngine(
            rules if rules is not None else build_rules(None, self.expected_columns),
            batch_size=batch_size,
            on_progress=on_progress,
        )
        self.edit_session = RowEditSession()
        self.template_store = TemplateStore(templates)
        self.reader: Reader = reader if reader is not None else read_tabular_file
        self.max_rows = max_rows
        self.show_only_issues = False
        self._step = WizardStep.UPLOAD
        self._dataset: TabularDataset | None = None
        self._header_row = 0
        self._selected_rows: set[int] = set()
        self._last_report: ValidationReport | None = None

    @classmethod
    def from_config(
        cls,
        config: WizardConfig,
        *,
        reader: Reader | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> ImportWizardController:
        return cls(
            config.expected_columns,
            rules=build_rules(config.validation.rules, config.expected_columns),
            batch_size=config.validation.batch_size,
            max_rows=config.max_rows,
            strategy=KeywordMatchStrategy(config.auto_match_keywords),
            templates=config.templates,
            reader=reader,
            on_progress=on_progress,
        )

    # --- state -------------------------------------------------------------

    @property
    def step(self) -> WizardStep:
        return self._step

    @property
    def steps(self) -> list[StepView]:
        return derive_steps(self._step)

    @property
    def dataset(self) -> TabularDataset | None:
        return self._dataset

    @property
    def header_row(self) -> int:
        return self._header_row

    @property
    def mappings(self) -> tuple[ColumnMapping, ...]:
        return self.mapper.mappings

    @property
    def validation_state(self) -> ValidationState:
        return self.engine.state

    @property
    def issues(self) -> tuple[ValidationIssue, ...]:
        return self.engine.issues

    @property
    def last_report(self) -> ValidationReport | None:
        """Report of the most recent validation run that was not superseded."""
        return self._last_report

    @property
    def has_blocking_errors(self) -> bool:
        return has_blocking_errors(self.engine.issues)

    @property
    def selected_rows(self) -> frozenset[int]:
        return frozenset(self._selected_rows)

    def set_expected_columns(self, expected_columns: Iterable[ExpectedColumn]) -> None:
        """Re-derive every mapping for a new set of expected columns."""
        self.expected_columns = tuple(expected_columns)
        self.mapper.initialize(self.expected_columns)
        if self._dataset is not None:
            self.mapper.auto_map(self._dataset.header(self._header_row))

    # --- upload / header ---------------------------------------------------

    async def upload(self, path: Path | str) -> TabularDataset:
        """Parse a file and advance to header selection.

        Raises:
            FileParseError: On unsupported or unreadable files; wizard state is left untouched
        """
        parsed = await asyncio.to_thread(self.reader, Path(path), self.max_rows)
        return self.load_dataset(parsed)

    def load_dataset(self, dataset: TabularDataset) -> TabularDataset:
        """Accept an already parsed dataset as a successful upload."""
        dataset = dataset.truncated(self.max_rows)
        cleaned = remove_empty_rows(dataset, (c.field for c in self.expected_columns), 0)
        removed = dataset.row_count - cleaned.row_count
        self._dataset = cleaned
        self._header_row = 0
        self._selected_rows.clear()
        self.edit_session.discard()
        self.show_only_issues = False
        self._last_report = None
        self.mapper.initialize(self.expected_columns)
        self.mapper.auto_map(cleaned.header(0))
        self._step = WizardStep.SELECT_HEADER
        logger.info(
            f"uploaded {cleaned.file_name or '<memory>'}: rows={cleaned.row_count} empty_rows_removed={removed}"
        )
        return cleaned

    def select_header_row(self, index: int) -> None:
        if self._dataset is None:
            raise ValueError("no dataset uploaded")
        if not 0 <= index < self._dataset.row_count:
            raise ValueError(f"header row {index} out of range (rows={self._dataset.row_count})")
        self._header_row = index
        self._selected_rows.clear()
        self.mapper.auto_map(self._dataset.header(index))

    # --- steps -------------------------------------------------------------

    async def go_to(self, step: WizardStep) -> WizardStep:
        self._step = step
        if step is WizardStep.VALIDATE:
            await self.revalidate()
        return self._step

    async def go_next(self) -> WizardStep:
        if self._step < WizardStep.VALIDATE:
            await self.go_to(WizardStep(self._step + 1))
        return self._step

    def go_previous(self) -> WizardStep:
        if self._step > WizardStep.UPLOAD:
            self._step = WizardStep(self._step - 1)
        return self._step

    # --- mappings ----------------------------------------------------------

    def set_mapping(self, target_field: str, source_index: int | None) -> None:
        self.mapper.set_mapping(target_field, source_index)

    def set_transformation(self, target_field: str, config: TransformationConfig) -> None:
        self.mapper.set_transformation(target_field, config)

    def add_additional_source(self, target_field: str, source_index: int, label: str) -> None:
        self.mapper.add_additional_source(target_field, source_index, label)

    def remove_additional_source(self, target_field: str, source_index: int) -> None:
        self.mapper.remove_additional_source(target_field, source_index)

    def set_additional_sources(self, target_field: str, source_indices: Iterable[int]) -> None:
        header: Row = self._dataset.header(self._header_row) if self._dataset is not None else ()
        self.mapper.set_additional_sources(target_field, source_indices, header)

    def preview(self, limit: int = 3) -> list[dict[str, str | None]]:
        if self._dataset is None:
            return []
        return self.mapper.preview(self._dataset, self._header_row, limit)

    # --- templates ---------------------------------------------------------

    def save_template(self, name: str, description: str = "") -> TransformationTemplate:
        return self.template_store.save(name, description, self.mapper.mappings)

    def apply_template(self, template_id: str) -> None:
        self.mapper.replace_all(self.template_store.apply(template_id, self.mapper.mappings))

    def delete_template(self, template_id: str) -> None:
        self.template_store.delete(template_id)

    # --- validation --------------------------------------------------------

    async def revalidate(self) -> ValidationReport | None:
        if self._dataset is None:
            return None
        if self.edit_session.active:
            logger.debug("validation skipped: edit session active")
            return None
        report = await self.engine.run(self._dataset, self._header_row, self.mapper.mappings)
        if report is not None:
            self._last_report = report
        if report is not None and not report.issues and self.show_only_issues:
            self.show_only_issues = False
        return report

    async def _replace_dataset(self, dataset: TabularDataset) -> ValidationReport | None:
        self._dataset = dataset
        return await self.revalidate()

    # --- rows --------------------------------------------------------------

    def visible_rows(self) -> list[tuple[int, Row]]:
        """Data rows as (absolute index, row), honouring the issues-only filter."""
        if self._dataset is None:
            return []
        rows = self._dataset.data_rows(self._header_row)
        if not self.show_only_issues:
            return rows
        flagged = {i.row for i in self.engine.issues}
        return [(idx, row) for idx, row in rows if idx in flagged]

    def set_show_only_issues(self, flag: bool) -> None:
        self.show_only_issues = flag
        if self.edit_session.active:
            self.edit_session.begin_edit_all(self.visible_rows(), self.mapper.mappings)

    def select_row(self, row_index: int, selected: bool = True) -> None:
        if selected:
            self._selected_rows.add(row_index)
        else:
            self._selected_rows.discard(row_index)

    def select_all_rows(self, selected: bool = True, *, visible_only: bool = False) -> None:
        if not selected:
            self._selected_rows.clear()
            return
        if visible_only:
            rows = self.visible_rows()
        elif self._dataset is not None:
            rows = self._dataset.data_rows(self._header_row)
        else:
            rows = []
        self._selected_rows = {idx for idx, _ in rows}

    async def delete_rows(self, indices: Iterable[int]) -> ValidationReport | None:
        if self._dataset is None:
            return None
        return await self._replace_dataset(self._dataset.delete_rows(indices))

    async def delete_selected_rows(self) -> ValidationReport | None:
        indices = set(self._selected_rows)
        self._selected_rows.clear()
        return await self.delete_rows(indices)

    # --- editing -----------------------------------------------------------

    def _enter_edit_phase(self) -> None:
        if self.engine.state.status is ValidationStatus.RUNNING:
            self.engine.supersede()

    def begin_edit_all(self) -> None:
        self._enter_edit_phase()
        self.edit_session.begin_edit_all(self.visible_rows(), self.mapper.mappings)

    def begin_edit_row(self, row_index: int) -> None:
        if self._dataset is None or not 0 <= row_index < self._dataset.row_count:
            return
        self._enter_edit_phase()
        self.edit_session.begin_edit_row(row_index, self._dataset.rows[row_index], self.mapper.mappings)

    def set_edit_field(self, row_index: int, field: str, value: object) -> None:
        self.edit_session.set_field(row_index, field, value)

    def discard_edits(self) -> None:
        self.edit_session.discard()

    async def commit_edits(self) -> ValidationReport | None:
        if self._dataset is None:
            self.edit_session.discard()
            return None
        return await self._replace_dataset(self.edit_session.commit(self._dataset, self.mapper.mappings))

    # --- export ------------------------------------------------------------

    def cleaned_export(self) -> list[dict[str, str]]:
        if self._dataset is None:
            return []
        return self.mapper.cleaned_export(row for _, row in self._dataset.data_rows(self._header_row))

    def missing_required(self) -> Sequence[str]:
        return self.mapper.missing_required()
