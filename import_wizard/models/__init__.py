"""Domain models for the spreadsheet / CSV import wizard.

This package contains the immutable value types shared by the mapping,
transformation, validation and row-edit services.
"""

from .config_models import RuleConfig, ValidationConfig, WizardConfig
from .dataset import TabularDataset, cell, remove_empty_rows
from .issue import GLOBAL_ROW, Severity, ValidationIssue, has_blocking_errors
from .mapping import (
    AdditionalSource,
    ColumnMapping,
    ExpectedColumn,
    TransformationConfig,
    TransformationOptions,
    TransformationType,
)
from .step import StepView, WizardStep, derive_steps
from .template import TransformationTemplate
from .validation_state import ValidationReport, ValidationState, ValidationStatus

__all__ = [
    # Configuration models
    "RuleConfig",
    "ValidationConfig",
    "WizardConfig",
    # Data
    "TabularDataset",
    "cell",
    "remove_empty_rows",
    # Mapping
    "AdditionalSource",
    "ColumnMapping",
    "ExpectedColumn",
    "TransformationConfig",
    "TransformationOptions",
    "TransformationType",
    "TransformationTemplate",
    # Validation
    "GLOBAL_ROW",
    "Severity",
    "ValidationIssue",
    "ValidationReport",
    "ValidationState",
    "ValidationStatus",
    "has_blocking_errors",
    # Steps
    "StepView",
    "WizardStep",
    "derive_steps",
]
