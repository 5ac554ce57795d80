"""Wizard services: transformation, column mapping, validation, row editing,
templates and the controller tying them together."""

from .mapper import ColumnMapper, KeywordMatchStrategy, NoAutoMatch
from .row_edit import RowEditSession
from .templates import TemplateError, TemplateStore
from .transform import register_custom_transform
from .validation import ValidationEngine
from .wizard import ImportWizardController

__all__ = [
    "ColumnMapper",
    "ImportWizardController",
    "KeywordMatchStrategy",
    "NoAutoMatch",
    "RowEditSession",
    "TemplateError",
    "TemplateStore",
    "ValidationEngine",
    "register_custom_transform",
]
