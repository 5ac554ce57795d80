from __future__ import annotations

from dataclasses import dataclass, field

from .mapping import ExpectedColumn
from .template import TransformationTemplate

"""Config dataclasses for the import wizard.

Built by ``import_wizard.config.loader.load_config`` after the YAML document
has passed schema validation.
"""


@dataclass(frozen=True)
class RuleConfig:
    """One row-level validation rule.

    type: ``numeric`` or ``allowed_values`` (values required for the latter)
    """
    field: str
    type: str
    values: tuple[str, ...] = ()


@dataclass(frozen=True)
class ValidationConfig:
    batch_size: int = 100
    rules: tuple[RuleConfig, ...] | None = None  # None → 型から自動導出


@dataclass(frozen=True)
class WizardConfig:
    """Root configuration object for a wizard session."""
    expected_columns: tuple[ExpectedColumn, ...]
    max_rows: int = 10000
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    auto_match_keywords: dict[str, tuple[str, ...]] | None = None  # None → 既定ヒューリスティック
    templates: tuple[TransformationTemplate, ...] = ()
    output_directory: str = "./output"
