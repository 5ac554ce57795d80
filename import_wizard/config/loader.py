from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import RuleConfig, ValidationConfig, WizardConfig
from ..models.mapping import ExpectedColumn
from ..models.template import TransformationTemplate

"""Config loader.

Responsibilities:
- Load the YAML config (default config/import.yml, IMPORT_WIZARD_CONFIG env overrides)
- Validate it against the bundled JSON schema
- Apply defaults (max_rows=10000, batch_size=100, output_directory=./output)
"""

SCHEMA_PATH = Path(__file__).parent / "schema.json"
DEFAULT_CONFIG_PATH = Path("config/import.yml")
CONFIG_ENV_VAR = "IMPORT_WIZARD_CONFIG"


class ConfigError(Exception):
    pass


def resolve_config_path(cli_value: str | None = None) -> Path:
    """CLI option > environment variable > default path."""
    if cli_value:
        return Path(cli_value)
    env = os.getenv(CONFIG_ENV_VAR)
    if env:
        return Path(env)
    return DEFAULT_CONFIG_PATH


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing / not valid JSON, or the
            config data fails schema validation.
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _build_config(data: dict[str, Any]) -> WizardConfig:
    columns = tuple(
        ExpectedColumn(
            field=c["field"],
            label=c["label"],
            required=bool(c.get("required", False)),
            data_type=c.get("data_type", "text"),
        )
        for c in data["expected_columns"]
    )
    fields = [c.field for c in columns]
    if len(set(fields)) != len(fields):
        raise ConfigError("config validation failed: expected_columns fields must be unique")

    validation_raw = data.get("validation") or {}
    rules_raw = validation_raw.get("rules")
    rules = None
    if rules_raw is not None:
        rules = tuple(
            RuleConfig(field=r["field"], type=r["type"], values=tuple(r.get("values") or ()))
            for r in rules_raw
        )
        unknown = sorted({r.field for r in rules} - set(fields))
        if unknown:
            raise ConfigError(f"config validation failed: rules reference unknown fields {unknown}")

    keywords_raw = (data.get("auto_match") or {}).get("keywords")
    keywords = None
    if keywords_raw is not None:
        keywords = {k: tuple(v) for k, v in keywords_raw.items()}

    return WizardConfig(
        expected_columns=columns,
        max_rows=(data.get("upload") or {}).get("max_rows", 10000),
        validation=ValidationConfig(batch_size=validation_raw.get("batch_size", 100), rules=rules),
        auto_match_keywords=keywords,
        templates=tuple(TransformationTemplate.from_dict(t) for t in data.get("templates") or []),
        output_directory=data.get("output_directory", "./output"),
    )


def load_config(path: Path) -> WizardConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top level must be a mapping")

    _validate_config_schema(data)
    return _build_config(data)
