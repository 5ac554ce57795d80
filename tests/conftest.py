# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path

import pytest

from import_wizard.logging import init as logging_init
from import_wizard.models import ExpectedColumn, TabularDataset
from import_wizard.services import transform as transform_module


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("IMPORT_WIZARD_CONFIG", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """expected_columns:
  - {field: name, label: Name, required: true}
  - {field: surname, label: Surname, required: true}
  - {field: age, label: Age, data_type: number}
  - {field: team, label: Team}
upload:
  max_rows: 1000
validation:
  batch_size: 2
  rules:
    - {field: age, type: numeric}
    - {field: team, type: allowed_values, values: [engineering, marketing, sales]}
templates:
  - id: upper-names
    name: Upper names
    mappings:
      - target_field: name
        transformation: {type: uppercase}
output_directory: ./output
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def expected_columns() -> tuple[ExpectedColumn, ...]:
    return (
        ExpectedColumn(field="name", label="Name", required=True),
        ExpectedColumn(field="surname", label="Surname", required=True),
        ExpectedColumn(field="age", label="Age", data_type="number"),
        ExpectedColumn(field="team", label="Team"),
    )


@pytest.fixture()
def people_rows() -> list[list[str]]:
    return [
        ["Name", "Surname", "Age", "Team"],
        ["alice", "smith", "30", "engineering"],
        ["bob", "jones", "abc", "Eng."],
        ["", "", "", ""],
        ["carol", "brown", "41", "sales"],
    ]


@pytest.fixture()
def people_dataset(people_rows) -> TabularDataset:
    return TabularDataset.from_rows(people_rows, file_name="people.csv")


@pytest.fixture()
def sample_csv(temp_workdir: Path, people_rows) -> Path:
    f = temp_workdir / "data" / "people.csv"
    f.write_text("\n".join(",".join(r) for r in people_rows) + "\n", encoding="utf-8")
    return f


@pytest.fixture(autouse=True)
def _reset_global_state():
    yield
    logging_init.reset_logging()
    transform_module._CUSTOM_TRANSFORMS.clear()
