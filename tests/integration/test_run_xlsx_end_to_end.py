from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest

from import_wizard.cli import main as cli_main

"""End-to-end CLI run on a real XLSX file with a title row above the header."""


def _make_excel_file(path: Path, rows: list[list[object]]) -> Path:
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name="Employees", header=False, index=False)
    return path


@pytest.fixture
def employees_xlsx(temp_workdir: Path, write_config: Path) -> Path:
    return _make_excel_file(
        temp_workdir / "data" / "employees.xlsx",
        [
            ["Employee export", None, None, None],
            ["First Name", "Last Name", "Age", "Department"],
            ["alice", "smith", 30, "engineering"],
            [None, None, None, None],
            ["bob", "jones", 41.0, "sales"],
        ],
    )


def test_xlsx_with_header_on_second_row(employees_xlsx: Path, temp_workdir: Path, capsys):
    code = cli_main([str(employees_xlsx), "--header-row", "1"])
    out = capsys.readouterr().out
    assert code == 0, out

    records = [
        json.loads(line)
        for line in (temp_workdir / "output" / "employees.jsonl").read_text(encoding="utf-8").splitlines()
    ]
    # 空行除去はアップロード時のヘッダ (タイトル行) 基準のため空レコードが残る
    assert records[0] == {"name": "alice", "surname": "smith", "age": "30", "team": "engineering"}
    assert records[1] == {"name": "", "surname": "", "age": "", "team": ""}
    assert records[-1] == {"name": "bob", "surname": "jones", "age": "41", "team": "sales"}
    assert "SUMMARY file=employees.xlsx" in out
    assert not list((temp_workdir / "logs").glob("issues-*.log"))


def test_xlsx_with_wrong_header_reports_missing_required(employees_xlsx: Path, temp_workdir: Path, capsys):
    code = cli_main([str(employees_xlsx)])
    out = capsys.readouterr().out
    assert code == 2
    assert 'ERROR global column=name Required column "name" is not mapped' in out
    logs = list((temp_workdir / "logs").glob("issues-*.log"))
    assert len(logs) == 1
    first = json.loads(logs[0].read_text(encoding="utf-8").splitlines()[0])
    assert first["row"] == 0 and first["file"] == "employees.xlsx"
