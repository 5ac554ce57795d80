from __future__ import annotations

from import_wizard.models import TabularDataset, cell, remove_empty_rows


def test_cell_absent_vs_empty():
    row = ("a", "")
    assert cell(row, 0) == "a"
    assert cell(row, 1) == ""
    assert cell(row, 2) is None
    assert cell(row, None) is None
    assert cell(row, -1) is None


def test_shape_and_data_rows(people_dataset):
    assert people_dataset.row_count == 5
    assert people_dataset.width == 4
    assert people_dataset.header(0) == ("Name", "Surname", "Age", "Team")
    assert people_dataset.header(99) == ()
    rows = people_dataset.data_rows(2)
    assert [idx for idx, _ in rows] == [3, 4]


def test_delete_rows_preserves_order(people_dataset):
    out = people_dataset.delete_rows([1, 3])
    assert [r[0] for r in out.rows] == ["Name", "bob", "carol"]
    # 元データは不変
    assert people_dataset.row_count == 5


def test_truncated():
    ds = TabularDataset.from_rows([["a"], ["b"], ["c"]])
    assert ds.truncated(2).rows == (("a",), ("b",))
    assert ds.truncated(5) is ds


def test_remove_empty_rows_uses_expected_columns_only():
    ds = TabularDataset.from_rows(
        [
            ["name", "notes"],
            ["", "only notes"],
            ["bob", ""],
            ["   ", ""],
        ]
    )
    out = remove_empty_rows(ds, ["Name"], 0)
    assert out.rows == (("name", "notes"), ("bob", ""))


def test_remove_empty_rows_keeps_rows_above_header():
    ds = TabularDataset.from_rows([[""], ["name"], [""], ["x"]])
    out = remove_empty_rows(ds, ["name"], 1)
    assert out.rows == (("",), ("name",), ("x",))


def test_remove_empty_rows_without_matching_header_is_noop():
    ds = TabularDataset.from_rows([["Title"], [""], ["x"]])
    assert remove_empty_rows(ds, ["name"], 0) == ds


def test_remove_empty_rows_short_rows_count_as_empty():
    ds = TabularDataset.from_rows([["a", "name"], ["x"], ["y", "z"]])
    out = remove_empty_rows(ds, ["name"], 0)
    assert out.rows == (("a", "name"), ("y", "z"))
