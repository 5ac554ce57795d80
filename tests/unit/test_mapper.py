from __future__ import annotations

from import_wizard.models import (
    AdditionalSource,
    ColumnMapping,
    ExpectedColumn,
    TabularDataset,
    TransformationConfig,
    TransformationType,
)
from import_wizard.services.mapper import (
    ColumnMapper,
    KeywordMatchStrategy,
    NoAutoMatch,
    effective_value,
)


def test_initialize_creates_unmapped_entries(expected_columns):
    mapper = ColumnMapper(expected_columns)
    assert [m.target_field for m in mapper.mappings] == ["name", "surname", "age", "team"]
    assert all(m.source_index is None for m in mapper.mappings)
    assert mapper.get("name").required is True
    assert mapper.missing_required() == ["name", "surname"]


def test_auto_map_exact_case_insensitive(expected_columns):
    mapper = ColumnMapper(expected_columns, strategy=NoAutoMatch())
    mapper.auto_map(["AGE", " Name ", "x"])
    assert mapper.get("age").source_index == 0
    assert mapper.get("name").source_index == 1
    assert mapper.get("surname").source_index is None


def test_auto_map_suggests_transformations(expected_columns):
    mapper = ColumnMapper(
        (*expected_columns, ExpectedColumn(field="active", label="Active", data_type="boolean")),
        strategy=NoAutoMatch(),
    )
    mapper.auto_map(["name", "age", "active", "team"])
    assert mapper.get("age").transformation.type is TransformationType.NUMBER
    assert mapper.get("age").transformation.options.decimal_places == 0
    assert mapper.get("active").transformation.type is TransformationType.BOOLEAN
    assert mapper.get("name").transformation.type is TransformationType.TRIM
    assert mapper.get("team").transformation.type is TransformationType.NONE


def test_auto_map_keeps_user_transformation_for_mapped_field(expected_columns):
    mapper = ColumnMapper(expected_columns, strategy=NoAutoMatch())
    mapper.auto_map(["name", "age"])
    upper = TransformationConfig(type=TransformationType.UPPERCASE)
    mapper.set_transformation("name", upper)
    mapper.auto_map(["age", "name"])
    assert mapper.get("name").source_index == 1
    assert mapper.get("name").transformation == upper


def test_keyword_heuristic_splits_name_columns(expected_columns):
    mapper = ColumnMapper(expected_columns)
    mapper.auto_map(["First Name", "Last Name", "Department", "Age"])
    assert mapper.get("name").source_index == 0
    assert mapper.get("surname").source_index == 1
    assert mapper.get("team").source_index == 2
    assert mapper.get("age").source_index == 3


def test_keyword_candidates_become_additional_sources():
    strategy = KeywordMatchStrategy({"name": ["first", "middle"]})
    mapper = ColumnMapper([ExpectedColumn(field="name", label="Name")], strategy=strategy)
    mapper.auto_map(["First", "Middle", "Last"])
    m = mapper.get("name")
    assert m.source_index == 0
    assert m.additional_sources == (AdditionalSource(1, "Middle"),)
    # 再実行しても重複しない
    mapper.auto_map(["First", "Middle", "Last"])
    assert len(mapper.get("name").additional_sources) == 1


def test_new_header_row_replaces_additional_sources():
    strategy = KeywordMatchStrategy({"name": ["first", "middle"]})
    mapper = ColumnMapper([ExpectedColumn(field="name", label="Name")], strategy=strategy)
    mapper.auto_map(["First", "Middle", "Last"])
    mapper.add_additional_source("name", 2, "Last")
    mapper.auto_map(["First", "Notes", "Middle"])
    m = mapper.get("name")
    assert m.source_index == 0
    assert m.additional_sources == (AdditionalSource(2, "Middle"),)
    # 候補が無いヘッダでは追加ソースを空にする
    mapper.auto_map(["Code", "Notes"])
    assert mapper.get("name").source_index == 0
    assert mapper.get("name").additional_sources == ()


def test_exact_match_removes_primary_from_additional_sources(expected_columns):
    mapper = ColumnMapper(expected_columns, strategy=NoAutoMatch())
    mapper.add_additional_source("name", 1, "Name")
    mapper.auto_map(["x", "name"])
    m = mapper.get("name")
    assert m.source_index == 1
    assert m.additional_sources == ()


def test_set_mapping_and_unknown_field_is_noop(expected_columns):
    mapper = ColumnMapper(expected_columns)
    mapper.add_additional_source("name", 3, "Middle")
    mapper.set_mapping("name", 2)
    assert mapper.get("name").source_index == 2
    assert mapper.get("name").additional_sources == (AdditionalSource(3, "Middle"),)
    before = mapper.mappings
    mapper.set_mapping("nope", 1)
    assert mapper.mappings == before


def test_add_additional_source_ignores_duplicates_and_primary(expected_columns):
    mapper = ColumnMapper(expected_columns)
    mapper.set_mapping("name", 0)
    mapper.add_additional_source("name", 0, "First")
    mapper.add_additional_source("name", 1, "Last")
    mapper.add_additional_source("name", 1, "Last again")
    assert mapper.get("name").additional_sources == (AdditionalSource(1, "Last"),)
    mapper.remove_additional_source("name", 1)
    assert mapper.get("name").additional_sources == ()


def test_set_additional_sources_labels_and_filters(expected_columns):
    mapper = ColumnMapper(expected_columns)
    mapper.set_mapping("name", 0)
    mapper.set_additional_sources("name", [2, 0, -1, 5, 2], ["First", "Mid", "Last"])
    assert mapper.get("name").additional_sources == (
        AdditionalSource(2, "Last"),
        AdditionalSource(5, "Column 6"),
    )


def test_updates_do_not_mutate_previous_snapshot(expected_columns):
    mapper = ColumnMapper(expected_columns)
    snapshot = mapper.mappings
    mapper.set_mapping("age", 2)
    assert snapshot[2].source_index is None
    assert mapper.mappings[2].source_index == 2


def test_effective_value_merges_existing_cells():
    mapping = ColumnMapping(
        target_field="name",
        source_index=0,
        additional_sources=(AdditionalSource(1, "Last"), AdditionalSource(9, "Gone")),
    )
    assert effective_value(("Ada", "Lovelace"), mapping) == "Ada Lovelace"
    assert effective_value((), mapping) == ""


def test_transformation_applies_to_merged_value():
    dataset = TabularDataset.from_rows([["first", "last"], ["ada", "lovelace"]])
    mapper = ColumnMapper([ExpectedColumn(field="name", label="Name")], strategy=NoAutoMatch())
    mapper.set_mapping("name", 0)
    mapper.add_additional_source("name", 1, "last")
    mapper.set_transformation("name", TransformationConfig(type=TransformationType.CAPITALIZE))
    assert mapper.cleaned_export(row for _, row in dataset.data_rows(0)) == [{"name": "Ada Lovelace"}]


def test_preview_and_active_transformations(expected_columns, people_dataset):
    mapper = ColumnMapper(expected_columns, strategy=NoAutoMatch())
    mapper.auto_map(people_dataset.header(0))
    assert mapper.active_transformations() == 3  # name/surname → trim, age → number
    preview = mapper.preview(people_dataset, 0, limit=2)
    assert preview[0] == {"name": "alice", "surname": "smith", "age": "30", "team": "engineering"}
    assert preview[1]["age"] == "abc"

    mapper.set_mapping("team", None)
    assert mapper.preview(people_dataset, 0, limit=1)[0]["team"] is None


def test_cleaned_export_omits_unmapped_fields(expected_columns, people_dataset):
    mapper = ColumnMapper(expected_columns, strategy=NoAutoMatch())
    mapper.auto_map(["Name", "x", "Age"])
    rows = mapper.cleaned_export(row for _, row in people_dataset.data_rows(0))
    assert rows[0] == {"name": "alice", "age": "30"}
    assert rows[2] == {"name": "", "age": ""}
    assert len(rows) == 4


def test_effective_value_primary_then_additional():
    mapping = ColumnMapping(target_field="x", source_index=2, additional_sources=(AdditionalSource(4, "e"),))
    assert effective_value(("a", "b", "c", "d", "e"), mapping) == "c e"
