"""Tests for grid parsing and column mapping."""

import pytest

from cutlist_intake.models.part import GRAIN_ALONG_L, GRAIN_NONE
from cutlist_intake.parsers.tabular_parser import (
    ColumnMapping,
    TabularParseOptions,
    auto_detect_mapping,
    parse_edging_cell,
    parse_grain,
    parse_rotation,
    parse_tabular,
    preview_mapping,
    validate_mapping,
)


GRID = [
    ["Part", "Length", "Width", "Qty", "Material", "Grain", "Edging", "Notes"],
    ["Side", "720", "560", "2", "White Melamine", "yes", "L1,L2", "drill later"],
    ["Shelf", "564", "280", "", "", "", "", ""],
    ["Broken", "", "300", "1", "", "", "", ""],
    ["", "", "", "", "", "", "", ""],
    ["Top", "1,200", "600", "abc", "", "no grain", "all", ""],
]


def test_auto_detect_mapping():
    mapping = auto_detect_mapping(GRID[0])
    assert mapping.label == 0
    assert mapping.L == 1
    assert mapping.W == 2
    assert mapping.qty == 3
    assert mapping.material == 4
    assert mapping.grain == 5
    assert mapping.edging == 6
    assert mapping.notes == 7
    assert mapping.thickness_mm is None


def test_auto_detect_mapping_unit_suffix_and_per_edge_columns():
    mapping = auto_detect_mapping(["Description", "L (mm)", "W (mm)", "Thk", "L1", "L2", "W1", "W2"])
    assert (mapping.label, mapping.L, mapping.W, mapping.thickness_mm) == (0, 1, 2, 3)
    assert (mapping.edging_L1, mapping.edging_L2, mapping.edging_W1, mapping.edging_W2) == (4, 5, 6, 7)


def test_validate_mapping():
    assert validate_mapping(ColumnMapping(L=0, W=1)) == (True, [])
    assert validate_mapping(ColumnMapping(L=0)) == (False, ["W"])


def test_parse_tabular_rows():
    result = parse_tabular(GRID)

    assert result.total_rows == 5
    assert len(result.rows) == 4          # blank row skipped
    assert result.success_count == 3
    assert result.error_count == 1

    side, shelf, broken, top = result.rows
    assert side.part.size.L == 720.0
    assert side.part.qty == 2
    assert side.part.material_raw == "White Melamine"
    assert side.part.grain == GRAIN_ALONG_L
    assert side.part.allow_rotation is False
    assert side.part.ops.edging.applied_edges() == ["L1", "L2"]
    assert side.part.notes.operator == "drill later"
    assert side.part.audit.source_ref == "row:1"
    assert side.confidence == 1.0

    assert shelf.part.qty == 1
    assert shelf.part.material_id == "default"
    assert shelf.part.thickness_mm == 18.0
    assert "Quantity not specified, defaulting to 1" in shelf.warnings
    assert shelf.confidence == 1.0

    assert broken.part is None
    assert broken.confidence == 0.0
    assert broken.errors == ["Missing or invalid Length"]

    assert top.part.size.L == 1200.0
    assert top.part.grain == GRAIN_NONE
    assert top.part.allow_rotation is True
    assert top.part.ops.edging.applied_edges() == ["L1", "L2", "W1", "W2"]
    assert top.confidence == pytest.approx(0.9)

    assert len(result.parts) == 3


def test_parse_tabular_explicit_mapping_by_name():
    grid = [["Name", "A", "B", "Count"], ["Door", "700", "400", "3"]]
    mapping = ColumnMapping(label="name", L="A", W="B", qty="Count")
    result = parse_tabular(grid, TabularParseOptions(mapping=mapping, source_method="api"))

    part = result.rows[0].part
    assert part.label == "Door"
    assert (part.size.L, part.size.W, part.qty) == (700.0, 400.0, 3)
    assert part.audit.source_method == "api"
    assert result.mapping == {"label": "name", "L": "A", "W": "B", "qty": "Count"}


def test_parse_tabular_row_range_and_numeric_cells():
    grid = [
        ["Job 42"],
        ["Part", "Length", "Width", "Qty", "Rotate"],
        ["A", 720.0, 560.0, 2.0, "no"],
        ["B", 500, 300, 1, "yes"],
        ["C", 400, 200, 1, ""],
    ]
    options = TabularParseOptions(header_row_index=1, data_row_end=3)
    result = parse_tabular(grid, options)

    assert [r.part.label for r in result.rows] == ["A", "B"]
    assert result.rows[0].part.qty == 2
    assert result.rows[0].part.allow_rotation is False
    assert result.rows[1].part.allow_rotation is True


def test_group_and_thickness_columns():
    grid = [["Part", "Length", "Width", "Thk", "Cabinet"], ["Door", "716", "396", "16", "C-01"]]
    part = parse_tabular(grid).rows[0].part

    assert part.thickness_mm == 16.0
    assert part.group_id == "C-01"


def test_non_positive_thickness_falls_back_to_default():
    grid = [["Part", "Length", "Width", "Thk"], ["Door", "716", "396", "-5"], ["Panel", "700", "400", "0"]]
    door, panel = parse_tabular(grid).rows

    assert door.part.thickness_mm == 18.0
    assert "Invalid thickness -5, defaulting to 18mm" in door.warnings
    assert panel.part.thickness_mm == 18.0
    assert "Invalid thickness 0, defaulting to 18mm" in panel.part.audit.warnings


def test_missing_required_columns_yields_row_errors():
    result = parse_tabular([["Part", "Qty"], ["A", "2"]])
    assert result.success_count == 0
    assert result.rows[0].errors == ["Missing or invalid Length"]


def test_empty_grid():
    result = parse_tabular([])
    assert result.rows == []
    assert result.total_rows == 0


@pytest.mark.parametrize("cell, grain", [
    ("yes", GRAIN_ALONG_L),
    ("GL", GRAIN_ALONG_L),
    ("along length", GRAIN_ALONG_L),
    ("no grain", GRAIN_NONE),
    ("", GRAIN_NONE),
    ("0", GRAIN_NONE),
])
def test_parse_grain(cell, grain):
    assert parse_grain(cell) == grain


def test_parse_rotation():
    assert parse_rotation("no") is False
    assert parse_rotation("Y") is True
    assert parse_rotation("") is None
    assert parse_rotation("maybe") is None


@pytest.mark.parametrize("cell, edges", [
    ("yes", ["L1", "L2", "W1", "W2"]),
    ("✓", ["L1", "L2", "W1", "W2"]),
    ("L1L2", ["L1", "L2"]),
    ("L2L1", ["L1", "L2"]),
    ("2L", ["L1", "L2"]),
    ("2L2W", ["L1", "L2", "W1", "W2"]),
    ("WW", ["W1", "W2"]),
    ("all", ["L1", "L2", "W1", "W2"]),
    ("L1, W2", ["L1", "W2"]),
    ("", []),
])
def test_parse_edging_cell(cell, edges):
    assert parse_edging_cell(cell) == edges


def test_preview_mapping():
    preview = preview_mapping(GRID, limit=2)
    assert len(preview) == 2
    assert preview[0]["L"] == "720"
    assert preview[1]["label"] == "Shelf"
