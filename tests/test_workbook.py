"""Tests for CSV splitting, workbook loading and parts-sheet selection."""

import openpyxl
import pytest

from cutlist_intake.parsers.workbook import (
    WorkbookReadError,
    detect_delimiter,
    list_sheets,
    load_workbook_grids,
    parse_csv_text,
    parse_workbook,
    score_sheet,
    select_parts_sheet,
    split_csv_line,
)

PARTS_ROWS = [
    ["Part", "Length", "Width", "Qty", "Material"],
    ["Side", 720, 560, 2, "White Melamine 18mm"],
    ["Top", 800, 560, 1, "White Melamine 18mm"],
    ["Bottom", 800, 560, 1, "White Melamine 18mm"],
    ["Shelf", 764, 540, 3, "White Melamine 18mm"],
    ["Door", 716, 396, 2, "Oak Veneer 18mm"],
]


def _write_workbook(path, sheets):
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for name, rows in sheets:
        ws = wb.create_sheet(title=name)
        for row in rows:
            ws.append(row)
    wb.save(path)
    return path


@pytest.fixture
def three_sheet_workbook(tmp_path):
    return _write_workbook(tmp_path / "job.xlsx", [
        ("Project Info", [["Project", "Kitchen"], ["Client", "Smith"]]),
        ("Parts List", PARTS_ROWS),
        ("Materials Reference", [["Material", "Thickness"], ["White Melamine", 18], ["Oak", 18]]),
    ])


def test_three_sheet_selection(three_sheet_workbook):
    sheets = list_sheets(three_sheet_workbook)

    assert [s.name for s in sheets] == ["Project Info", "Parts List", "Materials Reference"]
    assert select_parts_sheet(sheets) == 1
    parts_sheet = sheets[1]
    assert parts_sheet.score == 10 + 20 + 3 + 2
    assert parts_sheet.row_count == 6
    assert parts_sheet.column_count == 5
    assert parts_sheet.headers == ["Part", "Length", "Width", "Qty", "Material"]
    assert sheets[2].score < 0


def test_parse_workbook_default_sheet(three_sheet_workbook):
    info, result = parse_workbook(three_sheet_workbook)

    assert info.name == "Parts List"
    assert result.success_count == 5
    assert result.error_count == 0
    side = result.rows[0].part
    assert (side.label, side.size.L, side.size.W, side.qty) == ("Side", 720.0, 560.0, 2)
    assert side.material_raw == "White Melamine 18mm"
    assert side.audit.source_method == "file_upload"


def test_parse_workbook_explicit_sheet(three_sheet_workbook):
    info, _ = parse_workbook(three_sheet_workbook, sheet="materials reference")
    assert info.index == 2

    info, _ = parse_workbook(three_sheet_workbook, sheet=0)
    assert info.name == "Project Info"

    # unknown names fall back to the best sheet
    info, _ = parse_workbook(three_sheet_workbook, sheet="Nope")
    assert info.name == "Parts List"


def test_header_row_below_title(tmp_path):
    path = _write_workbook(tmp_path / "titled.xlsx", [
        ("Cutlist", [["Cut list for job 7"]] + PARTS_ROWS),
    ])
    info, result = parse_workbook(path)

    assert info.header_row_index == 1
    assert result.headers[:3] == ["Part", "Length", "Width"]
    assert result.success_count == 5


def test_workbook_from_bytes(three_sheet_workbook):
    sheets = load_workbook_grids(three_sheet_workbook.read_bytes())
    assert [name for name, _ in sheets][1] == "Parts List"
    assert sheets[1][1][1] == ["Side", 720, 560, 2, "White Melamine 18mm"]


def test_unreadable_workbook_raises():
    with pytest.raises(WorkbookReadError):
        load_workbook_grids(b"definitely not a zip file")


def test_score_sheet_penalizes_documentation_sheets():
    grid = [["Step", "Instruction"], ["1", "Measure twice"]]
    assert score_sheet("Instructions", grid).score == -15
    assert score_sheet("Sheet1", []).score == 0


def test_select_parts_sheet_ties_keep_first():
    grid = [["a"]]
    sheets = [score_sheet("One", grid, 0), score_sheet("Two", grid, 1)]
    assert select_parts_sheet(sheets) == 0
    assert select_parts_sheet([]) == 0


def test_csv_helpers():
    assert split_csv_line('Side,"720, approx",560') == ["Side", "720, approx", "560"]
    assert detect_delimiter("Part;Length;Width\nA;1;2") == ";"
    assert detect_delimiter("Part\tLength\tWidth") == "\t"
    assert detect_delimiter('"a;b",c,d') == ","
    assert detect_delimiter("single") == ","

    grid = parse_csv_text('Part,Length,Width\n\n"Side, left",720,560\n')
    assert grid == [["Part", "Length", "Width"], ["Side, left", "720", "560"]]
    assert parse_csv_text("") == []


def test_csv_file_is_a_single_sheet(tmp_path):
    path = tmp_path / "parts.csv"
    path.write_text("Part;Length;Width;Qty\nSide;720;560;2\nShelf;564;280;4\n", encoding="utf-8")

    sheets = list_sheets(path)
    assert [s.name for s in sheets] == ["parts"]

    info, result = parse_workbook(path)
    assert result.success_count == 2
    assert result.rows[1].part.qty == 4
