"""Tests for the command-line entry point."""

import json

import openpyxl
import pytest

from cutlist_intake.cli import main


def _write(tmp_path, name, content):
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return str(path)


def test_text_command(tmp_path, capsys):
    path = _write(tmp_path, "parts.txt", "Side panel: 720x560 x2 GL\nShelf 564x280 qty 2\n")

    assert main(["text", path]) == 0
    out = capsys.readouterr().out
    assert "# Cutlist Intake Report" in out
    assert "- Accepted: 2" in out


def test_text_command_with_rejected_part(tmp_path, capsys):
    path = _write(tmp_path, "parts.txt", "Panel 3500x600 qty 1\n")
    assert main(["text", path]) == 1


def test_text_command_missing_file(tmp_path, capsys):
    assert main(["text", str(tmp_path / "missing.txt")]) == 2
    assert "File not found" in capsys.readouterr().err


def test_text_command_json_and_out(tmp_path, capsys):
    path = _write(tmp_path, "parts.txt", "Shelf 564x280 qty 2\n")
    out_path = tmp_path / "out" / "result.json"

    assert main(["text", path, "--json", "--out", str(out_path)]) == 0
    printed = json.loads(capsys.readouterr().out)
    assert printed["report"]["status"] == "READY"
    assert printed["result"]["accepted"][0]["qty"] == 2

    saved = json.loads(out_path.read_text(encoding="utf-8"))
    assert saved["sourceMethod"] == "paste_parser"


def test_text_command_with_catalog(tmp_path, capsys):
    catalog = _write(tmp_path, "catalog.json", json.dumps({
        "materials": [{"id": "MAT-WHITE-18", "name": "White Melamine 18mm", "thickness_mm": 18}],
        "edgebands": [],
    }))
    path = _write(tmp_path, "parts.txt", "Side panel: 720x560 x2 GL white 18mm\n")

    assert main(["text", path, "--catalog", catalog, "--json"]) == 0
    printed = json.loads(capsys.readouterr().out)
    assert printed["result"]["accepted"][0]["material_id"] == "MAT-WHITE-18"
    assert printed["result"]["matching"]["materialsMatched"] == 1


def test_sheet_list_and_parse(tmp_path, capsys):
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Parts"
    for row in [["Part", "Length", "Width", "Qty"], ["Door", 716, 396, 2]]:
        ws.append(row)
    path = tmp_path / "job.xlsx"
    wb.save(path)

    assert main(["sheet", str(path), "--list"]) == 0
    assert "[0] Parts: score" in capsys.readouterr().out

    assert main(["sheet", str(path), "--sheet", "0", "--json"]) == 0
    printed = json.loads(capsys.readouterr().out)
    assert printed["result"]["sheet"] == "Parts"
    assert printed["report"]["acceptedCount"] == 1


def test_sheet_unreadable(tmp_path, capsys):
    path = tmp_path / "broken.xlsx"
    path.write_bytes(b"not a workbook")
    assert main(["sheet", str(path)]) == 2
    assert "Failed to open workbook" in capsys.readouterr().err


def _cutlist(parts, **extra):
    doc = {"org_id": "org-1", "doc_id": "DOC-1", "job_id": "JOB-1", "name": "Kitchen",
           "materials": [], "edgebands": [], "parts": parts}
    doc.update(extra)
    return json.dumps(doc)


PART = {"part_id": "P-1", "qty": 2, "size": {"L": 720, "W": 560},
        "thickness_mm": 18, "material_id": "MAT-WHITE-18"}


def test_validate_command(tmp_path, capsys):
    path = _write(tmp_path, "cutlist.json", _cutlist([PART]))

    assert main(["validate", path]) == 0
    out = capsys.readouterr().out
    assert "Cutlist DOC-1: VALID" in out
    assert "Parts: 1/1 valid, 2 pieces" in out

    assert main(["validate", path, "--require-refs"]) == 1
    assert "UNDEFINED_MATERIALS" in capsys.readouterr().out


def test_validate_command_json(tmp_path, capsys):
    path = _write(tmp_path, "cutlist.json", _cutlist([dict(PART, qty=0)]))

    assert main(["validate", path, "--json"]) == 1
    printed = json.loads(capsys.readouterr().out)
    assert printed["valid"] is False
    assert printed["partResults"]["results"][0]["errors"][0]["code"] == "INVALID_QUANTITY"


def test_validate_command_bad_json(tmp_path, capsys):
    path = _write(tmp_path, "cutlist.json", "{not json")
    assert main(["validate", path]) == 2


def test_validate_command_ignores_unknown_keys(tmp_path, capsys):
    part = dict(PART, ops={"grooves": [{"side": "L1", "depth_mm": 8, "extra": 1}]},
                notes={"operator": "check grain", "colour": "red"})
    caps = {"core_parts": True, "cnc_holes": True, "lasers": True}
    path = _write(tmp_path, "cutlist.json", _cutlist([part], capabilities=caps))

    assert main(["validate", path, "--json"]) == 0
    printed = json.loads(capsys.readouterr().out)
    assert printed["valid"] is True
    assert printed["summary"]["hasCNCOperations"] is True


@pytest.mark.parametrize("content", [
    json.dumps(["not", "a", "cutlist"]),
    _cutlist(["P-1"]),
])
def test_validate_command_malformed_document(tmp_path, capsys, content):
    path = _write(tmp_path, "cutlist.json", content)
    assert main(["validate", path]) == 2
    assert "Invalid cutlist document" in capsys.readouterr().err
