"""Tests for the intake orchestrator: parse, match, validate, triage."""

import asyncio

import openpyxl
import pytest

from cutlist_intake.config import Config
from cutlist_intake.models.cutlist import CutlistDocument
from cutlist_intake.parsers.text_parser import NO_DIMENSIONS_ERROR
from cutlist_intake.pipeline.intake import IntakePipeline, IntakeResult, merge_into


TEXT = """Side panel: 720x560 x2 GL white 18mm L1L2
Shelf 564x280
Panel 3500x600 qty 1
nonsense line"""


def test_from_text_triage():
    result = IntakePipeline().from_text(TEXT)

    assert result.source_method == "paste_parser"
    assert [p.label for p in result.accepted] == ["Side panel"]
    assert [p.label for p in result.review] == ["Shelf"]
    assert [p.label for p in result.rejected] == ["Panel"]
    assert result.parse_errors == [{
        "ref": "line:4",
        "text": "nonsense line",
        "errors": [NO_DIMENSIONS_ERROR],
    }]
    assert result.matching is None
    assert len(result.validation.results) == 3


def test_validation_messages_land_on_audit():
    result = IntakePipeline().from_text("Panel 3500x600 qty 1")
    panel = result.rejected[0]

    assert any("exceeds the maximum" in e for e in panel.audit.errors)
    assert result.validation.results[0].part_id == panel.part_id


def test_min_confidence_threshold():
    strict = IntakePipeline(min_confidence=0.9).from_text("Side panel: 720x560 x2 GL")
    assert strict.review and not strict.accepted

    lenient = IntakePipeline(min_confidence=0.5).from_text("Shelf 564x280")
    assert lenient.accepted and not lenient.review


def test_config_threshold_is_the_default():
    pipeline = IntakePipeline(config=Config(auto_accept_confidence=0.5))
    assert pipeline.min_confidence == 0.5
    assert pipeline.from_text("Shelf 564x280").accepted


def test_from_text_with_catalog(catalog):
    pipeline = asyncio.run(IntakePipeline.for_org("org-1", catalog))
    result = pipeline.from_text(TEXT)

    side = result.accepted[0]
    assert side.material_id == "MAT-WHITE-18"
    assert side.audit.confidence == pytest.approx(0.855)
    assert result.review[0].material_id == "MAT-WHITE-18"
    assert result.matching.materials_matched == 1
    assert result.matching.edgebands_matched == 2


def test_from_rows():
    grid = [
        ["Part", "Length", "Width", "Qty", "Grain"],
        ["Side", "720", "560", "2", "yes"],
        ["Broken", "", "300", "1", ""],
        ["Top", "800", "560", "abc", ""],
    ]
    result = IntakePipeline().from_rows(grid)

    assert result.source_method == "excel_table"
    assert [p.label for p in result.accepted] == ["Side", "Top"]
    assert result.parse_errors[0]["ref"] == "row:2"
    assert "Broken" in result.parse_errors[0]["text"]
    assert result.parse_errors[0]["errors"] == ["Missing or invalid Length"]


def test_from_workbook(tmp_path):
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Parts"
    for row in [["Part", "Length", "Width", "Qty"], ["Door", 716, 396, 2], ["Back", 900, 700, 1]]:
        ws.append(row)
    path = tmp_path / "doors.xlsx"
    wb.save(path)

    result = IntakePipeline().from_workbook(path)

    assert result.sheet == "Parts"
    assert result.source_method == "file_upload"
    assert [p.label for p in result.accepted] == ["Door", "Back"]
    assert result.accepted[0].audit.source_method == "file_upload"


def test_process_empty():
    result = IntakePipeline().process([])
    assert result.parts == []
    assert result.average_confidence == 0.0


def test_to_dict():
    data = IntakePipeline().from_text(TEXT).to_dict()
    assert data["sourceMethod"] == "paste_parser"
    assert len(data["accepted"]) == 1
    assert data["validation"]["totalErrors"] >= 1
    assert data["matching"] is None


def test_merge_into_reissues_colliding_ids(make_part):
    existing = make_part("P-1")
    document = CutlistDocument(org_id="org-1", doc_id="DOC-1", parts=[existing])

    result = IntakeResult(accepted=[make_part("P-1"), make_part("P-2")],
                          review=[make_part("P-3")])
    added = merge_into(document, result)

    assert len(added) == 2
    assert added[0] != "P-1"
    assert added[1] == "P-2"
    assert len(set(document.part_ids)) == 3


def test_merge_into_with_review(make_part):
    document = CutlistDocument(org_id="org-1", doc_id="DOC-1")
    result = IntakeResult(accepted=[make_part("P-1")], review=[make_part("P-2")])

    assert merge_into(document, result, include_review=True) == ["P-1", "P-2"]
    assert document.part_ids == ["P-1", "P-2"]
