"""Tests for the free-text parser."""

import pytest

from cutlist_intake.models.part import GRAIN_ALONG_L, GRAIN_NONE
from cutlist_intake.parsers.text_parser import (
    DEFAULT_QUANTITY_WARNING,
    NO_DIMENSIONS_ERROR,
    TextParseOptions,
    extract_edges,
    is_non_data_line,
    parse_text_batch,
    parse_text_line,
    quick_parse,
    split_lines,
)


def test_side_panel_scenario():
    result = parse_text_line("Side panel: 720x560 x2 GL white 18mm L1L2")
    part = result.part

    assert result.errors == []
    assert part.label == "Side panel"
    assert (part.size.L, part.size.W) == (720.0, 560.0)
    assert part.qty == 2
    assert part.thickness_mm == 18.0
    assert part.grain == GRAIN_ALONG_L
    assert part.allow_rotation is False
    assert part.tags == ["white", "18mm"]
    assert part.ops.edging.applied_edges() == ["L1", "L2"]
    assert set(part.ops.edging.edges) == {"L1", "L2"}
    assert result.confidence > 0.7
    assert part.audit.confidence == result.confidence
    assert part.audit.source_method == "paste_parser"


@pytest.mark.parametrize("text", [
    "720x560",
    "720 x 560",
    "720mm x 560mm",
    "L:720 W:560",
    "720 X 560",
    "720×560",
    "length 720 width 560",
    "720 by 560",
])
def test_dimension_patterns(text):
    result = parse_text_line(text)
    assert (result.part.size.L, result.part.size.W) == (720.0, 560.0)
    assert result.field_confidence["dimensions"] >= 0.9


def test_quantity_default_lowers_confidence():
    without = parse_text_line("Shelf 564x280")
    explicit = parse_text_line("Shelf 564x280 qty 3")

    assert without.part.qty == 1
    assert DEFAULT_QUANTITY_WARNING in without.warnings
    assert explicit.part.qty == 3
    assert without.confidence < explicit.confidence


@pytest.mark.parametrize("text, qty", [
    ("Door 700x400 x3", 3),
    ("Door 700x400 3 pcs", 3),
    ("Door 700x400 qty=5", 5),
    ("2x 700x400", 2),
    ("Door 700x400 (4)", 4),
    ("Door 700x400 q6", 6),
])
def test_quantity_forms(text, qty):
    assert parse_text_line(text).part.qty == qty


def test_out_of_range_quantity_is_ignored():
    result = parse_text_line("Door 700x400 qty 5000")
    assert result.part.qty == 1
    assert any("out of range" in w for w in result.warnings)


def test_missing_dimensions_is_fatal():
    result = parse_text_line("just some words")
    assert result.errors == [NO_DIMENSIONS_ERROR]
    assert result.confidence == 0.0
    assert result.part.size.L == 0
    assert not result.ok


def test_empty_input():
    result = parse_text_line("   ")
    assert result.errors == ["Empty input"]


def test_no_grain_keeps_rotation():
    result = parse_text_line("Back 700x400 no grain")
    assert result.part.grain == GRAIN_NONE
    assert result.part.allow_rotation is True
    assert result.field_confidence["grain"] == pytest.approx(0.85)


def test_thickness_and_units():
    part = parse_text_line("Top 72x56 t1.6", TextParseOptions(units="cm")).part
    assert (part.size.L, part.size.W) == (720.0, 560.0)
    assert part.thickness_mm == 16.0

    written_mm = parse_text_line("Top 72x56 t16mm", TextParseOptions(units="cm")).part
    assert written_mm.thickness_mm == 16.0

    default = parse_text_line("Top 720x560").part
    assert default.thickness_mm == 18.0


def test_thickness_in_inches():
    part = parse_text_line("Shelf 24x12 t 0.5", TextParseOptions(units="inch")).part
    assert part.size.L == pytest.approx(609.6)
    assert part.size.W == pytest.approx(304.8)
    assert part.thickness_mm == pytest.approx(12.7)


def test_infer_dim_order():
    part = parse_text_line("Top 560x720", TextParseOptions(dim_order_hint="infer")).part
    assert (part.size.L, part.size.W) == (720.0, 560.0)


def test_invalid_options_raise():
    with pytest.raises(ValueError):
        TextParseOptions(units="furlong")


@pytest.mark.parametrize("text, edges", [
    ("L1 W2", ["L1", "W2"]),
    ("L1L2W1", ["L1", "L2", "W1"]),
    ("all edges", ["L1", "L2", "W1", "W2"]),
    ("4 sides", ["L1", "L2", "W1", "W2"]),
    ("long edges", ["L1", "L2"]),
    ("short edges", ["W1", "W2"]),
    ("EB: 2L", ["L1", "L2"]),
    ("edging=all", ["L1", "L2", "W1", "W2"]),
    ("2L2W", ["L1", "L2", "W1", "W2"]),
    ("2w", ["W1", "W2"]),
    ("L2W", ["L1", "W1", "W2"]),
    ("2L1W", ["L1", "L2", "W1"]),
    ("4S", ["L1", "L2", "W1", "W2"]),
    ("ALL", ["L1", "L2", "W1", "W2"]),
    ("all white", []),
    ("nothing here", []),
])
def test_extract_edges(text, edges):
    assert extract_edges(text) == edges


def test_bare_edge_code_in_line():
    part = parse_text_line("Shelf 720x560 2L2W").part
    assert part.ops.edging.applied_edges() == ["L1", "L2", "W1", "W2"]
    assert part.ops.grooves == []


@pytest.mark.parametrize("text, sides, width, offset", [
    ("Back 700x400 GW2-4-10", ["W2"], 4.0, 10.0),
    ("Side 720x560 GL-4-12", ["L1", "L2"], 4.0, 12.0),
    ("Base 600x560 G-ALL-3-10", ["L1", "L2", "W1", "W2"], 3.0, 10.0),
    ("Back 700x400 groove", ["W2"], 4.0, 10.0),
    ("Side 720x560 dado: L1", ["L1"], 4.0, 10.0),
])
def test_grooves(text, sides, width, offset):
    ops = parse_text_line(text).part.ops

    assert [g.side for g in ops.grooves] == sides
    assert all(g.width_mm == width and g.offset_mm == offset for g in ops.grooves)
    assert ops.edging is None
    assert ops.has_cnc


def test_groove_code_is_not_read_as_grain():
    part = parse_text_line("Side 720x560 GL-4-12").part
    assert part.grain == GRAIN_NONE
    assert part.allow_rotation is True


def test_holes_and_routing():
    door = parse_text_line("Door 716x396 H2-100 x2 L1L2").part
    assert door.qty == 2
    assert [(h.pattern_id, h.notes) for h in door.ops.holes] == [("H2-100", "hinge")]
    assert door.ops.edging.applied_edges() == ["L1", "L2"]

    side = parse_text_line("Side 720x560 32mm system").part
    assert [h.pattern_id for h in side.ops.holes] == ["32MM SYSTEM"]
    assert side.thickness_mm == 18.0
    assert side.tags == []

    base = parse_text_line("Base 720x560 CUTOUT-SINK-500x400 cnc: lock").part
    assert [(r.profile_id, r.notes) for r in base.ops.routing] == [
        ("CUTOUT-SINK-500X400", "cutout"),
        ("LOCK", "cnc"),
    ]
    assert base.qty == 1


def test_pasted_spreadsheet_row():
    result = parse_text_line("1\tSide\t720\t560\t2\tX\tXX")
    part = result.part

    assert result.errors == []
    assert part.label == "Side"
    assert (part.size.L, part.size.W, part.qty) == (720.0, 560.0, 2)
    assert part.ops.edging.applied_edges() == ["L1", "W1", "W2"]
    assert result.field_confidence["dimensions"] == pytest.approx(0.8)
    assert result.confidence == pytest.approx(0.8 * 0.9 * 0.95)


def test_pasted_row_with_spaces_and_material_cell():
    part = parse_text_line("Back panel    700    400    1    White MDF 16mm").part

    assert part.label == "Back panel"
    assert (part.size.L, part.size.W, part.qty) == (700.0, 400.0, 1)
    assert part.thickness_mm == 16.0
    assert part.tags == ["white", "MDF", "16mm"]
    assert part.ops is None


@pytest.mark.parametrize("text, size, qty, label", [
    ("3\t400\t700\t1", (400.0, 700.0), 1, None),
    ("720\t560\t2", (720.0, 560.0), 2, None),
    ("Shelf\t564\t280", (564.0, 280.0), 1, "Shelf"),
])
def test_pasted_row_layouts(text, size, qty, label):
    part = parse_text_line(text).part
    assert (part.size.L, part.size.W) == size
    assert part.qty == qty
    assert part.label == label


def test_pasted_rows_in_batch():
    batch = parse_text_batch("No\tPart\tLength\tWidth\tQty\n1\tSide\t720\t560\t2\n2\tShelf\t564\t280\t4")

    assert batch.total_skipped == 1
    assert [(r.part.label, r.part.qty) for r in batch.parts] == [("Side", 2), ("Shelf", 4)]


def test_free_text_with_double_spaces_is_not_a_pasted_row():
    part = parse_text_line("Side panel:  720x560  x2").part
    assert part.label == "Side panel"
    assert part.qty == 2


def test_voice_transcript():
    options = TextParseOptions(source_method="voice")
    part = parse_text_line("side panel seven twenty by five sixty, two pieces", options).part
    assert (part.size.L, part.size.W) == (720.0, 560.0)
    assert part.qty == 2
    assert part.audit.source_method == "voice"


def test_non_data_lines():
    assert is_non_data_line("Part | Length | Width | Qty")
    assert is_non_data_line("Length Width Qty")
    assert is_non_data_line("-----")
    assert is_non_data_line("Total: 12")
    assert not is_non_data_line("Part A 720x560")


def test_split_lines():
    assert split_lines("a\nb; c | d\n\n") == ["a", "b", "c", "d"]
    assert split_lines("") == []


def test_batch_isolates_lines():
    text = "Label Length Width Qty\nSide 720x560 x2\nnonsense line\nShelf 564x280 qty 4"
    batch = parse_text_batch(text)

    assert batch.total_lines == 4
    assert batch.total_parsed == 2
    assert batch.total_errors == 1
    assert batch.total_skipped == 1
    assert [r.part.label for r in batch.parts] == ["Side", "Shelf"]
    assert batch.failed[0].part.audit.source_ref == "line:3"
    assert batch.parts[1].part.audit.source_ref == "line:4"
    assert 0 < batch.average_confidence <= 1


def test_quick_parse():
    part = quick_parse("Shelf 564x280 qty 2")
    assert part is not None
    assert part.audit.source_method == "manual"
    assert quick_parse("no dimensions") is None
    # 0.5415 without a quantity marker
    assert quick_parse("Shelf 564x280", min_confidence=0.6) is None
