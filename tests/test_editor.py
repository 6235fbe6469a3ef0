"""Tests for reversible cutlist edits."""

import pytest

from cutlist_intake.config import Config
from cutlist_intake.models.cutlist import CutlistDocument
from cutlist_intake.pipeline.editor import (
    AddParts,
    CutlistEditor,
    DuplicateParts,
    PartPatch,
    RemoveParts,
    UpdatePart,
)


@pytest.fixture
def document(make_part):
    return CutlistDocument(
        org_id="org-1",
        doc_id="DOC-1",
        parts=[make_part("A", label="Side"), make_part("B"), make_part("C")],
    )


def test_add_undo_redo(document, make_part):
    editor = CutlistEditor(document)
    editor.execute(AddParts([make_part("D"), make_part("E")]))
    assert document.part_ids == ["A", "B", "C", "D", "E"]
    assert editor.history == ["add 2 part(s)"]

    assert editor.undo()
    assert document.part_ids == ["A", "B", "C"]
    assert editor.can_redo

    assert editor.redo()
    assert document.part_ids == ["A", "B", "C", "D", "E"]
    assert not editor.can_redo


def test_remove_restores_positions(document):
    editor = CutlistEditor(document)
    editor.execute(RemoveParts(["A", "C"]))
    assert document.part_ids == ["B"]

    editor.undo()
    assert document.part_ids == ["A", "B", "C"]


def test_remove_unknown_part_raises(document):
    editor = CutlistEditor(document)
    with pytest.raises(ValueError):
        editor.execute(RemoveParts(["A", "Z"]))
    assert document.part_ids == ["A", "B", "C"]
    assert not editor.can_undo


def test_update_and_undo(document):
    editor = CutlistEditor(document)
    editor.execute(UpdatePart("A", PartPatch(qty=4, length_mm=800, label="")))

    part = document.parts[0]
    assert part.qty == 4
    assert (part.size.L, part.size.W) == (800, 560)
    assert part.label is None

    editor.undo()
    assert part.qty == 1
    assert (part.size.L, part.size.W) == (720, 560)
    assert part.label == "Side"

    editor.redo()
    assert part.qty == 4


def test_empty_patch_is_rejected():
    assert PartPatch().is_empty()
    with pytest.raises(ValueError):
        UpdatePart("A", PartPatch())


def test_update_unknown_part_raises(document):
    with pytest.raises(ValueError):
        CutlistEditor(document).execute(UpdatePart("Z", PartPatch(qty=2)))


def test_duplicate(document):
    editor = CutlistEditor(document)
    command = DuplicateParts(["A"])
    editor.execute(command)

    copy = document.parts[-1]
    assert len(document.parts) == 4
    assert copy.part_id not in ("A", "B", "C")
    assert copy.label == "Side (copy)"
    assert copy is not document.parts[0]

    editor.undo()
    assert document.part_ids == ["A", "B", "C"]

    editor.redo()
    assert document.parts[-1] is copy


def test_new_command_clears_redo(document):
    editor = CutlistEditor(document)
    editor.execute(UpdatePart("B", PartPatch(qty=2)))
    editor.undo()
    editor.execute(UpdatePart("C", PartPatch(qty=3)))

    assert not editor.can_redo
    assert not editor.redo()


def test_undo_log_is_bounded(document):
    editor = CutlistEditor(document, config=Config(max_undo_steps=3))
    for qty in range(2, 8):
        editor.execute(UpdatePart("B", PartPatch(qty=qty)))

    assert len(editor.history) == 3
    while editor.undo():
        pass
    # only the last three changes could be reverted
    assert document.parts[1].qty == 4


def test_nothing_to_undo(document):
    editor = CutlistEditor(document)
    assert not editor.can_undo
    assert not editor.undo()
