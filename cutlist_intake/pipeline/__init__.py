"""Intake orchestration and cutlist editing."""

from .editor import (
    AddParts,
    CutlistEditor,
    DuplicateParts,
    EditCommand,
    PartPatch,
    RemoveParts,
    UpdatePart,
)
from .intake import IntakePipeline, IntakeResult, merge_into

__all__ = [
    "IntakePipeline",
    "IntakeResult",
    "merge_into",
    "CutlistEditor",
    "EditCommand",
    "AddParts",
    "RemoveParts",
    "UpdatePart",
    "DuplicateParts",
    "PartPatch",
]
