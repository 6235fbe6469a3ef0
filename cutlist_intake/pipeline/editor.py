"""Reversible edits to a cutlist document.

Every change is a command object that knows how to apply and revert itself.
The editor keeps an undo log (bounded by config.max_undo_steps) and a redo
log; executing a new command clears the redo log.

Usage:
    editor = CutlistEditor(document)
    editor.execute(AddParts(result.accepted))
    editor.execute(UpdatePart(part_id, PartPatch(qty=4)))
    editor.undo()   # qty back to its previous value
"""

import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from typing import List, Optional, Tuple

from ..config import Config, default_config
from ..models.cutlist import CutlistDocument
from ..models.part import CutPart, Size, generate_part_id

logger = logging.getLogger(__name__)


@dataclass
class PartPatch:
    """
    Field updates for one part. ``None`` leaves a field unchanged.

    Attributes:
        label: New label ("" clears it)
        qty: New quantity
        length_mm: New length (size.L)
        width_mm: New width (size.W)
        thickness_mm: New thickness
        material_id: New material id
        grain: New grain tag ("none" | "along_L")
        allow_rotation: New rotation flag
        group_id: New group ("" clears it)
    """
    label: Optional[str] = None
    qty: Optional[int] = None
    length_mm: Optional[float] = None
    width_mm: Optional[float] = None
    thickness_mm: Optional[float] = None
    material_id: Optional[str] = None
    grain: Optional[str] = None
    allow_rotation: Optional[bool] = None
    group_id: Optional[str] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def apply(self, part: CutPart) -> "PartPatch":
        """
        Apply to ``part`` in place.

        Returns:
            The patch that restores the previous values
        """
        previous = PartPatch()
        if self.label is not None:
            previous.label = part.label or ""
            part.label = self.label or None
        if self.qty is not None:
            previous.qty = part.qty
            part.qty = self.qty
        if self.length_mm is not None or self.width_mm is not None:
            previous.length_mm, previous.width_mm = part.size.L, part.size.W
            part.size = Size(
                L=part.size.L if self.length_mm is None else self.length_mm,
                W=part.size.W if self.width_mm is None else self.width_mm,
            )
        if self.thickness_mm is not None:
            previous.thickness_mm = part.thickness_mm
            part.thickness_mm = self.thickness_mm
        if self.material_id is not None:
            previous.material_id = part.material_id
            part.material_id = self.material_id
        if self.grain is not None:
            previous.grain = part.grain
            part.grain = self.grain
        if self.allow_rotation is not None:
            previous.allow_rotation = part.allow_rotation
            part.allow_rotation = self.allow_rotation
        if self.group_id is not None:
            previous.group_id = part.group_id or ""
            part.group_id = self.group_id or None
        return previous


def _find(document: CutlistDocument, part_id: str) -> Tuple[int, CutPart]:
    for index, part in enumerate(document.parts):
        if part.part_id == part_id:
            return index, part
    raise ValueError(f"Part {part_id!r} is not in cutlist {document.doc_id!r}")


class EditCommand(ABC):
    """A reversible change to a cutlist document."""

    # Override in subclasses
    description: str = "edit"

    @abstractmethod
    def apply(self, document: CutlistDocument) -> None:
        """Apply the change to ``document`` in place."""

    @abstractmethod
    def revert(self, document: CutlistDocument) -> None:
        """Undo a previous apply()."""


class AddParts(EditCommand):
    """Append parts to the document."""

    def __init__(self, parts: List[CutPart]):
        self.parts = list(parts)
        self.description = f"add {len(self.parts)} part(s)"

    def apply(self, document: CutlistDocument) -> None:
        document.parts.extend(self.parts)

    def revert(self, document: CutlistDocument) -> None:
        added = {id(p) for p in self.parts}
        document.parts = [p for p in document.parts if id(p) not in added]


class RemoveParts(EditCommand):
    """Remove parts by id; reverting restores them at their original positions."""

    def __init__(self, part_ids: List[str]):
        self.part_ids = list(part_ids)
        self.description = f"remove {len(self.part_ids)} part(s)"
        self._removed: List[Tuple[int, CutPart]] = []

    def apply(self, document: CutlistDocument) -> None:
        for part_id in self.part_ids:
            _find(document, part_id)
        wanted = set(self.part_ids)
        self._removed = [(i, p) for i, p in enumerate(document.parts) if p.part_id in wanted]
        document.parts = [p for p in document.parts if p.part_id not in wanted]

    def revert(self, document: CutlistDocument) -> None:
        for index, part in self._removed:
            document.parts.insert(index, part)


class UpdatePart(EditCommand):
    """Apply a PartPatch to one part."""

    def __init__(self, part_id: str, patch: PartPatch):
        if patch.is_empty():
            raise ValueError("PartPatch has no changes")
        self.part_id = part_id
        self.patch = patch
        self.description = f"update {part_id}"
        self._inverse: Optional[PartPatch] = None

    def apply(self, document: CutlistDocument) -> None:
        _, part = _find(document, self.part_id)
        self._inverse = self.patch.apply(part)

    def revert(self, document: CutlistDocument) -> None:
        _, part = _find(document, self.part_id)
        if self._inverse is not None:
            self._inverse.apply(part)


class DuplicateParts(EditCommand):
    """Append copies of parts with fresh ids and a "(copy)" label suffix."""

    def __init__(self, part_ids: List[str]):
        self.part_ids = list(part_ids)
        self.description = f"duplicate {len(self.part_ids)} part(s)"
        self.copies: List[CutPart] = []

    def apply(self, document: CutlistDocument) -> None:
        if self.copies:
            # Redo: restore the same copies
            document.parts.extend(self.copies)
            return
        for part_id in self.part_ids:
            _, part = _find(document, part_id)
            duplicate = copy.deepcopy(part)
            duplicate.part_id = generate_part_id()
            duplicate.label = f"{part.label} (copy)" if part.label else None
            self.copies.append(duplicate)
        document.parts.extend(self.copies)

    def revert(self, document: CutlistDocument) -> None:
        added = {id(p) for p in self.copies}
        document.parts = [p for p in document.parts if id(p) not in added]


class CutlistEditor:
    """
    Applies edit commands to one document with undo/redo.

    Args:
        document: The cutlist being edited (mutated in place)
        config: Supplies max_undo_steps
    """

    def __init__(self, document: CutlistDocument, config: Optional[Config] = None):
        self.document = document
        self.config = config or default_config
        self._undo: List[EditCommand] = []
        self._redo: List[EditCommand] = []

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def history(self) -> List[str]:
        """Descriptions of the undoable commands, oldest first."""
        return [cmd.description for cmd in self._undo]

    def execute(self, command: EditCommand) -> None:
        """
        Apply a command and record it.

        Raises:
            ValueError: If the command references a part not in the document
        """
        command.apply(self.document)
        self._undo.append(command)
        if len(self._undo) > self.config.max_undo_steps:
            self._undo.pop(0)
        self._redo.clear()
        logger.debug("Applied %s to %s", command.description, self.document.doc_id)

    def undo(self) -> bool:
        """Revert the last command. Returns False when there is nothing to undo."""
        if not self._undo:
            return False
        command = self._undo.pop()
        command.revert(self.document)
        self._redo.append(command)
        return True

    def redo(self) -> bool:
        """Re-apply the last undone command. Returns False when there is nothing to redo."""
        if not self._redo:
            return False
        command = self._redo.pop()
        command.apply(self.document)
        self._undo.append(command)
        return True
