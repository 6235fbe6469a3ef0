"""Data models for cutlist intake."""

from .part import (
    EDGE_IDS,
    GRAIN_ALONG_L,
    GRAIN_NONE,
    CutPart,
    EdgeOp,
    EdgingOps,
    GrooveOp,
    HoleOp,
    PartAudit,
    PartNotes,
    PartOps,
    RoutingOp,
    Size,
    generate_part_id,
    part_from_dict,
)
from .catalog import MaterialDef, EdgebandDef
from .cutlist import CutlistCapabilities, CutlistDocument

__all__ = [
    "EDGE_IDS",
    "GRAIN_ALONG_L",
    "GRAIN_NONE",
    "CutPart",
    "EdgeOp",
    "EdgingOps",
    "GrooveOp",
    "HoleOp",
    "PartAudit",
    "PartNotes",
    "PartOps",
    "RoutingOp",
    "Size",
    "generate_part_id",
    "part_from_dict",
    "MaterialDef",
    "EdgebandDef",
    "CutlistCapabilities",
    "CutlistDocument",
]
