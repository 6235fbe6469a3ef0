"""Cutlist document: the working set of parts plus its declared catalog subset."""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

from .catalog import EdgebandDef, MaterialDef
from .part import CutPart, part_from_dict


@dataclass
class CutlistCapabilities:
    """Which operations the shop handling this cutlist can perform."""
    core_parts: bool = True
    edging: bool = False
    grooves: bool = False
    cnc_holes: bool = False
    cnc_routing: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return {
            "core_parts": self.core_parts,
            "edging": self.edging,
            "grooves": self.grooves,
            "cnc_holes": self.cnc_holes,
            "cnc_routing": self.cnc_routing,
        }


@dataclass
class CutlistDocument:
    """
    A complete cutlist.

    Attributes:
        org_id: Owning organization
        doc_id: Document identifier
        job_id: Optional link to a production job
        name: Human-readable name
        capabilities: Declared shop capabilities (None = undeclared)
        materials: Materials declared for this document
        edgebands: Edgebands declared for this document
        parts: The cut parts
    """
    org_id: str
    doc_id: str
    job_id: Optional[str] = None
    name: Optional[str] = None
    capabilities: Optional[CutlistCapabilities] = None
    materials: List[MaterialDef] = field(default_factory=list)
    edgebands: List[EdgebandDef] = field(default_factory=list)
    parts: List[CutPart] = field(default_factory=list)

    @property
    def part_ids(self) -> List[str]:
        return [p.part_id for p in self.parts]

    @property
    def total_pieces(self) -> int:
        return sum(p.qty for p in self.parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        d: Dict[str, Any] = {
            "org_id": self.org_id,
            "doc_id": self.doc_id,
            "materials": [m.to_dict() for m in self.materials],
            "edgebands": [e.to_dict() for e in self.edgebands],
            "parts": [p.to_dict() for p in self.parts],
        }
        if self.job_id:
            d["job_id"] = self.job_id
        if self.name:
            d["name"] = self.name
        if self.capabilities is not None:
            d["capabilities"] = self.capabilities.to_dict()
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CutlistDocument":
        """
        Build a document from its JSON form.

        Unknown keys are ignored. Raises ValueError when the data does not
        have the shape of a cutlist (not an object, parts not objects, ...).
        """
        if not isinstance(data, dict):
            raise ValueError(f"Invalid cutlist document: expected an object, got {type(data).__name__}")
        try:
            caps = data.get("capabilities")
            known = {f.name for f in fields(CutlistCapabilities)}
            return cls(
                org_id=str(data.get("org_id", "")),
                doc_id=str(data.get("doc_id", "")),
                job_id=data.get("job_id"),
                name=data.get("name"),
                capabilities=CutlistCapabilities(
                    **{k: bool(v) for k, v in caps.items() if k in known}) if caps else None,
                materials=[MaterialDef.from_dict(m) for m in data.get("materials", [])],
                edgebands=[EdgebandDef.from_dict(e) for e in data.get("edgebands", [])],
                parts=[part_from_dict(p) for p in data.get("parts", [])],
            )
        except (AttributeError, TypeError) as e:
            raise ValueError(f"Invalid cutlist document: {e}") from e
