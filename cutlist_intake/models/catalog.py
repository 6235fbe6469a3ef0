"""Catalog entries: sheet materials and edgebands registered by an organization."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class MaterialDef:
    """
    A sheet material in an organization's catalog.

    Attributes:
        material_id: Catalog id referenced by CutPart.material_id
        name: Display name ("White Melamine 18mm")
        thickness_mm: Sheet thickness
        core_type: Core/board type (PB, MDF, PLY, HDF, OTHER)
        sku: Supplier SKU, if any
        keywords: Derived search keywords (filled by the matcher)
    """
    material_id: str
    name: str
    thickness_mm: float = 18.0
    core_type: Optional[str] = None
    sku: Optional[str] = None
    keywords: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "material_id": self.material_id,
            "name": self.name,
            "thickness_mm": self.thickness_mm,
        }
        if self.core_type:
            d["core_type"] = self.core_type
        if self.sku:
            d["sku"] = self.sku
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MaterialDef":
        return cls(
            material_id=str(data.get("material_id") or data.get("id", "")),
            name=str(data.get("name", "")),
            thickness_mm=float(data.get("thickness_mm", 18.0) or 18.0),
            core_type=data.get("core_type") or data.get("type"),
            sku=data.get("sku"),
        )


@dataclass
class EdgebandDef:
    """
    An edgeband (edge tape) in an organization's catalog.

    Attributes:
        edgeband_id: Catalog id referenced by EdgeOp.edgeband_id
        name: Display name ("White ABS 0.8mm")
        thickness_mm: Tape thickness
        width_mm: Tape width
        sku: Supplier SKU, if any
        shortcode: Organization shorthand, if any
        keywords: Derived search keywords (filled by the matcher)
    """
    edgeband_id: str
    name: str
    thickness_mm: float = 0.8
    width_mm: float = 22.0
    sku: Optional[str] = None
    shortcode: Optional[str] = None
    keywords: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "edgeband_id": self.edgeband_id,
            "name": self.name,
            "thickness_mm": self.thickness_mm,
            "width_mm": self.width_mm,
        }
        if self.sku:
            d["sku"] = self.sku
        if self.shortcode:
            d["shortcode"] = self.shortcode
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EdgebandDef":
        return cls(
            edgeband_id=str(data.get("edgeband_id") or data.get("id", "")),
            name=str(data.get("name", "")),
            thickness_mm=float(data.get("thickness_mm", 0.8) or 0.8),
            width_mm=float(data.get("width_mm", 22.0) or 22.0),
            sku=data.get("sku"),
            shortcode=data.get("shortcode"),
        )
