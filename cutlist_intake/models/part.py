"""The canonical CutPart record and its nested operations.

A CutPart is one physical panel to be cut. Parsers create drafts, the
matcher attaches catalog ids, validators attach diagnostics, and accepted
parts are merged into a CutlistDocument.

Serialization uses the canonical snake_case field names of the cutlist
format so documents round-trip through JSON unchanged.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


EDGE_IDS = ("L1", "L2", "W1", "W2")

GRAIN_NONE = "none"
GRAIN_ALONG_L = "along_L"

SOURCE_METHODS = {
    "manual",
    "paste_parser",
    "excel_table",
    "file_upload",
    "ocr_template",
    "ocr_generic",
    "voice",
    "api",
}


def generate_part_id(prefix: str = "P") -> str:
    """Generate an opaque part id such as ``P-3f9a1c2b``."""
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@dataclass
class Size:
    """Finished size in millimetres. By convention L >= W."""
    L: float
    W: float

    def to_dict(self) -> Dict[str, float]:
        return {"L": self.L, "W": self.W}


@dataclass
class EdgeOp:
    """Edge banding for a single edge (L1, L2, W1 or W2)."""
    apply: bool = True
    edgeband_id: Optional[str] = None
    thickness_mm: Optional[float] = None
    remarks: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"apply": self.apply}
        if self.edgeband_id is not None:
            d["edgeband_id"] = self.edgeband_id
        if self.thickness_mm is not None:
            d["thickness_mm"] = self.thickness_mm
        if self.remarks:
            d["remarks"] = self.remarks
        return d


@dataclass
class EdgingOps:
    """Edge banding for all edges, keyed by edge id."""
    edges: Dict[str, EdgeOp] = field(default_factory=dict)

    def applied_edges(self) -> List[str]:
        return [edge for edge in EDGE_IDS if edge in self.edges and self.edges[edge].apply]

    def to_dict(self) -> Dict[str, Any]:
        return {"edges": {k: v.to_dict() for k, v in self.edges.items()}}


@dataclass
class GrooveOp:
    """A groove (dado) positioned relative to a reference edge."""
    side: str
    offset_mm: float = 0.0
    groove_id: Optional[str] = None
    profile_id: Optional[str] = None
    depth_mm: Optional[float] = None
    width_mm: Optional[float] = None
    face: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"side": self.side, "offset_mm": self.offset_mm}
        for key in ("groove_id", "profile_id", "depth_mm", "width_mm", "face", "notes"):
            value = getattr(self, key)
            if value is not None:
                d[key] = value
        return d


@dataclass
class HoleOp:
    """A drilling operation, referencing a hole pattern by id."""
    pattern_id: Optional[str] = None
    face: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in (("pattern_id", self.pattern_id), ("face", self.face),
                                  ("notes", self.notes)) if v is not None}


@dataclass
class RoutingOp:
    """A CNC routing operation, referencing a routing profile or tool by id."""
    profile_id: Optional[str] = None
    tool_id: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in (("profile_id", self.profile_id), ("tool_id", self.tool_id),
                                  ("notes", self.notes)) if v is not None}


@dataclass
class PartOps:
    """Optional nested manufacturing operations for a part."""
    edging: Optional[EdgingOps] = None
    grooves: List[GrooveOp] = field(default_factory=list)
    holes: List[HoleOp] = field(default_factory=list)
    routing: List[RoutingOp] = field(default_factory=list)

    @property
    def has_edging(self) -> bool:
        return bool(self.edging and self.edging.edges)

    @property
    def has_cnc(self) -> bool:
        return bool(self.grooves or self.holes or self.routing)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {}
        if self.edging is not None:
            d["edging"] = self.edging.to_dict()
        if self.grooves:
            d["grooves"] = [g.to_dict() for g in self.grooves]
        if self.holes:
            d["holes"] = [h.to_dict() for h in self.holes]
        if self.routing:
            d["routing"] = [r.to_dict() for r in self.routing]
        return d


@dataclass
class PartNotes:
    """Free-text notes for the saw operator, CNC operator or designer."""
    operator: Optional[str] = None
    cnc: Optional[str] = None
    design: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        return {k: v for k, v in (("operator", self.operator), ("cnc", self.cnc),
                                  ("design", self.design)) if v}


@dataclass
class PartAudit:
    """
    Provenance of a part.

    Attributes:
        source_method: How the part was captured (paste_parser, excel_table, voice, ...)
        source_ref: Reference into the source ("line:3", "row:12", a file id)
        parsed_text_snippet: Raw text the part was parsed from (truncated)
        confidence: Overall confidence in [0, 1]
        warnings: Non-fatal parse/validation messages
        errors: Fatal parse/validation messages
        human_verified: True once a person has confirmed the part
        material_match: Serialized material match result (from the matcher)
        edgeband_matches: Serialized edgeband match per edge id
    """
    source_method: str = "paste_parser"
    source_ref: Optional[str] = None
    parsed_text_snippet: Optional[str] = None
    confidence: float = 0.0
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    human_verified: bool = False
    material_match: Optional[Dict[str, Any]] = None
    edgeband_matches: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "source_method": self.source_method,
            "confidence": self.confidence,
            "human_verified": self.human_verified,
        }
        if self.source_ref:
            d["source_ref"] = self.source_ref
        if self.parsed_text_snippet:
            d["parsed_text_snippet"] = self.parsed_text_snippet
        if self.warnings:
            d["warnings"] = list(self.warnings)
        if self.errors:
            d["errors"] = list(self.errors)
        if self.material_match:
            d["material_match"] = self.material_match
        if self.edgeband_matches:
            d["edgeband_matches"] = self.edgeband_matches
        return d


@dataclass
class CutPart:
    """
    Canonical structured representation of one panel to be cut.

    ``allow_rotation`` is authoritative for layout; ``grain`` describes the
    grain direction and is kept consistent with it by the parsers.

    ``material_raw`` and ``edgeband_raw`` carry the unresolved text found by
    a parser until the matcher replaces them with catalog ids.
    """
    part_id: str
    size: Size
    qty: int = 1
    thickness_mm: float = 18.0
    material_id: str = "default"
    label: Optional[str] = None
    grain: str = GRAIN_NONE
    allow_rotation: bool = True
    group_id: Optional[str] = None
    ops: Optional[PartOps] = None
    notes: Optional[PartNotes] = None
    tags: List[str] = field(default_factory=list)
    material_raw: Optional[str] = None
    edgeband_raw: Optional[str] = None
    audit: PartAudit = field(default_factory=PartAudit)

    @property
    def area_mm2(self) -> float:
        return self.size.L * self.size.W

    def edge_ops(self) -> Dict[str, EdgeOp]:
        """Edge operations keyed by edge id (empty when the part has no edging)."""
        if self.ops is None or self.ops.edging is None:
            return {}
        return self.ops.edging.edges

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        d: Dict[str, Any] = {
            "part_id": self.part_id,
            "qty": self.qty,
            "size": self.size.to_dict(),
            "thickness_mm": self.thickness_mm,
            "material_id": self.material_id,
            "grain": self.grain,
            "allow_rotation": self.allow_rotation,
        }
        if self.label:
            d["label"] = self.label
        if self.group_id:
            d["group_id"] = self.group_id
        if self.ops is not None:
            ops = self.ops.to_dict()
            if ops:
                d["ops"] = ops
        if self.notes is not None:
            notes = self.notes.to_dict()
            if notes:
                d["notes"] = notes
        if self.tags:
            d["tags"] = list(self.tags)
        if self.material_raw:
            d["material_raw"] = self.material_raw
        if self.edgeband_raw:
            d["edgeband_raw"] = self.edgeband_raw
        d["audit"] = self.audit.to_dict()
        return d


def part_from_dict(data: Dict[str, Any]) -> CutPart:
    """
    Build a CutPart from its serialized form.

    Missing optional sections fall back to dataclass defaults; missing
    ``size`` becomes 0 x 0 so the validators can report it.
    """
    size = data.get("size") or {}
    ops_data = data.get("ops") or None
    ops = None
    if ops_data:
        edging = None
        edges = (ops_data.get("edging") or {}).get("edges") or {}
        if edges:
            edging = EdgingOps(edges={
                edge: EdgeOp(
                    apply=bool(cfg.get("apply", True)),
                    edgeband_id=cfg.get("edgeband_id"),
                    thickness_mm=cfg.get("thickness_mm"),
                    remarks=cfg.get("remarks"),
                )
                for edge, cfg in edges.items()
            })
        ops = PartOps(
            edging=edging,
            grooves=[
                GrooveOp(
                    side=str(g.get("side", "")),
                    offset_mm=float(g.get("offset_mm", 0) or 0),
                    groove_id=g.get("groove_id"),
                    profile_id=g.get("profile_id"),
                    depth_mm=g.get("depth_mm"),
                    width_mm=g.get("width_mm"),
                    face=g.get("face"),
                    notes=g.get("notes"),
                )
                for g in ops_data.get("grooves", [])
            ],
            holes=[
                HoleOp(pattern_id=h.get("pattern_id"), face=h.get("face"), notes=h.get("notes"))
                for h in ops_data.get("holes", [])
            ],
            routing=[
                RoutingOp(profile_id=r.get("profile_id"), tool_id=r.get("tool_id"),
                          notes=r.get("notes"))
                for r in ops_data.get("routing", [])
            ],
        )

    # Unknown keys are ignored so newer documents still load
    notes_data = data.get("notes")
    if isinstance(notes_data, str):
        notes = PartNotes(operator=notes_data)
    elif notes_data:
        notes = PartNotes(operator=notes_data.get("operator"), cnc=notes_data.get("cnc"),
                          design=notes_data.get("design"))
    else:
        notes = None

    audit_data = data.get("audit") or {}
    audit = PartAudit(
        source_method=audit_data.get("source_method", "api"),
        source_ref=audit_data.get("source_ref"),
        parsed_text_snippet=audit_data.get("parsed_text_snippet"),
        confidence=float(audit_data.get("confidence", 1.0)),
        warnings=list(audit_data.get("warnings", [])),
        errors=list(audit_data.get("errors", [])),
        human_verified=bool(audit_data.get("human_verified", False)),
        material_match=audit_data.get("material_match"),
        edgeband_matches=dict(audit_data.get("edgeband_matches", {})),
    )

    return CutPart(
        part_id=str(data.get("part_id", "")),
        size=Size(L=float(size.get("L", 0) or 0), W=float(size.get("W", 0) or 0)),
        qty=int(data.get("qty", 0) or 0),
        thickness_mm=float(data.get("thickness_mm", 0) or 0),
        material_id=str(data.get("material_id", "") or ""),
        label=data.get("label"),
        grain=data.get("grain", GRAIN_NONE),
        allow_rotation=bool(data.get("allow_rotation", True)),
        group_id=data.get("group_id"),
        ops=ops,
        notes=notes,
        tags=list(data.get("tags", [])),
        material_raw=data.get("material_raw"),
        edgeband_raw=data.get("edgeband_raw"),
        audit=audit,
    )
