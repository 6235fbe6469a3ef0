"""Document-level validation of a complete cutlist."""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..config import Config, default_config
from ..contracts import (
    CutlistSummary,
    CutlistValidationResult,
    QuickValidationResult,
    ValidationError,
)
from ..models.cutlist import CutlistDocument
from ..models.part import CutPart
from ..schemas.validation_rules import (
    CAPABILITY_MISMATCH,
    MISSING_JOB_ID,
    MISSING_NAME,
    MIXED_THICKNESSES,
    NO_PARTS,
    TOO_MANY_PARTS,
    TOO_MANY_PIECES,
    UNDEFINED_EDGEBANDS,
    UNDEFINED_MATERIALS,
    severity_for,
)
from .part_validator import ValidationOptions, validate_parts

logger = logging.getLogger(__name__)


@dataclass
class CutlistValidationOptions:
    """
    Document-level limits plus the part thresholds.

    Attributes:
        max_unique_parts: Maximum number of part records
        max_total_pieces: Maximum sum of quantities
        require_defined_materials: Every material_id must be declared in the document
        require_defined_edgebands: Every edgeband_id must be declared in the document
        part_options: Thresholds passed to the part validator
    """
    max_unique_parts: int = default_config.max_unique_parts
    max_total_pieces: int = default_config.max_total_pieces
    require_defined_materials: bool = False
    require_defined_edgebands: bool = False
    part_options: Optional[ValidationOptions] = None

    @classmethod
    def from_config(cls, config: Config, **overrides) -> "CutlistValidationOptions":
        opts = cls(
            max_unique_parts=config.max_unique_parts,
            max_total_pieces=config.max_total_pieces,
            part_options=ValidationOptions.from_config(config),
        )
        for key, value in overrides.items():
            setattr(opts, key, value)
        return opts


def _diag(field_name: str, code: str, message: str) -> ValidationError:
    return ValidationError(field=field_name, message=message, code=code,
                           severity=severity_for(code))


def _used_edgeband_ids(parts: List[CutPart]) -> List[str]:
    used: List[str] = []
    for part in parts:
        for edge in part.edge_ops().values():
            if edge.edgeband_id and edge.edgeband_id not in used:
                used.append(edge.edgeband_id)
    return used


def validate_cutlist(
    cutlist: CutlistDocument,
    options: Optional[CutlistValidationOptions] = None,
) -> CutlistValidationResult:
    """
    Validate a cutlist document and every part in it.

    Args:
        cutlist: Document to check (not modified)
        options: Limits and part thresholds (default: CutlistValidationOptions())

    Returns:
        CutlistValidationResult with document diagnostics, per-part results
        and a summary
    """
    opts = options or CutlistValidationOptions()
    parts = cutlist.parts
    errors: List[ValidationError] = []
    warnings: List[ValidationError] = []

    part_results = validate_parts(parts, opts.part_options)

    materials_used: List[str] = []
    for part in parts:
        if part.material_id not in materials_used:
            materials_used.append(part.material_id)
    total_pieces = cutlist.total_pieces
    has_edge_banding = any(p.ops is not None and p.ops.has_edging for p in parts)
    has_cnc = any(p.ops is not None and p.ops.has_cnc for p in parts)

    if not (cutlist.job_id or "").strip():
        warnings.append(_diag("job_id", MISSING_JOB_ID, "Cutlist has no job ID"))
    if not (cutlist.name or "").strip():
        warnings.append(_diag("name", MISSING_NAME, "Cutlist has no name"))

    # Counts
    if not parts:
        errors.append(_diag("parts", NO_PARTS, "Cutlist has no parts"))
    if len(parts) > opts.max_unique_parts:
        errors.append(_diag("parts", TOO_MANY_PARTS,
                            f"Too many unique parts ({len(parts)}). Maximum is {opts.max_unique_parts}"))
    if total_pieces > opts.max_total_pieces:
        errors.append(_diag("parts", TOO_MANY_PIECES,
                            f"Too many total pieces ({total_pieces}). Maximum is {opts.max_total_pieces}"))

    # Catalog references
    if opts.require_defined_materials:
        defined = {m.material_id for m in cutlist.materials}
        undefined = [m for m in materials_used if m not in defined]
        if undefined:
            errors.append(_diag("materials", UNDEFINED_MATERIALS,
                                f"Parts reference undefined materials: {', '.join(undefined)}"))
    if opts.require_defined_edgebands and has_edge_banding:
        defined = {e.edgeband_id for e in cutlist.edgebands}
        undefined = [e for e in _used_edgeband_ids(parts) if e not in defined]
        if undefined:
            errors.append(_diag("edgebands", UNDEFINED_EDGEBANDS,
                                f"Parts reference undefined edgebands: {', '.join(undefined)}"))

    # Capabilities
    caps = cutlist.capabilities
    if has_edge_banding and not (caps and caps.edging):
        warnings.append(_diag("capabilities", CAPABILITY_MISMATCH,
                              "Parts have edge banding but edging capability is disabled"))
    if has_cnc and not (caps and (caps.cnc_holes or caps.cnc_routing)):
        warnings.append(_diag("capabilities", CAPABILITY_MISMATCH,
                              "Parts have CNC operations but CNC capabilities are disabled"))

    # One material at several thicknesses
    thicknesses: Dict[str, List[float]] = {}
    for part in parts:
        seen = thicknesses.setdefault(part.material_id, [])
        if part.thickness_mm not in seen:
            seen.append(part.thickness_mm)
    for material_id, values in thicknesses.items():
        if len(values) > 1:
            listed = ", ".join(f"{v:g}" for v in values)
            warnings.append(_diag("parts", MIXED_THICKNESSES,
                                  f'Material "{material_id}" has multiple thicknesses: {listed}mm'))

    valid_parts = sum(1 for r in part_results.results if r.valid)
    summary = CutlistSummary(
        total_parts=len(parts),
        valid_parts=valid_parts,
        invalid_parts=len(parts) - valid_parts,
        total_pieces=total_pieces,
        materials_used=materials_used,
        has_edge_banding=has_edge_banding,
        has_cnc_operations=has_cnc,
    )

    result = CutlistValidationResult(
        cutlist_errors=errors,
        cutlist_warnings=warnings,
        part_results=part_results,
        summary=summary,
    )
    logger.info("Cutlist %s: %s (%d/%d parts valid)", cutlist.doc_id,
                "valid" if result.valid else "invalid", valid_parts, len(parts))
    return result


def quick_validate_cutlist(parts: List[CutPart]) -> QuickValidationResult:
    """
    Fast-path import check.

    Valid when at least one part has positive L, W and quantity and no part
    id is duplicated. Up to five duplicate ids are listed.
    """
    if not parts:
        return QuickValidationResult(valid=False, errors=["No parts found"])

    errors = []
    if not any(p.size is not None and p.size.L > 0 and p.size.W > 0 and p.qty > 0 for p in parts):
        errors.append("No valid parts with dimensions")

    counts = Counter(p.part_id for p in parts)
    duplicates = [part_id for part_id, count in counts.items() if count > 1]
    if duplicates:
        errors.append(f"Duplicate part IDs: {', '.join(duplicates[:5])}")

    return QuickValidationResult(valid=not errors, errors=errors)
