"""Field-level validation of cut parts.

Rules:
- Required fields (part_id, size, thickness_mm, qty, material_id) are hard
  errors; business rules are only evaluated once they are present
- Dimensions outside [min, max] are errors
- Area below the minimum is a warning, above the maximum an error
- L < W is a warning (L is the long side by convention)
- A part that fits the standard sheet in neither orientation is an error; one
  that fits only when rotated is an error while rotation is disabled
- Thickness must be positive; a non-standard thickness is only a warning
- Quantity must be within [1, max_quantity]
- Grained material with no grain and rotation allowed is a warning
- Long labels are a warning

Invalid parts are never modified -- the result carries the diagnostics.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional

from ..config import Config, default_config
from ..contracts import (
    PartsValidationResult,
    QuickValidationResult,
    ValidationError,
    ValidationResult,
)
from ..models.part import GRAIN_NONE, CutPart
from ..schemas.validation_rules import (
    AREA_TOO_LARGE,
    AREA_TOO_SMALL,
    DIMENSION_ORDER,
    DIMENSION_TOO_LARGE,
    DIMENSION_TOO_SMALL,
    DUPLICATE_PART_ID,
    GRAIN_NOT_SPECIFIED,
    INVALID_QUANTITY,
    INVALID_THICKNESS,
    LABEL_TOO_LONG,
    NONSTANDARD_THICKNESS,
    OVERSIZED_PART,
    QUANTITY_TOO_HIGH,
    REQUIRED_FIELD,
    REQUIRED_FIELD_MESSAGES,
    ROTATION_REQUIRED,
    severity_for,
)

logger = logging.getLogger(__name__)


@dataclass
class ValidationOptions:
    """Thresholds for part validation. Defaults come from default_config."""
    min_dimension_mm: float = default_config.min_dimension_mm
    max_dimension_mm: float = default_config.max_dimension_mm
    min_area_mm2: float = default_config.min_area_mm2
    max_area_mm2: float = default_config.max_area_mm2
    allowed_thicknesses_mm: List[float] = field(
        default_factory=lambda: list(default_config.allowed_thicknesses_mm)
    )
    grained_material_ids: List[str] = field(
        default_factory=lambda: list(default_config.grained_material_ids)
    )
    max_quantity: int = default_config.max_quantity
    allow_oversized: bool = default_config.allow_oversized
    standard_sheet_length_mm: float = default_config.standard_sheet_length_mm
    standard_sheet_width_mm: float = default_config.standard_sheet_width_mm
    max_label_length: int = default_config.max_label_length

    @classmethod
    def from_config(cls, config: Config) -> "ValidationOptions":
        return cls(
            min_dimension_mm=config.min_dimension_mm,
            max_dimension_mm=config.max_dimension_mm,
            min_area_mm2=config.min_area_mm2,
            max_area_mm2=config.max_area_mm2,
            allowed_thicknesses_mm=list(config.allowed_thicknesses_mm),
            grained_material_ids=list(config.grained_material_ids),
            max_quantity=config.max_quantity,
            allow_oversized=config.allow_oversized,
            standard_sheet_length_mm=config.standard_sheet_length_mm,
            standard_sheet_width_mm=config.standard_sheet_width_mm,
            max_label_length=config.max_label_length,
        )


def _add(result: ValidationResult, field_name: str, code: str, message: str) -> None:
    diagnostic = ValidationError(field=field_name, message=message, code=code,
                                 severity=severity_for(code))
    if diagnostic.severity == "error":
        result.errors.append(diagnostic)
    else:
        result.warnings.append(diagnostic)


def _missing_fields(part: CutPart) -> List[str]:
    missing = []
    if not part.part_id:
        missing.append("part_id")
    if part.size is None or not part.size.L or not part.size.W or part.size.L <= 0 or part.size.W <= 0:
        missing.append("size")
    if part.thickness_mm is None:
        missing.append("thickness_mm")
    if part.qty is None:
        missing.append("qty")
    if not part.material_id:
        missing.append("material_id")
    return missing


def _check_dimensions(part: CutPart, opts: ValidationOptions, result: ValidationResult) -> None:
    for name, value in (("size.L", part.size.L), ("size.W", part.size.W)):
        if value < opts.min_dimension_mm:
            _add(result, name, DIMENSION_TOO_SMALL,
                 f"{name} {value:g}mm is below the minimum of {opts.min_dimension_mm:g}mm")
        elif value > opts.max_dimension_mm:
            _add(result, name, DIMENSION_TOO_LARGE,
                 f"{name} {value:g}mm exceeds the maximum of {opts.max_dimension_mm:g}mm")

    area = part.area_mm2
    if area < opts.min_area_mm2:
        _add(result, "size", AREA_TOO_SMALL,
             f"Part area {area:g}mm² is below {opts.min_area_mm2:g}mm²")
    elif area > opts.max_area_mm2:
        _add(result, "size", AREA_TOO_LARGE,
             f"Part area {area:g}mm² exceeds {opts.max_area_mm2:g}mm²")

    if part.size.L < part.size.W:
        _add(result, "size", DIMENSION_ORDER,
             f"Length ({part.size.L:g}) is less than width ({part.size.W:g}); consider swapping")


def _check_oversize(part: CutPart, opts: ValidationOptions, result: ValidationResult) -> None:
    if opts.allow_oversized:
        return
    sheet_l, sheet_w = opts.standard_sheet_length_mm, opts.standard_sheet_width_mm
    L, W = part.size.L, part.size.W
    if L <= sheet_l and W <= sheet_w:
        return
    if L > sheet_w or W > sheet_l:
        _add(result, "size", OVERSIZED_PART,
             f"Part {L:g}x{W:g}mm does not fit the {sheet_l:g}x{sheet_w:g}mm sheet in either orientation")
    elif not part.allow_rotation:
        _add(result, "allow_rotation", ROTATION_REQUIRED,
             f"Part {L:g}x{W:g}mm only fits the sheet rotated, but rotation is disabled")


def validate_part(part: CutPart, options: Optional[ValidationOptions] = None) -> ValidationResult:
    """
    Validate a single part.

    Args:
        part: Part to check (not modified)
        options: Thresholds (default: ValidationOptions())

    Returns:
        ValidationResult; ``valid`` is False when any error was found
    """
    opts = options or ValidationOptions()
    result = ValidationResult(part_id=part.part_id or "")

    missing = _missing_fields(part)
    for name in missing:
        _add(result, name, REQUIRED_FIELD, REQUIRED_FIELD_MESSAGES[name])
    if missing:
        return result

    _check_dimensions(part, opts, result)
    _check_oversize(part, opts, result)

    if part.thickness_mm <= 0:
        _add(result, "thickness_mm", INVALID_THICKNESS,
             f"Thickness must be positive, got {part.thickness_mm:g}")
    elif opts.allowed_thicknesses_mm and not any(
            abs(part.thickness_mm - t) < 1e-6 for t in opts.allowed_thicknesses_mm):
        _add(result, "thickness_mm", NONSTANDARD_THICKNESS,
             f"Thickness {part.thickness_mm:g}mm is not a standard sheet thickness")

    if part.qty < 1:
        _add(result, "qty", INVALID_QUANTITY, f"Quantity must be at least 1, got {part.qty}")
    elif part.qty > opts.max_quantity:
        _add(result, "qty", QUANTITY_TOO_HIGH,
             f"Quantity {part.qty} exceeds the maximum of {opts.max_quantity}")

    if (part.material_id in opts.grained_material_ids
            and part.grain == GRAIN_NONE and part.allow_rotation):
        _add(result, "grain", GRAIN_NOT_SPECIFIED,
             f"Material {part.material_id} has grain but no grain direction is set")

    if part.label and len(part.label) > opts.max_label_length:
        _add(result, "label", LABEL_TOO_LONG,
             f"Label is {len(part.label)} characters (max {opts.max_label_length})")

    return result


def validate_parts(parts: List[CutPart],
                   options: Optional[ValidationOptions] = None) -> PartsValidationResult:
    """
    Validate a list of parts, including duplicate part ids across the set.

    Every part sharing an id with another part gets a DUPLICATE_PART_ID error.
    Results are in input order.
    """
    results = [validate_part(part, options) for part in parts]

    counts = Counter(part.part_id for part in parts if part.part_id)
    for part, result in zip(parts, results):
        if counts.get(part.part_id, 0) > 1:
            _add(result, "part_id", DUPLICATE_PART_ID,
                 f"Part ID '{part.part_id}' is used by {counts[part.part_id]} parts")

    batch = PartsValidationResult(results=results)
    logger.info("Validated %d parts: %d errors, %d warnings",
                len(parts), batch.total_errors, batch.total_warnings)
    return batch


def quick_validate_part(part: CutPart) -> QuickValidationResult:
    """Fast-path check: positive L, W and quantity, plus an id. No thresholds."""
    errors = []
    if not part.part_id:
        errors.append("Part ID is required")
    if part.size is None or part.size.L <= 0 or part.size.W <= 0:
        errors.append("Length and width must be positive")
    if part.qty is None or part.qty < 1:
        errors.append("Quantity must be at least 1")
    return QuickValidationResult(valid=not errors, errors=errors)
