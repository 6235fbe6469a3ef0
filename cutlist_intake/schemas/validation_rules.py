"""Validation codes and field rules for parts and cutlists.

Codes are stable machine identifiers; messages are for people.
Used by the validators and by callers that branch on specific diagnostics.
"""

from typing import Dict, List


SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"

# --- Part-level codes ---
REQUIRED_FIELD = "REQUIRED_FIELD"
DIMENSION_TOO_SMALL = "DIMENSION_TOO_SMALL"
DIMENSION_TOO_LARGE = "DIMENSION_TOO_LARGE"
AREA_TOO_SMALL = "AREA_TOO_SMALL"
AREA_TOO_LARGE = "AREA_TOO_LARGE"
DIMENSION_ORDER = "DIMENSION_ORDER"
OVERSIZED_PART = "OVERSIZED_PART"
ROTATION_REQUIRED = "ROTATION_REQUIRED"
INVALID_THICKNESS = "INVALID_THICKNESS"
NONSTANDARD_THICKNESS = "NONSTANDARD_THICKNESS"
INVALID_QUANTITY = "INVALID_QUANTITY"
QUANTITY_TOO_HIGH = "QUANTITY_TOO_HIGH"
GRAIN_NOT_SPECIFIED = "GRAIN_NOT_SPECIFIED"
LABEL_TOO_LONG = "LABEL_TOO_LONG"
DUPLICATE_PART_ID = "DUPLICATE_PART_ID"

# --- Cutlist-level codes ---
NO_PARTS = "NO_PARTS"
TOO_MANY_PARTS = "TOO_MANY_PARTS"
TOO_MANY_PIECES = "TOO_MANY_PIECES"
MISSING_JOB_ID = "MISSING_JOB_ID"
MISSING_NAME = "MISSING_NAME"
UNDEFINED_MATERIALS = "UNDEFINED_MATERIALS"
UNDEFINED_EDGEBANDS = "UNDEFINED_EDGEBANDS"
CAPABILITY_MISMATCH = "CAPABILITY_MISMATCH"
MIXED_THICKNESSES = "MIXED_THICKNESSES"

# Fields a part must carry before any business rule is evaluated
REQUIRED_PART_FIELDS: List[str] = ["part_id", "size", "thickness_mm", "qty", "material_id"]

# Human-readable messages for missing required fields
REQUIRED_FIELD_MESSAGES: Dict[str, str] = {
    "part_id": "Part ID is required",
    "size": "Part dimensions (L and W) are required",
    "thickness_mm": "Part thickness is required and must be positive",
    "qty": "Quantity must be at least 1",
    "material_id": "Material is required",
}

# Codes emitted at warning severity; everything else is an error
WARNING_CODES = {
    AREA_TOO_SMALL,
    DIMENSION_ORDER,
    NONSTANDARD_THICKNESS,
    GRAIN_NOT_SPECIFIED,
    LABEL_TOO_LONG,
    MISSING_JOB_ID,
    MISSING_NAME,
    CAPABILITY_MISMATCH,
    MIXED_THICKNESSES,
}


def severity_for(code: str) -> str:
    """Get the severity a validation code is reported at."""
    return SEVERITY_WARNING if code in WARNING_CODES else SEVERITY_ERROR
