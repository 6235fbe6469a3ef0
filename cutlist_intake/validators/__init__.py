"""Part and cutlist validation."""

from .cutlist_validator import (
    CutlistValidationOptions,
    quick_validate_cutlist,
    validate_cutlist,
)
from .part_validator import (
    ValidationOptions,
    quick_validate_part,
    validate_part,
    validate_parts,
)

__all__ = [
    "ValidationOptions",
    "validate_part",
    "validate_parts",
    "quick_validate_part",
    "CutlistValidationOptions",
    "validate_cutlist",
    "quick_validate_cutlist",
]
