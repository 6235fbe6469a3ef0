"""Validation schema rules for parts and cutlists."""

from .validation_rules import (
    REQUIRED_PART_FIELDS,
    SEVERITY_ERROR,
    SEVERITY_WARNING,
    WARNING_CODES,
    severity_for,
)

__all__ = [
    "REQUIRED_PART_FIELDS",
    "SEVERITY_ERROR",
    "SEVERITY_WARNING",
    "WARNING_CODES",
    "severity_for",
]
