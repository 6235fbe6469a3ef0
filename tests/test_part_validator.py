"""Tests for part-level validation."""

import pytest

from cutlist_intake.models.part import GRAIN_ALONG_L, Size
from cutlist_intake.validators.part_validator import (
    ValidationOptions,
    quick_validate_part,
    validate_part,
    validate_parts,
)


def _error_codes(result):
    return [e.code for e in result.errors]


def _warning_codes(result):
    return [w.code for w in result.warnings]


def test_valid_part(make_part):
    result = validate_part(make_part())
    assert result.valid
    assert result.errors == []
    assert result.warnings == []
    assert result.part_id == "P-1"


def test_oversized_part(make_part):
    result = validate_part(make_part(L=3000, W=2500, allow_rotation=False))
    assert "OVERSIZED_PART" in _error_codes(result)
    assert not result.valid


def test_rotation_required(make_part):
    fixed = validate_part(make_part(L=2000, W=2500, allow_rotation=False))
    assert _error_codes(fixed) == ["ROTATION_REQUIRED"]
    assert _warning_codes(fixed) == ["DIMENSION_ORDER"]

    rotatable = validate_part(make_part(L=2000, W=2500, allow_rotation=True))
    assert rotatable.valid
    assert _warning_codes(rotatable) == ["DIMENSION_ORDER"]


def test_allow_oversized_skips_sheet_check(make_part):
    options = ValidationOptions(allow_oversized=True)
    assert validate_part(make_part(L=3000, W=2500), options).valid


def test_dimension_limits(make_part):
    small = validate_part(make_part(W=5))
    assert _error_codes(small) == ["DIMENSION_TOO_SMALL"]
    assert small.errors[0].field == "size.W"

    large = validate_part(make_part(L=3200), ValidationOptions(allow_oversized=True))
    assert _error_codes(large) == ["DIMENSION_TOO_LARGE"]


def test_area_limits(make_part):
    result = validate_part(make_part(), ValidationOptions(min_area_mm2=500_000))
    assert result.valid
    assert _warning_codes(result) == ["AREA_TOO_SMALL"]

    result = validate_part(make_part(), ValidationOptions(max_area_mm2=100_000))
    assert _error_codes(result) == ["AREA_TOO_LARGE"]


def test_thickness(make_part):
    nonstandard = validate_part(make_part(thickness_mm=17))
    assert nonstandard.valid
    assert _warning_codes(nonstandard) == ["NONSTANDARD_THICKNESS"]

    assert _error_codes(validate_part(make_part(thickness_mm=0))) == ["INVALID_THICKNESS"]


@pytest.mark.parametrize("qty, code", [(0, "INVALID_QUANTITY"), (-2, "INVALID_QUANTITY"),
                                       (1001, "QUANTITY_TOO_HIGH")])
def test_quantity(make_part, qty, code):
    assert _error_codes(validate_part(make_part(qty=qty))) == [code]


def test_grain_on_grained_material(make_part):
    loose = validate_part(make_part(material_id="MAT-OAK-18"))
    assert loose.valid
    assert _warning_codes(loose) == ["GRAIN_NOT_SPECIFIED"]

    locked = make_part(material_id="MAT-OAK-18", grain=GRAIN_ALONG_L, allow_rotation=False)
    assert validate_part(locked).warnings == []


def test_long_label(make_part):
    result = validate_part(make_part(label="x" * 101))
    assert result.valid
    assert _warning_codes(result) == ["LABEL_TOO_LONG"]


def test_required_fields_stop_business_rules(make_part):
    part = make_part(L=0, qty=0, material_id="")
    result = validate_part(part)

    assert _error_codes(result) == ["REQUIRED_FIELD", "REQUIRED_FIELD"]
    assert [e.field for e in result.errors] == ["size", "material_id"]


def test_validation_does_not_modify_part(make_part):
    part = make_part(L=2000, W=2500)
    validate_part(part)
    assert part.size == Size(L=2000, W=2500)
    assert part.audit.warnings == []


def test_duplicate_ids(make_part):
    parts = [make_part("A"), make_part("B"), make_part("A")]
    batch = validate_parts(parts)

    assert not batch.valid
    assert batch.total_errors == 2
    assert [_error_codes(r) for r in batch.results] == [["DUPLICATE_PART_ID"], [], ["DUPLICATE_PART_ID"]]
    assert len(batch.for_part("A")) == 2
    assert batch.to_dict()["totalErrors"] == 2


def test_quick_validate_part(make_part):
    assert quick_validate_part(make_part()).valid

    result = quick_validate_part(make_part(part_id="", L=0, qty=0))
    assert not result.valid
    assert result.errors == [
        "Part ID is required",
        "Length and width must be positive",
        "Quantity must be at least 1",
    ]
