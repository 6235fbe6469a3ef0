"""Shared fixtures: a small catalog and part factories."""

import pytest

from cutlist_intake.matching.catalog import InMemoryCatalog
from cutlist_intake.matching.matcher import build_context
from cutlist_intake.models.catalog import EdgebandDef, MaterialDef
from cutlist_intake.models.part import CutPart, EdgeOp, EdgingOps, PartOps, Size


MATERIALS = [
    MaterialDef(material_id="MAT-WHITE-18", name="White Melamine 18mm", thickness_mm=18, core_type="PB"),
    MaterialDef(material_id="MAT-OAK-18", name="Oak Veneer 18mm", thickness_mm=18, core_type="MDF"),
    MaterialDef(material_id="MAT-MDF-16", name="MDF 16mm", thickness_mm=16, core_type="MDF"),
]

EDGEBANDS = [
    EdgebandDef(edgeband_id="EB-WHITE-08", name="White ABS 0.8mm", shortcode="WABS"),
    EdgebandDef(edgeband_id="EB-OAK-1", name="Oak Veneer Edge 1mm", thickness_mm=1.0),
]

SETTINGS = {"default_material_id": "MAT-WHITE-18", "default_edgeband_id": "EB-WHITE-08"}


@pytest.fixture
def materials():
    return list(MATERIALS)


@pytest.fixture
def edgebands():
    return list(EDGEBANDS)


@pytest.fixture
def catalog():
    return InMemoryCatalog(MATERIALS, EDGEBANDS, SETTINGS)


@pytest.fixture
def ctx():
    return build_context("org-1", MATERIALS, EDGEBANDS, SETTINGS)


@pytest.fixture
def empty_ctx():
    return build_context("org-empty", [], [])


@pytest.fixture
def make_part():
    """Factory for valid parts; keyword arguments override fields."""

    def _make(part_id="P-1", L=720.0, W=560.0, edges=None, **kwargs):
        ops = None
        if edges:
            ops = PartOps(edging=EdgingOps(edges={e: EdgeOp(apply=True) for e in edges}))
        fields = dict(
            part_id=part_id,
            size=Size(L=L, W=W),
            qty=1,
            thickness_mm=18.0,
            material_id="MAT-WHITE-18",
            ops=ops,
        )
        fields.update(kwargs)
        return CutPart(**fields)

    return _make
