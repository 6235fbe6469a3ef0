"""Apply material and edgeband matching to a batch of draft parts."""

import logging
from typing import Dict, List, Optional

from ..config import Config
from ..contracts import MatchingSummary, MatchType
from ..models.part import CutPart
from .catalog import CatalogSource
from .matcher import MatcherContext, init_material_matcher, match_edgeband, match_material

logger = logging.getLogger(__name__)

# A raw reference resolved with low confidence caps the part's confidence at
# match confidence + this margin.
MATCH_CONFIDENCE_MARGIN = 0.2


def _count(by_type: Dict[str, int], kind: str, match_type: MatchType) -> None:
    key = f"{kind}:{match_type.value}"
    by_type[key] = by_type.get(key, 0) + 1


def apply_smart_matching(parts: List[CutPart], ctx: MatcherContext) -> MatchingSummary:
    """
    Resolve catalog ids for every part, in place.

    For each part the material is matched first (from ``material_raw``), then
    every applied edge without an explicit edgeband id is matched against
    ``edgeband_raw`` or, failing that, the resolved material's name. Match
    results are recorded on ``part.audit``.

    Args:
        parts: Draft parts (mutated)
        ctx: Matcher context for the parts' organization

    Returns:
        MatchingSummary with counts and average confidences
    """
    summary = MatchingSummary()
    material_confidences: List[float] = []
    edgeband_confidences: List[float] = []

    for part in parts:
        material = match_material(part.material_raw, part.thickness_mm, ctx)
        part.material_id = material.material_id
        part.audit.material_match = material.to_dict()
        material_confidences.append(material.confidence)
        _count(summary.by_match_type, "material", material.match_type)
        if material.match_type != MatchType.DEFAULT:
            summary.materials_matched += 1

        if part.material_raw:
            part.audit.confidence = min(part.audit.confidence,
                                        material.confidence + MATCH_CONFIDENCE_MARGIN)
            if material.match_type == MatchType.DEFAULT:
                part.audit.warnings.append(
                    f"Material '{part.material_raw}' not found in catalog, "
                    f"using {material.material_name}"
                )

        for edge_id, edge in part.edge_ops().items():
            if not edge.apply or edge.edgeband_id:
                continue
            edgeband = match_edgeband(part.edgeband_raw, material.material_name, ctx)
            edge.edgeband_id = edgeband.edgeband_id
            part.audit.edgeband_matches[edge_id] = edgeband.to_dict()
            edgeband_confidences.append(edgeband.confidence)
            _count(summary.by_match_type, "edgeband", edgeband.match_type)
            if edgeband.match_type != MatchType.DEFAULT:
                summary.edgebands_matched += 1

    if material_confidences:
        summary.avg_material_confidence = sum(material_confidences) / len(material_confidences)
    if edgeband_confidences:
        summary.avg_edgeband_confidence = sum(edgeband_confidences) / len(edgeband_confidences)

    logger.info(
        "Matched %d/%d materials, %d/%d edgebands",
        summary.materials_matched, len(material_confidences),
        summary.edgebands_matched, len(edgeband_confidences),
    )
    return summary


async def match_parts_for_org(
    parts: List[CutPart],
    org_id: str,
    source: CatalogSource,
    config: Optional[Config] = None,
) -> MatchingSummary:
    """Load the organization's catalog once, then match every part."""
    ctx = await init_material_matcher(org_id, source, config)
    return apply_smart_matching(parts, ctx)
