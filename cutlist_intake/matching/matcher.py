"""Resolve raw material / edgeband text to catalog entries.

Material matching ladder (first success wins):
1. Empty raw text -> default ladder (step 6)
2. Exact catalog id or normalized name -> 0.95 (+0.05 if thickness matches)
3. Best fuzzy name score > 0.8 -> min(0.9, score * 0.9) + thickness bonus
4. Shared registered keyword -> 0.7 + thickness bonus
5. Exactly one catalog material at the given thickness -> 0.6
6. Org default (0.5) -> first catalog material (0.3) -> synthetic "default" (0.1)

Edgeband matching:
1. Raw text: exact name or shortcode (0.95), then best fuzzy score > 0.7 (score * 0.9)
2. Otherwise correlate with the sheet material name:
   score = 0.4 * fuzzy + 0.3 * keyword overlap ratio + 0.3 * shared colour;
   best score > 0.4 wins at min(0.85, score)
3. Org default (0.5) -> first catalog edgeband (0.3) -> synthetic "default" (0.1)

Neither function raises; callers branch on confidence, never on failure.

Usage:
    ctx = asyncio.run(init_material_matcher("org-1", JsonCatalog("catalog.json")))
    result = match_material("white melamine", 18, ctx)
    result.material_id, result.confidence, result.match_type
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from ..config import Config, default_config
from ..contracts import EdgebandMatchResult, MatchType, MaterialMatchResult
from ..models.catalog import EdgebandDef, MaterialDef
from ..parsers.normalize import (
    colors_match,
    extract_keywords,
    fuzzy_score,
    keyword_overlap,
    normalize_text,
)
from .catalog import CatalogSource

logger = logging.getLogger(__name__)

EDGEBAND_TYPE_WORDS = ("abs", "pvc", "melamine", "veneer", "laminate", "acrylic")

SYNTHETIC_MATERIAL_ID = "default"
SYNTHETIC_MATERIAL_NAME = "Default Material"
SYNTHETIC_EDGEBAND_ID = "default"
SYNTHETIC_EDGEBAND_NAME = "Default Edgeband"


def material_keywords(name: str, sku: Optional[str] = None) -> List[str]:
    """Search keywords for a material: name keywords plus the normalized SKU."""
    keywords = extract_keywords(name)
    if sku and normalize_text(sku) not in keywords:
        keywords.append(normalize_text(sku))
    return keywords


def edgeband_keywords(name: str, sku: Optional[str] = None) -> List[str]:
    """Search keywords for an edgeband: material keywords plus known tape types."""
    keywords = material_keywords(name, sku)
    lower = name.lower()
    for type_word in EDGEBAND_TYPE_WORDS:
        if type_word in lower and type_word not in keywords:
            keywords.append(type_word)
    return keywords


@dataclass
class MatcherContext:
    """
    Catalog snapshot and lookup indexes for one organization's matching session.

    Built once per session and reused for every part; read-only afterwards.
    """
    org_id: str
    materials: List[MaterialDef] = field(default_factory=list)
    edgebands: List[EdgebandDef] = field(default_factory=list)
    default_material_id: Optional[str] = None
    default_edgeband_id: Optional[str] = None
    material_id_index: Dict[str, MaterialDef] = field(default_factory=dict)
    material_name_index: Dict[str, MaterialDef] = field(default_factory=dict)
    material_keyword_index: Dict[str, MaterialDef] = field(default_factory=dict)
    edgeband_name_index: Dict[str, EdgebandDef] = field(default_factory=dict)
    config: Config = field(default_factory=lambda: default_config)


def build_context(
    org_id: str,
    materials: List[MaterialDef],
    edgebands: List[EdgebandDef],
    settings: Optional[Dict[str, Any]] = None,
    config: Optional[Config] = None,
) -> MatcherContext:
    """
    Derive keywords and lookup indexes from a catalog snapshot.

    Catalog entries are copied, never mutated. The keyword index keeps the
    first material that registered each keyword.
    """
    settings = settings or {}
    mats = [replace(m, keywords=material_keywords(m.name, m.sku)) for m in materials]
    ebs = [replace(e, keywords=edgeband_keywords(e.name, e.sku)) for e in edgebands]

    ctx = MatcherContext(
        org_id=org_id,
        materials=mats,
        edgebands=ebs,
        default_material_id=settings.get("default_material_id") or settings.get("defaultMaterialId"),
        default_edgeband_id=settings.get("default_edgeband_id") or settings.get("defaultEdgebandId"),
        config=config or default_config,
    )
    for mat in mats:
        ctx.material_id_index.setdefault(mat.material_id.lower(), mat)
        ctx.material_name_index.setdefault(normalize_text(mat.name), mat)
        for keyword in mat.keywords:
            ctx.material_keyword_index.setdefault(keyword, mat)
    for eb in ebs:
        ctx.edgeband_name_index.setdefault(normalize_text(eb.name), eb)
        if eb.shortcode:
            ctx.edgeband_name_index.setdefault(normalize_text(eb.shortcode), eb)
    return ctx


async def init_material_matcher(
    org_id: str,
    source: CatalogSource,
    config: Optional[Config] = None,
) -> MatcherContext:
    """
    Load an organization's catalog and build its matcher context.

    Args:
        org_id: Organization whose catalog is matched against
        source: Catalog collaborator (read-only)
        config: Matching thresholds (default: default_config)

    Returns:
        MatcherContext to reuse for every part of the session
    """
    materials, edgebands, settings = await asyncio.gather(
        source.fetch_materials(org_id),
        source.fetch_edgebands(org_id),
        source.fetch_settings(org_id),
    )
    ctx = build_context(org_id, materials, edgebands, settings, config)
    logger.info(
        "Matcher ready for %s: %d materials, %d edgebands",
        org_id, len(ctx.materials), len(ctx.edgebands),
    )
    return ctx


# ---------------------------------------------------------------------------
# Materials
# ---------------------------------------------------------------------------

def _thickness_bonus(mat: MaterialDef, thickness: Optional[float], ctx: MatcherContext) -> float:
    if thickness and abs(mat.thickness_mm - thickness) < 1e-6:
        return ctx.config.thickness_bonus
    return 0.0


def _material_result(mat: MaterialDef, confidence: float, match_type: MatchType,
                     matched_on: str = "") -> MaterialMatchResult:
    return MaterialMatchResult(
        material_id=mat.material_id,
        material_name=mat.name,
        confidence=min(1.0, confidence),
        match_type=match_type,
        matched_on=matched_on,
    )


def default_material(ctx: MatcherContext) -> MaterialMatchResult:
    """Fallback ladder: org default, then first catalog material, then synthetic."""
    if ctx.default_material_id:
        for mat in ctx.materials:
            if mat.material_id == ctx.default_material_id:
                return _material_result(mat, ctx.config.default_org_confidence, MatchType.DEFAULT)
    if ctx.materials:
        return _material_result(ctx.materials[0], ctx.config.default_first_material_confidence,
                                MatchType.DEFAULT)
    return MaterialMatchResult(
        material_id=SYNTHETIC_MATERIAL_ID,
        material_name=SYNTHETIC_MATERIAL_NAME,
        confidence=ctx.config.synthetic_default_confidence,
        match_type=MatchType.DEFAULT,
    )


def match_material(
    raw_name: Optional[str],
    thickness: Optional[float],
    ctx: MatcherContext,
) -> MaterialMatchResult:
    """
    Match raw material text to a catalog material.

    Args:
        raw_name: Material text as written ("white mel 18", "MAT-WHITE-18")
        thickness: Part thickness in mm, if known
        ctx: Matcher context from init_material_matcher()/build_context()

    Returns:
        MaterialMatchResult; always usable, possibly a low-confidence default
    """
    raw = str(raw_name).strip() if raw_name is not None else ""
    if not raw:
        return default_material(ctx)

    cfg = ctx.config
    normalized = normalize_text(raw)

    # 1. Exact id or name
    exact = ctx.material_id_index.get(raw.lower()) or ctx.material_name_index.get(normalized)
    if exact:
        logger.debug("Material %r: exact match %s", raw, exact.material_id)
        return _material_result(exact, cfg.exact_match_confidence + _thickness_bonus(exact, thickness, ctx),
                                MatchType.EXACT, exact.name)

    # 2. Fuzzy name
    best, best_score = None, 0.0
    for mat in ctx.materials:
        score = fuzzy_score(normalized, normalize_text(mat.name))
        if score > best_score:
            best, best_score = mat, score
    if best is not None and best_score > cfg.material_fuzzy_accept:
        logger.debug("Material %r: fuzzy match %s (%.2f)", raw, best.material_id, best_score)
        confidence = min(cfg.fuzzy_match_cap, best_score * 0.9) + _thickness_bonus(best, thickness, ctx)
        return _material_result(best, confidence, MatchType.FUZZY, f"fuzzy: {best.name}")

    # 3. Keyword
    for keyword in extract_keywords(normalized):
        mat = ctx.material_keyword_index.get(keyword)
        if mat:
            logger.debug("Material %r: keyword %r -> %s", raw, keyword, mat.material_id)
            confidence = cfg.keyword_match_confidence + _thickness_bonus(mat, thickness, ctx)
            return _material_result(mat, confidence, MatchType.KEYWORD, f"keyword: {keyword}")

    # 4. Only one material at this thickness
    if thickness:
        candidates = [m for m in ctx.materials if abs(m.thickness_mm - thickness) < 1e-6]
        if len(candidates) == 1:
            logger.debug("Material %r: only %s is %smm", raw, candidates[0].material_id, thickness)
            return _material_result(candidates[0], cfg.thickness_match_confidence, MatchType.FUZZY,
                                    f"thickness: {thickness:g}mm")

    logger.debug("Material %r: no match, using default", raw)
    return default_material(ctx)


# ---------------------------------------------------------------------------
# Edgebands
# ---------------------------------------------------------------------------

def _edgeband_result(eb: EdgebandDef, confidence: float, match_type: MatchType,
                     matched_on: str = "") -> EdgebandMatchResult:
    return EdgebandMatchResult(
        edgeband_id=eb.edgeband_id,
        edgeband_name=eb.name,
        confidence=min(1.0, confidence),
        match_type=match_type,
        matched_on=matched_on,
    )


def default_edgeband(ctx: MatcherContext) -> EdgebandMatchResult:
    """Fallback ladder: org default, then first catalog edgeband, then synthetic."""
    if ctx.default_edgeband_id:
        for eb in ctx.edgebands:
            if eb.edgeband_id == ctx.default_edgeband_id:
                return _edgeband_result(eb, ctx.config.default_org_confidence, MatchType.DEFAULT)
    if ctx.edgebands:
        return _edgeband_result(ctx.edgebands[0], ctx.config.default_first_edgeband_confidence,
                                MatchType.DEFAULT)
    return EdgebandMatchResult(
        edgeband_id=SYNTHETIC_EDGEBAND_ID,
        edgeband_name=SYNTHETIC_EDGEBAND_NAME,
        confidence=ctx.config.synthetic_default_confidence,
        match_type=MatchType.DEFAULT,
    )


def correlation_score(material_name: str, eb: EdgebandDef) -> float:
    """How well an edgeband suits a sheet material, in [0, 1]."""
    material_normalized = normalize_text(material_name)
    eb_normalized = normalize_text(eb.name)
    material_kw = extract_keywords(material_normalized)

    direct = fuzzy_score(material_normalized, eb_normalized)
    overlap = keyword_overlap(material_kw, extract_keywords(eb_normalized)) / max(len(material_kw), 1)
    color = 1.0 if colors_match(material_normalized, eb_normalized) else 0.0
    return 0.4 * direct + 0.3 * overlap + 0.3 * color


def match_edgeband(
    raw_name: Optional[str],
    sheet_material_name: Optional[str],
    ctx: MatcherContext,
) -> EdgebandMatchResult:
    """
    Match an edgeband, from raw text or by correlating with the sheet material.

    Args:
        raw_name: Edgeband text as written, if any
        sheet_material_name: Display name of the part's resolved material
        ctx: Matcher context

    Returns:
        EdgebandMatchResult; a synthetic "default" when the catalog has no edgebands
    """
    if not ctx.edgebands:
        return default_edgeband(ctx)

    cfg = ctx.config
    raw = str(raw_name).strip() if raw_name is not None else ""

    # 1. Explicit edgeband text
    if raw:
        normalized = normalize_text(raw)
        exact = ctx.edgeband_name_index.get(normalized)
        if exact:
            return _edgeband_result(exact, cfg.exact_match_confidence, MatchType.EXACT, exact.name)

        best, best_score = None, 0.0
        for eb in ctx.edgebands:
            score = fuzzy_score(normalized, normalize_text(eb.name))
            if score > cfg.edgeband_fuzzy_candidate and score > best_score:
                best, best_score = eb, score
        if best is not None:
            return _edgeband_result(best, best_score * 0.9, MatchType.FUZZY, f"fuzzy: {best.name}")

    # 2. Correlate with the sheet material
    material = (sheet_material_name or "").strip()
    if material:
        best, best_score = None, 0.0
        for eb in ctx.edgebands:
            score = correlation_score(material, eb)
            if score > 0.3 and score > best_score:
                best, best_score = eb, score
        if best is not None and best_score > cfg.edgeband_correlation_accept:
            logger.debug("Edgeband %s correlates with %r (%.2f)", best.edgeband_id, material, best_score)
            return _edgeband_result(best, min(cfg.edgeband_correlation_cap, best_score),
                                    MatchType.MATERIAL_MATCH, f"matches material: {material}")

    return default_edgeband(ctx)
