"""Catalog matching: resolve raw material/edgeband text to catalog ids."""

from .batch import apply_smart_matching, match_parts_for_org
from .catalog import CatalogSource, InMemoryCatalog, JsonCatalog
from .matcher import (
    MatcherContext,
    build_context,
    correlation_score,
    init_material_matcher,
    match_edgeband,
    match_material,
)

__all__ = [
    "CatalogSource",
    "InMemoryCatalog",
    "JsonCatalog",
    "MatcherContext",
    "build_context",
    "init_material_matcher",
    "match_material",
    "match_edgeband",
    "correlation_score",
    "apply_smart_matching",
    "match_parts_for_org",
]
