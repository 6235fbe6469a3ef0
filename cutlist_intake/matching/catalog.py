"""Catalog sources: where an organization's materials and edgebands come from.

The matcher only reads from a catalog, once per matching session. A source
exposes three async reads scoped to one organization; entries flagged
inactive are never returned.

Catalog JSON layout (JsonCatalog):

    {
      "materials": [{"id": "MAT-WHITE-18", "name": "White Melamine 18mm", "thickness_mm": 18}],
      "edgebands": [{"id": "EB-WHITE-08", "name": "White ABS 0.8mm"}],
      "settings": {"default_material_id": "MAT-WHITE-18"}
    }

or the same block per organization under "orgs": {"<org_id>": {...}}.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..models.catalog import EdgebandDef, MaterialDef
from ..utils.io import load_json_robust

logger = logging.getLogger(__name__)


class CatalogSource(ABC):
    """Read-only access to one organization's catalog."""

    @abstractmethod
    async def fetch_materials(self, org_id: str) -> List[MaterialDef]:
        """Active materials of the organization."""

    @abstractmethod
    async def fetch_edgebands(self, org_id: str) -> List[EdgebandDef]:
        """Active edgebands of the organization."""

    async def fetch_settings(self, org_id: str) -> Dict[str, Any]:
        """Organization settings; the matcher reads default_material_id / default_edgeband_id."""
        return {}


class InMemoryCatalog(CatalogSource):
    """
    Catalog held in memory.

    Args:
        materials: Active materials
        edgebands: Active edgebands
        settings: Organization settings
        org_id: If set, other organizations see an empty catalog
    """

    def __init__(
        self,
        materials: Optional[List[MaterialDef]] = None,
        edgebands: Optional[List[EdgebandDef]] = None,
        settings: Optional[Dict[str, Any]] = None,
        org_id: Optional[str] = None,
    ):
        self.materials = list(materials or [])
        self.edgebands = list(edgebands or [])
        self.settings = dict(settings or {})
        self.org_id = org_id

    def _serves(self, org_id: str) -> bool:
        return self.org_id is None or self.org_id == org_id

    async def fetch_materials(self, org_id: str) -> List[MaterialDef]:
        return list(self.materials) if self._serves(org_id) else []

    async def fetch_edgebands(self, org_id: str) -> List[EdgebandDef]:
        return list(self.edgebands) if self._serves(org_id) else []

    async def fetch_settings(self, org_id: str) -> Dict[str, Any]:
        return dict(self.settings) if self._serves(org_id) else {}


def _active(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [e for e in entries if isinstance(e, dict) and e.get("is_active", True)]


class JsonCatalog(CatalogSource):
    """
    Catalog read from a JSON file (see module docstring for the layout).

    An unreadable file is logged and treated as an empty catalog, so the
    matcher falls back to its defaults.
    """

    def __init__(self, filepath: Union[str, Path]):
        self.filepath = Path(filepath)

    def _block(self, org_id: str) -> Dict[str, Any]:
        data, error = load_json_robust(self.filepath)
        if error:
            logger.warning("Catalog %s not loaded: %s", self.filepath, error)
            return {}
        if not isinstance(data, dict):
            logger.warning("Catalog %s is not a JSON object", self.filepath)
            return {}
        if "orgs" in data:
            return (data.get("orgs") or {}).get(org_id) or {}
        return data

    async def fetch_materials(self, org_id: str) -> List[MaterialDef]:
        entries = _active(self._block(org_id).get("materials") or [])
        return [MaterialDef.from_dict(e) for e in entries]

    async def fetch_edgebands(self, org_id: str) -> List[EdgebandDef]:
        entries = _active(self._block(org_id).get("edgebands") or [])
        return [EdgebandDef.from_dict(e) for e in entries]

    async def fetch_settings(self, org_id: str) -> Dict[str, Any]:
        return dict(self._block(org_id).get("settings") or {})
