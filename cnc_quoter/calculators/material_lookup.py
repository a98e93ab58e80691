"""
Material catalog with fallback chain:
1. Materials from cnc_quoter/data/materials.json (edited by the shop directly)
2. FALLBACK_MATERIALS from this file (common stock, CZK prices)

The catalog is an explicit object passed into every calculation;
there is no process-wide default material.
"""

import json
import logging
from typing import Iterable, List, Optional

from pydantic import ValidationError

from ..config import settings
from ..schemas import MaterialDefinition

logger = logging.getLogger(__name__)

# FALLBACK MATERIALS: used when the catalog file is missing or broken
# Densities in g/cm³, default prices in CZK/kg
FALLBACK_MATERIALS = [
    MaterialDefinition(id="ALUMINUM_6061", name="Hliník 6061", density=2.70, default_price_per_kg=180),
    MaterialDefinition(id="ALUMINUM_7075", name="Hliník 7075", density=2.81, default_price_per_kg=250),
    MaterialDefinition(id="STEEL_1018", name="Ocel 1018", density=7.87, default_price_per_kg=45),
    MaterialDefinition(id="STEEL_4140", name="Ocel 4140", density=7.85, default_price_per_kg=65),
    MaterialDefinition(id="STAINLESS_303", name="Nerez 303", density=8.00, default_price_per_kg=120),
    MaterialDefinition(id="STAINLESS_304", name="Nerez 304", density=8.00, default_price_per_kg=140),
    MaterialDefinition(id="BRASS_C360", name="Mosaz C360", density=8.50, default_price_per_kg=280),
    MaterialDefinition(id="DELRIN_ACETAL", name="Delrin (Acetal)", density=1.41, default_price_per_kg=350),
    MaterialDefinition(id="PEEK", name="PEEK", density=1.32, default_price_per_kg=2800),
    MaterialDefinition(id="TITANIUM_6AL4V", name="Titan 6Al-4V", density=4.43, default_price_per_kg=1200),
    MaterialDefinition(id="ABS", name="ABS Plast", density=1.04, default_price_per_kg=90),
    MaterialDefinition(id="CUSTOM1", name="Ocel RTS", density=7.8, default_price_per_kg=55),
]

# JSON key spellings accepted for the default price
_PRICE_KEYS = ("default_price_per_kg", "defaultPricePerKg")


def parse_material(raw: dict) -> MaterialDefinition:
    """Build a MaterialDefinition from one catalog JSON object."""
    if not isinstance(raw, dict):
        raise TypeError(f"catalog entry must be an object, got {type(raw).__name__}")
    price = None
    for key in _PRICE_KEYS:
        if raw.get(key) is not None:
            price = raw[key]
            break
    return MaterialDefinition(
        id=raw["id"],
        name=raw.get("name") or raw["id"],
        density=raw["density"],
        default_price_per_kg=price,
    )


class MaterialCatalog:
    """
    Read-only list of materials, keyed by stable id.

    source is "file" when loaded from JSON, "fallback" when the built-in
    list was substituted, "memory" when constructed directly.
    """

    def __init__(self, materials: Iterable[MaterialDefinition], source: str = "memory",
                 load_error: Optional[str] = None):
        self._materials = list(materials)
        self._by_id = {m.id: m for m in self._materials}
        self.source = source
        self.load_error = load_error

    @classmethod
    def fallback(cls, load_error: Optional[str] = None) -> "MaterialCatalog":
        return cls(FALLBACK_MATERIALS, source="fallback", load_error=load_error)

    @classmethod
    def load(cls, path: Optional[str] = None) -> "MaterialCatalog":
        """
        Load the catalog from a JSON file.
        Any failure falls back to FALLBACK_MATERIALS so the engine always
        gets a usable list. The reason is kept in load_error for a notice.
        """
        if path is None:
            path = settings.MATERIALS_PATH
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, list) or not data:
                raise ValueError("catalog must be a non-empty JSON array")
            materials = [parse_material(raw) for raw in data]
        except (OSError, ValueError, KeyError, TypeError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            logger.warning("Error loading materials from %s, using fallback data: %s", path, e)
            return cls.fallback(load_error=str(e))

        logger.info("Loaded %d materials from %s", len(materials), path)
        return cls(materials, source="file")

    def list(self) -> List[MaterialDefinition]:
        return list(self._materials)

    def get(self, material_id: str) -> Optional[MaterialDefinition]:
        """Look up a material by id. Returns None if unknown."""
        return self._by_id.get(material_id)

    def get_density(self, material_id: str) -> float:
        """Density in g/cm³, or 0.0 for an unknown material."""
        material = self.get(material_id)
        return material.density if material else 0.0

    def get_default_price(self, material_id: str) -> Optional[float]:
        material = self.get(material_id)
        return material.default_price_per_kg if material else None

    def __contains__(self, material_id) -> bool:
        return material_id in self._by_id

    def __iter__(self):
        return iter(self._materials)

    def __len__(self) -> int:
        return len(self._materials)
