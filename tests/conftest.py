"""
Shared test fixtures: material catalogs and quote builders.
"""

import pytest

from cnc_quoter.calculators.material_lookup import FALLBACK_MATERIALS, MaterialCatalog
from cnc_quoter.schemas import MaterialDefinition


STEEL = MaterialDefinition(id="TEST_STEEL", name="Konstrukční ocel", density=7.85, default_price_per_kg=50)


@pytest.fixture
def steel():
    return STEEL


@pytest.fixture
def catalog():
    """Built-in materials plus a round-number steel (7.85 g/cm³)."""
    return MaterialCatalog(FALLBACK_MATERIALS + [STEEL])
