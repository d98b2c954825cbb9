import pytest

from zonegeo.config.settings import get_settings
from zonegeo.index.zone_index import ZoneIndex

SQUARE = [[0.0, 0.0], [0.0, 10.0], [10.0, 10.0], [10.0, 0.0]]
FAR_SQUARE = [[20.0, -20.0], [20.0, -10.0], [30.0, -10.0], [30.0, -20.0]]

# ~0.5 km north of (20, 20): one degree of latitude is ~111.195 km on this sphere.
NEAR_LINE = [[19.9, 20.0045], [20.1, 20.0045]]
FAR_LINE = [[19.9, 20.045], [20.1, 20.045]]
SOUTH_LINE = [[0.0, -40.0], [10.0, -40.0]]


@pytest.fixture
def north_index() -> ZoneIndex:
    """Zone "North" = the 0..10 square, with a boundary line ~0.5 km from (20, 20)."""
    return ZoneIndex.build(
        hulls=[([SQUARE], "North"), ([FAR_SQUARE], "South")],
        zone_to_polygons={"North": [[SQUARE]], "South": [[FAR_SQUARE]]},
        zone_to_lines={"North": [NEAR_LINE], "South": [SOUTH_LINE]},
    )


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
