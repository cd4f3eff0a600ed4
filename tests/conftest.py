"""
Pytest configuration file
"""

import sys
from pathlib import Path

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


CITY_CSV = """City,Lat,Lng,Country
Paris,48.8566,2.3522,France
Lyon,N/A,4.8357,France
Berlin,52.52,13.405,Germany
"""

PLACES_CSV = """Name,City,Category
Louvre,Paris,Museum
Pergamon,Berlin,Museum
Lost City,Atlantis,Myth
"""


class StubGeocoder:
    """Answers from a fixed dict and records what it was asked."""

    def __init__(self, known=None, error=None):
        self.known = known or {}
        self.error = error
        self.calls = []

    def geocode(self, locations):
        from csvmap.geocoding import GeocodedLocation

        self.calls.append(list(locations))
        if self.error:
            raise self.error
        return [
            GeocodedLocation(name, *self.known[name])
            for name in dict.fromkeys(locations)
            if name in self.known
        ]


@pytest.fixture
def city_csv():
    """CSV text with coordinate columns, one row has an invalid latitude"""
    return CITY_CSV


@pytest.fixture
def places_csv():
    """CSV text without coordinate columns"""
    return PLACES_CSV


@pytest.fixture
def city_table(city_csv):
    from csvmap.csv_parsing import parse_csv

    return parse_csv(city_csv)


@pytest.fixture
def stub_geocoder():
    return StubGeocoder({"Paris": (48.8566, 2.3522), "Berlin": (52.52, 13.405)})


@pytest.fixture
def make_marker():
    """Build a Marker from a row dict"""
    from csvmap.markers import Marker

    def _make(index, data, lat=0.0, lng=0.0):
        return Marker(id=f"marker-{index}", lat=lat, lng=lng, data=data)

    return _make


@pytest.fixture
def app_module(monkeypatch):
    """The Flask module with CSRF off and an empty session store"""
    import app as module
    from csvmap.state import SessionStore

    monkeypatch.setitem(module.app.config, "TESTING", True)
    monkeypatch.setitem(module.app.config, "WTF_CSRF_ENABLED", False)
    monkeypatch.setattr(module, "sessions", SessionStore())
    return module


@pytest.fixture
def client(app_module):
    return app_module.app.test_client()


@pytest.fixture
def geocoder_factory():
    """Build StubGeocoder instances with custom answers or errors"""
    return StubGeocoder
