from types import SimpleNamespace

import pytest
from geopy.exc import GeocoderServiceError, GeocoderTimedOut, GeocoderUnavailable

from kundli_core.geocoding import (
    DEFAULT_CITY_COORDINATES,
    UNKNOWN_LOCATION,
    CachedGeocoder,
    NominatimGeocoder,
    build_search_query,
    lookup_default_city,
)
from kundli_core.models import Coordinates
from stubs import StubGeocoder


class FakeGeolocator:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.queries = []

    def geocode(self, query, exactly_one=True):
        self.queries.append(query)
        if self.error:
            raise self.error
        return self.result


def test_default_city_table():
    assert lookup_default_city("Mumbai, Maharashtra, India") == DEFAULT_CITY_COORDINATES["mumbai"]
    assert lookup_default_city("Some Hospital", city="Pune") == DEFAULT_CITY_COORDINATES["pune"]
    assert lookup_default_city("Atlantis") is None


def test_search_query():
    assert build_search_query("My town", "Nashik", "Maharashtra", "India") == "Nashik, Maharashtra, India"
    assert build_search_query("My town", "Nashik", None, "India") == "My town"


def test_known_city_never_reaches_the_service():
    geolocator = FakeGeolocator()
    coords = NominatimGeocoder(geolocator=geolocator).coordinates("London, UK")
    assert coords == Coordinates(51.5074, -0.1278)
    assert geolocator.queries == []


def test_service_result():
    geolocator = FakeGeolocator(result=SimpleNamespace(latitude="45.5", longitude="-73.6"))
    coords = NominatimGeocoder(geolocator=geolocator).coordinates("Montreal, Canada")
    assert coords == Coordinates(45.5, -73.6)
    assert geolocator.queries == ["Montreal, Canada"]


@pytest.mark.parametrize("error", [
    GeocoderTimedOut("slow"),
    GeocoderUnavailable("down"),
    GeocoderServiceError("broken"),
])
def test_service_failure_gives_unknown_location(error):
    geocoder = NominatimGeocoder(geolocator=FakeGeolocator(error=error))
    assert geocoder.coordinates("Montreal, Canada") == UNKNOWN_LOCATION


def test_no_result_gives_unknown_location():
    geocoder = NominatimGeocoder(geolocator=FakeGeolocator(result=None))
    assert geocoder.coordinates("Nowhere") == UNKNOWN_LOCATION


def test_cache_key_is_lowercase():
    assert CachedGeocoder.cache_key("Pune", "PUNE", None, "India") == "pune-pune--india"


def test_cache_calls_inner_once_per_key():
    inner = StubGeocoder(Coordinates(1.0, 2.0))
    cached = CachedGeocoder(inner)
    assert cached.coordinates("Goa") == Coordinates(1.0, 2.0)
    assert cached.coordinates("GOA") == Coordinates(1.0, 2.0)
    assert cached.coordinates("Goa", country="India") == Coordinates(1.0, 2.0)
    assert len(inner.calls) == 2
    assert len(cached) == 2

    cached.clear()
    assert len(cached) == 0
