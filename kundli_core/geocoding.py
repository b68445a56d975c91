"""Place name → coordinates.

Lookup order for ``NominatimGeocoder.coordinates``:

1. built-in table of well-known cities, keyed on the first comma-separated
   part of the place name, then on the city;
2. OpenStreetMap Nominatim (geopy) with "city, state, country" when all three
   are given, otherwise the place name;
3. (0, 0) when nothing matched or the service failed. Lookup failure is never
   raised to the caller; it is logged.

``CachedGeocoder`` memoizes any geocoder for the process lifetime.
"""
from __future__ import annotations
import logging
import threading
from typing import Dict, Optional, Protocol

from geopy.exc import GeocoderServiceError, GeocoderTimedOut, GeocoderUnavailable
from geopy.geocoders import Nominatim

from kundli_core.models import Coordinates
from settings import GEOCODER_TIMEOUT, GEOCODER_USER_AGENT

logger = logging.getLogger(__name__)

UNKNOWN_LOCATION = Coordinates(0.0, 0.0)

DEFAULT_CITY_COORDINATES: Dict[str, Coordinates] = {
    # India
    "amritsar": Coordinates(31.6330, 74.8723),
    "mumbai": Coordinates(19.0760, 72.8777),
    "delhi": Coordinates(28.7041, 77.1025),
    "bangalore": Coordinates(12.9716, 77.5946),
    "chennai": Coordinates(13.0827, 80.2707),
    "kolkata": Coordinates(22.5726, 88.3639),
    "hyderabad": Coordinates(17.3850, 78.4867),
    "pune": Coordinates(18.5204, 73.8567),
    "ahmedabad": Coordinates(23.0225, 72.5714),
    "jaipur": Coordinates(26.9124, 75.7873),
    "lucknow": Coordinates(26.8467, 80.9462),
    "kanpur": Coordinates(26.4499, 80.3319),
    "nagpur": Coordinates(21.1458, 79.0882),
    "indore": Coordinates(22.7196, 75.8577),
    "bhopal": Coordinates(23.2599, 77.4126),
    "visakhapatnam": Coordinates(17.6868, 83.2185),
    "patna": Coordinates(25.5941, 85.1376),
    "vadodara": Coordinates(22.3072, 73.1812),
    "ludhiana": Coordinates(30.9010, 75.8573),
    "agra": Coordinates(27.1767, 78.0081),
    "nashik": Coordinates(19.9975, 73.7898),
    "faridabad": Coordinates(28.4089, 77.3178),
    "meerut": Coordinates(28.9845, 77.7064),
    "rajkot": Coordinates(22.3039, 70.8022),
    "kalyan": Coordinates(19.2433, 73.1305),
    "vasai": Coordinates(19.4083, 72.8083),
    "varanasi": Coordinates(25.3176, 82.9739),
    "srinagar": Coordinates(34.0837, 74.7973),
    "aurangabad": Coordinates(19.8762, 75.3433),
    "dhanbad": Coordinates(23.7957, 86.4304),
    "amravati": Coordinates(20.9374, 77.7796),
    "kolhapur": Coordinates(16.7050, 74.2433),
    "sangli": Coordinates(16.8524, 74.5815),
    "malegaon": Coordinates(20.5598, 74.5259),
    "ulhasnagar": Coordinates(19.2215, 73.1645),
    "jalgaon": Coordinates(21.0077, 75.5626),
    "akola": Coordinates(20.7006, 77.0082),
    "latur": Coordinates(18.4088, 76.5604),
    "ahmadnagar": Coordinates(19.0952, 74.7496),
    "dhule": Coordinates(20.9028, 74.7774),
    "ichalkaranji": Coordinates(16.6959, 74.4602),
    "parbhani": Coordinates(19.2460, 76.4408),
    "jalna": Coordinates(19.8410, 75.8864),
    "bhusawal": Coordinates(21.0436, 75.7851),
    "panvel": Coordinates(18.9881, 73.1101),
    "satara": Coordinates(17.6805, 74.0183),
    "beed": Coordinates(18.9894, 75.7564),
    "yavatmal": Coordinates(20.3932, 78.1320),
    "kamptee": Coordinates(21.2333, 79.2000),
    "gondia": Coordinates(21.4602, 80.1920),
    "bhiwandi": Coordinates(19.3002, 73.0589),
    "chandrapur": Coordinates(19.9615, 79.2961),
    "barshi": Coordinates(18.2348, 75.6927),
    "achalpur": Coordinates(21.2567, 77.5106),
    "osmanabad": Coordinates(18.1841, 76.0416),
    "nandurbar": Coordinates(21.3707, 74.2401),
    "wardha": Coordinates(20.7453, 78.6022),
    "udgir": Coordinates(18.3956, 77.1178),
    "hinganghat": Coordinates(20.5500, 78.8333),
    "washim": Coordinates(20.1000, 77.1333),
    "amalner": Coordinates(20.9333, 75.1667),
    "akot": Coordinates(21.1000, 77.0667),
    "sakri": Coordinates(20.9833, 74.3167),
    "muktainagar": Coordinates(20.9000, 75.1167),
    # International
    "new york": Coordinates(40.7128, -74.0060),
    "los angeles": Coordinates(34.0522, -118.2437),
    "london": Coordinates(51.5074, -0.1278),
    "paris": Coordinates(48.8566, 2.3522),
    "tokyo": Coordinates(35.6762, 139.6503),
    "sydney": Coordinates(-33.8688, 151.2093),
    "toronto": Coordinates(43.6532, -79.3832),
}


class Geocoder(Protocol):
    def coordinates(
        self,
        place: str,
        city: Optional[str] = None,
        state: Optional[str] = None,
        country: Optional[str] = None,
    ) -> Coordinates:
        ...


def lookup_default_city(place: str, city: Optional[str] = None) -> Optional[Coordinates]:
    place_key = (place or "").lower().split(",")[0].strip()
    if place_key and place_key in DEFAULT_CITY_COORDINATES:
        return DEFAULT_CITY_COORDINATES[place_key]
    city_key = (city or "").lower().strip()
    if city_key and city_key in DEFAULT_CITY_COORDINATES:
        return DEFAULT_CITY_COORDINATES[city_key]
    return None


def build_search_query(place: str, city: Optional[str], state: Optional[str], country: Optional[str]) -> str:
    if city and state and country:
        return f"{city}, {state}, {country}"
    return place


class NominatimGeocoder:
    """Default geocoder: built-in city table first, then OpenStreetMap Nominatim."""

    def __init__(self, user_agent: str = GEOCODER_USER_AGENT, timeout: float = GEOCODER_TIMEOUT, geolocator=None):
        self.geolocator = geolocator or Nominatim(user_agent=user_agent, timeout=timeout)

    def coordinates(
        self,
        place: str,
        city: Optional[str] = None,
        state: Optional[str] = None,
        country: Optional[str] = None,
    ) -> Coordinates:
        known = lookup_default_city(place, city)
        if known is not None:
            return known

        query = build_search_query(place, city, state, country)
        if not query:
            return UNKNOWN_LOCATION
        try:
            location = self.geolocator.geocode(query, exactly_one=True)
        except (GeocoderUnavailable, GeocoderTimedOut, GeocoderServiceError) as exc:
            logger.warning("Geocoding failed for %r: %s", query, exc)
            return UNKNOWN_LOCATION
        if not location:
            logger.warning("No geocoding result for %r, using (0, 0)", query)
            return UNKNOWN_LOCATION
        return Coordinates(float(location.latitude), float(location.longitude))


class CachedGeocoder:
    """Process-lifetime memo over another geocoder.

    Keys are ``"{place}-{city}-{state}-{country}"`` lower-cased. Concurrent
    misses for the same key may both reach the inner geocoder; the first
    result stored wins. Entries are never evicted.
    """

    def __init__(self, inner: Geocoder):
        self.inner = inner
        self._cache: Dict[str, Coordinates] = {}
        self._lock = threading.Lock()

    @staticmethod
    def cache_key(place: str, city: Optional[str], state: Optional[str], country: Optional[str]) -> str:
        return f"{place}-{city or ''}-{state or ''}-{country or ''}".lower()

    def coordinates(
        self,
        place: str,
        city: Optional[str] = None,
        state: Optional[str] = None,
        country: Optional[str] = None,
    ) -> Coordinates:
        key = self.cache_key(place, city, state, country)
        with self._lock:
            hit = self._cache.get(key)
        if hit is not None:
            return hit
        found = self.inner.coordinates(place, city, state, country)
        with self._lock:
            return self._cache.setdefault(key, found)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
