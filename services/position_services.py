"""position_services
================================================================================
Chart building and positional classification.

Turns a ``BirthMoment`` into a ``Chart``: nine body longitudes, the Moon's
nakshatra (lunar station) and rashi (sign) with their tag sets, ascendant and
house cusps, and the Manglik flag.

Public API
----------
- nakshatra_index(lon) / rashi_index(lon)
- nakshatra_from_longitude(lon) / rashi_from_longitude(lon)
- get_nakshatra_info(name) / get_rashi_info(name)
- is_manglik(mars_lon)
- birth_instant_utc(moment)
- build_chart(moment, ephemeris, geocoder, house_system) -> Chart

Degradation
-----------
A body the ephemeris cannot place is reported at 0° with a chart warning.
A failed house lookup gives an ascendant of 0° and twelve zero cusps, also
with a warning. Geocoding misses come back as (0, 0) and are flagged the same
way. Other ephemeris exceptions become ``CalculationError``.
"""
from __future__ import annotations

import datetime as dt
import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from kundli_core.errors import CalculationError, ValidationError
from kundli_core.geocoding import Geocoder, UNKNOWN_LOCATION
from kundli_core.kundli_core import EphemerisOracle
from kundli_core.models import BODIES, BirthMoment, PlanetaryPositions
from settings import HOUSE_SYSTEM

logger = logging.getLogger(__name__)

# =============================== Constants ===============================

NAKSHATRA_SPAN = 360.0 / 27.0  # 13°20'
SIGN_SPAN = 30.0

NAKSHATRAS: List[str] = [
    "Ashwini", "Bharani", "Krittika", "Rohini", "Mrigashira", "Ardra",
    "Punarvasu", "Pushya", "Ashlesha", "Magha", "Purva Phalguni",
    "Uttara Phalguni", "Hasta", "Chitra", "Swati", "Vishakha", "Anuradha",
    "Jyeshtha", "Mula", "Purva Ashadha", "Uttara Ashadha", "Shravana",
    "Dhanishtha", "Shatabhisha", "Purva Bhadrapada", "Uttara Bhadrapada", "Revati",
]

RASHIS: List[str] = [
    "Aries", "Taurus", "Gemini", "Cancer", "Leo", "Virgo",
    "Libra", "Scorpio", "Sagittarius", "Capricorn", "Aquarius", "Pisces",
]

# Vimshottari lords cycle three times over the 27 stations.
NAKSHATRA_LORDS: List[str] = [
    "Ketu", "Venus", "Sun", "Moon", "Mars", "Rahu", "Jupiter", "Saturn", "Mercury",
] * 3

RASHI_LORDS: List[str] = [
    "Mars", "Venus", "Mercury", "Moon", "Sun", "Mercury",
    "Venus", "Mars", "Jupiter", "Saturn", "Saturn", "Jupiter",
]

# Station-derived tags, looked up by station index modulo table size.
GANAS: List[str] = ["Deva", "Manushya", "Rakshasa"]
YONIS: List[str] = [
    "Horse", "Elephant", "Sheep", "Snake", "Dog", "Cat", "Rat",
    "Cow", "Buffalo", "Tiger", "Deer", "Monkey", "Lion", "Crow",
]
NADIS: List[str] = ["Adi", "Madhya", "Antya"]
VARNAS: List[str] = ["Brahmin", "Kshatriya", "Vaishya", "Shudra"]
VASHYAS: List[str] = ["Chatushpada", "Dvipada", "Jalachara", "Keeta", "Vanachara"]

# Sign-derived tags.
ELEMENTS: List[str] = ["Fire", "Earth", "Air", "Water"]
QUALITIES: List[str] = ["Cardinal", "Fixed", "Mutable"]

MANGLIK_SIGNS = frozenset({"Aries", "Scorpio", "Leo", "Sagittarius", "Capricorn"})


# =============================== Data types ===============================

@dataclass(frozen=True)
class NakshatraInfo:
    name: str
    index: int
    lord: str
    gana: str
    yoni: str
    nadi: str
    varna: str
    vashya: str


@dataclass(frozen=True)
class RashiInfo:
    name: str
    index: int
    number: int  # 1-based, Aries = 1
    element: str
    quality: str
    lord: str


@dataclass(frozen=True)
class Chart:
    """Everything the engines need about one person."""
    moment: BirthMoment
    birth_utc: dt.datetime
    positions: PlanetaryPositions
    nakshatra: NakshatraInfo
    rashi: RashiInfo
    ascendant: float
    cusps: Tuple[float, ...]
    latitude: float
    longitude: float
    manglik: bool
    warnings: Tuple[str, ...] = ()


# =============================== Classification ===============================

def nakshatra_index(lon: float) -> int:
    """Longitude (deg) -> station index 0..26."""
    return int((lon % 360.0) / NAKSHATRA_SPAN) % 27


def rashi_index(lon: float) -> int:
    """Longitude (deg) -> sign index 0..11, Aries = 0."""
    return int((lon % 360.0) / SIGN_SPAN) % 12


def sign_name(lon: float) -> str:
    return RASHIS[rashi_index(lon)]


def _nakshatra_info_at(index: int) -> NakshatraInfo:
    return NakshatraInfo(
        name=NAKSHATRAS[index],
        index=index,
        lord=NAKSHATRA_LORDS[index],
        gana=GANAS[index % len(GANAS)],
        yoni=YONIS[index % len(YONIS)],
        nadi=NADIS[index % len(NADIS)],
        varna=VARNAS[index % len(VARNAS)],
        vashya=VASHYAS[index % len(VASHYAS)],
    )


def _rashi_info_at(index: int) -> RashiInfo:
    return RashiInfo(
        name=RASHIS[index],
        index=index,
        number=index + 1,
        element=ELEMENTS[index % len(ELEMENTS)],
        quality=QUALITIES[index % len(QUALITIES)],
        lord=RASHI_LORDS[index],
    )


def nakshatra_from_longitude(lon: float) -> NakshatraInfo:
    return _nakshatra_info_at(nakshatra_index(lon))


def rashi_from_longitude(lon: float) -> RashiInfo:
    return _rashi_info_at(rashi_index(lon))


def get_nakshatra_info(name: str) -> NakshatraInfo:
    try:
        return _nakshatra_info_at(NAKSHATRAS.index(name))
    except ValueError:
        raise CalculationError(f"Unknown nakshatra: {name}") from None


def get_rashi_info(name: str) -> RashiInfo:
    try:
        return _rashi_info_at(RASHIS.index(name))
    except ValueError:
        raise CalculationError(f"Unknown rashi: {name}") from None


def is_manglik(mars_lon: float) -> bool:
    return sign_name(mars_lon) in MANGLIK_SIGNS


# =============================== Birth instant ===============================

def parse_time_of_birth(time_str: str) -> dt.time:
    """Accept HH:MM, HH:MM:SS or a full ISO datetime (its time part)."""
    text = (time_str or "").strip()
    if "T" in text:
        return dt.datetime.fromisoformat(text.replace("Z", "+00:00")).time().replace(tzinfo=None)
    return dt.time.fromisoformat(text).replace(tzinfo=None)


def birth_instant_utc(moment: BirthMoment) -> dt.datetime:
    """Local birth date/time in ``moment.timezone`` (UTC when absent) -> aware UTC."""
    try:
        date = dt.date.fromisoformat(moment.date_of_birth.strip())
        time = parse_time_of_birth(moment.time_of_birth)
    except (AttributeError, ValueError) as exc:
        raise ValidationError(f"Invalid birth date/time: {exc}") from exc
    try:
        tz = ZoneInfo(moment.timezone) if moment.timezone else dt.timezone.utc
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Invalid timeZone: {moment.timezone}") from None
    return dt.datetime.combine(date, time, tzinfo=tz).astimezone(dt.timezone.utc)


# =============================== Oracle calls ===============================

def compute_positions(birth_utc: dt.datetime, ephemeris: EphemerisOracle) -> Tuple[PlanetaryPositions, List[str]]:
    """Nine body longitudes; Ketu sits opposite Rahu."""
    warnings: List[str] = []
    lons: Dict[str, float] = {}
    for body in BODIES:
        if body == "Ketu":
            continue
        try:
            value = ephemeris.longitude(birth_utc, body)
        except Exception as exc:
            raise CalculationError(f"Ephemeris lookup failed for {body}: {exc}") from exc
        if value is None or not math.isfinite(value):
            msg = f"No ephemeris position for {body}; using 0°."
            logger.warning(msg, extra={"body": body, "moment": birth_utc.isoformat()})
            warnings.append(msg)
            value = 0.0
        lons[body] = value % 360.0
    lons["Ketu"] = (lons["Rahu"] + 180.0) % 360.0
    return PlanetaryPositions(**{b.lower(): v for b, v in lons.items()}), warnings


def resolve_coordinates(moment: BirthMoment, geocoder: Optional[Geocoder]) -> Tuple[float, float, List[str]]:
    """Use given coordinates, or geocode when latitude or longitude is missing."""
    if moment.latitude is not None and moment.longitude is not None:
        return float(moment.latitude), float(moment.longitude), []
    if geocoder is None:
        msg = f"No coordinates or geocoder for {moment.place_of_birth!r}; using (0, 0)."
        logger.warning(msg)
        return 0.0, 0.0, [msg]
    found = geocoder.coordinates(moment.place_of_birth, moment.city, moment.state, moment.country)
    if found == UNKNOWN_LOCATION:
        msg = f"Could not geocode {moment.place_of_birth!r}; houses computed at (0, 0)."
        logger.warning(msg)
        return 0.0, 0.0, [msg]
    return found.latitude, found.longitude, []


def compute_houses(
    birth_utc: dt.datetime,
    lat: float,
    lon: float,
    ephemeris: EphemerisOracle,
    house_system: str = HOUSE_SYSTEM,
) -> Tuple[float, Tuple[float, ...], List[str]]:
    try:
        result = ephemeris.houses(birth_utc, lat, lon, house_system)
    except Exception as exc:
        logger.warning("House lookup raised: %s", exc, extra={"lat": lat, "lon": lon})
        result = None
    if result is None or len(result[1]) != 12:
        msg = f"House cusps unavailable ({house_system}) at lat={lat}, lon={lon}; using zero cusps."
        logger.warning(msg)
        return 0.0, (0.0,) * 12, [msg]
    asc, cusps = result
    return asc % 360.0, tuple(c % 360.0 for c in cusps), []


# =============================== High-level API ===============================

def build_chart(
    moment: BirthMoment,
    ephemeris: EphemerisOracle,
    geocoder: Optional[Geocoder] = None,
    house_system: str = HOUSE_SYSTEM,
) -> Chart:
    birth_utc = birth_instant_utc(moment)
    positions, warnings = compute_positions(birth_utc, ephemeris)
    lat, lon, geo_warnings = resolve_coordinates(moment, geocoder)
    asc, cusps, house_warnings = compute_houses(birth_utc, lat, lon, ephemeris, house_system)
    return Chart(
        moment=moment,
        birth_utc=birth_utc,
        positions=positions,
        nakshatra=nakshatra_from_longitude(positions.moon),
        rashi=rashi_from_longitude(positions.moon),
        ascendant=asc,
        cusps=cusps,
        latitude=lat,
        longitude=lon,
        manglik=is_manglik(positions.mars),
        warnings=tuple(warnings + geo_warnings + house_warnings),
    )
