"""kundli_core
================================================================================
Swiss Ephemeris adapter used by the chart builder.

Purpose
-------
Centralizes zodiac configuration (tropical or sidereal with a named
ayanamsha), Swiss Ephemeris flag management, body longitudes and house cusps.
Services never call ``swisseph`` directly; they receive an object satisfying
``EphemerisOracle`` so tests can substitute fixed positions.

Public API
----------
set_zodiac(mode, ayanamsha, custom_offset) -> None
    Configure global tropical/sidereal mode for subsequent calculations.
get_flags() -> int
    Swiss Ephemeris flags honoring the current zodiac mode.
current_zodiac_info() -> dict
    Inspect the active zodiac configuration.
SwissEphemeris
    Default ``EphemerisOracle``: ``longitude(moment, body)`` and
    ``houses(moment, lat, lon, house_system)``.

Failure model
-------------
A ``swe.Error`` raised by the library is logged and reported as ``None`` so
the caller can degrade (zero longitude, zero cusps). Anything else propagates.

Thread Safety
-------------
Zodiac configuration is module-level state inside Swiss Ephemeris. It is set
once at import from ``settings``; changing it while requests are in flight
affects all of them.
"""
from __future__ import annotations
import datetime as dt
import logging
import math
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

import swisseph as swe

from settings import AYANAMSHA, EPHE_PATH, ZODIAC_MODE

logger = logging.getLogger(__name__)

swe.set_ephe_path(EPHE_PATH)  # empty -> built-in Moshier fallback when SE files are absent

# ---------------- Zodiac config (centralized) ----------------
# Friendly-name → Swiss Ephemeris constant NAME mapping (resolved at runtime)
AYANAMSHA_MAP = {
    "Lahiri": "SIDM_LAHIRI",
    "Raman": "SIDM_RAMAN",
    "Krishnamurti": "SIDM_KRISHNAMURTI",
    "FaganBradley": "SIDM_FAGAN_BRADLEY",
    "Yukteshwar": "SIDM_YUKTESHWAR",
    "USER": "USER",
}

# Body name → Swiss Ephemeris id. Ketu has no id; it is derived from Rahu.
BODY_IDS: Dict[str, int] = {
    "Sun": swe.SUN,
    "Moon": swe.MOON,
    "Mars": swe.MARS,
    "Mercury": swe.MERCURY,
    "Jupiter": swe.JUPITER,
    "Venus": swe.VENUS,
    "Saturn": swe.SATURN,
    "Rahu": swe.TRUE_NODE,
}


class EphemerisOracle(Protocol):
    def longitude(self, moment: dt.datetime, body: str) -> Optional[float]:
        ...

    def houses(
        self, moment: dt.datetime, lat: float, lon: float, house_system: str
    ) -> Optional[Tuple[float, List[float]]]:
        ...


def _resolve_sidm_const(const_name: Optional[str]):
    """Return the integer SIDM_* constant from swisseph by name, or None."""
    if not const_name:
        return None
    const = getattr(swe, const_name, None)
    if const is None and const_name == "SIDM_YUKTESHWAR":
        const = getattr(swe, "SIDM_YUKTESHVARA", None)
    return const


_ZODIAC_MODE: str = "tropical"
_AYAN_NAME: Optional[str] = None
_AYAN_CUSTOM: Optional[float] = None


def set_zodiac(
    mode: str = "tropical",
    ayanamsha: str = "Lahiri",
    custom_offset_deg: Optional[float] = None,
) -> None:
    """
    Configure the zodiac globally.

    - "tropical": sidereal corrections off (set_sid_mode(0), no FLG_SIDEREAL).
    - "sidereal" with a mapped name: Swiss sidereal mode set to that constant;
      unknown names fall back to Lahiri.
    - "sidereal" with "USER": custom offset in degrees at J1900.
    """
    global _ZODIAC_MODE, _AYAN_NAME, _AYAN_CUSTOM

    mode = (mode or "tropical").lower()
    if mode != "sidereal":
        swe.set_sid_mode(0)
        _ZODIAC_MODE, _AYAN_NAME, _AYAN_CUSTOM = "tropical", None, None
        return

    if ayanamsha == "USER":
        offs = float(custom_offset_deg or 0.0)
        swe.set_sid_mode(swe.SIDM_USER, 0, offs)
        _AYAN_CUSTOM = offs
    else:
        const = _resolve_sidm_const(AYANAMSHA_MAP.get(ayanamsha))
        if const is None:
            logger.warning("Unknown ayanamsha %r, falling back to Lahiri", ayanamsha)
            const = swe.SIDM_LAHIRI
            ayanamsha = "Lahiri"
        swe.set_sid_mode(const)
        _AYAN_CUSTOM = None
    _ZODIAC_MODE, _AYAN_NAME = "sidereal", ayanamsha


def get_flags() -> int:
    base = swe.FLG_SWIEPH
    return base | swe.FLG_SIDEREAL if _ZODIAC_MODE == "sidereal" else base


def current_zodiac_info() -> dict:
    return {"mode": _ZODIAC_MODE, "ayanamsha": _AYAN_NAME, "custom_offset_deg": _AYAN_CUSTOM}


set_zodiac(ZODIAC_MODE, AYANAMSHA)


def normalize_deg(x: float) -> float:
    return x % 360.0


def _julday_utc(dtu: dt.datetime) -> float:
    if dtu.tzinfo is None:
        dtu = dtu.replace(tzinfo=dt.timezone.utc)
    dtu = dtu.astimezone(dt.timezone.utc)
    hour = dtu.hour + dtu.minute / 60.0 + (dtu.second + dtu.microsecond / 1e6) / 3600.0
    return swe.julday(dtu.year, dtu.month, dtu.day, hour)


def _houses_compat(jd_ut: float, lat_deg: float, lon_deg: float, hsys: str, flags: int):
    """
    Version- and build-compatible call into Swiss Ephemeris house functions.
    hsys is passed as a single byte (e.g. b'P'); tries houses_ex with flags,
    then without, then houses().
    """
    hsys_b = hsys[:1].encode("ascii") if isinstance(hsys, str) else bytes(hsys[:1])
    try:
        return swe.houses_ex(jd_ut, lat_deg, lon_deg, hsys_b, flags)
    except TypeError:
        try:
            return swe.houses_ex(jd_ut, lat_deg, lon_deg, hsys_b)
        except TypeError:
            return swe.houses(jd_ut, lat_deg, lon_deg, hsys_b)


def _as_12_cusps(cusps_obj: Sequence[float]) -> List[float]:
    """
    Normalize Swiss Ephemeris cusp output to a 12-length, 0-based list.
    Accepts 12 values (0..11) or 13 values (cusps[0] unused).
    """
    seq = list(cusps_obj)
    if len(seq) == 13:
        seq = seq[1:13]
    elif len(seq) != 12:
        raise ValueError(f"Unexpected number of cusps: {len(seq)} (expected 12 or 13)")
    return [normalize_deg(x) for x in seq]


class SwissEphemeris:
    """Default ephemeris oracle backed by pyswisseph."""

    def longitude(self, moment: dt.datetime, body: str) -> Optional[float]:
        pid = BODY_IDS.get(body)
        if pid is None:
            raise ValueError(f"Unsupported body for ephemeris lookup: {body}")
        try:
            xx, _ret = swe.calc_ut(_julday_utc(moment), pid, get_flags())
        except swe.Error as exc:
            logger.warning("Swiss Ephemeris failed for %s at %s: %s", body, moment.isoformat(), exc)
            return None
        lon = float(xx[0])
        if not math.isfinite(lon):
            return None
        return normalize_deg(lon)

    def houses(
        self, moment: dt.datetime, lat: float, lon: float, house_system: str = "P"
    ) -> Optional[Tuple[float, List[float]]]:
        try:
            cusps, ascmc = _houses_compat(_julday_utc(moment), lat, lon, house_system, get_flags())
        except swe.Error as exc:
            logger.warning(
                "House computation failed (%s) at lat=%s lon=%s: %s", house_system, lat, lon, exc
            )
            return None
        return normalize_deg(float(ascmc[0])), _as_12_cusps(cusps)
