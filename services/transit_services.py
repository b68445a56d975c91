"""transit_services
================================================================================
Current planetary transits through a natal chart's houses and the combined
transit climate for a couple.

Public API
----------
- current_positions(ephemeris, as_of) -> (dict[body, lon], warnings)
- house_of(lon, cusps) -> 1..12
- transit_influence(sign, house) -> (influence, intensity)
- transits_for_cusps(cusps, positions) -> list[PlanetaryTransit]
- calculate_mutual_transit_influence(transits_a, transits_b) -> TransitAnalysis
"""
from __future__ import annotations

import datetime as dt
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from kundli_core.errors import CalculationError
from kundli_core.kundli_core import EphemerisOracle
from kundli_core.mathutils import round_half_up
from services.position_services import rashi_from_longitude

logger = logging.getLogger(__name__)

# =============================== Constants ===============================

TRANSIT_PLANETS: Tuple[str, ...] = ("Sun", "Moon", "Mars", "Mercury", "Jupiter", "Venus", "Saturn")

PLANET_INFLUENCES: Dict[str, Dict[str, str]] = {
    "Sun": {
        "positive": "Leadership, confidence, recognition, vitality",
        "negative": "Ego clashes, trouble with authority, health strain",
        "neutral": "General energy and vitality",
    },
    "Moon": {
        "positive": "Emotional harmony, intuition, nurturing",
        "negative": "Mood swings, emotional unrest, family tension",
        "neutral": "Emotional patterns and habits",
    },
    "Mars": {
        "positive": "Energy, courage, decisive action, passion",
        "negative": "Aggression, quarrels, accidents, impatience",
        "neutral": "Physical energy and drive",
    },
    "Mercury": {
        "positive": "Communication, learning, business success",
        "negative": "Misunderstandings, nervousness, technical setbacks",
        "neutral": "Mental activity and communication",
    },
    "Jupiter": {
        "positive": "Expansion, wisdom, opportunity, growth",
        "negative": "Overconfidence, excess, legal trouble",
        "neutral": "Philosophical and spiritual growth",
    },
    "Venus": {
        "positive": "Love, beauty, harmony, relationships",
        "negative": "Relationship friction, money worries, indulgence",
        "neutral": "Aesthetic and relationship matters",
    },
    "Saturn": {
        "positive": "Discipline, hard work, lasting success",
        "negative": "Restriction, delay, low spirits, limitation",
        "neutral": "Karma and life lessons",
    },
}

HOUSE_NAMES: Tuple[str, ...] = (
    "1st House (Self)", "2nd House (Wealth)", "3rd House (Communication)", "4th House (Home)",
    "5th House (Creativity)", "6th House (Health)", "7th House (Partnership)",
    "8th House (Transformation)", "9th House (Philosophy)", "10th House (Career)",
    "11th House (Friends)", "12th House (Spirituality)",
)

STRONG_HOUSES = frozenset({1, 5, 9})
WEAK_HOUSES = frozenset({3, 6, 11})

# element -> (intensity delta, influence)
ELEMENT_EFFECTS: Dict[str, Tuple[float, str]] = {
    "Fire": (1.0, "Positive"),
    "Earth": (0.5, "Neutral"),
    "Air": (0.0, "Neutral"),
    "Water": (-0.5, "Neutral"),
}

OVERALL_RECOMMENDATIONS: Dict[str, str] = {
    "Positive": "Transits favour the relationship: a good time for commitments and shared plans.",
    "Negative": "Transits are testing: this period calls for extra patience and understanding.",
    "Neutral": "Transits are mixed: a neutral period for developing the relationship.",
}


# =============================== Data types ===============================

@dataclass(frozen=True)
class PlanetaryTransit:
    planet: str
    current_sign: str
    current_house: int
    description: str
    influence: str  # Positive | Negative | Neutral
    intensity: int  # 1..10


@dataclass(frozen=True)
class TransitAnalysis:
    mutual_influence: str
    recommendations: List[str]
    person_a_transits: List[PlanetaryTransit] = field(default_factory=list)
    person_b_transits: List[PlanetaryTransit] = field(default_factory=list)


# =============================== Helpers ===============================

def current_positions(ephemeris: EphemerisOracle, as_of: dt.datetime) -> Tuple[Dict[str, float], List[str]]:
    """Transit longitudes at ``as_of``; bodies the ephemeris cannot place are left out."""
    positions: Dict[str, float] = {}
    warnings: List[str] = []
    for planet in TRANSIT_PLANETS:
        try:
            lon = ephemeris.longitude(as_of, planet)
        except Exception as exc:
            raise CalculationError(f"Transit lookup failed for {planet}: {exc}") from exc
        if lon is None or not math.isfinite(lon):
            msg = f"No transit position for {planet} at {as_of.isoformat()}; skipped."
            logger.warning(msg)
            warnings.append(msg)
            continue
        positions[planet] = lon % 360.0
    return positions, warnings


def house_of(lon: float, cusps: Sequence[float]) -> int:
    """House 1..12 whose cusp interval contains ``lon``; the 12th wraps past 0°."""
    if not cusps or len(cusps) < 12:
        return 1
    for i in range(11):
        if cusps[i] <= lon < cusps[i + 1]:
            return i + 1
    if lon >= cusps[11] or lon < cusps[0]:
        return 12
    return 1


def transit_influence(sign_element: str, house: int) -> Tuple[str, int]:
    intensity = 5.0
    if house in STRONG_HOUSES:
        intensity += 2
    elif house in WEAK_HOUSES:
        intensity -= 1
    delta, influence = ELEMENT_EFFECTS.get(sign_element, (0.0, "Neutral"))
    intensity += delta
    intensity = max(1.0, min(10.0, intensity))
    return influence, int(round_half_up(intensity))


def transit_description(planet: str, sign: str, house: int) -> str:
    house_name = HOUSE_NAMES[house - 1] if 1 <= house <= 12 else "Unknown House"
    theme = PLANET_INFLUENCES[planet]["neutral"].lower()
    return f"{planet} transiting through {sign} in the {house_name}. This transit influences {theme}."


def transits_for_cusps(cusps: Sequence[float], positions: Dict[str, float]) -> List[PlanetaryTransit]:
    transits: List[PlanetaryTransit] = []
    for planet in TRANSIT_PLANETS:
        if planet not in positions:
            continue
        lon = positions[planet]
        rashi = rashi_from_longitude(lon)
        house = house_of(lon, cusps)
        influence, intensity = transit_influence(rashi.element, house)
        transits.append(PlanetaryTransit(
            planet=planet,
            current_sign=rashi.name,
            current_house=house,
            description=transit_description(planet, rashi.name, house),
            influence=influence,
            intensity=intensity,
        ))
    return transits


def _mutual_pair(a: PlanetaryTransit, b: PlanetaryTransit) -> Tuple[str, Optional[str]]:
    planet = a.planet
    kinds = {a.influence, b.influence}
    if kinds == {"Positive"}:
        return "Positive", f"Both partners have supportive {planet} transits, bringing mutual encouragement and harmony."
    if kinds == {"Negative"}:
        return "Negative", f"Both partners have difficult {planet} transits; extra patience and understanding will help."
    if kinds == {"Positive", "Negative"}:
        return "Neutral", f"One partner's favourable {planet} transit can support the other through a harder stretch."
    return "Neutral", None


# ============================ High-level API ============================

def calculate_mutual_transit_influence(
    transits_a: List[PlanetaryTransit], transits_b: List[PlanetaryTransit]
) -> TransitAnalysis:
    """Pair same-planet transits; any Positive pair makes the climate Positive."""
    recommendations: List[str] = []
    overall = "Neutral"
    by_planet_b = {t.planet: t for t in transits_b}
    for ta in transits_a:
        tb = by_planet_b.get(ta.planet)
        if tb is None:
            continue
        influence, recommendation = _mutual_pair(ta, tb)
        if recommendation:
            recommendations.append(recommendation)
        if influence == "Positive":
            overall = "Positive"
        elif influence == "Negative" and overall != "Positive":
            overall = "Negative"
    recommendations.append(OVERALL_RECOMMENDATIONS[overall])
    return TransitAnalysis(
        mutual_influence=overall,
        recommendations=recommendations,
        person_a_transits=list(transits_a),
        person_b_transits=list(transits_b),
    )
