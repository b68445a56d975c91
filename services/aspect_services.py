"""aspect_services
================================================================================
Cross-chart aspects between two people's nine bodies, their harmony score and
the most significant subset.

Comparisons run same-body pairs first (A.Sun-B.Sun, ...), then every ordered
cross-body pair (A.Sun-B.Moon, ..., A.Ketu-B.Venus): 81 in total. The first
aspect, in ASPECT_ORBS order, whose tolerance covers the separation wins.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from kundli_core.mathutils import circular_separation, round_half_up
from kundli_core.models import BODIES, PlanetaryPositions

# =============================== Constants ===============================

# (name, exact angle, orb), tested in this order
ASPECT_ORBS: Tuple[Tuple[str, float, float], ...] = (
    ("Conjunction", 0.0, 8.0),
    ("Sextile", 60.0, 4.0),
    ("Square", 90.0, 6.0),
    ("Trine", 120.0, 6.0),
    ("Quincunx", 150.0, 3.0),
    ("Opposition", 180.0, 8.0),
)

ASPECT_INFLUENCE: Dict[str, str] = {
    "Conjunction": "Neutral",
    "Sextile": "Positive",
    "Square": "Negative",
    "Trine": "Positive",
    "Quincunx": "Neutral",
    "Opposition": "Negative",
}

ASPECT_DESCRIPTIONS: Dict[str, Dict[str, str]] = {
    "Conjunction": {
        "Positive": "Strong mutual influence, shared goals, intense connection",
        "Negative": "Overwhelming influence, clashes of will, power struggles",
        "Neutral": "Close association, similar energies",
    },
    "Opposition": {
        "Positive": "Complementary energies, balance, mutual attraction",
        "Negative": "Polarization, conflict, pulling in opposite directions",
        "Neutral": "Tension and balance, different approaches",
    },
    "Trine": {
        "Positive": "Harmonious flow, natural understanding, easy expression",
        "Negative": "Lack of challenge, complacency, missed chances",
        "Neutral": "Smooth interaction, natural compatibility",
    },
    "Square": {
        "Positive": "Dynamic energy, motivation, growth through challenge",
        "Negative": "Tension, conflict, obstacles, power struggles",
        "Neutral": "Challenging but productive interaction",
    },
    "Sextile": {
        "Positive": "Opportunity, cooperation, mutual support",
        "Negative": "Missed opportunities, lack of follow-through",
        "Neutral": "Potential for growth and development",
    },
    "Quincunx": {
        "Positive": "Adaptation, adjustment, unusual solutions",
        "Negative": "Irritation, unease, constant readjustment",
        "Neutral": "Requires effort and adaptation",
    },
}

# aspect -> influence -> base harmony points
HARMONY_BASE: Dict[str, Dict[str, float]] = {
    "Conjunction": {"Positive": 8, "Negative": 2, "Neutral": 5},
    "Trine": {"Positive": 9, "Negative": 3, "Neutral": 6},
    "Sextile": {"Positive": 7, "Negative": 4, "Neutral": 6},
    "Square": {"Positive": 6, "Negative": 2, "Neutral": 4},
    "Opposition": {"Positive": 7, "Negative": 3, "Neutral": 5},
    "Quincunx": {"Positive": 5, "Negative": 3, "Neutral": 4},
}

STRENGTH_FACTOR: Dict[str, float] = {"Strong": 1.2, "Moderate": 1.0, "Weak": 0.8}

INFLUENCE_PRIORITY: Dict[str, int] = {"Positive": 3, "Neutral": 2, "Negative": 1}

DEFAULT_HARMONY = 5.0
KEY_ASPECT_LIMIT = 5


# =============================== Data types ===============================

@dataclass(frozen=True)
class PlanetaryAspect:
    planet1: str
    planet2: str
    aspect_type: str
    orb: float
    strength: str  # Strong | Moderate | Weak
    influence: str  # Positive | Negative | Neutral
    description: str


@dataclass(frozen=True)
class AspectAnalysis:
    aspects: List[PlanetaryAspect]
    harmony: float
    key_aspects: List[PlanetaryAspect]


# =============================== Helpers ===============================

def aspect_strength(orb: float, max_orb: float) -> str:
    ratio = orb / max_orb
    if ratio <= 0.5:
        return "Strong"
    if ratio <= 0.8:
        return "Moderate"
    return "Weak"


def classify_aspect(planet1: str, planet2: str, lon_a: float, lon_b: float) -> Optional[PlanetaryAspect]:
    """Aspect between two longitudes, or None when no tolerance covers the separation."""
    separation = circular_separation(lon_a, lon_b)
    for name, angle, max_orb in ASPECT_ORBS:
        orb = abs(separation - angle)
        if orb <= max_orb:
            influence = ASPECT_INFLUENCE[name]
            return PlanetaryAspect(
                planet1=planet1,
                planet2=planet2,
                aspect_type=name,
                orb=orb,
                strength=aspect_strength(orb, max_orb),
                influence=influence,
                description=ASPECT_DESCRIPTIONS[name][influence],
            )
    return None


# ============================ High-level API ============================

def calculate_planetary_aspects(a: PlanetaryPositions, b: PlanetaryPositions) -> List[PlanetaryAspect]:
    aspects: List[PlanetaryAspect] = []
    for body in BODIES:
        hit = classify_aspect(body, body, a.get(body), b.get(body))
        if hit:
            aspects.append(hit)
    for body_a in BODIES:
        for body_b in BODIES:
            if body_a == body_b:
                continue
            hit = classify_aspect(body_a, body_b, a.get(body_a), b.get(body_b))
            if hit:
                aspects.append(hit)
    return aspects


def calculate_planetary_harmony(aspects: List[PlanetaryAspect]) -> float:
    """Mean strength-weighted harmony, one decimal; 5.0 when there are no aspects."""
    if not aspects:
        return DEFAULT_HARMONY
    total = sum(
        HARMONY_BASE[a.aspect_type][a.influence] * STRENGTH_FACTOR[a.strength] for a in aspects
    )
    return round_half_up(total / len(aspects), 1)


def get_key_aspects(aspects: List[PlanetaryAspect], limit: int = KEY_ASPECT_LIMIT) -> List[PlanetaryAspect]:
    significant = [a for a in aspects if a.strength in ("Strong", "Moderate")]
    significant.sort(key=lambda a: -INFLUENCE_PRIORITY[a.influence])
    return significant[:limit]


def analyze_aspects(a: PlanetaryPositions, b: PlanetaryPositions) -> AspectAnalysis:
    aspects = calculate_planetary_aspects(a, b)
    return AspectAnalysis(
        aspects=aspects,
        harmony=calculate_planetary_harmony(aspects),
        key_aspects=get_key_aspects(aspects),
    )
