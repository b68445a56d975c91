"""dasha_services
================================================================================
Vimshottari period (Dasha) state for a person and the compatibility of two
people's current major periods.

Cycle model
-----------
Nine rulers in a fixed order whose year allocations sum to 120. With ``y`` the
elapsed years since birth (365.25-day years):

- major ruler     = ORDER[floor(y / 120) mod 9]
- sub ruler       = ORDER[floor((y mod 120) / 10) mod 9], lasting 1/10 of the
  major allocation (reported in months)
- sub-sub ruler   = ORDER[floor(y mod 10) mod 9], lasting 1/100 of the major
  allocation (reported in days)

The major index does not use the Moon's offset inside its birth station, so
any living person is in the Sun period. This is a known approximation kept
for compatibility with existing results. Every level is reported as starting
at the evaluation instant with its full nominal duration remaining.
"""
from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

# =============================== Constants ===============================

DASHA_ORDER: Tuple[str, ...] = (
    "Sun", "Moon", "Mars", "Rahu", "Jupiter", "Saturn", "Mercury", "Ketu", "Venus",
)

DASHA_YEARS: Dict[str, int] = {
    "Sun": 6, "Moon": 10, "Mars": 7, "Rahu": 18, "Jupiter": 16,
    "Saturn": 19, "Mercury": 17, "Ketu": 7, "Venus": 20,
}

CYCLE_YEARS = 120
DAYS_PER_YEAR = 365.25

PLANET_THEMES: Dict[str, str] = {
    "Sun": "Leadership, authority, vitality, the father, self-expression",
    "Moon": "Emotions, the mother, intuition, nurturing, peace of mind",
    "Mars": "Energy, courage, conflict, physical strength, ambition",
    "Rahu": "Material desire, foreign links, technology, unconventional paths",
    "Jupiter": "Wisdom, spirituality, teachers, children, growth, optimism",
    "Saturn": "Discipline, hard work, delay, restriction, karma, longevity",
    "Mercury": "Communication, intellect, commerce, siblings, quick thinking",
    "Ketu": "Detachment, spirituality, past-life karma, sudden events",
    "Venus": "Love, beauty, the arts, relationships, comfort, marriage",
}

E, G, A, P = "Excellent", "Good", "Average", "Poor"

# Row: person A's major ruler; column: person B's, both in DASHA_ORDER.
_MATRIX_ROWS: Dict[str, Tuple[str, ...]] = {
    "Sun":     (G, E, G, A, E, P, G, A, G),
    "Moon":    (E, G, A, P, E, A, G, A, E),
    "Mars":    (G, A, G, G, G, P, A, G, A),
    "Rahu":    (A, P, G, G, A, G, A, P, A),
    "Jupiter": (E, E, G, A, E, G, G, A, E),
    "Saturn":  (P, A, P, G, G, G, A, G, A),
    "Mercury": (G, G, A, A, G, A, G, A, G),
    "Ketu":    (A, A, G, P, A, G, A, G, A),
    "Venus":   (G, E, A, A, E, A, G, A, E),
}

DASHA_COMPATIBILITY_MATRIX: Dict[str, Dict[str, str]] = {
    row: dict(zip(DASHA_ORDER, cells)) for row, cells in _MATRIX_ROWS.items()
}

DASHA_COMPATIBILITY_TEXT: Dict[str, str] = {
    E: "EXCELLENT: Both partners are running periods that actively support each other. "
       "A favourable time for commitments and major joint decisions.",
    G: "GOOD: The current periods broadly support the relationship and each partner benefits "
       "from the other's planetary influence.",
    A: "AVERAGE: The periods are neutral, mixing supportive and testing influences. The "
       "relationship asks for extra effort and understanding for now.",
    P: "CHALLENGING: The current periods may strain the relationship. Patience and mutual "
       "support will matter most during this phase.",
}


# =============================== Data types ===============================

@dataclass(frozen=True)
class PeriodState:
    planet: str
    level: str  # "major" | "sub" | "sub_sub"
    start: dt.datetime
    end: dt.datetime
    duration_years: float
    remaining: float
    unit: str  # "years" | "months" | "days"
    description: str


@dataclass(frozen=True)
class DashaPeriod:
    current_dasha: PeriodState
    current_antardasha: PeriodState
    current_pratyantardasha: PeriodState
    next_dasha: PeriodState


@dataclass(frozen=True)
class DashaCompatibility:
    compatibility: str
    description: str


# =============================== Helpers ===============================

def years_between(start: dt.datetime, end: dt.datetime) -> float:
    return (end - start).total_seconds() / (DAYS_PER_YEAR * 86400.0)


def period_durations(major: str) -> Tuple[float, float, float]:
    """(major, sub, sub-sub) nominal durations in years for a major ruler."""
    years = float(DASHA_YEARS[major])
    return years, years / 10.0, years / 100.0


def _period(planet: str, level: str, start: dt.datetime, duration_years: float) -> PeriodState:
    if level == "sub":
        remaining, unit = duration_years * 12.0, "months"
    elif level == "sub_sub":
        remaining, unit = duration_years * DAYS_PER_YEAR, "days"
    else:
        remaining, unit = duration_years, "years"
    return PeriodState(
        planet=planet,
        level=level,
        start=start,
        end=start + dt.timedelta(days=duration_years * DAYS_PER_YEAR),
        duration_years=duration_years,
        remaining=remaining,
        unit=unit,
        description=PLANET_THEMES[planet],
    )


def period_indices(years_since_birth: float) -> Tuple[int, int, int]:
    y = max(years_since_birth, 0.0)
    major = math.floor(y / CYCLE_YEARS) % 9
    sub = math.floor((y % CYCLE_YEARS) / 10) % 9
    sub_sub = math.floor(y % 10) % 9
    return major, sub, sub_sub


# ============================ High-level API ============================

def _as_utc(moment: dt.datetime) -> dt.datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=dt.timezone.utc)
    return moment.astimezone(dt.timezone.utc)


def calculate_dasha_period(
    birth_utc: dt.datetime,
    as_of: Optional[dt.datetime] = None,
    moon_nakshatra: Optional[int] = None,
) -> DashaPeriod:
    """Period tree at ``as_of`` (now, UTC, by default).

    Naive datetimes are read as UTC. Evaluation instants before birth are
    treated as age zero. ``moon_nakshatra`` (birth station index) is accepted
    but does not move the major index; see the module docstring.
    """
    as_of = _as_utc(as_of) if as_of else dt.datetime.now(dt.timezone.utc)
    birth_utc = _as_utc(birth_utc)
    major_i, sub_i, sub_sub_i = period_indices(years_between(birth_utc, as_of))
    major = DASHA_ORDER[major_i]
    major_years, sub_years, sub_sub_years = period_durations(major)

    current = _period(major, "major", as_of, major_years)
    nxt = DASHA_ORDER[(major_i + 1) % 9]
    return DashaPeriod(
        current_dasha=current,
        current_antardasha=_period(DASHA_ORDER[sub_i], "sub", as_of, sub_years),
        current_pratyantardasha=_period(DASHA_ORDER[sub_sub_i], "sub_sub", as_of, sub_sub_years),
        next_dasha=_period(nxt, "major", current.end, float(DASHA_YEARS[nxt])),
    )


def dasha_compatibility(planet_a: str, planet_b: str) -> DashaCompatibility:
    level = DASHA_COMPATIBILITY_MATRIX.get(planet_a, {}).get(planet_b, A)
    return DashaCompatibility(compatibility=level, description=DASHA_COMPATIBILITY_TEXT[level])


def calculate_dasha_compatibility(a: DashaPeriod, b: DashaPeriod) -> DashaCompatibility:
    return dasha_compatibility(a.current_dasha.planet, b.current_dasha.planet)
