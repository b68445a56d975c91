"""match_services
================================================================================
Basic Guna Milan match between two birth records.

Pipeline: validate both records -> build both charts (ephemeris, geocoder,
houses) -> score the eight factors -> total, percentage and tier -> Manglik
flags. Suggestions and the strengths/weaknesses summary are views over the
same ``MatchResult``.

Public API
----------
- validate_birth_moment(moment, today=None)
- build_charts(person_a, person_b, *, ephemeris, geocoder=None, house_system)
- match_from_charts(chart_a, chart_b) -> MatchResult
- calculate_match(person_a, person_b, *, ephemeris, geocoder=None) -> MatchResult
- get_koota_analysis(koota_name, person_a, person_b, ...) -> KootaScore
- get_match_suggestions(result) -> list[str]
- get_match_summary(result) -> MatchSummary
"""
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from kundli_core.errors import ValidationError, calculation_stage
from kundli_core.geocoding import Geocoder
from kundli_core.kundli_core import EphemerisOracle
from kundli_core.models import BirthMoment, Gender
from services.koota_services import (
    MAX_TOTAL,
    KootaScore,
    calculate_all_kootas,
    compatibility_percentage,
    compatibility_tier,
    find_koota,
    generate_suggestions,
    strengths_and_weaknesses,
    total_score,
)
from services.position_services import Chart, birth_instant_utc, build_chart
from settings import HOUSE_SYSTEM

logger = logging.getLogger(__name__)


# =============================== Data types ===============================

@dataclass(frozen=True)
class PersonDetails:
    name: Optional[str]
    nakshatra: str
    rashi: str
    manglik: bool


@dataclass(frozen=True)
class MatchResult:
    total_score: float
    max_score: int
    percentage: int
    kootas: List[KootaScore]
    person_a_details: PersonDetails
    person_b_details: PersonDetails
    compatibility: str
    compatibility_description: str
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class MatchSummary:
    total_score: float
    max_score: int
    percentage: int
    compatibility: str
    key_strengths: List[str]
    key_weaknesses: List[str]


# =============================== Validation ===============================

def validate_birth_moment(moment: BirthMoment, today: Optional[dt.date] = None) -> None:
    """Raise ValidationError with a clear message on unusable birth data."""
    try:
        Gender(moment.gender)
    except ValueError:
        raise ValidationError("Valid gender is required (MALE, FEMALE, OTHER)") from None
    if not (moment.date_of_birth or "").strip():
        raise ValidationError("Date of birth is required")
    if not (moment.time_of_birth or "").strip():
        raise ValidationError("Time of birth is required")
    if not (moment.place_of_birth or "").strip():
        raise ValidationError("Place of birth is required")

    birth_instant_utc(moment)  # raises ValidationError on bad date/time/zone

    today = today or dt.datetime.now(dt.timezone.utc).date()
    if dt.date.fromisoformat(moment.date_of_birth.strip()) > today:
        raise ValidationError("Birth date cannot be in the future")
    if moment.latitude is not None and not (-90.0 <= moment.latitude <= 90.0):
        raise ValidationError(f"latitude out of bounds: {moment.latitude}")
    if moment.longitude is not None and not (-180.0 <= moment.longitude <= 180.0):
        raise ValidationError(f"longitude out of bounds: {moment.longitude}")


# =============================== Pipeline ===============================

def build_charts(
    person_a: BirthMoment,
    person_b: BirthMoment,
    *,
    ephemeris: EphemerisOracle,
    geocoder: Optional[Geocoder] = None,
    house_system: str = HOUSE_SYSTEM,
) -> Tuple[Chart, Chart]:
    validate_birth_moment(person_a)
    validate_birth_moment(person_b)
    with calculation_stage("Chart calculation"):
        chart_a = build_chart(person_a, ephemeris, geocoder, house_system)
        chart_b = build_chart(person_b, ephemeris, geocoder, house_system)
    return chart_a, chart_b


def _details(chart: Chart) -> PersonDetails:
    return PersonDetails(
        name=chart.moment.name,
        nakshatra=chart.nakshatra.name,
        rashi=chart.rashi.name,
        manglik=chart.manglik,
    )


def match_from_charts(chart_a: Chart, chart_b: Chart) -> MatchResult:
    with calculation_stage("Match calculation"):
        kootas = calculate_all_kootas(chart_a.nakshatra, chart_a.rashi, chart_b.nakshatra, chart_b.rashi)
        total = total_score(kootas)
        percentage = compatibility_percentage(total)
        tier, description = compatibility_tier(percentage)
    warnings = [f"Person A: {w}" for w in chart_a.warnings] + [f"Person B: {w}" for w in chart_b.warnings]
    logger.info(
        "Match computed",
        extra={"total": total, "percentage": percentage, "tier": tier, "degraded": bool(warnings)},
    )
    return MatchResult(
        total_score=total,
        max_score=MAX_TOTAL,
        percentage=percentage,
        kootas=kootas,
        person_a_details=_details(chart_a),
        person_b_details=_details(chart_b),
        compatibility=tier,
        compatibility_description=description,
        warnings=warnings,
    )


def calculate_match(
    person_a: BirthMoment,
    person_b: BirthMoment,
    *,
    ephemeris: EphemerisOracle,
    geocoder: Optional[Geocoder] = None,
    house_system: str = HOUSE_SYSTEM,
) -> MatchResult:
    chart_a, chart_b = build_charts(
        person_a, person_b, ephemeris=ephemeris, geocoder=geocoder, house_system=house_system
    )
    return match_from_charts(chart_a, chart_b)


def get_koota_analysis(
    koota_name: str,
    person_a: BirthMoment,
    person_b: BirthMoment,
    *,
    ephemeris: EphemerisOracle,
    geocoder: Optional[Geocoder] = None,
    house_system: str = HOUSE_SYSTEM,
) -> KootaScore:
    result = calculate_match(
        person_a, person_b, ephemeris=ephemeris, geocoder=geocoder, house_system=house_system
    )
    return find_koota(result.kootas, koota_name)


# =============================== Views ===============================

def get_match_suggestions(result: MatchResult) -> List[str]:
    return generate_suggestions(
        result.kootas,
        result.percentage,
        result.person_a_details.manglik,
        result.person_b_details.manglik,
    )


def get_match_summary(result: MatchResult) -> MatchSummary:
    strengths, weaknesses = strengths_and_weaknesses(result.kootas)
    return MatchSummary(
        total_score=result.total_score,
        max_score=result.max_score,
        percentage=result.percentage,
        compatibility=result.compatibility,
        key_strengths=strengths,
        key_weaknesses=weaknesses,
    )
