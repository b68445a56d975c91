"""enhanced_match_services
================================================================================
Basic match plus current periods, transits and cross-chart aspects, folded
into one weighted verdict.

    overall = round(0.4 * percentage + 0.2 * dasha_score
                    + 0.2 * transit_score + 0.2 * harmony * 10)

with ``dasha_score`` and ``transit_score`` taken from the tables below.
Both charts are built once and shared by every engine; transit positions are
computed once at ``as_of`` and placed into each chart's houses.
"""
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from kundli_core.errors import calculation_stage
from kundli_core.geocoding import Geocoder
from kundli_core.kundli_core import EphemerisOracle
from kundli_core.mathutils import round_half_up
from kundli_core.models import BirthMoment
from services.aspect_services import AspectAnalysis, analyze_aspects
from services.dasha_services import (
    DashaCompatibility,
    DashaPeriod,
    calculate_dasha_compatibility,
    calculate_dasha_period,
)
from services.match_services import MatchResult, build_charts, match_from_charts
from services.transit_services import (
    TransitAnalysis,
    calculate_mutual_transit_influence,
    current_positions,
    transits_for_cusps,
)
from settings import HOUSE_SYSTEM

logger = logging.getLogger(__name__)

# =============================== Constants ===============================

DASHA_SCORES: Dict[str, float] = {"Excellent": 90, "Good": 75, "Average": 60, "Poor": 40}
TRANSIT_SCORES: Dict[str, float] = {"Positive": 85, "Neutral": 60, "Negative": 35}
FALLBACK_SCORE = 50.0

WEIGHTS: Dict[str, float] = {"basic": 0.4, "dasha": 0.2, "transit": 0.2, "aspects": 0.2}

RECOMMENDATIONS: Dict[str, str] = {
    "basic_low": "Basic compatibility is low. Astrological remedies and relationship counselling are worth considering.",
    "basic_high": "Excellent basic compatibility: the relationship rests on strong astrological foundations.",
    "dasha_excellent": "Current periods are highly favourable for developing the relationship.",
    "dasha_poor": "Current periods may bring challenges. Patience and understanding are essential.",
    "transit_positive": "Current transits support the relationship; a good time for major decisions.",
    "transit_negative": "Current transits may create tension. Focus on communication and mutual support.",
    "harmony_high": "Cross-chart aspects show excellent harmony between the partners.",
    "harmony_low": "Cross-chart aspects point to friction. Remedies and counselling may help.",
}


# =============================== Data types ===============================

@dataclass(frozen=True)
class DashaAnalysis:
    person_a_dasha: DashaPeriod
    person_b_dasha: DashaPeriod
    compatibility: str
    description: str


@dataclass(frozen=True)
class EnhancedMatchResult:
    basic: MatchResult
    dasha_compatibility: DashaAnalysis
    transit_analysis: TransitAnalysis
    planetary_aspects: AspectAnalysis
    overall_score: int
    recommendations: List[str]
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ComprehensiveAnalysis:
    basic_compatibility: int
    dasha_compatibility: str
    transit_influence: str
    planetary_harmony: float
    overall_score: int
    recommendations: List[str]


# =============================== Scoring ===============================

def overall_score(percentage: float, dasha_level: str, transit_influence: str, harmony: float) -> int:
    dasha_score = DASHA_SCORES.get(dasha_level, FALLBACK_SCORE)
    transit_score = TRANSIT_SCORES.get(transit_influence, FALLBACK_SCORE)
    weighted = (
        percentage * WEIGHTS["basic"]
        + dasha_score * WEIGHTS["dasha"]
        + transit_score * WEIGHTS["transit"]
        + harmony * 10 * WEIGHTS["aspects"]
    )
    return int(round_half_up(weighted))


def generate_recommendations(
    percentage: float,
    dasha: DashaCompatibility,
    transits: TransitAnalysis,
    harmony: float,
) -> List[str]:
    recs: List[str] = []
    if percentage < 50:
        recs.append(RECOMMENDATIONS["basic_low"])
    elif percentage > 75:
        recs.append(RECOMMENDATIONS["basic_high"])

    if dasha.compatibility == "Excellent":
        recs.append(RECOMMENDATIONS["dasha_excellent"])
    elif dasha.compatibility == "Poor":
        recs.append(RECOMMENDATIONS["dasha_poor"])

    if transits.mutual_influence == "Positive":
        recs.append(RECOMMENDATIONS["transit_positive"])
    elif transits.mutual_influence == "Negative":
        recs.append(RECOMMENDATIONS["transit_negative"])

    if harmony > 7:
        recs.append(RECOMMENDATIONS["harmony_high"])
    elif harmony < 4:
        recs.append(RECOMMENDATIONS["harmony_low"])

    recs.extend(transits.recommendations)
    return recs


# ============================ High-level API ============================

def calculate_enhanced_match(
    person_a: BirthMoment,
    person_b: BirthMoment,
    *,
    ephemeris: EphemerisOracle,
    geocoder: Optional[Geocoder] = None,
    as_of: Optional[dt.datetime] = None,
    house_system: str = HOUSE_SYSTEM,
) -> EnhancedMatchResult:
    as_of = as_of or dt.datetime.now(dt.timezone.utc)
    chart_a, chart_b = build_charts(
        person_a, person_b, ephemeris=ephemeris, geocoder=geocoder, house_system=house_system
    )
    basic = match_from_charts(chart_a, chart_b)

    with calculation_stage("Dasha calculation"):
        dasha_a = calculate_dasha_period(chart_a.birth_utc, as_of, chart_a.nakshatra.index)
        dasha_b = calculate_dasha_period(chart_b.birth_utc, as_of, chart_b.nakshatra.index)
        dasha = calculate_dasha_compatibility(dasha_a, dasha_b)

    with calculation_stage("Transit calculation"):
        positions, transit_warnings = current_positions(ephemeris, as_of)
        transits = calculate_mutual_transit_influence(
            transits_for_cusps(chart_a.cusps, positions),
            transits_for_cusps(chart_b.cusps, positions),
        )

    with calculation_stage("Aspect calculation"):
        aspects = analyze_aspects(chart_a.positions, chart_b.positions)

    score = overall_score(basic.percentage, dasha.compatibility, transits.mutual_influence, aspects.harmony)
    logger.info(
        "Enhanced match computed",
        extra={"percentage": basic.percentage, "dasha": dasha.compatibility,
               "transit": transits.mutual_influence, "harmony": aspects.harmony, "overall": score},
    )
    return EnhancedMatchResult(
        basic=basic,
        dasha_compatibility=DashaAnalysis(
            person_a_dasha=dasha_a,
            person_b_dasha=dasha_b,
            compatibility=dasha.compatibility,
            description=dasha.description,
        ),
        transit_analysis=transits,
        planetary_aspects=aspects,
        overall_score=score,
        recommendations=generate_recommendations(basic.percentage, dasha, transits, aspects.harmony),
        warnings=basic.warnings + transit_warnings,
    )


def get_comprehensive_analysis(
    person_a: BirthMoment,
    person_b: BirthMoment,
    *,
    ephemeris: EphemerisOracle,
    geocoder: Optional[Geocoder] = None,
    as_of: Optional[dt.datetime] = None,
    house_system: str = HOUSE_SYSTEM,
) -> ComprehensiveAnalysis:
    enhanced = calculate_enhanced_match(
        person_a, person_b, ephemeris=ephemeris, geocoder=geocoder, as_of=as_of, house_system=house_system
    )
    return ComprehensiveAnalysis(
        basic_compatibility=enhanced.basic.percentage,
        dasha_compatibility=enhanced.dasha_compatibility.compatibility,
        transit_influence=enhanced.transit_analysis.mutual_influence,
        planetary_harmony=enhanced.planetary_aspects.harmony,
        overall_score=enhanced.overall_score,
        recommendations=enhanced.recommendations,
    )
