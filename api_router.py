from __future__ import annotations
import datetime as dt
from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Path

from schemas import (
    MatchRequest, EnhancedMatchRequest,
    MatchOut, MatchData, KootaScoreOut, PersonDetailsOut, CompatibilityLevel,
    KootaAnalysisOut,
    MatchSummaryOut, MatchSummaryData,
    SuggestionsOut, SuggestionsData,
    EnhancedMatchOut, EnhancedMatchData,
    PeriodOut, DashaPeriodOut, DashaCompatibilityOut,
    TransitOut, TransitAnalysisOut,
    AspectOut, PlanetaryAspectsOut,
    ComprehensiveOut, ComprehensiveData,
    InfoOut, InfoData,
)
from kundli_core.geocoding import CachedGeocoder, Geocoder, NominatimGeocoder
from kundli_core.kundli_core import EphemerisOracle, SwissEphemeris, current_zodiac_info
from services.aspect_services import PlanetaryAspect
from services.dasha_services import DashaPeriod, PeriodState
from services.enhanced_match_services import calculate_enhanced_match, get_comprehensive_analysis
from services.koota_services import KOOTA_TABLE, KootaScore
from services.match_services import (
    MatchResult, MatchSummary,
    calculate_match, get_koota_analysis, get_match_suggestions, get_match_summary,
)
from services.transit_services import PlanetaryTransit
from settings import APP_NAME, APP_VERSION, HOUSE_SYSTEM


router = APIRouter(prefix="/api")


# --------------------- Dependencies ---------------------
@lru_cache()
def get_ephemeris() -> EphemerisOracle:
    return SwissEphemeris()


@lru_cache()
def get_geocoder() -> Geocoder:
    return CachedGeocoder(NominatimGeocoder())


_SAMPLE_PAIR: Dict[str, Any] = {
    "sample": {
        "summary": "Sample",
        "value": {
            "personA": {
                "name": "Amit", "gender": "MALE", "dateOfBirth": "1991-07-14", "timeOfBirth": "22:35:00",
                "placeOfBirth": "Mumbai, IN", "timeZone": "Asia/Kolkata", "latitude": 19.0760, "longitude": 72.8777
            },
            "personB": {
                "name": "Riya", "gender": "FEMALE", "dateOfBirth": "1993-02-20", "timeOfBirth": "06:10:00",
                "placeOfBirth": "Delhi", "timeZone": "Asia/Kolkata"
            },
        },
    }
}


# --------------------- Converters ---------------------
def _koota_out(k: KootaScore) -> KootaScoreOut:
    return KootaScoreOut(key=k.key, name=k.name, label=k.label, score=k.score, maxScore=k.max_score, description=k.description)


def _match_fields(result: MatchResult) -> Dict[str, Any]:
    def details(d) -> PersonDetailsOut:
        return PersonDetailsOut(name=d.name, nakshatra=d.nakshatra, rashi=d.rashi, manglik=d.manglik)

    return dict(
        totalScore=result.total_score,
        maxScore=result.max_score,
        percentage=result.percentage,
        kootas=[_koota_out(k) for k in result.kootas],
        personADetails=details(result.person_a_details),
        personBDetails=details(result.person_b_details),
        compatibility=CompatibilityLevel(level=result.compatibility, description=result.compatibility_description),
        warnings=list(result.warnings),
    )


def _summary_out(summary: MatchSummary) -> MatchSummaryData:
    return MatchSummaryData(
        totalScore=summary.total_score,
        maxScore=summary.max_score,
        percentage=summary.percentage,
        compatibility=summary.compatibility,
        keyStrengths=summary.key_strengths,
        keyWeaknesses=summary.key_weaknesses,
    )


def _period_out(p: PeriodState) -> PeriodOut:
    return PeriodOut(
        planet=p.planet, level=p.level, startDate=p.start, endDate=p.end,
        duration=p.duration_years, remaining=p.remaining, unit=p.unit, description=p.description,
    )


def _dasha_out(d: DashaPeriod) -> DashaPeriodOut:
    return DashaPeriodOut(
        currentDasha=_period_out(d.current_dasha),
        currentAntardasha=_period_out(d.current_antardasha),
        currentPratyantardasha=_period_out(d.current_pratyantardasha),
        nextDasha=_period_out(d.next_dasha),
    )


def _transit_out(t: PlanetaryTransit) -> TransitOut:
    return TransitOut(
        planet=t.planet, currentSign=t.current_sign, currentHouse=t.current_house,
        description=t.description, influence=t.influence, intensity=t.intensity,
    )


def _aspect_out(a: PlanetaryAspect) -> AspectOut:
    return AspectOut(
        planet1=a.planet1, planet2=a.planet2, aspectType=a.aspect_type, orb=a.orb,
        strength=a.strength, influence=a.influence, description=a.description,
    )


def _as_utc(value: Optional[dt.datetime]) -> Optional[dt.datetime]:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=dt.timezone.utc)


# --------------- Match (Guna Milan) -----------------
@router.post("/match", response_model=MatchOut, tags=["Match"], summary="Eight-factor Guna Milan match (36 points)")
def match(
    req: MatchRequest = Body(..., openapi_examples=_SAMPLE_PAIR),
    ephemeris: EphemerisOracle = Depends(get_ephemeris),
    geocoder: Geocoder = Depends(get_geocoder),
) -> MatchOut:
    result = calculate_match(req.personA.to_birth_moment(), req.personB.to_birth_moment(), ephemeris=ephemeris, geocoder=geocoder)
    return MatchOut(data=MatchData(**_match_fields(result)))


@router.post("/match/analysis/{koota_name}", response_model=KootaAnalysisOut, tags=["Match"], summary="Single factor analysis by name")
def koota_analysis(
    koota_name: str = Path(..., description="Varna, Vashya, Tara, Yoni, GrahaMaitri, Gana, Bhakoot or Nadi (labels such as 'Health' are accepted too)."),
    req: MatchRequest = Body(..., openapi_examples=_SAMPLE_PAIR),
    ephemeris: EphemerisOracle = Depends(get_ephemeris),
    geocoder: Geocoder = Depends(get_geocoder),
) -> KootaAnalysisOut:
    koota = get_koota_analysis(
        koota_name, req.personA.to_birth_moment(), req.personB.to_birth_moment(), ephemeris=ephemeris, geocoder=geocoder
    )
    return KootaAnalysisOut(data=_koota_out(koota))


@router.post("/match/suggestions", response_model=SuggestionsOut, tags=["Match"], summary="Advice derived from the match")
def match_suggestions(
    req: MatchRequest = Body(..., openapi_examples=_SAMPLE_PAIR),
    ephemeris: EphemerisOracle = Depends(get_ephemeris),
    geocoder: Geocoder = Depends(get_geocoder),
) -> SuggestionsOut:
    result = calculate_match(req.personA.to_birth_moment(), req.personB.to_birth_moment(), ephemeris=ephemeris, geocoder=geocoder)
    return SuggestionsOut(data=SuggestionsData(
        suggestions=get_match_suggestions(result),
        matchSummary=_summary_out(get_match_summary(result)),
    ))


@router.post("/match/summary", response_model=MatchSummaryOut, tags=["Match"], summary="Score, tier, strongest and weakest factors")
def match_summary(
    req: MatchRequest = Body(..., openapi_examples=_SAMPLE_PAIR),
    ephemeris: EphemerisOracle = Depends(get_ephemeris),
    geocoder: Geocoder = Depends(get_geocoder),
) -> MatchSummaryOut:
    result = calculate_match(req.personA.to_birth_moment(), req.personB.to_birth_moment(), ephemeris=ephemeris, geocoder=geocoder)
    return MatchSummaryOut(data=_summary_out(get_match_summary(result)))


# --------------- Enhanced (periods, transits, aspects) -----------------
@router.post("/match/enhanced", response_model=EnhancedMatchOut, tags=["Enhanced"], summary="Match plus periods, transits and cross-chart aspects")
def enhanced_match(
    req: EnhancedMatchRequest = Body(..., openapi_examples=_SAMPLE_PAIR),
    ephemeris: EphemerisOracle = Depends(get_ephemeris),
    geocoder: Geocoder = Depends(get_geocoder),
) -> EnhancedMatchOut:
    result = calculate_enhanced_match(
        req.personA.to_birth_moment(), req.personB.to_birth_moment(),
        ephemeris=ephemeris, geocoder=geocoder, as_of=_as_utc(req.asOf),
    )
    dasha = result.dasha_compatibility
    transits = result.transit_analysis
    aspects = result.planetary_aspects
    fields = _match_fields(result.basic)
    fields["warnings"] = list(result.warnings)
    return EnhancedMatchOut(data=EnhancedMatchData(
        **fields,
        dashaCompatibility=DashaCompatibilityOut(
            personADasha=_dasha_out(dasha.person_a_dasha),
            personBDasha=_dasha_out(dasha.person_b_dasha),
            compatibility=dasha.compatibility,
            description=dasha.description,
        ),
        transitAnalysis=TransitAnalysisOut(
            personATransits=[_transit_out(t) for t in transits.person_a_transits],
            personBTransits=[_transit_out(t) for t in transits.person_b_transits],
            mutualInfluence=transits.mutual_influence,
            recommendations=transits.recommendations,
        ),
        planetaryAspects=PlanetaryAspectsOut(
            aspects=[_aspect_out(a) for a in aspects.aspects],
            overallHarmony=aspects.harmony,
            keyAspects=[_aspect_out(a) for a in aspects.key_aspects],
        ),
        overallScore=result.overall_score,
        recommendations=result.recommendations,
    ))


@router.post("/match/comprehensive", response_model=ComprehensiveOut, tags=["Enhanced"], summary="Weighted overall verdict with recommendations")
def comprehensive_analysis(
    req: EnhancedMatchRequest = Body(..., openapi_examples=_SAMPLE_PAIR),
    ephemeris: EphemerisOracle = Depends(get_ephemeris),
    geocoder: Geocoder = Depends(get_geocoder),
) -> ComprehensiveOut:
    result = get_comprehensive_analysis(
        req.personA.to_birth_moment(), req.personB.to_birth_moment(),
        ephemeris=ephemeris, geocoder=geocoder, as_of=_as_utc(req.asOf),
    )
    return ComprehensiveOut(data=ComprehensiveData(
        basicCompatibility=result.basic_compatibility,
        dashaCompatibility=result.dasha_compatibility,
        transitInfluence=result.transit_influence,
        planetaryHarmony=result.planetary_harmony,
        overallScore=result.overall_score,
        recommendations=result.recommendations,
    ))


# --------------- Info -----------------
@router.get("/info", response_model=InfoOut, tags=["Meta"], summary="Service configuration and capabilities")
def info() -> InfoOut:
    zodiac = current_zodiac_info()
    endpoints: List[str] = [route.path for route in router.routes]  # type: ignore[attr-defined]
    return InfoOut(data=InfoData(
        name=APP_NAME,
        version=APP_VERSION,
        zodiac=zodiac["mode"],
        ayanamsha=zodiac["ayanamsha"],
        houseSystem=HOUSE_SYSTEM,
        kootas=[name for name, _, _ in KOOTA_TABLE.values()],
        endpoints=endpoints,
    ))
