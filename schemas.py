from __future__ import annotations
import datetime as dt
from typing import List, Optional, Literal
from pydantic import AliasChoices, BaseModel, Field, ConfigDict, field_validator

from kundli_core.models import BirthMoment, Gender
from services.position_services import parse_time_of_birth


# --------- Common ---------
class ErrorDetail(BaseModel):
    field: Optional[str] = None
    issue: Optional[str] = None


class ErrorEnvelope(BaseModel):
    code: str = Field(default="SERVER_ERROR")
    message: str
    details: Optional[List[ErrorDetail]] = None


class ErrorResponse(BaseModel):
    error: ErrorEnvelope


# --------- Inputs ---------
class BirthPayload(BaseModel):
    """Birth details for one partner."""
    model_config = ConfigDict(populate_by_name=True, json_schema_extra={
        "examples": [
            {
                "name": "Amit",
                "gender": "MALE",
                "dateOfBirth": "1991-07-14",
                "timeOfBirth": "22:35:00",
                "placeOfBirth": "Mumbai, IN",
                "timeZone": "Asia/Kolkata",
                "latitude": 19.0760,
                "longitude": 72.8777
            }
        ]
    })

    name: Optional[str] = Field(default=None, description="Full name of the person.", examples=["Amit"])
    gender: Literal["MALE", "FEMALE", "OTHER"] = Field(..., description='One of "MALE", "FEMALE", "OTHER".', examples=["MALE"])
    dateOfBirth: str = Field(..., min_length=1, description="Birth date in ISO format YYYY-MM-DD.", examples=["1991-07-14"])  # YYYY-MM-DD
    timeOfBirth: str = Field(..., min_length=1, description="Birth time in 24h format HH:MM or HH:MM:SS (a full ISO datetime is also accepted).", examples=["22:35:00"])
    placeOfBirth: str = Field(..., min_length=1, description="Human-readable place name (city, country).", examples=["Mumbai, IN"])
    city: Optional[str] = Field(default=None, description="City, used for geocoding when coordinates are missing.")
    state: Optional[str] = Field(default=None, description="State or region, used for geocoding.")
    country: Optional[str] = Field(default=None, description="Country, used for geocoding.")
    timeZone: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("timeZone", "timezone"),
        description="IANA timezone for the place of birth. Local time is read as UTC when omitted.",
        examples=["Asia/Kolkata"],
    )
    latitude: Optional[float] = Field(default=None, ge=-90, le=90, description="Latitude in decimal degrees (north positive). Geocoded when omitted.", examples=[19.0760])
    longitude: Optional[float] = Field(default=None, ge=-180, le=180, description="Longitude in decimal degrees (east positive). Geocoded when omitted.", examples=[72.8777])

    @field_validator("placeOfBirth")
    @classmethod
    def _place_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Place of birth is required")
        return v

    @field_validator("dateOfBirth")
    @classmethod
    def _date_format(cls, v: str) -> str:
        try:
            born = dt.date.fromisoformat(v.strip())
        except ValueError:
            raise ValueError("Invalid date of birth format (expected YYYY-MM-DD)")
        if born > dt.datetime.now(dt.timezone.utc).date():
            raise ValueError("Birth date cannot be in the future")
        return v.strip()

    @field_validator("timeOfBirth")
    @classmethod
    def _time_format(cls, v: str) -> str:
        try:
            parse_time_of_birth(v)
        except ValueError:
            raise ValueError("Invalid time of birth format (expected HH:MM or HH:MM:SS)")
        return v.strip()

    def to_birth_moment(self) -> BirthMoment:
        return BirthMoment(
            date_of_birth=self.dateOfBirth,
            time_of_birth=self.timeOfBirth,
            place_of_birth=self.placeOfBirth,
            gender=Gender(self.gender),
            name=self.name,
            city=self.city,
            state=self.state,
            country=self.country,
            latitude=self.latitude,
            longitude=self.longitude,
            timezone=self.timeZone,
        )


class MatchRequest(BaseModel):
    """Two people to match."""
    model_config = ConfigDict(json_schema_extra={
        "examples": [
            {
                "personA": {
                    "name": "Amit", "gender": "MALE", "dateOfBirth": "1991-07-14", "timeOfBirth": "22:35:00",
                    "placeOfBirth": "Mumbai, IN", "timeZone": "Asia/Kolkata", "latitude": 19.0760, "longitude": 72.8777
                },
                "personB": {
                    "name": "Riya", "gender": "FEMALE", "dateOfBirth": "1993-02-20", "timeOfBirth": "06:10:00",
                    "placeOfBirth": "Delhi, IN", "timeZone": "Asia/Kolkata", "latitude": 28.6139, "longitude": 77.2090
                }
            }
        ]
    })

    personA: BirthPayload = Field(..., description="First person")
    personB: BirthPayload = Field(..., description="Second person")


class EnhancedMatchRequest(MatchRequest):
    """Match request evaluated at a given instant (now when omitted)."""
    asOf: Optional[dt.datetime] = Field(default=None, description="Evaluation instant for periods and transits (ISO 8601). Naive values are read as UTC.")


# --------- Outputs ---------
class KootaScoreOut(BaseModel):
    key: str
    name: str
    label: str
    score: float
    maxScore: int
    description: str


class PersonDetailsOut(BaseModel):
    name: Optional[str] = None
    nakshatra: str
    rashi: str
    manglik: bool


class CompatibilityLevel(BaseModel):
    level: str  # Excellent | Good | Average | Poor
    description: str


class MatchData(BaseModel):
    totalScore: float
    maxScore: int
    percentage: int
    kootas: List[KootaScoreOut]
    personADetails: PersonDetailsOut
    personBDetails: PersonDetailsOut
    compatibility: CompatibilityLevel
    warnings: List[str] = Field(default_factory=list, description="Degraded-quality notes (missing positions, cusps or coordinates).")


class MatchOut(BaseModel):
    data: MatchData


class KootaAnalysisOut(BaseModel):
    data: KootaScoreOut


class MatchSummaryData(BaseModel):
    totalScore: float
    maxScore: int
    percentage: int
    compatibility: str
    keyStrengths: List[str]
    keyWeaknesses: List[str]


class MatchSummaryOut(BaseModel):
    data: MatchSummaryData


class SuggestionsData(BaseModel):
    suggestions: List[str]
    matchSummary: MatchSummaryData


class SuggestionsOut(BaseModel):
    data: SuggestionsData


class PeriodOut(BaseModel):
    planet: str
    level: str  # major | sub | sub_sub
    startDate: dt.datetime
    endDate: dt.datetime
    duration: float = Field(..., description="Nominal duration in years.")
    remaining: float
    unit: str  # years | months | days
    description: str


class DashaPeriodOut(BaseModel):
    currentDasha: PeriodOut
    currentAntardasha: PeriodOut
    currentPratyantardasha: PeriodOut
    nextDasha: PeriodOut


class DashaCompatibilityOut(BaseModel):
    personADasha: DashaPeriodOut
    personBDasha: DashaPeriodOut
    compatibility: str
    description: str


class TransitOut(BaseModel):
    planet: str
    currentSign: str
    currentHouse: int
    description: str
    influence: str  # Positive | Negative | Neutral
    intensity: int


class TransitAnalysisOut(BaseModel):
    personATransits: List[TransitOut]
    personBTransits: List[TransitOut]
    mutualInfluence: str
    recommendations: List[str]


class AspectOut(BaseModel):
    planet1: str
    planet2: str
    aspectType: str
    orb: float
    strength: str  # Strong | Moderate | Weak
    influence: str
    description: str


class PlanetaryAspectsOut(BaseModel):
    aspects: List[AspectOut]
    overallHarmony: float
    keyAspects: List[AspectOut]


class EnhancedMatchData(MatchData):
    dashaCompatibility: DashaCompatibilityOut
    transitAnalysis: TransitAnalysisOut
    planetaryAspects: PlanetaryAspectsOut
    overallScore: int
    recommendations: List[str]


class EnhancedMatchOut(BaseModel):
    data: EnhancedMatchData


class ComprehensiveData(BaseModel):
    basicCompatibility: int
    dashaCompatibility: str
    transitInfluence: str
    planetaryHarmony: float
    overallScore: int
    recommendations: List[str]


class ComprehensiveOut(BaseModel):
    data: ComprehensiveData


class InfoData(BaseModel):
    name: str
    version: str
    zodiac: str
    ayanamsha: Optional[str] = None
    houseSystem: str
    kootas: List[str]
    endpoints: List[str]


class InfoOut(BaseModel):
    data: InfoData
