"""Birth records and planetary position containers used across services."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


# Bodies in the order charts are built and reported.
BODIES: Tuple[str, ...] = (
    "Sun", "Moon", "Mars", "Mercury", "Jupiter", "Venus", "Saturn", "Rahu", "Ketu",
)


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


@dataclass(frozen=True)
class BirthMoment:
    """One person's birth data as accepted by the match pipeline.

    ``time_of_birth`` may be ``HH:MM``, ``HH:MM:SS`` or a full ISO datetime
    (only its time part is used). ``timezone`` is an IANA name; when absent
    the local time is read as UTC. Coordinates are optional and resolved via
    the geocoder when either one is missing.
    """
    date_of_birth: str
    time_of_birth: str
    place_of_birth: str
    gender: Gender = Gender.OTHER
    name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timezone: Optional[str] = None


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class PlanetaryPositions:
    """Ecliptic longitudes in degrees, each in [0, 360)."""
    sun: float
    moon: float
    mars: float
    mercury: float
    jupiter: float
    venus: float
    saturn: float
    rahu: float
    ketu: float

    def get(self, body: str) -> float:
        return getattr(self, body.lower())
