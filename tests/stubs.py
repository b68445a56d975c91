import datetime as dt
from typing import Dict, List, Optional, Sequence, Tuple

from kundli_core.models import Coordinates


UTC = dt.timezone.utc
EQUAL_CUSPS: List[float] = [30.0 * i for i in range(12)]


class StubEphemeris:
    """Fixed longitudes per moment; anything not listed reads from ``transits``."""

    def __init__(
        self,
        charts: Dict[dt.datetime, Dict[str, float]],
        transits: Optional[Dict[str, float]] = None,
        houses: Optional[Tuple[float, Sequence[float]]] = (0.0, EQUAL_CUSPS),
        raise_for: Sequence[str] = (),
    ):
        self.charts = charts
        self.transits = transits or {}
        self._houses = houses
        self.raise_for = set(raise_for)
        self.house_calls: List[Tuple[float, float, str]] = []

    def longitude(self, moment: dt.datetime, body: str) -> Optional[float]:
        if body in self.raise_for:
            raise RuntimeError(f"ephemeris exploded for {body}")
        return self.charts.get(moment, self.transits).get(body)

    def houses(self, moment, lat, lon, house_system):
        self.house_calls.append((lat, lon, house_system))
        if self._houses is None:
            return None
        asc, cusps = self._houses
        return asc, list(cusps)


class StubGeocoder:
    def __init__(self, result: Coordinates = Coordinates(19.0760, 72.8777)):
        self.result = result
        self.calls: List[Tuple] = []

    def coordinates(self, place, city=None, state=None, country=None) -> Coordinates:
        self.calls.append((place, city, state, country))
        return self.result


def positions(moon: float, mars: float, **overrides: float) -> Dict[str, float]:
    base = {
        "Sun": 100.0, "Moon": moon, "Mars": mars, "Mercury": 110.0,
        "Jupiter": 250.0, "Venus": 300.0, "Saturn": 15.0, "Rahu": 75.0,
    }
    base.update(overrides)
    return base


# Person A: Moon 200° (Vishakha, Libra), Mars 10° (Aries, Manglik).
# Person B: Moon 10° (Ashwini, Aries), Mars 40° (Taurus).
BIRTH_A = dt.datetime(1990, 5, 15, 10, 30, tzinfo=UTC)
BIRTH_B = dt.datetime(1992, 8, 20, 14, 15, tzinfo=UTC)
AS_OF = dt.datetime(2024, 1, 1, 0, 0, tzinfo=UTC)
TRANSITS_IN_ARIES = {p: 5.0 for p in ("Sun", "Moon", "Mars", "Mercury", "Jupiter", "Venus", "Saturn")}
