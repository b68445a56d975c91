import pytest

from kundli_core.models import BirthMoment, Gender
from stubs import BIRTH_A, BIRTH_B, TRANSITS_IN_ARIES, StubEphemeris, StubGeocoder, positions


@pytest.fixture
def person_a() -> BirthMoment:
    return BirthMoment(
        date_of_birth="1990-05-15", time_of_birth="10:30", place_of_birth="Mumbai, India",
        gender=Gender.MALE, name="Arjun", latitude=19.0760, longitude=72.8777,
    )


@pytest.fixture
def person_b() -> BirthMoment:
    return BirthMoment(
        date_of_birth="1992-08-20", time_of_birth="14:15:00", place_of_birth="Delhi, India",
        gender=Gender.FEMALE, name="Meera", latitude=28.7041, longitude=77.1025,
    )


@pytest.fixture
def ephemeris() -> StubEphemeris:
    return StubEphemeris(
        charts={BIRTH_A: positions(moon=200.0, mars=10.0), BIRTH_B: positions(moon=10.0, mars=40.0)},
        transits=TRANSITS_IN_ARIES,
    )


@pytest.fixture
def geocoder() -> StubGeocoder:
    return StubGeocoder()
