import dataclasses
import datetime as dt

import pytest

from kundli_core.errors import CalculationError, ValidationError
from kundli_core.models import BirthMoment, Coordinates
from services.position_services import (
    NAKSHATRAS,
    RASHIS,
    birth_instant_utc,
    build_chart,
    get_nakshatra_info,
    get_rashi_info,
    is_manglik,
    nakshatra_from_longitude,
    nakshatra_index,
    rashi_from_longitude,
    rashi_index,
)
from stubs import BIRTH_A, StubEphemeris, StubGeocoder, positions


@pytest.mark.parametrize("lon", [0.0, 13.3333, 13.34, 29.999, 30.0, 200.0, 359.9999, 360.0, -0.5, 725.0])
def test_indices_stay_in_range(lon):
    assert 0 <= nakshatra_index(lon) < 27
    assert 0 <= rashi_index(lon) < 12


def test_moon_at_200_degrees():
    assert nakshatra_index(200.0) == 15
    assert NAKSHATRAS[15] == "Vishakha"
    assert rashi_index(200.0) == 6
    assert RASHIS[6] == "Libra"


@pytest.mark.parametrize("k", range(1, 9))
def test_every_fortieth_degree_starts_a_station(k):
    lon = 40.0 * k
    assert nakshatra_index(lon) == 3 * k
    assert nakshatra_index(lon - 1e-6) == 3 * k - 1
    assert rashi_index(lon) == int(4 * k / 3)


def test_station_tags_follow_modulo_tables():
    info = nakshatra_from_longitude(200.0)
    assert info.name == "Vishakha"
    assert info.lord == "Jupiter"
    assert info.gana == "Deva"
    assert info.yoni == "Elephant"
    assert info.nadi == "Adi"
    assert info.varna == "Shudra"
    assert info.vashya == "Chatushpada"


def test_sign_tags():
    info = rashi_from_longitude(200.0)
    assert (info.name, info.number, info.element, info.quality, info.lord) == ("Libra", 7, "Air", "Cardinal", "Venus")
    assert get_rashi_info("Leo").lord == "Sun"
    assert get_nakshatra_info("Revati").lord == "Mercury"


def test_unknown_names_raise_calculation_error():
    with pytest.raises(CalculationError):
        get_nakshatra_info("Pluto's Gate")
    with pytest.raises(CalculationError):
        get_rashi_info("Ophiuchus")


def test_manglik_flag():
    assert is_manglik(10.0) is True   # Aries
    assert is_manglik(40.0) is False  # Taurus
    assert is_manglik(275.0) is True  # Capricorn
    assert is_manglik(100.0) is False  # Cancer


def _moment(**kw) -> BirthMoment:
    base = dict(date_of_birth="1990-05-15", time_of_birth="10:30", place_of_birth="Mumbai")
    base.update(kw)
    return BirthMoment(**base)


def test_birth_instant_uses_timezone():
    utc = birth_instant_utc(_moment(timezone="Asia/Kolkata"))
    assert utc == dt.datetime(1990, 5, 15, 5, 0, tzinfo=dt.timezone.utc)


def test_birth_instant_defaults_to_utc_and_accepts_iso_time():
    assert birth_instant_utc(_moment()) == BIRTH_A
    assert birth_instant_utc(_moment(time_of_birth="2000-01-01T10:30:00.000Z")) == BIRTH_A


@pytest.mark.parametrize("kw", [
    {"date_of_birth": "15/05/1990"},
    {"time_of_birth": "half past ten"},
    {"timezone": "Mars/Olympus_Mons"},
])
def test_birth_instant_rejects_bad_input(kw):
    with pytest.raises(ValidationError):
        birth_instant_utc(_moment(**kw))


def test_build_chart_derives_ketu_and_classifications():
    eph = StubEphemeris(charts={BIRTH_A: positions(moon=200.0, mars=10.0, Rahu=300.0)})
    chart = build_chart(_moment(latitude=19.0, longitude=72.0), eph)
    assert chart.positions.ketu == pytest.approx(120.0)
    assert chart.nakshatra.name == "Vishakha"
    assert chart.rashi.name == "Libra"
    assert chart.manglik is True
    assert len(chart.cusps) == 12
    assert chart.warnings == ()
    assert eph.house_calls == [(19.0, 72.0, "P")]


def test_missing_longitude_degrades_to_zero_with_warning():
    pos = positions(moon=200.0, mars=10.0)
    del pos["Venus"]
    chart = build_chart(_moment(latitude=1.0, longitude=2.0), StubEphemeris(charts={BIRTH_A: pos}))
    assert chart.positions.venus == 0.0
    assert any("Venus" in w for w in chart.warnings)


def test_failed_house_lookup_gives_zero_cusps():
    eph = StubEphemeris(charts={BIRTH_A: positions(moon=200.0, mars=10.0)}, houses=None)
    chart = build_chart(_moment(latitude=1.0, longitude=2.0), eph)
    assert chart.cusps == (0.0,) * 12
    assert chart.ascendant == 0.0
    assert any("cusps" in w for w in chart.warnings)


def test_ephemeris_exception_becomes_calculation_error():
    eph = StubEphemeris(charts={BIRTH_A: positions(moon=200.0, mars=10.0)}, raise_for=["Saturn"])
    with pytest.raises(CalculationError, match="Saturn"):
        build_chart(_moment(latitude=1.0, longitude=2.0), eph)


def test_geocodes_when_a_coordinate_is_missing():
    geo = StubGeocoder(Coordinates(28.7, 77.1))
    eph = StubEphemeris(charts={BIRTH_A: positions(moon=200.0, mars=10.0)})
    chart = build_chart(_moment(latitude=12.0, city="Delhi"), eph, geo)
    assert geo.calls == [("Mumbai", "Delhi", None, None)]
    assert (chart.latitude, chart.longitude) == (28.7, 77.1)


def test_geocoding_miss_is_flagged():
    geo = StubGeocoder(Coordinates(0.0, 0.0))
    eph = StubEphemeris(charts={BIRTH_A: positions(moon=200.0, mars=10.0)})
    chart = build_chart(_moment(), eph, geo)
    assert (chart.latitude, chart.longitude) == (0.0, 0.0)
    assert any("geocode" in w for w in chart.warnings)


def test_chart_is_immutable():
    eph = StubEphemeris(charts={BIRTH_A: positions(moon=200.0, mars=10.0)})
    chart = build_chart(_moment(latitude=1.0, longitude=2.0), eph)
    with pytest.raises(dataclasses.FrozenInstanceError):
        chart.manglik = False  # type: ignore[misc]
