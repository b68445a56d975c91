import pytest
from fastapi.testclient import TestClient

from api_router import get_ephemeris, get_geocoder
from main import app
from stubs import BIRTH_A, BIRTH_B, TRANSITS_IN_ARIES, StubEphemeris, StubGeocoder, positions


PERSON_A = {
    "name": "Arjun",
    "gender": "MALE",
    "dateOfBirth": "1990-05-15",
    "timeOfBirth": "10:30",
    "placeOfBirth": "Mumbai, IN",
    "latitude": 19.0760,
    "longitude": 72.8777,
}
PERSON_B = {
    "name": "Meera",
    "gender": "FEMALE",
    "dateOfBirth": "1992-08-20",
    "timeOfBirth": "14:15:00",
    "placeOfBirth": "Delhi, IN",
    "timezone": "UTC",
}
PAIR = {"personA": PERSON_A, "personB": PERSON_B}


@pytest.fixture
def stub_ephemeris():
    return StubEphemeris(
        charts={BIRTH_A: positions(moon=200.0, mars=10.0), BIRTH_B: positions(moon=10.0, mars=40.0)},
        transits=TRANSITS_IN_ARIES,
    )


@pytest.fixture
def client(stub_ephemeris):
    app.dependency_overrides[get_ephemeris] = lambda: stub_ephemeris
    app.dependency_overrides[get_geocoder] = lambda: StubGeocoder()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_match_smoke(client):
    r = client.post("/api/match", json=PAIR, headers={"X-Request-ID": "req-test-01"})
    assert r.status_code == 200, f"Unexpected {r.status_code}: {r.text}"
    assert r.headers["X-Request-ID"] == "req-test-01"
    data = r.json()["data"]
    assert data["totalScore"] == 14.0
    assert data["maxScore"] == 36
    assert data["percentage"] == 39
    assert data["compatibility"]["level"] == "Poor"
    assert [k["name"] for k in data["kootas"]] == [
        "Varna", "Vashya", "Tara", "Yoni", "GrahaMaitri", "Gana", "Bhakoot", "Nadi",
    ]
    assert data["personADetails"] == {"name": "Arjun", "nakshatra": "Vishakha", "rashi": "Libra", "manglik": True}
    assert data["warnings"] == []


def test_koota_analysis_by_name(client):
    r = client.post("/api/match/analysis/Nadi", json=PAIR)
    assert r.status_code == 200, r.text
    assert r.json()["data"]["score"] == 0.0
    assert r.json()["data"]["maxScore"] == 8


def test_unknown_koota_is_a_400(client):
    r = client.post("/api/match/analysis/Rajju", json=PAIR)
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["code"] == "VALIDATION_ERROR"
    assert "Rajju" in err["message"]


def test_summary_and_suggestions(client):
    summary = client.post("/api/match/summary", json=PAIR).json()["data"]
    assert summary["keyStrengths"] == ["Vashya", "Gana"]
    assert summary["keyWeaknesses"] == ["Tara", "Bhakoot", "Nadi"]

    suggestions = client.post("/api/match/suggestions", json=PAIR).json()["data"]
    assert len(suggestions["suggestions"]) == 6
    assert suggestions["matchSummary"]["percentage"] == 39


def test_enhanced_and_comprehensive(client):
    body = dict(PAIR, asOf="2024-01-01T00:00:00")
    enhanced = client.post("/api/match/enhanced", json=body)
    assert enhanced.status_code == 200, enhanced.text
    data = enhanced.json()["data"]
    assert data["percentage"] == 39
    assert data["dashaCompatibility"]["compatibility"] == "Good"
    assert data["dashaCompatibility"]["personADasha"]["currentDasha"]["planet"] == "Sun"
    assert data["dashaCompatibility"]["personADasha"]["currentAntardasha"]["unit"] == "months"
    assert data["transitAnalysis"]["mutualInfluence"] == "Positive"
    assert len(data["transitAnalysis"]["personATransits"]) == 7
    assert len(data["planetaryAspects"]["keyAspects"]) <= 5

    comprehensive = client.post("/api/match/comprehensive", json=body).json()["data"]
    assert comprehensive["overallScore"] == data["overallScore"]
    assert comprehensive["planetaryHarmony"] == data["planetaryAspects"]["overallHarmony"]
    assert comprehensive["recommendations"] == data["recommendations"]


@pytest.mark.parametrize("change,field", [
    ({"gender": "ROBOT"}, "gender"),
    ({"dateOfBirth": "2999-01-01"}, "dateOfBirth"),
    ({"dateOfBirth": "14/07/1991"}, "dateOfBirth"),
    ({"timeOfBirth": "25:99"}, "timeOfBirth"),
    ({"placeOfBirth": "   "}, "placeOfBirth"),
    ({"latitude": 123.0}, "latitude"),
])
def test_invalid_payload_is_a_422(client, change, field):
    r = client.post("/api/match", json={"personA": dict(PERSON_A, **change), "personB": PERSON_B})
    assert r.status_code == 422
    err = r.json()["error"]
    assert err["code"] == "UNPROCESSABLE_ENTITY"
    assert any(d["field"].endswith(field) for d in err["details"])


def test_bad_timezone_is_a_400(client):
    r = client.post("/api/match", json={"personA": dict(PERSON_A, timeZone="Nowhere/Atlantis"), "personB": PERSON_B})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "VALIDATION_ERROR"


def test_oracle_failure_is_a_500(client, stub_ephemeris):
    stub_ephemeris.raise_for.add("Jupiter")
    r = client.post("/api/match", json=PAIR)
    assert r.status_code == 500
    err = r.json()["error"]
    assert err["code"] == "CALCULATION_ERROR"
    assert err["message"].startswith("Chart calculation failed")


def test_info(client):
    r = client.get("/api/info")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["kootas"] == ["Varna", "Vashya", "Tara", "Yoni", "GrahaMaitri", "Gana", "Bhakoot", "Nadi"]
    assert "/api/match/enhanced" in data["endpoints"]
    assert data["zodiac"] in {"tropical", "sidereal"}


def test_health(client):
    assert client.get("/healthz").status_code == 200
    assert client.get("/readyz").json()["ready"] is True
