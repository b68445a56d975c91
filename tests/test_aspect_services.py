import pytest

from kundli_core.models import PlanetaryPositions
from services.aspect_services import (
    PlanetaryAspect,
    analyze_aspects,
    aspect_strength,
    calculate_planetary_aspects,
    calculate_planetary_harmony,
    classify_aspect,
    get_key_aspects,
)


def chart(**lons):
    base = dict(sun=0.0, moon=0.0, mars=0.0, mercury=0.0, jupiter=0.0,
                venus=0.0, saturn=0.0, rahu=0.0, ketu=180.0)
    base.update(lons)
    return PlanetaryPositions(**base)


def test_trine_is_symmetric():
    forward = classify_aspect("Sun", "Moon", 10.0, 130.0)
    backward = classify_aspect("Sun", "Moon", 130.0, 10.0)
    assert (forward.aspect_type, forward.orb, forward.strength, forward.influence) == ("Trine", 0.0, "Strong", "Positive")
    assert forward == backward


@pytest.mark.parametrize("a,b,kind,strength", [
    (0.0, 355.0, "Conjunction", "Moderate"),
    (0.0, 63.5, "Sextile", "Weak"),
    (0.0, 93.0, "Square", "Strong"),
    (0.0, 151.0, "Quincunx", "Strong"),
    (0.0, 176.0, "Opposition", "Strong"),
])
def test_classify_aspect_kinds(a, b, kind, strength):
    hit = classify_aspect("Mars", "Venus", a, b)
    assert (hit.aspect_type, hit.strength) == (kind, strength)


def test_no_aspect_outside_tolerances():
    assert classify_aspect("Sun", "Moon", 0.0, 40.0) is None
    assert classify_aspect("Sun", "Moon", 0.0, 104.0) is None


@pytest.mark.parametrize("orb,strength", [(0.0, "Strong"), (3.0, "Strong"), (4.5, "Moderate"), (5.0, "Weak")])
def test_trine_strength_bands(orb, strength):
    hit = classify_aspect("Sun", "Moon", 0.0, 120.0 + orb)
    assert hit.strength == strength


@pytest.mark.parametrize("orb,max_orb,strength", [(2.5, 5.0, "Strong"), (4.0, 5.0, "Moderate"), (4.5, 5.0, "Weak")])
def test_strength_band_edges_are_inclusive(orb, max_orb, strength):
    assert aspect_strength(orb, max_orb) == strength


def test_all_81_comparisons_are_made():
    a = chart(ketu=0.0)
    b = chart(ketu=0.0)
    aspects = calculate_planetary_aspects(a, b)
    assert len(aspects) == 81
    assert all(x.aspect_type == "Conjunction" for x in aspects)
    # Same-body pairs come first.
    assert [(x.planet1, x.planet2) for x in aspects[:2]] == [("Sun", "Sun"), ("Moon", "Moon")]
    assert (aspects[9].planet1, aspects[9].planet2) == ("Sun", "Moon")


def test_harmony_defaults_to_five():
    assert calculate_planetary_harmony([]) == 5.0


def test_harmony_weights_by_strength():
    strong_trine = classify_aspect("Sun", "Moon", 10.0, 130.0)
    weak_square = classify_aspect("Sun", "Moon", 0.0, 95.5)
    assert calculate_planetary_harmony([strong_trine]) == 10.8
    # (10.8 + 2 * 0.8) / 2 = 6.2
    assert calculate_planetary_harmony([strong_trine, weak_square]) == 6.2


def _aspect(name, influence, strength):
    return PlanetaryAspect(name, name, "Conjunction", 0.0, strength, influence, "")


def test_key_aspects_order_and_limit():
    aspects = [
        _aspect("a", "Negative", "Strong"),
        _aspect("b", "Neutral", "Moderate"),
        _aspect("c", "Positive", "Weak"),
        _aspect("d", "Positive", "Strong"),
        _aspect("e", "Negative", "Moderate"),
        _aspect("f", "Positive", "Moderate"),
        _aspect("g", "Neutral", "Strong"),
    ]
    key = get_key_aspects(aspects)
    assert [k.planet1 for k in key] == ["d", "f", "b", "g", "a"]


def test_analyze_aspects_bundles_results():
    a = chart(sun=10.0, moon=200.0, mars=45.0, mercury=300.0, jupiter=77.0, venus=150.0, saturn=250.0, rahu=20.0, ketu=200.0)
    b = chart(sun=130.0, moon=95.0, mars=333.0, mercury=12.0, jupiter=260.0, venus=181.0, saturn=5.0, rahu=111.0, ketu=291.0)
    result = analyze_aspects(a, b)
    assert result.aspects == calculate_planetary_aspects(a, b)
    assert result.harmony == calculate_planetary_harmony(result.aspects)
    assert len(result.key_aspects) <= 5
