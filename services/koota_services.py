"""koota_services
================================================================================
Ashtakoota (Guna Milan) scorer: eight rule tables over the Moon's station and
sign, 36 points in total.

Each scorer is a pure function of two ``NakshatraInfo``/``RashiInfo`` values
and returns a ``KootaScore`` carrying the awarded points, the factor maximum
and a human-readable rationale. Pair rules are symmetric: swapping the two
people never changes a factor's score.

Public API
----------
- score_varna, score_vashya, score_tara, score_yoni, score_graha_maitri,
  score_gana, score_bhakoot, score_nadi
- calculate_all_kootas(nak_a, rashi_a, nak_b, rashi_b) -> list[KootaScore]
- total_score(kootas), compatibility_percentage(total)
- compatibility_tier(percentage) -> (tier, description)
- generate_suggestions(kootas, percentage, manglik_a, manglik_b) -> list[str]
- strengths_and_weaknesses(kootas)
- find_koota(kootas, name)
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Tuple

from kundli_core.errors import ValidationError
from kundli_core.mathutils import round_half_up
from services.position_services import NakshatraInfo, RashiInfo

# =============================== Constants ===============================

MAX_TOTAL = 36

# key -> (name, label, max points), in scoring order
KOOTA_TABLE: Dict[str, Tuple[str, str, int]] = {
    "varna": ("Varna", "Work", 1),
    "vashya": ("Vashya", "Influence", 2),
    "tara": ("Tara", "Destiny", 3),
    "yoni": ("Yoni", "Mentality", 4),
    "graha_maitri": ("GrahaMaitri", "Compatibility", 5),
    "gana": ("Gana", "Temperament", 6),
    "bhakoot": ("Bhakoot", "Love", 7),
    "nadi": ("Nadi", "Health", 8),
}


def _pairs(*pairs: Tuple[str, str]) -> FrozenSet[FrozenSet[str]]:
    return frozenset(frozenset(p) for p in pairs)


def _has_pair(table: FrozenSet[FrozenSet[str]], a: str, b: str) -> bool:
    return frozenset((a, b)) in table


VARNA_FULL = _pairs(("Brahmin", "Kshatriya"), ("Kshatriya", "Vaishya"), ("Vaishya", "Shudra"))
VARNA_HALF = _pairs(("Brahmin", "Vaishya"), ("Brahmin", "Shudra"))

VASHYA_FULL = _pairs(("Chatushpada", "Dvipada"), ("Jalachara", "Keeta"))
VASHYA_ONE = _pairs(("Chatushpada", "Jalachara"), ("Dvipada", "Keeta"))
VASHYA_HALF = _pairs(("Chatushpada", "Keeta"), ("Dvipada", "Jalachara"))

# Tara distance -> points; distances 6..8 score nothing.
TARA_LADDER: Tuple[float, ...] = (3.0, 2.5, 2.0, 1.5, 1.0, 0.5)

YONI_COMPATIBLE = _pairs(
    ("Horse", "Elephant"), ("Sheep", "Snake"), ("Dog", "Cat"), ("Rat", "Cow"),
    ("Buffalo", "Tiger"), ("Deer", "Monkey"), ("Lion", "Crow"),
)
YONI_NEUTRAL: FrozenSet[FrozenSet[str]] = frozenset()
YONI_PARTIAL = _pairs(
    ("Horse", "Snake"), ("Elephant", "Dog"), ("Sheep", "Cat"), ("Snake", "Rat"),
    ("Dog", "Cow"), ("Cat", "Buffalo"), ("Rat", "Tiger"), ("Cow", "Deer"),
    ("Buffalo", "Monkey"), ("Tiger", "Lion"), ("Deer", "Crow"), ("Monkey", "Horse"),
    ("Lion", "Elephant"), ("Crow", "Sheep"),
)
YONI_SLIGHT = _pairs(
    ("Horse", "Dog"), ("Elephant", "Cat"), ("Sheep", "Rat"), ("Snake", "Cow"),
    ("Dog", "Buffalo"), ("Cat", "Tiger"), ("Rat", "Deer"), ("Cow", "Monkey"),
    ("Buffalo", "Lion"), ("Tiger", "Crow"), ("Deer", "Horse"), ("Monkey", "Elephant"),
    ("Lion", "Sheep"), ("Crow", "Snake"),
)

PLANET_FRIENDS = _pairs(
    ("Sun", "Moon"), ("Sun", "Mars"), ("Sun", "Jupiter"), ("Moon", "Mercury"),
    ("Moon", "Venus"), ("Mars", "Jupiter"), ("Mars", "Saturn"), ("Mercury", "Venus"),
    ("Jupiter", "Saturn"),
)

GANA_SCORES = {
    frozenset({"Deva", "Manushya"}): 5.0,
    frozenset({"Manushya", "Rakshasa"}): 4.0,
}

# Sign distance (shorter way round) -> Bhakoot points.
BHAKOOT_BY_DISTANCE: Tuple[float, ...] = (0.0, 7.0, 5.0, 3.0, 2.0, 1.0, 0.0)

NADI_SCORES = {
    frozenset({"Adi", "Antya"}): 8.0,
    frozenset({"Adi", "Madhya"}): 6.0,
    frozenset({"Madhya", "Antya"}): 6.0,
}

TIERS: Tuple[Tuple[float, str, str], ...] = (
    (80.0, "Excellent",
     "Outstanding agreement across the eight factors. Temperament, attraction and family "
     "prospects all point the same way and the union is regarded as highly auspicious."),
    (60.0, "Good",
     "A sound match with more agreement than friction. The weaker factors deserve attention "
     "but the foundation is strong enough to build a lasting partnership."),
    (40.0, "Average",
     "A mixed picture. Several factors pull in different directions, so the relationship "
     "will depend on patience, open communication and deliberate effort from both sides."),
    (0.0, "Poor",
     "Low agreement across the factors. Significant differences in nature and outlook are "
     "likely; a detailed consultation is advisable before any commitment."),
)

PERCENTAGE_ADVICE: Tuple[Tuple[float, str], ...] = (
    (30.0, "CRITICAL: Overall compatibility is very low. Expect recurring friction; a detailed "
           "consultation with an experienced astrologer and a careful look at remedies is "
           "strongly advised before making commitments."),
    (50.0, "MODERATE: Compatibility is mixed, with several difficult areas. The relationship "
           "will need patience and honest communication; counselling and traditional remedies "
           "can help address problems early."),
    (70.0, "GOOD: Compatibility is solid and the relationship has a strong base. Minor "
           "adjustments aside, mutual respect and steady communication will bring out the best "
           "in this match."),
    (float("inf"), "EXCELLENT: An exceptional match. The charts agree on most factors and the "
                   "union is considered highly auspicious, promising a harmonious and "
                   "fulfilling partnership."),
)

FACTOR_ADVICE: Dict[str, str] = {
    "varna": "VARNA: Values and outlook on work differ. Spend time on each other's family "
             "background and beliefs to build mutual respect.",
    "vashya": "VASHYA: Mutual attraction may be uneven. Invest in shared experiences and learn "
              "how each partner expresses affection.",
    "tara": "TARA: Birth stars sit far apart, which can blur mutual understanding. Be patient, "
            "communicate openly and time important decisions with care.",
    "yoni": "YONI: Physical and instinctive compatibility needs attention. Build emotional "
            "closeness first and talk openly about each other's needs.",
    "graha_maitri": "GRAHA MAITRI: The Moon-sign lords are not natural friends, so ways of "
                    "thinking may clash. Cultivate shared interests and respectful debate.",
    "gana": "GANA: Temperaments differ. Accept the other's approach to life rather than trying "
            "to change it.",
    "bhakoot": "BHAKOOT: The Moon signs sit at a difficult distance. Work on understanding "
               "personality and communication styles; counselling can bridge the gap.",
    "nadi": "NADI: Both share the same nadi, traditionally a serious concern for health and "
            "offspring. Seek a detailed consultation and medical advice before planning a family.",
}

MANGLIK_ONE_SIDED = ("MANGLIK: {who} is Manglik (Mars in Aries, Scorpio, Leo, Sagittarius or "
                     "Capricorn). Traditional remedies, or matching with another Manglik, are "
                     "usually recommended.")
MANGLIK_BOTH = ("MANGLIK: Both partners are Manglik. The effects are considered to cancel out "
                "and the pairing is traditionally regarded as compatible.")


# =============================== Data types ===============================

@dataclass(frozen=True)
class KootaScore:
    key: str
    name: str
    label: str
    score: float
    max_score: int
    description: str


def _koota(key: str, score: float, description: str) -> KootaScore:
    name, label, max_points = KOOTA_TABLE[key]
    return KootaScore(key=key, name=name, label=label, score=float(score), max_score=max_points,
                      description=description)


# ============================ Koota scorers =============================

def score_varna(a: NakshatraInfo, b: NakshatraInfo) -> KootaScore:
    va, vb = a.varna, b.varna
    if va == vb:
        return _koota("varna", 1, f"Same varna ({va}). Shared social and spiritual values keep "
                                  "family and working life in harmony.")
    if _has_pair(VARNA_FULL, va, vb):
        return _koota("varna", 1, f"{va}-{vb}: neighbouring varnas that complement each other, "
                                  "one bringing what the other lacks.")
    if _has_pair(VARNA_HALF, va, vb):
        return _koota("varna", 0.5, f"{va}-{vb}: values differ noticeably. Respect for each "
                                    "other's priorities makes the difference workable.")
    return _koota("varna", 0, f"{va}-{vb}: widely separated varnas. Expect different attitudes "
                              "to duty and work that need conscious bridging.")


def score_vashya(a: NakshatraInfo, b: NakshatraInfo) -> KootaScore:
    va, vb = a.vashya, b.vashya
    if va == vb:
        return _koota("vashya", 2, f"Same vashya ({va}). Attraction and influence flow equally "
                                   "in both directions.")
    if _has_pair(VASHYA_FULL, va, vb):
        return _koota("vashya", 2, f"{va}-{vb}: natural mutual attraction with a balanced give "
                                   "and take.")
    if _has_pair(VASHYA_ONE, va, vb):
        return _koota("vashya", 1, f"{va}-{vb}: moderate attraction. One partner tends to lead; "
                                   "balance needs attention.")
    if _has_pair(VASHYA_HALF, va, vb):
        return _koota("vashya", 0.5, f"{va}-{vb}: weak pull between the groups. Affection has "
                                     "to be built deliberately.")
    return _koota("vashya", 0, f"{va}-{vb}: little natural attraction between these groups.")


def score_tara(a: NakshatraInfo, b: NakshatraInfo) -> KootaScore:
    tara_a = a.index % 9 + 1
    tara_b = b.index % 9 + 1
    distance = abs(tara_a - tara_b)
    score = TARA_LADDER[distance] if distance < len(TARA_LADDER) else 0.0
    if distance == 0:
        text = "Birth stars share the same tara. Fortunes and timing run in step."
    elif score >= 2.0:
        text = f"Tara distance {distance}. Destinies are well aligned with minor differences in timing."
    elif score > 0:
        text = f"Tara distance {distance}. Life rhythms differ; patience helps the partners stay in step."
    else:
        text = f"Tara distance {distance}. The birth stars are far apart and fortunes may pull in different directions."
    return _koota("tara", score, text)


def score_yoni(a: NakshatraInfo, b: NakshatraInfo) -> KootaScore:
    ya, yb = a.yoni, b.yoni
    if ya == yb:
        return _koota("yoni", 4, f"Same yoni ({ya}). Instinctive nature and intimacy are in full accord.")
    if _has_pair(YONI_COMPATIBLE, ya, yb):
        return _koota("yoni", 3.5, f"{ya}-{yb}: highly compatible yonis with easy physical and emotional rapport.")
    if _has_pair(YONI_NEUTRAL, ya, yb):
        return _koota("yoni", 2, f"{ya}-{yb}: neutral yonis, neither drawn together nor apart.")
    if _has_pair(YONI_PARTIAL, ya, yb):
        return _koota("yoni", 1.5, f"{ya}-{yb}: partly compatible. Understanding each other's needs takes effort.")
    if _has_pair(YONI_SLIGHT, ya, yb):
        return _koota("yoni", 1, f"{ya}-{yb}: only slightly compatible. Intimacy needs patience and openness.")
    return _koota("yoni", 0, f"{ya}-{yb}: incompatible yonis. Instinctive reactions are likely to clash.")


def score_graha_maitri(a: RashiInfo, b: RashiInfo) -> KootaScore:
    la, lb = a.lord, b.lord
    if la == lb:
        return _koota("graha_maitri", 5, f"Both Moon signs are ruled by {la}. Thinking and outlook are closely matched.")
    if _has_pair(PLANET_FRIENDS, la, lb):
        return _koota("graha_maitri", 4, f"{la} and {lb} are friends. Mutual respect and easy mental rapport.")
    # Every pair outside the friendship list lands here, so the enemy score of 0 never occurs.
    return _koota("graha_maitri", 2, f"{la} and {lb} are neutral to each other. Understanding grows with effort.")


def score_gana(a: NakshatraInfo, b: NakshatraInfo) -> KootaScore:
    ga, gb = a.gana, b.gana
    if ga == gb:
        return _koota("gana", 6, f"Same gana ({ga}). Temperaments are naturally in tune.")
    score = GANA_SCORES.get(frozenset({ga, gb}), 0.0)
    if score:
        return _koota("gana", score, f"{ga}-{gb}: different but compatible temperaments that balance each other.")
    return _koota("gana", 0, f"{ga}-{gb}: opposed temperaments. Friction over how to approach life is likely.")


def _sign_distance(a: int, b: int) -> int:
    d = abs(a - b) % 12
    return min(d, 12 - d)


def score_bhakoot(a: RashiInfo, b: RashiInfo) -> KootaScore:
    distance = _sign_distance(a.index, b.index)
    score = BHAKOOT_BY_DISTANCE[distance]
    if distance == 0:
        text = f"Both Moons in {a.name}. Same-sign Bhakoot earns no points in this scheme."
    elif score >= 5:
        text = f"{a.name}-{b.name}: signs {distance} apart. Emotional bond and shared prosperity are favoured."
    elif score > 0:
        text = f"{a.name}-{b.name}: signs {distance} apart. Affection is present but needs nurturing."
    else:
        text = f"{a.name}-{b.name}: opposite signs. Emotional priorities tend to diverge."
    return _koota("bhakoot", score, text)


def score_nadi(a: NakshatraInfo, b: NakshatraInfo) -> KootaScore:
    na, nb = a.nadi, b.nadi
    if na == nb:
        return _koota("nadi", 0, f"Both partners share {na} nadi (Nadi dosha). Traditionally a concern "
                                  "for health and offspring.")
    score = NADI_SCORES[frozenset({na, nb})]
    return _koota("nadi", score, f"{na}-{nb} nadi: different constitutions, favourable for health and progeny.")


# ============================ Aggregation ============================

def calculate_all_kootas(
    nak_a: NakshatraInfo, rashi_a: RashiInfo, nak_b: NakshatraInfo, rashi_b: RashiInfo
) -> List[KootaScore]:
    """All eight factors in fixed order (maxima 1..8)."""
    return [
        score_varna(nak_a, nak_b),
        score_vashya(nak_a, nak_b),
        score_tara(nak_a, nak_b),
        score_yoni(nak_a, nak_b),
        score_graha_maitri(rashi_a, rashi_b),
        score_gana(nak_a, nak_b),
        score_bhakoot(rashi_a, rashi_b),
        score_nadi(nak_a, nak_b),
    ]


def total_score(kootas: Iterable[KootaScore]) -> float:
    return float(sum(k.score for k in kootas))


def compatibility_percentage(total: float, max_total: int = MAX_TOTAL) -> int:
    return int(round_half_up(total / max_total * 100.0))


def compatibility_tier(percentage: float) -> Tuple[str, str]:
    for threshold, tier, description in TIERS:
        if percentage >= threshold:
            return tier, description
    return TIERS[-1][1], TIERS[-1][2]


def generate_suggestions(
    kootas: Iterable[KootaScore], percentage: float, manglik_a: bool, manglik_b: bool
) -> List[str]:
    suggestions: List[str] = []
    for bound, advice in PERCENTAGE_ADVICE:
        if percentage < bound:
            suggestions.append(advice)
            break

    for k in kootas:
        if k.score < k.max_score * 0.5:
            suggestions.append(FACTOR_ADVICE[k.key])

    if manglik_a and manglik_b:
        suggestions.append(MANGLIK_BOTH)
    elif manglik_a:
        suggestions.append(MANGLIK_ONE_SIDED.format(who="Person A"))
    elif manglik_b:
        suggestions.append(MANGLIK_ONE_SIDED.format(who="Person B"))
    return suggestions


def strengths_and_weaknesses(kootas: Iterable[KootaScore]) -> Tuple[List[str], List[str]]:
    """Factors scored at their maximum, and factors that scored nothing."""
    kootas = list(kootas)
    strengths = [k.name for k in kootas if k.score == k.max_score]
    weaknesses = [k.name for k in kootas if k.score == 0]
    return strengths, weaknesses


def _normalize_koota_name(name: str) -> str:
    return "".join(ch for ch in (name or "").lower() if ch.isalnum())


def find_koota(kootas: Iterable[KootaScore], name: str) -> KootaScore:
    """Look a factor up by key, name or label (case and punctuation insensitive)."""
    wanted = _normalize_koota_name(name)
    for k in kootas:
        if wanted in {_normalize_koota_name(k.key), _normalize_koota_name(k.name), _normalize_koota_name(k.label)}:
            return k
    valid = ", ".join(n for n, _, _ in KOOTA_TABLE.values())
    raise ValidationError(f"Unknown koota {name!r}. Valid names: {valid}")
