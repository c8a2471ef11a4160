"""
Expert Matching Test

Evaluator intent:
- Only available experts are scored
- Specialization outweighs location, location outweighs reputation ties
- Nobody available → least loaded expert, never an error
"""

import pytest

from escalation.matcher import category_keywords, find_best_expert, rank_experts, score_expert
from escalation.models import Availability, Expert, ExpertLocation, Location, MatchCriteria
from escalation.roster import DEFAULT_EXPERTS, get_expert


def _expert(expert_id, availability="available", cases=50, districts=("Kollam",),
            state="Kerala", specs=("soil health",), rating=4.0):
    return Expert(
        id=expert_id,
        name=f"Expert {expert_id}",
        email=f"{expert_id}@example.org",
        phone="+91-0000000000",
        specializations=specs,
        languages=("English",),
        location=ExpertLocation(state=state, districts=districts),
        availability=availability,
        rating=rating,
        cases_handled=cases,
    )


def test_empty_roster_returns_none():
    assert find_best_expert(MatchCriteria(category="pest"), []) is None


def test_all_busy_returns_least_loaded():
    roster = [
        _expert("a", availability="busy", cases=50),
        _expert("b", availability="offline", cases=20),
        _expert("c", availability="busy", cases=20),
    ]

    best = find_best_expert(MatchCriteria(category="pest"), roster)

    assert best.id == "b"
    # roster order untouched
    assert [e.id for e in roster] == ["a", "b", "c"]


def test_district_match_breaks_tie():
    roster = [
        _expert("far", districts=("Idukki",)),
        _expert("near", districts=("Kollam",)),
    ]
    case = MatchCriteria(location=Location(state="Kerala", district="Kollam"))

    assert find_best_expert(case, roster).id == "near"


def test_district_bonus_requires_same_state():
    expert = _expert("x", state="Kerala", districts=("Kollam",), rating=0.0, cases=0)

    assert score_expert(expert, None, Location(state="Tamil Nadu", district="Kollam")) == 0
    assert score_expert(expert, None, Location(state="Kerala", district="Kollam")) == 10
    assert score_expert(expert, None, Location(state="Kerala", district="")) == 5


def test_equal_scores_keep_roster_order():
    roster = [_expert("first"), _expert("second")]

    assert find_best_expert(MatchCriteria(), roster).id == "first"


def test_pest_case_prefers_pest_specialist():
    case = MatchCriteria(category="pest", location=Location(state="Kerala", district="Kollam"))

    ranking = rank_experts(case, DEFAULT_EXPERTS)

    assert [e.id for e, _ in ranking] == ["expert-001", "expert-002"]
    # 2 pest specs (20) + state (5) + district (5) + 4.8*2 + capped experience (10)
    assert ranking[0][1] == pytest.approx(49.6)
    assert ranking[1][1] == pytest.approx(24.8)


def test_busy_experts_are_not_scored():
    case = {"category": "chemical_safety"}

    ids = [e.id for e, _ in rank_experts(case, DEFAULT_EXPERTS)]

    assert "expert-003" not in ids
    # no specialization hits, so rating decides
    assert find_best_expert(case, DEFAULT_EXPERTS).id == "expert-002"


def test_experience_bonus_is_capped():
    junior = _expert("j", rating=0.0, cases=45, specs=())
    senior = _expert("s", rating=0.0, cases=5000, specs=())

    assert score_expert(junior) == pytest.approx(4.5)
    assert score_expert(senior) == pytest.approx(10.0)


def test_unknown_category_gives_no_specialization_bonus():
    assert category_keywords("weather") == ()
    assert category_keywords("other") == ()

    expert = _expert("x", specs=("pest management",), rating=0.0, cases=0)
    assert score_expert(expert, "weather") == 0
    assert score_expert(expert, "pest") == 10


def test_get_expert():
    assert get_expert("expert-002").name == "Dr. Priya Nair"
    assert get_expert("nobody") is None
    assert get_expert("expert-003").availability == Availability.BUSY
