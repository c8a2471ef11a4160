"""
matcher.py

Pick the best expert on the roster for an escalated case.

SCORING (available experts only):
- specialization: SPECIALIZATION_WEIGHT per specialization mentioning a
  keyword mapped from the case category
- location: STATE_MATCH_BONUS for the same state, plus DISTRICT_MATCH_BONUS
  when the expert also serves the case district
- reputation: rating * RATING_MULTIPLIER plus cases_handled / EXPERIENCE_DIVISOR,
  capped at EXPERIENCE_CAP

Ties keep roster order. When nobody is available the least loaded expert
is returned instead. The roster is never modified.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence, Tuple

from config import (
    CATEGORY_SPECIALIZATION_KEYWORDS,
    DISTRICT_MATCH_BONUS,
    EXPERIENCE_CAP,
    EXPERIENCE_DIVISOR,
    RATING_MULTIPLIER,
    SPECIALIZATION_WEIGHT,
    STATE_MATCH_BONUS,
)
from escalation.models import Availability, Expert, coerce_category, field_of


# ============================================================
# PUBLIC API
# ============================================================

def find_best_expert(case: Any, roster: Sequence[Expert]) -> Optional[Expert]:
    """
    `case` is anything exposing category / location (a MatchCriteria,
    an EscalationCase or a plain dict). Returns None for an empty roster.
    """

    ranked = rank_experts(case, roster)
    if ranked:
        return ranked[0][0]

    return _least_loaded(roster)


def rank_experts(case: Any, roster: Sequence[Expert]) -> List[Tuple[Expert, float]]:
    """Available experts with their scores, best first."""

    category = field_of(case, "category")
    location = field_of(case, "location")

    scored = [
        (expert, score_expert(expert, category, location))
        for expert in roster
        if expert.availability == Availability.AVAILABLE
    ]

    # sorted() is stable with reverse=True, so equal scores keep roster order
    return sorted(scored, key=lambda pair: pair[1], reverse=True)


def score_expert(expert: Expert, category: Any = None, location: Any = None) -> float:
    score = 0.0

    # ---------------- SPECIALIZATION ----------------
    if category is not None:
        keywords = category_keywords(category)
        matching = [
            spec for spec in expert.specializations
            if any(k in spec.lower() for k in keywords)
        ]
        score += len(matching) * SPECIALIZATION_WEIGHT

    # ---------------- LOCATION ----------------
    if location is not None:
        state = field_of(location, "state")
        district = field_of(location, "district")

        if state is not None and state == expert.location.state:
            score += STATE_MATCH_BONUS
            if district and district in expert.location.districts:
                score += DISTRICT_MATCH_BONUS

    # ---------------- REPUTATION ----------------
    score += expert.rating * RATING_MULTIPLIER
    score += min(expert.cases_handled / EXPERIENCE_DIVISOR, EXPERIENCE_CAP)

    return score


def category_keywords(category: Any) -> Tuple[str, ...]:
    """Specialization keywords for a category; unknown categories map to none."""
    return tuple(CATEGORY_SPECIALIZATION_KEYWORDS.get(coerce_category(category).value, ()))


# ============================================================
# INTERNAL
# ============================================================

def _least_loaded(roster: Sequence[Expert]) -> Optional[Expert]:
    if not roster:
        return None

    ordered = sorted(
        roster,
        key=lambda e: (e.availability != Availability.AVAILABLE, e.cases_handled),
    )
    return ordered[0]
