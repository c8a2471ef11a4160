"""
urgency.py

Urgency ranking (1-5, 5 = most urgent) for escalated cases.

The level is a maximum over three sources:
- severity base mapping
- problem category
- triggers (manual request, life-threatening keywords)
"""

from __future__ import annotations

from typing import Any, Iterable

from config import URGENT_KEYWORDS
from escalation.models import (
    Category,
    Severity,
    TriggerType,
    coerce_category,
    coerce_severity,
    field_of,
)


MIN_URGENCY = 1
MAX_URGENCY = 5

BASE_URGENCY = {
    Severity.CRITICAL: 5,
    Severity.HIGH: 4,
    Severity.MEDIUM: 2,
}

ELEVATED_URGENCY = 4


def calculate_urgency_level(
    severity: Any,
    triggers: Iterable[Any],
    category: Any,
) -> int:
    urgency = BASE_URGENCY.get(coerce_severity(severity), MIN_URGENCY)

    # ---------------- CATEGORY ----------------
    category = coerce_category(category)

    if category in (Category.EMERGENCY, Category.CHEMICAL_SAFETY):
        urgency = MAX_URGENCY
    elif category == Category.CROP_FAILURE:
        urgency = max(urgency, ELEVATED_URGENCY)

    # ---------------- TRIGGERS ----------------
    if any(_is_elevating(t) for t in triggers or ()):
        urgency = max(urgency, ELEVATED_URGENCY)

    return urgency


def _is_elevating(trigger: Any) -> bool:
    kind = field_of(trigger, "type")

    if kind == TriggerType.MANUAL:
        return True

    if kind == TriggerType.KEYWORDS:
        keywords = field_of(trigger, "keywords") or ()
        return any(k in URGENT_KEYWORDS for k in keywords)

    return False
