"""
cases.py

Assembly and lifecycle of escalation cases.

A case is built once triage has decided to escalate and the farmer has
submitted contact details. Afterwards it only moves forward:

    pending → assigned → in_review → resolved → closed

Any open case may also be closed directly. Cases are immutable; every
change returns a new copy with a fresh updated_at.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from escalation.matcher import find_best_expert
from escalation.models import (
    CaseStatus,
    Category,
    EscalationCase,
    EscalationDecision,
    Expert,
    Location,
    MatchCriteria,
    QueryType,
    coerce_category,
)
from escalation.roster import DEFAULT_EXPERTS


# ============================================================
# ERRORS
# ============================================================

class CaseError(ValueError):
    pass


class InvalidTransitionError(CaseError):
    pass


# ============================================================
# LIFECYCLE
# ============================================================

ALLOWED_TRANSITIONS = {
    CaseStatus.PENDING: {CaseStatus.ASSIGNED, CaseStatus.CLOSED},
    CaseStatus.ASSIGNED: {CaseStatus.IN_REVIEW, CaseStatus.CLOSED},
    CaseStatus.IN_REVIEW: {CaseStatus.RESOLVED, CaseStatus.CLOSED},
    CaseStatus.RESOLVED: {CaseStatus.CLOSED},
    CaseStatus.CLOSED: set(),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================
# BUILD
# ============================================================

def build_escalation_case(
    decision: EscalationDecision,
    query: str,
    category: Category = Category.OTHER,
    farmer_name: Optional[str] = None,
    farmer_phone: Optional[str] = None,
    farmer_email: Optional[str] = None,
    location: Optional[Location] = None,
    crop_type: Optional[str] = None,
    farm_size: Optional[str] = None,
    additional_info: Optional[str] = None,
    query_type: QueryType = QueryType.TEXT,
    image_urls: Iterable[str] = (),
    ai_response: Optional[str] = None,
    confidence: Optional[float] = None,
    language: Optional[str] = None,
    roster: Sequence[Expert] = DEFAULT_EXPERTS,
) -> EscalationCase:
    """
    Turn a triage decision plus farmer details into a pending case.

    The recommended expert (if any) is stored as assigned_expert; moving the
    case to `assigned` is left to the assignment workflow.
    """

    if not decision.should_escalate:
        raise CaseError("Triage did not escalate this query")

    category = coerce_category(category)

    recommended = find_best_expert(
        MatchCriteria(
            category=category,
            location=location,
            severity=decision.severity,
        ),
        roster,
    )

    full_query = query
    if additional_info and additional_info.strip():
        full_query = f"{query}\n\nAdditional Information: {additional_info.strip()}"

    now = _utcnow()

    case = EscalationCase(
        id=str(uuid.uuid4()),
        farmer_id=str(uuid.uuid4()),
        farmer_name=farmer_name,
        farmer_contact=farmer_phone or farmer_email,
        query=full_query,
        query_type=query_type,
        language=language,
        image_urls=tuple(image_urls),
        ai_response=ai_response,
        confidence=confidence,
        escalation_triggers=decision.triggers,
        severity=decision.severity,
        category=category,
        status=CaseStatus.PENDING,
        assigned_expert=recommended.id if recommended else None,
        created_at=now,
        updated_at=now,
        location=location,
        crop_type=crop_type,
        farm_size=farm_size,
    )

    logging.info(
        f"🚨 Escalation case {case.id} created "
        f"(severity={case.severity.value}, urgency={case.urgency_level}, "
        f"expert={case.assigned_expert})"
    )

    return case


# ============================================================
# TRANSITIONS
# ============================================================

def advance_status(
    case: EscalationCase,
    new_status: str,
    expert_response: Optional[str] = None,
) -> EscalationCase:
    try:
        target = CaseStatus(new_status)
    except ValueError:
        raise InvalidTransitionError(f"Unknown status: {new_status}")

    if target not in ALLOWED_TRANSITIONS[case.status]:
        raise InvalidTransitionError(
            f"Cannot move case {case.id} from {case.status.value} to {target.value}"
        )

    update = {"status": target, "updated_at": _utcnow()}
    if expert_response is not None:
        update["expert_response"] = expert_response

    logging.info(f"Case {case.id}: {case.status.value} → {target.value}")

    return case.model_copy(update=update)


def assign_expert(case: EscalationCase, expert: Expert) -> EscalationCase:
    if case.status != CaseStatus.PENDING:
        raise InvalidTransitionError(
            f"Case {case.id} is {case.status.value}; only pending cases can be assigned"
        )

    assigned = advance_status(case, CaseStatus.ASSIGNED)
    return assigned.model_copy(update={"assigned_expert": expert.id})
