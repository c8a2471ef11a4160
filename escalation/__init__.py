"""
Escalation package.

Decides when a farmer query needs a human expert, how urgent it is,
and which expert on the roster should take it.
"""

from escalation.classifier import classify
from escalation.urgency import calculate_urgency_level
from escalation.matcher import find_best_expert, rank_experts
from escalation.cases import build_escalation_case, advance_status, assign_expert
from escalation.store import CaseStore

__all__ = [
    "classify",
    "calculate_urgency_level",
    "find_best_expert",
    "rank_experts",
    "build_escalation_case",
    "advance_status",
    "assign_expert",
    "CaseStore",
]
