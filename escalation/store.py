"""
In-memory case sink.

Holds submitted escalation cases for the lifetime of the process.
Nothing is written to disk.

Changes go through transition(): the stored case is read, changed and
written back under one lock, so concurrent requests always see the latest
status and cannot overwrite each other.
"""

import threading
from typing import Callable, Dict, List, Optional

from escalation.cases import CaseError
from escalation.models import CaseStatus, EscalationCase


class CaseNotFoundError(CaseError):
    pass


class CaseStore:

    def __init__(self):
        self._cases: Dict[str, EscalationCase] = {}
        self._lock = threading.Lock()

    def add(self, case: EscalationCase) -> EscalationCase:
        with self._lock:
            if case.id in self._cases:
                raise CaseError(f"Case {case.id} already exists")
            self._cases[case.id] = case
        return case

    def get(self, case_id: str) -> EscalationCase:
        with self._lock:
            case = self._cases.get(case_id)
        if case is None:
            raise CaseNotFoundError(f"Case {case_id} not found")
        return case

    def transition(
        self,
        case_id: str,
        change: Callable[[EscalationCase], EscalationCase],
    ) -> EscalationCase:
        """
        Apply `change` to the current version of a case and store the result.

        Errors raised by `change` (e.g. InvalidTransitionError) propagate and
        leave the stored case untouched.
        """
        with self._lock:
            current = self._cases.get(case_id)
            if current is None:
                raise CaseNotFoundError(f"Case {case_id} not found")

            updated = change(current)
            if updated.id != case_id:
                raise CaseError(f"Change replaced case {case_id} with {updated.id}")

            self._cases[case_id] = updated
        return updated

    def list(self, status: Optional[CaseStatus] = None) -> List[EscalationCase]:
        """Most urgent first, oldest first within the same urgency."""
        with self._lock:
            cases = list(self._cases.values())

        if status is not None:
            cases = [c for c in cases if c.status == status]

        return sorted(cases, key=lambda c: (-c.urgency_level, c.created_at))

    def __len__(self) -> int:
        with self._lock:
            return len(self._cases)
