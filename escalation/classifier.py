"""
classifier.py

Escalation triage for farmer queries.

PURPOSE:
- Decide whether a query must be routed to a human expert
- Collect every rule that fired, in evaluation order
- Assign a severity bucket (medium | high | critical)

RULES (evaluated independently, in this order):
1. Manual request by the farmer
2. Low AI answer confidence
3. High-risk keywords in the query text
4. Weak or critical image analysis

Severity only ever moves up the medium < high < critical lattice.

THIS MODULE DOES NOT:
- Call any model
- Log or persist anything
- Raise for any combination of optional inputs
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from config import (
    AI_CONFIDENCE_HIGH_SEVERITY,
    AI_CONFIDENCE_THRESHOLD,
    CRITICAL_KEYWORDS,
    IMAGE_CONFIDENCE_THRESHOLD,
    RISK_KEYWORDS,
)
from escalation.models import (
    EscalationDecision,
    EscalationTrigger,
    Severity,
    TriggerType,
    field_of,
    max_severity,
)


# ============================================================
# TRIGGER TEMPLATES
# ============================================================

MANUAL_TRIGGER = EscalationTrigger(
    type=TriggerType.MANUAL,
    description="Manually escalated by user",
)

CONFIDENCE_TRIGGER = EscalationTrigger(
    type=TriggerType.CONFIDENCE,
    threshold=AI_CONFIDENCE_THRESHOLD,
    description="AI confidence below 60%",
)

KEYWORDS_DESCRIPTION = "High-risk keywords detected"

IMAGE_ANALYSIS_TRIGGER = EscalationTrigger(
    type=TriggerType.IMAGE_ANALYSIS,
    threshold=IMAGE_CONFIDENCE_THRESHOLD,
    description="Image analysis confidence below 70% or unknown pest/disease",
)


# ============================================================
# PUBLIC API
# ============================================================

def classify(
    query: str,
    ai_confidence: Optional[float] = None,
    image_analysis: Any = None,
    manual: bool = False,
) -> EscalationDecision:
    """
    Triage one query.

    `image_analysis` may be an ImageAnalysis model or any mapping with
    "confidence" and "severity" keys. Absent inputs switch their rule off.
    """

    triggers: List[EscalationTrigger] = []
    severity = Severity.MEDIUM

    # ---------------- MANUAL ----------------
    if manual:
        triggers.append(MANUAL_TRIGGER)
        severity = max_severity(severity, Severity.HIGH)

    # ---------------- AI CONFIDENCE ----------------
    if ai_confidence is not None and ai_confidence < AI_CONFIDENCE_THRESHOLD:
        triggers.append(CONFIDENCE_TRIGGER)
        if ai_confidence < AI_CONFIDENCE_HIGH_SEVERITY:
            severity = max_severity(severity, Severity.HIGH)

    # ---------------- KEYWORDS ----------------
    found = match_risk_keywords(query)
    if found:
        triggers.append(
            EscalationTrigger(
                type=TriggerType.KEYWORDS,
                keywords=found,
                description=KEYWORDS_DESCRIPTION,
            )
        )
        if any(k in CRITICAL_KEYWORDS for k in found):
            severity = max_severity(severity, Severity.CRITICAL)
        else:
            severity = max_severity(severity, Severity.HIGH)

    # ---------------- IMAGE ANALYSIS ----------------
    if image_analysis is not None:
        image_confidence, image_severity = _image_signals(image_analysis)
        weak = image_confidence is not None and image_confidence < IMAGE_CONFIDENCE_THRESHOLD
        critical = image_severity == Severity.CRITICAL.value

        if weak or critical:
            triggers.append(IMAGE_ANALYSIS_TRIGGER)
            severity = max_severity(
                severity,
                Severity.CRITICAL if critical else Severity.HIGH,
            )

    return EscalationDecision(
        should_escalate=bool(triggers),
        triggers=tuple(triggers),
        severity=severity,
    )


def match_risk_keywords(query: Optional[str]) -> Tuple[str, ...]:
    """Risk phrases contained anywhere in the query, in list order."""
    text = (query or "").lower()
    return tuple(k for k in RISK_KEYWORDS if k in text)


# ============================================================
# INTERNAL
# ============================================================

def _image_signals(image_analysis: Any) -> Tuple[Optional[float], Optional[str]]:
    confidence = field_of(image_analysis, "confidence")
    severity = field_of(image_analysis, "severity")

    if not isinstance(confidence, (int, float)) or isinstance(confidence, bool):
        confidence = None

    if isinstance(severity, str):
        severity = severity.lower()
    else:
        severity = None

    return confidence, severity
