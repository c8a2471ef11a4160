"""
models.py

Data model for expert escalation.

Enums are closed string sets so they compare equal to their raw values
("critical" == Severity.CRITICAL) and serialize as plain strings.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, List, Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


# ============================================================
# ENUMS
# ============================================================

class Severity(str, Enum):
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TriggerType(str, Enum):
    CONFIDENCE = "confidence"
    KEYWORDS = "keywords"
    SEVERITY = "severity"
    IMAGE_ANALYSIS = "image_analysis"
    MANUAL = "manual"


class Category(str, Enum):
    PEST = "pest"
    DISEASE = "disease"
    CROP_FAILURE = "crop_failure"
    CHEMICAL_SAFETY = "chemical_safety"
    EMERGENCY = "emergency"
    OTHER = "other"


class CaseStatus(str, Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_REVIEW = "in_review"
    RESOLVED = "resolved"
    CLOSED = "closed"


class QueryType(str, Enum):
    TEXT = "text"
    VOICE = "voice"
    IMAGE = "image"


class Availability(str, Enum):
    AVAILABLE = "available"
    BUSY = "busy"
    OFFLINE = "offline"


# ---------------- SEVERITY LATTICE ----------------

SEVERITY_RANK = {
    Severity.MEDIUM: 0,
    Severity.HIGH: 1,
    Severity.CRITICAL: 2,
}


def max_severity(*levels: Severity) -> Severity:
    """Highest severity in the medium < high < critical ordering."""
    return max(levels, key=lambda s: SEVERITY_RANK[s])


def coerce_severity(value: Any) -> Optional[Severity]:
    """None for anything outside the lattice."""
    if isinstance(value, Severity):
        return value
    try:
        return Severity(value)
    except ValueError:
        return None


def coerce_category(value: Any) -> Category:
    """Unknown or missing categories fall back to OTHER."""
    if isinstance(value, Category):
        return value
    try:
        return Category(value)
    except ValueError:
        return Category.OTHER


# ============================================================
# TRIAGE RECORDS
# ============================================================

class EscalationTrigger(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: TriggerType
    threshold: Optional[float] = None
    keywords: Optional[Tuple[str, ...]] = None
    description: str


ImageCategory = Literal[
    "pest", "disease", "nutrient_deficiency", "healthy", "environmental_stress"
]
ImageSeverity = Literal["low", "medium", "high", "critical"]


class ImageAnalysis(BaseModel):
    primary_issue: str = Field(description="The main issue identified in the image")
    confidence: float = Field(ge=0.0, le=1.0, description="Confidence of the analysis (0-1)")
    category: ImageCategory = Field(description="Type of problem shown in the image")
    severity: ImageSeverity = Field(description="How serious the problem is")
    description: str = Field(description="What is visible in the image")
    recommendations: List[str] = Field(description="Actionable treatment steps")
    urgency: bool = Field(description="Whether immediate action is required")

    @field_validator("category", "severity", mode="before")
    @classmethod
    def normalize_labels(cls, value: Any) -> Any:
        # models sometimes answer "Critical" or " high"
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def summary(self) -> str:
        lines = [
            "I uploaded an image for analysis. Here are the results:",
            f"Issue Identified: {self.primary_issue}",
            f"Category: {self.category.replace('_', ' ')}",
            f"Severity: {self.severity}",
            f"Confidence: {round(self.confidence * 100)}%",
            f"Description: {self.description}",
        ]
        if self.recommendations:
            lines.append("Recommendations:")
            lines.extend(
                f"{i}. {rec}" for i, rec in enumerate(self.recommendations, start=1)
            )
        if self.urgency:
            lines.append("This issue requires urgent attention!")
        return "\n".join(lines)


class EscalationDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    should_escalate: bool
    triggers: Tuple[EscalationTrigger, ...] = ()
    severity: Severity = Severity.MEDIUM


# ============================================================
# EXPERTS
# ============================================================

class Location(BaseModel):
    state: str
    district: str = ""
    village: Optional[str] = None


class ExpertLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: str
    districts: Tuple[str, ...] = ()


class Expert(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    phone: str
    specializations: Tuple[str, ...] = ()
    languages: Tuple[str, ...] = ()
    location: ExpertLocation
    availability: Availability = Availability.AVAILABLE
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    cases_handled: int = Field(default=0, ge=0)


class MatchCriteria(BaseModel):
    """The parts of a case the matcher looks at."""

    category: Optional[Category] = None
    location: Optional[Location] = None
    severity: Severity = Severity.MEDIUM


# ============================================================
# CASES
# ============================================================

class EscalationCase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    farmer_id: str
    farmer_name: Optional[str] = None
    farmer_contact: Optional[str] = None

    query: str
    query_type: QueryType = QueryType.TEXT
    language: Optional[str] = None
    image_urls: Tuple[str, ...] = ()
    ai_response: Optional[str] = None
    confidence: Optional[float] = None

    escalation_triggers: Tuple[EscalationTrigger, ...] = ()
    severity: Severity
    category: Category = Category.OTHER
    status: CaseStatus = CaseStatus.PENDING

    assigned_expert: Optional[str] = None
    expert_response: Optional[str] = None

    created_at: datetime
    updated_at: datetime

    location: Optional[Location] = None
    crop_type: Optional[str] = None
    farm_size: Optional[str] = None

    @computed_field
    @property
    def urgency_level(self) -> int:
        # derived on every read so it can never drift from its inputs
        from escalation.urgency import calculate_urgency_level

        return calculate_urgency_level(
            self.severity,
            self.escalation_triggers,
            self.category,
        )


def field_of(record: Any, name: str, default: Any = None) -> Any:
    """Read a field from either a model or a plain mapping."""
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)
