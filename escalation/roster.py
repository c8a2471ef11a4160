"""
Expert roster.

A read-only directory of extension specialists. Callers pass it (or their
own roster) into the matcher explicitly.
"""

from typing import Iterable, Optional, Tuple

from escalation.models import Availability, Expert, ExpertLocation


DEFAULT_EXPERTS: Tuple[Expert, ...] = (
    Expert(
        id="expert-001",
        name="Dr. Rajesh Kumar",
        email="rajesh.kumar@agri.gov.in",
        phone="+91-9876543210",
        specializations=("pest management", "crop diseases", "integrated pest management"),
        languages=("English", "Hindi", "Malayalam"),
        location=ExpertLocation(
            state="Kerala",
            districts=("Thiruvananthapuram", "Kollam", "Pathanamthitta"),
        ),
        availability=Availability.AVAILABLE,
        rating=4.8,
        cases_handled=156,
    ),
    Expert(
        id="expert-002",
        name="Dr. Priya Nair",
        email="priya.nair@kau.in",
        phone="+91-9876543211",
        specializations=("soil health", "nutrient management", "organic farming"),
        languages=("English", "Malayalam", "Tamil"),
        location=ExpertLocation(
            state="Kerala",
            districts=("Kottayam", "Idukki", "Ernakulam"),
        ),
        availability=Availability.AVAILABLE,
        rating=4.9,
        cases_handled=203,
    ),
    Expert(
        id="expert-003",
        name="Dr. Suresh Menon",
        email="suresh.menon@agri.kerala.gov.in",
        phone="+91-9876543212",
        specializations=("crop protection", "chemical safety", "emergency response"),
        languages=("English", "Malayalam", "Hindi"),
        location=ExpertLocation(
            state="Kerala",
            districts=("Thrissur", "Palakkad", "Malappuram"),
        ),
        availability=Availability.BUSY,
        rating=4.7,
        cases_handled=89,
    ),
)


def get_expert(expert_id: str, roster: Iterable[Expert] = DEFAULT_EXPERTS) -> Optional[Expert]:
    for expert in roster:
        if expert.id == expert_id:
            return expert
    return None
