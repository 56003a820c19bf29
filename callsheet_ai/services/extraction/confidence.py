"""Confidence scoring for candidate and validated contacts.

A record's confidence is the reliability of its source scaled by how complete
it is: ``reliability * (0.5 + 0.5 * completeness)``. Reliability is looked up
by source name, so scoring an already scored record gives the same number.
"""

from typing import Mapping, Sequence

from callsheet_ai.models.contact import GENERIC_ROLE, Contact

DEFAULT_RELIABILITY = 0.5

FIELD_WEIGHTS = {
    "name": 0.30,
    "email": 0.25,
    "phone": 0.25,
    "role": 0.10,
    "company": 0.10,
}


def completeness_score(
    name: str = "",
    email: str = "",
    phone: str = "",
    role: str = "",
    company: str = "",
) -> float:
    """Weighted share of populated fields; the generic role earns nothing."""
    score = 0.0
    if name:
        score += FIELD_WEIGHTS["name"]
    if email:
        score += FIELD_WEIGHTS["email"]
    if phone:
        score += FIELD_WEIGHTS["phone"]
    if role and role != GENERIC_ROLE:
        score += FIELD_WEIGHTS["role"]
    if company:
        score += FIELD_WEIGHTS["company"]
    return round(score, 4)


def score_confidence(reliability: float, completeness: float) -> float:
    value = reliability * (0.5 + 0.5 * completeness)
    return round(max(0.0, min(1.0, value)), 4)


def reliability_for(source: str, reliabilities: Mapping[str, float]) -> float:
    return reliabilities.get(source, DEFAULT_RELIABILITY)


def aggregate_confidence(contacts: Sequence[Contact]) -> float:
    """Mean confidence over contacts; 0.0 when there are none."""
    if not contacts:
        return 0.0
    return round(sum(contact.confidence for contact in contacts) / len(contacts), 4)
