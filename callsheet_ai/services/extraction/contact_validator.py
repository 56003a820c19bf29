"""Contact validation and deduplication.

Turns an ordered candidate sequence into validated contacts:

1. normalize every field
2. assign a section from the originating header, else from the role
3. deduplicate on email, phone digits, or name and company (first seen wins)
4. drop records without a name or without any contact channel
5. optionally sort by completeness

The validator never raises. Running it on its own output (via
``CandidateContact.from_contact``) returns the same contacts.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Set

from pydantic import ValidationError

from callsheet_ai.models.contact import (
    AI_SOURCE,
    GENERIC_ROLE,
    CandidateContact,
    Contact,
    Section,
)
from callsheet_ai.services.extraction.confidence import (
    completeness_score,
    reliability_for,
    score_confidence,
)
from callsheet_ai.services.extraction.constants import ROLE_SECTION_KEYWORDS
from callsheet_ai.services.extraction.field_normalizer import (
    dedup_key,
    normalize_company,
    normalize_email,
    normalize_name,
    normalize_phone,
    normalize_role,
)
from callsheet_ai.services.extraction.pattern_library import pattern_reliabilities
from callsheet_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)


def section_for_role(role: str) -> Section:
    """Infer a section from role keywords (PRODUCER -> PRODUCTION, MODEL -> TALENT)."""
    upper_role = (role or "").upper()
    for keyword, section in ROLE_SECTION_KEYWORDS:
        if keyword in upper_role:
            return section
    return Section.OTHER


class ContactValidator:
    """Normalizes, sections, deduplicates and scores candidate contacts."""

    def __init__(
        self,
        ai_reliability: float = 0.85,
        reliabilities: Optional[Mapping[str, float]] = None,
    ):
        self.reliabilities: Dict[str, float] = dict(reliabilities or pattern_reliabilities())
        self.reliabilities.setdefault(AI_SOURCE, ai_reliability)

    def validate(
        self,
        candidates: Iterable[CandidateContact],
        quality_sort: bool = False,
    ) -> List[Contact]:
        """Validate an ordered candidate sequence.

        Args:
            candidates: Candidates in extraction order
            quality_sort: Sort output by completeness (descending, stable)

        Returns:
            Contacts with unique dedup keys, each with a name and an email or phone
        """
        seen_keys: Set[str] = set()
        contacts: List[Contact] = []
        duplicates = 0
        dropped = 0

        for candidate in candidates:
            normalized = self._normalize(candidate)
            normalized.section = self._assign_section(normalized)

            key = dedup_key(normalized.name, normalized.email, normalized.phone, normalized.company)
            if key in seen_keys:
                duplicates += 1
                continue
            seen_keys.add(key)

            contact = self._to_contact(normalized)
            if contact is None:
                dropped += 1
                continue
            contacts.append(contact)

        if quality_sort:
            contacts.sort(key=lambda c: c.completeness(), reverse=True)

        LOGGER.debug(
            f"Validated {len(contacts)} contacts",
            extra={"duplicates": duplicates, "dropped": dropped},
        )
        return contacts

    def _normalize(self, candidate: CandidateContact) -> CandidateContact:
        return CandidateContact(
            name=normalize_name(candidate.name),
            role=normalize_role(candidate.role) or GENERIC_ROLE,
            email=normalize_email(candidate.email),
            phone=normalize_phone(candidate.phone),
            company=normalize_company(candidate.company),
            section=candidate.section,
            source_pattern_name=candidate.source_pattern_name,
            raw_span=candidate.raw_span,
            line_number=candidate.line_number,
            context_header=candidate.context_header,
        )

    @staticmethod
    def _assign_section(candidate: CandidateContact) -> Section:
        # OTHER carries no information; a merged role may now place the contact
        if candidate.section is not None and candidate.section != Section.OTHER:
            return candidate.section
        if candidate.context_header is not None:
            return candidate.context_header
        return section_for_role(candidate.role)

    def _to_contact(self, candidate: CandidateContact) -> Optional[Contact]:
        if not candidate.name or not (candidate.email or candidate.phone):
            return None

        completeness = completeness_score(
            name=candidate.name,
            email=candidate.email,
            phone=candidate.phone,
            role=candidate.role,
            company=candidate.company,
        )
        reliability = reliability_for(candidate.source_pattern_name, self.reliabilities)

        try:
            return Contact(
                name=candidate.name,
                role=candidate.role,
                email=candidate.email,
                phone=candidate.phone,
                company=candidate.company,
                section=candidate.section or Section.OTHER,
                source=candidate.source_pattern_name,
                confidence=score_confidence(reliability, completeness),
            )
        except ValidationError as e:
            LOGGER.warning(f"Dropping candidate that failed validation: {e}")
            return None
