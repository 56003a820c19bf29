"""Contact data model.

Candidates are transient dataclasses produced by pattern matches or the AI
collaborator; ``Contact`` is the validated pydantic record returned to callers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

GENERIC_ROLE = "CONTACT"
AI_SOURCE = "ai"


class FieldTag(str, Enum):
    """Semantic field a pattern capture group maps to."""
    NAME = "name"
    ROLE = "role"
    EMAIL = "email"
    PHONE = "phone"
    COMPANY = "company"
    # Free contact cell; classified as email, phone or company when built
    CONTACT = "contact"


class Section(str, Enum):
    """Call sheet section a contact belongs to."""
    PRODUCTION = "PRODUCTION"
    CLIENT = "CLIENT"
    TALENT = "TALENT"
    CREW = "CREW"
    AGENCY = "AGENCY"
    OTHER = "OTHER"


@dataclass(frozen=True)
class RawText:
    """Document text plus origin metadata, produced once by text acquisition."""
    text: str
    file_name: Optional[str] = None
    mime_type: str = "text/plain"

    @property
    def length(self) -> int:
        return len(self.text)


@dataclass
class CandidateContact:
    """Unvalidated, possibly duplicate record from one pattern match.

    Attributes:
        name: Person name as captured
        role: Role label as captured or inferred
        email: Email as captured
        phone: Phone as captured
        company: Company/agency as captured
        section: Section if already known
        source_pattern_name: Pattern that produced the record, or "ai"
        raw_span: Matched source text
        confidence: Score assigned at build time
        line_number: 1-based line of the match start (0 when unknown)
        context_header: Nearest section header preceding the match
    """
    name: str = ""
    role: str = ""
    email: str = ""
    phone: str = ""
    company: str = ""
    section: Optional[Section] = None
    source_pattern_name: str = ""
    raw_span: str = ""
    confidence: float = 0.0
    line_number: int = 0
    context_header: Optional[Section] = None

    @classmethod
    def from_contact(cls, contact: "Contact") -> "CandidateContact":
        """Rebuild a candidate from a validated contact (re-validation, AI merge)."""
        return cls(
            name=contact.name,
            role=contact.role,
            email=contact.email,
            phone=contact.phone,
            company=contact.company,
            section=contact.section,
            source_pattern_name=contact.source,
            confidence=contact.confidence,
        )


class Contact(BaseModel):
    """Validated contact: non-empty name and at least one of email/phone."""

    name: str = Field(..., min_length=1, description="Normalized person name")
    role: str = Field(default=GENERIC_ROLE, description="Upper-cased canonical role")
    email: str = Field(default="", description="Lower-cased email or empty")
    phone: str = Field(default="", description="Formatted phone or empty")
    company: str = Field(default="", description="Company or agency")
    section: Section = Field(default=Section.OTHER, description="Call sheet section")
    source: str = Field(default="", description="Originating pattern name, or 'ai'")
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    model_config = {"frozen": True}

    def completeness(self) -> int:
        """Number of non-empty descriptive fields."""
        return sum(1 for value in (self.name, self.role, self.email, self.phone, self.company) if value)
