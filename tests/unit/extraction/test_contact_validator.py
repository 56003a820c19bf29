"""Tests for contact validation, sectioning and deduplication."""

import pytest

from callsheet_ai.models.contact import AI_SOURCE, GENERIC_ROLE, CandidateContact, Section
from callsheet_ai.services.extraction.confidence import aggregate_confidence
from callsheet_ai.services.extraction.contact_validator import ContactValidator, section_for_role
from callsheet_ai.services.extraction.field_normalizer import dedup_key


@pytest.fixture
def validator() -> ContactValidator:
    return ContactValidator(ai_reliability=0.85)


def candidate(**fields) -> CandidateContact:
    fields.setdefault("source_pattern_name", "role_name_email_phone_slash")
    return CandidateContact(**fields)


class TestContactValidator:

    def test_normalizes_fields(self, validator):
        contacts = validator.validate([
            candidate(name=" JANE DOE ", role="director", email="Jane@X.com ", phone="555.123.4567"),
        ])

        assert len(contacts) == 1
        contact = contacts[0]
        assert contact.name == "Jane Doe"
        assert contact.role == "DIRECTOR"
        assert contact.email == "jane@x.com"
        assert contact.phone == "(555) 123-4567"

    def test_same_email_different_case_merged(self, validator):
        contacts = validator.validate([
            candidate(name="Ann Bell", email="A@B.COM"),
            candidate(name="Ann Bell", email="a@b.com", phone="555-123-4567"),
        ])

        assert len(contacts) == 1
        assert contacts[0].phone == ""

    def test_first_seen_wins(self, validator):
        contacts = validator.validate([
            candidate(name="Ann Bell", phone="555-123-4567", source_pattern_name="role_name_phone_slash"),
            candidate(name="Annie Bell", phone="(555) 123-4567", source_pattern_name="name_phone"),
        ])

        assert [c.name for c in contacts] == ["Ann Bell"]
        assert contacts[0].source == "role_name_phone_slash"

    def test_drops_records_without_name_or_channel(self, validator):
        contacts = validator.validate([
            candidate(name="", email="x@y.com"),
            candidate(name="No Channel", email="not-an-email"),
            candidate(name="Kept", phone="555-123-4567"),
        ])

        assert [c.name for c in contacts] == ["Kept"]

    def test_missing_role_is_generic(self, validator):
        contacts = validator.validate([candidate(name="Ann Bell", phone="555-123-4567")])
        assert contacts[0].role == GENERIC_ROLE

    def test_section_from_header_then_role(self, validator):
        contacts = validator.validate([
            candidate(name="Ann", role="PRODUCER", phone="555-000-0001", context_header=Section.TALENT),
            candidate(name="Bob", role="PRODUCER", phone="555-000-0002"),
            candidate(name="Cat", role="MODEL", phone="555-000-0003"),
            candidate(name="Dan", role="", phone="555-000-0004"),
        ])

        assert [c.section for c in contacts] == [
            Section.TALENT, Section.PRODUCTION, Section.TALENT, Section.OTHER,
        ]

    def test_quality_sort(self, validator):
        contacts = validator.validate(
            [
                candidate(name="Sparse", phone="555-000-0001"),
                candidate(name="Full", role="MUA", email="f@x.com", phone="555-000-0002", company="Co"),
            ],
            quality_sort=True,
        )

        assert [c.name for c in contacts] == ["Full", "Sparse"]

    def test_confidence_uses_source_reliability(self, validator):
        contacts = validator.validate([
            candidate(name="Jane Doe", role="DIRECTOR", email="jane@x.com", phone="555-123-4567"),
            candidate(name="Ai Person", email="ai@x.com", source_pattern_name=AI_SOURCE),
        ])

        assert contacts[0].confidence == pytest.approx(0.95 * (0.5 + 0.5 * 0.9), abs=1e-4)
        assert contacts[1].confidence == pytest.approx(0.85 * (0.5 + 0.5 * 0.55), abs=1e-4)

    def test_confidence_monotonic_in_channels(self, validator):
        both, email_only, phone_only = (
            validator.validate([candidate(name="J D", email=email, phone=phone)])[0].confidence
            for email, phone in (("j@x.com", "555-123-4567"), ("j@x.com", ""), ("", "555-123-4567"))
        )

        assert both >= email_only
        assert both >= phone_only

    def test_output_bounded_by_input_and_distinct_keys(self, validator):
        candidates = [
            candidate(name="A", email="a@x.com"),
            candidate(name="A2", email="A@x.com"),
            candidate(name="B", phone="555-000-0001"),
            candidate(name="", phone="555-000-0002"),
            candidate(name="C", company="Co"),
        ]
        contacts = validator.validate(candidates)
        distinct_keys = {dedup_key(c.name, c.email.lower(), c.phone, c.company) for c in candidates}

        assert len(contacts) <= len(candidates)
        assert len(contacts) <= len(distinct_keys)

    def test_idempotent(self, validator):
        first = validator.validate([
            candidate(name="maria lopez", role="prod", email="Maria@Studio.com", phone="+1 212 555 0101",
                      context_header=Section.PRODUCTION),
            candidate(name="Jess Park", role="makeup artist", phone="212-555-0104",
                      source_pattern_name="role_name_phone_parens"),
            candidate(name="Intl Guest", phone="+44 20 7946 0958", source_pattern_name=AI_SOURCE),
            candidate(name="Short Number", phone="555-0199", source_pattern_name="name_phone"),
        ])
        second = validator.validate([CandidateContact.from_contact(c) for c in first])

        assert second == first

    def test_empty_input(self, validator):
        assert validator.validate([]) == []
        assert aggregate_confidence([]) == 0.0


def test_section_for_role():
    assert section_for_role("EXECUTIVE PRODUCER") == Section.PRODUCTION
    assert section_for_role("PHOTOGRAPHER") == Section.CREW
    assert section_for_role("MODEL") == Section.TALENT
    assert section_for_role("AGENT") == Section.AGENCY
    assert section_for_role("") == Section.OTHER
