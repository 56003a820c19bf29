"""Tests for contact field normalization."""

import pytest

from callsheet_ai.models.contact import FieldTag
from callsheet_ai.services.extraction.field_normalizer import (
    classify_contact_cell,
    dedup_key,
    infer_role_from_preferences,
    normalize_company,
    normalize_email,
    normalize_name,
    normalize_phone,
    normalize_role,
    normalize_text,
    strip_name_filler,
)


class TestNormalizePhone:

    @pytest.mark.parametrize("raw", [
        "555-123-4567",
        "(555) 123-4567",
        "555.123.4567",
        "5551234567",
        " 555 123 4567 ",
    ])
    def test_ten_digits_formatted(self, raw):
        assert normalize_phone(raw) == "(555) 123-4567"

    @pytest.mark.parametrize("raw", ["1-555-123-4567", "+1 (555) 123-4567", "15551234567"])
    def test_leading_one_dropped(self, raw):
        assert normalize_phone(raw) == "(555) 123-4567"

    def test_international_keeps_plus(self):
        assert normalize_phone("+44 20 7946 0958") == "+442079460958"

    def test_other_lengths_keep_digits(self):
        assert normalize_phone("555-0199 12") == "555019912"

    def test_extension_removed(self):
        assert normalize_phone("555-123-4567 ext. 22") == "(555) 123-4567"

    @pytest.mark.parametrize("raw", ["", None, "12-34", "call me", "1234567890123456789"])
    def test_not_a_phone(self, raw):
        assert normalize_phone(raw) == ""

    def test_idempotent(self):
        once = normalize_phone("+1 555 123 4567")
        assert normalize_phone(once) == once


class TestNormalizeEmail:

    def test_lowercased_and_trimmed(self):
        assert normalize_email("  Jane.Doe@Studio.COM ") == "jane.doe@studio.com"

    def test_edge_punctuation_stripped(self):
        assert normalize_email("<jane@x.com>,") == "jane@x.com"
        assert normalize_email("jane@x.com.") == "jane@x.com"

    def test_mailto_prefix(self):
        assert normalize_email("mailto:jane@x.com") == "jane@x.com"

    @pytest.mark.parametrize("raw", ["", None, "jane", "jane@", "jane@x", "@x.com", "ja ne@x.com"])
    def test_invalid_rejected(self, raw):
        assert normalize_email(raw) == ""


class TestNormalizeName:

    def test_keeps_hyphen_period_apostrophe(self):
        assert normalize_name("Mary-Kate O'Neil Jr.") == "Mary-Kate O'Neil Jr."

    def test_strips_noise(self):
        assert normalize_name("  *Jane   Doe* #1 ") == "Jane Doe"

    def test_all_caps_title_cased(self):
        assert normalize_name("JANE O'NEIL-SMITH") == "Jane O'Neil-Smith"

    def test_mixed_case_kept(self):
        assert normalize_name("Jean-Luc McDonald") == "Jean-Luc McDonald"

    def test_idempotent(self):
        once = normalize_name("  jane   doe ")
        assert once == "Jane Doe"
        assert normalize_name(once) == once


class TestNormalizeRoleAndCompany:

    def test_role_uppercased(self):
        assert normalize_role(" Director ") == "DIRECTOR"

    def test_role_alias(self):
        assert normalize_role("Makeup Artist") == "MUA"
        assert normalize_role("photog") == "PHOTOGRAPHER"

    def test_role_alias_idempotent(self):
        assert normalize_role(normalize_role("hair")) == normalize_role("hair")

    def test_company_cleanup(self):
        assert normalize_company("  Elite  Models, ") == "Elite Models"


class TestHelpers:

    def test_classify_contact_cell(self):
        assert classify_contact_cell("jane@x.com") == (FieldTag.EMAIL, "jane@x.com")
        assert classify_contact_cell("555-123-4567")[0] == FieldTag.PHONE
        assert classify_contact_cell("Elite Models")[0] == FieldTag.COMPANY
        assert classify_contact_cell("555-123-4567 x123")[0] == FieldTag.PHONE

    @pytest.mark.parametrize("raw, expected", [
        ("Contact Jane Doe", "Jane Doe"),
        ("Please call Jane Doe at", "Jane Doe"),
        ("Jane Doe", "Jane Doe"),
        ("", ""),
    ])
    def test_strip_name_filler(self, raw, expected):
        assert strip_name_filler(raw) == expected

    def test_dedup_key_prefers_email_then_phone(self):
        assert dedup_key("Jane", "A@B.COM", "555-123-4567", "") == "a@b.com"
        assert dedup_key("Jane", "", "(555) 123-4567", "") == "5551234567"
        assert dedup_key("Jane Doe", "", "", "Acme") == "jane doe|acme"

    def test_infer_role_from_preferences(self):
        assert infer_role_from_preferences("Model Sarah Lee", ["photographer", "model"], 90) == "MODEL"
        assert infer_role_from_preferences("Jane Doe", ["model"], 90) is None
        assert infer_role_from_preferences("", ["model"], 90) is None


class TestNormalizeText:

    def test_line_endings_and_spaces(self):
        assert normalize_text("A\r\nB\rC D") == "A\nB\nC D"

    def test_dashes_and_bullets(self):
        assert normalize_text("• Jane – 555") == "Jane - 555"

    def test_letter_spaced_keywords(self):
        assert normalize_text("p h o t o g r a p h e r: Jane") == "photographer: Jane"

    def test_empty(self):
        assert normalize_text("") == ""
