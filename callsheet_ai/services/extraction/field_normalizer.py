"""Field normalization for extracted contact data.

Canonicalizes raw matched substrings into name, phone, email, role and
company representations, and cleans PDF/OCR text artifacts before matching.
Every function here is total: bad input yields an empty string, never an
exception, and applying a normalizer to its own output is a no-op.
"""

import re
from typing import Iterable, Optional, Tuple

from rapidfuzz import fuzz

from callsheet_ai.models.contact import FieldTag
from callsheet_ai.services.extraction.constants import ROLE_ALIASES, SPACED_KEYWORDS

MIN_PHONE_DIGITS = 7
MAX_PHONE_DIGITS = 15

_EMAIL_SHAPE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_EMAIL_IN_TEXT = re.compile(r"[A-Za-z0-9._%+\-]{1,64}@[A-Za-z0-9.\-]{1,255}\.[A-Za-z]{2,63}")
_EMAIL_EDGE_NOISE = "<>()[]{},;:'\"`"
_PHONE_EXTENSION = re.compile(r"\s*(?:ext\.?|extension|x)\s*\d{1,6}\s*$", re.IGNORECASE)
_PHONE_CHARS = re.compile(r"^[\d\s\-().+/]+$")
_NAME_NOISE = re.compile(r"[^\w\s\-.']|[\d_]")
_WORD = re.compile(r"[^\W\d_]+")
_WHITESPACE = re.compile(r"\s+")
_COMPANY_NOISE = re.compile(r"[^\w\s\-.&',]")
_NAME_FILLER_LEAD = re.compile(
    r"^(?:(?:contact|call|email|e-mail|text|reach|ask|please|with|for|to)[ \t]+)+", re.IGNORECASE
)
_NAME_FILLER_TAIL = re.compile(r"(?:[ \t]+(?:at|on|via|or))+$", re.IGNORECASE)

_UNICODE_SPACES = re.compile("[  -   　]")
_ZERO_WIDTH = re.compile("[​-‍﻿]")
_DASHES = re.compile("[‐-―−]")
_LEADING_BULLETS = re.compile("^[ \t]*[•·▪●◦*]+[ \t]*", re.MULTILINE)
_SPACED_KEYWORD_PATTERNS = [
    re.compile(r"\b" + " ".join(keyword) + r"\b", re.IGNORECASE)
    for keyword in SPACED_KEYWORDS
]


def normalize_text(text: str) -> str:
    """Clean text-layer artifacts before analysis and matching.

    Unifies line endings, exotic spaces, dashes and quotes, drops zero-width
    characters and leading bullets, and collapses letter-spaced role words
    ("p h o t o g r a p h e r" -> "photographer").
    """
    if not text:
        return ""

    cleaned = text.replace("\r\n", "\n").replace("\r", "\n")
    cleaned = _ZERO_WIDTH.sub("", cleaned)
    cleaned = _UNICODE_SPACES.sub(" ", cleaned)
    cleaned = _DASHES.sub("-", cleaned)
    cleaned = cleaned.replace("‘", "'").replace("’", "'")
    cleaned = cleaned.replace("“", '"').replace("”", '"')
    cleaned = _LEADING_BULLETS.sub("", cleaned)

    for pattern in _SPACED_KEYWORD_PATTERNS:
        cleaned = pattern.sub(lambda m: m.group(0).replace(" ", ""), cleaned)

    return cleaned


def phone_digits(raw: Optional[str]) -> str:
    """Digits of a phone string, extension removed."""
    if not raw:
        return ""
    return re.sub(r"\D", "", _PHONE_EXTENSION.sub("", raw))


def normalize_phone(raw: Optional[str]) -> str:
    """Format a phone number.

    10 digits -> "(AAA) BBB-CCCC"; 11 digits with a leading 1 drop the 1 and
    format the same way. Anything else keeps its digits, prefixed with "+"
    when the input had one. Fewer than 7 or more than 15 digits is not a phone.
    """
    if not raw:
        return ""

    stripped = raw.strip()
    digits = phone_digits(stripped)
    if not (MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS):
        return ""

    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"

    return f"+{digits}" if stripped.startswith("+") else digits


def looks_like_phone(value: str) -> bool:
    """True for strings made only of phone characters with enough digits."""
    if not value or not _PHONE_CHARS.match(_PHONE_EXTENSION.sub("", value.strip())):
        return False
    return len(phone_digits(value)) >= MIN_PHONE_DIGITS


def normalize_email(raw: Optional[str]) -> str:
    """Trim and lower-case an email; return "" unless it has the x@y.z shape."""
    if not raw:
        return ""

    cleaned = raw.strip().strip(_EMAIL_EDGE_NOISE).rstrip(".").lower()
    if cleaned.startswith("mailto:"):
        cleaned = cleaned[len("mailto:"):]

    return cleaned if _EMAIL_SHAPE.match(cleaned) else ""


def find_email(text: str) -> str:
    """First email-shaped substring of text, normalized, or ""."""
    match = _EMAIL_IN_TEXT.search(text or "")
    return normalize_email(match.group(0)) if match else ""


def normalize_name(raw: Optional[str]) -> str:
    """Strip noise from a name, keeping hyphens, periods and apostrophes.

    All-upper or all-lower names are title-cased word by word
    ("JANE O'NEIL-SMITH" -> "Jane O'Neil-Smith"); mixed case is kept.
    """
    if not raw:
        return ""

    cleaned = _NAME_NOISE.sub(" ", raw)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip(" -'")

    letters = [c for c in cleaned if c.isalpha()]
    if letters and (cleaned.isupper() or cleaned.islower()):
        cleaned = _WORD.sub(lambda m: m.group(0).capitalize(), cleaned)

    return cleaned


def strip_name_filler(raw: Optional[str]) -> str:
    """Drop verbs and connectors that free text puts around a name.

    "Contact Jane Doe" -> "Jane Doe", "Jane Doe at" -> "Jane Doe".
    """
    if not raw:
        return ""

    cleaned = _NAME_FILLER_LEAD.sub("", raw.strip())
    return _NAME_FILLER_TAIL.sub("", cleaned)


def normalize_role(raw: Optional[str]) -> str:
    """Upper-case a role label and map known aliases to a canonical role."""
    if not raw:
        return ""

    cleaned = _WHITESPACE.sub(" ", raw).strip(" :-/|").upper()
    return ROLE_ALIASES.get(cleaned, cleaned)


def normalize_company(raw: Optional[str]) -> str:
    """Collapse whitespace and drop symbols a company name never needs."""
    if not raw:
        return ""

    cleaned = _COMPANY_NOISE.sub("", raw)
    return _WHITESPACE.sub(" ", cleaned).strip(" ,-")


def classify_contact_cell(value: str) -> Tuple[FieldTag, str]:
    """Decide whether a free contact cell holds an email, a phone or a company."""
    cell = (value or "").strip()
    if "@" in cell:
        return FieldTag.EMAIL, find_email(cell) or cell
    if looks_like_phone(cell):
        return FieldTag.PHONE, cell
    return FieldTag.COMPANY, cell


def dedup_key(name: str, email: str, phone: str, company: str) -> str:
    """Identity of a contact: email, else phone digits, else name and company."""
    if email:
        return email.strip().lower()
    digits = phone_digits(phone)
    if digits:
        return digits
    return f"{(name or '').strip()}|{(company or '').strip()}".lower()


def infer_role_from_preferences(
    name_span: str,
    role_preferences: Iterable[str],
    threshold: int,
) -> Optional[str]:
    """Return the first preferred role that fuzzily occurs in the name span."""
    span = (name_span or "").lower()
    if not span:
        return None

    for preference in role_preferences:
        candidate = (preference or "").strip().lower()
        if len(candidate) < 2:
            continue
        if candidate in span or fuzz.partial_ratio(candidate, span) >= threshold:
            return normalize_role(preference)

    return None
