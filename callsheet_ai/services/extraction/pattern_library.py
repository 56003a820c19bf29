"""Static, ordered library of call sheet contact patterns.

Patterns are plain data: a compiled matcher plus the semantic field each
capture group maps to. Declaration order is priority order; the engine
applies them first to last and the first pattern to explain a span wins.

Tiers:
    structured       ``ROLE: Name / email / phone`` style lines (0.90-0.95)
    semi_structured  tables, ``Name - ROLE - phone`` and similar (0.70-0.85)
    unstructured     a name next to a phone or email in free text (0.55-0.65)
"""

import re
from dataclasses import dataclass
from typing import Dict, Tuple

from callsheet_ai.models.contact import FieldTag

STRUCTURED = "structured"
SEMI_STRUCTURED = "semi_structured"
UNSTRUCTURED = "unstructured"

# Fragments stay inside one line: horizontal whitespace only
_H = r"[ \t]*"
_ROLE = r"([A-Za-z][A-Za-z &/\-]*?[A-Za-z])"
_ROLE_UPPER = r"([A-Z][A-Z &/]*[A-Z])"
_NAME = r"([A-Za-z][A-Za-z \-'.]*?[A-Za-z.])"
_COMPANY = r"([A-Za-z0-9][A-Za-z0-9 \-'.&,]*?)"
_PHONE = r"(\+?\(?\d[\d \-().]{6,}\d(?:[ \t]*(?:ext\.?|x)[ \t]*\d{1,6})?)"
# Bounded parts keep unanchored searches linear on long tokens
_EMAIL = r"([^\s/|@]{1,64}@[^\s/|@]{1,255}\.[^\s/|@]{1,63})"
_SLASH = _H + r"/" + _H
_DASH = _H + r"-" + _H
_SPACED_DASH = r"[ \t]+-[ \t]+"
_CELL = r"([^|\n]*?)"
_TAB_CELL = r"([^\t\n]*?)"
_COMMA_CELL = r"([^,\n]*?)"
_COMMA = _H + r"," + _H
_FREE_NAME = r"([A-Z][a-z'\-.]+(?:[ \t]+[A-Z][a-z'\-.]+){1,3})"
_LOOSE_SEP = r"[ \t,:;\-]*"
_FREE_SEP = r"[ \t,:;\-]*(?:(?:at|on|via)[ \t:]+)?"


@dataclass(frozen=True)
class PatternDefinition:
    """One matcher and the field each of its capture groups maps to."""
    name: str
    priority: int
    matcher: re.Pattern
    field_mapping: Tuple[FieldTag, ...]
    reliability: float
    tier: str
    # Where free-text CONTACT cells go, in order, once they are not a phone or email
    text_fields: Tuple[FieldTag, ...] = (FieldTag.COMPANY,)


def _line(body: str) -> re.Pattern:
    return re.compile(r"^" + _H + body + _H + r"$", re.MULTILINE)


_F = FieldTag

_DEFINITIONS = [
    # ROLE: Name / email / phone
    ("role_name_email_phone_slash", STRUCTURED, 0.95,
     _line(_ROLE + r":" + _H + _NAME + _SLASH + _EMAIL + _SLASH + _PHONE),
     (_F.ROLE, _F.NAME, _F.EMAIL, _F.PHONE)),
    # ROLE: Name / phone / email
    ("role_name_phone_email_slash", STRUCTURED, 0.95,
     _line(_ROLE + r":" + _H + _NAME + _SLASH + _PHONE + _SLASH + _EMAIL),
     (_F.ROLE, _F.NAME, _F.PHONE, _F.EMAIL)),
    # ROLE: Name / Company / phone
    ("role_name_company_phone_slash", STRUCTURED, 0.90,
     _line(_ROLE + r":" + _H + _NAME + _SLASH + _COMPANY + _SLASH + _PHONE),
     (_F.ROLE, _F.NAME, _F.COMPANY, _F.PHONE)),
    ("role_name_phone_slash", STRUCTURED, 0.95,
     _line(_ROLE + r":" + _H + _NAME + _SLASH + _PHONE),
     (_F.ROLE, _F.NAME, _F.PHONE)),
    ("role_name_email_slash", STRUCTURED, 0.90,
     _line(_ROLE + r":" + _H + _NAME + _SLASH + _EMAIL),
     (_F.ROLE, _F.NAME, _F.EMAIL)),
    ("role_name_phone_dash", STRUCTURED, 0.90,
     _line(_ROLE + r":" + _H + _NAME + _DASH + _PHONE),
     (_F.ROLE, _F.NAME, _F.PHONE)),
    ("role_name_phone_parens", STRUCTURED, 0.90,
     _line(_ROLE + r":" + _H + _NAME + _H + r"\(" + _H + _PHONE + _H + r"\)"),
     (_F.ROLE, _F.NAME, _F.PHONE)),
    # ROLE: Name, phone on the following line
    ("multiline_role_name_phone", SEMI_STRUCTURED, 0.85,
     re.compile(
         r"^" + _H + _ROLE + r":" + _H + _NAME + _H + r"\n" + _H + _PHONE + _H + r"$",
         re.MULTILINE,
     ),
     (_F.ROLE, _F.NAME, _F.PHONE)),
    # Name | three cells of role, email or phone in any order
    ("pipe_table_row", SEMI_STRUCTURED, 0.85,
     _line(r"\|?" + _H + _NAME + _H + r"\|" + _H + _CELL + _H + r"\|" + _H + _CELL
           + _H + r"\|" + _H + _CELL + _H + r"\|?"),
     (_F.NAME, _F.CONTACT, _F.CONTACT, _F.CONTACT)),
    # Name<TAB>role, email or phone cells
    ("tab_delimited_row", SEMI_STRUCTURED, 0.85,
     re.compile(
         r"^" + _H + _NAME + r"\t+" + _TAB_CELL + r"\t+" + _TAB_CELL + r"\t+" + _TAB_CELL + r"[ \t]*$",
         re.MULTILINE,
     ),
     (_F.NAME, _F.CONTACT, _F.CONTACT, _F.CONTACT)),
    # Name - ROLE - phone
    ("name_role_phone_dash", SEMI_STRUCTURED, 0.80,
     _line(_NAME + _SPACED_DASH + _ROLE_UPPER + _SPACED_DASH + _PHONE),
     (_F.NAME, _F.ROLE, _F.PHONE)),
    # Name (Role) phone-or-email
    ("name_role_parens", SEMI_STRUCTURED, 0.80,
     _line(_NAME + _H + r"\(" + _H + r"([A-Za-z][A-Za-z &/\-]*[A-Za-z])" + _H + r"\)"
           + _LOOSE_SEP + r"(" + _EMAIL[1:-1] + r"|" + _PHONE[1:-1] + r")"),
     (_F.NAME, _F.ROLE, _F.CONTACT)),
    ("name_email_phone", SEMI_STRUCTURED, 0.80,
     _line(_NAME + r"[ \t,:\-/|]+" + _EMAIL + r"[ \t,/|]+" + _PHONE),
     (_F.NAME, _F.EMAIL, _F.PHONE)),
    # Name, role, email, phone with the cells in any order
    ("comma_delimited_row", SEMI_STRUCTURED, 0.80,
     _line(_NAME + _COMMA + _COMMA_CELL + _COMMA + _COMMA_CELL + r"(?:" + _COMMA + _COMMA_CELL + r")?"),
     (_F.NAME, _F.CONTACT, _F.CONTACT, _F.CONTACT)),
    ("name_email", SEMI_STRUCTURED, 0.75,
     _line(_NAME + r"[ \t,:\-]+" + _EMAIL),
     (_F.NAME, _F.EMAIL)),
    ("name_phone", SEMI_STRUCTURED, 0.70,
     _line(_NAME + r"[ \t,:\-]+" + _PHONE),
     (_F.NAME, _F.PHONE)),
    # ROLE: Name / anything that looks like a channel
    ("role_name_contact", SEMI_STRUCTURED, 0.70,
     _line(_ROLE + r":" + _H + _NAME + _H + r"[/|,]" + _H + r"([^\n]+?)"),
     (_F.ROLE, _F.NAME, _F.CONTACT)),
    # "reach Jane Doe at jane@x.com or 555-123-4567"
    ("email_phone_in_text", UNSTRUCTURED, 0.65,
     re.compile(_FREE_NAME + _FREE_SEP + _EMAIL + r"[ \t,;]*(?:(?:or|and)[ \t]+|/[ \t]*)?" + _PHONE),
     (_F.NAME, _F.EMAIL, _F.PHONE)),
    ("email_in_text", UNSTRUCTURED, 0.60,
     re.compile(_FREE_NAME + _FREE_SEP + _EMAIL),
     (_F.NAME, _F.EMAIL)),
    ("phone_in_text", UNSTRUCTURED, 0.55,
     re.compile(_FREE_NAME + _FREE_SEP + _PHONE),
     (_F.NAME, _F.PHONE)),
]

# Row layouts put a free-text cell in the role column first
_TEXT_FIELDS = {
    "pipe_table_row": (_F.ROLE, _F.COMPANY),
    "tab_delimited_row": (_F.ROLE, _F.COMPANY),
    "comma_delimited_row": (_F.ROLE, _F.COMPANY),
}

PATTERN_LIBRARY: Tuple[PatternDefinition, ...] = tuple(
    PatternDefinition(
        name=name,
        priority=priority,
        matcher=matcher,
        field_mapping=mapping,
        reliability=reliability,
        tier=tier,
        text_fields=_TEXT_FIELDS.get(name, (_F.COMPANY,)),
    )
    for priority, (name, tier, reliability, matcher, mapping) in enumerate(_DEFINITIONS)
)


def pattern_reliabilities() -> Dict[str, float]:
    """Pattern name -> reliability, used to (re)score records by source."""
    return {pattern.name: pattern.reliability for pattern in PATTERN_LIBRARY}


def get_pattern(name: str) -> PatternDefinition:
    for pattern in PATTERN_LIBRARY:
        if pattern.name == name:
            return pattern
    raise KeyError(name)
