"""Extraction constants.

Keyword sets used by the document analyzer, section header words, role
aliases and the labels that mark non-contact call sheet lines.
"""

import re

from callsheet_ai.models.contact import Section

UNKNOWN = "unknown"

# Production types, in tie-break order
PRODUCTION_TYPE_KEYWORDS = {
    "fashion": ["fashion", "editorial", "lookbook", "runway", "stylist", "wardrobe", "mua", "model"],
    "film": ["film", "feature", "scene", "1st ad", "dp", "gaffer", "grip", "script supervisor"],
    "television": ["television", "tv", "episode", "series", "showrunner", "network"],
    "commercial": ["commercial", "brand", "client", "agency", "spot", "campaign"],
    "music_video": ["music video", "artist", "label", "track", "choreographer", "performance"],
    "event": ["event", "venue", "guest", "catering", "load in", "load out", "stage manager"],
    "photography": ["photo", "photographer", "shoot", "digitech", "retoucher", "portrait"],
}

# Document types, in tie-break order
DOCUMENT_TYPE_KEYWORDS = {
    "call_sheet": ["call sheet", "call time", "crew call", "location", "sunrise", "sunset", "wrap"],
    "contact_list": ["contacts", "contact list", "directory", "phone list", "email"],
    "crew_list": ["crew list", "crew", "department", "cast", "team"],
    "production_schedule": ["schedule", "timeline", "agenda", "day 1", "itinerary"],
}

# Words that start a section header line
SECTION_HEADER_WORDS = {
    "PRODUCTION": Section.PRODUCTION,
    "CLIENT": Section.CLIENT,
    "CLIENTS": Section.CLIENT,
    "TALENT": Section.TALENT,
    "CAST": Section.TALENT,
    "CREW": Section.CREW,
    "AGENCY": Section.AGENCY,
    "AGENCIES": Section.AGENCY,
}

# A line holding only a section header, e.g. "CREW", "Talent Contacts:"
SECTION_HEADER_PATTERN = re.compile(
    r"^[ \t]*(PRODUCTION|CLIENTS?|TALENT|CAST|CREW|AGENCY|AGENCIES)\b[A-Za-z &/]{0,30}:?[ \t]*$",
    re.MULTILINE | re.IGNORECASE,
)

# Role keyword -> section, checked in order
ROLE_SECTION_KEYWORDS = [
    ("PHOTOGRAPH", Section.CREW),
    ("CAMERA", Section.CREW),
    ("STYLIST", Section.CREW),
    ("MUA", Section.CREW),
    ("HAIR", Section.CREW),
    ("MAKEUP", Section.CREW),
    ("PRODUCER", Section.PRODUCTION),
    ("PRODUCTION", Section.PRODUCTION),
    ("DIRECTOR", Section.PRODUCTION),
    ("COORDINATOR", Section.PRODUCTION),
    ("MODEL", Section.TALENT),
    ("TALENT", Section.TALENT),
    ("ACTOR", Section.TALENT),
    ("ARTIST", Section.TALENT),
    ("AGENT", Section.AGENCY),
    ("AGENCY", Section.AGENCY),
    ("CLIENT", Section.CLIENT),
    ("BRAND", Section.CLIENT),
    ("ASSISTANT", Section.CREW),
    ("DIGITECH", Section.CREW),
    ("GAFFER", Section.CREW),
    ("GRIP", Section.CREW),
    ("DRIVER", Section.CREW),
]

# Whole-value role aliases -> canonical role
ROLE_ALIASES = {
    "MAKE UP ARTIST": "MUA",
    "MAKEUP ARTIST": "MUA",
    "MAKE-UP ARTIST": "MUA",
    "MAKEUP": "MUA",
    "HAIR & MAKEUP": "MUA",
    "HAIR AND MAKEUP": "MUA",
    "MUAH": "MUA",
    "HAIR STYLIST": "HAIRSTYLIST",
    "HAIR": "HAIRSTYLIST",
    "PHOTOG": "PHOTOGRAPHER",
    "PHOTO": "PHOTOGRAPHER",
    "PHOTO GRAPHER": "PHOTOGRAPHER",
    "DP": "DIRECTOR OF PHOTOGRAPHY",
    "DOP": "DIRECTOR OF PHOTOGRAPHY",
    "CD": "CREATIVE DIRECTOR",
    "CREATIVE DIR": "CREATIVE DIRECTOR",
    "ART DIR": "ART DIRECTOR",
    "PROD": "PRODUCER",
    "EP": "EXECUTIVE PRODUCER",
    "ASST": "ASSISTANT",
    "PA": "PRODUCTION ASSISTANT",
    "WARDROBE STYLIST": "STYLIST",
}

# Line labels that are logistics, not people
NON_CONTACT_LABELS = {
    "CALL TIME", "CREW CALL", "TALENT CALL", "DATE", "SHOOT DATE", "TIME",
    "ADDRESS", "NOTE", "NOTES", "WEATHER", "PARKING", "SUNRISE", "SUNSET",
    "WRAP", "LUNCH", "BREAKFAST", "PAGE", "PROJECT", "JOB", "JOB NUMBER",
    "NEAREST HOSPITAL", "HOSPITAL", "SCHEDULE", "DAY",
    "LOCATION", "LOCATIONS", "SET", "VENUE", "BASECAMP", "BASE CAMP",
    "CALL", "GENERAL CALL", "MEETING POINT", "HOLDING",
}

# A line opening with a logistics label, e.g. "Location: Studio 5, 120 Main St"
LOGISTICS_LINE_PATTERN = re.compile(
    r"^[ \t]*(?:"
    + "|".join(re.escape(label) for label in sorted(NON_CONTACT_LABELS, key=len, reverse=True))
    + r")(?:[ \t]*:|[ \t]+-[ \t])",
    re.IGNORECASE,
)

# Role words that PDF text layers often emit letter-spaced ("p h o t o")
SPACED_KEYWORDS = [
    "photographer", "videographer", "assistant", "digitech", "production",
    "producer", "casting", "director", "stylist", "makeup", "model",
    "driver", "manager", "designer", "creative", "coordinator",
]
