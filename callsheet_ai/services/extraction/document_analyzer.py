"""Document analyzer for call sheets.

Classifies the document type and production type from keyword hits, estimates
how many contacts the text holds and reports layout hints (table structure,
section headers, complexity). The result steers logging and the AI prompt; it
never blocks extraction.
"""

import re
from typing import Dict, List, Optional, Pattern, Tuple

from callsheet_ai.models.extraction import DocumentAnalysis
from callsheet_ai.services.extraction.constants import (
    DOCUMENT_TYPE_KEYWORDS,
    PRODUCTION_TYPE_KEYWORDS,
    SECTION_HEADER_PATTERN,
    SECTION_HEADER_WORDS,
    UNKNOWN,
)
from callsheet_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)

_EMAIL_RE = re.compile(r"[^\s@/|]{1,64}@[^\s@/|]{1,255}\.[A-Za-z]{2,63}")
_PHONE_RE = re.compile(r"\+?\(?\d[\d \-().]{6,}\d")
_PIPE_ROW_RE = re.compile(r"^[^\n|]*\|[^\n|]*\|[^\n]*$", re.MULTILINE)
_TAB_ROW_RE = re.compile(r"^[^\n\t]*\t[^\n\t]*\t[^\n]*$", re.MULTILINE)
_COLUMN_ROW_RE = re.compile(r"^\S.*\S {3,}\S.*\S {3,}\S.*$", re.MULTILINE)

_TABLE_ROW_THRESHOLD = 3


def _compile_keywords(keyword_sets: Dict[str, List[str]]) -> List[Tuple[str, List[Pattern]]]:
    return [
        (label, [re.compile(r"\b" + re.escape(keyword) + r"\b") for keyword in keywords])
        for label, keywords in keyword_sets.items()
    ]


class DocumentAnalyzer:
    """Keyword-based document classifier.

    Each candidate type is scored as (distinct keywords present) / (keyword set
    size). The highest score wins; ties go to the type declared first. A score
    of zero everywhere means ``unknown``.
    """

    def __init__(self, max_chars: Optional[int] = None):
        self.max_chars = max_chars
        self._production_types = _compile_keywords(PRODUCTION_TYPE_KEYWORDS)
        self._document_types = _compile_keywords(DOCUMENT_TYPE_KEYWORDS)

    def analyze(self, text: str, file_name: Optional[str] = None) -> DocumentAnalysis:
        """Analyze document text.

        Args:
            text: Document text
            file_name: Optional original file name; its words count as text hits

        Returns:
            DocumentAnalysis; empty input yields ``unknown`` with confidence 0
        """
        if not text or not text.strip():
            return DocumentAnalysis()

        try:
            return self._analyze(text, file_name)
        except Exception as e:
            LOGGER.warning(
                f"Document analysis failed, continuing without it: {e}",
                exc_info=True,
            )
            return DocumentAnalysis()

    def _analyze(self, text: str, file_name: Optional[str]) -> DocumentAnalysis:
        full_length = len(text)
        if self.max_chars is not None and full_length > self.max_chars:
            LOGGER.debug(f"Analyzing the first {self.max_chars} of {full_length} characters")
            text = text[:self.max_chars]

        haystack = text.lower()
        if file_name:
            haystack += "\n" + re.sub(r"[_\-.]+", " ", file_name.lower())

        production_type, production_score = self._best_match(haystack, self._production_types)
        document_type, _ = self._best_match(haystack, self._document_types)

        estimated_contacts = self.estimate_contacts(text)
        has_table = self.has_table_structure(text)
        sections = self.detect_sections(text)

        analysis = DocumentAnalysis(
            type=document_type,
            production_type=production_type,
            estimated_contacts=estimated_contacts,
            confidence=round(production_score, 4),
            has_table_structure=has_table,
            sections=sections,
            complexity=self._complexity(full_length, estimated_contacts, has_table),
        )

        LOGGER.debug(
            "Document analyzed",
            extra={
                "type": analysis.type,
                "production_type": analysis.production_type,
                "estimated_contacts": analysis.estimated_contacts,
                "confidence": analysis.confidence,
            },
        )
        return analysis

    @staticmethod
    def _best_match(haystack: str, scored_types: List[Tuple[str, List[Pattern]]]) -> Tuple[str, float]:
        best_label, best_score = UNKNOWN, 0.0
        for label, patterns in scored_types:
            hits = sum(1 for pattern in patterns if pattern.search(haystack))
            score = hits / len(patterns) if patterns else 0.0
            # Strictly greater keeps the earlier declaration on ties
            if score > best_score:
                best_label, best_score = label, score
        return best_label, best_score

    @staticmethod
    def estimate_contacts(text: str) -> int:
        """Rough contact count: the larger of distinct emails and distinct phones."""
        emails = {match.lower() for match in _EMAIL_RE.findall(text)}
        phones = {re.sub(r"\D", "", match) for match in _PHONE_RE.findall(text)}
        phones = {digits for digits in phones if len(digits) >= 7}
        return max(len(emails), len(phones))

    @staticmethod
    def has_table_structure(text: str) -> bool:
        for pattern in (_PIPE_ROW_RE, _TAB_ROW_RE, _COLUMN_ROW_RE):
            if len(pattern.findall(text)) >= _TABLE_ROW_THRESHOLD:
                return True
        return False

    @staticmethod
    def detect_sections(text: str) -> List[str]:
        """Section names in order of first appearance."""
        sections: List[str] = []
        for match in SECTION_HEADER_PATTERN.finditer(text):
            section = SECTION_HEADER_WORDS[match.group(1).upper()].value
            if section not in sections:
                sections.append(section)
        return sections

    @staticmethod
    def _complexity(text_length: int, estimated_contacts: int, has_table: bool) -> str:
        if estimated_contacts > 50 or text_length > 20000:
            return "high"
        if has_table or estimated_contacts > 10 or text_length > 5000:
            return "medium"
        return "low"
