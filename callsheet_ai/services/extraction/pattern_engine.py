"""Pattern extraction engine.

Applies the pattern library to document text under a time and match budget
and produces candidate contacts in pattern-priority order. Each pattern runs
in isolation and reports a ``PatternOutcome``; the engine folds outcomes in
priority order so a failing pattern is logged and skipped rather than aborting
the run.
"""

import bisect
import itertools
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from callsheet_ai.config import Settings, settings as default_settings
from callsheet_ai.core.exceptions import PatternFailure
from callsheet_ai.models.contact import GENERIC_ROLE, CandidateContact, FieldTag, Section
from callsheet_ai.services.extraction.confidence import completeness_score, score_confidence
from callsheet_ai.services.extraction.constants import (
    LOGISTICS_LINE_PATTERN,
    NON_CONTACT_LABELS,
    SECTION_HEADER_PATTERN,
    SECTION_HEADER_WORDS,
)
from callsheet_ai.services.extraction.field_normalizer import (
    classify_contact_cell,
    infer_role_from_preferences,
    normalize_email,
    normalize_name,
    normalize_phone,
    normalize_role,
    strip_name_filler,
)
from callsheet_ai.services.extraction.pattern_library import PATTERN_LIBRARY, PatternDefinition
from callsheet_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)


@dataclass
class PatternOutcome:
    """Result of applying one pattern: candidates, or the failure that stopped it."""
    pattern: PatternDefinition
    candidates: List[CandidateContact] = field(default_factory=list)
    match_count: int = 0
    truncated: bool = False
    error: Optional[PatternFailure] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class EngineResult:
    """Candidates from one engine run plus budget bookkeeping."""
    candidates: List[CandidateContact] = field(default_factory=list)
    patterns_used: Dict[str, int] = field(default_factory=dict)
    failures: List[str] = field(default_factory=list)
    early_exit: bool = False
    time_budget_exceeded: bool = False
    elapsed_ms: int = 0


class _SpanClaims:
    """Sorted, non-overlapping character spans already explained by a pattern."""

    def __init__(self):
        self._starts: List[int] = []
        self._ends: List[int] = []

    def overlaps(self, start: int, end: int) -> bool:
        idx = bisect.bisect_right(self._starts, start)
        if idx > 0 and self._ends[idx - 1] > start:
            return True
        return idx < len(self._starts) and self._starts[idx] < end

    def claim(self, start: int, end: int) -> None:
        idx = bisect.bisect_right(self._starts, start)
        self._starts.insert(idx, start)
        self._ends.insert(idx, end)


class _TextIndex:
    """Line numbers, line text and nearest preceding section header for text offsets."""

    def __init__(self, text: str):
        self._text = text
        self._line_starts = [0] + [i + 1 for i, ch in enumerate(text) if ch == "\n"]
        self._header_offsets: List[int] = []
        self._header_sections: List[Section] = []
        for match in SECTION_HEADER_PATTERN.finditer(text):
            self._header_offsets.append(match.start())
            self._header_sections.append(SECTION_HEADER_WORDS[match.group(1).upper()])

    def line_number(self, offset: int) -> int:
        return bisect.bisect_right(self._line_starts, offset)

    def line_text(self, offset: int) -> str:
        start = self._line_starts[self.line_number(offset) - 1]
        end = self._text.find("\n", start)
        return self._text[start:] if end == -1 else self._text[start:end]

    def header_before(self, offset: int) -> Optional[Section]:
        idx = bisect.bisect_right(self._header_offsets, offset)
        return self._header_sections[idx - 1] if idx > 0 else None


class PatternExtractionEngine:
    """Runs the pattern library over text and collects candidate contacts.

    Budget rules:
        - elapsed time is checked before each pattern; once it passes
          ``max_processing_time_ms`` the remaining patterns are skipped
        - each pattern consumes at most ``max_matches_per_pattern`` matches
        - the run stops as soon as ``max_contacts`` candidates exist
    """

    def __init__(
        self,
        patterns: Sequence[PatternDefinition] = PATTERN_LIBRARY,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or default_settings
        self.patterns = tuple(sorted(patterns, key=lambda p: p.priority))
        self.max_matches_per_pattern = self.settings.max_matches_per_pattern
        self.role_match_threshold = self.settings.role_match_threshold

    def extract(
        self,
        text: str,
        max_contacts: int,
        max_processing_time_ms: int,
        role_preferences: Sequence[str] = (),
    ) -> EngineResult:
        """Extract candidate contacts from text.

        Args:
            text: Normalized document text
            max_contacts: Stop once this many candidates were collected
            max_processing_time_ms: Time budget checked before each pattern
            role_preferences: Roles to infer when a match captured none

        Returns:
            EngineResult with candidates in pattern-priority order
        """
        started = time.monotonic()
        result = EngineResult()
        if not text:
            return result

        index = _TextIndex(text)
        claims = _SpanClaims()

        for pattern in self.patterns:
            elapsed_ms = int((time.monotonic() - started) * 1000)
            if elapsed_ms > max_processing_time_ms:
                result.time_budget_exceeded = True
                LOGGER.warning(
                    f"Time budget of {max_processing_time_ms}ms exceeded before pattern {pattern.name}",
                    extra={"elapsed_ms": elapsed_ms, "candidates": len(result.candidates)},
                )
                break

            remaining = max_contacts - len(result.candidates)
            outcome = self._apply_pattern(pattern, text, index, claims, remaining, role_preferences)
            self._fold(result, outcome)

            if len(result.candidates) >= max_contacts:
                result.early_exit = True
                LOGGER.info(
                    f"Reached max_contacts={max_contacts}, stopping after pattern {pattern.name}"
                )
                break

        result.elapsed_ms = int((time.monotonic() - started) * 1000)
        LOGGER.info(
            f"Pattern extraction produced {len(result.candidates)} candidates",
            extra={
                "patterns_used": result.patterns_used,
                "failures": result.failures,
                "elapsed_ms": result.elapsed_ms,
            },
        )
        return result

    @staticmethod
    def _fold(result: EngineResult, outcome: PatternOutcome) -> None:
        if not outcome.ok:
            LOGGER.warning(
                f"Pattern {outcome.pattern.name} skipped: {outcome.error}",
                exc_info=outcome.error.original_error,
            )
            result.failures.append(outcome.pattern.name)
            return

        if outcome.truncated:
            LOGGER.warning(
                f"Pattern {outcome.pattern.name} hit the match ceiling, remaining matches ignored"
            )
        if outcome.candidates:
            result.patterns_used[outcome.pattern.name] = len(outcome.candidates)
            result.candidates.extend(outcome.candidates)

    def _apply_pattern(
        self,
        pattern: PatternDefinition,
        text: str,
        index: _TextIndex,
        claims: _SpanClaims,
        remaining: int,
        role_preferences: Sequence[str],
    ) -> PatternOutcome:
        outcome = PatternOutcome(pattern=pattern)
        try:
            ceiling = self.max_matches_per_pattern
            matches = pattern.matcher.finditer(text)
            for match in itertools.islice(matches, ceiling):
                outcome.match_count += 1
                start, end = match.span()
                if claims.overlaps(start, end):
                    continue

                candidate, claim = self._build_candidate(pattern, match, index, role_preferences)
                if claim:
                    claims.claim(start, end)
                if candidate is None:
                    continue

                outcome.candidates.append(candidate)
                if len(outcome.candidates) >= remaining:
                    break

            if outcome.match_count >= ceiling:
                outcome.truncated = next(matches, None) is not None
        except Exception as e:
            outcome.candidates = []
            outcome.error = PatternFailure(pattern.name, str(e), original_error=e)
        return outcome

    def _build_candidate(
        self,
        pattern: PatternDefinition,
        match,
        index: _TextIndex,
        role_preferences: Sequence[str],
    ) -> Tuple[Optional[CandidateContact], bool]:
        """Map capture groups onto a candidate and minimally validate it.

        Returns the candidate (or None when rejected) and whether the match
        span should be claimed. Logistics lines are claimed but never become
        contacts; matches without a usable name or channel are not claimed.
        """
        fields: Dict[FieldTag, str] = {}
        text_slots = list(pattern.text_fields)
        for tag, value in zip(pattern.field_mapping, match.groups()):
            value = (value or "").strip()
            if not value:
                continue
            if tag == FieldTag.CONTACT:
                tag, value = classify_contact_cell(value)
                if tag == FieldTag.COMPANY:
                    # Free text fills the pattern's text slots in order
                    text_slots = [slot for slot in text_slots if slot not in fields]
                    if not text_slots:
                        continue
                    tag = text_slots.pop(0)
            fields.setdefault(tag, value)

        role = fields.get(FieldTag.ROLE, "")
        name = strip_name_filler(fields.get(FieldTag.NAME, ""))
        if normalize_role(role) in NON_CONTACT_LABELS or normalize_role(name) in NON_CONTACT_LABELS:
            return None, True
        if LOGISTICS_LINE_PATTERN.match(index.line_text(match.start())):
            return None, True

        normalized_name = normalize_name(name)
        email = normalize_email(fields.get(FieldTag.EMAIL, ""))
        phone = normalize_phone(fields.get(FieldTag.PHONE, ""))
        if len(normalized_name) <= 1 or not (email or phone):
            return None, False

        if not role:
            role = infer_role_from_preferences(name, role_preferences, self.role_match_threshold) or GENERIC_ROLE

        company = fields.get(FieldTag.COMPANY, "")
        completeness = completeness_score(
            name=normalized_name,
            email=email,
            phone=phone,
            role=normalize_role(role),
            company=company,
        )
        candidate = CandidateContact(
            name=name,
            role=role,
            email=fields.get(FieldTag.EMAIL, ""),
            phone=fields.get(FieldTag.PHONE, ""),
            company=company,
            source_pattern_name=pattern.name,
            raw_span=match.group(0),
            confidence=score_confidence(pattern.reliability, completeness),
            line_number=index.line_number(match.start()),
            context_header=index.header_before(match.start()),
        )
        return candidate, True
