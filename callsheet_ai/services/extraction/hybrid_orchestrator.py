"""Strategy selection and AI escalation.

An ``ExtractionRun`` moves through ``PATTERN_ONLY -> AI_ESCALATED -> DONE``.
The orchestrator escalates to the AI collaborator only when the pattern
confidence is below the threshold and AI is enabled, available, affordable
and there is time left. Whatever happens in the AI step, the run ends in
``DONE`` with the best contacts available.
"""

import asyncio
import contextlib
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from callsheet_ai.config import Settings
from callsheet_ai.core.exceptions import AICancelledError, AIFailure, BudgetExceededError
from callsheet_ai.models.contact import GENERIC_ROLE, CandidateContact, Contact, Section
from callsheet_ai.models.extraction import (
    DocumentAnalysis,
    ExtractionMetadata,
    ExtractionOptions,
    ExtractionResult,
    StrategyUsed,
)
from callsheet_ai.services.extraction.ai_budget import AIBudget
from callsheet_ai.services.extraction.ai_enhancer import AIEnhancementService
from callsheet_ai.services.extraction.confidence import aggregate_confidence
from callsheet_ai.services.extraction.contact_validator import ContactValidator
from callsheet_ai.services.extraction.field_normalizer import (
    normalize_company,
    normalize_email,
    normalize_name,
    phone_digits,
)
from callsheet_ai.services.extraction.pattern_engine import EngineResult
from callsheet_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)

SKIP_CONFIDENCE_SUFFICIENT = "confidence_sufficient"
SKIP_DISABLED = "disabled"
SKIP_UNAVAILABLE = "unavailable"
SKIP_INSUFFICIENT_TIME = "insufficient_time"
SKIP_BUDGET_EXHAUSTED = "budget_exhausted"


class OrchestratorState(str, Enum):
    PATTERN_ONLY = "pattern_only"
    AI_ESCALATED = "ai_escalated"
    DONE = "done"


@dataclass
class ExtractionRun:
    """Mutable state of one extraction request between pipeline stages."""
    text: str
    options: ExtractionOptions
    contacts: List[Contact]
    engine_result: EngineResult
    analysis: Optional[DocumentAnalysis] = None
    extraction_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: float = field(default_factory=time.monotonic)
    state: OrchestratorState = OrchestratorState.PATTERN_ONLY
    strategy: StrategyUsed = StrategyUsed.PATTERN_ONLY
    ai_used: bool = False
    tokens_used: Optional[int] = None
    ai_skipped_due_to_budget: bool = False
    ai_skip_reason: Optional[str] = None
    ai_error: Optional[str] = None
    ai_context: Dict[str, Any] = field(default_factory=dict)

    @property
    def confidence(self) -> float:
        return aggregate_confidence(self.contacts)

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)

    def remaining_ms(self) -> int:
        return self.options.max_processing_time_ms - self.elapsed_ms()


class HybridOrchestrator:
    """Decides between pattern-only output and a single AI enhancement call."""

    def __init__(
        self,
        validator: ContactValidator,
        settings: Settings,
        budget: AIBudget,
        enhancer: Optional[AIEnhancementService] = None,
    ):
        self.validator = validator
        self.settings = settings
        self.budget = budget
        self.enhancer = enhancer

    def should_escalate(self, run: ExtractionRun) -> Tuple[bool, Optional[str]]:
        """Return whether to call the AI collaborator, or the reason not to.

        Budget is checked separately, at reservation time, so that the
        check and the spend are one atomic step.
        """
        if run.confidence >= run.options.confidence_threshold:
            return False, SKIP_CONFIDENCE_SUFFICIENT
        if run.options.disable_ai:
            return False, SKIP_DISABLED
        if self.enhancer is None:
            return False, SKIP_UNAVAILABLE
        if run.remaining_ms() < self.settings.ai_min_remaining_ms:
            return False, SKIP_INSUFFICIENT_TIME
        return True, None

    async def advance(
        self,
        run: ExtractionRun,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ExtractionRun:
        """Drive the run to DONE. Calling this on a finished run does nothing."""
        if run.state == OrchestratorState.DONE:
            return run

        escalate, reason = self.should_escalate(run)
        if not escalate:
            run.ai_skip_reason = reason
            LOGGER.info(
                f"Using pattern-only result ({reason})",
                extra={"extraction_id": run.extraction_id, "confidence": run.confidence},
            )
            run.state = OrchestratorState.DONE
            return run

        await self._escalate(run, cancel_event)
        run.state = OrchestratorState.DONE
        return run

    async def _escalate(self, run: ExtractionRun, cancel_event: Optional[asyncio.Event]) -> None:
        prompt = self.enhancer.build_prompt(
            run.text,
            run.contacts,
            analysis=run.analysis,
            role_preferences=run.options.role_preferences,
            require_high_confidence=run.options.require_high_confidence,
        )

        try:
            reservation = self.budget.reserve(self.enhancer.estimate_cost(prompt))
        except BudgetExceededError as e:
            run.ai_skipped_due_to_budget = True
            run.ai_skip_reason = SKIP_BUDGET_EXHAUSTED
            LOGGER.warning(
                f"Skipping AI enhancement: {e}",
                extra={
                    "extraction_id": run.extraction_id,
                    "tokens_remaining": e.tokens_remaining,
                    "calls_remaining": e.calls_remaining,
                },
            )
            return

        run.state = OrchestratorState.AI_ESCALATED
        timeout = max(0.001, min(self.settings.ai_timeout_seconds, run.remaining_ms() / 1000))
        LOGGER.info(
            f"Escalating to AI enhancement (confidence {run.confidence:.2f} < "
            f"{run.options.confidence_threshold:.2f}, timeout {timeout:.1f}s)",
            extra={"extraction_id": run.extraction_id},
        )

        try:
            response = await self._cancellable(self.enhancer.enhance(prompt, timeout), cancel_event)
        except AIFailure as e:
            self.budget.release(reservation)
            self._fall_back(run, e.reason, e)
            return
        except Exception as e:
            self.budget.release(reservation)
            LOGGER.error(f"Unexpected AI enhancement error: {e}", exc_info=True)
            self._fall_back(run, AIFailure.reason, e)
            return

        self.budget.settle(reservation, response.tokens_used)
        run.contacts = self.merge(run.contacts, response.contacts)
        run.ai_used = True
        run.tokens_used = response.tokens_used
        run.ai_context = dict(response.context)
        run.strategy = StrategyUsed.HYBRID

    def _fall_back(self, run: ExtractionRun, reason: str, error: Exception) -> None:
        run.strategy = StrategyUsed.PATTERN_FALLBACK
        run.ai_used = False
        run.ai_error = f"AI enhancement failed ({reason}): {error}"
        LOGGER.warning(
            f"Falling back to pattern-only result: {run.ai_error}",
            extra={"extraction_id": run.extraction_id},
        )

    @staticmethod
    async def _cancellable(coro, cancel_event: Optional[asyncio.Event]):
        if cancel_event is None:
            return await coro

        task = asyncio.ensure_future(coro)
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        raise AICancelledError("AI enhancement cancelled by caller")

    def merge(self, contacts: Sequence[Contact], ai_candidates: Sequence[CandidateContact]) -> List[Contact]:
        """Merge AI candidates into validated contacts.

        An AI record that shares an email, phone, or name and company with an
        existing contact only fills that contact's empty fields. Anything else
        is added as an AI-origin contact. The result is re-validated.
        """
        merged = [CandidateContact.from_contact(contact) for contact in contacts]
        index: Dict[str, CandidateContact] = {}
        for candidate in merged:
            self._index(index, candidate)

        added = 0
        for ai_candidate in ai_candidates:
            existing = self._lookup(index, ai_candidate)
            if existing is None:
                merged.append(ai_candidate)
                self._index(index, ai_candidate)
                added += 1
                continue

            for attr in ("name", "email", "phone", "company"):
                if not getattr(existing, attr) and getattr(ai_candidate, attr):
                    setattr(existing, attr, getattr(ai_candidate, attr))
            if existing.role in ("", GENERIC_ROLE) and ai_candidate.role:
                existing.role = ai_candidate.role
            if existing.section in (None, Section.OTHER) and ai_candidate.section is not None:
                existing.section = ai_candidate.section
            self._index(index, existing)

        LOGGER.debug(f"Merged AI output: {added} new contacts, {len(ai_candidates) - added} enriched")
        return self.validator.validate(merged)

    @staticmethod
    def _keys(candidate: CandidateContact) -> List[str]:
        keys = []
        email = normalize_email(candidate.email)
        if email:
            keys.append(f"email:{email}")
        digits = phone_digits(candidate.phone)
        if digits:
            keys.append(f"phone:{digits}")
        name = normalize_name(candidate.name).lower()
        if name:
            keys.append(f"name:{name}|{normalize_company(candidate.company).lower()}")
        return keys

    def _index(self, index: Dict[str, CandidateContact], candidate: CandidateContact) -> None:
        for key in self._keys(candidate):
            index.setdefault(key, candidate)

    def _lookup(self, index: Dict[str, CandidateContact], candidate: CandidateContact) -> Optional[CandidateContact]:
        for key in self._keys(candidate):
            if key in index:
                return index[key]
        return None

    def resolve(self, run: ExtractionRun) -> ExtractionResult:
        """Build the immutable result for a finished run."""
        contacts = list(run.contacts)

        filtered = 0
        if run.options.require_high_confidence:
            kept = [c for c in contacts if c.confidence >= run.options.confidence_threshold]
            filtered = len(contacts) - len(kept)
            contacts = kept

        contacts = contacts[: run.options.max_contacts]
        success = bool(contacts) or run.strategy != StrategyUsed.PATTERN_FALLBACK

        metadata = ExtractionMetadata(
            extraction_id=run.extraction_id,
            strategy_used=run.strategy,
            processing_time_ms=run.elapsed_ms(),
            patterns_used=dict(run.engine_result.patterns_used),
            confidence=aggregate_confidence(contacts),
            ai_used=run.ai_used,
            tokens_used=run.tokens_used,
            ai_skipped_due_to_budget=run.ai_skipped_due_to_budget,
            ai_skip_reason=run.ai_skip_reason,
            early_exit=run.engine_result.early_exit,
            time_budget_exceeded=run.engine_result.time_budget_exceeded,
            candidate_count=len(run.engine_result.candidates),
            pattern_failures=list(run.engine_result.failures),
            filtered_low_confidence=filtered,
            document_analysis=run.analysis,
            ai_context=dict(run.ai_context),
        )
        return ExtractionResult(
            success=success,
            contacts=contacts,
            error=run.ai_error,
            metadata=metadata,
        )
