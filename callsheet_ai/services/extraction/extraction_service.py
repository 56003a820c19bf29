"""Contact extraction facade.

Runs the full pipeline for one request:

    text cleanup -> document analysis -> pattern engine -> validator
    -> hybrid orchestrator (optional AI step) -> ExtractionResult

The facade never raises. Unusable input yields ``success=False`` with no
contacts; every other fault degrades to a smaller result with metadata
explaining what happened.
"""

import asyncio
import time
import uuid
from typing import Optional, Union

from callsheet_ai.config import Settings, get_settings
from callsheet_ai.core.exceptions import InputError
from callsheet_ai.core.unified_llm import build_default_llm_client
from callsheet_ai.models.contact import RawText
from callsheet_ai.models.extraction import ExtractionOptions, ExtractionResult
from callsheet_ai.services.acquisition.text_acquisition import PlainTextAcquirer, TextAcquirer
from callsheet_ai.services.extraction.ai_budget import AIBudget
from callsheet_ai.services.extraction.ai_enhancer import AIEnhancementService
from callsheet_ai.services.extraction.contact_validator import ContactValidator
from callsheet_ai.services.extraction.document_analyzer import DocumentAnalyzer
from callsheet_ai.services.extraction.field_normalizer import normalize_text
from callsheet_ai.services.extraction.hybrid_orchestrator import ExtractionRun, HybridOrchestrator
from callsheet_ai.services.extraction.pattern_engine import PatternExtractionEngine
from callsheet_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)

_UNSET = object()


class ContactExtractionService:
    """Entry point for contact extraction.

    The AI budget is shared state: pass the same ``AIBudget`` to every service
    instance that should draw from one allowance. The LLM client defaults to
    the one configured in settings; ``None`` disables AI entirely.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        llm_client=_UNSET,
        budget: Optional[AIBudget] = None,
        acquirer: Optional[TextAcquirer] = None,
    ):
        self.settings = settings or get_settings()
        if llm_client is _UNSET:
            llm_client = build_default_llm_client(self.settings)

        self.budget = budget or AIBudget.from_settings(self.settings)
        self.acquirer = acquirer or PlainTextAcquirer()
        self.analyzer = DocumentAnalyzer(max_chars=self.settings.analysis_max_chars)
        self.engine = PatternExtractionEngine(settings=self.settings)
        self.validator = ContactValidator(ai_reliability=self.settings.ai_source_reliability)
        enhancer = AIEnhancementService(llm_client, self.settings) if llm_client is not None else None
        self.orchestrator = HybridOrchestrator(
            validator=self.validator,
            settings=self.settings,
            budget=self.budget,
            enhancer=enhancer,
        )

    async def extract(
        self,
        raw_text: Union[RawText, str],
        options: Optional[ExtractionOptions] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ExtractionResult:
        """Extract contacts from document text.

        Args:
            raw_text: Document text, plain or with origin metadata
            options: Per-request budgets and preferences
            cancel_event: Setting this event cancels an in-flight AI call

        Returns:
            ExtractionResult; never raises
        """
        started = time.monotonic()
        options = (options or ExtractionOptions()).with_defaults(self.settings)
        extraction_id = options.extraction_id or str(uuid.uuid4())
        if isinstance(raw_text, str):
            raw_text = RawText(text=raw_text)

        try:
            return await self._run(raw_text, options, extraction_id, started, cancel_event)
        except InputError as e:
            LOGGER.warning(f"Extraction {extraction_id} rejected input: {e}")
            return ExtractionResult.failure(str(e), extraction_id, self._elapsed_ms(started))
        except Exception as e:
            LOGGER.error(
                f"Extraction {extraction_id} failed unexpectedly: {e}",
                exc_info=True,
                extra={"extraction_id": extraction_id},
            )
            return ExtractionResult.failure(
                f"Extraction failed: {e}", extraction_id, self._elapsed_ms(started)
            )

    async def extract_document(
        self,
        document: bytes,
        mime_type: str,
        file_name: Optional[str] = None,
        options: Optional[ExtractionOptions] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ExtractionResult:
        """Acquire text from document bytes, then extract contacts."""
        try:
            raw_text = self.acquirer.acquire(document, mime_type, file_name)
        except InputError as e:
            extraction_id = (options.extraction_id if options else None) or str(uuid.uuid4())
            LOGGER.warning(f"Text acquisition failed for {file_name or 'document'}: {e}")
            return ExtractionResult.failure(str(e), extraction_id)

        return await self.extract(raw_text, options, cancel_event)

    async def _run(
        self,
        raw_text: RawText,
        options: ExtractionOptions,
        extraction_id: str,
        started: float,
        cancel_event: Optional[asyncio.Event],
    ) -> ExtractionResult:
        text = normalize_text(raw_text.text)
        if not text.strip():
            raise InputError("No usable text in document")

        LOGGER.info(
            f"Starting extraction {extraction_id}",
            extra={"file_name": raw_text.file_name, "length": raw_text.length},
        )

        analysis = self.analyzer.analyze(text, raw_text.file_name)

        elapsed_ms = self._elapsed_ms(started)
        engine_result = self.engine.extract(
            text,
            max_contacts=options.max_contacts,
            max_processing_time_ms=max(0, options.max_processing_time_ms - elapsed_ms),
            role_preferences=options.role_preferences,
        )
        contacts = self.validator.validate(engine_result.candidates)

        run = ExtractionRun(
            text=text,
            options=options,
            contacts=contacts,
            engine_result=engine_result,
            analysis=analysis,
            extraction_id=extraction_id,
            started_at=started,
        )
        run = await self.orchestrator.advance(run, cancel_event)
        result = self.orchestrator.resolve(run)

        LOGGER.info(
            f"Extraction {extraction_id} finished with {len(result.contacts)} contacts",
            extra={
                "strategy": result.metadata.strategy_used.value,
                "confidence": result.metadata.confidence,
                "processing_time_ms": result.metadata.processing_time_ms,
                "ai_used": result.metadata.ai_used,
            },
        )
        return result

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.monotonic() - started) * 1000)
