"""Extraction request options and result schemas."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from callsheet_ai.config import Settings
from callsheet_ai.models.contact import Contact


class StrategyUsed(str, Enum):
    """How the final contact list was produced."""
    NONE = "none"
    PATTERN_ONLY = "pattern_only"
    HYBRID = "hybrid"
    PATTERN_FALLBACK = "pattern_fallback"


class ExtractionOptions(BaseModel):
    """Per-request options; unset values fall back to Settings."""

    max_contacts: Optional[int] = Field(default=None, gt=0)
    max_processing_time_ms: Optional[int] = Field(default=None, gt=0)
    role_preferences: List[str] = Field(default_factory=list)
    confidence_threshold: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    disable_ai: bool = False
    require_high_confidence: bool = False
    extraction_id: Optional[str] = None

    def with_defaults(self, settings: Settings) -> "ExtractionOptions":
        """Return a copy with every unset budget/threshold filled from settings."""
        return self.model_copy(update={
            "max_contacts": self.max_contacts or settings.max_contacts,
            "max_processing_time_ms": self.max_processing_time_ms or settings.max_processing_time_ms,
            "confidence_threshold": (
                self.confidence_threshold
                if self.confidence_threshold is not None
                else settings.confidence_threshold
            ),
        })


class DocumentAnalysis(BaseModel):
    """Classification of a document before extraction.

    Attributes:
        type: Document type (call_sheet, contact_list, ...) or "unknown"
        production_type: Production type (fashion, film, ...) or "unknown"
        estimated_contacts: Heuristic count of contacts in the text
        confidence: Winning production-type score in [0, 1]
        has_table_structure: Pipe/tab/column layout detected
        sections: Section headers found, strongest first
        complexity: "low", "medium" or "high"
    """
    type: str = "unknown"
    production_type: str = "unknown"
    estimated_contacts: int = 0
    confidence: float = 0.0
    has_table_structure: bool = False
    sections: List[str] = Field(default_factory=list)
    complexity: str = "low"


class ExtractionMetadata(BaseModel):
    """Metadata describing how an extraction ran."""

    extraction_id: str
    strategy_used: StrategyUsed = StrategyUsed.NONE
    processing_time_ms: int = 0
    patterns_used: Dict[str, int] = Field(default_factory=dict)
    confidence: float = 0.0
    ai_used: bool = False
    tokens_used: Optional[int] = None
    ai_skipped_due_to_budget: bool = False
    ai_skip_reason: Optional[str] = None
    early_exit: bool = False
    time_budget_exceeded: bool = False
    candidate_count: int = 0
    pattern_failures: List[str] = Field(default_factory=list)
    filtered_low_confidence: int = 0
    document_analysis: Optional[DocumentAnalysis] = None
    ai_context: Dict[str, Any] = Field(
        default_factory=dict, description="Document context reported by the AI collaborator"
    )

    model_config = {"frozen": True}


class ExtractionResult(BaseModel):
    """Outcome of one extraction request. Immutable once returned."""

    success: bool
    contacts: List[Contact] = Field(default_factory=list)
    error: Optional[str] = None
    metadata: ExtractionMetadata

    model_config = {"frozen": True}

    @classmethod
    def failure(
        cls,
        error: str,
        extraction_id: str,
        processing_time_ms: int = 0,
    ) -> "ExtractionResult":
        """Build a failed result with no contacts."""
        return cls(
            success=False,
            contacts=[],
            error=error,
            metadata=ExtractionMetadata(
                extraction_id=extraction_id,
                processing_time_ms=processing_time_ms,
            ),
        )
