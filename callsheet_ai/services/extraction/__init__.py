"""Contact extraction service package.

Pattern-first contact extraction for call sheets with an optional,
budgeted AI enhancement step:

- DocumentAnalyzer: document and production type classification
- PatternExtractionEngine: ordered pattern library under time/match budgets
- ContactValidator: normalization, sectioning, dedup and scoring
- HybridOrchestrator: AI escalation decision, merge and result building
- ContactExtractionService: the facade tying the stages together
"""

from callsheet_ai.services.extraction.ai_budget import AIBudget
from callsheet_ai.services.extraction.ai_enhancer import AIEnhancementService
from callsheet_ai.services.extraction.contact_validator import ContactValidator
from callsheet_ai.services.extraction.document_analyzer import DocumentAnalyzer
from callsheet_ai.services.extraction.extraction_service import ContactExtractionService
from callsheet_ai.services.extraction.hybrid_orchestrator import (
    ExtractionRun,
    HybridOrchestrator,
    OrchestratorState,
)
from callsheet_ai.services.extraction.pattern_engine import EngineResult, PatternExtractionEngine
from callsheet_ai.services.extraction.pattern_library import PATTERN_LIBRARY, PatternDefinition

__all__ = [
    "AIBudget",
    "AIEnhancementService",
    "ContactExtractionService",
    "ContactValidator",
    "DocumentAnalyzer",
    "EngineResult",
    "ExtractionRun",
    "HybridOrchestrator",
    "OrchestratorState",
    "PATTERN_LIBRARY",
    "PatternDefinition",
    "PatternExtractionEngine",
]
