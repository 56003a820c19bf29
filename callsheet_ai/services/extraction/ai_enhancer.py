"""AI enhancement of pattern-extracted contacts.

Builds one consolidated request (context classification, data cleaning and
relationship inference) from a truncated text sample and the current contact
list, sends it through the unified LLM client and maps the reply back to
candidate contacts. Provider errors are translated into ``AIFailure``
subclasses so the orchestrator can fall back to the pattern result.
"""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, ValidationError, field_validator

from callsheet_ai.config import Settings
from callsheet_ai.core.base_llm_client import estimate_tokens
from callsheet_ai.core.exceptions import (
    AIAuthError,
    AIFailure,
    AIMalformedResponseError,
    AITimeoutError,
    APIClientError,
    APITimeoutError,
)
from callsheet_ai.core.unified_llm import UnifiedLLMClient
from callsheet_ai.models.contact import AI_SOURCE, CandidateContact, Contact, Section
from callsheet_ai.models.extraction import DocumentAnalysis
from callsheet_ai.utils.json_parser import parse_json_object
from callsheet_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)


class AIContactPayload(BaseModel):
    """One contact as returned by the model."""
    name: str = ""
    role: str = ""
    email: str = ""
    phone: str = ""
    company: str = ""
    section: Optional[str] = None

    model_config = {"extra": "ignore"}

    @field_validator("name", "role", "email", "phone", "company", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, (int, float)):
            return str(value)
        return value


class AIEnhancementPayload(BaseModel):
    """Top-level JSON object expected from the model."""
    contacts: List[AIContactPayload]
    document_context: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"extra": "ignore"}


@dataclass
class AIEnhancementResponse:
    contacts: List[CandidateContact] = field(default_factory=list)
    tokens_used: int = 0
    context: Dict[str, Any] = field(default_factory=dict)


class AIEnhancementService:
    """Single-call AI enhancement for low-confidence extractions."""

    SYSTEM_INSTRUCTION = (
        "You extract people and their contact details from production call sheets. "
        "Respond with a single JSON object and nothing else."
    )

    ENHANCEMENT_PROMPT = """Perform these three tasks in one pass over the call sheet excerpt below.

1. CONTEXT: classify the production (fashion, film, television, commercial, music_video,
   event, photography) and the document type.
2. CLEANING: correct the contacts already extracted (names, roles, emails, phones) and
   add any person with an email or phone that was missed.
3. RELATIONSHIPS: assign each contact a section (PRODUCTION, CLIENT, TALENT, CREW,
   AGENCY, OTHER) and the company or agency they belong to when stated.

Rules:
- Only include people that have a name AND an email or phone in the text.
- Never invent emails or phone numbers.
- Roles are short upper-case labels (PHOTOGRAPHER, MUA, PRODUCER, ...).
{role_hint}{quality_hint}
DOCUMENT ANALYSIS:
{analysis}

CONTACTS ALREADY EXTRACTED:
{contacts}

CALL SHEET EXCERPT:
\"\"\"
{text_sample}
\"\"\"

RETURN JSON ONLY:
{{
  "document_context": {{"production_type": "...", "document_type": "..."}},
  "contacts": [
    {{"name": "...", "role": "...", "email": "...", "phone": "...", "company": "...", "section": "..."}}
  ]
}}
"""

    def __init__(self, llm_client: UnifiedLLMClient, settings: Settings):
        self.llm_client = llm_client
        self.sample_chars = settings.ai_sample_chars
        self.candidate_sample_size = settings.ai_candidate_sample_size
        self.max_output_tokens = settings.ai_max_output_tokens

    def build_prompt(
        self,
        text: str,
        contacts: Sequence[Contact],
        analysis: Optional[DocumentAnalysis] = None,
        role_preferences: Sequence[str] = (),
        require_high_confidence: bool = False,
    ) -> str:
        """Render the consolidated prompt from a text sample and current contacts."""
        sample = [
            {
                "name": c.name,
                "role": c.role,
                "email": c.email,
                "phone": c.phone,
                "company": c.company,
                "section": c.section.value,
            }
            for c in list(contacts)[: self.candidate_sample_size]
        ]
        role_hint = ""
        if role_preferences:
            role_hint = f"- The caller is mainly interested in these roles: {', '.join(role_preferences)}.\n"
        quality_hint = ""
        if require_high_confidence:
            quality_hint = "- Leave out any contact you are not highly confident about.\n"

        return self.ENHANCEMENT_PROMPT.format(
            role_hint=role_hint,
            quality_hint=quality_hint,
            analysis=(analysis or DocumentAnalysis()).model_dump_json(),
            contacts=json.dumps(sample, indent=2),
            text_sample=text[: self.sample_chars],
        )

    def estimate_cost(self, prompt: str) -> int:
        """Worst-case tokens for one call: prompt estimate plus the output cap."""
        return estimate_tokens(self.SYSTEM_INSTRUCTION, prompt) + self.max_output_tokens

    async def enhance(self, prompt: str, timeout: float) -> AIEnhancementResponse:
        """Send the prompt and parse the reply into candidate contacts.

        Args:
            prompt: Prompt from ``build_prompt``
            timeout: Seconds allowed for the call

        Returns:
            AIEnhancementResponse with AI-origin candidates

        Raises:
            AITimeoutError: The call did not finish within ``timeout``
            AIAuthError: The provider rejected the credentials
            AIMalformedResponseError: The reply is not a contact payload
            AIFailure: Any other provider error
        """
        try:
            response = await asyncio.wait_for(
                self.llm_client.generate_content(
                    contents=prompt,
                    system_instruction=self.SYSTEM_INSTRUCTION,
                    generation_config={
                        "temperature": 0.0,
                        "max_output_tokens": self.max_output_tokens,
                        "response_mime_type": "application/json",
                    },
                    timeout=timeout,
                ),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, APITimeoutError) as e:
            raise AITimeoutError(f"AI enhancement timed out after {timeout:.1f}s", original_error=e)
        except APIClientError as e:
            if e.status_code in (401, 403):
                raise AIAuthError(f"AI provider rejected credentials: {e}", original_error=e)
            raise AIFailure(f"AI enhancement failed: {e}", original_error=e)

        tokens_used = response.tokens_used or estimate_tokens(prompt, response.text)
        payload = self._parse(response.text)

        candidates = [self._to_candidate(item) for item in payload.contacts]
        LOGGER.info(
            f"AI enhancement returned {len(candidates)} contacts",
            extra={"tokens_used": tokens_used},
        )
        return AIEnhancementResponse(
            contacts=candidates,
            tokens_used=tokens_used,
            context=payload.document_context,
        )

    @staticmethod
    def _parse(text: str) -> AIEnhancementPayload:
        data = parse_json_object(text)
        if data is None:
            raise AIMalformedResponseError("AI response is not valid JSON")
        try:
            return AIEnhancementPayload.model_validate(data)
        except ValidationError as e:
            raise AIMalformedResponseError("AI response does not match the contact schema", original_error=e)

    @staticmethod
    def _to_candidate(item: AIContactPayload) -> CandidateContact:
        section = None
        if item.section and item.section.upper() in Section.__members__:
            section = Section(item.section.upper())
        return CandidateContact(
            name=item.name,
            role=item.role,
            email=item.email,
            phone=item.phone,
            company=item.company,
            section=section,
            source_pattern_name=AI_SOURCE,
        )
