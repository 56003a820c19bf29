"""Pytest configuration and shared fixtures."""

import json
from typing import Any, Dict, List

import pytest
from unittest.mock import AsyncMock, Mock

from callsheet_ai.config import Settings
from callsheet_ai.core.base_llm_client import LLMResponse
from callsheet_ai.services.extraction.ai_budget import AIBudget
from callsheet_ai.services.extraction.extraction_service import ContactExtractionService


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment and any .env file.

    Returns:
        Settings: Settings with no LLM keys configured
    """
    return Settings(
        _env_file=None,
        openrouter_api_key="",
        gemini_api_key="",
        confidence_threshold=0.7,
        max_contacts=1000,
        max_processing_time_ms=15000,
        ai_timeout_seconds=5.0,
        ai_min_remaining_ms=0,
    )


@pytest.fixture
def budget(test_settings: Settings) -> AIBudget:
    return AIBudget.from_settings(test_settings)


def llm_json_response(contacts: List[Dict[str, Any]], tokens_used: int = 420) -> LLMResponse:
    """Build an LLM response carrying a contact payload."""
    body = {
        "document_context": {"production_type": "fashion", "document_type": "call_sheet"},
        "contacts": contacts,
    }
    return LLMResponse(text=json.dumps(body), tokens_used=tokens_used)


@pytest.fixture
def make_llm_response():
    """Factory for LLM responses carrying a contact payload."""
    return llm_json_response


@pytest.fixture
def mock_llm_client() -> Mock:
    """Create mock unified LLM client.

    Returns:
        Mock: Client whose generate_content returns an empty contact payload
    """
    client = Mock()
    client.generate_content = AsyncMock(return_value=llm_json_response([]))
    return client


@pytest.fixture
def pattern_only_service(test_settings: Settings, budget: AIBudget) -> ContactExtractionService:
    """Extraction service without an AI collaborator."""
    return ContactExtractionService(settings=test_settings, llm_client=None, budget=budget)


@pytest.fixture
def hybrid_service(
    test_settings: Settings,
    budget: AIBudget,
    mock_llm_client: Mock,
) -> ContactExtractionService:
    """Extraction service wired to the mock LLM client."""
    return ContactExtractionService(settings=test_settings, llm_client=mock_llm_client, budget=budget)


@pytest.fixture
def sample_call_sheet() -> str:
    """A small fashion call sheet mixing several layouts.

    Returns:
        str: Call sheet text
    """
    return (
        "SPRING LOOKBOOK - CALL SHEET\n"
        "Call Time: 7:00 AM\n"
        "Location: Studio 5, 120 Main St\n"
        "\n"
        "PRODUCTION\n"
        "PRODUCER: Maria Lopez / maria@studio.com / 212-555-0101\n"
        "COORDINATOR: Tom Reed - 212-555-0102\n"
        "\n"
        "CREW\n"
        "PHOTOGRAPHER: Alex Kim / alex@kimphoto.com / (212) 555-0103\n"
        "MUA: Jess Park (212-555-0104)\n"
        "\n"
        "TALENT\n"
        "MODEL: Nina Brooks / Elite Models / 212-555-0105\n"
    )
