"""Test unified LLM client functionality."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from callsheet_ai.core.base_llm_client import LLMResponse
from callsheet_ai.core.exceptions import APIClientError, ConfigurationError
from callsheet_ai.core.unified_llm import (
    LLMProvider,
    UnifiedLLMClient,
    build_default_llm_client,
    create_llm_client_from_settings,
)


@pytest.fixture
def mock_gemini():
    with patch("callsheet_ai.core.unified_llm.GeminiClient") as mock_cls:
        instance = MagicMock()
        instance.generate_content = AsyncMock(return_value=LLMResponse(text="from gemini", tokens_used=7))
        mock_cls.return_value = instance
        yield mock_cls


@pytest.fixture
def mock_openrouter():
    with patch("callsheet_ai.core.unified_llm.OpenRouterClient") as mock_cls:
        instance = MagicMock()
        instance.generate_content = AsyncMock(return_value=LLMResponse(text="from openrouter", tokens_used=9))
        mock_cls.return_value = instance
        yield mock_cls


def test_unified_llm_with_gemini(mock_gemini):
    """Test unified LLM client with Gemini provider."""
    client = UnifiedLLMClient(provider="gemini", api_key="test_gemini_key", model="gemini-2.0-flash")

    assert client.provider == LLMProvider.GEMINI
    assert client.fallback_client is None
    mock_gemini.assert_called_once()


def test_unified_llm_with_fallback(mock_gemini, mock_openrouter):
    """Test unified LLM client with fallback enabled."""
    client = UnifiedLLMClient(
        provider="openrouter",
        api_key="test_openrouter_key",
        model="google/gemini-2.0-flash-001",
        fallback_to_gemini=True,
        gemini_api_key="test_gemini_key",
    )

    assert client.provider == LLMProvider.OPENROUTER
    assert client.fallback_client is not None


def test_fallback_requires_gemini_key(mock_openrouter):
    with pytest.raises(ConfigurationError):
        UnifiedLLMClient(
            provider="openrouter",
            api_key="test_openrouter_key",
            model="google/gemini-2.0-flash-001",
            fallback_to_gemini=True,
        )


def test_invalid_provider():
    """Test that invalid provider raises error."""
    with pytest.raises(ValueError):
        UnifiedLLMClient(provider="invalid_provider", api_key="test_key", model="test_model")


@pytest.mark.asyncio
async def test_generate_content_passes_timeout(mock_openrouter):
    """Test content generation with OpenRouter provider."""
    client = UnifiedLLMClient(provider="openrouter", api_key="test_key", model="m")

    result = await client.generate_content(
        contents="Test prompt",
        system_instruction="Test instruction",
        timeout=3.5,
    )

    assert result.text == "from openrouter"
    assert result.tokens_used == 9
    kwargs = mock_openrouter.return_value.generate_content.call_args.kwargs
    assert kwargs["timeout"] == 3.5
    assert kwargs["system_instruction"] == "Test instruction"


@pytest.mark.asyncio
async def test_falls_back_to_gemini_on_server_error(mock_gemini, mock_openrouter):
    mock_openrouter.return_value.generate_content.side_effect = APIClientError("boom", status_code=503)
    client = UnifiedLLMClient(
        provider="openrouter",
        api_key="k",
        model="m",
        fallback_to_gemini=True,
        gemini_api_key="g",
    )

    result = await client.generate_content(contents="prompt")

    assert result.text == "from gemini"
    mock_gemini.return_value.generate_content.assert_awaited_once()


@pytest.mark.asyncio
async def test_no_fallback_on_auth_error(mock_gemini, mock_openrouter):
    mock_openrouter.return_value.generate_content.side_effect = APIClientError("denied", status_code=401)
    client = UnifiedLLMClient(
        provider="openrouter",
        api_key="k",
        model="m",
        fallback_to_gemini=True,
        gemini_api_key="g",
    )

    with pytest.raises(APIClientError) as exc_info:
        await client.generate_content(contents="prompt")

    assert exc_info.value.status_code == 401
    mock_gemini.return_value.generate_content.assert_not_awaited()


@pytest.mark.asyncio
async def test_both_providers_failing(mock_gemini, mock_openrouter):
    mock_openrouter.return_value.generate_content.side_effect = APIClientError("boom", status_code=500)
    mock_gemini.return_value.generate_content.side_effect = APIClientError("also boom")
    client = UnifiedLLMClient(
        provider="openrouter", api_key="k", model="m", fallback_to_gemini=True, gemini_api_key="g",
    )

    with pytest.raises(APIClientError, match="Both primary"):
        await client.generate_content(contents="prompt")


def test_create_from_settings_openrouter(test_settings, mock_openrouter):
    settings = test_settings.model_copy(update={"openrouter_api_key": " or-key "})
    client = create_llm_client_from_settings(settings)

    assert isinstance(client, UnifiedLLMClient)
    assert client.provider == LLMProvider.OPENROUTER
    assert client.fallback_client is None
    assert mock_openrouter.call_args.kwargs["api_key"] == "or-key"


def test_create_from_settings_gemini(test_settings, mock_gemini):
    settings = test_settings.model_copy(update={"llm_provider": "Gemini", "gemini_api_key": "g-key"})
    client = create_llm_client_from_settings(settings)

    assert client.provider == LLMProvider.GEMINI


def test_create_from_settings_unknown_provider(test_settings):
    settings = test_settings.model_copy(update={"llm_provider": "ollama"})

    with pytest.raises(ConfigurationError):
        create_llm_client_from_settings(settings)


def test_build_default_without_keys(test_settings):
    assert build_default_llm_client(test_settings) is None
