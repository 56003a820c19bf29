"""Unified LLM client factory and manager.

Provides a single interface over the supported LLM providers (OpenRouter,
Gemini) with provider selection from configuration and optional fallback
to Gemini.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from callsheet_ai.config import Settings
from callsheet_ai.core.base_llm_client import LLMResponse
from callsheet_ai.core.exceptions import APIClientError, ConfigurationError
from callsheet_ai.core.gemini_client import GeminiClient
from callsheet_ai.core.openrouter_client import OpenRouterClient
from callsheet_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    GEMINI = "gemini"
    OPENROUTER = "openrouter"


class UnifiedLLMClient:
    """Unified LLM client that wraps different providers.

    Provides a consistent interface regardless of the underlying provider,
    allowing seamless switching between OpenRouter and Gemini.
    """

    def __init__(
        self,
        provider: Union[str, LLMProvider],
        api_key: str,
        model: str,
        base_url: Optional[str] = None,
        timeout: float = 60,
        max_retries: int = 3,
        fallback_to_gemini: bool = False,
        gemini_api_key: Optional[str] = None,
        gemini_model: Optional[str] = None,
    ):
        """Initialize unified LLM client.

        Args:
            provider: LLM provider to use ("openrouter" or "gemini")
            api_key: API key for the primary provider
            model: Model name to use
            base_url: Optional base URL (for OpenRouter)
            timeout: Request timeout in seconds
            max_retries: Maximum retry attempts
            fallback_to_gemini: If True, fallback to Gemini on primary provider failure
            gemini_api_key: Gemini API key (required if fallback_to_gemini=True)
            gemini_model: Gemini model name (for fallback)
        """
        self.provider = LLMProvider(provider)
        self.model = model
        self.timeout = timeout
        self.max_retries = max_retries
        self.fallback_client = None

        if self.provider == LLMProvider.GEMINI:
            self.client = GeminiClient(
                api_key=api_key,
                model=model,
                timeout=timeout,
                max_retries=max_retries
            )
            LOGGER.info(f"Initialized unified LLM with Gemini provider (model: {model})")

        elif self.provider == LLMProvider.OPENROUTER:
            self.client = OpenRouterClient(
                api_key=api_key,
                model=model,
                base_url=base_url or "https://openrouter.ai/api/v1/chat/completions",
                timeout=timeout,
                max_retries=max_retries
            )

            if fallback_to_gemini:
                if not gemini_api_key:
                    raise ConfigurationError("gemini_api_key required when fallback_to_gemini=True")
                self.fallback_client = GeminiClient(
                    api_key=gemini_api_key,
                    model=gemini_model or "gemini-2.0-flash",
                    timeout=timeout,
                    max_retries=max_retries
                )
                LOGGER.info(
                    f"Initialized unified LLM with OpenRouter provider (model: {model}) "
                    f"and Gemini fallback (model: {gemini_model})"
                )
            else:
                LOGGER.info(f"Initialized unified LLM with OpenRouter provider (model: {model})")

    async def generate_content(
        self,
        contents: Union[str, List[Union[str, Dict[str, Any]]]],
        system_instruction: Optional[str] = None,
        generation_config: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> LLMResponse:
        """Generate content using the configured LLM provider.

        Args:
            contents: Input content (string or list of parts)
            system_instruction: Optional system instruction
            generation_config: Optional generation config (temperature, etc.)
            timeout: Per-call timeout override in seconds

        Returns:
            LLMResponse with generated text and token usage

        Raises:
            APIClientError: If generation fails
        """
        try:
            return await self.client.generate_content(
                contents=contents,
                system_instruction=system_instruction,
                generation_config=generation_config,
                timeout=timeout,
            )
        except APIClientError as e:
            if not self.fallback_client or e.status_code in (401, 403):
                raise
            LOGGER.warning(
                f"Primary provider ({self.provider.value}) failed, attempting Gemini fallback: {e}"
            )
            try:
                return await self.fallback_client.generate_content(
                    contents=contents,
                    system_instruction=system_instruction,
                    generation_config=generation_config,
                    timeout=timeout,
                )
            except APIClientError as fallback_error:
                LOGGER.error(f"Fallback to Gemini also failed: {fallback_error}")
                raise APIClientError(
                    f"Both primary ({self.provider.value}) and fallback (Gemini) failed",
                    original_error=fallback_error,
                ) from fallback_error


def create_llm_client_from_settings(settings: Settings) -> UnifiedLLMClient:
    """Create a unified LLM client from configuration settings.

    Selects the API key, model, and base URL that belong to
    ``settings.llm_provider``.

    Args:
        settings: Application settings

    Returns:
        UnifiedLLMClient instance configured with the selected provider

    Raises:
        ConfigurationError: If the provider is unknown or its API key is missing
    """
    try:
        provider = LLMProvider(settings.llm_provider.lower())
    except ValueError as e:
        raise ConfigurationError(f"Unsupported provider: {settings.llm_provider}", original_error=e)

    if provider == LLMProvider.GEMINI:
        if not settings.gemini_api_key.strip():
            raise ConfigurationError(
                "gemini_api_key required when provider='gemini'. "
                "Please set GEMINI_API_KEY environment variable."
            )
        return UnifiedLLMClient(
            provider=provider,
            api_key=settings.gemini_api_key.strip(),
            model=settings.gemini_model,
            timeout=settings.http_timeout,
            max_retries=settings.max_retries,
        )

    if not settings.openrouter_api_key.strip():
        raise ConfigurationError(
            "openrouter_api_key required when provider='openrouter'. "
            "Please set OPENROUTER_API_KEY environment variable."
        )
    enable_fallback = settings.enable_llm_fallback and bool(settings.gemini_api_key.strip())
    return UnifiedLLMClient(
        provider=provider,
        api_key=settings.openrouter_api_key.strip(),
        model=settings.openrouter_model,
        base_url=settings.openrouter_api_url,
        timeout=settings.http_timeout,
        max_retries=settings.max_retries,
        fallback_to_gemini=enable_fallback,
        gemini_api_key=settings.gemini_api_key.strip() if enable_fallback else None,
        gemini_model=settings.gemini_model if enable_fallback else None,
    )


def build_default_llm_client(settings: Settings) -> Optional[UnifiedLLMClient]:
    """Build the configured client, or return None when AI is unavailable."""
    try:
        return create_llm_client_from_settings(settings)
    except ConfigurationError as e:
        LOGGER.warning(f"AI enhancement unavailable: {e}")
        return None
