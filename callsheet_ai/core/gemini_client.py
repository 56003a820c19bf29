import asyncio
from typing import Any, Dict, List, Optional, Union

from google import genai
from google.genai import types

from callsheet_ai.core.base_llm_client import LLMResponse, estimate_tokens
from callsheet_ai.core.exceptions import APIClientError
from callsheet_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)


class GeminiClient:
    """Wrapper for Google Gemini API client."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        timeout: float = 60,
        max_retries: int = 3,
    ):
        """Initialize Gemini client.

        Args:
            api_key: Gemini API key
            model: Model name to use
            timeout: Default per-call timeout in seconds
            max_retries: Maximum retry attempts
        """
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.max_retries = max(1, max_retries)

        try:
            self.client = genai.Client(api_key=self.api_key)
            LOGGER.info(f"Initialized Gemini client with model {self.model}")
        except Exception as e:
            LOGGER.error(f"Failed to initialize Gemini client: {e}")
            raise APIClientError(f"Failed to initialize Gemini client: {e}", original_error=e)

    async def generate_content(
        self,
        contents: Union[str, List[Union[str, Dict[str, Any]]]],
        system_instruction: Optional[str] = None,
        generation_config: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> LLMResponse:
        """Generate content using Gemini model.

        Args:
            contents: Input content (string or list of parts)
            system_instruction: Optional system instruction
            generation_config: Optional generation config (temperature, etc.)
            timeout: Per-call timeout override in seconds

        Returns:
            LLMResponse with generated text and total token usage

        Raises:
            APIClientError: If generation fails
        """
        config = types.GenerateContentConfig(
            temperature=0.0,  # Default to deterministic
        )

        if generation_config:
            if "temperature" in generation_config:
                config.temperature = generation_config["temperature"]
            if "max_output_tokens" in generation_config:
                config.max_output_tokens = generation_config["max_output_tokens"]
            if "response_mime_type" in generation_config:
                config.response_mime_type = generation_config["response_mime_type"]

        if system_instruction:
            config.system_instruction = system_instruction

        call_timeout = timeout or self.timeout
        for attempt in range(self.max_retries):
            try:
                response = await asyncio.wait_for(
                    self.client.aio.models.generate_content(
                        model=self.model,
                        contents=contents,
                        config=config
                    ),
                    timeout=call_timeout,
                )

                text = response.text or ""
                if not text:
                    LOGGER.warning("Empty response from Gemini")

                usage = getattr(response, "usage_metadata", None)
                tokens_used = getattr(usage, "total_token_count", None) if usage else None
                if tokens_used is None:
                    tokens_used = estimate_tokens(str(contents), system_instruction or "", text)

                return LLMResponse(text=text, tokens_used=int(tokens_used))

            except asyncio.TimeoutError:
                # The caller's deadline already applies; retrying would overrun it
                raise

            except Exception as e:
                LOGGER.warning(
                    f"Gemini API error (Attempt {attempt + 1}/{self.max_retries}): {e}"
                )
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(2 ** attempt)
                else:
                    LOGGER.error(f"Gemini generation failed after retries: {e}", exc_info=True)
                    raise APIClientError(f"Gemini generation failed: {e}", original_error=e)

        raise APIClientError("Gemini generation failed")
