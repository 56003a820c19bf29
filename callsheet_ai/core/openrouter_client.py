"""OpenRouter LLM client implementation."""

from typing import Any, Dict, List, Optional, Union

from callsheet_ai.core.base_llm_client import BaseLLMClient, LLMResponse, estimate_tokens
from callsheet_ai.core.exceptions import APIClientError
from callsheet_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)


class OpenRouterClient:
    """Client for OpenRouter (OpenAI-compatible chat completions).

    Exposes the same ``generate_content`` interface as GeminiClient so the
    unified client can switch providers freely.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "openai/gpt-4o-mini",
        base_url: str = "https://openrouter.ai/api/v1/chat/completions",
        timeout: float = 60,
        max_retries: int = 3,
        retry_delay: float = 1,
    ):
        """Initialize OpenRouter client.

        Args:
            api_key: OpenRouter API key
            model: Model name to use
            base_url: OpenRouter chat completions URL
            timeout: Request timeout in seconds
            max_retries: Maximum retry attempts
            retry_delay: Base delay for exponential backoff
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max_retries

        self.client = BaseLLMClient(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
            retry_delay=retry_delay,
        )

        LOGGER.info(f"Initialized OpenRouter client with model {self.model}")

    def _build_messages(
        self,
        contents: Union[str, List[Union[str, Dict[str, Any]]]],
        system_instruction: Optional[str],
        json_mode: bool,
    ) -> List[Dict[str, str]]:
        messages = []
        system_text = system_instruction or ""
        if json_mode:
            system_text = (system_text + "\n\nIMPORTANT: Respond with valid JSON only.").strip()
        if system_text:
            messages.append({"role": "system", "content": system_text})

        if isinstance(contents, str):
            user_content = contents
        else:
            user_content = ""
            for part in contents:
                if isinstance(part, str):
                    user_content += part
                elif isinstance(part, dict) and "text" in part:
                    user_content += part["text"]
        messages.append({"role": "user", "content": user_content})
        return messages

    async def generate_content(
        self,
        contents: Union[str, List[Union[str, Dict[str, Any]]]],
        system_instruction: Optional[str] = None,
        generation_config: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> LLMResponse:
        """Generate content using an OpenRouter model.

        Args:
            contents: Input content (string or list of parts)
            system_instruction: Optional system instruction
            generation_config: Optional generation config (temperature, max_output_tokens,
                response_mime_type)
            timeout: Per-call timeout override in seconds

        Returns:
            LLMResponse with generated text and total token usage

        Raises:
            APIClientError: If generation fails
        """
        generation_config = generation_config or {}
        json_mode = generation_config.get("response_mime_type") == "application/json"
        messages = self._build_messages(contents, system_instruction, json_mode)

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": generation_config.get("temperature", 0.0),
        }
        if "max_output_tokens" in generation_config:
            payload["max_tokens"] = generation_config["max_output_tokens"]
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        response = await self.client.call_api(payload=payload, timeout=timeout)

        choices = response.get("choices") or []
        if not choices:
            LOGGER.error(f"Unexpected OpenRouter response format: {str(response)[:300]}")
            raise APIClientError("Invalid response format from OpenRouter")

        content = (choices[0].get("message") or {}).get("content") or ""
        if not content:
            LOGGER.warning("Empty response from OpenRouter")

        usage = response.get("usage") or {}
        tokens_used = usage.get("total_tokens")
        if tokens_used is None:
            tokens_used = estimate_tokens(*(m["content"] for m in messages), content)

        return LLMResponse(text=content, tokens_used=int(tokens_used))
