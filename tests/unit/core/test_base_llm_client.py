"""Tests for the HTTP retry client and the OpenRouter adapter."""

import httpx
import pytest
from unittest.mock import AsyncMock, patch

from callsheet_ai.core.base_llm_client import BaseLLMClient, estimate_tokens
from callsheet_ai.core.exceptions import APIClientError, APITimeoutError
from callsheet_ai.core.openrouter_client import OpenRouterClient

URL = "https://llm.test/v1/chat/completions"


def response(status_code: int, json_body=None, text: str = "") -> httpx.Response:
    request = httpx.Request("POST", URL)
    if json_body is not None:
        return httpx.Response(status_code, json=json_body, request=request)
    return httpx.Response(status_code, text=text, request=request)


@pytest.fixture
def client() -> BaseLLMClient:
    return BaseLLMClient(api_key="k", base_url=URL, timeout=5, max_retries=3, retry_delay=0)


class TestBaseLLMClient:

    @pytest.mark.asyncio
    async def test_success(self, client):
        with patch.object(httpx.AsyncClient, "post", AsyncMock(return_value=response(200, {"ok": True}))) as post:
            result = await client.call_api(payload={"a": 1})

        assert result == {"ok": True}
        assert post.call_args.kwargs["headers"]["Authorization"] == "Bearer k"

    @pytest.mark.asyncio
    async def test_retries_server_errors(self, client):
        post = AsyncMock(side_effect=[response(503, text="busy"), response(200, {"ok": True})])
        with patch.object(httpx.AsyncClient, "post", post):
            result = await client.call_api(payload={})

        assert result == {"ok": True}
        assert post.await_count == 2

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, client):
        post = AsyncMock(return_value=response(401, text="bad key"))
        with patch.object(httpx.AsyncClient, "post", post):
            with pytest.raises(APIClientError) as exc_info:
                await client.call_api(payload={})

        assert exc_info.value.status_code == 401
        assert post.await_count == 1

    @pytest.mark.asyncio
    async def test_timeout_after_retries(self, client):
        post = AsyncMock(side_effect=httpx.ReadTimeout("slow"))
        with patch.object(httpx.AsyncClient, "post", post):
            with pytest.raises(APITimeoutError):
                await client.call_api(payload={})

        assert post.await_count == 3

    @pytest.mark.asyncio
    async def test_invalid_json(self, client):
        with patch.object(httpx.AsyncClient, "post", AsyncMock(return_value=response(200, text="<html>"))):
            with pytest.raises(APIClientError, match="Invalid JSON"):
                await client.call_api(payload={})


class TestOpenRouterClient:

    @pytest.mark.asyncio
    async def test_json_mode_payload_and_usage(self):
        body = {"choices": [{"message": {"content": '{"contacts": []}'}}], "usage": {"total_tokens": 77}}
        openrouter = OpenRouterClient(api_key="k", model="m", base_url=URL, retry_delay=0)
        post = AsyncMock(return_value=response(200, body))

        with patch.object(httpx.AsyncClient, "post", post):
            result = await openrouter.generate_content(
                contents="find contacts",
                system_instruction="You extract contacts.",
                generation_config={"response_mime_type": "application/json", "max_output_tokens": 100},
            )

        assert result.text == '{"contacts": []}'
        assert result.tokens_used == 77
        payload = post.call_args.kwargs["json"]
        assert payload["response_format"] == {"type": "json_object"}
        assert payload["max_tokens"] == 100
        assert payload["messages"][0]["role"] == "system"
        assert payload["messages"][1] == {"role": "user", "content": "find contacts"}

    @pytest.mark.asyncio
    async def test_missing_usage_estimated(self):
        body = {"choices": [{"message": {"content": "x" * 40}}]}
        openrouter = OpenRouterClient(api_key="k", model="m", base_url=URL, retry_delay=0)

        with patch.object(httpx.AsyncClient, "post", AsyncMock(return_value=response(200, body))):
            result = await openrouter.generate_content(contents="y" * 40)

        assert result.tokens_used == 20

    @pytest.mark.asyncio
    async def test_empty_choices(self):
        openrouter = OpenRouterClient(api_key="k", model="m", base_url=URL, retry_delay=0)

        with patch.object(httpx.AsyncClient, "post", AsyncMock(return_value=response(200, {"choices": []}))):
            with pytest.raises(APIClientError):
                await openrouter.generate_content(contents="prompt")


def test_estimate_tokens():
    assert estimate_tokens("abcd" * 10, None, "") == 10
