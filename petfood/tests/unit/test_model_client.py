"""
Unit tests for the analysis model client.

Features tested:
1. Response parsing: code fences, case-insensitive fields, fail-closed shape checks
2. Anthropic and OpenAI request building and envelope extraction
3. Error handling (timeout, connection, non-2xx, empty envelope)
4. Provider selection from settings
"""

import asyncio
import json
import time
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from django.core.exceptions import ImproperlyConfigured

from petfood.exceptions import ExternalDependencyError, ModelClientError, ModelResponseError
from petfood.services.model_client import (
    AnthropicModelClient,
    OpenAIModelClient,
    StaticModelClient,
    get_model_client,
    parse_model_verdict,
    strip_code_fences,
)
from petfood.services.prompts import build_analysis_prompt
from petfood.services.types import PetContext

VERDICT = {
    "isRecommended": False,
    "justification": "Contains garlic, which is toxic to dogs.",
    "concerns": [
        {"type": "unacceptable", "ingredient": "Garlic", "reason": "Toxic to dogs"},
        {"type": "questionable", "ingredient": "Corn", "reason": "Filler"},
    ],
}

PET = PetContext(species="dog", breed="Labrador", age=5, additional_info="Allergic to beef")


def mock_async_client(response=None, error=None):
    """AsyncMock standing in for httpx.AsyncClient used as a context manager."""
    mock_client = AsyncMock()
    mock_client.__aenter__.return_value = mock_client
    if error is not None:
        mock_client.post.side_effect = error
    else:
        mock_client.post.return_value = response
    return mock_client


def mock_response(status_code=200, payload=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = text
    return response


# =============================================================================
# Response parsing
# =============================================================================


class TestParseModelVerdict:

    def test_parses_valid_response(self):
        verdict = parse_model_verdict(json.dumps(VERDICT))

        assert verdict.is_recommended is False
        assert verdict.justification == "Contains garlic, which is toxic to dogs."
        assert [c.ingredient for c in verdict.concerns] == ["Garlic", "Corn"]
        assert verdict.concerns[0].type == "unacceptable"
        assert verdict.recommendation == "not_recommended"

    def test_strips_code_fences(self):
        content = "```json\n" + json.dumps(VERDICT) + "\n```"

        verdict = parse_model_verdict(content)

        assert len(verdict.concerns) == 2

    def test_field_names_are_case_insensitive(self):
        content = json.dumps({
            "IsRecommended": True,
            "JUSTIFICATION": "Good protein",
            "Concerns": [{"Type": "Questionable", "INGREDIENT": "Peas", "reason": "Legumes"}],
        })

        verdict = parse_model_verdict(content)

        assert verdict.is_recommended is True
        assert verdict.concerns[0].type == "questionable"
        assert verdict.concerns[0].ingredient == "Peas"

    def test_extra_fields_are_ignored(self):
        content = json.dumps({**VERDICT, "confidence": 0.9})

        assert parse_model_verdict(content).is_recommended is False

    @pytest.mark.parametrize("content", [
        "",
        "not json at all",
        "[1, 2, 3]",
        json.dumps({"justification": "x", "concerns": []}),
        json.dumps({"isRecommended": "true", "justification": "x", "concerns": []}),
        json.dumps({"isRecommended": True, "justification": "  ", "concerns": []}),
        json.dumps({"isRecommended": True, "justification": "x", "concerns": "none"}),
        json.dumps({"isRecommended": True, "justification": "x",
                    "concerns": [{"type": "mild", "ingredient": "Corn", "reason": "r"}]}),
        json.dumps({"isRecommended": True, "justification": "x",
                    "concerns": [{"type": "questionable", "reason": "r"}]}),
        json.dumps({"isRecommended": True, "justification": "x", "concerns": ["Corn"]}),
    ])
    def test_rejects_responses_outside_the_contract(self, content):
        with pytest.raises(ModelResponseError):
            parse_model_verdict(content)

    def test_response_error_is_retryable_external_error(self):
        with pytest.raises(ExternalDependencyError) as exc_info:
            parse_model_verdict("nope")

        assert exc_info.value.retryable is True
        assert exc_info.value.dependency == "model"

    def test_strip_code_fences_leaves_plain_text(self):
        assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'
        assert strip_code_fences('```{"a": 1}```') == '{"a": 1}'


class TestPrompt:

    def test_prompt_contains_pet_context_and_rules(self):
        prompt = build_analysis_prompt("Chicken, Garlic", PET)

        assert "Chicken, Garlic" in prompt
        assert "**Pet Species:** Dog" in prompt
        assert "**Pet Breed:** Labrador" in prompt
        assert "**Pet Age:** 5 years" in prompt
        assert "Allergic to beef" in prompt
        assert "### Rules for dogs" in prompt
        assert "Rules for cats" not in prompt

    def test_prompt_for_cat_without_additional_info(self):
        cat = PetContext(species="cat", breed="Siamese", age=2)

        prompt = build_analysis_prompt("Tuna", cat)

        assert "Taurine" in prompt
        assert "None provided" in prompt


# =============================================================================
# Anthropic client
# =============================================================================


class TestAnthropicModelClient:

    @pytest.mark.asyncio
    async def test_analyze_sends_messages_request(self):
        client = AnthropicModelClient(api_key="sk-ant-test", timeout=5)
        payload = {"content": [{"type": "text", "text": json.dumps(VERDICT)}], "usage": {}}
        mock_client = mock_async_client(mock_response(payload=payload))

        with patch("petfood.services.model_client.httpx.AsyncClient") as mock_client_class:
            mock_client_class.return_value = mock_client
            verdict = await client.analyze("Chicken, Garlic", PET)

        assert verdict.is_recommended is False
        call = mock_client.post.call_args
        assert call.args[0] == "https://api.anthropic.com/v1/messages"
        assert call.kwargs["headers"]["x-api-key"] == "sk-ant-test"
        assert call.kwargs["headers"]["anthropic-version"] == "2023-06-01"
        body = call.kwargs["json"]
        assert body["model"] == AnthropicModelClient.default_model
        assert body["messages"][0]["role"] == "user"
        assert "Chicken, Garlic" in body["messages"][0]["content"]
        assert "system" in body

    @pytest.mark.asyncio
    async def test_timeout_raises_model_client_error(self):
        client = AnthropicModelClient(api_key="key", timeout=1)
        mock_client = mock_async_client(error=httpx.TimeoutException("Request timeout"))

        with patch("petfood.services.model_client.httpx.AsyncClient") as mock_client_class:
            mock_client_class.return_value = mock_client
            with pytest.raises(ModelClientError):
                await client.analyze("Chicken", PET)

    @pytest.mark.asyncio
    async def test_slow_response_is_cut_off_at_deadline(self):
        async def trickle(*args, **kwargs):
            await asyncio.sleep(10)

        client = AnthropicModelClient(api_key="key", timeout=0.2)
        mock_client = mock_async_client()
        mock_client.post.side_effect = trickle

        with patch("petfood.services.model_client.httpx.AsyncClient") as mock_client_class:
            mock_client_class.return_value = mock_client
            started = time.monotonic()
            with pytest.raises(ModelClientError) as exc_info:
                await client.analyze("Chicken", PET)

        assert time.monotonic() - started < 2.0
        assert "timeout" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_connection_error_raises_model_client_error(self):
        client = AnthropicModelClient(api_key="key")
        mock_client = mock_async_client(error=httpx.ConnectError("Connection refused"))

        with patch("petfood.services.model_client.httpx.AsyncClient") as mock_client_class:
            mock_client_class.return_value = mock_client
            with pytest.raises(ModelClientError):
                await client.analyze("Chicken", PET)

    @pytest.mark.asyncio
    async def test_non_success_status_raises_model_client_error(self):
        client = AnthropicModelClient(api_key="key")
        mock_client = mock_async_client(mock_response(status_code=529, text="Overloaded"))

        with patch("petfood.services.model_client.httpx.AsyncClient") as mock_client_class:
            mock_client_class.return_value = mock_client
            with pytest.raises(ModelClientError) as exc_info:
                await client.analyze("Chicken", PET)

        assert "529" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_empty_envelope_raises_model_client_error(self):
        client = AnthropicModelClient(api_key="key")
        mock_client = mock_async_client(mock_response(payload={"content": []}))

        with patch("petfood.services.model_client.httpx.AsyncClient") as mock_client_class:
            mock_client_class.return_value = mock_client
            with pytest.raises(ModelClientError):
                await client.analyze("Chicken", PET)

    @pytest.mark.asyncio
    async def test_unparsable_text_raises_model_response_error(self):
        client = AnthropicModelClient(api_key="key")
        payload = {"content": [{"type": "text", "text": "I think it is fine."}]}
        mock_client = mock_async_client(mock_response(payload=payload))

        with patch("petfood.services.model_client.httpx.AsyncClient") as mock_client_class:
            mock_client_class.return_value = mock_client
            with pytest.raises(ModelResponseError):
                await client.analyze("Chicken", PET)


# =============================================================================
# OpenAI client
# =============================================================================


class TestOpenAIModelClient:

    @pytest.mark.asyncio
    async def test_analyze_sends_chat_completion_request(self):
        client = OpenAIModelClient(api_key="sk-test", model="gpt-4o-mini")
        payload = {"choices": [{"message": {"content": json.dumps(VERDICT)}}]}
        mock_client = mock_async_client(mock_response(payload=payload))

        with patch("petfood.services.model_client.httpx.AsyncClient") as mock_client_class:
            mock_client_class.return_value = mock_client
            verdict = await client.analyze("Chicken, Garlic", PET)

        assert len(verdict.concerns) == 2
        call = mock_client.post.call_args
        assert call.args[0] == "https://api.openai.com/v1/chat/completions"
        assert call.kwargs["headers"]["Authorization"] == "Bearer sk-test"
        body = call.kwargs["json"]
        assert body["model"] == "gpt-4o-mini"
        assert body["response_format"] == {"type": "json_object"}
        assert [m["role"] for m in body["messages"]] == ["system", "user"]

    @pytest.mark.asyncio
    async def test_base_url_override(self):
        client = OpenAIModelClient(api_key="sk-test", base_url="http://proxy:8080/v1/")
        payload = {"choices": [{"message": {"content": json.dumps(VERDICT)}}]}
        mock_client = mock_async_client(mock_response(payload=payload))

        with patch("petfood.services.model_client.httpx.AsyncClient") as mock_client_class:
            mock_client_class.return_value = mock_client
            await client.analyze("Chicken", PET)

        assert mock_client.post.call_args.args[0] == "http://proxy:8080/v1/chat/completions"

    @pytest.mark.asyncio
    async def test_missing_choices_raises_model_client_error(self):
        client = OpenAIModelClient(api_key="sk-test")
        mock_client = mock_async_client(mock_response(payload={"choices": []}))

        with patch("petfood.services.model_client.httpx.AsyncClient") as mock_client_class:
            mock_client_class.return_value = mock_client
            with pytest.raises(ModelClientError):
                await client.analyze("Chicken", PET)


class TestStaticModelClient:

    @pytest.mark.asyncio
    async def test_returns_recommended_without_network(self):
        with patch("petfood.services.model_client.httpx.AsyncClient") as mock_client_class:
            verdict = await StaticModelClient().analyze("Chicken", PET)

        mock_client_class.assert_not_called()
        assert verdict.is_recommended is True
        assert verdict.concerns == []


# =============================================================================
# Provider selection
# =============================================================================


class TestGetModelClient:

    def test_static_provider(self, settings):
        settings.PETFOOD_LLM_PROVIDER = "static"

        assert isinstance(get_model_client(), StaticModelClient)

    def test_claude_alias_uses_anthropic(self, settings):
        settings.PETFOOD_LLM_PROVIDER = "claude"
        settings.PETFOOD_LLM_API_KEY = "sk-ant"
        settings.PETFOOD_LLM_MODEL = ""
        settings.PETFOOD_LLM_TIMEOUT = 12

        client = get_model_client()

        assert isinstance(client, AnthropicModelClient)
        assert client.model == AnthropicModelClient.default_model
        assert client.timeout == 12

    def test_openai_with_configured_model(self, settings):
        settings.PETFOOD_LLM_PROVIDER = "OpenAI"
        settings.PETFOOD_LLM_API_KEY = "sk"
        settings.PETFOOD_LLM_MODEL = "gpt-4o-mini"

        client = get_model_client()

        assert isinstance(client, OpenAIModelClient)
        assert client.model == "gpt-4o-mini"

    def test_unknown_provider_is_rejected(self, settings):
        settings.PETFOOD_LLM_PROVIDER = "gemini"

        with pytest.raises(ImproperlyConfigured):
            get_model_client()

    def test_missing_api_key_is_rejected(self, settings):
        settings.PETFOOD_LLM_PROVIDER = "anthropic"
        settings.PETFOOD_LLM_API_KEY = ""

        with pytest.raises(ImproperlyConfigured):
            get_model_client()
