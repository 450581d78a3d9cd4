"""
Analysis Model Client.

Sends an ingredient list plus pet context to a language model provider and
parses the answer into a ModelVerdict.

Features:
- One async httpx call per analysis, bounded by an overall deadline
- Provider-specific request/response formats behind BaseModelClient
  (Anthropic Messages API, OpenAI Chat Completions, offline static client)
- Strict response contract: code fences stripped, field names matched
  case-insensitively, anything else rejected
- Every failure surfaces as ModelClientError (retryable by the caller)
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from petfood.exceptions import ModelClientError, ModelResponseError
from petfood.models import ConcernType
from petfood.services.prompts import SYSTEM_PROMPT, build_analysis_prompt
from petfood.services.types import Concern, ModelVerdict, PetContext

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("isrecommended", "justification", "concerns")
CONCERN_FIELDS = ("type", "ingredient", "reason")


def strip_code_fences(content: str) -> str:
    """
    Remove a surrounding markdown code fence, e.g. ```json ... ```.

    Text without a leading fence is only trimmed.
    """
    trimmed = content.strip()
    if not trimmed.startswith("```"):
        return trimmed

    first_newline = trimmed.find("\n")
    if first_newline == -1:
        # Single line fence: ```{...}```
        trimmed = trimmed[3:]
    else:
        trimmed = trimmed[first_newline + 1:]

    if trimmed.endswith("```"):
        trimmed = trimmed[:-3]

    return trimmed.strip()


def _lower_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {str(key).lower(): value for key, value in data.items()}


def _parse_concern(raw: Any, index: int) -> Concern:
    if not isinstance(raw, dict):
        raise ModelResponseError(f"Concern #{index} is not an object")

    fields = _lower_keys(raw)
    missing = [name for name in CONCERN_FIELDS if name not in fields]
    if missing:
        raise ModelResponseError(f"Concern #{index} is missing fields: {', '.join(missing)}")

    concern_type = fields["type"]
    if not isinstance(concern_type, str) or concern_type.strip().lower() not in ConcernType.values:
        raise ModelResponseError(
            f"Concern #{index} has invalid type {concern_type!r}, "
            f"expected one of {ConcernType.values}"
        )

    ingredient = fields["ingredient"]
    if not isinstance(ingredient, str) or not ingredient.strip():
        raise ModelResponseError(f"Concern #{index} has no ingredient name")

    reason = fields["reason"]
    if not isinstance(reason, str):
        raise ModelResponseError(f"Concern #{index} reason is not a string")

    return Concern(
        type=concern_type.strip().lower(),
        ingredient=ingredient.strip(),
        reason=reason.strip(),
    )


def parse_model_verdict(content: str) -> ModelVerdict:
    """
    Parse provider output into a ModelVerdict.

    Expected shape (field names case-insensitive):
        {"isRecommended": bool, "justification": str,
         "concerns": [{"type": "questionable"|"unacceptable",
                       "ingredient": str, "reason": str}]}

    Unknown extra fields are ignored; missing or mistyped fields are never
    guessed.

    Raises:
        ModelResponseError: if the content does not match the shape
    """
    if not isinstance(content, str) or not content.strip():
        raise ModelResponseError("Empty response from model provider")

    cleaned = strip_code_fences(content)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ModelResponseError(f"Model response is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ModelResponseError("Model response is not a JSON object")

    fields = _lower_keys(data)
    missing = [name for name in REQUIRED_FIELDS if name not in fields]
    if missing:
        raise ModelResponseError(f"Model response is missing fields: {', '.join(missing)}")

    is_recommended = fields["isrecommended"]
    if not isinstance(is_recommended, bool):
        raise ModelResponseError(
            f"isRecommended must be a boolean, got {type(is_recommended).__name__}"
        )

    justification = fields["justification"]
    if not isinstance(justification, str) or not justification.strip():
        raise ModelResponseError("justification must be a non-empty string")

    raw_concerns = fields["concerns"]
    if not isinstance(raw_concerns, list):
        raise ModelResponseError("concerns must be a list")

    concerns = [_parse_concern(raw, index) for index, raw in enumerate(raw_concerns)]

    return ModelVerdict(
        is_recommended=is_recommended,
        justification=justification.strip(),
        concerns=concerns,
    )


class BaseModelClient(ABC):
    """
    Uniform contract for language model providers.

    Subclasses only describe their wire format: endpoint, headers, request
    body and where the generated text sits in the response.
    """

    provider: str = ""
    default_base_url: str = ""
    default_model: str = ""

    def __init__(
        self,
        api_key: str = "",
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        max_tokens: int = 2000,
        temperature: float = 0.3,
    ):
        """
        Initialize the model client.

        Args:
            api_key: Provider API key
            model: Model name (defaults to the provider default)
            base_url: API base URL override
            timeout: Request timeout in seconds
            max_tokens: Completion token ceiling
            temperature: Sampling temperature
        """
        self.api_key = api_key
        self.model = model or self.default_model
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def analyze(self, ingredients_text: str, pet: PetContext) -> ModelVerdict:
        """
        Ask the provider for a verdict on one ingredient list.

        Args:
            ingredients_text: Ingredient list to analyse
            pet: Species, breed, age and additional info

        Returns:
            ModelVerdict parsed from the provider response

        Raises:
            ModelClientError: on transport failure, non-success status or
                a response that does not match the contract
        """
        prompt = build_analysis_prompt(ingredients_text, pet)

        logger.debug(
            f"Calling {self.provider} model {self.model} "
            f"(ingredients length: {len(ingredients_text)} chars)"
        )

        content = await self._complete(prompt)

        try:
            verdict = parse_model_verdict(content)
        except ModelResponseError as e:
            logger.warning(f"Unparsable {self.provider} response: {e}")
            raise

        logger.info(
            f"{self.provider} verdict: "
            f"{'recommended' if verdict.is_recommended else 'not recommended'} "
            f"({len(verdict.concerns)} concerns)"
        )
        return verdict

    async def _complete(self, prompt: str) -> str:
        """POST the prompt and return the generated text."""
        url = f"{self.base_url}/{self.endpoint_path}"

        try:
            response = await asyncio.wait_for(self._post(url, prompt), self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"{self.provider} request exceeded {self.timeout}s overall")
            raise ModelClientError(f"Model request timeout after {self.timeout}s") from e
        except httpx.TimeoutException as e:
            logger.error(f"{self.provider} request timeout: {e}")
            raise ModelClientError(f"Model request timeout after {self.timeout}s") from e
        except httpx.HTTPError as e:
            logger.error(f"{self.provider} connection error: {e}")
            raise ModelClientError(f"Model connection error: {e}") from e

        if not 200 <= response.status_code < 300:
            error_msg = f"Model API returned status {response.status_code}: {response.text[:200]}"
            logger.warning(error_msg)
            raise ModelClientError(error_msg)

        try:
            data = response.json()
        except ValueError as e:
            raise ModelClientError(f"Model API returned invalid JSON: {e}") from e

        self._log_usage(data)

        text = self._extract_text(data)
        if not text:
            raise ModelClientError("No response content received from model API")
        return text

    async def _post(self, url: str, prompt: str) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(
                url,
                json=self._build_payload(prompt),
                headers=self._get_headers(),
            )

    def _log_usage(self, data: Any) -> None:
        usage = data.get("usage") if isinstance(data, dict) else None
        if usage:
            logger.debug(f"{self.provider} token usage: {usage}")

    @property
    @abstractmethod
    def endpoint_path(self) -> str:
        """Path relative to the base URL."""

    @abstractmethod
    def _get_headers(self) -> Dict[str, str]:
        """Build request headers with authentication."""

    @abstractmethod
    def _build_payload(self, prompt: str) -> Dict[str, Any]:
        """Build the provider request body."""

    @abstractmethod
    def _extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        """Pull the generated text out of the provider response envelope."""


class AnthropicModelClient(BaseModelClient):
    """Anthropic Messages API."""

    provider = "anthropic"
    default_base_url = "https://api.anthropic.com/v1"
    default_model = "claude-3-5-haiku-20241022"
    endpoint_path = "messages"

    def __init__(self, *args, api_version: str = "2023-06-01", **kwargs):
        super().__init__(*args, **kwargs)
        self.api_version = api_version

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": self.api_version,
        }

    def _build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "system": SYSTEM_PROMPT,
            "messages": [{"role": "user", "content": prompt}],
        }

    def _extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        blocks = data.get("content") if isinstance(data, dict) else None
        if not blocks or not isinstance(blocks, list):
            return None
        first = blocks[0]
        if not isinstance(first, dict):
            return None
        return first.get("text")


class OpenAIModelClient(BaseModelClient):
    """OpenAI Chat Completions API in JSON mode."""

    provider = "openai"
    default_base_url = "https://api.openai.com/v1"
    default_model = "gpt-4o"
    endpoint_path = "chat/completions"

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def _build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "response_format": {"type": "json_object"},
        }

    def _extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices or not isinstance(choices, list):
            return None
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        if not isinstance(message, dict):
            return None
        return message.get("content")


class StaticModelClient(BaseModelClient):
    """
    Offline client for development and tests.

    Always answers with the same recommended verdict, still going through
    the response parser.
    """

    provider = "static"
    default_model = "static"
    endpoint_path = ""

    RESPONSE = {
        "isRecommended": True,
        "justification": (
            "Offline analysis: this food lists named animal protein first and "
            "no ingredients from the toxic lists for the specified pet."
        ),
        "concerns": [],
    }

    async def _complete(self, prompt: str) -> str:
        return json.dumps(self.RESPONSE)

    def _get_headers(self) -> Dict[str, str]:
        return {}

    def _build_payload(self, prompt: str) -> Dict[str, Any]:
        return {}

    def _extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        return None


PROVIDERS = {
    "anthropic": AnthropicModelClient,
    "claude": AnthropicModelClient,
    "openai": OpenAIModelClient,
    "static": StaticModelClient,
}


def get_model_client(provider: Optional[str] = None) -> BaseModelClient:
    """
    Factory function to get the configured model client.

    Args:
        provider: Provider name override (defaults to settings.PETFOOD_LLM_PROVIDER)

    Returns:
        BaseModelClient configured from Django settings

    Raises:
        ImproperlyConfigured: for an unknown provider or a missing API key
    """
    name = (provider or getattr(settings, "PETFOOD_LLM_PROVIDER", "anthropic")).lower()
    client_class = PROVIDERS.get(name)
    if client_class is None:
        raise ImproperlyConfigured(
            f"Unsupported LLM provider: {name}. "
            f"Supported providers: {', '.join(sorted(PROVIDERS))}"
        )

    api_key = getattr(settings, "PETFOOD_LLM_API_KEY", "")
    if client_class is not StaticModelClient and not api_key:
        raise ImproperlyConfigured(
            "LLM API key is not configured. Set PETFOOD_LLM_API_KEY."
        )

    kwargs: Dict[str, Any] = {
        "api_key": api_key,
        "model": getattr(settings, "PETFOOD_LLM_MODEL", "") or None,
        "base_url": getattr(settings, "PETFOOD_LLM_BASE_URL", "") or None,
        "timeout": getattr(settings, "PETFOOD_LLM_TIMEOUT", 60.0),
        "max_tokens": getattr(settings, "PETFOOD_LLM_MAX_TOKENS", 2000),
        "temperature": getattr(settings, "PETFOOD_LLM_TEMPERATURE", 0.3),
    }
    if client_class is AnthropicModelClient:
        kwargs["api_version"] = getattr(settings, "PETFOOD_LLM_API_VERSION", "2023-06-01")

    return client_class(**kwargs)
