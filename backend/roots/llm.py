"""
LLM Integration
Search-grounded text generation via Gemini (google-genai) or OpenRouter
"""

from dataclasses import dataclass, field
from typing import Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

import config
from roots.sources import citations_from_chunks


class LLMError(Exception):
    """Base exception for LLM-related errors"""
    pass


class RateLimitError(LLMError):
    """Raised when API rate limit is hit"""
    pass


class APIError(LLMError):
    """Raised for general API errors"""
    pass


@dataclass
class LLMResponse:
    """Generated text plus the web citations that grounded it"""
    text: str
    citations: list[dict] = field(default_factory=list)


class LLMClient:
    """Interface the search orchestrator talks to"""

    supports_structured_output = False

    async def generate(
        self,
        prompt: str,
        *,
        grounded: bool = True,
        response_schema: Optional[types.Schema] = None
    ) -> LLMResponse:
        raise NotImplementedError


class GeminiClient(LLMClient):
    """Gemini with Google Search grounding"""

    supports_structured_output = True

    def __init__(
        self,
        api_key: str,
        model: str = config.GEMINI_MODEL,
        temperature: float = config.LLM_TEMPERATURE,
        timeout: int = config.LLM_TIMEOUT,
        client: Optional[genai.Client] = None
    ):
        if client is None:
            if not api_key:
                raise APIError(
                    "Gemini API key not found. "
                    "Please set GEMINI_API_KEY in your .env file."
                )
            client = genai.Client(
                api_key=api_key,
                http_options=types.HttpOptions(timeout=timeout * 1000)
            )
        self.client = client
        self.model = model
        self.temperature = temperature

    async def generate(
        self,
        prompt: str,
        *,
        grounded: bool = True,
        response_schema: Optional[types.Schema] = None
    ) -> LLMResponse:
        """Generate content, optionally grounded and schema-constrained"""
        options = {"temperature": self.temperature}
        if grounded:
            options["tools"] = [types.Tool(google_search=types.GoogleSearch())]
        if response_schema is not None:
            options["response_mime_type"] = "application/json"
            options["response_schema"] = response_schema

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(**options)
            )
        except genai_errors.APIError as e:
            if e.code == 429:
                raise RateLimitError(f"Rate limited by Gemini: {e.message}") from e
            raise APIError(f"API error ({e.code}): {e.message}") from e
        except httpx.TimeoutException as e:
            raise APIError("Request to Gemini timed out") from e
        except httpx.RequestError as e:
            raise APIError(f"Network error: {str(e)}") from e

        text = response.text or ""
        if not text:
            raise APIError("Empty response from API")

        chunks = []
        candidates = response.candidates or []
        if candidates and candidates[0].grounding_metadata:
            chunks = candidates[0].grounding_metadata.grounding_chunks or []

        return LLMResponse(text=text, citations=citations_from_chunks(chunks))


class OpenRouterClient(LLMClient):
    """OpenRouter chat completions with the web search plugin"""

    def __init__(
        self,
        api_key: str,
        model: str = config.OPENROUTER_MODEL,
        temperature: float = config.LLM_TEMPERATURE,
        max_tokens: int = config.LLM_MAX_TOKENS,
        timeout: int = config.LLM_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        if not api_key:
            raise APIError(
                "OpenRouter API key not found. "
                "Please set OPENROUTER_API_KEY in your .env file."
            )
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.http_client = http_client

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "X-Title": "Roots & Recipes"
        }

    async def _post(self, payload: dict) -> httpx.Response:
        if self.http_client is not None:
            return await self.http_client.post(
                config.OPENROUTER_BASE_URL, headers=self._headers(), json=payload
            )
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(
                config.OPENROUTER_BASE_URL, headers=self._headers(), json=payload
            )

    async def generate(
        self,
        prompt: str,
        *,
        grounded: bool = True,
        response_schema: Optional[types.Schema] = None
    ) -> LLMResponse:
        """Generate content; response_schema is ignored by this provider"""
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens
        }
        if grounded:
            payload["plugins"] = [{"id": "web"}]

        try:
            response = await self._post(payload)
        except httpx.TimeoutException as e:
            raise APIError(f"Request timed out after {self.timeout} seconds") from e
        except httpx.RequestError as e:
            raise APIError(f"Network error: {str(e)}") from e

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After", "a few")
            raise RateLimitError(
                f"Rate limited by OpenRouter. Please try again in {retry_after} seconds."
            )

        if response.status_code != 200:
            error_detail = response.text
            try:
                error_json = response.json()
                error_detail = error_json.get("error", {}).get("message", error_detail)
            except ValueError:
                pass
            raise APIError(f"API error ({response.status_code}): {error_detail}")

        try:
            data = response.json()
        except ValueError as e:
            raise APIError("Invalid API response: body is not JSON") from e

        if not data.get("choices"):
            raise APIError("Invalid API response: no choices returned")

        message = data["choices"][0].get("message", {}) or {}
        content = message.get("content", "")
        if not content:
            raise APIError("Empty response from API")

        citations = []
        for annotation in message.get("annotations") or []:
            if annotation.get("type") != "url_citation":
                continue
            cited = annotation.get("url_citation", {})
            if cited.get("url"):
                citations.append({"title": cited.get("title"), "uri": cited["url"]})

        return LLMResponse(text=content, citations=citations)


def create_client(
    provider: str = config.LLM_PROVIDER,
    gemini_api_key: str = config.GEMINI_API_KEY,
    openrouter_api_key: str = config.OPENROUTER_API_KEY
) -> LLMClient:
    """Build the configured provider's client"""
    if provider == "gemini":
        return GeminiClient(api_key=gemini_api_key)
    if provider == "openrouter":
        return OpenRouterClient(api_key=openrouter_api_key)
    raise ValueError(f"Unknown LLM provider: {provider}")
