"""LLM transports: a single `complete(prompt)` call against the configured provider.

Provider SDK exceptions are translated into three transport error classes so
the recommendation pipeline can decide what is worth retrying:

    TransportTimeoutError   timeout or connection failure
    ProviderHTTPError       non-2xx response (status attached)
    TransportError          anything else, including empty content

SDK-level retries are disabled; the pipeline owns the retry policy.
"""

import logging
from typing import Protocol

import anthropic
import httpx
import openai
from openai import AsyncOpenAI

from destinai.config import Settings, settings

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """LLM call failed for a reason other than a timeout or an HTTP status."""


class TransportTimeoutError(TransportError):
    """LLM call timed out or could not connect."""


class ProviderHTTPError(TransportError):
    """LLM provider answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


class LLMClient(Protocol):
    async def complete(self, prompt: str) -> str: ...


class OpenRouterClient:
    """OpenAI-compatible chat-completions transport (OpenRouter by default)."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        model: str,
        timeout: float,
        max_tokens: int = 4000,
        temperature: float = 0.2,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.timeout = max(timeout, 1.0)
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._http_client = http_client
        self._client: AsyncOpenAI | None = None

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                max_retries=0,
                http_client=self._http_client,
            )
        return self._client

    async def complete(self, prompt: str) -> str:
        if not self.api_key:
            raise TransportError("OpenRouter API key is not configured.")

        try:
            response = await self._get_client().chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except openai.APIConnectionError as e:
            raise TransportTimeoutError(f"OpenRouter request failed: {e}") from e
        except openai.APIStatusError as e:
            raise ProviderHTTPError(e.status_code, f"OpenRouter returned HTTP {e.status_code}") from e
        except openai.OpenAIError as e:
            raise TransportError(f"OpenRouter call failed: {e}") from e

        choices = getattr(response, "choices", None)
        if not choices:
            raise TransportError("OpenRouter response missing choices.")
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        if not content:
            raise TransportError("OpenRouter response missing content.")
        return content


class AnthropicClient:
    """Anthropic Messages API transport."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        timeout: float,
        max_tokens: int = 4000,
        temperature: float = 0.2,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = max(timeout, 1.0)
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._http_client = http_client
        self._client: anthropic.AsyncAnthropic | None = None

    def _get_client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(
                api_key=self.api_key,
                timeout=httpx.Timeout(self.timeout),
                max_retries=0,
                http_client=self._http_client,
            )
        return self._client

    async def complete(self, prompt: str) -> str:
        if not self.api_key:
            raise TransportError("Anthropic API key is not configured.")

        try:
            response = await self._get_client().messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIConnectionError as e:
            raise TransportTimeoutError(f"Anthropic request failed: {e}") from e
        except anthropic.APIStatusError as e:
            raise ProviderHTTPError(e.status_code, f"Anthropic returned HTTP {e.status_code}") from e
        except anthropic.AnthropicError as e:
            raise TransportError(f"Anthropic call failed: {e}") from e

        text = "".join(
            getattr(block, "text", "") or ""
            for block in (getattr(response, "content", None) or [])
            if getattr(block, "type", None) == "text"
        )
        if not text:
            raise TransportError("Anthropic response missing content.")
        return text


def build_llm_client(config: Settings = settings) -> LLMClient:
    """Transport for the configured provider."""
    provider = config.llm_provider.strip().lower()
    if provider == "anthropic":
        return AnthropicClient(
            api_key=config.anthropic_api_key,
            model=config.anthropic_model,
            timeout=config.llm_timeout,
            max_tokens=config.llm_max_tokens,
            temperature=config.llm_temperature,
        )
    if provider != "openrouter":
        raise ValueError(f"Unsupported llm_provider: {config.llm_provider}")
    return OpenRouterClient(
        api_key=config.openrouter_api_key,
        base_url=config.openrouter_base_url,
        model=config.openrouter_model,
        timeout=config.llm_timeout,
        max_tokens=config.llm_max_tokens,
        temperature=config.llm_temperature,
    )


# Singleton
llm_client = build_llm_client()
