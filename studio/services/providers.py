"""
Text generation providers.

The primary provider (Anthropic Claude) writes one canonical text; the
variant provider (Cohere) returns several alternative candidates for it.
"""
import logging
from typing import List, Optional

import anthropic
import httpx

from studio.config import (
    ANTHROPIC_API_KEY,
    PRIMARY_MODEL,
    PRIMARY_MAX_TOKENS,
    PRIMARY_TEMPERATURE,
    COHERE_API_KEY,
    COHERE_API_URL,
    VARIANT_MODEL,
    VARIANT_MAX_TOKENS,
    VARIANT_TEMPERATURE,
    PROVIDER_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)


class ProviderError(RuntimeError):
    """Raised when a provider is misconfigured or returns nothing usable."""


class ClaudePrimaryGenerator:
    """Single-completion generator backed by the Anthropic Messages API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = PRIMARY_MODEL,
        max_tokens: int = PRIMARY_MAX_TOKENS,
        temperature: float = PRIMARY_TEMPERATURE,
        client: Optional[anthropic.AsyncAnthropic] = None,
    ):
        self._api_key = api_key or ANTHROPIC_API_KEY
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client

    @property
    def is_configured(self) -> bool:
        return self._client is not None or bool(self._api_key)

    def _get_client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            if not self._api_key:
                raise ProviderError('ANTHROPIC_API_KEY is required for primary generation')
            self._client = anthropic.AsyncAnthropic(
                api_key=self._api_key,
                timeout=PROVIDER_TIMEOUT_SECONDS,
            )
        return self._client

    async def complete(self, system: str, prompt: str) -> str:
        client = self._get_client()

        message = await client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            system=system,
            messages=[
                {'role': 'user', 'content': prompt}
            ],
        )

        text = message.content[0].text if message.content else None
        if not text:
            raise ProviderError('Claude returned an empty response')

        logger.debug('Primary generation produced %d characters', len(text))
        return text


class CohereVariantGenerator:
    """Multi-candidate generator backed by Cohere's generate endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = VARIANT_MODEL,
        max_tokens: int = VARIANT_MAX_TOKENS,
        temperature: float = VARIANT_TEMPERATURE,
        api_url: str = COHERE_API_URL,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._api_key = api_key or COHERE_API_KEY
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.api_url = api_url
        self._http_client = http_client

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=PROVIDER_TIMEOUT_SECONDS)
        return self._http_client

    async def generate_candidates(self, prompt: str, count: int) -> List[str]:
        if not self._api_key:
            raise ProviderError('COHERE_API_KEY is required for variant generation')

        payload = {
            'model': self.model,
            'prompt': prompt,
            'max_tokens': self.max_tokens,
            'temperature': self.temperature,
            'num_generations': count,
        }
        headers = {
            'Authorization': f'Bearer {self._api_key}',
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        }

        response = await self._get_http_client().post(self.api_url, json=payload, headers=headers)
        response.raise_for_status()

        generations = response.json().get('generations') or []
        return [g.get('text', '').strip() for g in generations]

    async def aclose(self):
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
