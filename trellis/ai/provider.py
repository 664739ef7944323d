"""
AI provider: embeddings and chat completions behind a narrow interface.

The storefront only needs two capabilities, ``embed`` and ``complete``.
``OpenAIProvider`` implements them with the OpenAI SDK; tests and other
vendors plug in by implementing ``AIProvider``. Every failure (missing key,
timeout, HTTP error, empty reply) surfaces as ``ProviderError`` so callers
have one thing to catch.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from trellis.config import StoreConfig, get_config
from trellis.errors import ProviderError
from trellis.logger import get_logger

logger = get_logger("ai.provider")

Message = Dict[str, str]


class AIProvider:
    """Interface for the hosted model provider."""

    name = "provider"

    def embed(self, text: str) -> List[float]:
        """Return the embedding vector for ``text``."""
        raise NotImplementedError

    def complete(
        self,
        messages: List[Message],
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> str:
        """Return the assistant reply for a chat transcript."""
        raise NotImplementedError


class OpenAIProvider(AIProvider):
    """
    OpenAI-backed provider.

    The client is created on first use; a missing OPENAI_API_KEY fails the
    call, not startup. Requests are bounded by provider_timeout_seconds and
    are not retried.
    """

    name = "openai"

    def __init__(self, config: Optional[StoreConfig] = None):
        self.config = config or get_config()
        self._client = None

    def _get_client(self):
        if self._client is None:
            from openai import OpenAI
            self._client = OpenAI(timeout=self.config.provider_timeout_seconds, max_retries=0)
        return self._client

    def embed(self, text: str) -> List[float]:
        try:
            response = self._get_client().embeddings.create(
                model=self.config.embedding_model,
                input=text,
            )
            return list(response.data[0].embedding)
        except Exception as e:
            logger.error("provider: method=embed model=%s result=error error=%s", self.config.embedding_model, e)
            raise ProviderError(f"Failed to generate embedding: {e}") from e

    def complete(
        self,
        messages: List[Message],
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> str:
        kwargs: Dict[str, Any] = {}
        if max_tokens:
            kwargs["max_tokens"] = max_tokens
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            completion = self._get_client().chat.completions.create(
                model=self.config.chat_model,
                messages=messages,
                **kwargs,
            )
            content = completion.choices[0].message.content
        except Exception as e:
            logger.error("provider: method=complete model=%s result=error error=%s", self.config.chat_model, e)
            raise ProviderError(f"Chat completion failed: {e}") from e
        if not content:
            raise ProviderError("Chat completion returned no content")
        return content


_provider: Optional[AIProvider] = None


def get_ai_provider() -> AIProvider:
    """Dependency returning the process-wide provider."""
    global _provider
    if _provider is None:
        _provider = OpenAIProvider()
        logger.info("provider: method=init name=%s", _provider.name)
    return _provider
