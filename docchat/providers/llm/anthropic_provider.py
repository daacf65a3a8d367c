"""Anthropic LLM provider adapter.

Wraps the ``anthropic`` async client to implement :class:`ILLMProvider`.
The system prompt is a top-level ``system`` argument of the Messages API,
and the response is a list of content blocks of which only ``text``
blocks are kept.
"""

from __future__ import annotations

import anthropic
import structlog

from docchat.config.settings import Settings
from docchat.interfaces.llm_provider import ILLMProvider
from docchat.utils.errors import (
    GenerationBackendUnavailableError,
    GenerationRequestFailedError,
    OperationTimeoutError,
)

logger = structlog.get_logger(logger_name=__name__)


class AnthropicLLMProvider(ILLMProvider):
    """LLM provider backed by the Anthropic Claude Messages API."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.anthropic_api_key
        self._model = settings.anthropic_text_model
        self._timeout = settings.generation_timeout
        self._client: anthropic.AsyncAnthropic | None = None

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1024,
    ) -> str:
        if not self._api_key:
            raise GenerationBackendUnavailableError(
                message="ANTHROPIC_API_KEY is not configured",
                provider_name=self.get_provider_name(),
            )
        client = self._get_client()
        try:
            response = await client.messages.create(
                model=self._model,
                max_tokens=max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                temperature=temperature,
            )
        except anthropic.APITimeoutError as exc:
            raise OperationTimeoutError(
                message="Anthropic request timed out",
                provider_name=self.get_provider_name(),
            ) from exc
        except anthropic.APIError as exc:
            raise GenerationRequestFailedError(
                message=f"Anthropic API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        text_blocks = [block.text for block in response.content if block.type == "text"]
        if not text_blocks:
            raise GenerationRequestFailedError(
                message="Anthropic returned no text content",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "anthropic_completion",
            model=self._model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        return "\n".join(text_blocks)

    def get_provider_name(self) -> str:
        return "anthropic"

    def is_available(self) -> bool:
        return bool(self._api_key)

    def _get_client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(api_key=self._api_key, timeout=self._timeout)
        return self._client
