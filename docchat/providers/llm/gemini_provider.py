"""Gemini LLM provider adapter.

Calls ``models/{model}:generateContent`` on the Generative Language REST
API through ``httpx``.  The system prompt travels as
``systemInstruction``; the grounded prompt is a single user turn.  The
response's candidate text parts are joined into one answer string.
"""

from __future__ import annotations

import httpx
import structlog

from docchat.config.settings import Settings
from docchat.interfaces.llm_provider import ILLMProvider
from docchat.providers.embedding.gemini_embedding_provider import GEMINI_API_BASE
from docchat.utils.errors import (
    GenerationBackendUnavailableError,
    GenerationRequestFailedError,
    OperationTimeoutError,
)

logger = structlog.get_logger(logger_name=__name__)


class GeminiLLMProvider(ILLMProvider):
    """LLM provider backed by the Gemini ``generateContent`` endpoint."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        self._api_key = settings.gemini_api_key
        self._model = settings.gemini_text_model
        self._timeout = settings.generation_timeout
        self._http_client = http_client

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1024,
    ) -> str:
        if not self._api_key:
            raise GenerationBackendUnavailableError(
                message="GEMINI_API_KEY is not configured",
                provider_name=self.get_provider_name(),
            )

        body = {
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
            "generationConfig": {"temperature": temperature, "maxOutputTokens": max_tokens},
        }
        payload = await self._post(body)

        candidates = payload.get("candidates") or []
        if not candidates:
            raise GenerationRequestFailedError(
                message="Gemini returned no candidates",
                provider_name=self.get_provider_name(),
            )
        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))

        usage = payload.get("usageMetadata") or {}
        logger.info(
            "gemini_completion",
            model=self._model,
            input_tokens=usage.get("promptTokenCount"),
            output_tokens=usage.get("candidatesTokenCount"),
            finish_reason=candidates[0].get("finishReason"),
        )
        return text

    def get_provider_name(self) -> str:
        return "gemini"

    def is_available(self) -> bool:
        return bool(self._api_key)

    async def _post(self, body: dict) -> dict:
        url = f"{GEMINI_API_BASE}/models/{self._model}:generateContent"
        headers = {"x-goog-api-key": self._api_key, "Content-Type": "application/json"}
        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    url, json=body, headers=headers, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(url, json=body, headers=headers)
        except httpx.TimeoutException as exc:
            raise OperationTimeoutError(
                message="Gemini generation request timed out",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise GenerationRequestFailedError(
                message=f"Gemini API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.is_error:
            raise GenerationRequestFailedError(
                message=f"Gemini API error: {response.status_code} {response.text[:500]}",
                provider_name=self.get_provider_name(),
            )
        return response.json()
