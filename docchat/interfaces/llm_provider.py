"""Abstract base class for generative-model providers.

The answer generator builds a grounded prompt and hands it to whichever
:class:`ILLMProvider` was selected at startup.  Generation is a single
awaited call; streaming to clients happens after the full answer exists.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: GeminiLLMProvider, OpenAILLMProvider, AnthropicLLMProvider
# Located in: docchat/providers/llm/
class ILLMProvider(ABC):
    """Contract for text-generation backends."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1024,
    ) -> str:
        """Generate a text completion from the model.

        Parameters
        ----------
        system_prompt:
            The instruction message that sets the model's behaviour.
        user_prompt:
            The prompt containing context, history and the question.
        temperature:
            Sampling temperature.
        max_tokens:
            Upper bound on the number of tokens in the response.

        Returns
        -------
        str
            The model's text response.

        Raises
        ------
        docchat.utils.errors.GenerationBackendUnavailableError
            If no credential is configured.
        docchat.utils.errors.GenerationRequestFailedError
            If the API call fails or returns no text.
        docchat.utils.errors.OperationTimeoutError
            If the request exceeds its deadline.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"gemini"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider's credential is configured."""
