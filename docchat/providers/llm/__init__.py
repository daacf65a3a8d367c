"""LLM provider implementations, selected by ``LLM_PROVIDER``.

    gemini     -- GeminiLLMProvider (default), REST via httpx
    openai     -- OpenAILLMProvider, openai SDK (OpenAI-compatible hosts too)
    anthropic  -- AnthropicLLMProvider, anthropic SDK
"""

from docchat.providers.llm.anthropic_provider import AnthropicLLMProvider
from docchat.providers.llm.gemini_provider import GeminiLLMProvider
from docchat.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["AnthropicLLMProvider", "GeminiLLMProvider", "OpenAILLMProvider"]
