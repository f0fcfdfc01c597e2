"""LLM providers: Gemini."""

from providers.llm.base import LLMProvider, LLMResponse

__all__ = ["LLMProvider", "LLMResponse"]
