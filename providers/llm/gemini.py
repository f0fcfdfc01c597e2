"""Gemini LLM provider (generateContent / streamGenerateContent)."""

import logging
import time
from collections.abc import AsyncIterator

from config import settings
from jobs.errors import RemoteCallFailure
from providers.gemini_client import GeminiClient
from providers.llm.base import LLMProvider, LLMResponse

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    """Gemini text provider.

    Usage:
        provider = GeminiProvider(GeminiClient(api_key="..."))
        response = await provider.complete("You are helpful.", "Hello!")
        async for delta in provider.stream(None, [{"role": "user", "text": "Hi"}]):
            ...
    """

    def __init__(self, client: GeminiClient | None = None, model: str | None = None):
        self.client = client or GeminiClient()
        self.model = model or settings.gemini_text_model

    @property
    def provider_name(self) -> str:
        return "gemini"

    def _build_body(
        self,
        system_prompt: str | None,
        contents: list[dict],
        response_schema: dict | None = None,
        use_search: bool = False,
    ) -> dict:
        body: dict = {"contents": contents}
        if system_prompt:
            body["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        if response_schema is not None:
            body["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            }
        if use_search:
            body["tools"] = [{"google_search": {}}]
        return body

    async def complete(
        self,
        system_prompt: str | None,
        user_prompt: str,
        response_schema: dict | None = None,
        use_search: bool = False,
    ) -> LLMResponse:
        """Generate a completion using generateContent."""
        start_ms = time.time() * 1000

        body = self._build_body(
            system_prompt,
            [{"role": "user", "parts": [{"text": user_prompt}]}],
            response_schema=response_schema,
            use_search=use_search,
        )
        data = await self.client.post(f"models/{self.model}:generateContent", body)
        latency_ms = time.time() * 1000 - start_ms

        candidate = self._first_candidate(data)
        usage = data.get("usageMetadata", {})

        return LLMResponse(
            text=self._candidate_text(candidate),
            input_tokens=usage.get("promptTokenCount", 0),
            output_tokens=usage.get("candidatesTokenCount", 0),
            model=self.model,
            provider=self.provider_name,
            latency_ms=latency_ms,
            sources=self._grounding_sources(candidate),
        )

    async def stream(self, system_prompt: str | None, messages: list[dict]) -> AsyncIterator[str]:
        """Stream a chat reply using streamGenerateContent over SSE."""
        contents = [
            {"role": message["role"], "parts": [{"text": message["text"]}]}
            for message in messages
        ]
        body = self._build_body(system_prompt, contents)

        async for chunk in self.client.stream(f"models/{self.model}:streamGenerateContent", body):
            candidates = chunk.get("candidates") or []
            if not candidates:
                continue
            text = self._candidate_text(candidates[0])
            if text:
                yield text

    @staticmethod
    def _first_candidate(data: dict) -> dict:
        candidates = data.get("candidates") or []
        if not candidates:
            reason = data.get("promptFeedback", {}).get("blockReason")
            if reason:
                raise RemoteCallFailure(f"Request blocked by Gemini: {reason}")
            raise RemoteCallFailure("Gemini returned no candidates")
        return candidates[0]

    @staticmethod
    def _candidate_text(candidate: dict) -> str:
        parts = candidate.get("content", {}).get("parts", [])
        return "".join(part.get("text", "") for part in parts)

    @staticmethod
    def _grounding_sources(candidate: dict) -> list[dict]:
        chunks = candidate.get("groundingMetadata", {}).get("groundingChunks", [])
        sources = []
        for chunk in chunks:
            web = chunk.get("web")
            if web and web.get("uri"):
                sources.append({"title": web.get("title") or web["uri"], "uri": web["uri"]})
        return sources

    async def health_check(self) -> bool:
        """Check that the configured model is visible to this API key."""
        if not self.client.api_key:
            logger.warning("Gemini API key not configured")
            return False
        try:
            await self.client.get(f"models/{self.model}")
            return True
        except Exception as e:
            logger.warning("Gemini health check failed: %s", e)
            return False
