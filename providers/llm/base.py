"""Abstract base class for LLM providers."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass, field


@dataclass
class LLMResponse:
    """Standardized response from any LLM provider."""

    text: str
    input_tokens: int
    output_tokens: int
    model: str
    provider: str
    latency_ms: float
    sources: list[dict] = field(default_factory=list)  # [{"title": ..., "uri": ...}] when grounded


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    Implementations: GeminiProvider
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name for logging/tracking."""
        ...

    @abstractmethod
    async def complete(
        self,
        system_prompt: str | None,
        user_prompt: str,
        response_schema: dict | None = None,
        use_search: bool = False,
    ) -> LLMResponse:
        """Generate a single completion.

        Args:
            system_prompt: Optional system instruction.
            user_prompt: User message/request.
            response_schema: If set, request JSON output constrained to this schema.
            use_search: If True, ground the answer with web search and return sources.

        Returns:
            LLMResponse with text, token counts and metadata.
        """
        ...

    @abstractmethod
    def stream(self, system_prompt: str | None, messages: list[dict]) -> AsyncIterator[str]:
        """Stream a chat reply as text increments.

        Args:
            system_prompt: Optional system instruction.
            messages: Conversation so far, ``[{"role": "user"|"model", "text": ...}]``.

        Yields:
            Text increments in receipt order.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the provider is available and responding."""
        ...
