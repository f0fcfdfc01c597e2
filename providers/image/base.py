"""Abstract base class for image generation providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from jobs.models import StudioImage

ASPECT_RATIOS = ("1:1", "16:9", "9:16")


@dataclass
class ImageResult:
    """Standardized result from any image provider."""

    image: StudioImage
    provider: str
    model: str
    generation_time_ms: float | None = None


class ImageProvider(ABC):
    """Abstract base class for image generation providers.

    Implementations: ImagenProvider
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name for logging/tracking."""
        ...

    @abstractmethod
    async def generate(self, prompt: str, aspect_ratio: str = "1:1") -> ImageResult:
        """Generate an image from a text prompt.

        Args:
            prompt: Text description of the desired image.
            aspect_ratio: One of ``ASPECT_RATIOS``.

        Returns:
            ImageResult holding base64 bytes and metadata.
        """
        ...

    @abstractmethod
    async def edit(self, image: StudioImage, instruction: str) -> ImageResult:
        """Apply a natural-language edit to an existing image.

        Returns:
            ImageResult holding the replacement image.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the provider is available and responding."""
        ...
