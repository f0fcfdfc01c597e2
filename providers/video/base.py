"""Abstract base class for video generation providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from jobs.models import StudioImage


@dataclass
class VideoOperation:
    """Remote long-running operation as last reported by the provider."""

    name: str
    done: bool = False
    video_uri: str | None = None
    error: str | None = None


@dataclass
class VideoResult:
    """Standardized result from any video provider."""

    video_bytes: bytes
    video_uri: str
    provider: str
    mime_type: str = "video/mp4"
    generation_time_ms: float | None = None


class VideoProvider(ABC):
    """Abstract base class for video generation providers.

    Generation is asynchronous on the remote side: ``submit`` starts an
    operation, ``poll`` refreshes it, ``fetch`` downloads the finished file.

    Implementations: VeoProvider
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name for logging/tracking."""
        ...

    @abstractmethod
    async def submit(self, prompt: str, image: StudioImage | None = None) -> VideoOperation:
        """Start generating a video, optionally animating a starting image."""
        ...

    @abstractmethod
    async def poll(self, operation: VideoOperation) -> VideoOperation:
        """Return the current state of a submitted operation."""
        ...

    @abstractmethod
    async def fetch(self, video_uri: str) -> bytes:
        """Download a finished video."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the provider is available and responding."""
        ...
