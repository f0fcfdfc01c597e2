"""Video providers: Veo."""

from providers.video.base import VideoOperation, VideoProvider, VideoResult

__all__ = ["VideoOperation", "VideoProvider", "VideoResult"]
