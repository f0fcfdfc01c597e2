"""Provider abstraction layer for the remote generative service.

Text, image and video generation sit behind separate interfaces so the job
orchestrator never touches HTTP. The shipped implementations call the Gemini
REST API (Gemini, Imagen, Veo).
"""

from providers.llm.base import LLMProvider, LLMResponse
from providers.image.base import ImageProvider, ImageResult
from providers.video.base import VideoOperation, VideoProvider, VideoResult
from providers.factory import get_llm_provider, get_image_provider, get_video_provider

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "ImageProvider",
    "ImageResult",
    "VideoOperation",
    "VideoProvider",
    "VideoResult",
    "get_llm_provider",
    "get_image_provider",
    "get_video_provider",
]
