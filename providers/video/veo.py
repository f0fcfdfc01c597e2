"""Veo video generation via the Gemini long-running operations API."""

import logging

from config import settings
from jobs.models import StudioImage
from providers.gemini_client import GeminiClient
from providers.video.base import VideoOperation, VideoProvider

logger = logging.getLogger(__name__)


class VeoProvider(VideoProvider):
    """Veo provider: ``:predictLongRunning`` to submit, operation GET to poll.

    Usage:
        provider = VeoProvider(GeminiClient(api_key="..."))
        op = await provider.submit("Animated market ticker")
        while not op.done:
            await asyncio.sleep(10)
            op = await provider.poll(op)
        data = await provider.fetch(op.video_uri)
    """

    def __init__(self, client: GeminiClient | None = None, model: str | None = None):
        self.client = client or GeminiClient()
        self.model = model or settings.gemini_video_model

    @property
    def provider_name(self) -> str:
        return "veo"

    async def submit(self, prompt: str, image: StudioImage | None = None) -> VideoOperation:
        instance: dict = {"prompt": prompt}
        if image is not None:
            instance["image"] = {"bytesBase64Encoded": image.data, "mimeType": image.mime_type}

        body = {
            "instances": [instance],
            "parameters": {"sampleCount": 1},
        }
        data = await self.client.post(f"models/{self.model}:predictLongRunning", body)
        operation = self._parse_operation(data)
        logger.info("Veo operation submitted: %s", operation.name)
        return operation

    async def poll(self, operation: VideoOperation) -> VideoOperation:
        data = await self.client.get(operation.name)
        return self._parse_operation(data, fallback_name=operation.name)

    async def fetch(self, video_uri: str) -> bytes:
        return await self.client.download(video_uri)

    @staticmethod
    def _parse_operation(data: dict, fallback_name: str = "") -> VideoOperation:
        operation = VideoOperation(name=data.get("name") or fallback_name, done=bool(data.get("done")))

        error = data.get("error")
        if error:
            operation.done = True
            operation.error = error.get("message") or str(error)
            return operation

        response = data.get("response") or {}
        # REST responses nest samples under generateVideoResponse; SDK-shaped ones use generatedVideos
        samples = (
            response.get("generateVideoResponse", {}).get("generatedSamples")
            or response.get("generatedVideos")
            or []
        )
        if samples and isinstance(samples[0], dict):
            operation.video_uri = samples[0].get("video", {}).get("uri")
        return operation

    async def health_check(self) -> bool:
        if not self.client.api_key:
            logger.warning("Gemini API key not configured")
            return False
        try:
            await self.client.get(f"models/{self.model}")
            return True
        except Exception as e:
            logger.warning("Veo health check failed: %s", e)
            return False
