"""Imagen image generation and Gemini image editing provider."""

import logging
import time

from config import settings
from jobs.errors import RemoteCallFailure
from jobs.models import StudioImage
from providers.gemini_client import GeminiClient
from providers.image.base import ImageProvider, ImageResult

logger = logging.getLogger(__name__)


class ImagenProvider(ImageProvider):
    """Generates with Imagen (``:predict``) and edits with a Gemini image model.

    Usage:
        provider = ImagenProvider(GeminiClient(api_key="..."))
        result = await provider.generate("Quarterly growth chart", aspect_ratio="16:9")
        edited = await provider.edit(result.image, "Make the bars green")
    """

    def __init__(
        self,
        client: GeminiClient | None = None,
        model: str | None = None,
        edit_model: str | None = None,
    ):
        self.client = client or GeminiClient()
        self.model = model or settings.gemini_image_model
        self.edit_model = edit_model or settings.gemini_edit_model

    @property
    def provider_name(self) -> str:
        return "imagen"

    async def generate(self, prompt: str, aspect_ratio: str = "1:1") -> ImageResult:
        """Generate a single PNG image."""
        start_ms = time.time() * 1000

        body = {
            "instances": [{"prompt": prompt}],
            "parameters": {
                "sampleCount": 1,
                "aspectRatio": aspect_ratio,
                "outputOptions": {"mimeType": "image/png"},
            },
        }
        data = await self.client.post(f"models/{self.model}:predict", body)

        predictions = [p for p in data.get("predictions", []) if p.get("bytesBase64Encoded")]
        if not predictions:
            raise RemoteCallFailure("No images returned from Imagen")

        prediction = predictions[0]
        return ImageResult(
            image=StudioImage(
                data=prediction["bytesBase64Encoded"],
                mime_type=prediction.get("mimeType", "image/png"),
            ),
            provider=self.provider_name,
            model=self.model,
            generation_time_ms=time.time() * 1000 - start_ms,
        )

    async def edit(self, image: StudioImage, instruction: str) -> ImageResult:
        """Send the image and the instruction together; take the first image part back."""
        start_ms = time.time() * 1000

        body = {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"inlineData": {"mimeType": image.mime_type, "data": image.data}},
                        {"text": instruction},
                    ],
                }
            ],
            "generationConfig": {"responseModalities": ["IMAGE", "TEXT"]},
        }
        data = await self.client.post(f"models/{self.edit_model}:generateContent", body)

        candidates = data.get("candidates") or []
        parts = candidates[0].get("content", {}).get("parts", []) if candidates else []
        for part in parts:
            inline = part.get("inlineData")
            if inline and inline.get("data"):
                return ImageResult(
                    image=StudioImage(data=inline["data"], mime_type=inline.get("mimeType", "image/png")),
                    provider=self.provider_name,
                    model=self.edit_model,
                    generation_time_ms=time.time() * 1000 - start_ms,
                )

        raise RemoteCallFailure("The AI did not return an edited image.")

    async def health_check(self) -> bool:
        if not self.client.api_key:
            logger.warning("Gemini API key not configured")
            return False
        try:
            await self.client.get(f"models/{self.model}")
            return True
        except Exception as e:
            logger.warning("Imagen health check failed: %s", e)
            return False
