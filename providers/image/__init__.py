"""Image providers: Imagen generation, Gemini image editing."""

from providers.image.base import ImageProvider, ImageResult

__all__ = ["ImageProvider", "ImageResult"]
