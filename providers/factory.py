"""Provider factory for the LLM, image, and video providers based on config."""

import logging

from config import settings
from jobs.errors import ConfigurationFailure
from providers.gemini_client import GeminiClient
from providers.llm.base import LLMProvider
from providers.image.base import ImageProvider
from providers.video.base import VideoProvider

logger = logging.getLogger(__name__)

# Cache provider instances
_llm_provider: LLMProvider | None = None
_image_provider: ImageProvider | None = None
_video_provider: VideoProvider | None = None


def _require_api_key() -> None:
    if not settings.api_key:
        raise ConfigurationFailure("API_KEY environment variable not set.")


def get_llm_provider(force_new: bool = False) -> LLMProvider:
    """Get the configured LLM provider.

    Args:
        force_new: If True, create a new instance instead of using cached.

    Raises:
        ConfigurationFailure: If no API key is configured.
    """
    global _llm_provider

    if _llm_provider is not None and not force_new:
        return _llm_provider

    _require_api_key()
    from providers.llm.gemini import GeminiProvider

    _llm_provider = GeminiProvider(GeminiClient(), model=settings.gemini_text_model)
    logger.info("Using Gemini LLM provider: %s", settings.gemini_text_model)
    return _llm_provider


def get_image_provider(force_new: bool = False) -> ImageProvider:
    """Get the configured image generation/editing provider.

    Args:
        force_new: If True, create a new instance instead of using cached.

    Raises:
        ConfigurationFailure: If no API key is configured.
    """
    global _image_provider

    if _image_provider is not None and not force_new:
        return _image_provider

    _require_api_key()
    from providers.image.imagen import ImagenProvider

    _image_provider = ImagenProvider(
        GeminiClient(),
        model=settings.gemini_image_model,
        edit_model=settings.gemini_edit_model,
    )
    logger.info(
        "Using Imagen image provider: %s (edits: %s)",
        settings.gemini_image_model,
        settings.gemini_edit_model,
    )
    return _image_provider


def get_video_provider(force_new: bool = False) -> VideoProvider:
    """Get the configured video generation provider.

    Args:
        force_new: If True, create a new instance instead of using cached.

    Raises:
        ConfigurationFailure: If no API key is configured.
    """
    global _video_provider

    if _video_provider is not None and not force_new:
        return _video_provider

    _require_api_key()
    from providers.video.veo import VeoProvider

    _video_provider = VeoProvider(GeminiClient(), model=settings.gemini_video_model)
    logger.info("Using Veo video provider: %s", settings.gemini_video_model)
    return _video_provider


async def check_all_providers() -> dict[str, bool | str]:
    """Run health checks on all configured providers.

    Returns:
        Dictionary mapping provider type to health status.
    """
    results: dict[str, bool | str] = {}

    try:
        llm = get_llm_provider()
        results["llm"] = await llm.health_check()
        results["llm_provider"] = llm.provider_name
    except Exception as e:
        logger.error("LLM provider health check failed: %s", e)
        results["llm"] = False

    try:
        image = get_image_provider()
        results["image"] = await image.health_check()
        results["image_provider"] = image.provider_name
    except Exception as e:
        logger.error("Image provider health check failed: %s", e)
        results["image"] = False

    try:
        video = get_video_provider()
        results["video"] = await video.health_check()
        results["video_provider"] = video.provider_name
    except Exception as e:
        logger.error("Video provider health check failed: %s", e)
        results["video"] = False

    return results


def reset_providers():
    """Reset all cached provider instances.

    Useful for testing or when configuration changes.
    """
    global _llm_provider, _image_provider, _video_provider
    _llm_provider = None
    _image_provider = None
    _video_provider = None
