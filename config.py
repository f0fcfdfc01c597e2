"""Configuration via pydantic-settings. Reads from .env or environment."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # ===== GEMINI (Cloud text / image / video) =====
    # Without a key every AI widget is disabled at startup
    api_key: str = ""  # env: API_KEY
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_text_model: str = "gemini-2.5-flash"
    gemini_image_model: str = "imagen-4.0-generate-001"
    gemini_edit_model: str = "gemini-2.5-flash-image-preview"
    gemini_video_model: str = "veo-2.0-generate-001"
    request_timeout: int = 120  # seconds, per HTTP call

    # ===== VIDEO POLLING =====
    video_poll_interval: int = 10  # seconds between status checks
    video_max_polls: int = 60  # ~10 minutes at the default interval

    # ===== PLATFORM =====
    platform_name: str = "FulxerPro"
    platform_version: str = "1.0.0"
    server_label: str = "AWS EC2"

    # ===== SYSTEM =====
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000


settings = Settings()
