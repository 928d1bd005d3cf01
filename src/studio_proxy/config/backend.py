"""Generative-AI backend configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BackendSettings(BaseSettings):
    """Gemini REST endpoint and model selection."""

    model_config = SettingsConfigDict(
        env_prefix="STUDIO_GEMINI_",
        case_sensitive=False,
        extra="ignore",
    )

    base_url: str = Field(
        default="https://generativelanguage.googleapis.com",
        description="Gemini API base URL",
    )
    api_version: str = Field(default="v1beta", description="API version path")
    chat_model: str = Field(default="gemini-2.5-flash")
    transcription_model: str = Field(default="gemini-2.5-pro")
    tts_model: str = Field(default="gemini-2.5-flash-preview-tts")
    image_model: str = Field(default="gemini-2.5-flash-image")
    video_model: str = Field(default="veo-3.1-fast-generate-preview")
    http_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="HTTP timeout for a single backend request",
    )
