"""Настройки приложения (env + `.env`)."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Pydantic-настройки (всё, что обычно лежит в `.env`)."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = Field(default="local", validation_alias="APP_ENV")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # live: настоящие провайдеры, mock: детерминированные заглушки (демо/тесты)
    vendor_mode: str = Field(default="live", validation_alias="VENDOR_MODE")
    vendor_timeout_seconds: float = Field(default=120.0, validation_alias="VENDOR_TIMEOUT_SECONDS")

    fal_key: str | None = Field(default=None, validation_alias="FAL_KEY")
    fal_base_url: str = Field(default="https://fal.run", validation_alias="FAL_BASE_URL")
    fal_model: str = Field(default="fal-ai/nano-banana/edit", validation_alias="FAL_MODEL")

    openrouter_api_key: str | None = Field(default=None, validation_alias="OPENROUTER_API_KEY")
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        validation_alias="OPENROUTER_BASE_URL",
    )
    openrouter_model: str = Field(
        default="google/gemini-2.5-flash-image-preview:free",
        validation_alias="OPENROUTER_MODEL",
    )
    openrouter_max_tokens: int = Field(default=1000, validation_alias="OPENROUTER_MAX_TOKENS")
    site_url: str = Field(default="http://localhost:3000", validation_alias="SITE_URL")
    app_title: str = Field(default="Nano Banana App", validation_alias="APP_TITLE")

    gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        validation_alias="GEMINI_BASE_URL",
    )
    gemini_model: str = Field(default="gemini-2.0-flash-exp", validation_alias="GEMINI_MODEL")

    max_images: int = Field(default=5, validation_alias="MAX_IMAGES")
    max_image_bytes: int = Field(default=10 * 1024 * 1024, validation_alias="MAX_IMAGE_BYTES")


_settings: Settings | None = None


def get_settings() -> Settings:
    """Ленивая загрузка настроек (один раз на процесс)."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
