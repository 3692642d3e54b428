"""Application settings loaded from environment variables."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from resume_review.core import constants as c


class Settings(BaseSettings):
    openai_api_key: str = ""
    google_ai_api_key: str = ""
    langfuse_secret_key: str = ""
    langfuse_public_key: str = ""
    langfuse_host: str = "https://cloud.langfuse.com"
    llm_model: str = c.DEFAULT_LLM_MODEL
    gemini_model: str = c.GEMINI_MODEL
    storage_dir: str = "output"
    allowed_origins: str = "http://localhost:3000"
    log_level: str = "INFO"

    # PDF engine
    pdf_engine_module: str = c.DEFAULT_PDF_ENGINE_MODULE
    pdf_engine_workers: int = Field(default=c.DEFAULT_PDF_ENGINE_WORKERS, ge=1)
    pdf_engine_thread_name: str = c.DEFAULT_PDF_ENGINE_THREAD_NAME

    # Preview image
    preview_scale: float = Field(default=c.DEFAULT_PREVIEW_SCALE, gt=0)
    preview_format: Literal["jpeg", "png"] = c.DEFAULT_PREVIEW_FORMAT
    preview_quality: float = Field(default=c.DEFAULT_PREVIEW_QUALITY, ge=0.0, le=1.0)
    max_surface_pixels: int = Field(default=c.MAX_SURFACE_PIXELS, gt=0)
    max_previews: int = Field(default=c.MAX_PREVIEWS, ge=1)

    # Stage timeouts, seconds
    pdf_load_timeout: float = Field(default=c.PDF_LOAD_TIMEOUT, gt=0)
    pdf_render_timeout: float = Field(default=c.PDF_RENDER_TIMEOUT, gt=0)
    text_extract_timeout: float = Field(default=c.TEXT_EXTRACT_TIMEOUT, gt=0)

    # Text extraction
    extract_chunk_size: int = Field(default=c.EXTRACT_CHUNK_SIZE, ge=1)
    extract_chunk_pause: float = Field(default=c.EXTRACT_CHUNK_PAUSE, ge=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


_settings: Settings | None = None


def load_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
