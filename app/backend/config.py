"""
Application configuration using Pydantic Settings.

Automatically loads environment variables from .env files.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # LLM provider
    llm_provider: Literal["anthropic", "openai"] = "anthropic"
    anthropic_api_key: str | None = None
    openai_api_key: str | None = None
    claude_model: str = "claude-3-5-sonnet-20240620"
    openai_model: str = "gpt-4.1"
    llm_max_tokens: int = 4000
    llm_temperature: float = 0.0
    llm_chunk_chars: int = 50_000
    max_documents_analyzed: int = 1
    mock_mode: bool = False

    # Azure Computer Vision (Read API)
    azure_cv_endpoint: str | None = None
    azure_cv_key: str | None = None
    azure_poll_interval_seconds: float = 1.0
    azure_poll_max_attempts: int = 30

    # OCR.space ("helloworld" is the public demo key)
    ocr_space_api_key: str = "helloworld"
    ocr_space_url: str = "https://api.ocr.space/parse/image"

    # Local Tesseract fallback
    tesseract_enabled: bool = False
    tesseract_language: str = "eng"

    # Text limits
    min_text_chars: int = 50
    max_document_chars: int = 150_000

    http_timeout_seconds: float = 60.0

    log_level: str = "INFO"
    debug: bool = False

    model_config = SettingsConfigDict(
        # Load from .env file in the backend directory
        env_file=Path(__file__).parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        # Case insensitive environment variable names
        case_sensitive=False,
    )

    @property
    def api_key_env_var(self) -> str:
        """Name of the environment variable holding the active provider key."""
        return "OPENAI_API_KEY" if self.llm_provider == "openai" else "ANTHROPIC_API_KEY"

    @property
    def active_api_key(self) -> str | None:
        """API key for the configured LLM provider."""
        if self.llm_provider == "openai":
            return self.openai_api_key
        return self.anthropic_api_key

    @property
    def default_model(self) -> str:
        if self.llm_provider == "openai":
            return self.openai_model
        return self.claude_model

    @property
    def effective_log_level(self) -> str:
        """DEBUG when debug mode is on, otherwise the configured level."""
        if self.debug:
            return "DEBUG"
        return self.log_level.upper()

    @property
    def azure_configured(self) -> bool:
        return bool(self.azure_cv_endpoint and self.azure_cv_key)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration loaded from environment.
    """
    return Settings()
