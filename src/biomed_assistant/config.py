"""Application configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings

from biomed_assistant.constants import BIOMCP_BASE_URL


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Keys
    anthropic_api_key: str = ""
    ncbi_api_key: str = ""

    # LLM Settings
    anthropic_base_url: str | None = None
    llm_model: str = "claude-sonnet-4-20250514"
    llm_max_tokens: int = 4096

    # Tool server
    biomcp_base_url: str = BIOMCP_BASE_URL

    # App Settings
    host: str = "0.0.0.0"
    port: int = 3001
    log_level: str = "INFO"
    log_file: str = "server.log"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        frozen = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
