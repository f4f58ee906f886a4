"""ProcureFlow Configuration"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    model_config = SettingsConfigDict(
        env_file="config/.env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "ProcureFlow"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 4000

    # CORS - reflect any origin by default
    cors_origin_regex: str = ".*"

    # LLM Configuration
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    llm_model: str = "gpt-5-nano"
    transcription_model: str = "whisper-1"
    max_tool_steps: int = 5

    # Storage
    chats_dir: str = ".chats"

    # Uploads
    max_upload_bytes: int = 20 * 1024 * 1024

    @property
    def llm_configured(self) -> bool:
        """Check if the LLM provider key is configured"""
        return bool(self.openai_api_key)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
