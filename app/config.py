"""
Load settings from .env. Never log or expose secret values.
All values come from environment variables (populated via .env file).
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Credentials: absence is a configuration error at call time, not at startup
    brave_search_api_key: Optional[str] = Field(default=None, description="Brave Search subscription token")
    openrouter_api_key: Optional[str] = Field(default=None, description="OpenRouter API key (translation + summaries)")
    deepl_api_key: Optional[str] = Field(default=None, description="DeepL API key")

    # Endpoints (still checked against the fixed host allow-list before each call)
    search_api_url: str = Field(
        default="https://api.search.brave.com/res/v1/web/search",
        description="Brave web search endpoint",
    )
    completion_api_url: str = Field(
        default="https://openrouter.ai/api/v1/chat/completions",
        description="OpenRouter chat completions endpoint",
    )
    deepl_api_url: str = Field(
        default="https://api-free.deepl.com/v2/translate",
        description="DeepL translate endpoint",
    )

    # Models
    translation_model: str = Field(default="google/gemma-3-12b-it:free", description="Model for query translation")
    summarization_model: str = Field(default="google/gemma-3-12b-it:free", description="Model for summaries")

    # Timeouts (seconds)
    request_timeout: float = Field(default=10.0, description="Search / DeepL request timeout")
    translation_timeout: float = Field(default=5.0, description="Query translation timeout")
    summarizer_timeout: float = Field(default=15.0, description="Summarization timeout")

    # Rate limits (requests per window, per client identifier)
    search_rate_limit: int = Field(default=30, description="search_web calls per window")
    summarize_rate_limit: int = Field(default=20, description="search_and_summarize calls per window")
    rate_limit_window_ms: int = Field(default=60000, description="Rate limit window in milliseconds")

    # App
    log_level: str = Field(default="INFO", description="Log level")
    api_host: str = Field(default="0.0.0.0", description="FastAPI bind host")
    api_port: int = Field(default=8000, description="FastAPI port")
    app_title: str = Field(default="ChatH4O", description="Sent as X-Title / User-Agent to upstream APIs")

    @property
    def user_agent(self) -> str:
        return f"{self.app_title}/1.0 (Korean Language Support)"


@lru_cache
def get_settings() -> Settings:
    return Settings()
