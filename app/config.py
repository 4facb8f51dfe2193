"""
Application configuration management.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Webhook
    github_webhook_secret: Optional[str] = None
    allow_unsigned_webhooks: bool = False  # Development only

    # GitHub
    github_token: Optional[str] = None
    github_api_url: str = "https://api.github.com"

    # Reviewer (OpenAI-compatible chat completions)
    deepseek_api_key: Optional[str] = None
    deepseek_base_url: str = "https://api.deepseek.com"
    review_model: str = "deepseek-coder"
    reviewer_timeout_seconds: float = 30.0
    review_output_mode: str = "heuristic"  # 'heuristic' or 'json'

    # Review orchestration
    review_batch_size: int = 3
    review_batch_delay_seconds: float = 1.0
    strict_diff_parsing: bool = False
    max_line_comment_chunks: int = 5
    max_comments_per_chunk: int = 2

    # Application
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Build the settings instance once per process."""
    return Settings()
