from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = True

    # Application
    app_name: str = "Shortlink Service"
    app_version: str = "1.0.0"

    # Server
    host: str = "127.0.0.1"
    port: int = 3100

    # Short links are built as <base_url>/<shortcode>
    base_url: str = "http://localhost:3100"

    # Short code generation
    short_code_strategy: str = "random"  # Options: "random", "base62"
    short_code_length: int = 6  # Length of auto-generated codes
    short_code_min_length: int = 4
    short_code_max_length: int = 10
    short_code_salt: int = 1256  # Offset for the Base62 sequence strategy
    max_retries: int = 10  # Generator attempts before giving up

    # Validity window (minutes)
    default_validity_minutes: int = 30
    max_validity_minutes: int = 43200  # 30 days

    # Request limits
    max_url_length: int = 2048
    max_batch_size: int = 5

    # Registry settings
    registry_backend: str = "memory"  # Options: "memory"
    sweep_interval_seconds: int = 60

    # Click queue settings
    queue_backend: str = "memory"  # Options: "memory", "redis_streams", "inline"
    redis_url: str = "redis://localhost:6379/0"
    queue_name: str = "url_clicks"
    queue_consumer_group: str = "click_workers"
    queue_batch_size: int = 100  # Number of messages to process at once
    queue_worker_interval: float = 0.5  # Worker poll interval in seconds

    # Trust X-Forwarded-For when running behind a proxy
    trust_forwarded_headers: bool = True

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_json: bool = False

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
