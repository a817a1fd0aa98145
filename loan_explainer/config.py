"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "loan-explainer"
    log_level: str = "INFO"

    # Risk engine tables (JSON file); defaults are used when unset
    engine_config_path: str | None = None

    # Remote advisory service (optional)
    advisor_enabled: bool = False
    advisor_url: str = "http://localhost:8003/advise"
    advisor_api_key: str | None = None
    prefer_advisor_decision: bool = False

    # HTTP Client
    http_timeout_seconds: float = 5.0
    advisor_max_retries: int = 3
    advisor_backoff_base: float = 0.5  # Exponential backoff base in seconds


settings = Settings()
