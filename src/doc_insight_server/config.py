from typing import List, Optional

from pydantic import AnyHttpUrl, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Gemini inference endpoint
    gemini_api_key: SecretStr = SecretStr("")
    gemini_api_base_url: AnyHttpUrl = "https://generativelanguage.googleapis.com/v1beta"
    gemini_model: str = "gemini-2.5-flash-preview-09-2025"
    request_timeout: float = 120.0

    # Input budget: characters are approximated from the model's token ceiling
    max_context_tokens: int = 100_000
    chars_per_token: int = 4

    # Retry policy for the inference endpoint
    max_retry_attempts: int = 5
    retry_base_delay: float = 1.0  # seconds, doubled per attempt
    retry_jitter: float = 1.0  # seconds, uniform on top of the base delay

    max_upload_bytes: int = 20 * 1024 * 1024

    # History store
    database_url: str = "sqlite+aiosqlite:///./docinsight.db"
    history_create_tables: bool = True
    history_poll_interval: float = 2.0

    # Identity tokens (history is disabled when no secret is configured)
    jwt_secret: Optional[SecretStr] = None
    jwt_algo: str = "HS256"
    jwt_issuer: str = "doc-insight-client"
    jwt_audience: str = "doc-insight-server"
    jwt_ttl_seconds: int = 3600

    cors_origins: List[str] = ["http://localhost:5173"]
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

    @property
    def max_context_chars(self) -> int:
        return self.max_context_tokens * self.chars_per_token

    @property
    def generate_content_url(self) -> str:
        base = str(self.gemini_api_base_url).rstrip("/")
        return f"{base}/models/{self.gemini_model}:generateContent"


settings = Settings()
