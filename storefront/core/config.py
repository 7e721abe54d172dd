from functools import lru_cache
from typing import Any, List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_CORS = ["http://localhost:3000", "http://localhost:5173"]


def _parse_cors_origins(v: Any) -> List[str]:
    try:
        if v is None or v == "":
            return _DEFAULT_CORS.copy()
        if isinstance(v, list):
            return [x for x in v if isinstance(x, str) and x.strip()]
        s = str(v).strip()
        if not s:
            return _DEFAULT_CORS.copy()
        if s.startswith("["):
            import json
            out = json.loads(s)
            return [x for x in out if isinstance(x, str) and x.strip()] or _DEFAULT_CORS.copy()
        return [x.strip() for x in s.split(",") if x.strip()] or _DEFAULT_CORS.copy()
    except Exception:
        return _DEFAULT_CORS.copy()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # App
    env: str = Field(default="development", description="ENV")
    debug: bool = Field(default=False, description="DEBUG")
    secret_key: str = Field(default="change-me-in-production-min-32-chars")

    # MongoDB
    mongodb_uri: str = Field(default="mongodb://localhost:27017", alias="MONGODB_URI")
    mongodb_db_name: str = Field(default="storefront", alias="MONGODB_DB_NAME")

    # Redis (arq queue + assistant rate limit)
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")

    # Google sign-in
    google_client_id: str = Field(default="", alias="GOOGLE_CLIENT_ID")

    # Payment notifications (Discord webhook); empty disables delivery
    notify_webhook_url: str = Field(default="", alias="NOTIFY_WEBHOOK_URL")
    # Contact form submissions; falls back to NOTIFY_WEBHOOK_URL
    contact_webhook_url: str = Field(default="", alias="CONTACT_WEBHOOK_URL")

    # Hosted LLM (OpenAI-compatible endpoint)
    llm_api_key: str = Field(default="", alias="LLM_API_KEY")
    llm_base_url: str = Field(default="https://openrouter.ai/api/v1", alias="LLM_BASE_URL")
    llm_model: str = Field(default="openai/gpt-4o-mini", alias="LLM_MODEL")
    llm_app_title: str = Field(default="Storefront Admin Assistant", alias="LLM_APP_TITLE")
    llm_timeout_seconds: float = 60.0

    # Manual UPI payment
    upi_id: str = Field(default="", alias="UPI_ID")
    upi_payee_name: str = Field(default="", alias="UPI_PAYEE_NAME")

    # Storage
    storage_backend: str = Field(default="local", alias="STORAGE_BACKEND")
    storage_local_path: str = Field(default="./uploads", alias="STORAGE_LOCAL_PATH")
    gcs_bucket_name: str | None = Field(default=None, alias="GCS_BUCKET_NAME")
    # base URL the stored files are served from; local files are mounted here
    media_base_url: str = Field(default="/media", alias="MEDIA_BASE_URL")

    # Sentry
    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")

    # CORS: env as string, exposed as list
    cors_origins_raw: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        alias="CORS_ORIGINS",
        description="Comma-separated or JSON list",
    )

    @property
    def cors_origins(self) -> List[str]:
        return _parse_cors_origins(getattr(self, "cors_origins_raw", None))

    # Store
    currency_code: str = "INR"
    payment_window_minutes: int = 5
    credits_cashback_rate: float = 0.4
    gift_card_validity_days: int = 365
    low_stock_threshold: int = 10

    # Notification delivery
    notification_max_tries: int = 5
    notification_retry_delay_seconds: int = 10

    # Admin assistant
    assistant_requests_per_minute: int = 20


@lru_cache
def get_settings() -> Settings:
    return Settings()
