"""Configuration management using Pydantic Settings"""

from typing import Dict
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./ravehub.db"

    # Storefront on-demand revalidation
    revalidate_base_url: str = "http://localhost:3000"
    revalidate_token: str = ""

    # Service
    service_name: str = "ravehub-gateway"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 5.0

    # Payment gateway webhooks (HMAC-SHA256 over the raw body)
    mercadopago_webhook_secret: str = ""
    webpay_webhook_secret: str = ""
    webhook_signature_required: bool = True

    # Admin back-office: bearer token -> principal recorded as reviewer
    admin_tokens: Dict[str, str] = {}

    # State transitions retried on database contention
    transition_max_retries: int = 3
    transition_backoff_base: float = 0.05  # seconds


settings = Settings()
