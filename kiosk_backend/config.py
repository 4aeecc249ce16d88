"""Application settings loaded from the environment (prefix ``KIOSK_``)."""
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = Field(default="kiosk-backend", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/production)")
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=False, description="Render logs as JSON lines")

    allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        description="CORS allowed origins (comma-separated)",
    )
    static_dir: str = Field(default="static", description="Directory served under /static")
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Stripe
    stripe_secret_key: str = Field(default="", description="Stripe secret API key")
    stripe_webhook_secret: str = Field(default="", description="Stripe webhook signing secret")
    webhook_tolerance_seconds: int = Field(default=300, description="Max webhook timestamp age")
    currency: str = Field(default="eur", description="Currency for payment intents")
    payment_method_types: str = Field(
        default="card_present", description="Payment method types for intents (comma-separated)"
    )

    # Mail (empty smtp_host disables order confirmation mails)
    smtp_host: str = Field(default="", description="SMTP server host")
    smtp_port: int = Field(default=587, description="SMTP server port")
    smtp_username: str = Field(default="", description="SMTP username")
    smtp_password: str = Field(default="", description="SMTP password")
    smtp_start_tls: bool = Field(default=True, description="Upgrade the SMTP connection with STARTTLS")
    mail_from: str = Field(default="kiosk@localhost", description="Sender address")
    mail_to: str = Field(default="", description="Shop address receiving order confirmations")

    # Feeds
    feed_max_pending: int = Field(default=100, description="Frames buffered per subscriber before it is dropped")
    feed_keepalive_seconds: float = Field(default=15.0, description="Idle seconds before a keep-alive comment, 0 disables")

    strict_payment_transitions: bool = Field(
        default=False, description="Reject payment status transitions outside the allowed table"
    )

    model_config = SettingsConfigDict(
        env_prefix="KIOSK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()

    @field_validator("feed_max_pending")
    @classmethod
    def validate_feed_max_pending(cls, v: int) -> int:
        if v < 1:
            raise ValueError("feed_max_pending must be at least 1")
        return v

    def get_allowed_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    def get_payment_method_types_list(self) -> List[str]:
        return [t.strip() for t in self.payment_method_types.split(",") if t.strip()]

    @property
    def mail_enabled(self) -> bool:
        return bool(self.smtp_host and self.mail_to)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
