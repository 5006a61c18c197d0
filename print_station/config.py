"""Application configuration from environment."""
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings
from functools import lru_cache

# Load .env from project root (parent of print_station/) so env vars are available everywhere
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=_env_path)


class Settings(BaseSettings):
    app_name: str = "Printer Station API"
    app_version: str = "1.0.0"
    app_env: str = "development"
    debug: bool = False

    # Required: the process refuses to start without a database.
    database_url: str

    jwt_secret_key: str = "jwt-secret-change-me"
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 7

    @field_validator("jwt_secret_key")
    @classmethod
    def strip_jwt_secret(cls, v: str) -> str:
        return (v or "").strip()

    backend_cors_origins: str = "http://localhost:5173,http://localhost:5174"

    upload_dir: str = "uploads"
    max_upload_mb: int = 50

    s3_bucket_name: str = ""
    s3_region: str = ""
    s3_endpoint_url: str = ""
    s3_prefix: str = "print-jobs"
    storage_timeout_seconds: float = 15.0

    brevo_api_key: str = ""
    brevo_sender_email: str = "noreply@example.com"
    brevo_sender_name: str = "Printer Station"

    resend_api_key: str = ""
    resend_from_email: str = "noreply@example.com"

    email_timeout_seconds: float = 10.0

    @field_validator("brevo_api_key", "resend_api_key", "s3_bucket_name", mode="before")
    @classmethod
    def strip_credentials(cls, v: str) -> str:
        return (v or "").strip()

    otp_expire_minutes: int = 30
    otp_max_attempts: int = 5
    otp_purge_interval_minutes: int = 15
    # None = require verification only when an email provider is configured
    require_verified_email: bool | None = None

    keep_alive_url: str = ""
    keep_alive_interval_minutes: int = 10
    scheduler_enabled: bool = True

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.backend_cors_origins.split(",") if o.strip()]

    @property
    def email_configured(self) -> bool:
        return bool(self.brevo_api_key or self.resend_api_key)

    @property
    def storage_configured(self) -> bool:
        return bool(self.s3_bucket_name)

    @property
    def verified_email_required(self) -> bool:
        if self.require_verified_email is None:
            return self.email_configured
        return self.require_verified_email

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    class Config:
        env_file = str(_env_path)
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()
