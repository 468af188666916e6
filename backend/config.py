"""
Salary Desk Configuration

Environment-based settings for the salary calculation service.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import Field, PostgresDsn, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from integrations.token_exchange import derive_fernet_key

ASYNC_POSTGRES_SCHEME = "postgresql+asyncpg"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = "Salary Desk"
    app_version: str = "0.1.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # API
    api_v1_prefix: str = "/api/v1"
    allowed_origins: list[str] = Field(default_factory=lambda: ["http://localhost:5173"])

    # Database: DATABASE_URL wins over the discrete Postgres fields
    database_url_external: str = Field(default="", alias="DATABASE_URL")
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "salarydesk"
    postgres_password: str = "salarydesk"
    postgres_db: str = "salarydesk"

    @computed_field
    @property
    def database_url(self) -> str:
        """Async SQLAlchemy URL; plain Postgres URLs are moved onto asyncpg."""
        url = self.database_url_external
        if not url:
            return str(
                PostgresDsn.build(
                    scheme=ASYNC_POSTGRES_SCHEME,
                    username=self.postgres_user,
                    password=self.postgres_password,
                    host=self.postgres_host,
                    port=self.postgres_port,
                    path=self.postgres_db,
                )
            )
        for prefix in ("postgres://", "postgresql://"):
            if url.startswith(prefix):
                return f"{ASYNC_POSTGRES_SCHEME}://{url[len(prefix):]}"
        return url

    # Worker directory cache
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    cache_enabled: bool = True
    worker_cache_ttl_seconds: int = 300

    # Security
    secret_key: str = Field(
        default="CHANGE-ME-IN-PRODUCTION-use-openssl-rand-hex-32",
        description="Secret key for session JWT signing",
    )
    encryption_key: str = Field(
        default="",
        description="Fernet key for encrypting the external token; derived from secret_key when empty",
    )
    access_token_expire_minutes: int = 60

    @property
    def fernet_key(self) -> str:
        return self.encryption_key or derive_fernet_key(self.secret_key)

    # Workforce API
    external_api_base_url: str = Field(
        default="http://localhost:8080/api",
        alias="EXTERNAL_API_BASE_URL",
        description="Base URL of the workforce REST API",
    )
    external_api_timeout: float = 30.0
    external_api_retry_attempts: int = 3
    external_api_app_source: str = "g6t-tasker"
    enable_users_lookup: bool = Field(
        default=False,
        description="Resolve secondary worker emails through /User/GetAll",
    )
    schedule_timezone_offset_hours: int = Field(
        default=2,
        description="Hours added to schedule timestamps before keying them by day",
    )

    # Salary defaults
    overtime_multiplier: Decimal = Decimal("1.5")
    standard_monthly_hours: Decimal = Decimal("160")
    tax_rate: Decimal = Decimal("0.21")
    social_security_rate: Decimal = Decimal("0.063")

    # Error Monitoring
    sentry_dsn: str = Field(
        default="",
        description="Sentry DSN for error monitoring (leave empty to disable)",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
