"""Configuration management using Pydantic Settings."""

from typing import Annotated, Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class AppConfig(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    env: Literal["development", "production", "testing"] = Field(default="development", alias="APP_ENV")
    debug: bool = Field(default=False, alias="APP_DEBUG")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", alias="LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(default="json", alias="LOG_FORMAT")


class RedisConfig(BaseSettings):
    """Redis configuration for the email store and auth state."""

    model_config = SettingsConfigDict(extra="ignore")

    url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    key_prefix: str = Field(default="triage:", alias="REDIS_KEY_PREFIX")


class AuthConfig(BaseSettings):
    """Session and sign-in configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    jwt_secret: SecretStr = Field(alias="AUTH_JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="AUTH_JWT_ALGORITHM")
    jwt_issuer: str = Field(default="inbox-triage-dashboard", alias="AUTH_JWT_ISSUER")
    token_expiry_seconds: int = Field(default=3600, alias="AUTH_TOKEN_EXPIRY_SECONDS")
    magic_link_ttl_seconds: int = Field(default=900, alias="AUTH_MAGIC_LINK_TTL_SECONDS")
    pbkdf2_iterations: int = Field(default=390000, alias="AUTH_PBKDF2_ITERATIONS")
    session_cookie: str = Field(default="triage_session", alias="AUTH_SESSION_COOKIE")
    public_base_url: str = Field(default="http://localhost:8080", alias="AUTH_PUBLIC_BASE_URL")

    @field_validator("public_base_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URL so paths can be appended."""
        return v.rstrip("/") if isinstance(v, str) else v


class SmtpConfig(BaseSettings):
    """Outgoing mail for magic links."""

    model_config = SettingsConfigDict(extra="ignore")

    host: str = Field(default="", alias="SMTP_HOST")
    port: int = Field(default=587, alias="SMTP_PORT")
    username: str = Field(default="", alias="SMTP_USERNAME")
    password: SecretStr = Field(default=SecretStr(""), alias="SMTP_PASSWORD")
    from_email: str = Field(default="no-reply@localhost", alias="SMTP_FROM_EMAIL")
    use_tls: bool = Field(default=True, alias="SMTP_USE_TLS")


class SuggestionConfig(BaseSettings):
    """Reply suggestion API configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    api_base_url: str = Field(
        default="https://outbox-assignment-kappa.vercel.app/api",
        alias="SUGGESTION_API_BASE_URL",
    )
    api_key: SecretStr | None = Field(default=None, alias="SUGGESTION_API_KEY")
    timeout_seconds: int = Field(default=30, alias="SUGGESTION_TIMEOUT")
    max_retries: int = Field(default=3, alias="SUGGESTION_MAX_RETRIES")
    circuit_failure_threshold: int = Field(default=5, alias="SUGGESTION_CIRCUIT_THRESHOLD")
    circuit_timeout_seconds: int = Field(default=60, alias="SUGGESTION_CIRCUIT_TIMEOUT")


class DashboardConfig(BaseSettings):
    """Dashboard list and search behaviour."""

    model_config = SettingsConfigDict(extra="ignore")

    default_page_size: int = Field(default=15, alias="DASHBOARD_DEFAULT_PAGE_SIZE")
    page_size_options: Annotated[list[int], NoDecode] = Field(
        default=[10, 15, 25, 50, 100], alias="DASHBOARD_PAGE_SIZE_OPTIONS"
    )
    max_page_size: int = Field(default=100, alias="DASHBOARD_MAX_PAGE_SIZE")
    search_debounce_ms: int = Field(default=500, alias="DASHBOARD_SEARCH_DEBOUNCE_MS")

    @field_validator("page_size_options", mode="before")
    @classmethod
    def parse_sizes(cls, v: str | list[int]) -> list[int]:
        """Parse comma-separated string or list."""
        if isinstance(v, str):
            return [int(size.strip()) for size in v.split(",") if size.strip()]
        return v


class AdminConfig(BaseSettings):
    """Admin API configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    api_key: SecretStr = Field(alias="ADMIN_API_KEY")
    port: int = Field(default=8080, alias="ADMIN_PORT")
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        alias="ADMIN_CORS_ORIGINS",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_origins(cls, v: str | list[str]) -> list[str]:
        """Parse comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v


class Settings(BaseSettings):
    """Master settings combining all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app: AppConfig = Field(default_factory=AppConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    smtp: SmtpConfig = Field(default_factory=SmtpConfig)
    suggestions: SuggestionConfig = Field(default_factory=SuggestionConfig)
    dashboard: DashboardConfig = Field(default_factory=DashboardConfig)
    admin: AdminConfig = Field(default_factory=AdminConfig)


# Global settings instance
settings = Settings()
