import re
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "Workspace Portal"
    app_env: str = "development"  # development, testing, production
    debug: bool = False
    enable_openapi: bool = True  # Set to False in production

    # Logging
    log_user_emails: bool = False  # Set to False in production for GDPR compliance

    # Domains
    root_domain: str = "localhost:3000"  # May carry a port for local development
    protocol: str = "http"

    # Backend API
    api_base_url: str = "http://localhost:8080"
    api_timeout_seconds: float = 10.0
    identity_provider: str = "google"

    # Session cookies (scoped to the shared parent domain)
    session_cookie_name: str = "accessToken"
    active_tenant_cookie_name: str = "currentWorkspaceId"
    session_cookie_max_age_days: int = 7
    cookie_secure: bool = False
    cookie_samesite: str = "lax"

    # Redis (optional - one-shot guards fall back to process memory without it)
    redis_url: str | None = None  # e.g., "redis://localhost:6379/0"
    redis_pool_size: int = 10
    one_shot_ttl_seconds: int = 600

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Security headers
    csp_production: str | None = "default-src 'self'; frame-ancestors 'none'"

    # Metrics
    metrics_api_key: str | None = None  # If set, /api/metrics requires this key

    @field_validator("root_domain")
    @classmethod
    def validate_root_domain(cls, v: str) -> str:
        """Root domain is a bare host (optionally with port), never a URL."""
        v = v.strip().lower()
        if not v:
            raise ValueError("ROOT_DOMAIN must not be empty")
        if "://" in v or "/" in v:
            raise ValueError(
                f"ROOT_DOMAIN '{v}' must be a host like 'example.com' or 'localhost:3000', "
                "without scheme or path"
            )
        return v

    @field_validator("protocol")
    @classmethod
    def validate_protocol(cls, v: str) -> str:
        v = v.rstrip(":/").lower()
        if v not in ("http", "https"):
            raise ValueError("PROTOCOL must be 'http' or 'https'")
        return v

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: list[str]) -> list[str]:
        """Validate CORS origins - reject wildcards when credentials are used."""
        for origin in v:
            if origin == "*":
                raise ValueError(
                    "CORS wildcard '*' is not allowed when allow_credentials=True. "
                    "Specify explicit origins instead."
                )
        return v

    @property
    def cors_origin_regex(self) -> str:
        """Any subdomain of the root domain, over the configured protocol."""
        return rf"^{self.protocol}://([a-z0-9-]+\.)*{re.escape(self.root_domain)}$"

    @property
    def session_cookie_max_age(self) -> int:
        """Cookie lifetime in seconds."""
        return self.session_cookie_max_age_days * 24 * 60 * 60


@lru_cache
def get_settings() -> Settings:
    return Settings()
