"""
Name: Application Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Validate environment variables at startup
  - Keep the two signing secrets (bearer vs capability) apart

Collaborators:
  - api/main.py: reads settings for CORS, pool and startup validation
  - container.py: builds signing keys, storage and repositories from settings
  - identity/*: clock skew, issuer, institutional domain, capability TTL

Constraints:
  - Lives in API/infrastructure layer, NOT in domain/application
  - No business logic — pure configuration

Notes:
  - Singleton via lru_cache
  - Empty DATABASE_URL means the in-memory read model (dev/tests)
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_SECRETS = {
    "dev-secret",
    "dev-signed-url-secret",
    "changeme",
    "change-me",
    "password",
    "secret",
}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_env: Application environment (development/test/production)
        database_url: PostgreSQL connection string ("" = in-memory read model)
        jwt_secret: Secret for bearer credentials (JWT_SECRET)
        signed_url_secret: Secret for signed preview links (SIGNED_URL_SECRET)
        jwt_issuer: Issuer tag required on bearer credentials
        jwt_access_ttl_minutes: TTL of bearer credentials minted by this service
        clock_skew_seconds: Tolerance on bearer exp/iat
        capability_ttl_seconds: Lifetime of signed preview links (default: 120)
        institutional_domain: Domain that grants campus affiliation
        public_api_base: Absolute base used to build signed URLs (optional)
        storage_backend: local | s3
        storage_root: Directory that holds uploads/ (local backend)
        stream_chunk_bytes: Read size per chunk when streaming artifacts
        max_page_size: Upper bound for list endpoints (default: 100)
        default_page_size: Default page size for list endpoints (default: 20)
        metrics_require_auth: Require staff/admin bearer for /metrics
        frame_ancestors: Origins allowed to embed inline previews
    """

    # Environment
    app_env: str = "development"

    # Database
    database_url: str = ""
    db_pool_min_size: int = 1
    db_pool_max_size: int = 5
    db_statement_timeout_ms: int = 30000

    # CORS configuration
    allowed_origins: str = "http://localhost:3000"
    cors_allow_credentials: bool = False

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Security - bearer credentials
    jwt_secret: str = "dev-secret"
    jwt_issuer: str = "repo-api"
    jwt_access_ttl_minutes: int = 60 * 24 * 7
    clock_skew_seconds: int = 10

    # Security - signed preview links (capabilities)
    signed_url_secret: str = "dev-signed-url-secret"
    capability_ttl_seconds: int = 120

    # Access policy
    institutional_domain: str = "g.msuiit.edu.ph"

    # Delivery
    public_api_base: str = ""
    stream_chunk_bytes: int = 64 * 1024
    frame_ancestors: str = "'self' http://localhost:3000"

    # Storage
    storage_backend: str = "local"
    storage_root: str = "."
    s3_endpoint_url: str = ""
    s3_bucket: str = ""
    s3_access_key: str = ""
    s3_secret_key: str = ""
    s3_region: str = ""

    # Listing
    default_page_size: int = 20
    max_page_size: int = 100

    # Observability
    metrics_require_auth: bool = False

    @field_validator("institutional_domain")
    @classmethod
    def institutional_domain_normalized(cls, v: str) -> str:
        domain = (v or "").strip().lower().lstrip("@")
        if not domain or "@" in domain:
            raise ValueError("institutional_domain must be a bare domain name")
        return domain

    @field_validator("capability_ttl_seconds")
    @classmethod
    def capability_ttl_bounded(cls, v: int) -> int:
        if v <= 0 or v > 600:
            raise ValueError("capability_ttl_seconds must be between 1 and 600")
        return v

    @field_validator("clock_skew_seconds")
    @classmethod
    def clock_skew_non_negative(cls, v: int) -> int:
        if v < 0 or v > 60:
            raise ValueError("clock_skew_seconds must be between 0 and 60")
        return v

    @field_validator("storage_backend")
    @classmethod
    def storage_backend_valid(cls, v: str) -> str:
        backend = (v or "local").strip().lower()
        if backend not in {"local", "s3"}:
            raise ValueError("storage_backend must be local or s3")
        return backend

    @field_validator("stream_chunk_bytes")
    @classmethod
    def stream_chunk_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("stream_chunk_bytes must be greater than 0")
        return v

    def get_allowed_origins_list(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]

    @model_validator(mode="after")
    def validate_page_sizes(self):
        if self.max_page_size <= 0:
            raise ValueError("max_page_size must be greater than 0")
        if not 0 < self.default_page_size <= self.max_page_size:
            raise ValueError("default_page_size must be in 1..max_page_size")
        return self

    @model_validator(mode="after")
    def validate_distinct_secrets(self):
        # R: dos dominios de confianza; un secreto comprometido no forja el otro tipo.
        if (self.jwt_secret or "").strip() == (self.signed_url_secret or "").strip():
            raise ValueError("JWT_SECRET and SIGNED_URL_SECRET must be different")
        return self

    @model_validator(mode="after")
    def validate_security_requirements(self):
        if not self.is_production():
            return self

        for name, value in (
            ("JWT_SECRET", self.jwt_secret),
            ("SIGNED_URL_SECRET", self.signed_url_secret),
        ):
            secret = (value or "").strip()
            if not secret or secret in _INSECURE_SECRETS:
                raise ValueError(
                    f"{name} must be set to a strong, non-default value in production"
                )
            if len(secret) < 32:
                raise ValueError(f"{name} must be at least 32 characters in production")

        if not self.metrics_require_auth:
            raise ValueError("METRICS_REQUIRE_AUTH must be true in production")

        return self

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get singleton Settings instance.

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()
