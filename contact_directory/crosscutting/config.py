"""
Name: Settings (environment-driven configuration)

Responsibilities:
  - Read every tunable from the environment (or .env) through pydantic-settings
  - Reject unusable combinations at startup: unknown backend or lookup mode,
    postgres without DATABASE_URL, weak session secrets in production
  - Default to a self-contained local setup (in-memory stores, request-mode
    origin lookup)

Collaborators:
  - api/main.py: CORS, pool sizing, lifespan
  - container.py: adapter and origin lookup selection
  - infrastructure/services/identity_provider.py: session token settings
  - application/dev_seed_admin.py: seed admin toggles

Notes:
  - One cached instance per process; tests call get_settings.cache_clear()
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_WEAK_SECRETS = frozenset({"", "dev-secret", "changeme", "change-me", "password", "secret"})


class Settings(BaseSettings):
    """
    Process configuration. Field names map to upper-case env vars.

    Attributes:
        app_env: Application environment (development/local/test/production)
        persistence_backend: memory | postgres
        database_url: PostgreSQL connection string (postgres backend only)
        allowed_origins: Comma-separated CORS origins
        jwt_secret: Secret for signing session tokens
        jwt_session_ttl_minutes: Session token TTL in minutes
        jwt_cookie_name: Cookie name for the session token
        jwt_cookie_secure: Set Secure on auth cookies
        origin_lookup_mode: request | external (where the caller IP comes from)
        origin_lookup_timeout_seconds: Timeout per external lookup provider
        trust_forwarded_headers: Honor X-Forwarded-For (behind a trusted proxy)
        min_password_length: Minimum password length for accounts
    """

    # Environment
    app_env: str = "development"

    # Persistence
    persistence_backend: str = "memory"
    database_url: str = ""
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10

    # CORS configuration
    allowed_origins: str = "http://localhost:5173"
    cors_allow_credentials: bool = True

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Security - Session tokens
    jwt_secret: str = "dev-secret"
    jwt_session_ttl_minutes: int = 60 * 12
    jwt_cookie_name: str = "session_token"
    jwt_cookie_secure: bool = False

    # Accounts
    min_password_length: int = 6

    # Network origin lookup
    origin_lookup_mode: str = "request"
    origin_lookup_timeout_seconds: float = 3.0
    trust_forwarded_headers: bool = False

    # Local admin seeding (refused outside dev/test)
    dev_seed_admin: bool = False
    dev_seed_admin_email: str = "admin@local"
    dev_seed_admin_password: str = "admin123"
    dev_seed_admin_name: str = "Administrator"

    @field_validator("persistence_backend")
    @classmethod
    def persistence_backend_valid(cls, v: str) -> str:
        backend = (v or "memory").strip().lower()
        if backend not in {"memory", "postgres"}:
            raise ValueError("persistence_backend must be memory or postgres")
        return backend

    @field_validator("origin_lookup_mode")
    @classmethod
    def origin_lookup_mode_valid(cls, v: str) -> str:
        mode = (v or "request").strip().lower()
        if mode not in {"request", "external"}:
            raise ValueError("origin_lookup_mode must be request or external")
        return mode

    @field_validator("origin_lookup_timeout_seconds")
    @classmethod
    def origin_lookup_timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("origin_lookup_timeout_seconds must be greater than 0")
        return v

    @field_validator("min_password_length")
    @classmethod
    def min_password_length_valid(cls, v: int) -> int:
        if v < 1:
            raise ValueError("min_password_length must be >= 1")
        return v

    @model_validator(mode="after")
    def validate_database_requirements(self):
        if self.persistence_backend == "postgres" and not self.database_url.strip():
            raise ValueError("DATABASE_URL is required when PERSISTENCE_BACKEND=postgres")
        return self

    @model_validator(mode="after")
    def validate_security_requirements(self):
        if not self.is_production():
            return self

        secret = (self.jwt_secret or "").strip()
        problems = []
        if secret.lower() in _WEAK_SECRETS or len(secret) < 32:
            problems.append("JWT_SECRET must be a non-default value of 32+ characters")
        if not self.jwt_cookie_secure:
            problems.append("JWT_COOKIE_SECURE must be true")
        if problems:
            raise ValueError("production settings rejected: " + "; ".join(problems))
        return self

    def get_allowed_origins_list(self) -> list[str]:
        return [o for o in (part.strip() for part in self.allowed_origins.split(",")) if o]

    @property
    def env_name(self) -> str:
        return self.app_env.strip().lower()

    def is_production(self) -> bool:
        return self.env_name == "production"

    def is_test(self) -> bool:
        return self.env_name in {"test", "testing", "ci"}

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Cached Settings; raises ValidationError on bad environment."""
    return Settings()
