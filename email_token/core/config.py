"""Application configuration loaded from environment variables.

Settings for the database, the email token mechanism, session cookies and
email delivery. Uses pydantic-settings for validation and .env file support.
"""

from typing import Literal

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Known insecure default password that must not be used in production
# Security: Runtime check in check_production_security() prevents use in production
_INSECURE_DEFAULT_PASSWORD = "email_token_dev_password"  # nosec B105

# Minimum length for AUTH_SECRET in production (256 bits = 32 bytes)
_MIN_AUTH_SECRET_LENGTH = 32

# Tokens below 128 bits of entropy are guessable within a realistic lifetime
MIN_TOKEN_BYTES = 16


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "email_token"
    database_user: str = "email_token_user"
    database_password: str = _INSECURE_DEFAULT_PASSWORD

    # CORS (Security)
    # Production: Set ALLOWED_ORIGINS to specific domain(s)
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    # Email token mechanism
    # Bootstrap: enable() is called once at startup when this is true
    email_token_enabled: bool = False
    # UI-capable deployment: publish the mechanism in the login service registry
    email_token_ui_enabled: bool = True
    email_token_service_id: str = "emailToken"
    email_token_service_label: str = "an Email + Token"
    email_token_bytes: int = 32
    email_token_store: Literal["database", "memory"] = "database"

    # Session (JWT cookie minted after a successful login)
    auth_secret: SecretStr = SecretStr("")
    auth_issuer: str = "email-token"
    auth_audience: str = "email-token"
    auth_cookie_name: str = "email-token.session"
    auth_cookie_secure: bool = True
    auth_cookie_samesite: Literal["lax", "strict", "none"] = "lax"
    auth_cookie_domain: str = ""
    session_ttl_minutes: int = 60

    # Email
    email_from: str = "noreply@example.com"
    resend_api_key: SecretStr = SecretStr("")

    # Frontend URL (application root after a successful login)
    frontend_url: str = "http://localhost:3000"

    # Backend URL (email links must hit the login route directly)
    backend_url: str = "http://localhost:8000"

    # Rate Limiting (Security)
    # Format: "count/period" (e.g., "10/minute", "100/hour")
    rate_limit_email_token: str = "5/hour"
    rate_limit_login: str = "10/minute"
    rate_limit_enabled: bool = True  # Disable for testing

    @property
    def database_url(self) -> str:
        """Async database URL for SQLAlchemy."""
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @model_validator(mode="after")
    def check_production_security(self) -> "Settings":
        """Validate security requirements.

        Checks:
        - Token size must give at least 128 bits of entropy (all environments)
        - SameSite=None requires the Secure flag (all environments)
        - CORS must not use wildcard origin (incompatible with credentials)
        - Database password must not be the default in production
        - AUTH_SECRET must be set and >= 32 chars in production
        """
        if self.email_token_bytes < MIN_TOKEN_BYTES:
            msg = (
                f"EMAIL_TOKEN_BYTES must be at least {MIN_TOKEN_BYTES}. "
                f"Got: {self.email_token_bytes}"
            )
            raise ValueError(msg)

        if self.auth_cookie_samesite == "none" and not self.auth_cookie_secure:
            msg = (
                "AUTH_COOKIE_SECURE must be true when AUTH_COOKIE_SAMESITE=none. "
                "Browsers reject SameSite=None cookies without the Secure flag."
            )
            raise ValueError(msg)

        # CORS wildcard with credentials is invalid (all environments)
        if "*" in self.allowed_origins:
            msg = (
                "ALLOWED_ORIGINS must not contain '*' (wildcard). "
                "Session cookies are incompatible with wildcard CORS origins."
            )
            raise ValueError(msg)

        if self.environment != "production":
            return self

        if self.database_password == _INSECURE_DEFAULT_PASSWORD:
            msg = (
                "Cannot use default database password in production. "
                "Set DATABASE_PASSWORD environment variable to a secure value."
            )
            raise ValueError(msg)

        secret = self.auth_secret.get_secret_value()
        if len(secret) < _MIN_AUTH_SECRET_LENGTH:
            msg = (
                f"AUTH_SECRET must be at least {_MIN_AUTH_SECRET_LENGTH} characters "
                "in production."
            )
            raise ValueError(msg)

        return self


settings = Settings()
