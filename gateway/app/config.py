"""
Configuration module for the Admin BFF Gateway.

This module uses Pydantic Settings to load and validate environment variables
for upstream API communication, session cookie handling, route gating
and CORS settings.

Environment variables are loaded from .env file or system environment.
"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Upstream location, cookie contract, gate allowlists and server options
    are all defined here.
    """

    # =========================================================================
    # Upstream API Configuration
    # =========================================================================

    BACKEND_API_URL: HttpUrl = Field(
        default="http://localhost:18080/webadmin/api/v1",
        description="Upstream API base URL that proxied paths are appended to",
    )

    UPSTREAM_CREDENTIAL_TRANSPORT: Literal["cookie", "bearer"] = Field(
        default="cookie",
        description="How the credential is presented upstream: 'cookie' or 'bearer' (Authorization header)",
    )

    UPSTREAM_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Total timeout for a single upstream call",
        gt=0,
        le=300,
    )

    UPSTREAM_CONNECT_TIMEOUT_SECONDS: float = Field(
        default=5.0,
        description="Connect timeout for upstream calls",
        gt=0,
        le=60,
    )

    DISCONNECT_POLL_INTERVAL_SECONDS: float = Field(
        default=0.5,
        description="How often an in-flight proxy call checks whether the browser went away",
        gt=0,
        le=10,
    )

    # =========================================================================
    # Routing Configuration
    # =========================================================================

    PROXY_PREFIX: str = Field(
        default="/api",
        description="Public path prefix forwarded to the upstream API",
    )

    LOGIN_PATH: str = Field(
        default="/login",
        description="Login page path; unauthenticated requests are redirected here",
    )

    PUBLIC_PATHS: str = Field(
        default="/health",
        description="Comma-separated paths reachable without a credential",
    )

    STATIC_PATH_PREFIXES: str = Field(
        default="/static,/_next,/docs,/redoc",
        description="Comma-separated framework-reserved/static prefixes exempt from the gate",
    )

    # =========================================================================
    # Session Cookie Configuration
    # =========================================================================

    SESSION_COOKIE_NAME: str = Field(
        default="access_token",
        description="Name of the HTTP-only cookie holding the credential",
        min_length=1,
    )

    SESSION_COOKIE_SECURE: bool = Field(
        default=False,
        description="Mark credential cookies written by the gateway as Secure",
    )

    # =========================================================================
    # Gateway Server Configuration
    # =========================================================================

    GATEWAY_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the gateway server",
    )

    GATEWAY_PORT: int = Field(
        default=3000,
        description="Port to bind the gateway server",
        ge=1,
        le=65535,
    )

    ALLOWED_ORIGINS: Optional[str] = Field(
        None,
        description="Comma-separated list of allowed CORS origins (leave empty for no CORS)",
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # =========================================================================
    # Pydantic Settings Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def backend_api_url_str(self) -> str:
        """
        Get upstream base URL as string (for HTTP client usage).

        Returns:
            Upstream URL as string without trailing slash.
        """
        return str(self.BACKEND_API_URL).rstrip("/")

    @property
    def public_paths_list(self) -> List[str]:
        return _split_paths(self.PUBLIC_PATHS)

    @property
    def static_path_prefixes_list(self) -> List[str]:
        return _split_paths(self.STATIC_PATH_PREFIXES)

    @property
    def allowed_origins_list(self) -> List[str]:
        """
        Parse and return ALLOWED_ORIGINS as a list.

        Returns:
            List of allowed origin URLs, or empty list if not configured.
        """
        if not self.ALLOWED_ORIGINS:
            return []

        return [
            origin.strip()
            for origin in self.ALLOWED_ORIGINS.split(",")
            if origin.strip()
        ]

    @property
    def session_check_path(self) -> str:
        return f"{self.PROXY_PREFIX}/auth/verify"

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("PROXY_PREFIX", "LOGIN_PATH")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """
        Validate that a configured path is absolute and has no trailing slash.

        Raises:
            ValueError: If the path is relative, the bare root, or ends with '/'
        """
        v = v.strip()
        if not v.startswith("/") or v == "/":
            raise ValueError(f"Path must start with '/' and not be the root: '{v}'")
        if v.endswith("/"):
            raise ValueError(f"Path must not end with '/': '{v}'")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

        v = v.upper()
        if v not in allowed_levels:
            raise ValueError(
                f"LOG_LEVEL must be one of {allowed_levels}, got: {v}"
            )

        return v


def _split_paths(value: str) -> List[str]:
    return [
        path.strip().rstrip("/") or "/"
        for path in value.split(",")
        if path.strip()
    ]


# =============================================================================
# Settings Singleton
# =============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get or create a singleton Settings instance.

    This function is cached so that the settings are loaded only once
    during the application lifecycle.

    Returns:
        Settings instance with all configuration loaded and validated.

    Raises:
        ValidationError: If environment variables are invalid.
    """
    return Settings()


# =============================================================================
# Configuration Helpers
# =============================================================================

def validate_configuration(settings: Settings) -> dict:
    """
    Validate configuration settings and return a status report.

    Called during application startup so misconfiguration shows up in the
    logs before the first request.

    Returns:
        Dictionary with validation status and any warnings.
    """
    errors = []
    warnings = []

    if settings.LOGIN_PATH == settings.PROXY_PREFIX or settings.LOGIN_PATH.startswith(
        settings.PROXY_PREFIX + "/"
    ):
        errors.append("LOGIN_PATH must not live under PROXY_PREFIX")

    backend_url = settings.backend_api_url_str
    if "localhost" in backend_url or "127.0.0.1" in backend_url:
        warnings.append("Backend URL points to localhost (may cause issues in containers)")

    if not settings.SESSION_COOKIE_SECURE:
        warnings.append("SESSION_COOKIE_SECURE is disabled (cookies written by the gateway are not marked Secure)")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
        "proxy_prefix": settings.PROXY_PREFIX,
        "credential_transport": settings.UPSTREAM_CREDENTIAL_TRANSPORT,
    }
