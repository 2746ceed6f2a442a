"""Typed view of the ``config:`` root of config.yaml.

Every section has defaults, so a missing file or section still yields a
usable development configuration.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class CORSConfig(BaseModel):
    """Origins allowed to call the API from a browser."""

    origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"]
    )
    allow_credentials: bool = True
    allow_methods: list[str] = Field(
        default=["GET", "POST", "PATCH", "DELETE", "OPTIONS"]
    )
    allow_headers: list[str] = Field(default=["*"])


class AuthProviderConfig(BaseModel):
    """External authentication provider (GoTrue-compatible REST API)."""

    url: str = Field(
        default="http://localhost:54321", description="Base URL of the auth provider"
    )
    anon_key: str = Field(
        default="", description="Public API key sent with every provider request"
    )
    oauth_providers: list[str] = Field(
        default_factory=lambda: ["google"],
        description="OAuth providers offered on the login page",
    )
    callback_url: str = Field(
        default="http://localhost:8000/auth/callback",
        description="Where the provider sends the browser after OAuth sign-in",
    )
    request_timeout: float = Field(
        default=10.0, description="Timeout in seconds for provider calls"
    )
    access_token_cookie: str = Field(
        default="dm_access_token", description="Cookie holding the access token"
    )
    refresh_token_cookie: str = Field(
        default="dm_refresh_token", description="Cookie holding the refresh token"
    )
    code_verifier_cookie: str = Field(
        default="dm_code_verifier",
        description="Short-lived cookie holding the PKCE verifier during OAuth",
    )
    return_to_cookie: str = Field(
        default="dm_return_to",
        description="Short-lived cookie holding the post-login path during OAuth",
    )
    refresh_token_max_age: int = Field(
        default=60 * 60 * 24 * 30, description="Refresh cookie lifetime in seconds"
    )
    allowed_redirect_hosts: list[str] = Field(
        default_factory=list,
        description="Allowed hosts for absolute post-login redirects (empty = relative only)",
    )


class LoggingConfig(BaseModel):
    """loguru sinks: stderr always, plus an optional rotating file."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="json", description="Log format")
    file: str | None = Field(default="logs/app.log", description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class DatabaseConfig(BaseModel):
    """Database configuration model.

    ``url`` is the ordinary connection, subject to the row policies of the
    users relation. ``elevated_url`` carries the service credential that
    bypasses them; it falls back to ``url`` when unset (e.g. SQLite in
    development, where there is no role separation).
    """

    url: str = Field(
        default="sqlite:///./dailymenu.db",
        description="Ordinary (row-restricted) database connection URL",
    )
    elevated_url: str | None = Field(
        default=None,
        description="Elevated (policy-bypassing) database connection URL",
    )
    pool_size: int = Field(default=20, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")

    @property
    def elevated_connection_string(self) -> str:
        return self.elevated_url or self.url


class AppConfig(BaseModel):
    """Process-level settings."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="localhost", description="Application host")
    port: int = Field(default=8000, description="Application port")
    cors: CORSConfig = Field(
        default_factory=CORSConfig, description="CORS configuration"
    )


class SecurityConfig(BaseModel):
    """Security configuration for session cookies."""

    secure_cookies: bool = Field(
        default=True, description="Set the Secure flag on session cookies"
    )
    cookie_samesite: Literal["lax", "strict", "none"] = Field(
        default="lax", description="SameSite cookie attribute"
    )


class ConfigData(BaseModel):
    """Everything under ``config:`` in config.yaml."""

    auth: AuthProviderConfig = Field(
        default_factory=AuthProviderConfig, description="Auth provider configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
    security: SecurityConfig = Field(
        default_factory=SecurityConfig, description="Security configuration"
    )
