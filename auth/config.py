"""Authentication configuration."""

from pydantic import BaseModel, Field


class AuthConfig(BaseModel):
    """
    Authentication configuration.

    Durations are in hours; session expiry slides forward on every request.
    """

    # Session settings
    session_expiry_hours: int = Field(
        default=168,  # 7 days
        description="Session lifetime in hours, renewed on activity",
        ge=1,
        le=2160,
    )
    session_cookie_name: str = Field(
        default="session_token",
        description="Cookie carrying the opaque session token",
        min_length=1,
    )
    session_cookie_secure: bool = Field(
        default=True,
        description="Only send the session cookie over HTTPS",
    )

    # Credential hashing
    bcrypt_rounds: int = Field(
        default=12,
        description="bcrypt cost factor for new password hashes",
        ge=4,
        le=16,
    )

    # Application
    app_base_url: str = Field(
        default="http://localhost:8000",
        description="Base URL for confirmation links",
    )
    app_name: str = Field(
        default="User Management",
        description="Application name for emails",
    )
