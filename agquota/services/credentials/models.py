"""Data models for credentials."""

from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field

from agquota.models.quota import parse_timestamp


class Credentials(BaseModel):
    """OAuth credentials read from the Antigravity state database.

    ``expires_at`` is None when the store carries no expiry; such credentials
    are never treated as expired.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str = Field(..., min_length=1)
    refresh_token: str = ""
    email: str
    project_id: str | None = None
    expires_at: datetime | None = None

    @property
    def is_expired(self) -> bool:
        """Check if the token has a known expiry that has passed."""
        if self.expires_at is None:
            return False
        return self.expires_at <= datetime.now(UTC)

    def expires_within(self, seconds: float) -> bool:
        """True when a known expiry falls within ``seconds`` from now."""
        if self.expires_at is None:
            return False
        return self.expires_at <= datetime.now(UTC) + timedelta(seconds=seconds)

    @property
    def can_refresh(self) -> bool:
        return bool(self.refresh_token)

    @property
    def needs_refresh(self) -> bool:
        """Refresh only with a known, passed expiry and a refresh token."""
        return self.is_expired and self.can_refresh


class AuthStatus(BaseModel):
    """JSON blob stored under ``antigravityAuthStatus``."""

    name: str | None = None
    api_key: str | None = Field(default=None, alias="apiKey")
    email: str | None = None


class TokenResponse(BaseModel):
    """Google OAuth token endpoint response."""

    access_token: str
    expires_in: int
    token_type: str = "Bearer"
    scope: str | None = None


def parse_expiry(value: str | None) -> datetime | None:
    """Parse a stored expiry given as epoch seconds, epoch millis or ISO-8601.

    Numbers are checked first since ``fromisoformat`` accepts some all-digit
    strings as compact dates.
    """
    if not value:
        return None
    try:
        timestamp = float(value)
    except ValueError:
        return parse_timestamp(value)
    if timestamp > 1_000_000_000_000:
        timestamp /= 1000
    try:
        return datetime.fromtimestamp(timestamp, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None
