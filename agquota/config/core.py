"""Section models for the agquota configuration."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from agquota.config import constants
from agquota.models.sorting import QuotaSortOrder


# === Logging Configuration ===


class LoggingSettings(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(validate_assignment=True)

    level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    format: str = Field(
        default="auto",
        description="Console output format: 'rich', 'json' or 'auto' (rich on a TTY)",
    )

    file: str | None = Field(
        default=None,
        description="Path to a JSON log file. Nothing is written when unset",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid:
            raise ValueError(f"Invalid log level: {v}. Must be one of {sorted(valid)}")
        return upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        lower = v.lower()
        if lower not in {"rich", "json", "auto"}:
            raise ValueError(f"Invalid log format: {v}")
        return lower


# === Language Server Discovery ===


class DiscoverySettings(BaseModel):
    """How the sibling language server process is recognised."""

    model_config = ConfigDict(validate_assignment=True)

    process_name: str = Field(
        default=constants.LANGUAGE_SERVER_PROCESS_NAME,
        description="Substring of the executable path of the language server",
    )

    csrf_flag: str = Field(
        default=constants.CSRF_TOKEN_FLAG,
        description="Command line flag carrying the CSRF token",
    )

    required_markers: list[str] = Field(
        default_factory=lambda: list(constants.PROCESS_MARKERS),
        description="Strings that must all appear in the process arguments",
    )


class LanguageServerSettings(BaseModel):
    """Local RPC settings."""

    model_config = ConfigDict(validate_assignment=True)

    host: str = Field(
        default=constants.LANGUAGE_SERVER_HOST,
        description="Host the language server listens on",
    )

    timeout: float = Field(
        default=5.0,
        gt=0,
        description="Timeout in seconds for the GetUserStatus call",
    )


# === Credentials ===


class CredentialSettings(BaseModel):
    """Credential store and OAuth refresh settings."""

    model_config = ConfigDict(validate_assignment=True)

    app_support_dir: Path = Field(
        default_factory=lambda: Path.home() / "Library" / "Application Support",
        description="Directory the candidate database paths are relative to",
    )

    database_candidates: list[str] = Field(
        default_factory=lambda: list(constants.DATABASE_CANDIDATES),
        description="Ordered candidate database paths, first existing wins",
    )

    expiry_buffer_seconds: float = Field(
        default=60.0,
        ge=0,
        description="Cached credentials this close to expiry are reloaded",
    )

    oauth_token_url: str = Field(default=constants.OAUTH_TOKEN_URL)

    oauth_client_id: str = Field(default=constants.OAUTH_CLIENT_ID)

    timeout: float = Field(default=15.0, gt=0)


# === Cloud Code ===


class CloudCodeSettings(BaseModel):
    """Direct Cloud Code API settings."""

    model_config = ConfigDict(validate_assignment=True)

    enabled: bool = Field(
        default=True,
        description="Try the Cloud Code API first on force refresh",
    )

    base_url: str = Field(default=constants.CLOUD_CODE_BASE_URL)

    user_agent: str = Field(default=constants.CLOUD_CODE_USER_AGENT)

    timeout: float = Field(default=15.0, gt=0)

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


# === Refresh Scheduling ===


class RefreshSettings(BaseModel):
    """Periodic refresh settings."""

    model_config = ConfigDict(validate_assignment=True)

    interval_seconds: float = Field(
        default=60.0,
        ge=5.0,
        description="Seconds between automatic refreshes",
    )

    force_on_start: bool = Field(
        default=True,
        description="Use a force refresh (Cloud Code first) for the first fetch",
    )

    sort_order: QuotaSortOrder = Field(
        default=QuotaSortOrder.USAGE_ASC,
        description="Order used to pick the primary model",
    )
