"""Normalized quota models shared by both data sources."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from agquota.models.sorting import QuotaSortOrder, first_sorted_model


SHORT_NAME_REMOVALS = (" (Thinking)", " (Medium)", "Sonnet ", "Opus ")
SHORT_NAME_MAX_LENGTH = 12
RESET_PENDING = "Reset pending"


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp, returning None when it cannot be parsed.

    Naive values are taken as UTC.
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def format_countdown(seconds: float | None) -> str:
    """Format a countdown as ``"1h 1m"`` / ``"5m"``."""
    if seconds is None or seconds <= 0:
        return RESET_PENDING
    total = int(seconds)
    hours = total // 3600
    minutes = (total % 3600) // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


class StatusLevel(str, Enum):
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


_STATUS_EMOJI = {
    StatusLevel.GREEN: "🟢",
    StatusLevel.YELLOW: "🟡",
    StatusLevel.RED: "🔴",
}


class ModelQuota(BaseModel):
    """Remaining quota for one model.

    ``remaining_fraction`` is passed through from upstream as-is, so it may
    fall outside [0, 1].
    """

    model_config = ConfigDict(frozen=True)

    model_key: str = Field(..., min_length=1)
    display_label: str
    remaining_fraction: float = 1.0
    reset_time: datetime | None = None
    supports_images: bool = False
    is_new: bool = False

    @property
    def remaining_percentage(self) -> float:
        return self.remaining_fraction * 100

    @property
    def short_name(self) -> str:
        """Compact label, e.g. "Claude 4.5" for "Claude Sonnet 4.5 (Thinking)"."""
        name = self.display_label
        for fragment in SHORT_NAME_REMOVALS:
            name = name.replace(fragment, "")
        return name[:SHORT_NAME_MAX_LENGTH]

    def time_until_reset(self, now: datetime | None = None) -> float | None:
        if self.reset_time is None:
            return None
        now = now or datetime.now(UTC)
        return (self.reset_time - now).total_seconds()

    def formatted_reset_time(self, now: datetime | None = None) -> str:
        return format_countdown(self.time_until_reset(now))

    @property
    def status_level(self) -> StatusLevel:
        if self.remaining_fraction <= 0.1:
            return StatusLevel.RED
        if self.remaining_fraction <= 0.3:
            return StatusLevel.YELLOW
        return StatusLevel.GREEN

    @property
    def status_emoji(self) -> str:
        return _STATUS_EMOJI[self.status_level]


class AccountInfo(BaseModel):
    """User and plan metadata reported by the language server."""

    model_config = ConfigDict(frozen=True)

    user_name: str = "Unknown"
    user_email: str = ""
    tier_name: str = "Unknown"
    plan_name: str = "Free"
    prompt_credits: int = 0
    flow_credits: int = 0


def unique_quotas(quotas: list[ModelQuota]) -> list[ModelQuota]:
    """Drop entries whose model key was already seen, keeping the first."""
    seen: set[str] = set()
    result: list[ModelQuota] = []
    for quota in quotas:
        if quota.model_key in seen:
            continue
        seen.add(quota.model_key)
        result.append(quota)
    return result


class RefreshState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    CONNECTED = "connected"
    ERROR = "error"


class QuotaSnapshot(BaseModel):
    """Read-only state published by the orchestrator."""

    model_config = ConfigDict(frozen=True)

    quotas: tuple[ModelQuota, ...] = ()
    account: AccountInfo | None = None
    state: RefreshState = RefreshState.IDLE
    is_connected: bool = False
    is_loading: bool = False
    error: str | None = None
    last_update: datetime | None = None
    used_cloud_code: bool = False

    @field_validator("quotas", mode="before")
    @classmethod
    def coerce_quotas(cls, v: object) -> object:
        if isinstance(v, list):
            return tuple(v)
        return v

    @property
    def lowest_quota_model(self) -> ModelQuota | None:
        if not self.quotas:
            return None
        return min(self.quotas, key=lambda q: q.remaining_fraction)

    @property
    def status_summary(self) -> str:
        """Lowest remaining percentage across all models."""
        if not self.is_connected:
            return "?"
        lowest = self.lowest_quota_model
        if lowest is None:
            return "–"
        return f"{int(lowest.remaining_percentage)}%"

    def first_sorted_model(self, order: QuotaSortOrder) -> ModelQuota | None:
        return first_sorted_model(self.quotas, order)

    def status_summary_verbose(
        self, order: QuotaSortOrder, now: datetime | None = None
    ) -> str:
        """``"name │ NN% │ time"`` for the primary model."""
        if not self.is_connected:
            return "?"
        model = self.first_sorted_model(order)
        if model is None:
            return "–"
        percent = f"{int(model.remaining_percentage)}%"
        return f"{model.short_name} │ {percent} │ {model.formatted_reset_time(now)}"
