"""Tests for the normalized quota models."""

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from agquota.models import (
    AccountInfo,
    ModelQuota,
    QuotaSnapshot,
    QuotaSortOrder,
    RefreshState,
    StatusLevel,
)
from agquota.models.quota import format_countdown, parse_timestamp, unique_quotas


NOW = datetime(2026, 1, 16, 12, 0, tzinfo=UTC)


class TestCountdown:
    """Test reset countdown formatting."""

    def test_hours_and_minutes(self) -> None:
        quota = ModelQuota(
            model_key="m",
            display_label="Model",
            reset_time=NOW + timedelta(seconds=3700),
        )
        assert quota.formatted_reset_time(NOW) == "1h 1m"

    def test_minutes_only(self) -> None:
        assert format_countdown(5 * 60 + 59) == "5m"

    def test_past_reset_is_pending(self) -> None:
        quota = ModelQuota(
            model_key="m",
            display_label="Model",
            reset_time=NOW - timedelta(minutes=1),
        )
        assert quota.formatted_reset_time(NOW) == "Reset pending"

    def test_missing_reset_is_pending(self) -> None:
        quota = ModelQuota(model_key="m", display_label="Model")
        assert quota.time_until_reset(NOW) is None
        assert quota.formatted_reset_time(NOW) == "Reset pending"


class TestModelQuota:
    """Test ModelQuota derived values."""

    def test_empty_key_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ModelQuota(model_key="", display_label="Model")

    def test_percentage_is_fraction_times_hundred(self) -> None:
        quota = ModelQuota(model_key="m", display_label="M", remaining_fraction=0.42)
        assert quota.remaining_percentage == pytest.approx(42.0)

    def test_fraction_is_not_clamped(self) -> None:
        quota = ModelQuota(model_key="m", display_label="M", remaining_fraction=1.2)
        assert quota.remaining_percentage == pytest.approx(120.0)

    @pytest.mark.parametrize(
        ("label", "expected"),
        [
            ("Claude Sonnet 4.5 (Thinking)", "Claude 4.5"),
            ("Claude Opus 4.5", "Claude 4.5"),
            ("Gemini 3 Pro (High)", "Gemini 3 Pro"),
            ("GPT-OSS 120B (Medium)", "GPT-OSS 120B"),
        ],
    )
    def test_short_name(self, label: str, expected: str) -> None:
        quota = ModelQuota(model_key="m", display_label=label)
        assert quota.short_name == expected

    @pytest.mark.parametrize(
        ("fraction", "level"),
        [(0.05, StatusLevel.RED), (0.3, StatusLevel.YELLOW), (0.8, StatusLevel.GREEN)],
    )
    def test_status_level(self, fraction: float, level: StatusLevel) -> None:
        quota = ModelQuota(
            model_key="m", display_label="M", remaining_fraction=fraction
        )
        assert quota.status_level is level

    def test_unique_quotas_keeps_first(self) -> None:
        first = ModelQuota(model_key="k", display_label="First")
        second = ModelQuota(model_key="k", display_label="Second")
        assert unique_quotas([first, second]) == [first]


class TestParseTimestamp:
    def test_zulu_suffix(self) -> None:
        assert parse_timestamp("2026-01-17T10:00:00Z") == datetime(
            2026, 1, 17, 10, 0, tzinfo=UTC
        )

    def test_fractional_seconds(self) -> None:
        parsed = parse_timestamp("2026-01-17T10:00:00.123456Z")
        assert parsed is not None
        assert parsed.microsecond == 123456

    @pytest.mark.parametrize("value", [None, "", "tomorrow"])
    def test_unparsable(self, value: str | None) -> None:
        assert parse_timestamp(value) is None


class TestQuotaSnapshot:
    """Test the published snapshot."""

    def _snapshot(self, **kwargs: object) -> QuotaSnapshot:
        quotas = [
            ModelQuota(
                model_key="a",
                display_label="Claude Sonnet 4.5",
                remaining_fraction=0.75,
                reset_time=NOW + timedelta(seconds=3700),
            ),
            ModelQuota(model_key="b", display_label="Gemini", remaining_fraction=0.2),
        ]
        values: dict[str, object] = {
            "quotas": quotas,
            "account": AccountInfo(),
            "state": RefreshState.CONNECTED,
            "is_connected": True,
        }
        values.update(kwargs)
        return QuotaSnapshot.model_validate(values)

    def test_quotas_are_immutable(self) -> None:
        snapshot = self._snapshot()
        assert isinstance(snapshot.quotas, tuple)
        with pytest.raises(ValidationError):
            snapshot.error = "boom"  # type: ignore[misc]

    def test_status_summary(self) -> None:
        assert self._snapshot().status_summary == "20%"
        assert self._snapshot(is_connected=False).status_summary == "?"
        assert self._snapshot(quotas=[]).status_summary == "–"

    def test_status_summary_verbose(self) -> None:
        snapshot = self._snapshot()
        summary = snapshot.status_summary_verbose(QuotaSortOrder.USAGE_DESC, now=NOW)
        assert summary == "Claude 4.5 │ 75% │ 1h 1m"

    def test_account_defaults(self) -> None:
        account = AccountInfo()
        assert account.user_name == "Unknown"
        assert account.plan_name == "Free"
        assert account.prompt_credits == 0
