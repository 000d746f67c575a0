"""Tests for GetUserStatus response mapping."""

from datetime import UTC, datetime
from typing import Any

import pytest
from pydantic import ValidationError

from agquota.services.language_server import ConnectionInfo, UserStatusResponse


class TestToModelQuotas:
    """Test mapping of clientModelConfigs to ModelQuota."""

    def test_config_without_quota_info_dropped(
        self, user_status_payload: dict[str, Any]
    ) -> None:
        quotas = UserStatusResponse.model_validate(
            user_status_payload
        ).to_model_quotas()

        assert len(quotas) == 1
        quota = quotas[0]
        assert quota.model_key == "MODEL_PLACEHOLDER_M7"
        assert quota.display_label == "Gemini 3 Pro (High)"
        assert quota.remaining_fraction == 0.42
        assert quota.remaining_percentage == pytest.approx(0.42 * 100)
        assert quota.reset_time == datetime(2026, 1, 17, 10, tzinfo=UTC)
        assert quota.supports_images
        assert quota.is_new

    def test_defaults_and_label_as_key(self) -> None:
        payload = {
            "userStatus": {
                "cascadeModelConfigData": {
                    "clientModelConfigs": [
                        {"label": "Zeta", "quotaInfo": {"resetTime": "soon"}},
                        {"label": "Alpha", "quotaInfo": {"remainingFraction": 0}},
                    ]
                }
            }
        }

        quotas = UserStatusResponse.model_validate(payload).to_model_quotas()

        assert [q.display_label for q in quotas] == ["Alpha", "Zeta"]
        alpha, zeta = quotas
        assert alpha.remaining_fraction == 0
        assert zeta.model_key == "Zeta"
        assert zeta.remaining_fraction == 1.0
        assert zeta.reset_time is None
        assert not zeta.supports_images
        assert not zeta.is_new

    def test_entries_without_label_dropped(self) -> None:
        payload = {
            "userStatus": {
                "cascadeModelConfigData": {
                    "clientModelConfigs": [
                        {"quotaInfo": {"remainingFraction": 0.5}},
                        {"label": "", "quotaInfo": {"remainingFraction": 0.5}},
                    ]
                }
            }
        }
        assert UserStatusResponse.model_validate(payload).to_model_quotas() == []

    def test_malformed_entry_dropped_alone(self) -> None:
        payload = {
            "userStatus": {
                "cascadeModelConfigData": {
                    "clientModelConfigs": [
                        "garbage",
                        {"label": "Bad", "quotaInfo": {"remainingFraction": "x"}},
                        {"label": "Good", "quotaInfo": {"remainingFraction": 0.5}},
                    ]
                }
            }
        }

        quotas = UserStatusResponse.model_validate(payload).to_model_quotas()

        assert [q.display_label for q in quotas] == ["Good"]

    def test_duplicate_keys_collapsed(self) -> None:
        payload = {
            "userStatus": {
                "cascadeModelConfigData": {
                    "clientModelConfigs": [
                        {
                            "label": "B",
                            "modelOrAlias": {"model": "M"},
                            "quotaInfo": {"remainingFraction": 0.2},
                        },
                        {
                            "label": "A",
                            "modelOrAlias": {"model": "M"},
                            "quotaInfo": {"remainingFraction": 0.9},
                        },
                    ]
                }
            }
        }

        quotas = UserStatusResponse.model_validate(payload).to_model_quotas()

        assert len(quotas) == 1
        assert quotas[0].display_label == "A"

    @pytest.mark.parametrize(
        "payload",
        [{}, {"userStatus": {}}, {"userStatus": {"cascadeModelConfigData": {}}}],
    )
    def test_missing_sections(self, payload: dict[str, Any]) -> None:
        assert UserStatusResponse.model_validate(payload).to_model_quotas() == []


class TestToAccountInfo:
    def test_full_account(self, user_status_payload: dict[str, Any]) -> None:
        account = UserStatusResponse.model_validate(
            user_status_payload
        ).to_account_info()

        assert account.user_name == "Ada Lovelace"
        assert account.user_email == "ada@example.com"
        assert account.tier_name == "Google AI Pro"
        assert account.plan_name == "Pro"
        assert account.prompt_credits == 500
        assert account.flow_credits == 100

    def test_tier_falls_back_to_plan_name(self) -> None:
        payload = {"userStatus": {"planStatus": {"planInfo": {"planName": "Teams"}}}}
        account = UserStatusResponse.model_validate(payload).to_account_info()
        assert account.tier_name == "Teams"

    def test_empty_response(self) -> None:
        account = UserStatusResponse.model_validate({}).to_account_info()
        assert account.user_name == "Unknown"
        assert account.tier_name == "Unknown"
        assert account.plan_name == "Free"


class TestConnectionInfo:
    def test_base_url(self) -> None:
        info = ConnectionInfo(pid=1, csrf_token="abc", port=53125)
        assert info.base_url == "https://127.0.0.1:53125"

    @pytest.mark.parametrize(
        "values",
        [
            {"pid": 0, "csrf_token": "abc", "port": 1},
            {"pid": 1, "csrf_token": "", "port": 1},
            {"pid": 1, "csrf_token": "abc", "port": 0},
            {"pid": 1, "csrf_token": "abc", "port": 70000},
        ],
    )
    def test_invalid(self, values: dict[str, Any]) -> None:
        with pytest.raises(ValidationError):
            ConnectionInfo(**values)
