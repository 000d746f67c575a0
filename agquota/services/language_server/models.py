"""Connection info and GetUserStatus response models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from agquota.config.constants import LANGUAGE_SERVER_HOST
from agquota.models.quota import (
    AccountInfo,
    ModelQuota,
    parse_timestamp,
    unique_quotas,
)


class ConnectionInfo(BaseModel):
    """One discovered route to the language server, replaced as a whole."""

    model_config = ConfigDict(frozen=True)

    pid: int = Field(..., gt=0)
    csrf_token: str = Field(..., min_length=1)
    port: int = Field(..., ge=1, le=65535)
    host: str = LANGUAGE_SERVER_HOST

    @property
    def base_url(self) -> str:
        return f"https://{self.host}:{self.port}"


# GetUserStatus responses are camelCase JSON; every field is optional upstream.


class _Response(BaseModel):
    model_config = ConfigDict(extra="ignore")


class QuotaInfo(_Response):
    remaining_fraction: float | None = Field(default=None, alias="remainingFraction")
    reset_time: str | None = Field(default=None, alias="resetTime")


class ModelOrAlias(_Response):
    model: str | None = None


class ClientModelConfig(_Response):
    label: str | None = None
    model_or_alias: ModelOrAlias | None = Field(default=None, alias="modelOrAlias")
    supports_images: bool | None = Field(default=None, alias="supportsImages")
    is_recommended: bool | None = Field(default=None, alias="isRecommended")
    quota_info: QuotaInfo | None = Field(default=None, alias="quotaInfo")
    tag_title: str | None = Field(default=None, alias="tagTitle")

    def to_model_quota(self) -> ModelQuota | None:
        """None for entries without a label or quota block."""
        if not self.label or self.quota_info is None:
            return None
        model = self.model_or_alias.model if self.model_or_alias else None
        remaining = self.quota_info.remaining_fraction
        return ModelQuota(
            model_key=model or self.label,
            display_label=self.label,
            remaining_fraction=1.0 if remaining is None else remaining,
            reset_time=parse_timestamp(self.quota_info.reset_time),
            supports_images=bool(self.supports_images),
            is_new=self.tag_title == "New",
        )


class CascadeModelConfigData(_Response):
    # Entries are validated one by one so a malformed entry is dropped alone.
    client_model_configs: list[Any] | None = Field(
        default=None, alias="clientModelConfigs"
    )

    def parsed_configs(self) -> list[ClientModelConfig]:
        parsed: list[ClientModelConfig] = []
        for raw in self.client_model_configs or []:
            try:
                parsed.append(ClientModelConfig.model_validate(raw))
            except ValidationError:
                continue
        return parsed


class PlanInfo(_Response):
    plan_name: str | None = Field(default=None, alias="planName")
    teams_tier: str | None = Field(default=None, alias="teamsTier")


class PlanStatus(_Response):
    plan_info: PlanInfo | None = Field(default=None, alias="planInfo")
    available_prompt_credits: int | None = Field(
        default=None, alias="availablePromptCredits"
    )
    available_flow_credits: int | None = Field(
        default=None, alias="availableFlowCredits"
    )


class UserTier(_Response):
    id: str | None = None
    name: str | None = None
    description: str | None = None


class UserStatus(_Response):
    name: str | None = None
    email: str | None = None
    plan_status: PlanStatus | None = Field(default=None, alias="planStatus")
    cascade_model_config_data: CascadeModelConfigData | None = Field(
        default=None, alias="cascadeModelConfigData"
    )
    user_tier: UserTier | None = Field(default=None, alias="userTier")


class UserStatusResponse(_Response):
    """Root of the GetUserStatus response."""

    user_status: UserStatus | None = Field(default=None, alias="userStatus")

    def to_model_quotas(self) -> list[ModelQuota]:
        """Display-ready quotas sorted by label, one per model key."""
        status = self.user_status
        data = status.cascade_model_config_data if status else None
        configs = data.parsed_configs() if data else None
        if not configs:
            return []

        quotas = [q for q in (c.to_model_quota() for c in configs) if q is not None]
        quotas.sort(key=lambda q: q.display_label)
        return unique_quotas(quotas)

    def to_account_info(self) -> AccountInfo:
        status = self.user_status or UserStatus()
        plan_status = status.plan_status or PlanStatus()
        plan_name = plan_status.plan_info.plan_name if plan_status.plan_info else None
        tier_name = status.user_tier.name if status.user_tier else None

        return AccountInfo(
            user_name=status.name or "Unknown",
            user_email=status.email or "",
            tier_name=tier_name or plan_name or "Unknown",
            plan_name=plan_name or "Free",
            prompt_credits=plan_status.available_prompt_credits or 0,
            flow_credits=plan_status.available_flow_credits or 0,
        )
