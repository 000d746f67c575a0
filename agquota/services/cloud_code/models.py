"""Cloud Code response parsing."""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from agquota.config.constants import PROJECT_ID_FIELDS
from agquota.models.quota import ModelQuota, parse_timestamp
from agquota.services.cloud_code.exceptions import CloudInvalidResponseError


class CloudModelQuota(BaseModel):
    """One entry of the ``fetchAvailableModels`` ``models`` mapping."""

    model_config = ConfigDict(frozen=True)

    model_id: str
    display_name: str
    model_constant: str = ""
    remaining_fraction: float = 1.0
    reset_time: datetime | None = None
    supports_images: bool = False
    supports_thinking: bool = False

    def to_model_quota(self) -> ModelQuota:
        return ModelQuota(
            model_key=self.model_constant or self.model_id,
            display_label=self.display_name,
            remaining_fraction=self.remaining_fraction,
            reset_time=self.reset_time,
            supports_images=self.supports_images,
            is_new=False,
        )


def _string(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _bool(value: Any) -> bool:
    return value if isinstance(value, bool) else False


def _fraction(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 1.0
    return float(value)


def extract_project_id(payload: Any) -> str | None:
    """Project id from a ``loadCodeAssist`` response.

    ``cloudaicompanionProject`` is normally an object carrying the id under
    ``name``, ``project`` or ``projectId`` (checked in that order); a bare
    string is accepted too.
    """
    if not isinstance(payload, Mapping):
        return None
    project = payload.get("cloudaicompanionProject")
    if isinstance(project, str):
        return project or None
    if not isinstance(project, Mapping):
        return None
    for field in PROJECT_ID_FIELDS:
        value = _string(project.get(field))
        if value:
            return value
    return None


def parse_models_response(payload: Any) -> list[CloudModelQuota]:
    """Parse ``fetchAvailableModels``, sorted by display name.

    Raises:
        CloudInvalidResponseError: If ``models`` is missing or not an object
    """
    if not isinstance(payload, Mapping):
        raise CloudInvalidResponseError()
    models = payload.get("models")
    if not isinstance(models, Mapping):
        raise CloudInvalidResponseError()

    quotas: list[CloudModelQuota] = []
    for model_id, info in models.items():
        if not isinstance(info, Mapping):
            continue

        # Entries need a usable key: the model constant or the mapping key.
        model_constant = _string(info.get("model")) or ""
        if not model_constant and not str(model_id):
            continue

        quota_info = info.get("quotaInfo")
        if not isinstance(quota_info, Mapping):
            quota_info = {}

        quotas.append(
            CloudModelQuota(
                model_id=str(model_id),
                display_name=_string(info.get("displayName")) or str(model_id),
                model_constant=model_constant,
                remaining_fraction=_fraction(quota_info.get("remainingFraction")),
                reset_time=parse_timestamp(quota_info.get("resetTime")),
                supports_images=_bool(info.get("supportsImages")),
                supports_thinking=_bool(info.get("supportsThinking")),
            )
        )

    return sorted(quotas, key=lambda q: q.display_name)
