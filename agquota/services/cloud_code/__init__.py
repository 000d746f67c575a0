"""Cloud Code quota client."""

from agquota.services.cloud_code.client import CloudCodeClient
from agquota.services.cloud_code.exceptions import (
    CloudCodeError,
    CloudInvalidResponseError,
    CloudRequestError,
    NoCredentialsError,
    ProjectResolutionError,
)
from agquota.services.cloud_code.models import (
    CloudModelQuota,
    extract_project_id,
    parse_models_response,
)


__all__ = [
    "CloudCodeClient",
    "CloudCodeError",
    "CloudInvalidResponseError",
    "CloudModelQuota",
    "CloudRequestError",
    "NoCredentialsError",
    "ProjectResolutionError",
    "extract_project_id",
    "parse_models_response",
]
