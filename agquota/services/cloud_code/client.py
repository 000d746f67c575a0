"""Direct client for the Cloud Code quota endpoints."""

import asyncio
from typing import Any

import httpx

from agquota.config.constants import (
    CLIENT_METADATA,
    FETCH_AVAILABLE_MODELS_PATH,
    LOAD_CODE_ASSIST_PATH,
)
from agquota.config.core import CloudCodeSettings
from agquota.core.logging import get_logger
from agquota.services.cloud_code.exceptions import (
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
from agquota.services.credentials import CredentialsError, CredentialsManager


logger = get_logger(__name__)


class CloudCodeClient:
    """Fetches per-model quotas straight from Cloud Code.

    The project id is resolved once and cached until ``invalidate``.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        credentials_manager: CredentialsManager,
        settings: CloudCodeSettings | None = None,
    ):
        self.http_client = http_client
        self.credentials_manager = credentials_manager
        self.settings = settings or CloudCodeSettings()
        self._project_id: str | None = None
        self._lock = asyncio.Lock()

    @property
    def cached_project_id(self) -> str | None:
        return self._project_id

    def is_available(self) -> bool:
        """True when a credentials database exists."""
        return self.credentials_manager.has_credentials()

    def invalidate(self) -> None:
        """Drop the cached project id and the cached credentials."""
        self._project_id = None
        self.credentials_manager.invalidate()

    async def fetch_available_models(self) -> list[CloudModelQuota]:
        """Fetch model quotas, sorted by display name.

        Raises:
            NoCredentialsError: Credentials could not be loaded or refreshed
            ProjectResolutionError: No project id could be determined
            CloudRequestError: Non-2xx response or transport failure
            CloudInvalidResponseError: Body is not a models response
        """
        try:
            credentials = await self.credentials_manager.get_credentials()
        except CredentialsError as e:
            logger.info("cloud_code_credentials_unavailable", error=str(e))
            raise NoCredentialsError() from e

        project_id = await self._resolve_project_id(
            credentials.access_token, credentials.project_id
        )

        payload = await self._post(
            FETCH_AVAILABLE_MODELS_PATH,
            credentials.access_token,
            {"project": project_id},
            extra_headers={"Accept-Encoding": "gzip"},
        )
        models = parse_models_response(payload)
        logger.debug("cloud_code_models_fetched", count=len(models))
        return models

    async def _resolve_project_id(
        self, access_token: str, stored_project_id: str | None
    ) -> str:
        async with self._lock:
            project_id = self._project_id or stored_project_id
            if project_id:
                return project_id

            payload = await self._post(
                LOAD_CODE_ASSIST_PATH,
                access_token,
                {"metadata": dict(CLIENT_METADATA)},
            )
            project_id = extract_project_id(payload)
            if not project_id:
                raise ProjectResolutionError()

            logger.debug("cloud_code_project_resolved", project_id=project_id)
            self._project_id = project_id
            return project_id

    async def _post(
        self,
        path: str,
        access_token: str,
        body: dict[str, Any],
        extra_headers: dict[str, str] | None = None,
    ) -> Any:
        url = f"{self.settings.base_url}{path}"
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
            "User-Agent": self.settings.user_agent,
        }
        if extra_headers:
            headers.update(extra_headers)

        try:
            response = await self.http_client.post(
                url,
                json=body,
                headers=headers,
                timeout=self.settings.timeout,
            )
        except httpx.TimeoutException as e:
            logger.warning("cloud_code_timeout", path=path)
            raise CloudRequestError(0, "Request timed out") from e
        except httpx.RequestError as e:
            logger.warning("cloud_code_request_error", path=path, error=str(e))
            raise CloudRequestError(0, str(e) or type(e).__name__) from e

        if not response.is_success:
            logger.warning(
                "cloud_code_http_error",
                path=path,
                status_code=response.status_code,
            )
            raise CloudRequestError(response.status_code, response.text)

        try:
            return response.json()
        except ValueError as e:
            raise CloudInvalidResponseError() from e
