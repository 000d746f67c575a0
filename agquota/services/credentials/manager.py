"""Credential cache with on-demand OAuth refresh."""

import asyncio
from pathlib import Path

from agquota.config.constants import UNKNOWN_EMAIL
from agquota.config.core import CredentialSettings
from agquota.core.logging import get_logger, mask_secret
from agquota.services.credentials.exceptions import DatabaseNotFoundError
from agquota.services.credentials.models import Credentials
from agquota.services.credentials.oauth_client import GoogleOAuthClient
from agquota.services.credentials.storage import (
    StateDatabase,
    find_database_path,
    parse_credentials,
)


logger = get_logger(__name__)


class CredentialsManager:
    """Owns the in-memory credentials cache.

    Cached credentials are served only while their expiry is known and more
    than ``expiry_buffer_seconds`` away. Everything else re-reads the store,
    so a token rotated by Antigravity is picked up on the next call.
    """

    def __init__(
        self,
        oauth_client: GoogleOAuthClient,
        settings: CredentialSettings | None = None,
    ):
        self.oauth_client = oauth_client
        self.settings = settings or CredentialSettings()
        self._cached: Credentials | None = None
        self._lock = asyncio.Lock()

    @property
    def cached_credentials(self) -> Credentials | None:
        return self._cached

    def find_database_path(self) -> Path:
        return find_database_path(
            self.settings.app_support_dir, self.settings.database_candidates
        )

    def has_credentials(self) -> bool:
        """Cheap existence check of the store; contents are not validated."""
        try:
            self.find_database_path()
        except DatabaseNotFoundError:
            return False
        return True

    async def load_from_store(self) -> Credentials:
        """Read credentials from the first existing database.

        Raises:
            DatabaseNotFoundError: No candidate database exists
            DatabaseOpenError: The database could not be read
            CredentialsNotFoundError: No usable credentials in the database
        """
        database = StateDatabase(self.find_database_path())
        items = await database.aread_items()
        credentials = parse_credentials(items)
        logger.debug(
            "credentials_loaded",
            location=database.get_location(),
            access_token=mask_secret(credentials.access_token),
            expires_at=credentials.expires_at.isoformat()
            if credentials.expires_at
            else None,
        )
        return credentials

    async def get_credentials(self) -> Credentials:
        """Return valid credentials, refreshing when the stored token expired.

        A refresh happens only when the stored expiry is known and passed and
        a refresh token is present. Otherwise the stored credentials are
        cached and returned as they are.

        Raises:
            CredentialsError: Any failure to load or refresh credentials
        """
        async with self._lock:
            cached = self._cached
            if (
                cached is not None
                and cached.expires_at is not None
                and not cached.expires_within(self.settings.expiry_buffer_seconds)
            ):
                logger.debug("credentials_cache_hit")
                return cached

            credentials = await self.load_from_store()

            if credentials.needs_refresh:
                logger.info("credentials_expired_refreshing", email=credentials.email)
                credentials = await self._refresh(credentials)

            self._cached = credentials
            return credentials

    async def _refresh(self, stored: Credentials) -> Credentials:
        token = await self.oauth_client.refresh_access_token(stored.refresh_token)
        previous = self._cached
        email = stored.email or (previous.email if previous else "") or UNKNOWN_EMAIL
        project_id = stored.project_id or (previous.project_id if previous else None)
        return Credentials(
            access_token=token.access_token,
            refresh_token=stored.refresh_token,
            email=email,
            project_id=project_id,
            expires_at=GoogleOAuthClient.expiry_from(token),
        )

    def invalidate(self) -> None:
        """Drop the cached credentials unconditionally."""
        self._cached = None
        logger.debug("credentials_cache_invalidated")
