"""Client for the GetUserStatus RPC of the local language server."""

import asyncio

import httpx
from pydantic import ValidationError

from agquota.config.constants import (
    CONNECT_PROTOCOL_VERSION,
    CSRF_TOKEN_HEADER,
    GET_USER_STATUS_PATH,
    LANGUAGE_SERVER_HOST,
)
from agquota.core.logging import get_logger
from agquota.services.language_server.exceptions import (
    ConnectionFailedError,
    InvalidResponseError,
)
from agquota.services.language_server.locator import ProcessLocator
from agquota.services.language_server.models import ConnectionInfo, UserStatusResponse


logger = get_logger(__name__)


class LanguageServerClient:
    """Queries the language server, caching the discovered connection.

    The connection is kept until ``invalidate_connection`` is called; the
    orchestrator does that after any failed call, so the next call runs
    discovery again and picks up a restarted server's new port and token.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        locator: ProcessLocator,
        host: str = LANGUAGE_SERVER_HOST,
    ):
        """Initialize the client.

        Args:
            http_client: Loopback client, see ``HTTPClientFactory.create_local_client``
            locator: Process locator used on a cache miss
            host: Host requests are sent to; must match the one ``http_client``
                was built for
        """
        self.http_client = http_client
        self.locator = locator
        self.host = host
        self._connection: ConnectionInfo | None = None
        self._lock = asyncio.Lock()

    @property
    def cached_connection(self) -> ConnectionInfo | None:
        return self._connection

    async def get_connection(self) -> ConnectionInfo:
        """Return the cached connection or run discovery off the event loop."""
        async with self._lock:
            if self._connection is not None:
                return self._connection
            connection = await asyncio.to_thread(self.locator.discover_connection)
            if connection.host != self.host:
                connection = connection.model_copy(update={"host": self.host})
            self._connection = connection
            return connection

    def invalidate_connection(self) -> None:
        """Force discovery on the next request."""
        if self._connection is not None:
            logger.debug("language_server_connection_invalidated")
        self._connection = None

    async def fetch(self) -> UserStatusResponse:
        """Discover (if needed) and query the user status."""
        connection = await self.get_connection()
        return await self.fetch_user_status(connection)

    async def fetch_user_status(self, connection: ConnectionInfo) -> UserStatusResponse:
        """POST an empty JSON body to GetUserStatus.

        Raises:
            ConnectionFailedError: Non-2xx status, timeout or transport error
            InvalidResponseError: Body is not a valid GetUserStatus response
        """
        url = f"{connection.base_url}{GET_USER_STATUS_PATH}"
        headers = {
            "Content-Type": "application/json",
            "Connect-Protocol-Version": CONNECT_PROTOCOL_VERSION,
            CSRF_TOKEN_HEADER: connection.csrf_token,
        }

        try:
            response = await self.http_client.post(url, headers=headers, content=b"{}")
        except httpx.TimeoutException as e:
            logger.warning("language_server_timeout", port=connection.port)
            raise ConnectionFailedError("Request timed out") from e
        except httpx.RequestError as e:
            logger.warning(
                "language_server_request_error", port=connection.port, error=str(e)
            )
            raise ConnectionFailedError(str(e) or type(e).__name__) from e

        if not response.is_success:
            logger.warning(
                "language_server_http_error",
                port=connection.port,
                status_code=response.status_code,
            )
            raise ConnectionFailedError(
                f"HTTP {response.status_code}", status_code=response.status_code
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise InvalidResponseError() from e

        if not isinstance(payload, dict):
            raise InvalidResponseError()

        try:
            return UserStatusResponse.model_validate(payload)
        except ValidationError as e:
            logger.debug("language_server_response_invalid", error=str(e))
            raise InvalidResponseError() from e
