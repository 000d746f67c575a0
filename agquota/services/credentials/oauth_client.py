"""Google OAuth client for refreshing Antigravity access tokens."""

from datetime import UTC, datetime, timedelta

import httpx
from pydantic import ValidationError

from agquota.config.constants import OAUTH_CLIENT_ID, OAUTH_TOKEN_URL
from agquota.core.logging import get_logger
from agquota.services.credentials.exceptions import TokenRefreshError
from agquota.services.credentials.models import TokenResponse


logger = get_logger(__name__)


class GoogleOAuthClient:
    """Performs the ``refresh_token`` grant against Google's token endpoint."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token_url: str = OAUTH_TOKEN_URL,
        client_id: str = OAUTH_CLIENT_ID,
    ):
        """Initialize OAuth client.

        Args:
            http_client: HTTP client for making requests
            token_url: OAuth token endpoint
            client_id: Public client id of the installed application
        """
        self.http_client = http_client
        self.token_url = token_url
        self.client_id = client_id

    async def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        """Exchange a refresh token for a new access token.

        Args:
            refresh_token: The refresh token to use

        Returns:
            Parsed token endpoint response

        Raises:
            TokenRefreshError: If the exchange fails for any reason
        """
        data = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self.client_id,
        }

        try:
            response = await self.http_client.post(self.token_url, data=data)
        except httpx.TimeoutException as e:
            logger.warning("token_refresh_timeout", token_url=self.token_url)
            raise TokenRefreshError(f"Request timed out: {e}") from e
        except httpx.RequestError as e:
            logger.warning("token_refresh_network_error", error=str(e))
            raise TokenRefreshError(f"Network error: {e}") from e

        if response.status_code != 200:
            logger.warning(
                "token_refresh_rejected",
                status_code=response.status_code,
            )
            raise TokenRefreshError(response.text or "Unknown error")

        try:
            token = TokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise TokenRefreshError(f"Invalid token response: {e}") from e

        logger.debug("token_refresh_succeeded", expires_in=token.expires_in)
        return token

    @staticmethod
    def expiry_from(token: TokenResponse, now: datetime | None = None) -> datetime:
        now = now or datetime.now(UTC)
        return now + timedelta(seconds=token.expires_in)
