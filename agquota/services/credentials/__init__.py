"""Credential store reader and OAuth refresh."""

from agquota.services.credentials.exceptions import (
    CredentialsError,
    CredentialsNotFoundError,
    DatabaseNotFoundError,
    DatabaseOpenError,
    TokenRefreshError,
)
from agquota.services.credentials.manager import CredentialsManager
from agquota.services.credentials.models import Credentials, TokenResponse
from agquota.services.credentials.oauth_client import GoogleOAuthClient
from agquota.services.credentials.storage import (
    StateDatabase,
    find_database_path,
    parse_credentials,
)


__all__ = [
    # Manager
    "CredentialsManager",
    # Models
    "Credentials",
    "TokenResponse",
    # Storage
    "StateDatabase",
    "find_database_path",
    "parse_credentials",
    # OAuth
    "GoogleOAuthClient",
    # Exceptions
    "CredentialsError",
    "CredentialsNotFoundError",
    "DatabaseNotFoundError",
    "DatabaseOpenError",
    "TokenRefreshError",
]
