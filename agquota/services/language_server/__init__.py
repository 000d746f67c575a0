"""Local language server discovery and RPC client."""

from agquota.services.language_server.client import LanguageServerClient
from agquota.services.language_server.exceptions import (
    ConnectionFailedError,
    CsrfTokenNotFoundError,
    DiscoveryError,
    InvalidResponseError,
    LanguageServerError,
    PortNotFoundError,
    ProcessNotFoundError,
)
from agquota.services.language_server.locator import (
    ProcessLocator,
    ServerProcess,
    extract_csrf_token,
)
from agquota.services.language_server.models import ConnectionInfo, UserStatusResponse


__all__ = [
    "ConnectionFailedError",
    "ConnectionInfo",
    "CsrfTokenNotFoundError",
    "DiscoveryError",
    "InvalidResponseError",
    "LanguageServerClient",
    "LanguageServerError",
    "PortNotFoundError",
    "ProcessLocator",
    "ProcessNotFoundError",
    "ServerProcess",
    "UserStatusResponse",
    "extract_csrf_token",
]
