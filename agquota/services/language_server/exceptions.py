"""Exceptions raised while discovering or querying the language server."""

from agquota.core.errors import QuotaError


class LanguageServerError(QuotaError):
    """Base exception for the local language server path."""

    pass


class DiscoveryError(LanguageServerError):
    """The language server could not be located. Retrying may succeed."""

    pass


class ProcessNotFoundError(DiscoveryError):
    def __init__(self, message: str = "Antigravity Language Server not running"):
        super().__init__(message)


class CsrfTokenNotFoundError(DiscoveryError):
    def __init__(self, message: str = "Could not extract CSRF token"):
        super().__init__(message)


class PortNotFoundError(DiscoveryError):
    def __init__(self, message: str = "Could not find listening port"):
        super().__init__(message)


class ConnectionFailedError(LanguageServerError):
    """The RPC call failed at the transport or HTTP level."""

    def __init__(self, reason: str, status_code: int | None = None):
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Connection failed: {reason}")


class InvalidResponseError(LanguageServerError):
    def __init__(self, message: str = "Invalid response from server"):
        super().__init__(message)
