"""Custom exceptions for credential handling."""

from agquota.core.errors import QuotaError


class CredentialsError(QuotaError):
    """Base exception for all credential-related errors."""

    pass


class DatabaseNotFoundError(CredentialsError):
    """Raised when none of the candidate credential databases exists."""

    def __init__(self, message: str = "Antigravity credentials database not found"):
        super().__init__(message)


class DatabaseOpenError(CredentialsError):
    """Raised when the credential database cannot be opened or queried."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Failed to open database: {reason}")


class CredentialsNotFoundError(CredentialsError):
    """Raised when the database holds no usable credentials."""

    def __init__(self, message: str = "No stored credentials found"):
        super().__init__(message)


class TokenRefreshError(CredentialsError):
    """Raised when the OAuth refresh exchange fails."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Token refresh failed: {detail}")
