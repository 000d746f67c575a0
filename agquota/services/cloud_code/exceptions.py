"""Exceptions raised by the Cloud Code client."""

from agquota.core.errors import QuotaError


class CloudCodeError(QuotaError):
    """Base exception for the direct Cloud Code path."""

    pass


class NoCredentialsError(CloudCodeError):
    def __init__(self, message: str = "No Cloud Code credentials available"):
        super().__init__(message)


class ProjectResolutionError(CloudCodeError):
    def __init__(self, message: str = "Failed to resolve Cloud Code project"):
        super().__init__(message)


class CloudRequestError(CloudCodeError):
    """Non-2xx response, or a transport failure (``status_code`` 0)."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Cloud Code request failed ({status_code}): {body}")


class CloudInvalidResponseError(CloudCodeError):
    def __init__(self, message: str = "Invalid Cloud Code response"):
        super().__init__(message)
