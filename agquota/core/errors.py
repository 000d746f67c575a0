"""Root of the agquota exception hierarchy."""


class QuotaError(Exception):
    """Base exception for every failure the quota pipeline can surface.

    ``str(error)`` is the human readable message shown to consumers.
    """

    pass
