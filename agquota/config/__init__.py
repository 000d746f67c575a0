"""Configuration for agquota."""

from .settings import ConfigurationError, Settings


__all__ = ["Settings", "ConfigurationError"]
