"""Antigravity quota status core."""

from agquota._version import __version__


__all__ = ["__version__"]
