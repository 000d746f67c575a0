"""Command line interface for agquota."""

from agquota.cli.main import app, main


__all__ = ["app", "main"]
