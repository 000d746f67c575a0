import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from agquota.core.logging import get_logger

from .core import (
    CloudCodeSettings,
    CredentialSettings,
    DiscoverySettings,
    LanguageServerSettings,
    LoggingSettings,
    RefreshSettings,
)


__all__ = ["Settings", "ConfigurationError", "find_toml_config_file"]

ENV_PREFIX = "AGQUOTA_"


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


def get_config_dir() -> Path:
    """XDG config directory for agquota."""
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / "agquota"


def find_toml_config_file() -> Path | None:
    """Find the first existing config file.

    Search order:
    1. .agquota.toml in the current directory
    2. config.toml in XDG_CONFIG_HOME/agquota/
    """
    candidates = [
        Path.cwd() / ".agquota.toml",
        get_config_dir() / "config.toml",
    ]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


class Settings(BaseSettings):
    """
    Configuration settings for agquota.

    Values come from environment variables (``AGQUOTA_`` prefix, ``__`` as the
    nested delimiter), a ``.env`` file and an optional TOML file. Environment
    variables take precedence over TOML values.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    discovery: DiscoverySettings = Field(
        default_factory=DiscoverySettings,
        description="Language server process discovery",
    )

    language_server: LanguageServerSettings = Field(
        default_factory=LanguageServerSettings,
        description="Local RPC settings",
    )

    credentials: CredentialSettings = Field(
        default_factory=CredentialSettings,
        description="Credential store and OAuth refresh settings",
    )

    cloud: CloudCodeSettings = Field(
        default_factory=CloudCodeSettings,
        description="Direct Cloud Code API settings",
    )

    refresh: RefreshSettings = Field(
        default_factory=RefreshSettings,
        description="Periodic refresh settings",
    )

    @classmethod
    def load_toml_config(cls, toml_path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file."""
        try:
            with toml_path.open("rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read TOML config file {toml_path}: {e}"
            ) from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax in {toml_path}: {e}") from e

    @classmethod
    def from_config(
        cls,
        config_path: Path | str | None = None,
        **overrides: Any,
    ) -> "Settings":
        """Create Settings from environment, TOML file and explicit overrides.

        Args:
            config_path: TOML file to load. Searched for when omitted
            **overrides: Nested section values applied last, e.g.
                ``logging={"level": "DEBUG"}``
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)

        if config_path is None:
            config_path = find_toml_config_file()

        config_data: dict[str, Any] = {}
        if config_path is not None:
            if not config_path.exists():
                raise ConfigurationError(f"Config file not found: {config_path}")
            config_data = cls.load_toml_config(config_path)
            get_logger(__name__).debug("config_file_loaded", path=str(config_path))

        try:
            settings = cls()
            for key, value in config_data.items():
                if not hasattr(settings, key):
                    continue
                section = getattr(settings, key)
                if isinstance(section, BaseModel) and isinstance(value, dict):
                    for nested_key, nested_value in value.items():
                        env_key = f"{ENV_PREFIX}{key}__{nested_key}".upper()
                        if _env_lookup(env_key) is None:
                            setattr(section, nested_key, nested_value)

            for key, value in overrides.items():
                section = getattr(settings, key)
                if isinstance(section, BaseModel) and isinstance(value, dict):
                    for nested_key, nested_value in value.items():
                        if nested_value is not None:
                            setattr(section, nested_key, nested_value)
                else:
                    setattr(settings, key, value)
        except ValueError as e:
            source = f" ({config_path})" if config_path else ""
            raise ConfigurationError(f"Invalid configuration{source}: {e}") from e

        return settings


def _env_lookup(name: str) -> str | None:
    for key, value in os.environ.items():
        if key.upper() == name:
            return value
    return None
