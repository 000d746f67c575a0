"""Read-only access to the Antigravity / VS Code ``state.vscdb`` database."""

import asyncio
import json
import sqlite3
from collections.abc import Mapping, Sequence
from pathlib import Path

from pydantic import ValidationError

from agquota.config.constants import (
    AUTH_STATUS_KEY,
    DATABASE_CANDIDATES,
    EXTENSION_KEY_PREFIX,
)
from agquota.core.logging import get_logger
from agquota.services.credentials.exceptions import (
    CredentialsNotFoundError,
    DatabaseNotFoundError,
    DatabaseOpenError,
)
from agquota.services.credentials.models import AuthStatus, Credentials, parse_expiry


logger = get_logger(__name__)


def find_database_path(
    base_dir: Path, candidates: Sequence[str] = DATABASE_CANDIDATES
) -> Path:
    """Return the first candidate database under ``base_dir`` that exists.

    Raises:
        DatabaseNotFoundError: If none of the candidates exist
    """
    for candidate in candidates:
        path = base_dir / candidate
        if path.is_file():
            return path
    raise DatabaseNotFoundError()


class StateDatabase:
    """The ``ItemTable(key, value)`` store of a VS Code style application."""

    def __init__(self, path: Path):
        self.path = path

    def read_items(self) -> dict[str, str]:
        """Read every row of ``ItemTable``.

        The file is opened read-only so a running application keeps
        ownership of it; rows with a NULL key or value are skipped.

        Raises:
            DatabaseOpenError: If the file cannot be opened or queried
        """
        try:
            conn = sqlite3.connect(f"file:{self.path}?mode=ro", uri=True)
        except sqlite3.Error as e:
            raise DatabaseOpenError(str(e)) from e

        try:
            rows = conn.execute("SELECT key, value FROM ItemTable").fetchall()
        except sqlite3.Error as e:
            raise DatabaseOpenError(str(e)) from e
        finally:
            conn.close()

        items: dict[str, str] = {}
        for key, value in rows:
            if key is None or value is None:
                continue
            if isinstance(value, bytes | bytearray | memoryview):
                value = bytes(value).decode("utf-8", errors="replace")
            items[str(key)] = str(value)
        return items

    async def aread_items(self) -> dict[str, str]:
        return await asyncio.to_thread(self.read_items)

    def get_location(self) -> str:
        return str(self.path)


def _lookup(items: Mapping[str, str], *keys: str) -> str | None:
    for key in keys:
        value = items.get(key)
        if value:
            return value
    return None


def _both_conventions(name: str) -> tuple[str, str]:
    return name, f"{EXTENSION_KEY_PREFIX}{name}"


def parse_auth_status(raw: str) -> Credentials | None:
    """Credentials from the ``antigravityAuthStatus`` JSON blob.

    The blob carries the access token as ``apiKey`` and neither a refresh
    token nor an expiry; token lifetime is managed by Antigravity itself.
    """
    try:
        status = AuthStatus.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError, TypeError):
        return None
    if not status.api_key or not status.email:
        return None
    return Credentials(
        access_token=status.api_key,
        refresh_token="",
        email=status.email,
        project_id=None,
        expires_at=None,
    )


def parse_extension_keys(items: Mapping[str, str]) -> Credentials | None:
    """Credentials from discrete keys, bare or ``google.geminicodeassist.`` prefixed."""
    access_token = _lookup(items, *_both_conventions("accessToken"))
    email = _lookup(items, *_both_conventions("userEmail"), "email")
    if not access_token or not email:
        return None

    expires_raw = _lookup(items, *_both_conventions("accessTokenExpiresAt"))
    return Credentials(
        access_token=access_token,
        refresh_token=_lookup(items, *_both_conventions("refreshToken")) or "",
        email=email,
        project_id=_lookup(items, *_both_conventions("projectId")),
        expires_at=parse_expiry(expires_raw),
    )


def parse_credentials(items: Mapping[str, str]) -> Credentials:
    """Resolve credentials from the store, preferring the auth status blob.

    Raises:
        CredentialsNotFoundError: If neither layout yields a token and email
    """
    raw_status = items.get(AUTH_STATUS_KEY)
    if raw_status:
        credentials = parse_auth_status(raw_status)
        if credentials is not None:
            logger.debug("credentials_layout_resolved", layout="auth_status")
            return credentials
        logger.debug("auth_status_unusable", key=AUTH_STATUS_KEY)

    credentials = parse_extension_keys(items)
    if credentials is not None:
        logger.debug(
            "credentials_layout_resolved",
            layout="extension_keys",
            has_refresh_token=credentials.can_refresh,
            has_expiry=credentials.expires_at is not None,
        )
        return credentials

    raise CredentialsNotFoundError()
