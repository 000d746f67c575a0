"""Shared test fixtures for agquota tests.

External systems are never touched: HTTP goes through ``pytest_httpx``,
credential databases are built in ``tmp_path`` and process discovery is
replaced with in-memory fakes.
"""

import sqlite3
from collections.abc import AsyncGenerator, Callable, Mapping
from pathlib import Path
from typing import Any

import httpx
import pytest

from agquota.config.core import CredentialSettings
from agquota.core.logging import setup_logging
from agquota.services.credentials import CredentialsManager, GoogleOAuthClient
from agquota.services.language_server import ConnectionInfo, LanguageServerClient
from agquota.services.language_server.exceptions import ProcessNotFoundError


DATABASE_RELATIVE_PATH = "Antigravity/User/globalStorage/state.vscdb"
TOKEN_URL = "https://oauth2.googleapis.com/token"


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom settings."""
    setup_logging(json_logs=False, log_level_name="DEBUG")


# === Credential store ===


def write_state_db(path: Path, items: Mapping[str, str | bytes | None]) -> Path:
    """Create a VS Code style ``state.vscdb`` holding ``items``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    try:
        conn.execute(
            "CREATE TABLE ItemTable (key TEXT UNIQUE ON CONFLICT REPLACE, value BLOB)"
        )
        conn.executemany(
            "INSERT INTO ItemTable (key, value) VALUES (?, ?)", list(items.items())
        )
        conn.commit()
    finally:
        conn.close()
    return path


@pytest.fixture
def app_support_dir(tmp_path: Path) -> Path:
    path = tmp_path / "Application Support"
    path.mkdir()
    return path


@pytest.fixture
def state_db(app_support_dir: Path) -> Callable[[Mapping[str, Any]], Path]:
    """Factory writing the primary Antigravity database."""

    def _create(items: Mapping[str, Any]) -> Path:
        return write_state_db(app_support_dir / DATABASE_RELATIVE_PATH, items)

    return _create


@pytest.fixture
def credential_settings(app_support_dir: Path) -> CredentialSettings:
    return CredentialSettings(app_support_dir=app_support_dir)


# === HTTP ===


@pytest.fixture
async def http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture
def oauth_client(http_client: httpx.AsyncClient) -> GoogleOAuthClient:
    return GoogleOAuthClient(http_client, token_url=TOKEN_URL)


@pytest.fixture
def credentials_manager(
    oauth_client: GoogleOAuthClient, credential_settings: CredentialSettings
) -> CredentialsManager:
    return CredentialsManager(oauth_client, credential_settings)


# === Language server ===


@pytest.fixture
def connection() -> ConnectionInfo:
    return ConnectionInfo(pid=4242, csrf_token="0f1e2d3c-aaaa-bbbb", port=53125)


class FakeLocator:
    """Stands in for ``ProcessLocator`` and counts discovery runs."""

    def __init__(self, connection: ConnectionInfo | None):
        self.connection = connection
        self.calls = 0

    def discover_connection(self) -> ConnectionInfo:
        self.calls += 1
        if self.connection is None:
            raise ProcessNotFoundError()
        return self.connection


@pytest.fixture
def fake_locator(connection: ConnectionInfo) -> FakeLocator:
    return FakeLocator(connection)


@pytest.fixture
def language_server_client(
    http_client: httpx.AsyncClient, fake_locator: FakeLocator
) -> LanguageServerClient:
    return LanguageServerClient(http_client, fake_locator)  # type: ignore[arg-type]


@pytest.fixture
def user_status_payload() -> dict[str, Any]:
    """GetUserStatus response with one usable model config and one without quota."""
    return {
        "userStatus": {
            "name": "Ada Lovelace",
            "email": "ada@example.com",
            "planStatus": {
                "planInfo": {"planName": "Pro", "teamsTier": "TEAMS_TIER_PRO"},
                "availablePromptCredits": 500,
                "availableFlowCredits": 100,
            },
            "userTier": {"id": "g1-pro-tier", "name": "Google AI Pro"},
            "cascadeModelConfigData": {
                "clientModelConfigs": [
                    {
                        "label": "Gemini 3 Pro (High)",
                        "modelOrAlias": {"model": "MODEL_PLACEHOLDER_M7"},
                        "supportsImages": True,
                        "quotaInfo": {
                            "remainingFraction": 0.42,
                            "resetTime": "2026-01-17T10:00:00Z",
                        },
                        "tagTitle": "New",
                    },
                    {
                        "label": "Claude Sonnet 4.5",
                        "modelOrAlias": {"model": "MODEL_CLAUDE_4_5_SONNET"},
                    },
                ]
            },
        }
    }


@pytest.fixture
def cloud_models_payload() -> dict[str, Any]:
    return {
        "models": {
            "gemini-3-pro-high": {
                "displayName": "Gemini 3 Pro (High)",
                "model": "MODEL_PLACEHOLDER_M7",
                "supportsImages": True,
                "supportsThinking": True,
                "quotaInfo": {
                    "remainingFraction": 0.8,
                    "resetTime": "2026-01-17T10:00:00Z",
                },
            },
            "claude-sonnet-4-5": {
                "displayName": "Claude Sonnet 4.5",
                "quotaInfo": {"remainingFraction": 0.25},
            },
            "chat_20706": "not-an-object",
        }
    }
