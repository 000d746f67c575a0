"""HTTP client construction for the cloud and loopback clients."""

import os
from pathlib import Path
from typing import Any

import httpx

from agquota.config.constants import LANGUAGE_SERVER_HOST
from agquota.core.logging import get_logger


logger = get_logger(__name__)


def local_tls_verify(host: str) -> bool | str:
    """TLS verification setting for a language server host.

    The language server presents a self-signed certificate on the loopback
    interface, so verification is switched off for exactly ``127.0.0.1`` and
    nothing else.
    """
    if host == LANGUAGE_SERVER_HOST:
        return False
    return _get_ssl_context()


class HTTPClientFactory:
    """Factory for the httpx clients used by agquota."""

    @staticmethod
    def create_client(
        *,
        timeout: float = 15.0,
        timeout_connect: float = 5.0,
        max_keepalive_connections: int = 10,
        max_connections: int = 20,
        verify: bool | str = True,
        use_env_proxy: bool = True,
        **kwargs: Any,
    ) -> httpx.AsyncClient:
        """Create an ``httpx.AsyncClient`` with bounded timeouts.

        Args:
            timeout: Read, write and pool timeout in seconds
            timeout_connect: Connection timeout in seconds
            max_keepalive_connections: Max keep-alive connections for reuse
            max_connections: Max total concurrent connections
            verify: SSL verification (True/False or path to CA bundle)
            use_env_proxy: Route through the proxy from the environment
            **kwargs: Additional httpx.AsyncClient arguments
        """
        proxy = _get_proxy_url() if use_env_proxy else None

        if isinstance(verify, bool) and verify:
            verify = _get_ssl_context()

        client_timeout = httpx.Timeout(timeout, connect=min(timeout_connect, timeout))
        limits = httpx.Limits(
            max_keepalive_connections=max_keepalive_connections,
            max_connections=max_connections,
        )
        transport = httpx.AsyncHTTPTransport(
            limits=limits,
            verify=verify,
            proxy=proxy,
        )

        logger.debug(
            "http_client_created",
            timeout=timeout,
            timeout_connect=timeout_connect,
            verify=verify if isinstance(verify, bool) else "ca_bundle",
            has_proxy=proxy is not None,
        )

        return httpx.AsyncClient(timeout=client_timeout, transport=transport, **kwargs)

    @staticmethod
    def create_cloud_client(timeout: float = 15.0) -> httpx.AsyncClient:
        """Client for Cloud Code and Google OAuth endpoints."""
        return HTTPClientFactory.create_client(timeout=timeout)

    @staticmethod
    def create_local_client(
        host: str = LANGUAGE_SERVER_HOST, timeout: float = 5.0
    ) -> httpx.AsyncClient:
        """Client for the language server on the loopback interface.

        Environment proxies are never used for loopback traffic.
        """
        return HTTPClientFactory.create_client(
            timeout=timeout,
            timeout_connect=min(2.0, timeout),
            max_keepalive_connections=2,
            max_connections=4,
            verify=local_tls_verify(host),
            use_env_proxy=False,
        )


def _get_proxy_url() -> str | None:
    """Get proxy URL from environment variables.

    Returns:
        str or None: Proxy URL if any proxy is set
    """
    # For HTTPS requests, prioritize HTTPS_PROXY
    https_proxy = os.environ.get("HTTPS_PROXY") or os.environ.get("https_proxy")
    all_proxy = os.environ.get("ALL_PROXY")
    http_proxy = os.environ.get("HTTP_PROXY") or os.environ.get("http_proxy")

    proxy_url = https_proxy or all_proxy or http_proxy

    if proxy_url:
        logger.debug("proxy_configured", proxy_url=proxy_url)

    return proxy_url


def _get_ssl_context() -> str | bool:
    """Get SSL context configuration from environment variables.

    Returns:
        SSL verification configuration:
        - Path to CA bundle file
        - True for default verification
        - False to disable verification (insecure)
    """
    ca_bundle = os.environ.get("REQUESTS_CA_BUNDLE") or os.environ.get("SSL_CERT_FILE")

    # Check if SSL verification should be disabled (NOT RECOMMENDED)
    ssl_verify = os.environ.get("SSL_VERIFY", "true").lower()

    if ca_bundle and Path(ca_bundle).exists():
        logger.debug("ssl_ca_bundle_configured", ca_bundle_path=ca_bundle)
        return ca_bundle
    elif ssl_verify in ("false", "0", "no"):
        logger.warning(
            "ssl_verification_disabled",
            ssl_verify_value=ssl_verify,
            security_warning=True,
        )
        return False
    else:
        return True
