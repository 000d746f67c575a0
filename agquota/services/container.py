"""Dependency injection container for the quota services.

Services are built lazily from the settings on first access and shared for
the container's lifetime; ``close`` releases the HTTP clients and stops the
orchestrator.
"""

import inspect
from collections.abc import Callable
from typing import Any, TypeVar, cast

from agquota.config.settings import Settings
from agquota.core.http_client import HTTPClientFactory
from agquota.core.logging import get_logger
from agquota.services.cloud_code import CloudCodeClient
from agquota.services.credentials import CredentialsManager, GoogleOAuthClient
from agquota.services.language_server import LanguageServerClient, ProcessLocator
from agquota.services.orchestrator import QuotaOrchestrator


logger = get_logger(__name__)

T = TypeVar("T")

# Keys for the two HTTP clients, which share a type.
LOCAL_HTTP_CLIENT = "local_http_client"
CLOUD_HTTP_CLIENT = "cloud_http_client"


class ServiceContainer:
    """Dependency injection container for all services."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._services: dict[object, Any] = {}
        self._factories: dict[object, Callable[[], Any]] = {}

        self.register_service(Settings, self.settings)
        self._register_factories()

    def _register_factories(self) -> None:
        settings = self.settings

        self.register_service(
            LOCAL_HTTP_CLIENT,
            factory=lambda: HTTPClientFactory.create_local_client(
                host=settings.language_server.host,
                timeout=settings.language_server.timeout,
            ),
        )
        self.register_service(
            CLOUD_HTTP_CLIENT,
            factory=lambda: HTTPClientFactory.create_cloud_client(
                timeout=max(settings.cloud.timeout, settings.credentials.timeout)
            ),
        )
        self.register_service(
            ProcessLocator, factory=lambda: ProcessLocator(settings.discovery)
        )
        self.register_service(
            LanguageServerClient,
            factory=lambda: LanguageServerClient(
                self.get_service(LOCAL_HTTP_CLIENT),
                self.get_process_locator(),
                host=settings.language_server.host,
            ),
        )
        self.register_service(
            GoogleOAuthClient,
            factory=lambda: GoogleOAuthClient(
                self.get_service(CLOUD_HTTP_CLIENT),
                token_url=settings.credentials.oauth_token_url,
                client_id=settings.credentials.oauth_client_id,
            ),
        )
        self.register_service(
            CredentialsManager,
            factory=lambda: CredentialsManager(
                self.get_service(GoogleOAuthClient), settings.credentials
            ),
        )
        self.register_service(
            CloudCodeClient,
            factory=lambda: CloudCodeClient(
                self.get_service(CLOUD_HTTP_CLIENT),
                self.get_credentials_manager(),
                settings.cloud,
            ),
        )
        self.register_service(QuotaOrchestrator, factory=self._create_orchestrator)

    def _create_orchestrator(self) -> QuotaOrchestrator:
        cloud_client = (
            self.get_cloud_client() if self.settings.cloud.enabled else None
        )
        return QuotaOrchestrator(
            self.get_language_server_client(),
            cloud_client,
            self.settings.refresh,
        )

    def register_service(
        self,
        service_type: object,
        instance: Any | None = None,
        factory: Callable[[], Any] | None = None,
    ) -> None:
        """Register a service instance or factory."""
        if instance is not None:
            self._services[service_type] = instance
        elif factory is not None:
            self._factories[service_type] = factory
        else:
            raise ValueError("Either instance or factory must be provided")

    def get_service(self, service_type: object) -> Any:
        """Get a service instance by key, building it on first access."""
        if service_type not in self._services:
            if service_type in self._factories:
                self._services[service_type] = self._factories[service_type]()
            else:
                type_name = getattr(service_type, "__name__", str(service_type))
                raise ValueError(f"Service {type_name} not registered")
        return self._services[service_type]

    def _get(self, service_type: type[T]) -> T:
        return cast(T, self.get_service(service_type))

    def get_process_locator(self) -> ProcessLocator:
        return self._get(ProcessLocator)

    def get_language_server_client(self) -> LanguageServerClient:
        return self._get(LanguageServerClient)

    def get_credentials_manager(self) -> CredentialsManager:
        return self._get(CredentialsManager)

    def get_cloud_client(self) -> CloudCodeClient:
        return self._get(CloudCodeClient)

    def get_orchestrator(self) -> QuotaOrchestrator:
        return self._get(QuotaOrchestrator)

    async def close(self) -> None:
        """Close all managed resources, the orchestrator first."""
        services = sorted(
            self._services.values(),
            key=lambda s: not isinstance(s, QuotaOrchestrator),
        )
        for service in services:
            if isinstance(service, Settings):
                continue

            try:
                if hasattr(service, "aclose") and callable(service.aclose):
                    maybe_coro = service.aclose()
                    if inspect.isawaitable(maybe_coro):
                        await maybe_coro
            except Exception as e:
                logger.error(
                    "service_close_failed",
                    service=type(service).__name__,
                    error=str(e),
                    exc_info=e,
                )
        self._services.clear()
        logger.debug("service_container_closed")

    async def __aenter__(self) -> "ServiceContainer":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
