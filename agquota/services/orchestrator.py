"""Reconciles the local language server and Cloud Code into one snapshot."""

import asyncio
from collections.abc import Callable
from contextlib import suppress
from datetime import UTC, datetime

from pydantic import ValidationError

from agquota.config.core import RefreshSettings
from agquota.core.errors import QuotaError
from agquota.core.logging import get_logger
from agquota.models.quota import (
    AccountInfo,
    ModelQuota,
    QuotaSnapshot,
    RefreshState,
    unique_quotas,
)
from agquota.models.sorting import QuotaSortOrder, first_sorted_model
from agquota.services.cloud_code import CloudCodeClient
from agquota.services.language_server import LanguageServerClient


logger = get_logger(__name__)

SnapshotListener = Callable[[QuotaSnapshot], None]


class QuotaOrchestrator:
    """Owns the published quota state.

    ``refresh`` reads the local language server only. ``force_refresh`` asks
    Cloud Code first and falls back to ``refresh`` when that fails or returns
    nothing. Every state change happens under one lock, so a trigger that
    arrives during a refresh queues behind it instead of cancelling it.
    """

    def __init__(
        self,
        language_server_client: LanguageServerClient,
        cloud_client: CloudCodeClient | None = None,
        settings: RefreshSettings | None = None,
    ):
        self.language_server_client = language_server_client
        self.cloud_client = cloud_client
        self.settings = settings or RefreshSettings()

        self._quotas: tuple[ModelQuota, ...] = ()
        self._account: AccountInfo | None = None
        self._state = RefreshState.IDLE
        self._error: str | None = None
        self._last_update: datetime | None = None
        self._used_cloud_code = False
        # Bumped by every completed refresh; stale background results are dropped.
        self._generation = 0

        self._lock = asyncio.Lock()
        self._listeners: list[SnapshotListener] = []
        self._auto_refresh_task: asyncio.Task[None] | None = None
        self._background_tasks: set[asyncio.Task[None]] = set()

    # === State ===

    @property
    def snapshot(self) -> QuotaSnapshot:
        return QuotaSnapshot(
            quotas=self._quotas,
            account=self._account,
            state=self._state,
            is_connected=self._state == RefreshState.CONNECTED,
            is_loading=self._state == RefreshState.LOADING,
            error=self._error,
            last_update=self._last_update,
            used_cloud_code=self._used_cloud_code,
        )

    @property
    def is_auto_refreshing(self) -> bool:
        task = self._auto_refresh_task
        return task is not None and not task.done()

    def first_sorted_model(
        self, order: QuotaSortOrder | None = None
    ) -> ModelQuota | None:
        """Primary model for ``order`` (defaults to the configured sort order)."""
        return first_sorted_model(self._quotas, order or self.settings.sort_order)

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Call ``listener`` with every new snapshot.

        Returns:
            A callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            with suppress(ValueError):
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(
                    "snapshot_listener_failed",
                    listener=getattr(listener, "__qualname__", repr(listener)),
                    error=str(e),
                    exc_info=True,
                )

    def _set_loading(self) -> None:
        self._state = RefreshState.LOADING
        self._error = None
        self._notify()

    def _set_failed(self, error: Exception) -> None:
        self._state = RefreshState.ERROR
        self._error = str(error) or type(error).__name__
        self.language_server_client.invalidate_connection()

    # === Refresh ===

    async def refresh(self) -> QuotaSnapshot:
        """Refresh from the local language server."""
        async with self._lock:
            await self._refresh_from_language_server()
            return self.snapshot

    async def force_refresh(self) -> QuotaSnapshot:
        """Refresh from Cloud Code, falling back to the language server."""
        async with self._lock:
            self._set_loading()

            quotas = await self._fetch_cloud_quotas()
            if quotas:
                self._quotas = tuple(quotas)
                self._state = RefreshState.CONNECTED
                self._error = None
                self._last_update = datetime.now(UTC)
                self._used_cloud_code = True
                self._generation += 1
                logger.info(
                    "quotas_refreshed", source="cloud_code", models=len(quotas)
                )
                self._notify()
                self._schedule_account_refresh()
                return self.snapshot

            self.language_server_client.invalidate_connection()
            await self._refresh_from_language_server()
            return self.snapshot

    async def _fetch_cloud_quotas(self) -> list[ModelQuota]:
        if self.cloud_client is None:
            return []
        try:
            models = await self.cloud_client.fetch_available_models()
        except QuotaError as e:
            logger.info("cloud_code_fallback", reason=str(e))
            return []
        except Exception as e:
            logger.error("cloud_code_unexpected_error", error=str(e), exc_info=True)
            return []

        quotas: list[ModelQuota] = []
        for model in models:
            try:
                quotas.append(model.to_model_quota())
            except ValidationError as e:
                logger.warning(
                    "cloud_code_model_skipped", model_id=model.model_id, error=str(e)
                )

        if not quotas:
            logger.info("cloud_code_fallback", reason="no models")
        return unique_quotas(quotas)

    async def _refresh_from_language_server(self) -> None:
        self._set_loading()
        try:
            response = await self.language_server_client.fetch()
            quotas = response.to_model_quotas()
            account = response.to_account_info()
        except QuotaError as e:
            logger.warning("quota_refresh_failed", error=str(e))
            self._set_failed(e)
        except Exception as e:
            logger.error(
                "quota_refresh_unexpected_error", error=str(e), exc_info=True
            )
            self._set_failed(e)
        else:
            self._quotas = tuple(quotas)
            self._account = account
            self._state = RefreshState.CONNECTED
            self._error = None
            self._last_update = datetime.now(UTC)
            self._used_cloud_code = False
            logger.info(
                "quotas_refreshed", source="language_server", models=len(quotas)
            )
        self._generation += 1
        self._notify()

    # === Background account info ===

    def _schedule_account_refresh(self) -> None:
        task = asyncio.create_task(self._fetch_account_info(self._generation))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _fetch_account_info(self, generation: int) -> None:
        """Update account info only; quotas from Cloud Code are left alone.

        The result is dropped if another refresh completed in the meantime or
        the snapshot is no longer connected.
        """
        try:
            response = await self.language_server_client.fetch()
        except Exception as e:
            logger.debug("account_info_refresh_failed", error=str(e))
            return

        async with self._lock:
            if (
                generation != self._generation
                or self._state != RefreshState.CONNECTED
            ):
                logger.debug("account_info_refresh_stale")
                return
            self._account = response.to_account_info()
            self._notify()

    async def wait_for_account_refresh(self) -> None:
        """Wait for pending background account refreshes to finish."""
        pending = [t for t in self._background_tasks if not t.done()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    # === Scheduling ===

    def start_auto_refresh(self, interval: float | None = None) -> None:
        """Force refresh now, then ``refresh`` every ``interval`` seconds.

        Restarts the loop if one is already running.
        """
        self._cancel_auto_refresh()
        interval = interval if interval is not None else self.settings.interval_seconds
        self._auto_refresh_task = asyncio.create_task(
            self._auto_refresh_loop(interval)
        )
        logger.debug("auto_refresh_started", interval=interval)

    async def _auto_refresh_loop(self, interval: float) -> None:
        try:
            if self.settings.force_on_start:
                await self.force_refresh()
            else:
                await self.refresh()
        except asyncio.CancelledError:
            return
        except Exception as e:
            logger.error("auto_refresh_error", error=str(e), exc_info=True)

        while True:
            try:
                await asyncio.sleep(interval)
                await self.refresh()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("auto_refresh_error", error=str(e), exc_info=True)

    def _cancel_auto_refresh(self) -> asyncio.Task[None] | None:
        task = self._auto_refresh_task
        self._auto_refresh_task = None
        if task is not None and not task.done():
            task.cancel()
        return task

    async def stop_auto_refresh(self) -> None:
        """Stop the loop and any pending account refresh."""
        tasks = [t for t in self._background_tasks if not t.done()]
        auto_task = self._cancel_auto_refresh()
        if auto_task is not None:
            tasks.append(auto_task)

        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task

        if auto_task is not None:
            logger.debug("auto_refresh_stopped")

    async def aclose(self) -> None:
        await self.stop_auto_refresh()
        self._listeners.clear()
