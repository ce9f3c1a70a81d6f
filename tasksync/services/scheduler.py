"""Sync scheduler.

Every trigger (periodic poll, debounced local edit, manual "sync now") ends in
``trigger_sync``. Only one run is in flight at a time; triggers that arrive
while a run is active are dropped, not queued.
"""

import asyncio
import logging

from tasksync.models.sync import SyncDirection, SyncResult, SyncState
from tasksync.services.reconciler import Reconciler
from tasksync.services.store import TaskStore
from tasksync.timestamps import now_iso

logger = logging.getLogger(__name__)


class SyncScheduler:
    def __init__(
        self,
        store: TaskStore,
        reconciler: Reconciler,
        *,
        interval_seconds: float = 30.0,
        debounce_seconds: float = 1.0,
    ):
        self._store = store
        self._reconciler = reconciler
        self.interval_seconds = interval_seconds
        self.debounce_seconds = debounce_seconds
        self.state = SyncState()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._poll_task: asyncio.Task | None = None
        self._debounce_handle: asyncio.TimerHandle | None = None
        self._background: set[asyncio.Task] = set()

    def _update_state(self, **changes) -> None:
        self.state = self.state.model_copy(update=changes)

    # --- Lifecycle ---

    def initialize(self) -> None:
        """Bind to the running event loop and start polling."""
        self._loop = asyncio.get_running_loop()
        if self._store.is_connected():
            self._update_state(direction=SyncDirection.BIDIRECTIONAL)
        self.start_polling()

    def start_polling(self) -> None:
        if self._poll_task is not None:
            return
        self._poll_task = asyncio.create_task(self._poll_loop(), name="sync-poll")

    def stop_polling(self) -> None:
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None

    async def shutdown(self) -> None:
        self._cancel_debounce()
        task = self._poll_task
        self.stop_polling()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._loop = None

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.trigger_sync()

    # --- Triggers ---

    def _cancel_debounce(self) -> None:
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None

    def debounced_sync(self) -> None:
        """Sync once things have been quiet for ``debounce_seconds``.

        Must be called from the event loop thread.
        """
        loop = self._loop or asyncio.get_running_loop()
        self._cancel_debounce()
        self._debounce_handle = loop.call_later(self.debounce_seconds, self._fire_debounced)

    def _fire_debounced(self) -> None:
        self._debounce_handle = None
        task = asyncio.ensure_future(self.trigger_sync())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def request_sync(self) -> None:
        """Thread-safe debounced trigger for request handlers."""
        if self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self.debounced_sync)

    async def trigger_immediate_sync(
        self, direction: SyncDirection = SyncDirection.BIDIRECTIONAL,
    ) -> SyncResult | None:
        self._cancel_debounce()
        return await self.trigger_sync(direction)

    async def trigger_sync(
        self, direction: SyncDirection = SyncDirection.BIDIRECTIONAL,
    ) -> SyncResult | None:
        """Run one reconciliation unless not connected or already syncing.

        Returns the run's result, or None if the run was skipped or crashed.
        """
        if not self._store.is_connected():
            logger.debug("Sync skipped: Notion not configured")
            return None
        if self.state.is_syncing:
            logger.debug("Sync skipped: already syncing")
            return None

        logger.info("Starting Notion sync (%s)", direction.value)
        self._update_state(is_syncing=True, direction=direction)
        result = None
        try:
            result = await asyncio.to_thread(self._reconciler.reconcile, direction)
        except Exception:
            logger.exception("Sync run crashed")
            self._update_state(error_count=self.state.error_count + 1)
        else:
            self._update_state(last_sync_time=now_iso(), error_count=result.failed)
        finally:
            self._update_state(is_syncing=False)
        return result
