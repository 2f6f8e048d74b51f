"""In-process auto-sync scheduler.

Two loops run on the event loop:

- a settings poll that re-reads enablement and interval every
  ``settings_poll_seconds`` and rebuilds the repeat timer when either changed;
- the repeat timer, which fires a sync immediately and then every
  ``interval`` minutes while auto-sync is enabled.

Each tick starts a sync in its own task. A tick that fires while a sync is
still running is skipped, not queued, so at most one scheduled sync runs at a
time per scheduler. Failures are logged and never stop either loop.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from mailqueue.services.config_service import DEFAULT_AUTO_SYNC_INTERVAL

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from mailqueue.services.auto_sync_service import AutoSyncStatus

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_POLL_SECONDS = 30.0
_SHUTDOWN_TIMEOUT = 30.0


class SchedulerState(StrEnum):
    UNINITIALIZED = "uninitialized"
    IDLE = "idle"
    SYNCING = "syncing"


class AutoSyncScheduler:
    """Runs ``run_sync`` on a configurable interval with overlap prevention.

    Args:
        fetch_status: Returns the current enablement and interval (minutes).
        run_sync: Performs one sync pass; its return value is only logged.
        settings_poll_seconds: Cadence of the settings poll.
        seconds_per_minute: Length of one interval unit; tests shorten it.
    """

    def __init__(
        self,
        fetch_status: Callable[[], Awaitable[AutoSyncStatus]],
        run_sync: Callable[[], Awaitable[object]],
        *,
        settings_poll_seconds: float = DEFAULT_SETTINGS_POLL_SECONDS,
        seconds_per_minute: float = 60.0,
    ) -> None:
        if settings_poll_seconds <= 0:
            raise ValueError(f"settings_poll_seconds must be > 0, got {settings_poll_seconds}")
        self._fetch_status = fetch_status
        self._run_sync = run_sync
        self._settings_poll_seconds = settings_poll_seconds
        self._seconds_per_minute = seconds_per_minute

        self._state = SchedulerState.UNINITIALIZED
        self._enabled = False
        self._interval = DEFAULT_AUTO_SYNC_INTERVAL
        self._syncing = False
        self._timer_task: asyncio.Task[None] | None = None
        self._poll_task: asyncio.Task[None] | None = None
        self._sync_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def interval(self) -> int:
        return self._interval

    @property
    def is_syncing(self) -> bool:
        return self._syncing

    @property
    def is_running(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    async def start(self) -> None:
        """Load settings once, start the timer if enabled, and begin polling."""
        if self.is_running:
            return
        await self.reload_settings(force=True)
        self._poll_task = asyncio.create_task(self._poll_loop(), name="auto-sync-settings-poll")

    async def stop(self) -> None:
        """Stop both loops and let an in-flight sync finish."""
        for task in (self._poll_task, self._timer_task):
            if task is not None:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._poll_task = None
        self._timer_task = None

        if self._sync_task is not None and not self._sync_task.done():
            logger.info("[Auto-Sync] Waiting for in-flight sync before shutdown")
            try:
                await asyncio.wait_for(asyncio.shield(self._sync_task), _SHUTDOWN_TIMEOUT)
            except TimeoutError:
                logger.warning("[Auto-Sync] In-flight sync still running at shutdown; cancelling")
                self._sync_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._sync_task
        logger.info("[Auto-Sync] Scheduler stopped")

    async def reload_settings(self, *, force: bool = False) -> bool:
        """Re-read settings; rebuild the timer if they changed. Returns whether it did."""
        try:
            status = await self._fetch_status()
        except Exception:
            logger.exception("[Auto-Sync] Failed to load settings")
            return False

        changed = force or status.enabled != self._enabled or status.interval != self._interval
        self._enabled = status.enabled
        self._interval = max(status.interval, 1)
        if self._state is SchedulerState.UNINITIALIZED:
            self._state = SchedulerState.IDLE

        if changed:
            logger.info(
                "[Auto-Sync] Settings changed - enabled: %s, interval: %dmin",
                self._enabled,
                self._interval,
            )
            self._restart_timer()
        return changed

    def trigger(self) -> bool:
        """Start a sync unless one is already running. Returns False when skipped."""
        if self._syncing:
            logger.info("[Auto-Sync] Sync already in progress, skipping")
            return False
        self._syncing = True
        self._state = SchedulerState.SYNCING
        self._sync_task = asyncio.create_task(self._perform_sync(), name="auto-sync-run")
        return True

    async def wait_for_sync(self) -> None:
        """Wait until the current sync (if any) has finished."""
        if self._sync_task is not None:
            await asyncio.shield(self._sync_task)

    def _restart_timer(self) -> None:
        if self._timer_task is not None:
            self._timer_task.cancel()
            self._timer_task = None

        if not self._enabled:
            logger.info("[Auto-Sync] Disabled")
            return

        logger.info("[Auto-Sync] Enabled, running every %d minute(s)", self._interval)
        interval_seconds = self._interval * self._seconds_per_minute
        self._timer_task = asyncio.create_task(
            self._timer_loop(interval_seconds), name="auto-sync-timer"
        )

    async def _timer_loop(self, interval_seconds: float) -> None:
        while True:
            self.trigger()
            await asyncio.sleep(interval_seconds)

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self._settings_poll_seconds)
            await self.reload_settings()

    async def _perform_sync(self) -> None:
        logger.info("[Auto-Sync] Running sync")
        try:
            result = await self._run_sync()
            logger.info("[Auto-Sync] Complete: %s", getattr(result, "message", result))
        except Exception:
            logger.exception("[Auto-Sync] Error")
        finally:
            self._syncing = False
            self._state = SchedulerState.IDLE
