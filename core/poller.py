#!/usr/bin/env python3
"""
🔄 Poller - Periodic and on-demand refresh of stream status

One refresh cycle:
    1. Snapshot the watch list under the lock
    2. Query Helix with the lock released (can be slow)
    3. Re-acquire the lock: apply transitions, record ended sessions, redraw

A failed query is displayed and changes nothing: it is never read as
"every account went offline".

Manual triggers (add/remove/status) spawn fire-and-forget refresh tasks.
Overlapping refreshes are tolerated: each carries a sequence number and a
result older than one already applied is dropped.
"""
import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional, Set

from core.app_state import AppState
from core.display import Display, render_screen
from core.errors import RecorderError, StreamFetchError
from core.session_recorder import SessionRecorder
from core.stream_types import SessionRecord, TransitionResult, utcnow

LOGGER = logging.getLogger(__name__)

DEFAULT_INTERVAL = 30.0


class Poller:
    """
    Drives refresh cycles on a fixed interval and on demand.
    """

    def __init__(
        self,
        state: AppState,
        helix,
        display: Display,
        recorder: SessionRecorder,
        interval: float = DEFAULT_INTERVAL,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Args:
            state: Shared app state (config + tracker + lock)
            helix: Client exposing `async get_live_streams(logins)`
            display: Terminal output
            recorder: Session log writer
            interval: Seconds between timer-driven refreshes
            clock: Returns the current timezone-aware time
        """
        self.state = state
        self.helix = helix
        self.display = display
        self.recorder = recorder
        self.interval = interval
        self.clock = clock

        self._seq = 0
        self._applied_seq = 0
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._triggered: Set[asyncio.Task] = set()

        LOGGER.info(f"🔄 Poller initialized - interval={interval}s")

    async def start(self):
        """Start the refresh loop (first refresh fires immediately)"""
        if self._running:
            LOGGER.warning("⚠️ Poller already running")
            return
        self._running = True
        self._task = asyncio.create_task(self._monitoring_loop())
        LOGGER.info("✅ Poller started")

    async def stop(self):
        """Stop the loop and any triggered refresh still in flight"""
        self._running = False
        tasks = list(self._triggered)
        if self._task:
            tasks.append(self._task)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._task = None
        await self.display.stop_spinner()
        LOGGER.info("✅ Poller stopped")

    async def _monitoring_loop(self):
        LOGGER.info(f"🔄 Poller loop started (interval={self.interval}s)")
        while self._running:
            await self._safe_refresh()
            await asyncio.sleep(self.interval)

    async def _safe_refresh(self) -> Optional[TransitionResult]:
        try:
            return await self.refresh()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            LOGGER.error(f"❌ Refresh failed: {e}", exc_info=True)
            return None

    def trigger(self) -> asyncio.Task:
        """Request an immediate refresh (fire-and-forget)"""
        task = asyncio.create_task(self._safe_refresh())
        self._triggered.add(task)
        task.add_done_callback(self._triggered.discard)
        return task

    async def wait_triggered(self):
        """Wait for every triggered refresh currently in flight"""
        if self._triggered:
            await asyncio.gather(*list(self._triggered), return_exceptions=True)

    async def refresh(self) -> Optional[TransitionResult]:
        """
        Run one refresh cycle.

        Returns:
            TransitionResult when a fetch was applied, None when it failed
            or was superseded by a newer refresh
        """
        async with self.state.lock:
            self._seq += 1
            seq = self._seq
            watchlist = list(self.state.config.streamers)

        error: Optional[str] = None
        live = []
        if watchlist:
            try:
                live = await self.helix.get_live_streams(watchlist)
            except StreamFetchError as e:
                error = str(e)
                LOGGER.warning(f"⚠️ Stream fetch failed, keeping last known status: {e}")

        async with self.state.lock:
            if seq < self._applied_seq:
                LOGGER.debug(f"Refresh #{seq} superseded by #{self._applied_seq}, dropped")
                return None
            self._applied_seq = seq

            await self.display.stop_spinner()
            now = self.clock()

            result = None
            notices: List[str] = []
            if error is None:
                result = self.state.tracker.apply(
                    live,
                    queried=watchlist,
                    watchlist=self.state.config.streamers,
                    now=now,
                )
                if result.went_offline and self.state.config.record_streams:
                    notices = self._record(result.went_offline)

            screen = render_screen(
                self.state.config.streamers,
                self.state.tracker.snapshot(),
                now,
                error=error,
                notices=notices,
            )
            self.display.draw(screen)
            self.display.start_spinner(now)

        return result

    def _record(self, records: List[SessionRecord]) -> List[str]:
        notices = []
        for record in records:
            try:
                self.recorder.record(record)
                notices.append(
                    f"[REC] Saved stream session for {record.streamer_name} to {self.recorder.path}"
                )
            except RecorderError as e:
                LOGGER.error(f"❌ Failed to record session for {record.streamer_name}: {e}")
                notices.append(f"[REC] Failed to save stream session for {record.streamer_name}: {e}")
        return notices
