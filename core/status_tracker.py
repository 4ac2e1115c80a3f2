#!/usr/bin/env python3
"""
📡 Status Tracker - Live/offline transition detection

Keeps the last known LiveSession per watched account and turns each fresh
Helix result into "went live" / "went offline" transitions.

The tracker never does I/O and never locks: the poller calls apply() while
holding AppState.lock, the command processor calls evict() the same way.
"""
import logging
from datetime import datetime
from typing import Dict, Iterable, Optional

from core.stream_types import (
    LiveSession,
    SessionRecord,
    TransitionResult,
    normalize_login,
    utcnow,
)

LOGGER = logging.getLogger(__name__)


class StatusTracker:
    """
    Status table: normalized login -> LiveSession, only for accounts
    currently believed live. Absence means offline or never observed.
    """

    def __init__(self):
        self._table: Dict[str, LiveSession] = {}
        self._seeded = False

    def apply(
        self,
        live: Iterable[LiveSession],
        queried: Iterable[str],
        watchlist: Iterable[str],
        now: Optional[datetime] = None,
    ) -> TransitionResult:
        """
        Apply one successful fetch.

        Args:
            live: Sessions Helix reported as live
            queried: Names the fetch asked about (only these can go offline)
            watchlist: Watch list at apply time (membership is re-checked here,
                so an account removed while the fetch was in flight stays gone)
            now: End timestamp for sessions that went offline

        Returns:
            TransitionResult with seeded/ended sessions
        """
        now = now or utcnow()
        current = {session.key: session for session in live}
        queried_keys = {normalize_login(name) for name in queried}
        watched = list(watchlist)
        watched_keys = {normalize_login(name) for name in watched}

        result = TransitionResult(initial=not self._seeded)

        for key, previous in list(self._table.items()):
            if key not in watched_keys:
                # Dropped from the watch list, no record
                del self._table[key]
                continue
            if key in queried_keys and key not in current:
                record = SessionRecord.from_session(previous, now)
                result.went_offline.append(record)
                del self._table[key]
                LOGGER.info(
                    f"⚪ {previous.user_name}: STREAM OFFLINE "
                    f"({record.duration_minutes} min)"
                )

        for name in watched:
            key = normalize_login(name)
            session = current.get(key)
            if session is None:
                continue

            previous = self._table.get(key)
            if previous is None:
                result.went_live.append(session)
                if result.initial:
                    LOGGER.info(f"📊 {session.user_name}: already live at startup")
                else:
                    LOGGER.info(f"🔴 {session.user_name}: STREAM ONLINE - {session.title}")
            elif previous.stream_id and session.stream_id and previous.stream_id != session.stream_id:
                # Broadcast restarted between two polls
                result.went_offline.append(SessionRecord.from_session(previous, now))
                result.went_live.append(session)
                LOGGER.info(f"🔁 {session.user_name}: new broadcast detected (stream {session.stream_id})")

            self._table[key] = session

        self._seeded = True
        return result

    def evict(self, name: str) -> Optional[LiveSession]:
        """Forget an account without recording its session"""
        session = self._table.pop(normalize_login(name), None)
        if session is not None:
            LOGGER.info(f"🗑️ {session.user_name}: evicted from status table")
        return session

    def get(self, name: str) -> Optional[LiveSession]:
        return self._table.get(normalize_login(name))

    def is_live(self, name: str) -> bool:
        return normalize_login(name) in self._table

    def snapshot(self) -> Dict[str, LiveSession]:
        """Copy of the status table"""
        return dict(self._table)

    def __len__(self) -> int:
        return len(self._table)
