#!/usr/bin/env python3
"""Helix Read-Only Transport - live stream queries with an App Token

get_live_streams() is the only query StreamWatch needs: given account logins,
return the ones currently live. Unlike a plain "None on error" helper, any
failure raises StreamFetchError so the poller never mistakes a failed query
for "everyone went offline".
"""

import asyncio
import logging
from typing import Iterable, List, Optional

from twitchAPI.twitch import Twitch

from core.errors import StreamFetchError
from core.stream_types import LiveSession, normalize_login, parse_timestamp

LOGGER = logging.getLogger(__name__)

# Helix accepts at most 100 user_login values per request
HELIX_BATCH_SIZE = 100


class HelixReadOnlyClient:
    """
    Client Helix for public stream data (App Token)
    """

    def __init__(self, twitch: Twitch, helix_timeout: Optional[float] = None):
        """
        Args:
            twitch: Twitch API instance (authenticated with an App Token)
            helix_timeout: Optional timeout per query in seconds, None = client default
        """
        self.twitch = twitch
        self.helix_timeout = helix_timeout
        LOGGER.debug(f"HelixReadOnlyClient init (timeout={helix_timeout})")

    async def get_live_streams(self, user_logins: Iterable[str]) -> List[LiveSession]:
        """Fetch the live subset of user_logins.

        Args:
            user_logins: Account logins, any casing, duplicates allowed

        Returns:
            LiveSession for every account currently live

        Raises:
            StreamFetchError: request failed or timed out
        """
        logins: List[str] = []
        seen = set()
        for login in user_logins:
            key = normalize_login(login)
            if key and key not in seen:
                seen.add(key)
                logins.append(key)

        if not logins:
            return []

        sessions: List[LiveSession] = []
        for start in range(0, len(logins), HELIX_BATCH_SIZE):
            batch = logins[start:start + HELIX_BATCH_SIZE]
            sessions.extend(await self._fetch_batch(batch))

        LOGGER.debug(f"[HELIX] {len(sessions)}/{len(logins)} live")
        return sessions

    async def _fetch_batch(self, batch: List[str]) -> List[LiveSession]:
        LOGGER.debug(f"[HELIX] get_streams({batch})")

        async def _fetch():
            streams = []
            async for stream in self.twitch.get_streams(user_login=batch, first=HELIX_BATCH_SIZE):
                streams.append(self._to_session(stream))
            return streams

        try:
            if self.helix_timeout:
                return await asyncio.wait_for(_fetch(), timeout=self.helix_timeout)
            return await _fetch()
        except asyncio.TimeoutError as e:
            LOGGER.error(f"⏱️ Timeout get_streams after {self.helix_timeout}s")
            raise StreamFetchError(f"timed out after {self.helix_timeout}s") from e
        except Exception as e:
            LOGGER.error(f"Error get_streams({len(batch)} logins): {e}")
            raise StreamFetchError(str(e) or type(e).__name__) from e

    @staticmethod
    def _to_session(stream) -> LiveSession:
        return LiveSession(
            user_login=stream.user_login,
            user_name=stream.user_name or stream.user_login,
            title=stream.title or "",
            game_name=stream.game_name or "",
            started_at=parse_timestamp(stream.started_at),
            viewer_count=stream.viewer_count or 0,
            stream_id=str(stream.id or ""),
        )
