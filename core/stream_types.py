"""
📦 Stream Types - DTOs shared by the tracker, recorder and display

Data contracts between the Helix transport and the monitoring logic.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List


def normalize_login(name: str) -> str:
    """Case-insensitive identity of a Twitch account"""
    return name.strip().lower()


def parse_timestamp(value: Any) -> datetime:
    """Accept a datetime or an ISO-8601 string (Helix uses the trailing 'Z')"""
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class LiveSession:
    """Stream currently observed live on Helix"""
    user_login: str                 # Login (lower-case on Twitch)
    user_name: str                  # Display name, casing preserved
    title: str
    game_name: str                  # Category
    started_at: datetime            # Timezone-aware
    viewer_count: int = 0
    stream_id: str = ""             # Helix stream id, changes on each new broadcast

    @property
    def key(self) -> str:
        return normalize_login(self.user_login)


@dataclass(frozen=True)
class SessionRecord:
    """Completed session, written once when a live session goes offline"""
    streamer_name: str
    title: str
    game_name: str
    started_at: datetime
    ended_at: datetime
    duration_minutes: int

    @classmethod
    def from_session(cls, session: LiveSession, ended_at: datetime) -> "SessionRecord":
        return cls(
            streamer_name=session.user_name or session.user_login,
            title=session.title,
            game_name=session.game_name,
            started_at=session.started_at,
            ended_at=ended_at,
            duration_minutes=duration_minutes(session.started_at, ended_at),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "streamer_name": self.streamer_name,
            "title": self.title,
            "game_name": self.game_name,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat(),
            "duration_minutes": self.duration_minutes,
        }


@dataclass
class TransitionResult:
    """Outcome of one apply step of the status tracker"""
    went_live: List[LiveSession] = field(default_factory=list)
    went_offline: List[SessionRecord] = field(default_factory=list)
    initial: bool = False           # First successful refresh (seeding pass)


def duration_minutes(started_at: datetime, ended_at: datetime) -> int:
    """Elapsed whole minutes, rounded half-up, never negative"""
    seconds = (ended_at - started_at).total_seconds()
    if seconds <= 0:
        return 0
    return int(math.floor(seconds / 60 + 0.5))
