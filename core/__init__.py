"""
Core - Monitoring logic (state, transitions, refresh loop, REPL)
"""

from core.app_state import AppState
from core.config_store import ConfigStore
from core.errors import ConfigError, RecorderError, StreamFetchError, StreamWatchError
from core.status_tracker import StatusTracker
from core.stream_types import LiveSession, SessionRecord, TransitionResult

__all__ = [
    "AppState",
    "ConfigStore",
    "ConfigError",
    "RecorderError",
    "StreamFetchError",
    "StreamWatchError",
    "StatusTracker",
    "LiveSession",
    "SessionRecord",
    "TransitionResult",
]
