"""
🗂️ App State - Shared state of the poller and the command processor

One object owned by the process and passed to both tasks. Every read or
mutation of the config store or the status tracker happens under `lock`,
and nothing awaits network I/O while holding it.
"""
import asyncio
import logging
from typing import Optional

from core.config_store import ConfigStore
from core.errors import ConfigError
from core.status_tracker import StatusTracker

LOGGER = logging.getLogger(__name__)


class AppState:
    """Config store + status tracker behind a single asyncio.Lock"""

    def __init__(self, config: ConfigStore, tracker: Optional[StatusTracker] = None):
        self.config = config
        self.tracker = tracker if tracker is not None else StatusTracker()
        self.lock = asyncio.Lock()

    def persist(self) -> bool:
        """Save the config (caller holds the lock). Failures are logged, not raised."""
        try:
            self.config.save()
            return True
        except ConfigError as e:
            LOGGER.error(f"❌ Failed to persist config: {e}")
            return False
