"""
⚙️ Config Store - Watch list + options, persisted after every change

File shape (JSON by default, YAML when the path ends in .yaml/.yml):

    {
      "streamers": ["alice", "Bob"],
      "options": {"record_streams": false}
    }

The store does no locking itself: callers hold AppState.lock around every
read and mutation.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from core.errors import ConfigError
from core.file_utils import atomic_write_text
from core.stream_types import normalize_login

LOGGER = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


class ConfigStore:
    """Ordered watch list (case-insensitive, display casing kept) and options"""

    def __init__(self, path: Path, streamers: Optional[List[str]] = None, record_streams: bool = False):
        self.path = Path(path)
        self.streamers: List[str] = list(streamers or [])
        self.record_streams = record_streams

    @classmethod
    def load(cls, path) -> "ConfigStore":
        """Load the config file, or create it with defaults on first run.

        Raises:
            ConfigError: file exists but is unreadable or malformed
        """
        path = Path(path)
        if not path.exists():
            LOGGER.info(f"📄 Config {path} not found, creating defaults")
            store = cls(path)
            store.save()
            return store

        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read config {path}: {e}") from e

        if not raw.strip():
            LOGGER.info(f"📄 Config {path} is empty, using defaults")
            return cls(path)

        try:
            if path.suffix.lower() in YAML_SUFFIXES:
                data = yaml.safe_load(raw)
            else:
                data = json.loads(raw)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigError(f"Malformed config {path}: {e}") from e

        store = cls(path)
        store._apply_data(data)
        LOGGER.info(
            f"✅ Config loaded: {len(store.streamers)} streamers, "
            f"record_streams={store.record_streams}"
        )
        return store

    def _apply_data(self, data: Any):
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config {self.path} must be a mapping, got {type(data).__name__}")

        streamers = data.get("streamers") or []
        if not isinstance(streamers, list):
            raise ConfigError(f"'streamers' in {self.path} must be a list")

        options = data.get("options") or {}
        if not isinstance(options, dict):
            raise ConfigError(f"'options' in {self.path} must be a mapping")

        # Duplicates in a hand-edited file collapse to the first occurrence
        self.streamers = []
        for name in streamers:
            name = str(name).strip()
            if name and not self.contains(name):
                self.streamers.append(name)
        record_streams = options.get("record_streams", False)
        if not isinstance(record_streams, bool):
            raise ConfigError(f"'options.record_streams' in {self.path} must be true or false")
        self.record_streams = record_streams

    def to_dict(self) -> Dict[str, Any]:
        return {
            "streamers": list(self.streamers),
            "options": {"record_streams": self.record_streams},
        }

    def save(self):
        """Rewrite the config file.

        Raises:
            ConfigError: write failed (the in-memory state is kept)
        """
        data = self.to_dict()
        if self.path.suffix.lower() in YAML_SUFFIXES:
            text = yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)
        else:
            text = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
        try:
            atomic_write_text(self.path, text)
        except OSError as e:
            raise ConfigError(f"Cannot write config {self.path}: {e}") from e
        LOGGER.debug(f"💾 Config saved to {self.path}")

    def contains(self, name: str) -> bool:
        key = normalize_login(name)
        return any(normalize_login(s) == key for s in self.streamers)

    def add_streamer(self, name: str) -> bool:
        """Append name unless already watched. Returns True if the list changed."""
        name = name.strip()
        if not name or self.contains(name):
            return False
        self.streamers.append(name)
        return True

    def remove_streamer(self, name: str) -> int:
        """Remove every case-insensitive match. Returns how many were removed."""
        key = normalize_login(name)
        kept = [s for s in self.streamers if normalize_login(s) != key]
        removed = len(self.streamers) - len(kept)
        self.streamers = kept
        return removed

    def toggle_record_streams(self) -> bool:
        self.record_streams = not self.record_streams
        return self.record_streams
