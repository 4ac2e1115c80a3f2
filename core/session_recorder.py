"""
💾 Session Recorder - Append-only log of completed stream sessions

The log is a pretty-printed JSON list of SessionRecord dicts. Each append
reads the whole list, adds one entry and swaps the file atomically.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from core.errors import RecorderError
from core.file_utils import atomic_write_text
from core.stream_types import SessionRecord

LOGGER = logging.getLogger(__name__)


class SessionRecorder:
    """Writes SessionRecord entries to the output file"""

    def __init__(self, path):
        self.path = Path(path)

    def read_records(self) -> List[Dict[str, Any]]:
        """
        Existing records. An absent or empty log means no prior records.

        Raises:
            RecorderError: log is unreadable or not a JSON list
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as e:
            raise RecorderError(f"Cannot read {self.path}: {e}") from e

        if not raw.strip():
            return []

        try:
            records = json.loads(raw)
        except json.JSONDecodeError as e:
            raise RecorderError(f"Malformed session log {self.path}: {e}") from e

        if not isinstance(records, list):
            raise RecorderError(f"Session log {self.path} is not a JSON list")
        return records

    def record(self, record: SessionRecord):
        """
        Append one session to the log.

        Raises:
            RecorderError: read or write failed (existing log left untouched)
        """
        records = self.read_records()
        records.append(record.to_dict())
        text = json.dumps(records, indent=2, ensure_ascii=False) + "\n"
        try:
            atomic_write_text(self.path, text)
        except OSError as e:
            raise RecorderError(f"Cannot write {self.path}: {e}") from e

        LOGGER.info(
            f"💾 Recorded session {record.streamer_name} "
            f"({record.duration_minutes} min) to {self.path}"
        )
