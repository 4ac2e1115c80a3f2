"""
Exceptions raised by StreamWatch components
"""


class StreamWatchError(RuntimeError):
    """Base class for all StreamWatch errors"""


class ConfigError(StreamWatchError):
    """Config file could not be read, parsed or written"""


class RecorderError(StreamWatchError):
    """Session log could not be read or written"""


class StreamFetchError(StreamWatchError):
    """Helix query for live streams failed"""
