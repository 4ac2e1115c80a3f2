"""
twitchapi/
==========

Everything specific to the Twitch API.

Organisation:
- transports/ : Twitch API clients
  - helix_readonly.py : Helix with an App Token (read-only)

core/ holds the monitoring logic and only sees LiveSession objects, so the
Twitch client can be mocked out entirely in tests.
"""

from twitchapi.transports.helix_readonly import HelixReadOnlyClient

__all__ = ["HelixReadOnlyClient"]
