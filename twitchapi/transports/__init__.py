"""
twitchapi/transports/
=====================

Transport clients for the Twitch API.

Modules:
- helix_readonly : Helix client with App Token (read-only, public data)
"""

from twitchapi.transports.helix_readonly import HelixReadOnlyClient

__all__ = ["HelixReadOnlyClient"]
