"""
Test doubles shared by the CI tests (Helix client, clock, sessions)
"""
from datetime import datetime, timedelta, timezone

from core.stream_types import LiveSession

T0 = datetime(2025, 11, 1, 18, 0, 0, tzinfo=timezone.utc)


def make_session(login, started_at=T0, title="Test Stream Title", game_name="Science & Technology",
                 viewer_count=42, stream_id="1001", user_name=None):
    """LiveSession as HelixReadOnlyClient would return it"""
    return LiveSession(
        user_login=login.lower(),
        user_name=user_name or login,
        title=title,
        game_name=game_name,
        started_at=started_at,
        viewer_count=viewer_count,
        stream_id=stream_id,
    )


class FakeHelix:
    """
    Scripted Helix client: each call pops the next response.
    A response is a list of LiveSession or an exception instance.
    """

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []

    async def get_live_streams(self, logins):
        self.calls.append(list(logins))
        response = self.responses.pop(0) if self.responses else []
        if isinstance(response, Exception):
            raise response
        return list(response)


class FakeClock:
    """Controllable clock for the poller"""

    def __init__(self, now=T0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
