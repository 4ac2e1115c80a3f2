"""
Tests for core/poller.py (refresh cycle, failure handling, races with commands)
"""
import asyncio
import json
from datetime import timedelta

import pytest

from fakes import T0, FakeHelix, make_session
from core.poller import Poller


def _poller(state, helix, display, recorder, clock):
    return Poller(state, helix, display, recorder, interval=30, clock=clock)


@pytest.mark.integration
class TestRefreshCycle:
    """One refresh = snapshot, fetch, apply, render"""

    @pytest.mark.asyncio
    async def test_seed_fail_then_offline_scenario(self, state, display, recorder, clock, output_path, fetch_error):
        state.config.add_streamer("alice")
        state.config.record_streams = True
        helix = FakeHelix([
            [make_session("alice", started_at=T0)],
            fetch_error,
            [],
        ])
        poller = _poller(state, helix, display, recorder, clock)

        # Refresh 1: seeded, nothing recorded
        first = await poller.refresh()
        assert first.initial is True
        assert state.tracker.is_live("alice")
        assert not output_path.exists()

        # Refresh 2: fetch fails, table untouched
        before = state.tracker.snapshot()
        clock.advance(minutes=30)
        assert await poller.refresh() is None
        assert state.tracker.snapshot() == before

        # Refresh 3: alice gone
        clock.advance(minutes=61, seconds=40)
        third = await poller.refresh()
        assert len(third.went_offline) == 1
        assert len(state.tracker) == 0

        records = json.loads(output_path.read_text())
        assert len(records) == 1
        assert records[0]["streamer_name"] == "alice"
        assert records[0]["started_at"] == T0.isoformat()
        assert records[0]["ended_at"] == clock.now.isoformat()
        assert records[0]["duration_minutes"] == 92

    @pytest.mark.asyncio
    async def test_failed_fetch_is_displayed(self, state, display, recorder, clock, out, fetch_error):
        state.config.add_streamer("alice")
        poller = _poller(state, FakeHelix([fetch_error]), display, recorder, clock)

        await poller.refresh()

        assert "Error fetching stream data: Helix unavailable" in out.getvalue()

    @pytest.mark.asyncio
    async def test_recording_disabled_writes_nothing(self, state, display, recorder, clock, output_path):
        state.config.add_streamer("alice")
        helix = FakeHelix([[make_session("alice")], []])
        poller = _poller(state, helix, display, recorder, clock)

        await poller.refresh()
        result = await poller.refresh()

        assert len(result.went_offline) == 1
        assert len(state.tracker) == 0
        assert not output_path.exists()

    @pytest.mark.asyncio
    async def test_empty_watchlist_skips_fetch(self, state, display, recorder, clock, out):
        helix = FakeHelix()
        poller = _poller(state, helix, display, recorder, clock)

        await poller.refresh()

        assert helix.calls == []
        assert "No streamers in the list" in out.getvalue()

    @pytest.mark.asyncio
    async def test_render_shows_live_and_offline(self, state, display, recorder, clock, out):
        state.config.add_streamer("alice")
        state.config.add_streamer("Bob")
        helix = FakeHelix([[make_session("alice", started_at=T0 - timedelta(hours=1, minutes=2, seconds=3))]])
        poller = _poller(state, helix, display, recorder, clock)

        await poller.refresh()

        screen = out.getvalue()
        assert "alice: " in screen
        assert "(42 viewers) | Uptime: 01:02:03" in screen
        assert "Bob is offline." in screen
        assert screen.index("alice") < screen.index("Bob")

    @pytest.mark.asyncio
    async def test_recorder_failure_is_reported_not_raised(self, state, display, recorder, clock, out, output_path):
        output_path.write_text("not json")
        state.config.add_streamer("alice")
        state.config.record_streams = True
        helix = FakeHelix([[make_session("alice")], []])
        poller = _poller(state, helix, display, recorder, clock)

        await poller.refresh()
        result = await poller.refresh()

        assert len(result.went_offline) == 1
        assert len(state.tracker) == 0
        assert "[REC] Failed to save stream session for alice" in out.getvalue()


@pytest.mark.integration
class TestConcurrency:
    """Fetch outside the lock, apply under it"""

    @pytest.mark.asyncio
    async def test_lock_released_during_fetch(self, state, display, recorder, clock):
        state.config.add_streamer("alice")
        release = asyncio.Event()
        fetching = asyncio.Event()

        class SlowHelix:
            async def get_live_streams(self, logins):
                fetching.set()
                await release.wait()
                return [make_session("alice")]

        poller = _poller(state, SlowHelix(), display, recorder, clock)
        task = asyncio.create_task(poller.refresh())
        await fetching.wait()

        assert not state.lock.locked()
        release.set()
        await task

    @pytest.mark.asyncio
    async def test_remove_during_fetch_is_not_resurrected(self, state, display, recorder, clock, output_path):
        state.config.add_streamer("alice")
        state.config.record_streams = True
        helix = FakeHelix([[make_session("alice")]])
        poller = _poller(state, helix, display, recorder, clock)
        await poller.refresh()

        release = asyncio.Event()
        fetching = asyncio.Event()

        class SlowHelix:
            async def get_live_streams(self, logins):
                fetching.set()
                await release.wait()
                return [make_session("alice")]

        poller.helix = SlowHelix()
        task = asyncio.create_task(poller.refresh())
        await fetching.wait()

        # remove while the fetch is in flight
        async with state.lock:
            state.config.remove_streamer("alice")
            state.tracker.evict("alice")

        release.set()
        await task

        assert not state.tracker.is_live("alice")
        assert not output_path.exists()

    @pytest.mark.asyncio
    async def test_stale_refresh_result_is_dropped(self, state, display, recorder, clock):
        state.config.add_streamer("alice")
        release_old = asyncio.Event()
        calls = []

        class OrderedHelix:
            async def get_live_streams(self, logins):
                calls.append(len(calls))
                if len(calls) == 1:
                    await release_old.wait()
                    return []
                return [make_session("alice")]

        poller = _poller(state, OrderedHelix(), display, recorder, clock)
        old = asyncio.create_task(poller.refresh())
        await asyncio.sleep(0)
        new = await poller.refresh()
        assert new is not None
        assert state.tracker.is_live("alice")

        release_old.set()
        assert await old is None
        assert state.tracker.is_live("alice")

    @pytest.mark.asyncio
    async def test_trigger_runs_refresh_in_background(self, state, display, recorder, clock):
        state.config.add_streamer("alice")
        helix = FakeHelix([[make_session("alice")], [make_session("alice")]])
        poller = _poller(state, helix, display, recorder, clock)

        poller.trigger()
        poller.trigger()
        await poller.wait_triggered()

        assert len(helix.calls) == 2
        assert state.tracker.is_live("alice")

    @pytest.mark.asyncio
    async def test_loop_refreshes_immediately_and_stops(self, state, display, recorder, clock):
        state.config.add_streamer("alice")
        helix = FakeHelix([[make_session("alice")]])
        poller = Poller(state, helix, display, recorder, interval=3600, clock=clock)

        await poller.start()
        for _ in range(20):
            if helix.calls:
                break
            await asyncio.sleep(0.01)
        await poller.stop()

        assert helix.calls == [["alice"]]

    @pytest.mark.asyncio
    async def test_unexpected_error_does_not_kill_loop(self, state, display, recorder, clock):
        state.config.add_streamer("alice")

        class BrokenHelix:
            calls = 0

            async def get_live_streams(self, logins):
                BrokenHelix.calls += 1
                raise RuntimeError("boom")

        poller = Poller(state, BrokenHelix(), display, recorder, interval=0.01, clock=clock)
        await poller.start()
        for _ in range(100):
            if BrokenHelix.calls >= 2:
                break
            await asyncio.sleep(0.01)
        await poller.stop()

        assert BrokenHelix.calls >= 2
