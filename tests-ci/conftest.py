"""
Pytest configuration for CI tests
Provides common fixtures (no real Twitch credentials needed)
"""
import io

import pytest

from core.app_state import AppState
from core.config_store import ConfigStore
from core.display import Display
from core.errors import StreamFetchError
from core.session_recorder import SessionRecorder
from fakes import FakeClock


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "config.json"


@pytest.fixture
def output_path(tmp_path):
    return tmp_path / "output.json"


@pytest.fixture
def config(config_path):
    return ConfigStore.load(config_path)


@pytest.fixture
def state(config):
    return AppState(config)


@pytest.fixture
def out():
    return io.StringIO()


@pytest.fixture
def display(out):
    return Display(out=out, animate=False)


@pytest.fixture
def recorder(output_path):
    return SessionRecorder(output_path)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fetch_error():
    return StreamFetchError("Helix unavailable")
