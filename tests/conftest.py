"""Shared pytest fixtures."""

from unittest.mock import MagicMock

import pytest

from evsconnector.services.host import RecordingHost


class FakeClock:
    """Virtual clock: sleep() advances now() instantly."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture()
def mock_httpx_client() -> MagicMock:
    """Mock httpx client."""
    return MagicMock()


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def recording_host() -> RecordingHost:
    return RecordingHost()
