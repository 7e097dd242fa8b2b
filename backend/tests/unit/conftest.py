import pytest

from source_fakes import FakeEventSource
from venue_display.testing import ManualTimers


@pytest.fixture
def timers() -> ManualTimers:
    return ManualTimers()


@pytest.fixture
def source() -> FakeEventSource:
    return FakeEventSource()
