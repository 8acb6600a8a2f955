import pytest

from unstats_explorer.config import SDGConfig
from unstats_explorer.downloader.client import SDGClient

BASE_URL = "https://sdg.test/sdgapi"


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_client(sleeps, clock):
    def _make(**overrides):
        config = SDGConfig(base_url=BASE_URL, **overrides)
        return SDGClient(config, sleep=sleeps.append, clock=clock, show_progress=False)

    return _make


@pytest.fixture
def client(make_client):
    return make_client()


def scripted(*answers):
    """input_fn replacement that replays *answers* in order."""
    it = iter(answers)
    return lambda _prompt="": next(it)
