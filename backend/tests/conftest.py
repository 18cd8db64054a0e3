import math
import os

import pytest

# Use in-memory sqlite for tests; must be set before app.db is imported
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"

R = 6_371_000.0
BASE_MS = 1_700_000_000_000
LAT0 = 51.5
LON0 = -0.12


def north(meters: float) -> float:
    """Latitude offset (degrees) that is exactly `meters` along a meridian."""
    return math.degrees(meters / R)


class FakeClock:
    def __init__(self, now_ms: int = BASE_MS):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float) -> int:
        self.now_ms += int(seconds * 1000)
        return self.now_ms


@pytest.fixture
def clock():
    return FakeClock()
