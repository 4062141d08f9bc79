"""Pytest configuration and fixtures."""

import os
from datetime import UTC, datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient

# Test settings - must happen before app import
os.environ["SECRET_KEY"] = "test-secret-key-0123456789abcdef"
os.environ["RATE_LIMITING_ENABLED"] = "false"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["DEV_MODE"] = "true"
os.environ["ADMIN_TOKEN"] = "test-admin-token"
os.environ.pop("SCENARIO_FILE", None)
os.environ.pop("LOCATION_VERIFICATION_ENABLED", None)

# Clear the settings cache to pick up the new environment variables
from questtrail.settings import get_settings  # noqa: E402

get_settings.cache_clear()

from questtrail.engine.location_codec import encode_location  # noqa: E402
from questtrail.engine.state import LocationReading  # noqa: E402
from questtrail.main import app  # noqa: E402
from questtrail.quests.catalog import get_catalog  # noqa: E402


class FakeClock:
    """Controllable clock for engine tests."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 6, 1, 12, 0, 0, tzinfo=UTC))


@pytest.fixture
def catalog():
    """The packaged scenario catalog."""
    return get_catalog()


@pytest.fixture
async def client() -> AsyncClient:
    """Create an async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def locate(clock: FakeClock):
    """Build an encoded location segment, captured at the clock's current time by default."""

    def _locate(lat: float, lon: float, captured_at: datetime | None = None) -> str:
        reading = LocationReading(lat=lat, lon=lon, captured_at=captured_at or clock.now)
        return encode_location(reading)

    return _locate
