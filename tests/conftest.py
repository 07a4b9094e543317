"""Shared fixtures: a throwaway SQLite store and an app client wired to it."""

import pytest
from httpx import ASGITransport, AsyncClient

from country_counter.main import app
from country_counter.services.location import FIXED_LOCATIONS, FixedSampleResolver, get_resolver
from country_counter.stores.database import create_store, get_store

WARSAW = FIXED_LOCATIONS[0]


@pytest.fixture
async def store(tmp_path):
    """File-backed SQLite store, so concurrent connections share one database."""
    s = create_store(
        f"sqlite+aiosqlite:///{tmp_path / 'visits.db'}",
        timeout=10.0,
        connect_args={"timeout": 10.0},
    )
    yield s
    await s.dispose()


@pytest.fixture
def override():
    """Set FastAPI dependency overrides for one test."""

    def _override(dependency, value):
        app.dependency_overrides[dependency] = lambda: value

    yield _override
    app.dependency_overrides.clear()


@pytest.fixture
async def client(store, override):
    """Test client recording every visit in Warsaw against the tmp store."""
    override(get_store, store)
    override(get_resolver, FixedSampleResolver(locations=(WARSAW,)))
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
