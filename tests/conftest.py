"""
Pytest configuration and fixtures for backend tests.

Every test gets its own SQLite database file (aiosqlite driver) under
``tmp_path``; nothing is shared between tests.
"""

from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from table_orders.core.config import Settings
from table_orders.database import create_engine_from_settings, create_session_maker, init_db
from table_orders.main import create_app
from table_orders.services.orders import OrderService


class StepClock:
    """Deterministic clock: starts at ``start`` and advances ``step`` per call."""

    def __init__(self, start: datetime = datetime(2024, 5, 1, 19, 30, 0), step: timedelta = timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value


def make_item(name: str = "Pasta", qty=2, unit=10, total=20, **extra) -> dict:
    """Dish payload as sent by the table-side menu."""
    item = {
        "plat_nom": name,
        "quantite": qty,
        "prix_unitaire": unit,
        "prix_total": total,
    }
    item.update(extra)
    return item


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a throwaway SQLite database."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path}/orders.db",
        _env_file=None,
    )


@pytest_asyncio.fixture
async def engine(settings):
    """Async engine with all tables created."""
    engine = create_engine_from_settings(settings)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    return create_session_maker(engine)


@pytest_asyncio.fixture
async def session(session_maker):
    """Session used by the service under test."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def service(session, settings, clock):
    """OrderService bound to the test session and a deterministic clock."""
    return OrderService(session, settings=settings, clock=clock)


@pytest.fixture
def client(settings):
    """
    Test client running the full application lifespan against the
    throwaway database.
    """
    with TestClient(create_app(settings)) as test_client:
        yield test_client
