import os

# settings are read at import time, so the test environment goes in first
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("ENV", "dev")

import pytest
from httpx import ASGITransport, AsyncClient
from asgi_lifespan import LifespanManager
from gamekeys.db.connection import create_tables, make_engine, make_session_factory
from gamekeys.db.dependencies import get_session
from gamekeys.main import app


@pytest.fixture
async def db_engine(tmp_path):
    # on-disk so every session gets its own connection and concurrent checkouts really race
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'gamekeys-test.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return make_session_factory(db_engine)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def ac_client(session_factory):
    async def _test_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _test_session
    async with LifespanManager(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    app.dependency_overrides.pop(get_session, None)
