import os
import uuid

import pytest
from httpx import ASGITransport, AsyncClient

# IMPORTANT:
# Set env vars BEFORE importing friendping.main (pydantic settings load at import time)
os.environ["ENV"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./friendping_test.db")
os.environ.setdefault("CORS_ORIGINS", "http://localhost:5173")
os.environ["PRESENCE_SWEEP_ENABLED"] = "false"

from friendping.main import app as fastapi_app  # noqa: E402
from friendping.core.group_locks import GroupLocks  # noqa: E402
from friendping.db.session import Database  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def database(tmp_path):
    # Fresh SQLite file per test; no state leaks between tests.
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'friendping.db'}", null_pool=True)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def locks():
    return GroupLocks()


@pytest.fixture
async def db_session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
async def client(database, locks):
    fastapi_app.state.database = database
    fastapi_app.state.group_locks = locks

    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def _unique(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:10]}"


@pytest.fixture
def unique_str():
    return _unique
