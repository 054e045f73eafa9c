"""
Pytest configuration and shared fixtures.

Integration fixtures point the SQLite layer at a fresh file under tmp_path;
the ASGI client talks to the app in-process, so no server is started.
"""
import httpx
import pytest
import pytest_asyncio

from app import app
from app.db.sqlite import get_db, init_sqlite


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (SQLite on disk)")


def pytest_collection_modifyitems(config, items):
    """Mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest_asyncio.fixture
async def db(tmp_path):
    await init_sqlite(tmp_path)
    gen = get_db()
    conn = await gen.__anext__()
    yield conn
    await gen.aclose()


@pytest_asyncio.fixture
async def client(tmp_path):
    await init_sqlite(tmp_path)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def user_headers():
    return {"X-User-Id": "1"}


@pytest.fixture
def other_user_headers():
    return {"X-User-Id": "2"}
