"""Shared test fixtures.

Environment is configured before any src import so config.settings picks up
a throwaway SQLite database and the in-process matching lock.
"""

import os
import tempfile
from collections.abc import Iterator

_TEST_DB_PATH = os.path.join(tempfile.gettempdir(), "test_token_market.db")
os.environ["JWT_SECRET"] = "test-secret-key-1234567890"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB_PATH}"
os.environ["MATCHING_LOCK_BACKEND"] = "local"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.main import app  # noqa: E402
from src.tm_lifecycle.application.service import set_lifecycle_scheduler  # noqa: E402
from src.tm_matching.application.service import set_matching_engine  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_singletons() -> Iterator[None]:
    """Each test gets its own matching engine and scheduler (and so its own lock)."""
    set_matching_engine(None)
    set_lifecycle_scheduler(None)
    yield
    set_matching_engine(None)
    set_lifecycle_scheduler(None)


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
