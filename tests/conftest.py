"""
Test bootstrap.

The environment is set before anything from ``app`` is imported, since
configuration is read at import time.
"""
import os

os.environ["APP_ENV"] = "test"
os.environ["MAIL_DELIVERY_METHOD"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")
# Non-local hosts, so requests to them never get past the network stub
os.environ["SEARCH_URL"] = "http://search.test"
os.environ["PDF_SERVICE_URL"] = "http://pdf.test"

from contextlib import asynccontextmanager

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.pool import StaticPool

from app.core.database.engine import build_engine, build_sessionmaker, get_db, init_db
from app.core.jobs import queue
from app.core.mailer import Mailer
from app.main import app
from tests.support.bootstrap import clear_storage, setup_storage, setup_worker, split_for_node
from tests.support.fixtures import load_fixtures
from tests.support.stubs import stubbed_services


# ============================================================================
# Session hooks
# ============================================================================

def _is_worker(config) -> bool:
    return hasattr(config, "workerinput")


def pytest_configure(config):
    worker = os.environ.get("PYTEST_XDIST_WORKER")
    if worker:
        setup_worker(worker)


def pytest_collection_modifyitems(config, items):
    selected, deselected = split_for_node(items, [item.nodeid for item in items])
    if deselected:
        config.hook.pytest_deselected(items=deselected)
        items[:] = selected


def pytest_sessionstart(session):
    # Once per run: in the controller, not in every xdist worker
    if not _is_worker(session.config):
        setup_storage()


def pytest_sessionfinish(session, exitstatus):
    if not _is_worker(session.config):
        clear_storage()


# ============================================================================
# Database
# ============================================================================

@pytest_asyncio.fixture
async def db():
    """A fresh in-memory database with the YAML fixtures loaded."""
    engine = build_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    session_factory = build_sessionmaker(engine)

    async with session_factory() as session:
        await load_fixtures(session)

        @asynccontextmanager
        async def test_session():
            yield session

        # Jobs run on the test's session so they see its uncommitted data
        previous_factory = queue.session_factory
        queue.session_factory = test_session
        try:
            yield session
        finally:
            queue.session_factory = previous_factory

    await engine.dispose()


@pytest_asyncio.fixture
async def client(db):
    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://www.example.com") as c:
        yield c
    app.dependency_overrides.clear()


# ============================================================================
# Per test setup and teardown
# ============================================================================

@pytest.fixture(autouse=True)
def stubs():
    """Clean mail and job queues, and stub every outside service, around each test."""
    Mailer.deliveries.clear()
    queue.clear()

    with stubbed_services() as services:
        yield services

    queue.clear()
    Mailer.deliveries.clear()
