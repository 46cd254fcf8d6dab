"""Test fixtures: a fresh app (hub + producer) per test, no server needed.

The producer only runs inside the app lifespan, which ASGITransport never
starts, so endpoint tests publish to the hub by hand and stay deterministic.
"""

import asyncio

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from main import create_app
from models import BroadcastHub
from utilities import Settings


async def wait_until(predicate, timeout: float = 2.0):
    """Poll predicate on the event loop until it holds or the timeout expires."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)


@pytest.fixture()
def settings():
    return Settings(tick_interval=0.01, heartbeat_interval=0)


@pytest.fixture()
def app(settings):
    return create_app(settings)


@pytest.fixture()
def hub(app) -> BroadcastHub:
    return app.state.hub


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
