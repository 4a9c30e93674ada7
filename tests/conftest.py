"""Shared pytest fixtures: the fake backend on a test server and wired-up clients."""
from __future__ import annotations

import pytest
from aiohttp.test_utils import TestServer

from foodyx.api_client import FoodyXClient
from foodyx.core.notifications import NotificationService
from tests.fake_backend import OTHER_RESTAURANT_ID, RESTAURANT_ID, TOKEN, USER_ID, FakeBackend


@pytest.fixture()
def fake_backend() -> FakeBackend:
    backend = FakeBackend()
    backend.add_menu_item(RESTAURANT_ID, "item-kottu", "Chicken Kottu", 500)
    backend.add_menu_item(RESTAURANT_ID, "item-hopper", "Egg Hopper", 250, mainImage="https://img.example/hopper.jpg")
    backend.add_menu_item(OTHER_RESTAURANT_ID, "item-pizza", "Pizza", 1800)
    return backend


@pytest.fixture()
async def backend_server(fake_backend: FakeBackend):
    server = TestServer(fake_backend.app)
    await server.start_server()
    try:
        yield server
    finally:
        await server.close()


@pytest.fixture()
async def api(backend_server: TestServer):
    client = FoodyXClient(str(backend_server.make_url("/api")), TOKEN, user_id=USER_ID, timeout=5)
    try:
        yield client
    finally:
        await client.close()


@pytest.fixture()
async def anonymous_api(backend_server: TestServer):
    client = FoodyXClient(str(backend_server.make_url("/api")), timeout=5)
    try:
        yield client
    finally:
        await client.close()


@pytest.fixture()
def notifications() -> NotificationService:
    return NotificationService()
