import pytest
from fastapi.testclient import TestClient

from app import create_registry_app, create_relay_app
from rooms import RoomManager
from world_registry import WorldRegistry


@pytest.fixture()
def worlds_path(tmp_path):
    return tmp_path / "worlds.json"


@pytest.fixture()
def registry(worlds_path):
    return WorldRegistry(str(worlds_path))


@pytest.fixture()
def client(registry):
    return TestClient(create_registry_app(registry))


@pytest.fixture()
def rooms():
    return RoomManager()


@pytest.fixture()
def relay_app(rooms):
    return create_relay_app(rooms)


@pytest.fixture()
def relay_client(relay_app):
    # One shared portal so every WebSocket session runs on the same event loop
    with TestClient(relay_app) as test_client:
        yield test_client
