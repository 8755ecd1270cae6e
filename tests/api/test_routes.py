from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from api.dependencies import set_service_container
from api.main import create_app
from models.config import CatalogTarget
from services.catalog_client import CatalogClient
from services.discovery_announcer import DiscoveryAnnouncer
from services.keepalive_registrar import KeepaliveRegistrar
from services.service_container import ServiceContainer


@pytest.fixture
def services(catalog_config, descriptor, tmp_path):
    static = tmp_path / "static"
    static.mkdir()
    (static / "hello.txt").write_text("hello", encoding="utf-8")
    config = replace(
        catalog_config,
        static_dir=str(static),
        service_catalog=[
            CatalogTarget(endpoint="http://a.test/sc", ttl=60),
            CatalogTarget(endpoint="http://b.test/sc", ttl=30),
        ],
    )

    client = CatalogClient()
    container = ServiceContainer(config=config, descriptor=descriptor)
    container.registrars = [
        KeepaliveRegistrar(target, descriptor, client) for target in config.service_catalog
    ]
    yield container
    set_service_container(None)


@pytest.fixture
def client(services):
    return TestClient(create_app(services))


def test_catalog_index(client):
    response = client.get("/dc")

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "DeviceCatalog"
    assert data["api_version"] == "1.0.0"
    assert data["description"] == "Test Device Catalog"
    assert data["registration"]["id"] == "testhost/DeviceCatalog"


def test_list_registrations(client):
    response = client.get("/system/registrations")

    assert response.status_code == 200
    data = response.json()
    assert data["service_id"] == "testhost/DeviceCatalog"
    assert data["count"] == 2
    first, second = data["registrations"]
    assert first["catalog"] == "http://a.test/sc"
    assert first["state"] == "UNREGISTERED"
    assert first["renewal_interval"] == pytest.approx(20.0)
    assert second["ttl"] == 30


def test_get_registration_by_index(client):
    response = client.get("/system/registrations/1")

    assert response.status_code == 200
    assert response.json()["catalog"] == "http://b.test/sc"


def test_unknown_registration_index(client):
    response = client.get("/system/registrations/5")

    assert response.status_code == 404
    error = response.json()["error"]
    assert error["code"] == "REGISTRATION_NOT_FOUND"
    assert error["details"] == {"index": 5, "count": 2}


def test_invalid_registration_index(client):
    response = client.get("/system/registrations/first")

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_announcement_disabled(client):
    response = client.get("/system/announcement")

    assert response.status_code == 200
    assert response.json() == {
        "enabled": False,
        "service_type": None,
        "name": None,
        "active": False,
        "last_error": None,
    }


def test_announcement_status(services):
    services.announcer = DiscoveryAnnouncer("Test", 8081, "/dc")
    client = TestClient(create_app(services))

    data = client.get("/system/announcement").json()

    assert data["enabled"] is True
    assert data["service_type"] == "_device-catalog._tcp.local."
    assert data["active"] is False


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_root_links(client):
    data = client.get("/").json()

    assert data["index"] == "/dc"
    assert data["health"] == "/health"


def test_tasks_summary(client):
    data = client.get("/system/tasks/summary").json()

    assert data["total"] == 0
    assert data["failed"] == 0


def test_tasks_list(client):
    data = client.get("/system/tasks").json()

    assert data == {"count": 0, "tasks": []}


def test_static_files(client):
    response = client.get("/static/hello.txt")

    assert response.status_code == 200
    assert response.text == "hello"


def test_missing_static_dir_disables_mount(services, tmp_path):
    services.config = replace(services.config, static_dir=str(tmp_path / "absent"))
    client = TestClient(create_app(services))

    assert client.get("/static/hello.txt").status_code == 404
