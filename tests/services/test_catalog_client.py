import json

import httpx
import pytest

from models.errors import RegistrationError

ENDPOINT = "http://catalog.test/sc"


@pytest.mark.asyncio
async def test_register_puts_descriptor_under_its_id(catalog_client, fake_catalog, descriptor):
    await catalog_client.register(ENDPOINT, descriptor.with_ttl(30))

    [request] = fake_catalog.requests
    assert request.method == "PUT"
    assert str(request.url) == f"{ENDPOINT}/testhost/DeviceCatalog"

    body = json.loads(request.content)
    assert body["id"] == "testhost/DeviceCatalog"
    assert body["ttl"] == 30
    assert body["protocols"][0]["endpoint"]["url"] == "http://testhost:8081/dc"


@pytest.mark.asyncio
async def test_register_falls_back_to_post_when_put_unknown(catalog_client, fake_catalog, descriptor):
    def responder(request):
        if request.method == "PUT":
            return httpx.Response(404)
        return httpx.Response(201, json={})

    fake_catalog.responder = responder
    await catalog_client.register(ENDPOINT, descriptor)

    assert [r.method for r in fake_catalog.requests] == ["PUT", "POST"]
    assert str(fake_catalog.requests[1].url) == f"{ENDPOINT}/"


@pytest.mark.asyncio
async def test_renew_sends_same_upsert(catalog_client, fake_catalog, descriptor):
    await catalog_client.register(ENDPOINT, descriptor)
    await catalog_client.renew(ENDPOINT, descriptor)

    first, second = fake_catalog.requests
    assert first.method == second.method == "PUT"
    assert first.url == second.url
    assert first.content == second.content


@pytest.mark.asyncio
async def test_rejected_registration_raises_with_status(catalog_client, fake_catalog, descriptor):
    fake_catalog.responder = lambda request: httpx.Response(500)

    with pytest.raises(RegistrationError) as exc_info:
        await catalog_client.register(ENDPOINT, descriptor)

    assert exc_info.value.status_code == 500
    assert exc_info.value.endpoint == ENDPOINT


@pytest.mark.asyncio
async def test_unreachable_catalog_raises_registration_error(catalog_client, fake_catalog, descriptor):
    def responder(request):
        raise httpx.ConnectError("connection refused", request=request)

    fake_catalog.responder = responder

    with pytest.raises(RegistrationError) as exc_info:
        await catalog_client.register(ENDPOINT, descriptor)

    assert exc_info.value.status_code is None
    assert "ConnectError" in str(exc_info.value)


@pytest.mark.asyncio
async def test_deregister_deletes_entry(catalog_client, fake_catalog, descriptor):
    await catalog_client.deregister(ENDPOINT, descriptor.id)

    [request] = fake_catalog.requests
    assert request.method == "DELETE"
    assert str(request.url) == f"{ENDPOINT}/testhost/DeviceCatalog"


@pytest.mark.asyncio
async def test_deregister_treats_missing_entry_as_success(catalog_client, fake_catalog, descriptor):
    fake_catalog.responder = lambda request: httpx.Response(404)

    await catalog_client.deregister(ENDPOINT, descriptor.id)


@pytest.mark.asyncio
async def test_deregister_failure_raises(catalog_client, fake_catalog, descriptor):
    fake_catalog.responder = lambda request: httpx.Response(503)

    with pytest.raises(RegistrationError):
        await catalog_client.deregister(ENDPOINT, descriptor.id)
