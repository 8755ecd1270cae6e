from dataclasses import replace

import pytest

from models.errors import ConfigError
from services.descriptor_builder import registration_from_config


def test_identity_and_url_come_from_config(catalog_config):
    descriptor = registration_from_config(catalog_config)

    assert descriptor.id == "testhost/DeviceCatalog"
    assert descriptor.name == "DeviceCatalog"
    assert descriptor.type == "Service"
    assert descriptor.description == "Test Device Catalog"
    assert descriptor.url == "http://testhost:8081/dc"
    assert descriptor.ttl == 0


def test_meta_and_protocol(catalog_config):
    data = registration_from_config(catalog_config).to_dict()

    assert data["meta"] == {"serviceType": "_device-catalog._tcp", "apiVersion": "1.0.0"}
    [protocol] = data["protocols"]
    assert protocol["type"] == "REST"
    assert protocol["methods"] == ["GET", "POST", "PUT", "DELETE"]
    assert protocol["content-types"] == ["application/ld+json"]
    assert data["representation"] == {"application/ld+json": {}}


def test_same_config_gives_same_descriptor(catalog_config):
    assert registration_from_config(catalog_config) == registration_from_config(catalog_config)


def test_with_ttl_returns_copy(catalog_config):
    descriptor = registration_from_config(catalog_config)
    copy = descriptor.with_ttl(60)

    assert copy.ttl == 60
    assert descriptor.ttl == 0
    assert copy.id == descriptor.id


@pytest.mark.parametrize("public_addr", ["", "   ", "host/path", "two words"])
def test_unusable_public_address(catalog_config, public_addr):
    with pytest.raises(ConfigError) as exc_info:
        registration_from_config(replace(catalog_config, public_addr=public_addr))
    assert exc_info.value.field == "public_addr"


def test_relative_api_location_rejected(catalog_config):
    with pytest.raises(ConfigError):
        registration_from_config(replace(catalog_config, api_location="dc"))


def test_port_out_of_range_rejected(catalog_config):
    with pytest.raises(ConfigError):
        registration_from_config(replace(catalog_config, bind_port=70000))
