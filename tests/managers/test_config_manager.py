import json
import textwrap

import pytest

from managers.config_manager import ConfigManager
from models.enums import StorageType
from models.errors import ConfigError


VALID_CONFIG = """
description: Lab Device Catalog
dnssd_enabled: true
public_addr: lab.example
bind_addr: 0.0.0.0
bind_port: 8081
api_location: /dc
storage:
  type: memory
service_catalog:
  - endpoint: http://sc.example:8082/sc/
    ttl: 60
  - discover: true
"""


def write(tmp_path, text, name="device-catalog.yaml"):
    path = tmp_path / name
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return path


def load(tmp_path, text):
    return ConfigManager(write(tmp_path, text)).load()


def test_load_valid_config(tmp_path):
    config = load(tmp_path, VALID_CONFIG)

    assert config.description == "Lab Device Catalog"
    assert config.dnssd_enabled is True
    assert config.bind_port == 8081
    assert config.storage.type is StorageType.MEMORY
    assert config.shutdown_grace_period == 3.0

    first, second = config.service_catalog
    assert first.endpoint == "http://sc.example:8082/sc"
    assert first.ttl == 60
    assert second.discover is True
    assert second.endpoint == ""
    assert second.ttl == 120


def test_json_config_accepted(tmp_path):
    data = {
        "description": "JSON catalog",
        "public_addr": "json.example",
        "service_catalog": [{"endpoint": "http://sc:8082/sc", "ttl": 30}],
    }
    path = write(tmp_path, json.dumps(data), name="conf.json")

    config = ConfigManager(path).load()

    assert config.public_addr == "json.example"
    assert config.service_catalog[0].ttl == 30


def test_zero_catalogs_is_valid(tmp_path):
    config = load(tmp_path, "description: x\npublic_addr: host\n")
    assert config.service_catalog == []


def test_include_files_are_merged(tmp_path):
    write(tmp_path, "description: From include\npublic_addr: inc.example\nbind_port: 9000\n", "base.yaml")
    path = write(tmp_path, "include:\n  - base.yaml\nbind_port: 9100\n")

    config = ConfigManager(path).load()

    assert config.description == "From include"
    assert config.bind_port == 9100


def test_unknown_keys_are_ignored(tmp_path):
    config = load(tmp_path, "description: x\npublic_addr: host\nauth:\n  enabled: false\n")
    assert config.public_addr == "host"


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        ConfigManager(tmp_path / "absent.yaml").load()


def test_malformed_yaml(tmp_path):
    with pytest.raises(ConfigError, match="YAML"):
        load(tmp_path, "description: [unclosed\n")


def test_top_level_must_be_mapping(tmp_path):
    with pytest.raises(ConfigError):
        load(tmp_path, "- a\n- b\n")


@pytest.mark.parametrize("field", ["description", "public_addr"])
def test_required_fields(tmp_path, field):
    text = "description: x\npublic_addr: host\n".replace(f"{field}:", "other:")
    with pytest.raises(ConfigError) as exc_info:
        load(tmp_path, text)
    assert exc_info.value.field == field


@pytest.mark.parametrize("ttl", ["0", "-5", "abc", "true", "1.5"])
def test_invalid_ttl(tmp_path, ttl):
    text = f"description: x\npublic_addr: host\nservice_catalog:\n  - endpoint: http://sc/sc\n    ttl: {ttl}\n"
    with pytest.raises(ConfigError) as exc_info:
        load(tmp_path, text)
    assert exc_info.value.field == "service_catalog[0].ttl"


def test_endpoint_required_without_discover(tmp_path):
    with pytest.raises(ConfigError) as exc_info:
        load(tmp_path, "description: x\npublic_addr: host\nservice_catalog:\n  - ttl: 10\n")
    assert exc_info.value.field == "service_catalog[0].endpoint"


def test_endpoint_must_be_http_url(tmp_path):
    with pytest.raises(ConfigError):
        load(tmp_path, "description: x\npublic_addr: host\nservice_catalog:\n  - endpoint: sc.example\n")


def test_unsupported_storage_type(tmp_path):
    with pytest.raises(ConfigError, match="Unsupported storage type"):
        load(tmp_path, "description: x\npublic_addr: host\nstorage:\n  type: leveldb\n")


@pytest.mark.parametrize("line, field", [
    ("storage: memory", "storage"),
    ("service_catalog: 5", "service_catalog"),
    ("service_catalog: http://sc.example/sc", "service_catalog"),
])
def test_malformed_section_shapes(tmp_path, line, field):
    with pytest.raises(ConfigError) as exc_info:
        load(tmp_path, f"description: x\npublic_addr: host\n{line}\n")
    assert exc_info.value.field == field


@pytest.mark.parametrize("line, field", [
    ("bind_port: 0", "bind_port"),
    ("bind_port: 70000", "bind_port"),
    ("api_location: dc", "api_location"),
    ("api_location: /system", "api_location"),
    ("renewal_fraction: 1.0", "renewal_fraction"),
    ("renewal_fraction: fast", "renewal_fraction"),
    ("shutdown_grace_period: 0", "shutdown_grace_period"),
])
def test_invalid_settings(tmp_path, line, field):
    with pytest.raises(ConfigError) as exc_info:
        load(tmp_path, f"description: x\npublic_addr: host\n{line}\n")
    assert exc_info.value.field == field


def test_sample_config_loads():
    from pathlib import Path
    sample = Path(__file__).parent.parent.parent / "conf" / "device-catalog.yaml"

    config = ConfigManager(sample).load()

    assert config.api_location == "/dc"
    assert len(config.service_catalog) == 1
