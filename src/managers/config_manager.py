"""
Config Manager

Loads the device catalog YAML configuration (JSON files are accepted as well,
YAML being a superset), resolves the optional include: directive and turns the
result into a validated CatalogConfig.
"""

import yaml
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlparse

from models.config import CatalogConfig, CatalogTarget, StorageConfig
from models.enums import StorageType
from models.errors import ConfigError
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.CONFIG)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigManager:
    """
    Configuration loader with include system support

    A config file either holds every key itself or lists other files under
    include:, which are merged in order (later files win).

    Example:
        manager = ConfigManager("conf/device-catalog.yaml")
        config = manager.load()

        config.bind_port             # 8081
        config.service_catalog[0]    # CatalogTarget(endpoint=..., discover=False, ttl=120)

    Raises ConfigError on any problem; the entry point treats that as fatal.
    """

    def __init__(self, config_path: Union[str, Path] = "conf/device-catalog.yaml"):
        self.config_path = Path(config_path)
        self.data: Dict[str, Any] = {}
        self.config: Optional[CatalogConfig] = None

    def load(self) -> CatalogConfig:
        """Read, merge and validate the configuration file"""
        main_config = self._read_yaml(self.config_path)

        if "include" in main_config:
            log.info("Using include-based configuration")
            self.data = self._load_with_includes(main_config.pop("include"), self.config_path.parent)
            self.data.update(main_config)
        else:
            self.data = main_config

        self.config = self.parse(self.data)
        log.info(
            f"Loaded config: {self.config_path}",
            bind=f"{self.config.bind_addr}:{self.config.bind_port}",
            api_location=self.config.api_location,
            catalogs=len(self.config.service_catalog),
            dnssd=self.config.dnssd_enabled,
        )
        return self.config

    def _read_yaml(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"YAML parsing error in {path}: {e}")
        except OSError as e:
            raise ConfigError(f"Error reading {path}: {e}")

        if not isinstance(data, dict):
            raise ConfigError(f"Top level of {path} must be a mapping")
        return data

    def _load_with_includes(self, include_list: List[str], config_dir: Path) -> Dict[str, Any]:
        """
        Load and merge multiple YAML files from include list

        Args:
            include_list: Filenames relative to the main config file
            config_dir: Directory containing config files

        Returns:
            Merged config dict
        """
        if not isinstance(include_list, list):
            raise ConfigError("include must be a list of file names", field="include")

        merged: Dict[str, Any] = {}
        for filename in include_list:
            file_data = self._read_yaml(config_dir / filename)
            merged.update(file_data)
            log.debug(f"Loaded {filename}", keys=str(list(file_data.keys())))
        return merged

    # =========================================================================
    # Parsing & validation
    # =========================================================================

    @classmethod
    def parse(cls, data: Dict[str, Any]) -> CatalogConfig:
        """Map a raw dict onto CatalogConfig and validate it"""
        known = {f.name for f in fields(CatalogConfig)}
        unknown = set(data) - known
        if unknown:
            log.warn("Ignoring unknown config keys", keys=str(sorted(unknown)))

        values = {k: v for k, v in data.items() if k in known}
        storage = data.get("storage") or {}
        if not isinstance(storage, dict):
            raise ConfigError("must be a mapping such as {type: memory}", field="storage")
        targets = data.get("service_catalog") or []
        if not isinstance(targets, list):
            raise ConfigError("must be a list of catalog entries", field="service_catalog")

        values["storage"] = cls._parse_storage(storage)
        values["service_catalog"] = [cls._parse_target(i, raw) for i, raw in enumerate(targets)]

        for required in ("description", "public_addr"):
            if not values.get(required):
                raise ConfigError("required field is missing", field=required)

        try:
            config = CatalogConfig(**values)
        except TypeError as e:
            raise ConfigError(str(e))

        cls.validate(config)
        return config

    @staticmethod
    def _parse_storage(raw: Dict[str, Any]) -> StorageConfig:
        storage_type = raw.get("type", StorageType.MEMORY.value)
        try:
            return StorageConfig(type=StorageType(storage_type))
        except ValueError:
            raise ConfigError(f"Unsupported storage type: {storage_type}", field="storage.type")

    @staticmethod
    def _parse_target(index: int, raw: Dict[str, Any]) -> CatalogTarget:
        name = f"service_catalog[{index}]"
        if not isinstance(raw, dict):
            raise ConfigError("entry must be a mapping", field=name)

        ttl = raw.get("ttl", CatalogTarget.ttl)
        if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl <= 0:
            raise ConfigError(f"ttl must be a positive integer (seconds), got {ttl!r}", field=f"{name}.ttl")

        endpoint = (raw.get("endpoint") or "").rstrip("/")
        discover = bool(raw.get("discover", False))
        if not endpoint and not discover:
            raise ConfigError("endpoint is required unless discover is enabled", field=f"{name}.endpoint")
        if endpoint:
            parsed = urlparse(endpoint)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ConfigError(f"endpoint is not an http(s) URL: {endpoint}", field=f"{name}.endpoint")

        return CatalogTarget(endpoint=endpoint, discover=discover, ttl=ttl)

    @staticmethod
    def validate(config: CatalogConfig) -> None:
        """Checks that need the assembled config"""
        if not config.bind_addr:
            raise ConfigError("required field is missing", field="bind_addr")
        if not isinstance(config.bind_port, int) or not 0 < config.bind_port < 65536:
            raise ConfigError(f"invalid port {config.bind_port!r}", field="bind_port")
        if not config.api_location or not config.api_location.startswith("/"):
            raise ConfigError("must be an absolute path such as /dc", field="api_location")
        if config.api_location.rstrip("/") in ("", "/static", "/system", "/health"):
            raise ConfigError(f"{config.api_location} collides with a built-in route", field="api_location")
        if not _is_number(config.renewal_fraction) or not 0 < config.renewal_fraction < 1:
            raise ConfigError("must be between 0 and 1 (exclusive)", field="renewal_fraction")
        if not _is_number(config.shutdown_grace_period) or config.shutdown_grace_period <= 0:
            raise ConfigError("must be positive", field="shutdown_grace_period")
