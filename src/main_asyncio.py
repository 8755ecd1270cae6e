"""
main_asyncio.py — Application entry point for the Device Catalog
----------------------------------------------------------------

Responsible for:
- loading and validating configuration
- wiring dependencies (Dependency Injection)
- registering with every configured service catalog and announcing via DNS-SD
- serving the HTTP API until a termination signal arrives
- graceful, bounded shutdown (deregister, revoke, stop server)

Exit codes:
    0  graceful shutdown
    1  configuration/setup error, or shutdown caused by a failed critical task
"""

import sys

# ---------------------------------------------------------------------------
# UTF-8 ENCODING FIX
# ---------------------------------------------------------------------------

# Log lines carry symbols; make sure a non-UTF-8 console does not choke on them
if hasattr(sys.stdout, 'reconfigure') and sys.stdout.encoding != 'UTF-8':
    sys.stdout.reconfigure(encoding='utf-8')  # type: ignore
if hasattr(sys.stderr, 'reconfigure') and sys.stderr.encoding != 'UTF-8':
    sys.stderr.reconfigure(encoding='utf-8')  # type: ignore

import argparse
import asyncio
from typing import List, Optional, Sequence

from api.main import create_app
from lifecycle.api_server_wrapper import APIServerWrapper
from lifecycle.handlers import (
    AnnouncementShutdownHandler,
    APIServerShutdownHandler,
    RegistrationShutdownHandler,
)
from lifecycle.port_manager import PortManager
from lifecycle.shutdown_coordinator import ShutdownCoordinator
from lifecycle.task_registry import create_tracked_task, TaskCategory
from managers import ConfigManager
from models.config import CatalogConfig
from models.enums import LogCategory, LogLevel
from models.errors import ConfigError
from services import (
    CatalogClient,
    DiscoveryAnnouncer,
    KeepaliveRegistrar,
    ServiceContainer,
    registration_from_config,
)
from utils.logger import get_logger, configure_logger

log = get_logger().for_category(LogCategory.SYSTEM)

DEFAULT_CONFIG_PATH = "conf/device-catalog.yaml"
EXIT_OK = 0
EXIT_FAILURE = 1


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="device-catalog",
        description="Device Catalog: registers itself with service catalogs and serves its API",
    )
    parser.add_argument(
        "--conf",
        default=DEFAULT_CONFIG_PATH,
        help=f"Configuration file path (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--log-level",
        default=LogLevel.INFO.name,
        choices=[level.name for level in LogLevel],
        help="Minimum log level (default: INFO)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable ANSI colors in log output",
    )
    return parser.parse_args(argv)


def build_registrars(config: CatalogConfig, services: ServiceContainer,
                     client: CatalogClient) -> List[KeepaliveRegistrar]:
    """One registrar per configured catalog, in configuration order"""
    return [
        KeepaliveRegistrar(
            target,
            services.descriptor,
            client,
            renewal_fraction=config.renewal_fraction,
        )
        for target in config.service_catalog
    ]


async def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logger(min_level=LogLevel[args.log_level], use_colors=not args.no_color)

    # ========================================================================
    # 1. CONFIGURATION
    # ========================================================================

    log.info(f"Loading configuration from {args.conf}")
    try:
        config = ConfigManager(args.conf).load()
        descriptor = registration_from_config(config)
    except ConfigError as e:
        log.error(f"Configuration error: {e}")
        return EXIT_FAILURE

    if PortManager.instance().is_port_in_use(config.bind_port, config.bind_addr):
        log.error(f"Port {config.bind_port} on {config.bind_addr} is already in use")
        return EXIT_FAILURE

    log.info(
        f"Service {descriptor.id}",
        url=descriptor.url,
        catalogs=len(config.service_catalog),
        dnssd=config.dnssd_enabled,
    )

    # ========================================================================
    # 2. SHUTDOWN COORDINATOR
    # ========================================================================

    # Signals are caught from here on; each component registers its handler
    # as soon as it exists, so a signal during startup still runs a clean
    # shutdown of whatever was already started.
    coordinator = ShutdownCoordinator(grace_period=config.shutdown_grace_period)
    loop = asyncio.get_running_loop()
    coordinator.setup_signal_handlers(loop)

    services = ServiceContainer(config=config, descriptor=descriptor)
    client = CatalogClient()

    try:
        # ====================================================================
        # 3. DNS-SD ANNOUNCEMENT
        # ====================================================================

        if config.dnssd_enabled:
            services.announcer = DiscoveryAnnouncer(
                description=config.description,
                port=config.bind_port,
                api_location=config.api_location,
                bind_addr=config.bind_addr,
            )
            coordinator.register(AnnouncementShutdownHandler(services.announcer))
            # Failure is logged by the announcer; the service keeps running
            await services.announcer.start()

        # ====================================================================
        # 4. CATALOG REGISTRATION
        # ====================================================================

        if coordinator.shutdown_requested:
            log.info("Shutdown requested during startup, skipping registration and API")
        else:
            services.registrars = build_registrars(config, services, client)
            for registrar in services.registrars:
                coordinator.register(RegistrationShutdownHandler(registrar))
                registrar.start()

            if not services.registrars:
                log.info("No service catalogs configured, skipping registration")

            # ================================================================
            # 5. API SERVER
            # ================================================================

            app = create_app(services)
            api_wrapper = APIServerWrapper(app, host=config.bind_addr, port=config.bind_port)
            coordinator.register(APIServerShutdownHandler(api_wrapper))
            create_tracked_task(
                api_wrapper.start(),
                category=TaskCategory.API,
                description="FastAPI/Uvicorn Server",
            )
            log.info(f"Serving API at {descriptor.url}")
            log.info("🏁 Service initialized. Waiting for exit signal...")

        # ====================================================================
        # 6. SHUTDOWN
        # ====================================================================

        await coordinator.wait_for_shutdown()
        await coordinator.shutdown_all()
    finally:
        coordinator.remove_signal_handlers(loop)
        await client.aclose()

    if coordinator.failed:
        log.error(f"Stopped after failure: {coordinator.reason}")
        return EXIT_FAILURE

    log.info("👋 Device catalog shut down cleanly.")
    return EXIT_OK


# ---------------------------------------------------------------------------
# ENTRY POINT
# ---------------------------------------------------------------------------

def run() -> None:
    """Console script entry point"""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
