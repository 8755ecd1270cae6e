"""
Port availability check run before anything is started.

Uvicorn reports a failed bind by calling sys.exit() from inside its serve
task, which would tear the event loop down after the registrars already
announced the service. Checking first turns that into an ordinary setup
error with a non-zero exit status.

Usage:
    if PortManager.instance().is_port_in_use(8081, "0.0.0.0"):
        ...
"""

import socket
from typing import Optional
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.LIFECYCLE)


class PortManager:
    """Singleton for port availability checks."""

    _instance: Optional["PortManager"] = None

    @classmethod
    def instance(cls) -> "PortManager":
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def is_port_in_use(self, port: int, host: str = "0.0.0.0") -> bool:
        """
        Check if a port is currently in use.

        Args:
            port: Port number to check (0-65535)
            host: Host address (default: 0.0.0.0 for any interface)

        Returns:
            True if port is in use, False if available
        """
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        with socket.socket(family, socket.SOCK_STREAM) as s:
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            try:
                s.bind((host, port))
                return False
            except OSError as e:
                log.debug(f"Port {port} on {host} unavailable: {e}")
                return True
