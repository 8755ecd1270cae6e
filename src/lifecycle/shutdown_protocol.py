"""
Shutdown handler protocol for component-based graceful shutdown.

Each component that has something to withdraw or release on exit implements
IShutdownHandler and is registered with the ShutdownCoordinator.
"""

from typing import Protocol


class IShutdownHandler(Protocol):
    """
    Protocol for components that need graceful shutdown.

    Handlers with the same priority are run concurrently; groups run in
    descending priority order. The coordinator bounds the whole sequence by
    its grace period, so shutdown() may block on the network.

    Example:
        class RegistrationShutdownHandler:
            @property
            def shutdown_priority(self) -> int:
                return 100  # withdraw from catalogs first

            async def shutdown(self) -> None:
                self.registrar.handle.stop()
                await self.registrar.handle.wait_closed()
    """

    @property
    def shutdown_priority(self) -> int:
        """
        Higher priority shuts down earlier.
        """
        ...

    @property
    def name(self) -> str:
        """
        Label used in shutdown logs.
        """
        ...

    async def shutdown(self) -> None:
        """
        Called once during coordinated shutdown.
        """
        ...
