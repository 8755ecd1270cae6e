"""
Shutdown coordinator that turns OS termination signals into an orderly,
time-bounded shutdown.

Protocol:
1. SIGINT, SIGTERM, SIGHUP and SIGQUIT are routed to one shutdown token
2. the first trigger wins, later ones are logged and ignored
3. handlers are fanned out by priority group (same priority = concurrently)
4. everything is bounded by a fixed grace period; whatever has not finished
   by then is abandoned
5. leftover tracked tasks are cancelled and control returns to the entry
   point, which exits with status 0
"""

import asyncio
import signal
from itertools import groupby
from typing import List, Optional, Set

from lifecycle.task_registry import TaskCategory, TaskRegistry
from models.config import DEFAULT_SHUTDOWN_GRACE_PERIOD
from models.errors import ShutdownTimeout
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SHUTDOWN)

TERMINATION_SIGNALS = tuple(
    getattr(signal, name)
    for name in ("SIGINT", "SIGTERM", "SIGHUP", "SIGQUIT")
    if hasattr(signal, name)
)

LEFTOVER_CANCEL_TIMEOUT = 0.5


def _handler_name(handler) -> str:
    return getattr(handler, "name", None) or handler.__class__.__name__


class ShutdownCoordinator:
    """
    Coordinates graceful shutdown of multiple components.

    Example:
        coordinator = ShutdownCoordinator(grace_period=3.0)
        for registrar in registrars:
            coordinator.register(RegistrationShutdownHandler(registrar))
        coordinator.register(AnnouncementShutdownHandler(announcer))
        coordinator.register(APIServerShutdownHandler(api_wrapper))

        coordinator.setup_signal_handlers(loop)
        await coordinator.wait_for_shutdown()
        await coordinator.shutdown_all()
    """

    def __init__(
        self,
        grace_period: float = DEFAULT_SHUTDOWN_GRACE_PERIOD,
        signals: tuple = TERMINATION_SIGNALS,
        critical_categories: Optional[Set[TaskCategory]] = None,
    ):
        """
        Args:
            grace_period: Upper bound for the whole shutdown sequence (seconds)
            signals: OS signals treated as termination requests
            critical_categories: Task categories whose failure triggers shutdown
        """
        self._handlers: List = []
        self._shutdown_event = asyncio.Event()
        self._grace_period = grace_period
        self._signals = signals
        self._installed_signals: List[signal.Signals] = []
        self._critical_categories = (
            critical_categories if critical_categories is not None else {TaskCategory.API}
        )
        self._shutdown_started = False
        self.reason: Optional[str] = None
        self.failed = False
        self.pending: List[str] = []

    @property
    def grace_period(self) -> float:
        return self._grace_period

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_event.is_set()

    def register(self, handler) -> None:
        """
        Register a shutdown handler.

        Handler must have:
        - shutdown_priority property (int)
        - async shutdown() method
        """
        if not hasattr(handler, "shutdown_priority"):
            raise ValueError(f"Handler {handler} missing shutdown_priority property")
        if not hasattr(handler, "shutdown"):
            raise ValueError(f"Handler {handler} missing shutdown() method")

        self._handlers.append(handler)
        log.debug(f"Registered shutdown handler: {_handler_name(handler)}")

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def setup_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        """Route the termination signals to request_shutdown()"""
        for sig in self._signals:
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                log.debug(f"Cannot install handler for {sig.name}: {e}")
                continue
            self._installed_signals.append(sig)

        log.info(
            "Signal handlers installed",
            signals=", ".join(s.name for s in self._installed_signals) or "none",
        )

    def remove_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in self._installed_signals:
            loop.remove_signal_handler(sig)
        self._installed_signals.clear()

    def _on_signal(self, sig: signal.Signals) -> None:
        self.request_shutdown(sig.name)

    def request_shutdown(self, reason: str, failed: bool = False) -> bool:
        """
        Trigger shutdown. Only the first call counts.

        Returns:
            True if this call triggered shutdown
        """
        if self._shutdown_event.is_set():
            log.debug(f"Shutdown already in progress, ignoring {reason}")
            return False

        self.reason = reason
        self.failed = failed
        log.info(f"{reason} received → triggering shutdown")
        self._shutdown_event.set()
        return True

    async def wait_for_shutdown(self) -> None:
        """
        Wait for a termination trigger or the failure of a critical task.

        Critical tasks are the running TaskRegistry tasks in
        critical_categories (by default the HTTP server). One of them
        finishing with an exception triggers shutdown with failed=True.
        """
        registry = TaskRegistry.instance()

        while not self._shutdown_event.is_set():
            critical = [
                r.task for r in registry.active()
                if r.info.category in self._critical_categories
            ]
            waiter = asyncio.ensure_future(self._shutdown_event.wait())
            try:
                done, _ = await asyncio.wait({waiter, *critical}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                waiter.cancel()

            for task in done:
                if task is waiter or task.cancelled():
                    continue
                if task.exception() is not None:
                    record = registry.get_record_by_task(task)
                    description = record.info.description if record else task.get_name()
                    log.error(f"Critical task failed: {description}", error=str(task.exception()))
                    self.request_shutdown(f"Task failure: {description}", failed=True)
                    break
                log.debug(f"Critical task completed cleanly: {task.get_name()}")

    # ------------------------------------------------------------------
    # Shutdown sequence
    # ------------------------------------------------------------------

    async def shutdown_all(self) -> List[str]:
        """
        Execute the shutdown sequence once, bounded by the grace period.

        The grace period is an upper bound, not a fixed wait: the sequence
        returns as soon as every handler has finished. Handlers still
        running at the deadline are cancelled and reported as pending.

        Returns:
            Names of handlers that did not finish in time (also in self.pending)
        """
        if self._shutdown_started:
            log.debug("shutdown_all() already ran, ignoring")
            return self.pending
        self._shutdown_started = True

        log.info("🛑 Initiating graceful shutdown sequence...")
        log.info(f"   Reason: {self.reason or 'UNKNOWN'}")

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._grace_period

        ordered = sorted(self._handlers, key=lambda h: h.shutdown_priority, reverse=True)
        groups = [list(g) for _, g in groupby(ordered, key=lambda h: h.shutdown_priority)]

        for index, group in enumerate(groups):
            remaining = deadline - loop.time()
            if remaining <= 0:
                for later in groups[index:]:
                    self.pending.extend(_handler_name(h) for h in later)
                break
            self.pending.extend(await self._run_group(group, remaining))

        if self.pending:
            timeout = ShutdownTimeout(self._grace_period, self.pending)
            log.warn(f"⚠️  {timeout}", pending=", ".join(self.pending))

        await self._cancel_leftover_tasks()
        log.info("✓ Shutdown sequence complete")
        return self.pending

    async def _run_group(self, group: List, timeout: float) -> List[str]:
        """Fan out one priority group; return names still running at timeout"""
        tasks = {
            asyncio.ensure_future(self._run_handler(handler)): handler
            for handler in group
        }
        log.debug(
            f"Shutting down priority {group[0].shutdown_priority}",
            handlers=", ".join(_handler_name(h) for h in group),
        )

        _, pending = await asyncio.wait(tasks, timeout=timeout)
        for task in pending:
            task.cancel()
        return [_handler_name(tasks[t]) for t in pending]

    async def _run_handler(self, handler) -> None:
        name = _handler_name(handler)
        try:
            await handler.shutdown()
            log.debug(f"✓ {name} shutdown complete")
        except asyncio.CancelledError:
            log.debug(f"{name} abandoned at end of grace period")
            raise
        except Exception as e:
            log.error(f"❌ Error shutting down {name}: {e}", exc_info=True)

    async def _cancel_leftover_tasks(self) -> None:
        current = asyncio.current_task()
        tasks = TaskRegistry.instance().get_tasks_for_shutdown(exclude=[current])
        if not tasks:
            return

        for task in tasks:
            task.cancel()
            log.debug(f"Cancelled task: {task.get_name()}")
        await asyncio.wait(tasks, timeout=LEFTOVER_CANCEL_TIMEOUT)
