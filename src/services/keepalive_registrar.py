"""
Keepalive Registrar
-------------------

Keeps one entry alive in one remote service catalog for the lifetime of the
process:

    UNREGISTERED -> REGISTERED -> RENEWING -> REGISTERED ... -> STOPPING -> STOPPED

- registers on start, retrying with exponential backoff until the catalog
  accepts the entry
- renews every ttl * renewal_fraction seconds, strictly before the TTL lapses
- a failed renewal is logged and retried on the same schedule; the remote TTL
  decides whether observers still see the entry
- on stop: pending wait (or in-flight request) is cancelled, exactly one
  deregistration is attempted, then the handle is closed

Nothing in here raises into the caller. Each registrar runs as its own task
and shares no state with the others.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from lifecycle.task_registry import create_tracked_task, TaskCategory
from models.config import CatalogTarget, DEFAULT_RENEWAL_FRACTION
from models.enums import RegistrationState
from models.errors import RegistrationError
from models.registration import RegistrationDescriptor
from services.catalog_client import CatalogClient
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.REGISTRATION)

EndpointResolver = Callable[[], Awaitable[str]]

DEFAULT_INITIAL_BACKOFF = 1.0


class RegistrationHandle:
    """
    One-shot stop token plus completion acknowledgement for a registrar.

    The shutdown side calls stop() once and then awaits wait_closed(). The
    registrar side waits on the stop token and closes the handle when its loop
    has exited. A handle is never reused.
    """

    def __init__(self, name: str):
        self.name = name
        self._stop_event = asyncio.Event()
        self._closed_event = asyncio.Event()

    def stop(self) -> bool:
        """
        Request the registrar to withdraw and exit.

        Returns:
            True if this call delivered the signal, False if the handle was
            already signalled or closed (the call is then ignored)
        """
        if self._stop_event.is_set() or self._closed_event.is_set():
            log.debug(f"Stop ignored, handle already consumed: {self.name}")
            return False
        self._stop_event.set()
        return True

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    async def wait_stop_requested(self) -> None:
        await self._stop_event.wait()

    @property
    def closed(self) -> bool:
        return self._closed_event.is_set()

    async def wait_closed(self, timeout: Optional[float] = None) -> bool:
        """Wait for the registrar to acknowledge. Returns False on timeout."""
        try:
            await asyncio.wait_for(self._closed_event.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False

    def close(self) -> None:
        """Called by the registrar once its loop has exited"""
        self._closed_event.set()


class KeepaliveRegistrar:
    """
    Registration keepalive for a single CatalogTarget.

    Args:
        target: Catalog to register with
        descriptor: Service descriptor; a copy carrying target.ttl is used
        client: Shared CatalogClient
        resolver: Async callable returning the catalog endpoint, used when
            target.discover is set (see services.catalog_discovery)
        renewal_fraction: Renewal interval as a fraction of the TTL (0 < f < 1)
        initial_backoff: First retry delay after a failed initial registration

    Example:
        registrar = KeepaliveRegistrar(target, descriptor, client)
        registrar.start()
        ...
        registrar.handle.stop()
        await registrar.handle.wait_closed(timeout=3.0)
    """

    def __init__(
        self,
        target: CatalogTarget,
        descriptor: RegistrationDescriptor,
        client: CatalogClient,
        resolver: Optional[EndpointResolver] = None,
        renewal_fraction: float = DEFAULT_RENEWAL_FRACTION,
        initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
    ):
        if not 0 < renewal_fraction < 1:
            raise ValueError(f"renewal_fraction must be in (0, 1), got {renewal_fraction}")
        if target.discover and resolver is None:
            from services.catalog_discovery import CatalogEndpointResolver
            resolver = CatalogEndpointResolver()

        self.target = target
        self.descriptor = descriptor.with_ttl(target.ttl)
        self._client = client
        self._resolver = resolver

        self.renewal_interval = target.ttl * renewal_fraction
        self.initial_backoff = min(initial_backoff, self.renewal_interval)

        # Handle exists before the first attempt is made
        self.handle = RegistrationHandle(self.name)
        self.task: Optional[asyncio.Task] = None

        self.state = RegistrationState.UNREGISTERED
        self.endpoint: Optional[str] = None if target.discover else target.endpoint
        self.attempts = 0
        self.failures = 0
        self.deregistration_attempts = 0
        self.last_error: Optional[str] = None
        self.last_success: Optional[float] = None
        self._registered_once = False

    @property
    def name(self) -> str:
        return self.target.endpoint or "dns-sd"

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    def start(self) -> asyncio.Task:
        """Launch run() as a tracked background task"""
        if self.task is not None:
            raise RuntimeError(f"Registrar already started: {self.name}")
        self.task = create_tracked_task(
            self.run(),
            category=TaskCategory.REGISTRATION,
            description=f"Keepalive registrar ({self.name})",
        )
        return self.task

    async def run(self) -> None:
        """Register, keep alive until stopped, deregister once, close the handle"""
        log.info(
            f"Starting keepalive for {self.descriptor.id}",
            catalog=self.name,
            ttl=self.target.ttl,
            renew_every=f"{self.renewal_interval:.1f}s",
        )
        try:
            await self._keepalive_loop()
            await self._deregister()
        finally:
            self.state = RegistrationState.STOPPED
            self.handle.close()
            log.debug(f"Keepalive stopped: {self.name}")

    async def _keepalive_loop(self) -> None:
        backoff = self.initial_backoff

        while not self.handle.stop_requested:
            succeeded = await self._attempt_until_stopped()
            if succeeded is None:
                return

            if succeeded or self._registered_once:
                delay = self.renewal_interval
                backoff = self.initial_backoff
            else:
                delay = backoff
                backoff = min(backoff * 2, self.renewal_interval)

            if await self._wait_for_stop(delay):
                return

    async def _attempt_until_stopped(self) -> Optional[bool]:
        """
        Run one register/renew attempt, racing it against the stop token.

        Returns:
            Attempt outcome, or None if stop arrived first (attempt cancelled)
        """
        attempt = asyncio.ensure_future(self._register_once())
        stop = asyncio.ensure_future(self.handle.wait_stop_requested())
        try:
            await asyncio.wait({attempt, stop}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            attempt.cancel()
            raise
        finally:
            stop.cancel()

        if attempt.done():
            return attempt.result()

        attempt.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await attempt
        if self._registered_once:
            self.state = RegistrationState.REGISTERED
        return None

    async def _wait_for_stop(self, delay: float) -> bool:
        """Sleep until the next attempt. True if stop was requested meanwhile."""
        try:
            await asyncio.wait_for(self.handle.wait_stop_requested(), timeout=delay)
            return True
        except asyncio.TimeoutError:
            return False

    # -----------------------------------------------------------------------
    # Attempts
    # -----------------------------------------------------------------------

    async def _register_once(self) -> bool:
        renewing = self._registered_once
        self.attempts += 1
        if renewing:
            self.state = RegistrationState.RENEWING

        try:
            endpoint = await self._resolve_endpoint()
            if renewing:
                await self._client.renew(endpoint, self.descriptor)
            else:
                await self._client.register(endpoint, self.descriptor)
        except RegistrationError as e:
            self._record_failure(str(e), renewing)
            return False
        except Exception as e:
            log.error(f"Unexpected error talking to {self.name}: {e}", exc_info=True)
            self._record_failure(f"{type(e).__name__}: {e}", renewing)
            return False

        self.endpoint = endpoint
        self.state = RegistrationState.REGISTERED
        self.last_success = time.time()
        self.last_error = None
        self._registered_once = True

        if renewing:
            log.debug(f"Renewed registration in {endpoint}", id=self.descriptor.id)
        else:
            log.info(f"Registered in service catalog {endpoint}", id=self.descriptor.id, ttl=self.target.ttl)
        return True

    def _record_failure(self, error: str, renewing: bool) -> None:
        self.failures += 1
        self.last_error = error
        if renewing:
            # Entry may still be alive remotely until its TTL runs out
            self.state = RegistrationState.REGISTERED
        log.warn(
            f"{'Renewal' if renewing else 'Registration'} failed for {self.name}",
            error=error,
            attempt=self.attempts,
        )

    async def _resolve_endpoint(self) -> str:
        if not self.target.discover:
            return self.target.endpoint
        return await self._resolver()

    async def _deregister(self) -> None:
        self.state = RegistrationState.STOPPING
        self.deregistration_attempts += 1

        try:
            endpoint = self.endpoint or await self._resolve_endpoint()
            await self._client.deregister(endpoint, self.descriptor.id)
        except RegistrationError as e:
            log.warn(f"Deregistration failed for {self.name}", error=str(e))
            return
        except Exception as e:
            log.error(f"Unexpected error deregistering from {self.name}: {e}", exc_info=True)
            return

        log.info(f"Deregistered from service catalog {endpoint}", id=self.descriptor.id)

    # -----------------------------------------------------------------------
    # Introspection
    # -----------------------------------------------------------------------

    def status(self) -> Dict[str, Any]:
        return {
            "catalog": self.name,
            "endpoint": self.endpoint,
            "discover": self.target.discover,
            "ttl": self.target.ttl,
            "renewal_interval": self.renewal_interval,
            "state": self.state.name,
            "attempts": self.attempts,
            "failures": self.failures,
            "last_error": self.last_error,
            "last_success": self.last_success,
            "closed": self.handle.closed,
        }
