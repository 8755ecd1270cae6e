"""
Catalog client - HTTP side of the service catalog registration API

register/renew are the same idempotent upsert keyed by the service id:
PUT {endpoint}/{id}, falling back to POST {endpoint}/ when the catalog does
not know the entry yet. deregister is DELETE {endpoint}/{id}.

Every failure surfaces as RegistrationError so callers deal with a single
exception type.
"""

from __future__ import annotations

from typing import Optional

import httpx

from models.errors import RegistrationError
from models.registration import RegistrationDescriptor
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.REGISTRATION)

DEFAULT_REQUEST_TIMEOUT = 5.0


class CatalogClient:
    """
    Async client for remote service catalogs.

    One instance can talk to any number of catalogs; the endpoint is passed
    per call because a registrar in discover mode may get a different one on
    every attempt.

    Args:
        timeout: Per-request timeout (seconds)
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(self, timeout: float = DEFAULT_REQUEST_TIMEOUT,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def register(self, endpoint: str, descriptor: RegistrationDescriptor) -> None:
        """Create or overwrite the catalog entry for descriptor.id"""
        await self._upsert(endpoint, descriptor)

    async def renew(self, endpoint: str, descriptor: RegistrationDescriptor) -> None:
        """Refresh the entry before its TTL lapses (same request as register)"""
        await self._upsert(endpoint, descriptor)

    async def deregister(self, endpoint: str, service_id: str) -> None:
        """Remove the entry. A 404 means it is already gone and counts as success."""
        url = f"{endpoint}/{service_id}"
        response = await self._send("DELETE", url, endpoint)
        if response.status_code == httpx.codes.NOT_FOUND:
            log.debug("Entry already absent from catalog", endpoint=endpoint, id=service_id)
            return
        self._check(response, endpoint)

    async def aclose(self) -> None:
        await self._client.aclose()

    # -----------------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------------

    async def _upsert(self, endpoint: str, descriptor: RegistrationDescriptor) -> None:
        body = descriptor.to_dict()
        response = await self._send("PUT", f"{endpoint}/{descriptor.id}", endpoint, json=body)
        if response.status_code == httpx.codes.NOT_FOUND:
            response = await self._send("POST", f"{endpoint}/", endpoint, json=body)
        self._check(response, endpoint)

    async def _send(self, method: str, url: str, endpoint: str, **kwargs) -> httpx.Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise RegistrationError(
                f"{method} {url} failed: {type(e).__name__}: {e}", endpoint=endpoint
            ) from e

    @staticmethod
    def _check(response: httpx.Response, endpoint: str) -> None:
        if response.is_success:
            return
        raise RegistrationError(
            f"{response.request.method} {response.request.url} returned {response.status_code}",
            endpoint=endpoint,
            status_code=response.status_code,
        )
