"""Shared request plumbing for HTTP-backed repositories."""

import logging

import httpx

from partybook.repositories.base import RepositoryAdapter
from partybook.repositories.resilience import (
    CircuitBreaker,
    UnavailableError,
    classify_response,
    resilient_request,
)

logger = logging.getLogger(__name__)


class HttpRepository(RepositoryAdapter):
    """Base for adapters that talk JSON over HTTP.

    Subclasses supply ``_headers()``. Every request goes through the
    adapter's circuit breaker, is retried on :class:`UnavailableError`, and
    has its status code classified into a repository error.

    Args:
        name: Source name.
        timeout: Per-request timeout in seconds.
    """

    def __init__(self, name: str, timeout: float = 30.0) -> None:
        self.name = name
        self.timeout = timeout
        self.breaker = CircuitBreaker(name, fail_max=5, reset_timeout=60.0)

    def _headers(self) -> dict[str, str]:
        return {"Accept": "application/json", "Content-Type": "application/json"}

    async def _request(self, method: str, url: str, **kwargs: object) -> httpx.Response:
        return await self.breaker.call_async(self._send(method, url, **kwargs))

    @resilient_request
    async def _send(self, method: str, url: str, **kwargs: object) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method, url, headers=self._headers(), **kwargs
                )
        except httpx.TransportError as exc:
            raise UnavailableError(f"{method} {url} failed: {exc}", self.name) from exc

        if response.status_code >= 400:
            logger.warning(
                "%s %s request failed (HTTP %d): %s",
                self.name, method, response.status_code, response.text,
            )
        classify_response(response, self.name)
        return response
