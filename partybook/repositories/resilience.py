"""Repository error hierarchy, HTTP status classification, retry, circuit breaker."""

import logging
import time
from enum import StrEnum

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from partybook.models.enums import RepositoryErrorKind

logger = logging.getLogger(__name__)


# ── Exception Hierarchy ──────────────────────────────────────────────────────


class RepositoryError(Exception):
    """Base class for all repository failures.

    Args:
        message: Human-readable description.
        source: Name of the repository that failed.
    """

    kind: RepositoryErrorKind = RepositoryErrorKind.UNAVAILABLE

    def __init__(self, message: str, source: str = "") -> None:
        super().__init__(message)
        self.source = source
        self.message = message


class UnavailableError(RepositoryError):
    """Transport failure, timeout, 429 or 5xx. Retriable."""

    kind = RepositoryErrorKind.UNAVAILABLE


class NotFoundError(RepositoryError):
    """Update/delete target does not exist."""

    kind = RepositoryErrorKind.NOT_FOUND


class SchemaMismatchError(RepositoryError):
    """The backend rejected a field or returned an unexpected shape."""

    kind = RepositoryErrorKind.SCHEMA_MISMATCH


class PermissionDeniedError(RepositoryError):
    """Authentication/authorisation failure (401, 403)."""

    kind = RepositoryErrorKind.PERMISSION_DENIED


class CircuitOpenError(UnavailableError):
    """Circuit breaker is open; calls are being shed."""


TRANSIENT_STATUS_CODES = {429, 500, 502, 503, 504}


# ── Response Classification ──────────────────────────────────────────────────


def classify_response(response: object, source: str = "") -> None:
    """Raise the matching :class:`RepositoryError` for an HTTP status code.

    Args:
        response: An object with a ``status_code`` attribute (e.g. httpx.Response).
        source: Repository name recorded on the raised error.

    Raises:
        PermissionDeniedError: On 401, 403.
        NotFoundError: On 404.
        SchemaMismatchError: On any other 4xx.
        UnavailableError: On 429, 5xx.
    """
    status = getattr(response, "status_code", None)
    if status is None or 200 <= status < 400:
        return

    if status in (401, 403):
        raise PermissionDeniedError(f"Access denied (HTTP {status})", source)
    if status == 404:
        raise NotFoundError(f"Resource not found (HTTP {status})", source)
    if status in TRANSIENT_STATUS_CODES or status >= 500:
        raise UnavailableError(f"Backend unavailable (HTTP {status})", source)
    raise SchemaMismatchError(f"Request rejected (HTTP {status})", source)


# ── Retry ─────────────────────────────────────────────────────────────────


def log_retry_attempt(retry_state: RetryCallState) -> None:
    """Tenacity ``before_sleep`` callback that logs each retry."""
    attempt = retry_state.attempt_number
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning("Retry attempt %d after error: %s", attempt, exc)


resilient_request = retry(
    retry=retry_if_exception_type(UnavailableError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    before_sleep=log_retry_attempt,
    reraise=True,
)
"""Tenacity decorator for retrying on ``UnavailableError``."""


# ── Circuit Breaker ──────────────────────────────────────────────────────────


class CircuitState(StrEnum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """Lightweight async circuit breaker.

    Only :class:`UnavailableError` counts as a failure; a 404 or a rejected
    field says nothing about backend health.

    Args:
        name: Human-readable name for logging.
        fail_max: Consecutive failures before opening.
        reset_timeout: Seconds to wait before trying again (half-open).
    """

    def __init__(
        self, name: str, fail_max: int = 5, reset_timeout: float = 60.0
    ) -> None:
        self.name = name
        self.fail_max = fail_max
        self.reset_timeout = reset_timeout

        self._state = CircuitState.CLOSED
        self._fail_count = 0
        self._last_failure_time: float = 0.0

    @property
    def state(self) -> CircuitState:
        if self._state == CircuitState.OPEN:
            if time.monotonic() - self._last_failure_time >= self.reset_timeout:
                self._state = CircuitState.HALF_OPEN
        return self._state

    async def call_async(self, coro):  # type: ignore[no-untyped-def]
        """Execute *coro*, applying circuit-breaker logic.

        Raises:
            CircuitOpenError: If the circuit is OPEN.
        """
        current = self.state
        if current == CircuitState.OPEN:
            coro.close()
            raise CircuitOpenError(f"Circuit '{self.name}' is open", self.name)

        try:
            result = await coro
        except UnavailableError:
            self._fail_count += 1
            self._last_failure_time = time.monotonic()
            if self._fail_count >= self.fail_max:
                self._state = CircuitState.OPEN
                logger.warning("Circuit '%s' opened after %d failures", self.name, self._fail_count)
            elif current == CircuitState.HALF_OPEN:
                self._state = CircuitState.OPEN
                logger.warning("Circuit '%s' re-opened on half-open failure", self.name)
            raise

        # Success resets the breaker
        self._fail_count = 0
        self._state = CircuitState.CLOSED
        return result
