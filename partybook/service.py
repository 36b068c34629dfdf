"""Booking workflow over the configured repositories.

Reads go through reconciliation; writes go to every repository at once,
each isolated from the others' failures. Nothing is cached between calls:
every read re-queries the sources.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import date

from pydantic import BaseModel

from partybook.config import Settings
from partybook.models.package import CalendarDayAvailability
from partybook.models.reconciliation import ReconciliationResult
from partybook.models.reservation import NaturalKey, ReservationDraft, ReservationRecord
from partybook.models.validation import ValidationIssue
from partybook.repositories.base import RepositoryAdapter
from partybook.repositories.resilience import NotFoundError, RepositoryError
from partybook.scheduling.availability import build_month
from partybook.scheduling.reconciliation import ReconciliationEngine
from partybook.scheduling.validation import ReservationValidator

logger = logging.getLogger(__name__)


class WriteOutcome(BaseModel):
    """Per-source result of writing one record everywhere."""

    record: ReservationRecord | None = None
    written: list[str] = []
    failed: dict[str, str] = {}

    @property
    def ok(self) -> bool:
        return bool(self.written) and not self.failed


class BookingOutcome(WriteOutcome):
    issues: list[ValidationIssue] = []
    same_day: list[str] = []  # ids of reservations already on that date

    @property
    def accepted(self) -> bool:
        return self.record is not None


class ReservationService:
    """Validate, persist, and reconcile reservations across repositories.

    Args:
        adapters: Active repositories.
        validator: Draft validator.
        engine: Reconciliation engine (carries the source priority).
        timeout: Per-call timeout in seconds for every repository operation.
    """

    def __init__(
        self,
        adapters: Sequence[RepositoryAdapter],
        *,
        validator: ReservationValidator | None = None,
        engine: ReconciliationEngine | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.adapters = list(adapters)
        self.validator = validator or ReservationValidator()
        self.engine = engine or ReconciliationEngine()
        self.timeout = timeout

    @classmethod
    def from_settings(
        cls, settings: Settings, adapters: Sequence[RepositoryAdapter]
    ) -> "ReservationService":
        return cls(
            adapters,
            validator=ReservationValidator(strict_pricing=settings.strict_pricing),
            engine=ReconciliationEngine(settings.priority),
            timeout=settings.source_timeout_seconds,
        )

    def _adapter(self, name: str) -> RepositoryAdapter | None:
        return next((a for a in self.adapters if a.name == name), None)

    async def _guarded(
        self, adapter: RepositoryAdapter, call: Callable[[], Awaitable[None]]
    ) -> str | None:
        """Run one write; return an error message or None on success."""
        try:
            await asyncio.wait_for(call(), self.timeout)
        except TimeoutError:
            return f"timed out after {self.timeout:g}s"
        except asyncio.CancelledError:
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                raise
            return "write was cancelled"
        except RepositoryError as exc:
            return f"{exc.kind}: {exc.message}"
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error writing to %s", adapter.name)
            return f"{type(exc).__name__}: {exc}"
        return None

    async def _write_all(
        self,
        action: str,
        record: ReservationRecord,
        make_call: Callable[[RepositoryAdapter], Callable[[], Awaitable[None]]],
        adapters: Sequence[RepositoryAdapter] | None = None,
    ) -> WriteOutcome:
        targets = list(adapters if adapters is not None else self.adapters)
        errors = await asyncio.gather(*(self._guarded(a, make_call(a)) for a in targets))
        outcome = WriteOutcome(record=record)
        for adapter, error in zip(targets, errors, strict=True):
            if error is None:
                outcome.written.append(adapter.name)
            else:
                logger.warning("%s of %s failed on %s: %s", action, record.id, adapter.name, error)
                outcome.failed[adapter.name] = error
        return outcome

    # ── Reads ────────────────────────────────────────────────────────────

    async def load(self) -> ReconciliationResult:
        """Query every repository concurrently and reconcile the results."""
        return await self.engine.run(self.adapters, self.timeout)

    async def find(self, key: str | NaturalKey) -> ReservationRecord | None:
        result = await self.load()
        for record in result.reservations:
            if (isinstance(key, str) and record.id == key) or record.natural_key == key:
                return record
        return None

    async def month(
        self, year: int, month: int, today: date
    ) -> tuple[list[CalendarDayAvailability], ReconciliationResult]:
        result = await self.load()
        return build_month(year, month, result.reservations, today), result

    # ── Writes ───────────────────────────────────────────────────────────

    async def book(
        self, draft: ReservationDraft, *, check_same_day: bool = True
    ) -> BookingOutcome:
        """Validate a draft and create it in every repository.

        An invalid draft is never written. Existing bookings on the same
        date are reported in ``same_day`` but do not block the booking.
        """
        validation = self.validator.validate(draft)
        if validation.record is None:
            return BookingOutcome(issues=validation.issues)

        record = validation.record
        same_day: list[str] = []
        if check_same_day:
            current = await self.load()
            same_day = [r.id for r in current.reservations if r.date == record.date]
            if same_day:
                logger.warning("Booking %s on %s joins %s", record.id, record.date, same_day)

        written = await self._write_all("create", record, lambda a: lambda: a.create(record))
        return BookingOutcome(
            **written.model_dump(exclude={"record"}),
            record=record,
            issues=validation.issues,
            same_day=same_day,
        )

    async def update(self, record: ReservationRecord) -> WriteOutcome:
        """Replace a reservation everywhere.

        The record is rebuilt from its amounts first, so stale derived fields
        can never be written.
        """
        fresh = ReservationRecord.from_amounts(**record.model_dump())
        return await self._write_all("update", fresh, lambda a: lambda: a.update(fresh))

    async def mark_paid(self, key: str | NaturalKey) -> WriteOutcome:
        record = await self.find(key)
        if record is None:
            return WriteOutcome(failed={"*": f"reservation {key} not found"})
        return await self.update(record.mark_paid())

    async def cancel(self, record: ReservationRecord) -> WriteOutcome:
        """Delete a reservation from every repository.

        Backends that do not know the id are retried with the natural key.
        """

        def make_call(adapter: RepositoryAdapter) -> Callable[[], Awaitable[None]]:
            async def call() -> None:
                try:
                    await adapter.delete(record.id)
                except NotFoundError:
                    await adapter.delete(record.natural_key)
            return call

        return await self._write_all("delete", record, make_call)

    async def propagate(self, result: ReconciliationResult) -> list[WriteOutcome]:
        """Execute a reconciliation write-back plan.

        Each missing record is created in the repositories that lacked it.
        """
        outcomes = []
        for item in result.write_back:
            targets = [a for a in (self._adapter(n) for n in item.missing_from) if a]
            record = item.record
            outcomes.append(await self._write_all(
                "propagate", record, lambda a, r=record: lambda: a.create(r), targets
            ))
        return outcomes
