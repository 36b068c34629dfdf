import asyncio
from datetime import UTC, datetime
from uuid import uuid4

from partybook.models.enums import PackageTier
from partybook.models.reconciliation import SourceResult, SourceUnavailable
from partybook.models.reservation import NaturalKey, ReservationDraft, ReservationRecord
from partybook.repositories.base import RepositoryAdapter
from partybook.repositories.resilience import NotFoundError

# 2026-06-13 is a Saturday, 2026-06-10 a Wednesday
WEEKDAY = "2026-06-10"
SATURDAY = "2026-06-13"


def make_record(**overrides: object) -> ReservationRecord:
    defaults: dict = {
        "id": f"event_{uuid4().hex[:8]}",
        "date": SATURDAY,
        "time": "15:00",
        "customer_name": "Ana López",
        "customer_phone": "555-0101",
        "child_name": "Sofía",
        "package_tier": PackageTier.ABRA,
        "total_amount": 3000,
        "deposit_amount": 1000,
        "created_at": datetime(2026, 5, 1, 12, 0, tzinfo=UTC),
    }
    defaults.update(overrides)
    return ReservationRecord.from_amounts(**defaults)


def make_draft(**overrides: object) -> ReservationDraft:
    defaults: dict = {
        "date": SATURDAY,
        "time": "15:00",
        "customer_name": "Ana López",
        "customer_phone": "555-0101",
        "child_name": "Sofía",
        "package_tier": "Abra",
        "total_amount": 3000,
        "deposit_amount": 1000,
    }
    defaults.update(overrides)
    return ReservationDraft(**defaults)


def make_result(source: str, *records: ReservationRecord) -> SourceResult:
    return SourceResult(source=source, records=list(records))


def make_failed(source: str, message: str = "connection refused") -> SourceResult:
    return SourceResult(
        source=source, error=SourceUnavailable(source=source, message=message)
    )


class FakeRepository(RepositoryAdapter):
    """In-memory adapter keyed by id, with optional injected failures."""

    def __init__(
        self,
        name: str,
        records: list[ReservationRecord] | None = None,
        *,
        fail_with: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.name = name
        self.records = {r.id: r for r in records or []}
        self.fail_with = fail_with
        self.delay = delay
        self.calls: list[tuple[str, object]] = []

    async def _maybe_fail(self) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with

    async def list(self) -> list[ReservationRecord]:
        self.calls.append(("list", None))
        await self._maybe_fail()
        return list(self.records.values())

    async def create(self, record: ReservationRecord) -> None:
        self.calls.append(("create", record.id))
        await self._maybe_fail()
        self.records[record.id] = record

    async def update(self, record: ReservationRecord) -> None:
        self.calls.append(("update", record.id))
        await self._maybe_fail()
        if record.id in self.records:
            self.records[record.id] = record
            return
        for rid, existing in list(self.records.items()):
            if existing.natural_key == record.natural_key:
                del self.records[rid]
                self.records[record.id] = record
                return
        raise NotFoundError(f"missing {record.id}", self.name)

    async def delete(self, key: str | NaturalKey) -> None:
        self.calls.append(("delete", key))
        await self._maybe_fail()
        for rid, existing in list(self.records.items()):
            if rid == key or existing.natural_key == key:
                del self.records[rid]
                return
        raise NotFoundError(f"missing {key}", self.name)
