from pydantic import BaseModel

from partybook.models.enums import ConflictKind, RepositoryErrorKind
from partybook.models.reservation import ReservationRecord


class SourceUnavailable(BaseModel):
    """A source whose listing failed, timed out, or was cancelled."""

    source: str
    kind: RepositoryErrorKind = RepositoryErrorKind.UNAVAILABLE
    message: str


class SourceResult(BaseModel):
    """One source's listing: records on success, ``error`` on failure.

    ``skipped`` counts rows the source holds but could not decode.
    """

    source: str
    records: list[ReservationRecord] = []
    skipped: int = 0
    error: SourceUnavailable | None = None

    @property
    def available(self) -> bool:
        return self.error is None


class Conflict(BaseModel):
    """A data-quality finding.

    ``fields`` maps each contended field to the value seen per record id
    (double bookings) or per source (divergent duplicates).
    """

    kind: ConflictKind
    date: str
    record_ids: list[str]
    sources: list[str]
    fields: dict[str, dict[str, str]] = {}


class WriteBackItem(BaseModel):
    record: ReservationRecord
    missing_from: list[str]


class ReconciliationResult(BaseModel):
    reservations: list[ReservationRecord] = []
    conflicts: list[Conflict] = []
    unavailable: list[SourceUnavailable] = []
    write_back: list[WriteBackItem] = []
    # Undecodable row counts per source; such sources get no write-back
    skipped: dict[str, int] = {}

    @property
    def double_bookings(self) -> list[Conflict]:
        return [c for c in self.conflicts if c.kind == ConflictKind.DOUBLE_BOOKING]
