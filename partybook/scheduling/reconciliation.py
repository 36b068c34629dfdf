"""Merge reservation listings from several backends into one authoritative view.

Sources are fetched concurrently, each under its own timeout; a source that
fails, times out, or is cancelled contributes nothing and is reported as
unavailable. Records are matched across sources by id, falling back to the
natural key ``(date, customer name, customer phone)``. The copy from the
highest-priority source wins and inherits optional fields (``notes``) that
only lower-priority copies carry.
"""

import asyncio
import logging
from collections import defaultdict
from collections.abc import Sequence

from partybook.models.enums import ConflictKind, RepositoryErrorKind, SourceKind
from partybook.models.reconciliation import (
    Conflict,
    ReconciliationResult,
    SourceResult,
    SourceUnavailable,
    WriteBackItem,
)
from partybook.models.reservation import NaturalKey, ReservationRecord
from partybook.repositories.base import RepositoryAdapter
from partybook.repositories.resilience import RepositoryError

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY: tuple[str, ...] = (
    SourceKind.DATABASE.value,
    SourceKind.SHEETS.value,
    SourceKind.LOCAL.value,
)

# Filled from lower-priority copies when the winner lacks them
OPTIONAL_FIELDS = ("notes",)

# Compared across matched copies to report divergent duplicates
COMPARED_FIELDS = (
    "date", "time", "customer_name", "customer_phone", "child_name",
    "package_tier", "total_amount", "deposit_amount",
)


# ── Fetching ─────────────────────────────────────────────────────────────────


async def fetch_source(adapter: RepositoryAdapter, timeout: float) -> SourceResult:
    """List one adapter, converting every failure mode into ``SourceUnavailable``."""
    try:
        records = await asyncio.wait_for(adapter.list(), timeout)
    except TimeoutError:
        message = f"timed out after {timeout:g}s"
        kind = RepositoryErrorKind.UNAVAILABLE
    except asyncio.CancelledError:
        task = asyncio.current_task()
        if task is not None and task.cancelling():
            raise
        message = "listing was cancelled"
        kind = RepositoryErrorKind.UNAVAILABLE
    except RepositoryError as exc:
        message = exc.message
        kind = exc.kind
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected error listing %s", adapter.name)
        message = f"{type(exc).__name__}: {exc}"
        kind = RepositoryErrorKind.UNAVAILABLE
    else:
        return SourceResult(source=adapter.name, records=records, skipped=adapter.skipped)

    logger.warning("Source %s unavailable (%s): %s", adapter.name, kind, message)
    return SourceResult(
        source=adapter.name,
        error=SourceUnavailable(source=adapter.name, kind=kind, message=message),
    )


async def fetch_all(
    adapters: Sequence[RepositoryAdapter], timeout: float
) -> list[SourceResult]:
    """Fan out ``list()`` to every adapter at once and wait for all to settle."""
    return list(await asyncio.gather(*(fetch_source(a, timeout) for a in adapters)))


# ── Merging ──────────────────────────────────────────────────────────────────


class _Cluster:
    """All copies of one reservation, highest-priority copy first."""

    def __init__(self, source: str, record: ReservationRecord) -> None:
        self.copies: list[tuple[str, ReservationRecord]] = [(source, record)]
        # Sources whose id-matched copy is pending; blocks key matches
        self.claimed: set[str] = set()

    @property
    def sources(self) -> set[str]:
        return {s for s, _ in self.copies}

    def add(self, source: str, record: ReservationRecord) -> None:
        self.copies.append((source, record))

    def merged(self) -> ReservationRecord:
        winner = self.copies[0][1]
        update: dict[str, object] = {}
        for field in OPTIONAL_FIELDS:
            if getattr(winner, field):
                continue
            for _, other in self.copies[1:]:
                if getattr(other, field):
                    update[field] = getattr(other, field)
                    break
        return winner.model_copy(update=update) if update else winner

    def divergent_fields(self) -> dict[str, dict[str, str]]:
        if len(self.copies) < 2:
            return {}
        fields: dict[str, dict[str, str]] = {}
        for field in COMPARED_FIELDS:
            seen = {source: _comparable(record, field) for source, record in self.copies}
            if len(set(seen.values())) > 1:
                fields[field] = {
                    source: str(getattr(record, field)) for source, record in self.copies
                }
        return fields


def _comparable(record: ReservationRecord, field: str) -> str:
    value = str(getattr(record, field))
    if field in ("customer_name", "customer_phone"):
        return value.strip().lower()
    return value


class ReconciliationEngine:
    """Deterministic merge of per-source listings.

    Args:
        priority: Source names from most to least authoritative. Sources not
            listed rank after all listed ones, ordered by name, so the order
            is always total.
    """

    def __init__(self, priority: Sequence[str] = DEFAULT_PRIORITY) -> None:
        self.priority = tuple(priority)

    def _rank(self, source: str) -> tuple[int, str]:
        if source in self.priority:
            return (self.priority.index(source), source)
        return (len(self.priority), source)

    async def run(
        self, adapters: Sequence[RepositoryAdapter], timeout: float
    ) -> ReconciliationResult:
        """Fetch from every adapter concurrently, then reconcile."""
        return self.reconcile(await fetch_all(adapters, timeout))

    def reconcile(self, results: Sequence[SourceResult]) -> ReconciliationResult:
        ordered = sorted(results, key=lambda r: self._rank(r.source))
        unavailable = [r.error for r in ordered if r.error is not None]
        available = [r.source for r in ordered if r.error is None]

        clusters: list[_Cluster] = []
        by_id: dict[str, list[_Cluster]] = defaultdict(list)
        by_key: dict[NaturalKey, list[_Cluster]] = defaultdict(list)

        for result in ordered:
            if result.error is not None:
                continue
            records = sorted(result.records, key=lambda r: (r.date, r.id))
            placed: list[tuple[ReservationRecord, _Cluster | None]] = []
            # Id matches are settled for the whole source before any
            # natural-key match can claim a cluster.
            for record in records:
                placed.append((record, self._match_id(result.source, record, by_id)))
            for record, cluster in placed:
                if cluster is None:
                    cluster = self._match_key(result.source, record, by_key)
                if cluster is None:
                    cluster = _Cluster(result.source, record)
                    clusters.append(cluster)
                else:
                    cluster.add(result.source, record)
                by_id[record.id].append(cluster)
                by_key[record.natural_key].append(cluster)

        merged = [(cluster.merged(), cluster) for cluster in clusters]
        merged.sort(key=lambda pair: (pair[0].date, pair[0].id))

        conflicts = self._divergent(merged) + self._double_bookings(merged)
        conflicts.sort(key=lambda c: (c.date, c.kind.value, c.record_ids))

        skipped = {r.source: r.skipped for r in ordered if r.error is None and r.skipped}
        for source, count in skipped.items():
            logger.warning(
                "%s skipped %d unreadable rows; excluded from write-back", source, count
            )
        targets = [s for s in available if s not in skipped]
        write_back = []
        for record, cluster in merged:
            missing = [s for s in targets if s not in cluster.sources]
            if missing:
                write_back.append(WriteBackItem(record=record, missing_from=missing))

        logger.info(
            "Reconciled %d reservations from %d sources (%d unavailable, %d conflicts)",
            len(merged), len(available), len(unavailable), len(conflicts),
        )
        return ReconciliationResult(
            reservations=[record for record, _ in merged],
            conflicts=conflicts,
            unavailable=unavailable,
            write_back=write_back,
            skipped=skipped,
        )

    # A cluster already holding a copy from this source is a different
    # booking: a source never lists the same reservation twice.
    @staticmethod
    def _match_id(
        source: str, record: ReservationRecord, by_id: dict[str, list[_Cluster]]
    ) -> _Cluster | None:
        for cluster in by_id.get(record.id, []):
            if source not in cluster.sources and source not in cluster.claimed:
                cluster.claimed.add(source)
                return cluster
        return None

    @staticmethod
    def _match_key(
        source: str, record: ReservationRecord, by_key: dict[NaturalKey, list[_Cluster]]
    ) -> _Cluster | None:
        for cluster in by_key.get(record.natural_key, []):
            if source not in cluster.sources and source not in cluster.claimed:
                return cluster
        return None

    @staticmethod
    def _divergent(
        merged: list[tuple[ReservationRecord, _Cluster]],
    ) -> list[Conflict]:
        conflicts = []
        for record, cluster in merged:
            fields = cluster.divergent_fields()
            if fields:
                conflicts.append(Conflict(
                    kind=ConflictKind.DIVERGENT_DUPLICATE,
                    date=record.date,
                    record_ids=sorted({r.id for _, r in cluster.copies}),
                    sources=[s for s, _ in cluster.copies],
                    fields=fields,
                ))
        return conflicts

    @staticmethod
    def _double_bookings(
        merged: list[tuple[ReservationRecord, _Cluster]],
    ) -> list[Conflict]:
        by_date: dict[str, list[tuple[ReservationRecord, _Cluster]]] = defaultdict(list)
        for record, cluster in merged:
            by_date[record.date].append((record, cluster))

        conflicts = []
        for day, entries in by_date.items():
            if len(entries) < 2:
                continue
            sources = sorted({s for _, c in entries for s in c.sources})
            conflicts.append(Conflict(
                kind=ConflictKind.DOUBLE_BOOKING,
                date=day,
                record_ids=[r.id for r, _ in entries],
                sources=sources,
                fields={
                    "customer_name": {r.id: r.customer_name for r, _ in entries},
                    "customer_phone": {r.id: r.customer_phone for r, _ in entries},
                    "package_tier": {r.id: r.package_tier.value for r, _ in entries},
                },
            ))
            logger.warning("Double booking on %s: %s", day, [r.id for r, _ in entries])
        return conflicts
