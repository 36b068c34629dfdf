"""On-device reservation cache backed by the local SQLite database."""

import logging

import aiosqlite

from partybook.models.reservation import NaturalKey, ReservationRecord
from partybook.repositories.base import RepositoryAdapter
from partybook.repositories.resilience import NotFoundError, UnavailableError
from partybook.storage.database import DatabaseManager

logger = logging.getLogger(__name__)


class LocalCacheRepository(RepositoryAdapter):
    """Repository over :class:`DatabaseManager`'s reservations table.

    ``create`` upserts so that propagating a record twice is harmless.
    """

    def __init__(self, db: DatabaseManager, name: str = "local") -> None:
        self.db = db
        self.name = name

    async def list(self) -> list[ReservationRecord]:
        try:
            return await self.db.get_reservations()
        except aiosqlite.Error as exc:
            raise UnavailableError(f"Local cache read failed: {exc}", self.name) from exc

    async def create(self, record: ReservationRecord) -> None:
        try:
            await self.db.save_reservation(record)
        except aiosqlite.Error as exc:
            raise UnavailableError(f"Local cache write failed: {exc}", self.name) from exc

    async def update(self, record: ReservationRecord) -> None:
        try:
            existing = await self.db.get_reservation(record.id)
            if existing is None:
                existing = await self.db.find_by_natural_key(record.natural_key)
                if existing is None:
                    raise NotFoundError(f"No cached reservation {record.id}", self.name)
                # Replace the copy stored under its old id
                await self.db.delete_reservation(existing.id)
            await self.db.save_reservation(record)
        except aiosqlite.Error as exc:
            raise UnavailableError(f"Local cache write failed: {exc}", self.name) from exc

    async def delete(self, key: str | NaturalKey) -> None:
        try:
            if isinstance(key, str):
                deleted = await self.db.delete_reservation(key)
            else:
                deleted = await self.db.delete_by_natural_key(key)
        except aiosqlite.Error as exc:
            raise UnavailableError(f"Local cache delete failed: {exc}", self.name) from exc
        if not deleted:
            raise NotFoundError(f"No cached reservation for {key}", self.name)
