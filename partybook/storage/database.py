import logging
from datetime import datetime
from pathlib import Path

import aiosqlite

from partybook.models.enums import PackageTier
from partybook.models.reservation import NaturalKey, ReservationRecord

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Async SQLite database manager with typed repository methods.

    All SQL in the application lives in this class. Other layers
    call typed methods that accept and return Pydantic models.
    Only the two amounts are stored; ``remaining_amount`` and ``is_paid``
    are derived when rows are read back.
    """

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = str(db_path)
        self.connection: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        """Open connection, enable WAL mode, execute schema."""
        self.connection = await aiosqlite.connect(self.db_path)
        self.connection.row_factory = aiosqlite.Row
        schema_path = Path(__file__).parent / "schema.sql"
        await self.connection.executescript(schema_path.read_text())
        await self.connection.execute("PRAGMA journal_mode=WAL")
        await self.connection.commit()
        logger.info("Database initialized at %s", self.db_path)

    async def close(self) -> None:
        """Close the database connection."""
        if self.connection:
            await self.connection.close()
            self.connection = None

    async def __aenter__(self) -> "DatabaseManager":
        await self.initialize()
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: Exception | None, exc_tb: object
    ) -> None:
        await self.close()

    async def execute(self, sql: str, params: tuple = ()) -> aiosqlite.Cursor:
        """Execute a single SQL statement and commit."""
        assert self.connection is not None
        cursor = await self.connection.execute(sql, params)
        await self.connection.commit()
        return cursor

    async def fetch_one(self, sql: str, params: tuple = ()) -> dict | None:
        """Execute a query and return a single row as a dict, or None."""
        assert self.connection is not None
        cursor = await self.connection.execute(sql, params)
        row = await cursor.fetchone()
        if row is None:
            return None
        return dict(row)

    async def fetch_all(self, sql: str, params: tuple = ()) -> list[dict]:
        """Execute a query and return all rows as list of dicts."""
        assert self.connection is not None
        cursor = await self.connection.execute(sql, params)
        rows = await cursor.fetchall()
        return [dict(r) for r in rows]

    # ── Reservations ──────────────────────────────────────────────────────

    @staticmethod
    def _row_to_reservation(row: dict) -> ReservationRecord:
        return ReservationRecord.from_amounts(
            total_amount=row["total_amount"],
            deposit_amount=row["deposit_amount"],
            id=row["id"],
            date=row["date"],
            time=row["time"],
            customer_name=row["customer_name"],
            customer_phone=row["customer_phone"],
            child_name=row["child_name"],
            package_tier=PackageTier(row["package_tier"]),
            notes=row["notes"],
            created_at=datetime.fromisoformat(row["created_at"]) if row["created_at"] else None,
        )

    async def save_reservation(self, record: ReservationRecord) -> None:
        """Insert or replace a reservation keyed by id."""
        await self.execute(
            """INSERT OR REPLACE INTO reservations
               (id, date, time, customer_name, customer_phone, child_name,
                package_tier, total_amount, deposit_amount, notes, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                record.id,
                record.date,
                record.time,
                record.customer_name,
                record.customer_phone,
                record.child_name,
                record.package_tier.value,
                record.total_amount,
                record.deposit_amount,
                record.notes,
                record.created_at.isoformat() if record.created_at else None,
            ),
        )

    async def get_reservation(self, reservation_id: str) -> ReservationRecord | None:
        row = await self.fetch_one("SELECT * FROM reservations WHERE id = ?", (reservation_id,))
        return self._row_to_reservation(row) if row else None

    async def get_reservations(self) -> list[ReservationRecord]:
        rows = await self.fetch_all("SELECT * FROM reservations ORDER BY date, id")
        return [self._row_to_reservation(r) for r in rows]

    async def _ids_for_natural_key(self, key: NaturalKey) -> list[str]:
        # SQLite's lower() only folds ASCII, so compare normalised keys here
        rows = await self.fetch_all(
            "SELECT * FROM reservations WHERE date = ? ORDER BY id", (key.date,)
        )
        return [
            row["id"] for row in rows
            if self._row_to_reservation(row).natural_key == key
        ]

    async def find_by_natural_key(self, key: NaturalKey) -> ReservationRecord | None:
        ids = await self._ids_for_natural_key(key)
        return await self.get_reservation(ids[0]) if ids else None

    async def delete_reservation(self, reservation_id: str) -> bool:
        cursor = await self.execute("DELETE FROM reservations WHERE id = ?", (reservation_id,))
        return cursor.rowcount > 0

    async def delete_by_natural_key(self, key: NaturalKey) -> bool:
        deleted = False
        for reservation_id in await self._ids_for_natural_key(key):
            deleted = await self.delete_reservation(reservation_id) or deleted
        return deleted
