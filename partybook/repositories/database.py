"""Hosted relational backend reached through its PostgREST-style REST API."""

import logging
from datetime import datetime

from pydantic import BaseModel

from partybook.models.reservation import NaturalKey, ReservationRecord
from partybook.repositories.http import HttpRepository
from partybook.repositories.resilience import NotFoundError, SchemaMismatchError
from partybook.scheduling.pricing import UnknownPackageTier, parse_tier

logger = logging.getLogger(__name__)

# Record field → table column
COLUMN_MAP: dict[str, str] = {
    "id": "id",
    "date": "date",
    "time": "time",
    "customer_name": "customer_name",
    "customer_phone": "customer_phone",
    "child_name": "child_name",
    "package_tier": "package_type",
    "total_amount": "total_amount",
    "deposit_amount": "deposit",
    "remaining_amount": "remaining_amount",
    "is_paid": "is_paid",
    "notes": "notes",
    "created_at": "created_at",
}

_REQUIRED_COLUMNS = (
    "id", "date", "time", "customer_name", "customer_phone",
    "child_name", "package_type", "total_amount",
)


class DatabaseConfig(BaseModel):
    url: str
    api_key: str
    table: str = "events"
    timeout: float = 30.0


def row_to_record(row: dict) -> ReservationRecord:
    """Decode a table row.

    Stored ``remaining_amount``/``is_paid`` are ignored and recomputed from
    the amounts.

    Raises:
        SchemaMismatchError: If a required column is absent.
        ValueError: If a value cannot be decoded.
    """
    missing = [c for c in _REQUIRED_COLUMNS if c not in row]
    if missing:
        raise SchemaMismatchError(f"Missing columns in row: {missing}")

    total = int(row["total_amount"] or 0)
    deposit = int(row.get("deposit") or 0)
    if row.get("remaining_amount") is not None and row["remaining_amount"] != total - deposit:
        logger.debug("Row %s has stale remaining_amount; recomputing", row["id"])

    created_at = row.get("created_at")
    return ReservationRecord.from_amounts(
        total_amount=total,
        deposit_amount=deposit,
        id=str(row["id"]),
        date=str(row["date"])[:10],
        time=str(row["time"] or ""),
        customer_name=row["customer_name"] or "",
        customer_phone=row["customer_phone"] or "",
        child_name=row["child_name"] or "",
        package_tier=parse_tier(row["package_type"]),
        notes=row.get("notes") or None,
        created_at=datetime.fromisoformat(created_at) if created_at else None,
    )


def record_to_row(record: ReservationRecord) -> dict:
    data = record.model_dump(mode="json")
    row = {COLUMN_MAP[k]: v for k, v in data.items() if k in COLUMN_MAP}
    if record.created_at is None:
        row.pop("created_at")
    return row


def _like_literal(value: str) -> str:
    """Escape LIKE wildcards so an ``ilike`` filter compares literally.

    PostgREST rewrites every ``*`` to ``%`` before escaping applies, so a
    literal asterisk is matched with the single-character ``_`` instead.
    """
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return escaped.replace("*", "_")


class DatabaseRepository(HttpRepository):
    """Reservations in a REST-exposed ``events`` table.

    Args:
        config: Base URL, API key and table name.
        name: Source name.
    """

    def __init__(self, config: DatabaseConfig, name: str = "database") -> None:
        super().__init__(name, timeout=config.timeout)
        self.config = config

    @property
    def table_url(self) -> str:
        return f"{self.config.url.rstrip('/')}/rest/v1/{self.config.table}"

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["apikey"] = self.config.api_key
        headers["Authorization"] = f"Bearer {self.config.api_key}"
        headers["Prefer"] = "return=representation"
        return headers

    @staticmethod
    def _filter(key: str | NaturalKey) -> dict[str, str]:
        if isinstance(key, str):
            return {"id": f"eq.{key}"}
        return {
            "date": f"eq.{key.date}",
            "customer_name": f"ilike.{_like_literal(key.customer_name)}",
            "customer_phone": f"ilike.{_like_literal(key.customer_phone)}",
        }

    async def list(self) -> list[ReservationRecord]:
        response = await self._request(
            "GET", self.table_url, params={"select": "*", "order": "date.asc"}
        )
        rows = response.json()
        if not isinstance(rows, list):
            raise SchemaMismatchError("Expected a JSON array of rows", self.name)

        records: list[ReservationRecord] = []
        for row in rows:
            try:
                records.append(row_to_record(row))
            except SchemaMismatchError as exc:
                raise SchemaMismatchError(exc.message, self.name) from exc
            except (ValueError, UnknownPackageTier) as exc:
                logger.warning("Skipping %s row %s: %s", self.name, row.get("id"), exc)
        logger.info("Loaded %d reservations from %s", len(records), self.name)
        return records

    async def create(self, record: ReservationRecord) -> None:
        await self._request("POST", self.table_url, json=record_to_row(record))
        logger.info("Inserted reservation %s into %s", record.id, self.name)

    async def _patch(self, key: str | NaturalKey, row: dict) -> list:
        response = await self._request(
            "PATCH", self.table_url, params=self._filter(key), json=row
        )
        return response.json() or []

    async def update(self, record: ReservationRecord) -> None:
        row = record_to_row(record)
        row.pop("id")
        row.pop("created_at", None)
        if await self._patch(record.id, row):
            return
        if await self._patch(record.natural_key, row):
            return
        raise NotFoundError(f"No row for reservation {record.id}", self.name)

    async def delete(self, key: str | NaturalKey) -> None:
        response = await self._request("DELETE", self.table_url, params=self._filter(key))
        if not response.json():
            raise NotFoundError(f"No row for {key}", self.name)
        logger.info("Deleted %s from %s", key, self.name)
