"""Spreadsheet-backed reservation repository (Google Sheets values API).

Rows carry no identifier; each row's id is synthesized from its position
(``sheet_<n>`` where ``n`` counts data rows below the header). Clearing a
row leaves a blank line in place, so ids of other rows stay stable.
"""

import logging
import re

from pydantic import BaseModel

from partybook.models.reservation import NaturalKey, ReservationRecord
from partybook.repositories.http import HttpRepository
from partybook.repositories.resilience import NotFoundError, SchemaMismatchError
from partybook.scheduling.dates import parse_iso_date
from partybook.scheduling.pricing import UnknownPackageTier, parse_tier

logger = logging.getLogger(__name__)

# Column letter → position in a row (range A:I)
COLUMNS = {
    "date": 0,          # A
    "customer": 1,      # B  "Customer (Child)"
    "phone": 2,         # C
    "package": 3,       # D
    "status": 4,        # E  Pagado / Pendiente
    "deposit": 5,       # F
    "total": 6,         # G
    "paid_on": 7,       # H
    "notified": 8,      # I
}
ROW_WIDTH = len(COLUMNS)

STATUS_PAID = "Pagado"
STATUS_PENDING = "Pendiente"
DEFAULT_TIME = "15:00"
ID_PREFIX = "sheet_"

_CUSTOMER_CHILD = re.compile(r"^(.+?)\s*\((.+?)\)$")


class SheetsConfig(BaseModel):
    spreadsheet_id: str
    range: str = "Sheet1!A:I"
    api_key: str | None = None
    access_token: str | None = None
    base_url: str = "https://sheets.googleapis.com/v4/spreadsheets"
    timeout: float = 30.0

    @property
    def sheet_name(self) -> str:
        return self.range.split("!", 1)[0]


def _cell(row: list, column: str) -> str:
    idx = COLUMNS[column]
    return str(row[idx]).strip() if idx < len(row) and row[idx] is not None else ""


def _amount(text: str) -> int:
    return int(round(float(text or "0")))


def row_to_record(row: list, index: int) -> ReservationRecord | None:
    """Decode one data row. Returns None for blank or cleared rows.

    Raises:
        ValueError: If the row has content that cannot be decoded.
    """
    raw_date = _cell(row, "date")
    raw_name = _cell(row, "customer")
    if not raw_date or not raw_name:
        return None

    match = _CUSTOMER_CHILD.match(raw_name)
    customer, child = (match.group(1).strip(), match.group(2).strip()) if match else (raw_name, "")

    record = ReservationRecord.from_amounts(
        total_amount=_amount(_cell(row, "total")),
        deposit_amount=_amount(_cell(row, "deposit")),
        id=f"{ID_PREFIX}{index}",
        date=parse_iso_date(raw_date).isoformat(),
        time=DEFAULT_TIME,
        customer_name=customer,
        customer_phone=_cell(row, "phone"),
        child_name=child,
        package_tier=parse_tier(_cell(row, "package")),
    )
    status_paid = _cell(row, "status").lower() == STATUS_PAID.lower()
    if status_paid != record.is_paid:
        # Amounts are authoritative; the status column is recomputed on write.
        logger.debug(
            "Row %d status '%s' disagrees with amounts; using amounts",
            index, _cell(row, "status"),
        )
    return record


def record_to_row(record: ReservationRecord) -> list[str]:
    return [
        record.date,
        f"{record.customer_name or 'Sin nombre'} ({record.child_name or 'Sin nombre'})",
        record.customer_phone,
        record.package_tier.value,
        STATUS_PAID if record.is_paid else STATUS_PENDING,
        str(record.deposit_amount),
        str(record.total_amount),
        record.date if record.is_paid else "",
        "No",
    ]


class SheetsRepository(HttpRepository):
    """Reservation rows in a spreadsheet range.

    Args:
        config: Spreadsheet id, range and credentials.
        name: Source name.
    """

    def __init__(self, config: SheetsConfig, name: str = "sheets") -> None:
        super().__init__(name, timeout=config.timeout)
        self.config = config

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        if self.config.access_token:
            headers["Authorization"] = f"Bearer {self.config.access_token}"
        return headers

    def _params(self, **extra: str) -> dict[str, str]:
        params = dict(extra)
        if self.config.api_key:
            params["key"] = self.config.api_key
        return params

    def _values_url(self, range_: str) -> str:
        return f"{self.config.base_url}/{self.config.spreadsheet_id}/values/{range_}"

    def _row_range(self, index: int) -> str:
        # +1 for the header row, +1 for 1-based row numbers
        row_number = index + 2
        last_column = chr(ord("A") + ROW_WIDTH - 1)
        return f"{self.config.sheet_name}!A{row_number}:{last_column}{row_number}"

    async def _fetch_rows(self) -> list[list]:
        response = await self._request(
            "GET", self._values_url(self.config.range), params=self._params()
        )
        data = response.json()
        if not isinstance(data, dict):
            raise SchemaMismatchError("Expected object from values endpoint", self.name)
        values = data.get("values") or []
        return values[1:]  # skip header

    async def list(self) -> list[ReservationRecord]:
        records: list[ReservationRecord] = []
        skipped = 0
        for index, row in enumerate(await self._fetch_rows()):
            try:
                record = row_to_record(row, index)
            except (ValueError, UnknownPackageTier) as exc:
                logger.warning("Skipping sheet row %d: %s", index, exc)
                skipped += 1
                continue
            if record is not None:
                records.append(record)
        self.skipped = skipped
        logger.info("Loaded %d reservations from %s", len(records), self.name)
        return records

    async def _locate(self, key: str | NaturalKey) -> int:
        """Return the data-row index for an id or natural key."""
        rows = await self._fetch_rows()
        decoded: dict[int, ReservationRecord] = {}
        for index, row in enumerate(rows):
            try:
                record = row_to_record(row, index)
            except (ValueError, UnknownPackageTier):
                continue
            if record is not None:
                decoded[index] = record

        if isinstance(key, str):
            for index, record in decoded.items():
                if record.id == key:
                    return index
        else:
            for index, record in decoded.items():
                if record.natural_key == key:
                    return index
        raise NotFoundError(f"No sheet row for {key}", self.name)

    async def create(self, record: ReservationRecord) -> None:
        await self._request(
            "POST",
            f"{self._values_url(self.config.range)}:append",
            params=self._params(valueInputOption="RAW"),
            json={"values": [record_to_row(record)]},
        )
        logger.info("Appended reservation %s on %s to %s", record.id, record.date, self.name)

    async def update(self, record: ReservationRecord) -> None:
        try:
            index = await self._locate(record.id)
        except NotFoundError:
            index = await self._locate(record.natural_key)
        await self._request(
            "PUT",
            self._values_url(self._row_range(index)),
            params=self._params(valueInputOption="RAW"),
            json={"values": [record_to_row(record)]},
        )

    async def delete(self, key: str | NaturalKey) -> None:
        index = await self._locate(key)
        await self._request(
            "POST",
            f"{self._values_url(self._row_range(index))}:clear",
            params=self._params(),
        )
        logger.info("Cleared sheet row %d in %s", index, self.name)
