"""Tests for the REST database repository."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from partybook.models.enums import PackageTier
from partybook.models.reservation import NaturalKey
from partybook.repositories.database import (
    DatabaseConfig,
    DatabaseRepository,
    record_to_row,
    row_to_record,
)
from partybook.repositories.resilience import (
    CircuitOpenError,
    NotFoundError,
    SchemaMismatchError,
    UnavailableError,
)
from tests.factories import SATURDAY, make_record


def _db_row(**overrides: object) -> dict:
    row = {
        "id": "event_1",
        "date": SATURDAY,
        "time": "15:00",
        "customer_name": "Ana López",
        "customer_phone": "555-0101",
        "child_name": "Sofía",
        "package_type": "Kadabra",
        "total_amount": 4200,
        "deposit": 2000,
        "remaining_amount": 2200,
        "is_paid": False,
        "notes": None,
        "created_at": "2026-05-01T12:00:00+00:00",
    }
    row.update(overrides)
    return row


def _make_response(data: object, status_code: int = 200) -> MagicMock:
    response = MagicMock()
    response.json.return_value = data
    response.status_code = status_code
    response.text = str(data)
    return response


def _patch_httpx(*responses: object):
    client = AsyncMock()
    client.request = AsyncMock(side_effect=list(responses))
    patcher = patch("partybook.repositories.http.httpx.AsyncClient")
    mock_cls = patcher.start()
    mock_cls.return_value.__aenter__ = AsyncMock(return_value=client)
    mock_cls.return_value.__aexit__ = AsyncMock(return_value=False)
    return patcher, client.request


@pytest.fixture
def repo() -> DatabaseRepository:
    return DatabaseRepository(
        DatabaseConfig(url="https://db.example.com/", api_key="anon-key")
    )


# ── Row codec ────────────────────────────────────────────────────────────────


class TestRowCodec:
    def test_row_to_record(self):
        record = row_to_record(_db_row())
        assert record.package_tier is PackageTier.KADABRA
        assert record.deposit_amount == 2000
        assert record.remaining_amount == 2200
        assert record.created_at == datetime(2026, 5, 1, 12, 0, tzinfo=UTC)

    def test_stale_derived_columns_recomputed(self):
        record = row_to_record(_db_row(remaining_amount=0, is_paid=True))
        assert record.remaining_amount == 2200
        assert record.is_paid is False

    def test_timestamp_date_truncated(self):
        record = row_to_record(_db_row(date="2026-06-13T00:00:00"))
        assert record.date == SATURDAY

    def test_missing_column(self):
        row = _db_row()
        del row["package_type"]
        with pytest.raises(SchemaMismatchError, match="package_type"):
            row_to_record(row)

    def test_record_to_row_uses_column_names(self):
        row = record_to_row(make_record(notes="cake at 5"))
        assert row["package_type"] == "Abra"
        assert row["deposit"] == 1000
        assert row["remaining_amount"] == 2000
        assert row["is_paid"] is False
        assert row["notes"] == "cake at 5"
        assert "deposit_amount" not in row

    def test_record_to_row_omits_missing_created_at(self):
        assert "created_at" not in record_to_row(make_record(created_at=None))


# ── Repository ───────────────────────────────────────────────────────────────


class TestList:
    async def test_lists_rows(self, repo):
        patcher, request = _patch_httpx(_make_response([_db_row(), _db_row(id="event_2")]))
        try:
            records = await repo.list()
        finally:
            patcher.stop()

        assert [r.id for r in records] == ["event_1", "event_2"]
        method, url = request.call_args.args
        assert (method, url) == ("GET", "https://db.example.com/rest/v1/events")
        assert request.call_args.kwargs["params"] == {"select": "*", "order": "date.asc"}
        headers = request.call_args.kwargs["headers"]
        assert headers["apikey"] == "anon-key"
        assert headers["Authorization"] == "Bearer anon-key"

    async def test_undecodable_row_skipped(self, repo):
        patcher, _ = _patch_httpx(_make_response([_db_row(package_type="Gold"), _db_row(id="ok")]))
        try:
            records = await repo.list()
        finally:
            patcher.stop()
        assert [r.id for r in records] == ["ok"]

    async def test_missing_column_is_schema_mismatch(self, repo):
        row = _db_row()
        del row["total_amount"]
        patcher, _ = _patch_httpx(_make_response([row]))
        try:
            with pytest.raises(SchemaMismatchError) as info:
                await repo.list()
        finally:
            patcher.stop()
        assert info.value.source == "database"

    async def test_non_list_body(self, repo):
        patcher, _ = _patch_httpx(_make_response({"message": "oops"}))
        try:
            with pytest.raises(SchemaMismatchError):
                await repo.list()
        finally:
            patcher.stop()

    async def test_unknown_column_rejected(self, repo):
        patcher, _ = _patch_httpx(_make_response({"code": "PGRST204"}, 400))
        try:
            with pytest.raises(SchemaMismatchError):
                await repo.list()
        finally:
            patcher.stop()

    async def test_open_circuit_sheds_calls(self, repo):
        repo.breaker.fail_max = 1
        repo.breaker.reset_timeout = 60.0
        with patch.object(
            DatabaseRepository, "_send",
            AsyncMock(side_effect=UnavailableError("down", "database")),
        ):
            with pytest.raises(UnavailableError):
                await repo.list()
            with pytest.raises(CircuitOpenError):
                await repo.list()


class TestWrites:
    async def test_create_posts_row(self, repo):
        record = make_record()
        patcher, request = _patch_httpx(_make_response([record_to_row(record)], 201))
        try:
            await repo.create(record)
        finally:
            patcher.stop()
        assert request.call_args.args[0] == "POST"
        assert request.call_args.kwargs["json"]["id"] == record.id

    async def test_update_by_id(self, repo):
        record = make_record(id="event_1").mark_paid()
        patcher, request = _patch_httpx(_make_response([_db_row()]))
        try:
            await repo.update(record)
        finally:
            patcher.stop()

        assert request.call_count == 1
        kwargs = request.call_args.kwargs
        assert request.call_args.args[0] == "PATCH"
        assert kwargs["params"] == {"id": "eq.event_1"}
        assert kwargs["json"]["is_paid"] is True
        assert "id" not in kwargs["json"]
        assert "created_at" not in kwargs["json"]

    async def test_update_falls_back_to_natural_key(self, repo):
        record = make_record(id="event_new")
        patcher, request = _patch_httpx(_make_response([]), _make_response([_db_row()]))
        try:
            await repo.update(record)
        finally:
            patcher.stop()
        assert request.call_args.kwargs["params"] == {
            "date": f"eq.{SATURDAY}",
            "customer_name": "ilike.ana lópez",
            "customer_phone": "ilike.555-0101",
        }

    async def test_natural_key_wildcards_escaped(self, repo):
        key = NaturalKey.of(SATURDAY, "50%_off*", "555\\0101")
        patcher, request = _patch_httpx(_make_response([_db_row()]))
        try:
            await repo.delete(key)
        finally:
            patcher.stop()
        params = request.call_args.kwargs["params"]
        assert params["customer_name"] == "ilike.50\\%\\_off_"
        assert params["customer_phone"] == "ilike.555\\\\0101"

    async def test_update_missing(self, repo):
        patcher, _ = _patch_httpx(_make_response([]), _make_response([]))
        try:
            with pytest.raises(NotFoundError):
                await repo.update(make_record())
        finally:
            patcher.stop()

    async def test_delete_by_natural_key(self, repo):
        key = NaturalKey.of(SATURDAY, "Ana López", "555-0101")
        patcher, request = _patch_httpx(_make_response([_db_row()]))
        try:
            await repo.delete(key)
        finally:
            patcher.stop()
        assert request.call_args.args[0] == "DELETE"
        assert request.call_args.kwargs["params"]["date"] == f"eq.{SATURDAY}"

    async def test_delete_nothing_matched(self, repo):
        patcher, _ = _patch_httpx(_make_response([]))
        try:
            with pytest.raises(NotFoundError):
                await repo.delete("event_404")
        finally:
            patcher.stop()


class TestTransport:
    async def test_transport_error_is_unavailable_after_retries(self, repo):
        with (
            patch("partybook.repositories.http.httpx.AsyncClient") as mock_cls,
            patch("asyncio.sleep", new=AsyncMock()),
        ):
            client = AsyncMock()
            client.request = AsyncMock(side_effect=httpx.ConnectError("refused"))
            mock_cls.return_value.__aenter__ = AsyncMock(return_value=client)
            mock_cls.return_value.__aexit__ = AsyncMock(return_value=False)
            with pytest.raises(UnavailableError, match="refused"):
                await repo.list()
        assert client.request.call_count == 3
