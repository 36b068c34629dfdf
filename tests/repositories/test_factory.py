"""Tests for building repositories from settings."""

from partybook.config import Settings
from partybook.repositories.database import DatabaseRepository
from partybook.repositories.factory import build_repositories
from partybook.repositories.local import LocalCacheRepository
from partybook.repositories.sheets import SheetsRepository


def _settings(**overrides: object) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestBuildRepositories:
    def test_all_configured(self, db):
        settings = _settings(
            sources="database,sheets,local",
            database_url="https://db.example.com",
            database_api_key="key",
            sheets_spreadsheet_id="sheet-1",
        )
        adapters = build_repositories(settings, db)
        assert [type(a) for a in adapters] == [
            DatabaseRepository, SheetsRepository, LocalCacheRepository,
        ]
        assert [a.name for a in adapters] == ["database", "sheets", "local"]

    def test_unconfigured_backends_skipped(self, db):
        adapters = build_repositories(_settings(sources="database,sheets,local"), db)
        assert [a.name for a in adapters] == ["local"]

    def test_database_needs_key(self, db):
        settings = _settings(sources="database", database_url="https://db.example.com")
        assert build_repositories(settings, db) == []

    def test_unknown_source_skipped(self, db):
        adapters = build_repositories(_settings(sources="local, carrier-pigeon"), db)
        assert [a.name for a in adapters] == ["local"]

    def test_order_follows_configuration(self, db):
        settings = _settings(sources="local,sheets", sheets_spreadsheet_id="s")
        assert [a.name for a in build_repositories(settings, db)] == ["local", "sheets"]
