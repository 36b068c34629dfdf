"""Build the configured set of repository adapters."""

import logging

from partybook.config import Settings
from partybook.models.enums import SourceKind
from partybook.repositories.base import RepositoryAdapter
from partybook.repositories.database import DatabaseRepository
from partybook.repositories.local import LocalCacheRepository
from partybook.repositories.sheets import SheetsRepository
from partybook.storage.database import DatabaseManager

logger = logging.getLogger(__name__)


def build_repositories(settings: Settings, db: DatabaseManager) -> list[RepositoryAdapter]:
    """Instantiate one adapter per name in ``settings.sources``.

    Unknown names and backends missing their connection settings are
    skipped with a warning.
    """
    adapters: list[RepositoryAdapter] = []
    for name in settings.source_names:
        if name == SourceKind.LOCAL:
            adapters.append(LocalCacheRepository(db, name=name))
        elif name == SourceKind.SHEETS:
            sheets = settings.sheets_config()
            if sheets is None:
                logger.warning("Source '%s' enabled but no spreadsheet id configured", name)
                continue
            adapters.append(SheetsRepository(sheets, name=name))
        elif name == SourceKind.DATABASE:
            database = settings.database_config()
            if database is None:
                logger.warning("Source '%s' enabled but database URL/key missing", name)
                continue
            adapters.append(DatabaseRepository(database, name=name))
        else:
            logger.warning("Unknown source '%s' in configuration; skipping", name)
    logger.info("Active sources: %s", [a.name for a in adapters])
    return adapters
