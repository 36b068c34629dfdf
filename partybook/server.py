import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastmcp import FastMCP

from partybook.service import ReservationService
from partybook.storage.database import DatabaseManager

logger = logging.getLogger(__name__)

_db: DatabaseManager | None = None
_service: ReservationService | None = None


def get_service() -> ReservationService:
    """Get the current ReservationService. Raises if not initialized."""
    if _service is None:
        raise RuntimeError("Service not initialized. Server lifespan has not started.")
    return _service


def _reset_service() -> None:
    """Clear the module-level references. Used in tests."""
    global _db, _service  # noqa: PLW0603
    _db = None
    _service = None


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[dict]:
    """Open the local cache and wire the configured repositories."""
    global _db, _service  # noqa: PLW0603
    from partybook.config import get_settings
    from partybook.repositories.factory import build_repositories

    settings = get_settings()
    _db = DatabaseManager(settings.db_path)
    await _db.initialize()
    _service = ReservationService.from_settings(settings, build_repositories(settings, _db))
    logger.info("Reservation service ready with %d sources", len(_service.adapters))

    try:
        yield {"service": _service}
    finally:
        _service = None
        await _db.close()
        _db = None
        logger.info("Database closed")


mcp = FastMCP("party-booking", lifespan=app_lifespan)


def setup_logging(log_level: str, data_dir: Path) -> None:
    """Configure logging with file rotation and console output.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR).
        data_dir: Base data directory. Logs go to data_dir/logs/server.log.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Console handler: exact type check avoids matching subclasses (FileHandler, etc.)
    if not any(type(h) is logging.StreamHandler for h in root_logger.handlers):
        console = logging.StreamHandler()
        console.setLevel(level)
        console.setFormatter(formatter)
        root_logger.addHandler(console)

    log_dir = data_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    if not any(isinstance(h, RotatingFileHandler) for h in root_logger.handlers):
        file_handler = RotatingFileHandler(
            log_dir / "server.log",
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=3,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def initialize() -> FastMCP:
    """Set up directories, logging, and register tools. Returns the MCP server."""
    from partybook.config import get_settings

    settings = get_settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    setup_logging(settings.log_level, settings.data_dir)

    from partybook.tools.calendar import register_calendar_tools
    from partybook.tools.packages import register_package_tools
    from partybook.tools.reservations import register_reservation_tools
    from partybook.tools.sync import register_sync_tools

    register_package_tools(mcp)
    register_reservation_tools(mcp)
    register_calendar_tools(mcp)
    register_sync_tools(mcp)

    logger.info("Party booking MCP server initialized")
    return mcp
