from pathlib import Path

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from partybook.repositories.database import DatabaseConfig
from partybook.repositories.sheets import SheetsConfig


def _split(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


class Settings(BaseSettings):
    """Application configuration loaded from ``PARTYBOOK_*`` environment
    variables and the ``.env`` file.

    Backends are enabled by listing them in ``sources``; each one still needs
    its own connection settings, and an enabled backend without them is
    skipped at startup.
    """

    model_config = SettingsConfigDict(
        env_prefix="PARTYBOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Which backends to read and write, and whose copy wins a merge
    sources: str = "database,sheets,local"
    source_priority: str = "database,sheets,local"
    source_timeout_seconds: float = 10.0

    # Reject (rather than warn about) totals that differ from the catalog
    strict_pricing: bool = False

    # Spreadsheet backend
    sheets_spreadsheet_id: str | None = None
    sheets_range: str = "Sheet1!A:I"
    sheets_api_key: str | None = None
    sheets_access_token: str | None = None

    # Hosted relational backend
    database_url: str | None = None
    database_api_key: str | None = None
    database_table: str = "events"

    # Remote hosting
    mcp_transport: str = "stdio"
    mcp_host: str = "0.0.0.0"
    mcp_port: int = 8000

    # Paths & logging. Default is <project_root>/data so it works
    # regardless of the process working directory.
    data_dir: Path = Path(__file__).resolve().parent.parent / "data"
    log_level: str = "INFO"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def db_path(self) -> Path:
        return self.data_dir / "partybook.db"

    @property
    def source_names(self) -> list[str]:
        return _split(self.sources)

    @property
    def priority(self) -> list[str]:
        return _split(self.source_priority)

    def sheets_config(self) -> SheetsConfig | None:
        """Connection settings for the spreadsheet, or None if not configured."""
        if not self.sheets_spreadsheet_id:
            return None
        return SheetsConfig(
            spreadsheet_id=self.sheets_spreadsheet_id,
            range=self.sheets_range,
            api_key=self.sheets_api_key,
            access_token=self.sheets_access_token,
            timeout=self.source_timeout_seconds,
        )

    def database_config(self) -> DatabaseConfig | None:
        """Connection settings for the hosted database, or None if not configured."""
        if not self.database_url or not self.database_api_key:
            return None
        return DatabaseConfig(
            url=self.database_url,
            api_key=self.database_api_key,
            table=self.database_table,
            timeout=self.source_timeout_seconds,
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the cached Settings singleton. Created on first call."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Clear the cached settings. Used in tests."""
    global _settings  # noqa: PLW0603
    _settings = None
