import logging

from partybook.config import get_settings
from partybook.server import initialize

logger = logging.getLogger("partybook")


def main() -> None:
    app = initialize()
    settings = get_settings()
    logger.info("Starting party booking server (%s transport)", settings.mcp_transport)

    if settings.mcp_transport == "streamable-http":
        app.run(transport="streamable-http", host=settings.mcp_host, port=settings.mcp_port)
    else:
        app.run()


if __name__ == "__main__":  # pragma: no cover
    main()
