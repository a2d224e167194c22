"""Run the logbook service with ``python -m logbook`` or the ``logbook`` script."""

from __future__ import annotations

import logging

import uvicorn

from app.config import get_settings

logger = logging.getLogger("logbook")


def main() -> None:
    """Serve ``app.main:app`` on the configured host and port."""

    settings = get_settings()
    development = settings.environment == "development"
    logger.info(
        "Starting %s on %s:%s (%s)",
        settings.app_name,
        settings.server_host,
        settings.server_port,
        settings.environment,
    )
    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=development,
        log_level="debug" if development else "info",
    )


if __name__ == "__main__":  # pragma: no cover
    main()
