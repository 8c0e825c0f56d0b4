"""
Run the gateway with uvicorn: `python -m gateway`.
"""

from __future__ import annotations

import logging

import uvicorn
from pydantic import ValidationError

from gateway.app import create_app
from gateway.config import get_settings
from gateway.errors import StartupError

logger = logging.getLogger("gateway")


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
    )
    try:
        settings = get_settings()
    except ValidationError as exc:
        logger.error("Invalid configuration (is JWT_SECRET set?): %s", exc)
        return 1
    logging.getLogger().setLevel(settings.log_level.upper())

    try:
        app = create_app(settings)
    except StartupError as exc:
        logger.error("Startup failed: %s", exc)
        return 1

    logger.info("Server is running on http://localhost:%d", settings.port)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
