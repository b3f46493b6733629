"""
Portfolio API entry point.
Serves cached, validated upstream data (presence, music, analytics, GitHub, CMS).
"""

import sys

import uvicorn
from loguru import logger

from portfolio_api.api import create_app
from portfolio_api.services.errors import ConfigurationError
from portfolio_api.settings import load_settings


def main() -> None:
    settings = load_settings()

    logger.remove()
    logger.add(sys.stderr, level=settings.log_level.upper())

    logger.info("Starting Portfolio API...")
    try:
        app = create_app(settings)
    except ConfigurationError as e:
        logger.error(f"Refusing to start: {e}")
        sys.exit(1)

    uvicorn.run(app, host=settings.host, port=settings.port, log_level="warning")


if __name__ == "__main__":
    main()
