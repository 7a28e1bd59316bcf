# storefront/core/logging_config.py
"""
Logging setup for the API server and the CLI commands.

Storefront modules log through ``logging.getLogger(__name__)``; this module
only decides levels, format and which third-party loggers to turn down.
"""

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Library loggers that drown out order and stock messages at INFO
NOISY_LOGGERS = {
    "sqlalchemy": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "sqlalchemy.pool": logging.WARNING,
    "asyncpg": logging.WARNING,
    "aiosqlite": logging.WARNING,
    "alembic": logging.INFO,
    "passlib": logging.ERROR,
    "multipart": logging.WARNING,
    "uvicorn.access": logging.WARNING,
}


def configure_logging(level: Optional[str] = None) -> int:
    """
    Configure the root logger once and return the level applied.

    ``level`` defaults to the LOG_LEVEL environment variable, then INFO.
    Unknown level names fall back to INFO.
    """
    level_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    resolved = logging.getLevelName(level_name)
    if not isinstance(resolved, int):
        resolved = logging.INFO

    logging.basicConfig(level=resolved, format=LOG_FORMAT)

    for name, noisy_level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(noisy_level)
    logging.getLogger("storefront").setLevel(resolved)

    logging.getLogger(__name__).debug("Logging configured at %s", logging.getLevelName(resolved))
    return resolved
