"""Process-wide logging configuration."""

import logging
import logging.config

from app.core.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure root logging once for the API process and the CLI scripts.

    Uvicorn keeps its own access logger; application modules log through
    ``logging.getLogger(__name__)`` and end up on the same console handler.
    """
    level_name = (level or settings.log_level).upper()
    if not isinstance(getattr(logging, level_name, None), int):
        level_name = "INFO"
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"format": LOG_FORMAT}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {"level": level_name, "handlers": ["console"]},
            "loggers": {
                # SQL echo is too chatty even at DEBUG
                "sqlalchemy.engine": {"level": "WARNING"},
                "httpx": {"level": "WARNING"},
            },
        }
    )
