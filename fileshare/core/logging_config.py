import logging
from logging.config import dictConfig


def configure_logging(level: str = "INFO") -> None:
    """Basic structured logging configuration."""
    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
            }
        },
        "loggers": {
            "uvicorn.error": {"level": "INFO"},
            "uvicorn.access": {"level": "INFO"},
            "fileshare": {"level": "DEBUG"},
            "sqlalchemy.engine": {"level": "WARNING"},
        },
        "root": {
            "level": level,
            "handlers": ["console"],
        },
    }
    dictConfig(logging_config)
    logging.getLogger(__name__).debug("Logging configured (root level %s)", level)
