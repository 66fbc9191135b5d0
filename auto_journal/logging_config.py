"""
Logging configuration.

Console output for every environment. The level comes from
LOG_LEVEL (default INFO, DEBUG when DEBUG=true).
"""

import logging.config


def get_logging_config(level: str = "INFO") -> dict:
    """Build a dictConfig for the application loggers."""
    level = (level or "INFO").upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "verbose": {
                "format": "[{asctime}] {levelname} {name} {message}",
                "style": "{",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "verbose",
            },
        },
        "loggers": {
            # Records propagate to the root console handler.
            "auto_journal": {
                "level": level,
            },
            "sqlalchemy.engine": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False,
            },
        },
        "root": {
            "handlers": ["console"],
            "level": "WARNING",
        },
    }


def configure_logging(level: str = "INFO") -> None:
    logging.config.dictConfig(get_logging_config(level))
