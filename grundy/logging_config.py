import logging
import logging.config
import sys

from grundy.middleware.request_id import get_request_id


class RequestIdFilter(logging.Filter):
    """Stamp every record with the current request's correlation id."""

    def filter(self, record):
        record.request_id = get_request_id()
        return True


def build_logging_config(level="INFO", fmt="json"):
    return {
        "version": 1,
        "disable_existing_loggers": False,

        "filters": {
            "request_id": {"()": RequestIdFilter},
        },

        "formatters": {
            "json": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "format": "%(asctime)s %(levelname)s %(name)s %(request_id)s %(message)s",
                "json_ensure_ascii": False,
            },
            "console": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },

        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json" if fmt == "json" else "console",
                "filters": ["request_id"],
                "stream": sys.stdout,
            },
        },

        "loggers": {
            "grundy": {
                "handlers": ["console"],
                "level": level.upper(),
                "propagate": False,
            },
            "werkzeug": {"level": "WARNING"},
            "urllib3": {"level": "WARNING"},
        },

        "root": {
            "handlers": ["console"],
            "level": level.upper(),
        },
    }


def configure_logging(app=None, level=None, fmt=None):
    """
    Configure logging for the service.

    Explicit arguments win over the app's LOG_LEVEL / LOG_FORMAT settings.
    """
    if app is not None:
        level = level or app.config.get("LOG_LEVEL", "INFO")
        fmt = fmt or app.config.get("LOG_FORMAT", "json")

    logging.config.dictConfig(build_logging_config(level or "INFO", fmt or "json"))

    logger = logging.getLogger("grundy")
    logger.debug("Logging configured", extra={"log_format": fmt})
    return logger
