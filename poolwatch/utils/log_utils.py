import logging
import logging.config

from poolwatch.utils.shortname import ShortNameFilter

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "shortname": {"()": ShortNameFilter},
    },
    "formatters": {
        "custom": {
            "format": "[%(asctime)s] [%(levelname)s] %(shortname)s: %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "custom",
            "filters": ["shortname"],
        },
    },
    "root": {"level": "INFO", "handlers": ["console"]},
}

_configured = False


def setup_logging(level: str = "INFO", override: bool = True) -> None:
    """
    Install the console handler once; later calls only adjust the level.

    With override=False an already configured level is left as it is.
    """
    global _configured
    if _configured and not override:
        return
    if not _configured:
        logging.config.dictConfig(LOGGING_CONFIG)
        _configured = True
    logging.getLogger().setLevel(level.upper())
