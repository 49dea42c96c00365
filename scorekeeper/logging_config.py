import logging, logging.config

APP_LOGGERS = ("scorekeeper.services", "scorekeeper.routes", "scorekeeper.cli")


def setup_logging(level: str = "INFO", access_log: bool = True, sql_echo: bool = False):
    """Configure console logging for the API process and maintenance commands."""
    level = level.upper()
    app_logger = {"level": level, "handlers": ["console"], "propagate": False}
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                        "datefmt": "%Y-%m-%d %H:%M:%S"},
            # Uvicorn pre-formats access log lines
            "access_simple": {"format": "%(message)s"},
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "default"},
            "access":  {"class": "logging.StreamHandler", "formatter": "access_simple"},
        },
        "loggers": {
            "uvicorn.error":  {"level": level, "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": ("INFO" if access_log else "WARNING"),
                               "handlers": ["access"], "propagate": False},
            # Settlement, reversal and audit lines
            **{name: dict(app_logger) for name in APP_LOGGERS},
            "sqlalchemy.engine": {"level": ("INFO" if sql_echo else "WARNING")},
        },
        "root": {"level": level, "handlers": ["console"]},
    })
