from logging.config import dictConfig


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler for the service and uvicorn loggers."""
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
                }
            },
            "handlers": {
                "default": {
                    "level": level,
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                }
            },
            "loggers": {
                "": {"handlers": ["default"], "level": level},
                "uvicorn": {"handlers": ["default"], "level": level, "propagate": False},
            },
        }
    )
