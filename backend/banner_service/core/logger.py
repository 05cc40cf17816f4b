import logging

from banner_service.core.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str | None = None) -> None:
    """Attach one stream handler to the package logger.

    Safe to call repeatedly (uvicorn reload, tests); only the first call adds a handler.
    """
    logger = logging.getLogger("banner_service")
    logger.setLevel((level or settings.log_level).upper())
    if getattr(logger, "_is_configured", False):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    setattr(logger, "_is_configured", True)
