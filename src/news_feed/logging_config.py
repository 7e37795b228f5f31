import logging

import structlog

from .config import settings


def configure_logging(level: str | int = "INFO") -> None:
    """Route structlog events through stdlib logging as JSON lines.

    ``level`` accepts a level name (``"DEBUG"``) or a ``logging`` constant.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(format="%(message)s")
    logging.getLogger().setLevel(level)

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


configure_logging(settings.log_level)


def get_logger(name: str | None = None):
    if name is None:
        return structlog.get_logger()
    return structlog.get_logger(name)
