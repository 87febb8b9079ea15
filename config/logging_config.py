"""structlog configuration."""

import logging
import sys
import structlog
from config.settings import settings


def setup_logging(level: str | None = None, json_output: bool = False) -> None:
    """Route structlog through stdlib logging on stderr.

    stdout is reserved for command output, so nothing here may write to it.
    """
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=log_level, force=True)
