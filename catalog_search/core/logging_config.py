"""
Logging configuration for catalog search.

Library modules log through the standard ``logging`` module; the service
facade emits structlog key/value events. Both end up on the same stdlib
handler.
"""

import logging
import sys
from typing import Optional

import structlog

from .config import Settings, settings as default_settings

_configured = False


def configure_logging(
    level: Optional[str] = None,
    json_output: Optional[bool] = None,
    config: Optional[Settings] = None,
) -> None:
    """
    Configure stdlib logging and structlog.

    Calling it again only adjusts the level; processors and handlers are
    installed once.

    Args:
        level: Logging level (default: LOG_LEVEL)
        json_output: Render JSON lines instead of console output (default: LOG_JSON)
        config: Settings to read the defaults from (default: module-level settings)
    """
    global _configured

    config = config or default_settings
    if level is None:
        level = config.LOG_LEVEL
    if json_output is None:
        json_output = config.LOG_JSON

    log_level = getattr(logging, level.upper(), logging.INFO)

    if _configured:
        logging.getLogger().setLevel(log_level)
        return

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # basicConfig is a no-op when the root logger already has handlers
    logging.getLogger().setLevel(log_level)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structlog logger for the given name.

    Args:
        name: Logger name (usually __name__)
    """
    return structlog.get_logger(name)
