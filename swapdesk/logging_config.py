"""
structlog setup for the API server and the CLI.

Library modules log through ``logging.getLogger(__name__)``; this routes those
records through structlog so every line carries the same fields as the
request logs (level, logger, timestamp, request id when bound).
"""

import logging
import sys
from typing import List, Optional

import structlog

from .config import settings

# Per-request httpx/httpcore lines would drown out the balance fetch logs
QUIET_LOGGERS = ("uvicorn.access", "httpcore", "httpx")


def _renderer(level: int, log_format: str) -> structlog.types.Processor:
    if log_format == "console" or (log_format == "auto" and level <= logging.DEBUG):
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: Level name, defaults to settings.log_level.
        log_format: "json", "console" or "auto" (console at DEBUG, JSON otherwise).
            Defaults to settings.log_format.
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    renderer = _renderer(level, (log_format or settings.log_format).lower())

    pre_chain: List[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if isinstance(renderer, structlog.processors.JSONRenderer):
        pre_chain.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
