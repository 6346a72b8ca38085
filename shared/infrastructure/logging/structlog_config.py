"""
Logging estruturado com structlog.

Os serviços logam eventos chave/valor via ``get_logger(__name__)``; o
``owner_id`` do comando em execução entra em todos os eventos através
dos contextvars do structlog.
"""

import logging
import sys
from typing import Optional

import structlog

QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "sqlalchemy.engine.Engine")


def _renderers(level_name: str) -> list:
    if level_name == "DEBUG":
        return [structlog.dev.ConsoleRenderer()]
    return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer(ensure_ascii=False)]


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configura structlog e o logging padrão.

    Em DEBUG os eventos saem no console colorido; nos demais níveis, uma
    linha JSON por evento com timestamp ISO em UTC.
    """
    level_name = log_level.upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        level_name, numeric_level = "INFO", logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            *_renderers(level_name),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_owner_context(owner_id: str) -> None:
    """Associa o owner_id a todos os logs da tarefa assíncrona corrente."""
    structlog.contextvars.bind_contextvars(owner_id=owner_id)


def clear_log_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    return structlog.get_logger(name)
