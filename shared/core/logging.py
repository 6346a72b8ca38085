"""
Ponto de import curto para logging.
A configuração vive em shared.infrastructure.logging.
"""
from shared.infrastructure.logging.structlog_config import (
    bind_owner_context,
    clear_log_context,
    get_logger,
    setup_logging,
)

__all__ = ["setup_logging", "get_logger", "bind_owner_context", "clear_log_context"]
