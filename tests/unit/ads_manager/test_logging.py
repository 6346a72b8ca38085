import logging

import structlog

from shared.core.logging import bind_owner_context, clear_log_context, setup_logging


def test_owner_context_is_bound_and_cleared():
    bind_owner_context("owner-1")
    assert structlog.contextvars.get_contextvars() == {"owner_id": "owner-1"}

    clear_log_context()
    assert structlog.contextvars.get_contextvars() == {}


def test_unknown_level_falls_back_to_info():
    setup_logging("barulhento")

    assert logging.getLogger("httpx").level == logging.WARNING
