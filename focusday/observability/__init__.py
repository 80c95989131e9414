"""
Observability module: structured logging and request/owner context.

Usage:
    import logging
    from focusday.observability import RequestContext

    logger = logging.getLogger(__name__)

    with RequestContext(owner_id="user-1"):
        logger.info("Ritual completed")
"""

from .context import RequestContext, generate_request_id, get_owner_id, get_request_id
from .logging import (
    CorrelationIdMiddleware,
    HumanFormatter,
    JSONFormatter,
    configure_log_rotation,
    configure_logging,
)

__all__ = [
    # Logging
    "configure_logging",
    "configure_log_rotation",
    "JSONFormatter",
    "HumanFormatter",
    "CorrelationIdMiddleware",
    # Context
    "RequestContext",
    "generate_request_id",
    "get_request_id",
    "get_owner_id",
]
