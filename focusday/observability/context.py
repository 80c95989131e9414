"""
Request and owner context carried through contextvars.
"""

import contextvars
import uuid
from typing import Optional

_request_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "request_id", default=None
)
_owner_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "owner_id", default=None
)


def get_request_id() -> Optional[str]:
    """Get the current request ID from context."""
    return _request_id_var.get()


def get_owner_id() -> Optional[str]:
    """Owner (user id) the current request acts for, if any."""
    return _owner_id_var.get()


def generate_request_id() -> str:
    """Generate a new request ID."""
    return f"req-{uuid.uuid4().hex[:16]}"


class RequestContext:
    """
    Context manager for request-scoped operations.

    Usage:
        with RequestContext(owner_id="user-1") as ctx:
            logger.info("Processing")  # record carries request_id and owner_id
    """

    def __init__(self, request_id: Optional[str] = None, owner_id: Optional[str] = None):
        self.request_id = request_id or generate_request_id()
        self.owner_id = owner_id
        self._tokens: list[tuple[contextvars.ContextVar, contextvars.Token]] = []

    def __enter__(self) -> "RequestContext":
        self._tokens.append((_request_id_var, _request_id_var.set(self.request_id)))
        if self.owner_id is not None:
            self._tokens.append((_owner_id_var, _owner_id_var.set(self.owner_id)))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)
