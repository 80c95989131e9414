"""
Error taxonomy for the scheduling core.

Stores and the recurrence materializer convert these into outcome values
at their boundary; the two state machines never raise them out of a
transition.
"""


class FocusdayError(Exception):
    """Base class for scheduling-core errors."""

    pass


class ValidationError(FocusdayError, ValueError):
    """Raised when input breaks a domain rule (time range, priorities, recurrence)."""

    pass


class NotAuthenticatedError(FocusdayError):
    """Raised when an operation needs an owner and none is bound."""

    def __init__(self, message: str = "No authenticated user"):
        super().__init__(message)


class PersistenceError(FocusdayError):
    """A storage read or write failed."""

    def __init__(self, operation: str, cause: Exception | None = None):
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"{operation} failed{detail}")


class PartialBatchFailure(PersistenceError):
    """A bulk insert failed as a whole; nothing is reported as created."""

    def __init__(self, operation: str, attempted: int, cause: Exception | None = None):
        self.attempted = attempted
        super().__init__(operation, cause)
