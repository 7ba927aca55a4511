"""Error taxonomy raised by the core. Callers map ErrorKind to their transport status."""

from enum import Enum


class ErrorKind(str, Enum):
    not_found = "not_found"
    unauthorized = "unauthorized"
    forbidden = "forbidden"
    conflict = "conflict"
    internal = "internal"
    busy = "busy"


class OrderingError(Exception):
    """Base class for every error the core raises on purpose."""

    kind: ErrorKind = ErrorKind.internal

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(OrderingError):
    """Unknown user, franchise, store or menu reference."""

    kind = ErrorKind.not_found


class UnauthorizedError(OrderingError):
    """No authenticated principal."""

    kind = ErrorKind.unauthorized


class ForbiddenError(OrderingError):
    """Principal lacks the role the operation requires."""

    kind = ErrorKind.forbidden


class ConflictError(OrderingError):
    """Write collides with an existing unique value (e.g. a registered email)."""

    kind = ErrorKind.conflict


class InternalError(OrderingError):
    """Transaction or storage failure. The original cause is kept on __cause__."""

    kind = ErrorKind.internal


class BusyError(OrderingError):
    """No pooled connection became available within the configured wait."""

    kind = ErrorKind.busy
