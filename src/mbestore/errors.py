"""Error taxonomy for mbestore.

Every error raised by the store carries a stable kind (its class) and a
human-readable message naming the offending identifier(s). Each kind maps to
an HTTP status code so the API layer can translate errors without knowing
about individual operations.
"""

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


class MBEError(Exception):
    """Base class for all mbestore errors."""

    status_code = 500

    def __init__(self, message: str, level: Optional[str] = None):
        """Create the error and optionally log it.

        Args:
            message: Human-readable description of the failure
            level: Log level to report the message at (debug, info, warn,
                error, critical). Nothing is logged when omitted.
        """
        super().__init__(message)
        self.message = message
        if level:
            self.log(level)

    def log(self, level: str) -> None:
        """Log the error message at the given level."""
        log_level = _LOG_LEVELS.get(level)
        if log_level is not None:
            logger.log(log_level, self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": type(self).__name__, "message": self.message}


# 400
class DataFormatError(MBEError):
    """Malformed input, invalid identifier or invalid option type."""

    status_code = 400


# 401
class AuthorizationError(MBEError):
    """The requesting user could not be identified."""

    status_code = 401


# 403
class PermissionError(MBEError):
    """The requesting user is not allowed to perform the action."""

    status_code = 403


class OperationError(MBEError):
    """Well-formed request that violates a domain invariant."""

    status_code = 403


# 404
class NotFoundError(MBEError):
    """A referenced org, project or branch does not exist or is archived."""

    status_code = 404


# 500
class ServerError(MBEError):
    """Unexpected server-side failure."""

    status_code = 500


class DatabaseError(MBEError):
    """The store rejected an operation or a post-write integrity check failed."""

    status_code = 500


class RollbackError(DatabaseError):
    """Compensating cleanup failed after a failed multi-step write.

    Both the error that triggered the cleanup and the cleanup failure are kept
    so neither is lost.
    """

    def __init__(self, original: BaseException, cleanup_error: BaseException):
        self.original = original
        self.cleanup_error = cleanup_error
        super().__init__(
            f"Cleanup failed after error [{original}]: {cleanup_error}", "error"
        )


def get_status_code(error: BaseException) -> int:
    """Return the HTTP status code for an error."""
    if isinstance(error, MBEError):
        return error.status_code
    return 500


def capture_error(error: BaseException) -> MBEError:
    """Ensure an error is an MBEError, wrapping anything else in a ServerError."""
    if isinstance(error, MBEError):
        return error

    wrapped = ServerError(str(error), "warn")
    wrapped.__cause__ = error
    return wrapped
