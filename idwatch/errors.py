"""
idwatch Error Types
===================

Every failure carries an explicit ErrorKind. Callers branch on the
kind (or the exception class), never on message text.

Author: idwatch Team
Version: 1.0.0
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Classification of a failure, independent of its message."""
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    UNCONFIGURED = "unconfigured"
    INVALID = "invalid"
    CONFLICT = "conflict"
    OTHER = "other"


# HTTP status returned at the API boundary for each kind
HTTP_STATUS_BY_KIND = {
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.UNCONFIGURED: 503,
    ErrorKind.INVALID: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.OTHER: 500,
}


class IdWatchError(Exception):
    """Base class for all idwatch errors."""

    default_kind = ErrorKind.OTHER

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        self.message = message
        self.kind = kind or self.default_kind

    @property
    def http_status(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]


class EvidenceSourceError(IdWatchError):
    """An evidence source call failed (network, timeout, auth, config)."""

    def __init__(
        self,
        message: str,
        kind: Optional[ErrorKind] = None,
        source_name: Optional[str] = None,
    ):
        super().__init__(message, kind)
        self.source_name = source_name


class PersistenceError(IdWatchError):
    """A write to the finding store failed; the record was not kept."""


class NotFoundError(IdWatchError):
    default_kind = ErrorKind.NOT_FOUND


class ConflictError(IdWatchError):
    """The stored record changed since the caller last read it."""

    default_kind = ErrorKind.CONFLICT


class InvalidTransition(ConflictError):
    """The requested status change is not an allowed lifecycle edge."""

    def __init__(self, finding_id: str, current: str, requested: str):
        super().__init__(
            f"Cannot move finding {finding_id} from '{current}' to '{requested}'"
        )
        self.finding_id = finding_id
        self.current = current
        self.requested = requested


class ScanInProgressError(ConflictError):
    """Another scan for the same profile has not finished yet."""

    def __init__(self, profile_id: str):
        super().__init__(f"A scan is already running for profile {profile_id}")
        self.profile_id = profile_id


class VaultUnavailableError(IdWatchError):
    """The vault could not be read; the whole scan is aborted."""
