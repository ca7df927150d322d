"""Exception hierarchy for the analytics server.

Only caller or storage-layer defects are raised. Missing or partial athlete
history is the normal case and is reported in results (``status`` /
``reason`` fields), never through these exceptions.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for consistent API error responses."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    ACTIVITY_NOT_FOUND = "ACTIVITY_NOT_FOUND"
    CORRUPT_DATA = "CORRUPT_DATA"


class RideCoachError(Exception):
    """Base exception for all ride-coach-server errors.

    Attributes:
        message: Human-readable error message
        code: Error code from ErrorCode enum
        status_code: HTTP status code for API responses
        details: Optional dictionary with additional error details
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to API error payload."""
        payload: dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return {"error": payload}


class InvalidInputError(RideCoachError):
    """Malformed owner id, bad window size, unparseable selector, and similar."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, ErrorCode.INVALID_INPUT, 400, details)


class CorruptDataError(InvalidInputError):
    """Persisted data (e.g. stream JSON) could not be decoded."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details)
        self.code = ErrorCode.CORRUPT_DATA
        self.status_code = 500


class ActivityNotFoundError(RideCoachError):
    """An explicitly requested activity id does not exist for the owner."""

    def __init__(self, owner_id: str, activity_id: int) -> None:
        super().__init__(
            f"Activity {activity_id} not found",
            ErrorCode.ACTIVITY_NOT_FOUND,
            404,
            {"owner_id": owner_id, "activity_id": activity_id},
        )


def validate_owner_id(owner_id: str) -> str:
    """Return a stripped owner id or raise InvalidInputError.

    Args:
        owner_id: Owner identifier as received from the caller

    Raises:
        InvalidInputError: If the id is not a non-empty string of sane length
    """
    if not isinstance(owner_id, str) or not owner_id.strip():
        raise InvalidInputError("owner_id must be a non-empty string")
    owner_id = owner_id.strip()
    if len(owner_id) > 255:
        raise InvalidInputError("owner_id is too long", {"max_length": 255})
    return owner_id
