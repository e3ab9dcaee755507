"""Domain errors raised by Flowboard services.

Every error carries the HTTP status the route layer answers with, so the
mapping lives next to the error rather than in each endpoint.
"""


class BoardError(Exception):
    """Base class for all board domain errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ContainerNotFound(BoardError):
    """Column or project does not exist or is not visible to the caller."""

    status_code = 404


class ItemNotFound(BoardError):
    """Card does not exist or was already removed."""

    status_code = 404


class InvalidPosition(BoardError):
    """Target position is outside the range allowed for the container."""

    status_code = 400

    def __init__(self, position: int, lower: int, upper: int):
        super().__init__(
            f"Invalid position {position}: must be between {lower} and {upper}"
        )
        self.position = position
        self.lower = lower
        self.upper = upper


class PermissionDenied(BoardError):
    """Caller lacks mutate rights on a container."""

    status_code = 403


class ConcurrencyConflict(BoardError):
    """Stored state changed underneath the caller; re-fetch and resubmit."""

    status_code = 409


class ValidationFailed(BoardError):
    """Request input is malformed."""

    status_code = 400
