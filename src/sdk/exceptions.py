"""Exceptions raised by the Flowboard client."""

from typing import Optional


class FlowboardClientError(Exception):
    """Base exception for client errors."""
    pass


class BoardAPIError(FlowboardClientError):
    """The server answered with an error status."""

    def __init__(self, status_code: Optional[int], message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class MoveRejected(BoardAPIError):
    """A move failed; the local board was discarded and re-fetched."""
    pass
