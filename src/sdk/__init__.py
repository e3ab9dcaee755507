"""Flowboard client SDK."""
from src.sdk.board_client import BoardClient, MoveCoalescer, apply_local_move, locate_card
from src.sdk.exceptions import FlowboardClientError, BoardAPIError, MoveRejected

__all__ = [
    "BoardClient",
    "MoveCoalescer",
    "apply_local_move",
    "locate_card",
    "FlowboardClientError",
    "BoardAPIError",
    "MoveRejected",
]
