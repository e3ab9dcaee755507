"""C2 Reorder Service - dense position maintenance for cards and columns."""
from src.c2_reorder_service.reorderer import (
    PositionReorderer,
    card_reorderer,
    column_reorderer,
    check_all,
)
from src.core.exceptions import (
    BoardError,
    ContainerNotFound,
    ItemNotFound,
    InvalidPosition,
    PermissionDenied,
    ConcurrencyConflict,
    ValidationFailed,
)
__all__ = [
    "PositionReorderer",
    "card_reorderer",
    "column_reorderer",
    "check_all",
    "BoardError",
    "ContainerNotFound",
    "ItemNotFound",
    "InvalidPosition",
    "PermissionDenied",
    "ConcurrencyConflict",
    "ValidationFailed",
]
