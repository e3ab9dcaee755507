"""Board enums for Flowboard."""

from src.c1_board_enums.board_enums import (
    TeamRole,
    ProjectRole,
    CardPriority,
    ActivityType,
    NotificationType,
)

__all__ = ["TeamRole", "ProjectRole", "CardPriority", "ActivityType", "NotificationType"]
