"""Board models for Flowboard."""

from src.c1_board_models.board import (
    User,
    Team,
    TeamMember,
    Project,
    ProjectTeam,
    BoardColumn,
    Card,
    ActivityLog,
    Notification,
)

__all__ = [
    "User",
    "Team",
    "TeamMember",
    "Project",
    "ProjectTeam",
    "BoardColumn",
    "Card",
    "ActivityLog",
    "Notification",
]
