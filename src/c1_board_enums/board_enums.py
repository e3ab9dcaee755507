"""Board-related enums for Flowboard."""

from enum import Enum


class TeamRole(Enum):
    """Role of a user inside a team."""
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"


class ProjectRole(Enum):
    """Role a team holds on a project."""
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class CardPriority(Enum):
    """Card priority levels."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ActivityType(Enum):
    """Entries written to the project activity log."""
    CARD_CREATED = "card_created"
    CARD_MOVED = "card_moved"
    CARD_REORDERED = "card_reordered"
    CARD_ARCHIVED = "card_archived"
    CARD_RESTORED = "card_restored"
    CARD_DELETED = "card_deleted"
    COLUMN_CREATED = "column_created"
    COLUMN_MOVED = "column_moved"
    COLUMN_DELETED = "column_deleted"


class NotificationType(Enum):
    """In-app notification kinds."""
    TASK_CREATED = "task_created"
    TASK_MOVED = "task_moved"
    TASK_UPDATED = "task_updated"
