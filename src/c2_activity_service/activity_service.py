"""Activity log for board changes."""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from src.c1_board_enums import ActivityType
from src.c1_board_models import ActivityLog

logger = logging.getLogger(__name__)


class ActivityService:
    """Writes activity log entries into the caller's session."""

    @staticmethod
    def log(
        session: Session,
        user_id: str,
        action_type: ActivityType,
        project_id: Optional[str] = None,
        card_id: Optional[str] = None,
        old_value: Optional[str] = None,
        new_value: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> ActivityLog:
        """Add one activity entry to the session.

        Args:
            session: Open session; the caller commits
            user_id: User who performed the action
            action_type: Kind of change
            project_id: Project the change belongs to
            card_id: Card the change concerns, if any
            old_value: Human readable value before the change
            new_value: Human readable value after the change
            details: Extra structured data

        Returns:
            The pending ActivityLog row
        """
        entry = ActivityLog(
            user_id=user_id,
            action_type=action_type.value,
            project_id=project_id,
            card_id=card_id,
            old_value=old_value,
            new_value=new_value,
            details=details,
        )
        session.add(entry)
        logger.debug(f"[ACTIVITY] {action_type.value} by {user_id} on {card_id or project_id}")
        return entry

    @classmethod
    def log_card_created(cls, session, user_id, project_id, card_id, card_title, column_name):
        return cls.log(
            session,
            user_id,
            ActivityType.CARD_CREATED,
            project_id=project_id,
            card_id=card_id,
            new_value=card_title,
            details={"toColumnName": column_name},
        )

    @classmethod
    def log_card_moved(
        cls,
        session,
        user_id,
        project_id,
        card_id,
        from_column_id,
        to_column_id,
        from_column_name,
        to_column_name,
    ):
        return cls.log(
            session,
            user_id,
            ActivityType.CARD_MOVED,
            project_id=project_id,
            card_id=card_id,
            old_value=from_column_name,
            new_value=to_column_name,
            details={
                "fromColumnId": from_column_id,
                "toColumnId": to_column_id,
                "fromColumnName": from_column_name,
                "toColumnName": to_column_name,
            },
        )

    @classmethod
    def log_card_reordered(cls, session, user_id, project_id, card_id, column_name, old_position, new_position):
        return cls.log(
            session,
            user_id,
            ActivityType.CARD_REORDERED,
            project_id=project_id,
            card_id=card_id,
            old_value=str(old_position),
            new_value=str(new_position),
            details={"columnName": column_name},
        )

    @classmethod
    def log_card_lifecycle(cls, session, user_id, project_id, card_id, card_title, action_type: ActivityType):
        """Archive, restore and delete entries share this shape."""
        return cls.log(
            session,
            user_id,
            action_type,
            project_id=project_id,
            card_id=card_id,
            old_value=card_title,
        )

    @classmethod
    def log_column_change(cls, session, user_id, project_id, column_name, action_type: ActivityType, details=None):
        return cls.log(
            session,
            user_id,
            action_type,
            project_id=project_id,
            new_value=column_name,
            details=details,
        )
