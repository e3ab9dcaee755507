"""Notifications and activity entries for card events.

These run after the card change has committed, in their own transaction. A
failure here never undoes the change; callers log it and move on.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.c1_board_enums import NotificationType
from src.c1_board_models import BoardColumn, Card, Notification, Project, TeamMember, User
from src.c1_database_session import DatabaseManager
from src.c2_activity_service.activity_service import ActivityService
from src.c2_activity_service.notification_templates import render_notification
from src.core.config import NotificationConfig

logger = logging.getLogger(__name__)


class NotificationService:
    """Fans card events out to the activity log and to interested users."""

    def __init__(self, db_manager: DatabaseManager, config: Optional[NotificationConfig] = None):
        self.db_manager = db_manager
        self.config = config or NotificationConfig()

    def _actor_name(self, session: Session, user_id: str) -> str:
        user = session.get(User, user_id)
        return user.name if user else "Someone"

    def _team_member_ids(self, session: Session, project_id: str, exclude: List[str]) -> List[str]:
        """Members of the project's owning team, oldest membership first."""
        team_id = session.scalar(select(Project.team_id).where(Project.id == project_id))
        if team_id is None:
            return []
        query = (
            select(TeamMember.user_id)
            .where(TeamMember.team_id == team_id, TeamMember.user_id.not_in(exclude))
            .order_by(TeamMember.joined_at, TeamMember.user_id)
        )
        return list(session.scalars(query).all())

    def _add(self, session: Session, user_id: str, notification_type: NotificationType,
             card_id: str, project_id: str, **context) -> Notification:
        title, message = render_notification(notification_type, **context)
        notification = Notification(
            user_id=user_id,
            type=notification_type.value,
            title=title,
            message=message,
            card_id=card_id,
            project_id=project_id,
        )
        session.add(notification)
        return notification

    def notify_card_created(self, actor_id: str, card_id: str) -> int:
        """Log creation and tell the rest of the team.

        Returns:
            Number of notifications written
        """
        with self.db_manager.transaction() as session:
            card = session.get(Card, card_id)
            if card is None:
                logger.warning(f"[NOTIFY] Card {card_id} vanished before creation notice")
                return 0
            column = session.get(BoardColumn, card.column_id)
            project_id = column.project_id

            ActivityService.log_card_created(session, actor_id, project_id, card.id, card.title, column.name)
            if not self.config.enabled:
                return 0

            actor_name = self._actor_name(session, actor_id)
            recipients = self._team_member_ids(session, project_id, exclude=[actor_id])
            for user_id in recipients:
                self._add(
                    session,
                    user_id,
                    NotificationType.TASK_CREATED,
                    card.id,
                    project_id,
                    actor_name=actor_name,
                    card_title=card.title,
                    column_name=column.name,
                )

        logger.info(f"[NOTIFY] Card {card_id} created; notified {len(recipients)} member(s)")
        return len(recipients)

    def notify_card_moved(
        self,
        actor_id: str,
        card_id: str,
        from_column_id: str,
        to_column_id: str,
        from_position: int,
        to_position: int,
    ) -> int:
        """Record a committed move and notify the assignee and team.

        A reorder inside one column only writes a ``card_reordered`` entry.

        Returns:
            Number of notifications written
        """
        with self.db_manager.transaction() as session:
            card = session.get(Card, card_id)
            if card is None:
                logger.warning(f"[NOTIFY] Card {card_id} vanished before move notice")
                return 0
            columns: Dict[str, BoardColumn] = {
                c.id: c
                for c in session.scalars(
                    select(BoardColumn).where(BoardColumn.id.in_([from_column_id, to_column_id]))
                ).all()
            }
            from_column = columns[from_column_id]
            to_column = columns[to_column_id]
            project_id = to_column.project_id

            if from_column_id == to_column_id:
                ActivityService.log_card_reordered(
                    session, actor_id, project_id, card.id, to_column.name, from_position, to_position
                )
                return 0

            ActivityService.log_card_moved(
                session,
                actor_id,
                project_id,
                card.id,
                from_column_id,
                to_column_id,
                from_column.name,
                to_column.name,
            )
            if not self.config.enabled:
                return 0

            actor_name = self._actor_name(session, actor_id)
            sent = 0

            if card.assignee_id and card.assignee_id != actor_id:
                self._add(
                    session,
                    card.assignee_id,
                    NotificationType.TASK_UPDATED,
                    card.id,
                    project_id,
                    actor_name=actor_name,
                    card_title=card.title,
                    from_column_name=from_column.name,
                    to_column_name=to_column.name,
                )
                sent += 1

            # Cap first, then skip the assignee who already has a notice
            members = self._team_member_ids(session, project_id, exclude=[actor_id])
            for user_id in members[: self.config.max_team_recipients]:
                if user_id == card.assignee_id:
                    continue
                self._add(
                    session,
                    user_id,
                    NotificationType.TASK_MOVED,
                    card.id,
                    project_id,
                    actor_name=actor_name,
                    card_title=card.title,
                    to_column_name=to_column.name,
                )
                sent += 1

        logger.info(f"[NOTIFY] Card {card_id} moved {from_column_id} -> {to_column_id}; {sent} notice(s)")
        return sent

    def record(self, actor_id: str, project_id: str, card_id: str, card_title: str, action_type) -> None:
        """Write a single lifecycle entry (archive, restore, delete) in its own transaction."""
        with self.db_manager.transaction() as session:
            ActivityService.log_card_lifecycle(session, actor_id, project_id, card_id, card_title, action_type)

    def record_column(self, actor_id: str, project_id: str, column_name: str, action_type, details=None) -> None:
        with self.db_manager.transaction() as session:
            ActivityService.log_column_change(session, actor_id, project_id, column_name, action_type, details)

    def unread_for(self, user_id: str) -> List[Notification]:
        with self.db_manager.read_session() as session:
            notifications = session.scalars(
                select(Notification)
                .where(Notification.user_id == user_id, Notification.is_read.is_(False))
                .order_by(Notification.created_at.desc())
            ).all()
            session.expunge_all()
            return list(notifications)
