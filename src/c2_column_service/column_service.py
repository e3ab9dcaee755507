"""Column service: board layout and column ordering within a project."""

import logging
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from src.c1_board_enums import ActivityType
from src.c1_board_models import BoardColumn, Card, Project
from src.c1_database_session import DatabaseManager
from src.c2_activity_service import NotificationService
from src.c2_permission_service import (
    COLUMN_CREATE,
    COLUMN_DELETE,
    COLUMN_REORDER,
    ContainerPermissionChecker,
    ProjectPermissionChecker,
)
from src.c2_reorder_service import card_reorderer, column_reorderer
from src.core.config import BoardDefaults
from src.core.exceptions import ContainerNotFound, PermissionDenied, ValidationFailed

logger = logging.getLogger(__name__)


def column_to_dict(column: BoardColumn) -> Dict[str, Any]:
    return {
        "id": column.id,
        "projectId": column.project_id,
        "name": column.name,
        "position": column.position,
        "color": column.color,
    }


class ColumnService:
    """Creates, lists, reorders and deletes board columns."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        notification_service: Optional[NotificationService] = None,
        board_config: Optional[BoardDefaults] = None,
        permission_factory: Callable[[Session], ContainerPermissionChecker] = ProjectPermissionChecker,
    ):
        self.db_manager = db_manager
        self.notification_service = notification_service
        self.board_config = board_config or BoardDefaults()
        self.permission_factory = permission_factory

    def _validate_name(self, name: Optional[str]) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationFailed("Column name is required")
        if len(name) > self.board_config.max_column_name_length:
            raise ValidationFailed(
                f"Column name must be at most {self.board_config.max_column_name_length} characters"
            )
        return name

    def _require_project_permission(self, db: Session, user_id: str, project_id: str, permission: str):
        checker = self.permission_factory(db)
        if db.get(Project, project_id) is None or not checker.can_view_project(user_id, project_id):
            raise ContainerNotFound(f"Project not found: {project_id}")
        if not checker.can_mutate_project(user_id, project_id, permission):
            logger.warning(f"[COLUMN] {user_id} denied {permission} on project {project_id}")
            raise PermissionDenied(f"You do not have permission to change project {project_id}")

    def _record(self, user_id: str, project_id: str, column_name: str, action_type: ActivityType, details=None):
        if self.notification_service is None:
            return
        try:
            self.notification_service.record_column(user_id, project_id, column_name, action_type, details)
        except Exception as e:
            logger.error(f"[COLUMN_SIDE_EFFECT] {action_type.value} entry failed: {e}", exc_info=True)

    def create_column(
        self, user_id: str, project_id: str, name: str, color: Optional[str] = None
    ) -> Dict[str, Any]:
        """Append a column to the right end of the board."""
        name = self._validate_name(name)

        with self.db_manager.transaction() as db:
            self._require_project_permission(db, user_id, project_id, COLUMN_CREATE)
            reorderer = column_reorderer(db)
            reorderer.lock_containers(project_id)
            column = reorderer.append(project_id, BoardColumn(name=name, color=color))
            result = column_to_dict(column)

        logger.info(f"[COLUMN_CREATE] {result['id']} '{name}' in {project_id} at {result['position']}")
        self._record(user_id, project_id, name, ActivityType.COLUMN_CREATED)
        return result

    def create_default_columns(self, project_id: str) -> List[Dict[str, Any]]:
        """Seed a new project with the configured default columns.

        Projects that already have columns are left untouched.
        """
        with self.db_manager.transaction() as db:
            if db.get(Project, project_id) is None:
                raise ContainerNotFound(f"Project not found: {project_id}")
            reorderer = column_reorderer(db)
            reorderer.lock_containers(project_id)
            if reorderer.count(project_id) > 0:
                logger.info(f"[COLUMN_DEFAULTS] {project_id} already has columns, skipping")
                return []

            created = []
            for name in self.board_config.default_columns:
                column = reorderer.append(project_id, BoardColumn(name=name))
                created.append(column_to_dict(column))

        logger.info(f"[COLUMN_DEFAULTS] Created {len(created)} default column(s) for {project_id}")
        return created

    def list_board(self, user_id: str, project_id: str) -> Dict[str, Any]:
        """Columns in position order, each with its live cards in position order."""
        with self.db_manager.read_session() as db:
            project = db.get(Project, project_id)
            checker = self.permission_factory(db)
            if project is None or not checker.can_view_project(user_id, project_id):
                raise ContainerNotFound(f"Project not found: {project_id}")

            columns = db.scalars(
                select(BoardColumn)
                .where(BoardColumn.project_id == project_id)
                .order_by(BoardColumn.position, BoardColumn.id)
            ).all()
            cards = db.scalars(
                select(Card)
                .where(Card.column_id.in_([c.id for c in columns]), Card.is_archived.is_(False))
                .order_by(Card.position, Card.id)
            ).all()

            by_column: Dict[str, List[Dict[str, Any]]] = {c.id: [] for c in columns}
            for card in cards:
                by_column[card.column_id].append(card.to_dict())

            return {
                "project": {"id": project.id, "name": project.name, "teamId": project.team_id},
                "columns": [dict(column_to_dict(c), cards=by_column[c.id]) for c in columns],
            }

    def move_column(self, user_id: str, column_id: str, new_position: int) -> Dict[str, Any]:
        """Reorder a column within its project."""
        with self.db_manager.transaction() as db:
            column = db.get(BoardColumn, column_id)
            if column is None:
                raise ContainerNotFound(f"Column not found: {column_id}")
            project_id = column.project_id
            self._require_project_permission(db, user_id, project_id, COLUMN_REORDER)

            reorderer = column_reorderer(db)
            reorderer.lock_containers(project_id)
            db.refresh(column)
            old_position = column.position
            reorderer.move_within_container(project_id, column_id, old_position, new_position)
            result = column_to_dict(column)

        if old_position != new_position:
            self._record(
                user_id,
                project_id,
                result["name"],
                ActivityType.COLUMN_MOVED,
                {"fromPosition": old_position, "toPosition": new_position},
            )
        return result

    def delete_column(self, user_id: str, column_id: str) -> Dict[str, Any]:
        """Delete an empty column and close the gap among its siblings.

        Archived cards of the column are deleted with it.

        Raises:
            ValidationFailed: the column still has live cards
        """
        with self.db_manager.transaction() as db:
            column = db.get(BoardColumn, column_id)
            if column is None:
                raise ContainerNotFound(f"Column not found: {column_id}")
            project_id = column.project_id
            name = column.name
            self._require_project_permission(db, user_id, project_id, COLUMN_DELETE)

            reorderer = column_reorderer(db)
            reorderer.lock_containers(project_id)
            if card_reorderer(db).count(column_id) > 0:
                raise ValidationFailed(
                    "Cannot delete column with cards. Please move or delete all cards first."
                )

            db.execute(delete(Card).where(Card.column_id == column_id))
            db.refresh(column)
            reorderer.remove(column_id, project_id, column.position, delete_row=True)

        logger.info(f"[COLUMN_DELETE] {column_id} '{name}' deleted by {user_id}")
        self._record(user_id, project_id, name, ActivityType.COLUMN_DELETED)
        return {"success": True, "id": column_id}
