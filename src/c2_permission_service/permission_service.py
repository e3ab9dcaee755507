"""Capability checks for boards.

All services ask one question before writing: may this user mutate this
container? The answer comes from a ``ContainerPermissionChecker``, injected
into the services, instead of ad hoc checks at each call site.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, FrozenSet, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.c1_board_enums import ProjectRole
from src.c1_board_models import BoardColumn, Project, ProjectTeam, TeamMember

logger = logging.getLogger(__name__)

PROJECT_VIEW = "project.view"
COLUMN_CREATE = "column.create"
COLUMN_REORDER = "column.reorder"
COLUMN_DELETE = "column.delete"
CARD_CREATE = "card.create"
CARD_EDIT = "card.edit"
CARD_MOVE = "card.move"
CARD_DELETE = "card.delete"

ROLE_PERMISSIONS: Dict[ProjectRole, FrozenSet[str]] = {
    ProjectRole.ADMIN: frozenset(
        {
            PROJECT_VIEW,
            COLUMN_CREATE,
            COLUMN_REORDER,
            COLUMN_DELETE,
            CARD_CREATE,
            CARD_EDIT,
            CARD_MOVE,
            CARD_DELETE,
        }
    ),
    ProjectRole.EDITOR: frozenset(
        {PROJECT_VIEW, COLUMN_CREATE, COLUMN_REORDER, CARD_CREATE, CARD_EDIT, CARD_MOVE}
    ),
    ProjectRole.VIEWER: frozenset({PROJECT_VIEW}),
}

_ROLE_RANK = [ProjectRole.ADMIN, ProjectRole.EDITOR, ProjectRole.VIEWER]


class ContainerPermissionChecker(ABC):
    """Answers whether a user may view or change a project and its columns."""

    @abstractmethod
    def has_project_permission(self, user_id: str, project_id: str, permission: str) -> bool:
        """Check a single permission on a project."""

    @abstractmethod
    def project_of(self, column_id: str) -> Optional[str]:
        """Project owning a column, or None when the column does not exist."""

    def can_view_project(self, user_id: str, project_id: str) -> bool:
        return self.has_project_permission(user_id, project_id, PROJECT_VIEW)

    def can_mutate_project(self, user_id: str, project_id: str, permission: str = COLUMN_REORDER) -> bool:
        return self.has_project_permission(user_id, project_id, permission)

    def can_view_container(self, user_id: str, column_id: str) -> bool:
        project_id = self.project_of(column_id)
        return project_id is not None and self.can_view_project(user_id, project_id)

    def can_mutate_container(self, user_id: str, column_id: str, permission: str = CARD_MOVE) -> bool:
        """May ``user_id`` change the cards of ``column_id``? Missing columns are never writable."""
        project_id = self.project_of(column_id)
        if project_id is None:
            return False
        return self.has_project_permission(user_id, project_id, permission)


class ProjectPermissionChecker(ContainerPermissionChecker):
    """Permission checker backed by project ownership and team grants."""

    def __init__(self, db: Session):
        self.db = db
        self._role_cache: Dict[tuple, Optional[ProjectRole]] = {}

    def project_of(self, column_id: str) -> Optional[str]:
        return self.db.scalar(select(BoardColumn.project_id).where(BoardColumn.id == column_id))

    def is_project_owner(self, user_id: str, project_id: str) -> bool:
        owner_id = self.db.scalar(select(Project.owner_id).where(Project.id == project_id))
        return owner_id is not None and owner_id == user_id

    def project_role(self, user_id: str, project_id: str) -> Optional[ProjectRole]:
        """Highest role the user holds on the project through any of their teams."""
        key = (user_id, project_id)
        if key in self._role_cache:
            return self._role_cache[key]

        granted: List[str] = self.db.scalars(
            select(ProjectTeam.role)
            .join(TeamMember, TeamMember.team_id == ProjectTeam.team_id)
            .where(ProjectTeam.project_id == project_id, TeamMember.user_id == user_id)
        ).all()

        role = None
        for candidate in _ROLE_RANK:
            if candidate.value in granted:
                role = candidate
                break

        self._role_cache[key] = role
        return role

    def has_project_permission(self, user_id: str, project_id: str, permission: str) -> bool:
        if self.is_project_owner(user_id, project_id):
            return True

        role = self.project_role(user_id, project_id)
        if role is None:
            logger.debug(f"[PERMISSION] {user_id} has no access to project {project_id}")
            return False

        allowed = permission in ROLE_PERMISSIONS[role]
        if not allowed:
            logger.debug(f"[PERMISSION] {user_id} ({role.value}) lacks {permission} on {project_id}")
        return allowed


class AllowAllPermissionChecker(ContainerPermissionChecker):
    """Grants everything; used by maintenance scripts that run as the system."""

    def __init__(self, db: Session):
        self.db = db

    def project_of(self, column_id: str) -> Optional[str]:
        return self.db.scalar(select(BoardColumn.project_id).where(BoardColumn.id == column_id))

    def has_project_permission(self, user_id: str, project_id: str, permission: str) -> bool:
        return True
