"""Board models for Flowboard: teams, projects, columns and cards."""

import uuid
from datetime import datetime
from sqlalchemy import (
    Column,
    String,
    Text,
    Integer,
    DateTime,
    Boolean,
    ForeignKey,
    CheckConstraint,
    JSON,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import relationship

from src.c1_database_session import Base


def prefixed_id(prefix: str):
    """Build a default factory producing ids like ``card-<uuid>``."""
    return lambda: f"{prefix}-{uuid.uuid4()}"


class User(Base):
    """A user as known to the board; identity comes from the auth provider."""

    __tablename__ = "users"

    id = Column(String, primary_key=True, default=prefixed_id("user"))
    email = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    avatar_url = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    memberships = relationship("TeamMember", back_populates="user")


class Team(Base):
    """Teams own projects and grant their members access to them."""

    __tablename__ = "teams"

    id = Column(String, primary_key=True, default=prefixed_id("team"))
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False)
    description = Column(Text)
    created_by = Column(String, ForeignKey("users.id"), nullable=False)
    is_archived = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    members = relationship("TeamMember", back_populates="team", cascade="all, delete-orphan")
    projects = relationship("Project", back_populates="team")


class TeamMember(Base):
    """Team membership tracking."""

    __tablename__ = "team_members"

    team_id = Column(String, ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    role = Column(
        String,
        CheckConstraint("role IN ('owner', 'admin', 'member', 'viewer')"),
        default="member",
        nullable=False,
    )
    joined_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    team = relationship("Team", back_populates="members")
    user = relationship("User", back_populates="memberships")

    __table_args__ = (Index("idx_team_members_user", "user_id"),)


class Project(Base):
    """A kanban board belonging to a team."""

    __tablename__ = "projects"

    id = Column(String, primary_key=True, default=prefixed_id("project"))
    team_id = Column(String, ForeignKey("teams.id"), nullable=False)
    owner_id = Column(String, ForeignKey("users.id"), nullable=False)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False)
    description = Column(Text)
    is_archived = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    team = relationship("Team", back_populates="projects")
    owner = relationship("User")
    columns = relationship(
        "BoardColumn",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="BoardColumn.position",
    )
    team_grants = relationship("ProjectTeam", back_populates="project", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("team_id", "slug", name="team_slug_unique"),
        Index("idx_projects_team", "team_id"),
    )


class ProjectTeam(Base):
    """Grants a team a role on a project."""

    __tablename__ = "project_teams"

    project_id = Column(String, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True)
    team_id = Column(String, ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True)
    role = Column(
        String,
        CheckConstraint("role IN ('admin', 'editor', 'viewer')"),
        default="editor",
        nullable=False,
    )

    # Relationships
    project = relationship("Project", back_populates="team_grants")
    team = relationship("Team")


class BoardColumn(Base):
    """A vertical lane of a board; positions are dense per project."""

    __tablename__ = "columns"

    id = Column(String, primary_key=True, default=prefixed_id("column"))
    project_id = Column(String, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    position = Column(Integer, nullable=False)
    color = Column(String(50))
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="columns")
    cards = relationship("Card", back_populates="column", order_by="Card.position")

    __table_args__ = (Index("idx_columns_project_position", "project_id", "position"),)


class Card(Base):
    """A task on the board; positions are dense per column among live cards."""

    __tablename__ = "cards"

    id = Column(String, primary_key=True, default=prefixed_id("card"))
    column_id = Column(String, ForeignKey("columns.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    assignee_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"))
    owner_id = Column(String, ForeignKey("users.id"))
    priority = Column(
        String(20),
        CheckConstraint("priority IN ('high', 'medium', 'low')"),
        default="medium",
    )
    position = Column(Integer, nullable=False)
    is_archived = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    column = relationship("BoardColumn", back_populates="cards")
    assignee = relationship("User", foreign_keys=[assignee_id])

    __table_args__ = (
        Index("idx_cards_column_position", "column_id", "position"),
        Index("idx_cards_assignee", "assignee_id"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "columnId": self.column_id,
            "title": self.title,
            "description": self.description,
            "assigneeId": self.assignee_id,
            "ownerId": self.owner_id,
            "priority": self.priority,
            "position": self.position,
            "isArchived": self.is_archived,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


class ActivityLog(Base):
    """Audit trail of changes made to projects and cards."""

    __tablename__ = "activity_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(String, ForeignKey("projects.id", ondelete="CASCADE"))
    card_id = Column(String)  # Not a foreign key: entries outlive deleted cards
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    action_type = Column(String(100), nullable=False)
    old_value = Column(Text)
    new_value = Column(Text)
    details = Column(JSON)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_activity_project", "project_id"),
        Index("idx_activity_card", "card_id"),
        Index("idx_activity_created_at", "created_at"),
    )


class Notification(Base):
    """In-app notification for a user."""

    __tablename__ = "notifications"

    id = Column(String, primary_key=True, default=prefixed_id("notif"))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text)
    card_id = Column(String)
    project_id = Column(String, ForeignKey("projects.id", ondelete="CASCADE"))
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (Index("idx_notifications_user_read", "user_id", "is_read"),)
