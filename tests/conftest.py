"""Pytest configuration and shared fixtures for Flowboard tests.

Every test gets its own SQLite file under ``tmp_path`` so transactions,
``BEGIN IMMEDIATE`` and foreign keys behave as they do in production.
"""

from types import SimpleNamespace

import pytest
from sqlalchemy import event

from src.c1_board_models import BoardColumn, Card, Project, ProjectTeam, Team, TeamMember, User
from src.c1_database_session import DatabaseManager
from src.c2_reorder_service import card_reorderer, column_reorderer
from tests.fixtures.board_helpers import (
    ASSIGNEE,
    COLUMN_A,
    COLUMN_B,
    COLUMN_C,
    EDITOR,
    OUTSIDER,
    OWNER,
    PROJECT,
    VIEWER,
)


@pytest.fixture
def db_manager(tmp_path):
    """Fresh database with all tables created."""
    manager = DatabaseManager(f"sqlite:///{tmp_path / 'flowboard.db'}")
    manager.create_tables()
    yield manager
    manager.engine.dispose()


@pytest.fixture
def board(db_manager):
    """Seed a project with three columns and cards X, Y, Z in column A.

    Layout:
        team-core (owner, editor, assignee) holds the editor role on the project
        team-guests (viewer) holds the viewer role
        column-a = [X@0, Y@1, Z@2], column-b = [], column-c = []
    """
    with db_manager.transaction() as db:
        db.add_all(
            [
                User(id=OWNER, email="owner@example.com", name="Olive Owner"),
                User(id=EDITOR, email="editor@example.com", name="Eddie Editor"),
                User(id=ASSIGNEE, email="assignee@example.com", name="Ava Assignee"),
                User(id=VIEWER, email="viewer@example.com", name="Vic Viewer"),
                User(id=OUTSIDER, email="outsider@example.com", name="Otto Outsider"),
            ]
        )
        db.flush()
        db.add_all(
            [
                Team(id="team-core", name="Core", slug="core", created_by=OWNER),
                Team(id="team-guests", name="Guests", slug="guests", created_by=OWNER),
            ]
        )
        db.flush()
        db.add_all(
            [
                TeamMember(team_id="team-core", user_id=OWNER, role="owner"),
                TeamMember(team_id="team-core", user_id=EDITOR, role="member"),
                TeamMember(team_id="team-core", user_id=ASSIGNEE, role="member"),
                TeamMember(team_id="team-guests", user_id=VIEWER, role="viewer"),
                Project(id=PROJECT, team_id="team-core", owner_id=OWNER, name="Launch", slug="launch"),
            ]
        )
        db.flush()
        db.add_all(
            [
                ProjectTeam(project_id=PROJECT, team_id="team-core", role="editor"),
                ProjectTeam(project_id=PROJECT, team_id="team-guests", role="viewer"),
            ]
        )

        columns = column_reorderer(db)
        for column_id, name in [(COLUMN_A, "To Do"), (COLUMN_B, "In Progress"), (COLUMN_C, "Done")]:
            columns.append(PROJECT, BoardColumn(id=column_id, name=name))

        cards = card_reorderer(db)
        for card_id in ("card-x", "card-y", "card-z"):
            cards.append(COLUMN_A, Card(id=card_id, title=card_id[-1].upper(), owner_id=OWNER))

    return SimpleNamespace(
        project=PROJECT,
        a=COLUMN_A,
        b=COLUMN_B,
        c=COLUMN_C,
        x="card-x",
        y="card-y",
        z="card-z",
    )


@pytest.fixture
def count_updates(db_manager):
    """Count UPDATE statements sent to the database while the test runs."""
    statements = []

    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().upper().startswith("UPDATE"):
            statements.append(statement)

    event.listen(db_manager.engine, "before_cursor_execute", before_cursor_execute)
    yield statements
    event.remove(db_manager.engine, "before_cursor_execute", before_cursor_execute)
