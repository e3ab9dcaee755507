"""Tests for the project permission checker."""

import pytest

from src.c1_board_models import ProjectTeam
from src.c2_permission_service import (
    CARD_CREATE,
    CARD_DELETE,
    CARD_MOVE,
    COLUMN_DELETE,
    COLUMN_REORDER,
    AllowAllPermissionChecker,
    ProjectPermissionChecker,
)
from tests.fixtures.board_helpers import EDITOR, OUTSIDER, OWNER, VIEWER


class TestProjectPermissionChecker:

    @pytest.fixture
    def checker(self, db_manager, board):
        session = db_manager.get_session()
        yield ProjectPermissionChecker(session)
        session.close()

    def test_owner_has_everything(self, checker, board):
        for permission in (CARD_MOVE, CARD_DELETE, COLUMN_DELETE, "anything.else"):
            assert checker.has_project_permission(OWNER, board.project, permission)

    @pytest.mark.parametrize(
        "user_id,permission,allowed",
        [
            (EDITOR, CARD_MOVE, True),
            (EDITOR, CARD_CREATE, True),
            (EDITOR, COLUMN_REORDER, True),
            (EDITOR, CARD_DELETE, False),
            (EDITOR, COLUMN_DELETE, False),
            (VIEWER, CARD_MOVE, False),
            (VIEWER, CARD_CREATE, False),
            (OUTSIDER, CARD_MOVE, False),
        ],
    )
    def test_role_matrix(self, checker, board, user_id, permission, allowed):
        assert checker.has_project_permission(user_id, board.project, permission) is allowed

    def test_viewer_can_view_but_not_mutate(self, checker, board):
        assert checker.can_view_container(VIEWER, board.a)
        assert not checker.can_mutate_container(VIEWER, board.a)

    def test_outsider_cannot_view(self, checker, board):
        assert not checker.can_view_project(OUTSIDER, board.project)
        assert not checker.can_view_container(OUTSIDER, board.a)

    def test_missing_column_is_never_writable(self, checker, board):
        assert checker.project_of("column-missing") is None
        assert not checker.can_mutate_container(OWNER, "column-missing")

    def test_highest_role_wins(self, db_manager, board):
        with db_manager.transaction() as db:
            grant = db.get(ProjectTeam, (board.project, "team-core"))
            grant.role = "admin"

        with db_manager.read_session() as db:
            checker = ProjectPermissionChecker(db)
            assert checker.has_project_permission(EDITOR, board.project, COLUMN_DELETE)
            assert checker.has_project_permission(EDITOR, board.project, CARD_DELETE)


def test_allow_all_checker(db_manager, board):
    with db_manager.read_session() as db:
        checker = AllowAllPermissionChecker(db)
        assert checker.can_mutate_container(OUTSIDER, board.a, CARD_DELETE)
        assert not checker.can_mutate_container(OUTSIDER, "column-missing")
