"""Tests for CardService, including its activity and notification side effects."""

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest
from sqlalchemy import select, text

from src.c1_board_models import ActivityLog, Card, Notification
from src.c1_database_session import DatabaseManager
from src.c2_activity_service import NotificationService
from src.c2_card_service import CardService
from src.c2_reorder_service import card_reorderer
from src.core.config import BoardDefaults, NotificationConfig
from src.core.exceptions import (
    ConcurrencyConflict,
    ContainerNotFound,
    InvalidPosition,
    ItemNotFound,
    PermissionDenied,
    ValidationFailed,
)
from tests.fixtures.board_helpers import ASSIGNEE, EDITOR, OUTSIDER, OWNER, VIEWER, add_cards, positions


@pytest.fixture
def notification_service(db_manager):
    return NotificationService(db_manager, NotificationConfig())


@pytest.fixture
def card_service(db_manager, notification_service):
    return CardService(db_manager, notification_service, BoardDefaults())


def notifications_for(db_manager, user_id):
    with db_manager.read_session() as db:
        return [(n.type, n.title, n.message) for n in db.scalars(
            select(Notification).where(Notification.user_id == user_id)
        ).all()]


def activity(db_manager):
    with db_manager.read_session() as db:
        return [(a.action_type, a.old_value, a.new_value) for a in db.scalars(
            select(ActivityLog).order_by(ActivityLog.id)
        ).all()]


class TestCreateCard:

    def test_appends_to_column(self, card_service, db_manager, board):
        card = card_service.create_card(EDITOR, board.a, "  Write docs  ", priority="high")

        assert card["title"] == "Write docs"
        assert card["position"] == 3
        assert card["ownerId"] == EDITOR
        assert positions(db_manager, board.a)[-1] == (card["id"], 3)

    def test_notifies_team_and_logs(self, card_service, db_manager, board):
        card = card_service.create_card(EDITOR, board.b, "Ship it")

        assert activity(db_manager) == [("card_created", None, "Ship it")]
        assert notifications_for(db_manager, OWNER) == [
            ("task_created", "New card created", 'Eddie Editor created "Ship it" in In Progress')
        ]
        assert notifications_for(db_manager, EDITOR) == []
        assert card["position"] == 0

    @pytest.mark.parametrize("title", ["", "   ", None, "x" * 256])
    def test_rejects_bad_title(self, card_service, board, title):
        with pytest.raises(ValidationFailed):
            card_service.create_card(EDITOR, board.a, title)

    def test_rejects_bad_priority(self, card_service, board):
        with pytest.raises(ValidationFailed):
            card_service.create_card(EDITOR, board.a, "Task", priority="urgent")

    def test_viewer_cannot_create(self, card_service, db_manager, board):
        with pytest.raises(PermissionDenied):
            card_service.create_card(VIEWER, board.a, "Task")
        assert len(positions(db_manager, board.a)) == 3

    def test_unknown_column(self, card_service, board):
        with pytest.raises(ContainerNotFound):
            card_service.create_card(OWNER, "column-missing", "Task")

    def test_outsider_cannot_see_column(self, card_service, db_manager, board):
        with pytest.raises(ContainerNotFound):
            card_service.create_card(OUTSIDER, board.a, "Task")
        assert len(positions(db_manager, board.a)) == 3


class TestMoveCard:

    def test_move_across_columns(self, card_service, db_manager, board):
        result = card_service.move_card(EDITOR, board.y, board.b, 0)

        assert result["columnId"] == board.b
        assert result["position"] == 0
        assert positions(db_manager, board.a) == [(board.x, 0), (board.z, 1)]
        assert positions(db_manager, board.b) == [(board.y, 0)]

    def test_move_within_column(self, card_service, db_manager, board):
        result = card_service.move_card(EDITOR, board.x, board.a, 2)

        assert result["position"] == 2
        assert positions(db_manager, board.a) == [(board.y, 0), (board.z, 1), (board.x, 2)]

    def test_missing_fields(self, card_service, board):
        with pytest.raises(ValidationFailed, match="Missing required fields"):
            card_service.move_card(EDITOR, board.x, None, 1)
        with pytest.raises(ValidationFailed):
            card_service.move_card(EDITOR, board.x, board.b, None)

    @pytest.mark.parametrize("user_id,error", [(VIEWER, PermissionDenied), (OUTSIDER, ContainerNotFound)])
    def test_denied_move_changes_nothing(self, card_service, db_manager, board, user_id, error):
        before = positions(db_manager, board.a)

        with pytest.raises(error):
            card_service.move_card(user_id, board.x, board.b, 0)

        assert positions(db_manager, board.a) == before
        assert positions(db_manager, board.b) == []
        assert activity(db_manager) == []

    def test_source_column_permission_is_checked(self, db_manager, board):
        checker = Mock()
        checker.project_of.return_value = board.project
        checker.can_mutate_container.side_effect = lambda user_id, column_id, permission: column_id != board.a
        service = CardService(db_manager, permission_factory=lambda session: checker)

        with pytest.raises(PermissionDenied):
            service.move_card(EDITOR, board.x, board.b, 0)
        assert positions(db_manager, board.a)[0] == (board.x, 0)

    def test_unknown_target_column(self, card_service, board):
        with pytest.raises(ContainerNotFound):
            card_service.move_card(OWNER, board.x, "column-missing", 0)

    def test_unknown_card(self, card_service, board):
        with pytest.raises(ItemNotFound):
            card_service.move_card(OWNER, "card-missing", board.b, 0)

    def test_invalid_position(self, card_service, db_manager, board):
        with pytest.raises(InvalidPosition):
            card_service.move_card(OWNER, board.x, board.b, 1)
        assert positions(db_manager, board.b) == []

    def test_stale_expected_position(self, card_service, db_manager, board):
        with pytest.raises(ConcurrencyConflict):
            card_service.move_card(OWNER, board.x, board.b, 0, expected_position=2)
        assert positions(db_manager, board.a)[0] == (board.x, 0)

    def test_stale_expected_column(self, card_service, board):
        with pytest.raises(ConcurrencyConflict):
            card_service.move_card(OWNER, board.x, board.b, 0, expected_column_id=board.c)

    def test_matching_expectations_pass(self, card_service, board):
        result = card_service.move_card(
            OWNER, board.x, board.b, 0, expected_column_id=board.a, expected_position=0
        )
        assert result["columnId"] == board.b

    def test_notifies_assignee_and_team(self, card_service, db_manager, board):
        add_cards(db_manager, board.b, ["card-assigned"], assignee_id=ASSIGNEE)

        card_service.move_card(EDITOR, "card-assigned", board.c, 0)

        assert notifications_for(db_manager, ASSIGNEE) == [
            (
                "task_updated",
                "Your card was moved",
                'Eddie Editor moved "card-assigned" from In Progress to Done',
            )
        ]
        assert notifications_for(db_manager, OWNER) == [
            ("task_moved", "Card moved", 'Eddie Editor moved "card-assigned" to Done')
        ]
        assert notifications_for(db_manager, EDITOR) == []
        assert notifications_for(db_manager, VIEWER) == []
        assert activity(db_manager)[-1] == ("card_moved", "In Progress", "Done")

    def test_team_fan_out_is_capped(self, db_manager, board):
        service = CardService(db_manager, NotificationService(db_manager, NotificationConfig(max_team_recipients=1)))

        service.move_card(EDITOR, board.x, board.b, 0)

        with db_manager.read_session() as db:
            assert len(db.scalars(select(Notification)).all()) == 1

    def test_reorder_only_logs_activity(self, card_service, db_manager, board):
        card_service.move_card(EDITOR, board.x, board.a, 1)

        assert activity(db_manager) == [("card_reordered", "0", "1")]
        with db_manager.read_session() as db:
            assert db.scalars(select(Notification)).all() == []

    def test_noop_move_sends_nothing(self, db_manager, board):
        notifier = Mock()
        service = CardService(db_manager, notifier)

        result = service.move_card(EDITOR, board.y, board.a, 1)

        assert result["position"] == 1
        notifier.notify_card_moved.assert_not_called()

    def test_notification_failure_keeps_the_move(self, db_manager, board):
        notifier = Mock()
        notifier.notify_card_moved.side_effect = RuntimeError("mail server down")
        service = CardService(db_manager, notifier)

        result = service.move_card(EDITOR, board.x, board.b, 0)

        assert result["columnId"] == board.b
        assert positions(db_manager, board.b) == [(board.x, 0)]
        notifier.notify_card_moved.assert_called_once_with(EDITOR, board.x, board.a, board.b, 0, 0)


class TestArchiveRestoreDelete:

    def test_archive_and_restore(self, card_service, db_manager, board):
        archived = card_service.archive_card(EDITOR, board.x)
        assert archived["isArchived"] is True
        assert positions(db_manager, board.a) == [(board.y, 0), (board.z, 1)]

        restored = card_service.restore_card(EDITOR, board.x)
        assert restored["isArchived"] is False
        assert restored["position"] == 2
        assert [row[0] for row in activity(db_manager)] == ["card_archived", "card_restored"]

    def test_archive_twice(self, card_service, board):
        card_service.archive_card(EDITOR, board.x)
        with pytest.raises(ItemNotFound):
            card_service.archive_card(EDITOR, board.x)

    def test_list_includes_archived_last(self, card_service, board):
        card_service.archive_card(OWNER, board.x)

        live = card_service.list_column_cards(board.a)
        everything = card_service.list_column_cards(board.a, include_archived=True)

        assert [c["id"] for c in live] == [board.y, board.z]
        assert [c["id"] for c in everything] == [board.y, board.z, board.x]

    def test_list_hidden_from_outsider(self, card_service, board):
        with pytest.raises(ContainerNotFound):
            card_service.list_column_cards(board.a, user_id=OUTSIDER)

    def test_editor_cannot_delete(self, card_service, board):
        with pytest.raises(PermissionDenied):
            card_service.delete_card(EDITOR, board.x)

    @pytest.mark.parametrize("operation", ["archive_card", "restore_card", "delete_card"])
    def test_outsider_sees_no_column(self, card_service, board, operation):
        if operation == "restore_card":
            card_service.archive_card(OWNER, board.x)

        with pytest.raises(ContainerNotFound):
            getattr(card_service, operation)(OUTSIDER, board.x)

    def test_owner_deletes(self, card_service, db_manager, board):
        assert card_service.delete_card(OWNER, board.y) == {"success": True, "id": board.y}

        assert positions(db_manager, board.a) == [(board.x, 0), (board.z, 1)]
        with pytest.raises(ItemNotFound):
            card_service.get_card(board.y)
        assert activity(db_manager)[-1] == ("card_deleted", "Y", None)

    def test_delete_archived_card(self, card_service, db_manager, board):
        card_service.archive_card(OWNER, board.x)
        card_service.delete_card(OWNER, board.x)

        assert positions(db_manager, board.a) == [(board.y, 0), (board.z, 1)]
        with db_manager.read_session() as db:
            assert db.get(Card, board.x) is None


class TestWriteLocks:

    def test_locked_database_is_a_conflict(self, db_manager, board):
        contender = DatabaseManager(db_manager.database_url, busy_timeout_seconds=0)
        try:
            with db_manager.transaction() as holder:
                holder.execute(text("SELECT 1"))
                with pytest.raises(ConcurrencyConflict):
                    CardService(contender).move_card(OWNER, board.x, board.b, 0)
        finally:
            contender.engine.dispose()

        assert positions(db_manager, board.a)[0] == (board.x, 0)

    def test_overlapping_moves_keep_columns_dense(self, db_manager, board):
        add_cards(db_manager, board.b, ["card-w"])
        service = CardService(db_manager)

        def shuttle(card_id):
            conflicts = 0
            for _ in range(15):
                current = service.get_card(card_id)["columnId"]
                target = board.b if current == board.a else board.a
                try:
                    service.move_card(OWNER, card_id, target, 0)
                except ConcurrencyConflict:
                    conflicts += 1
            return conflicts

        with ThreadPoolExecutor(max_workers=4) as pool:
            # result() re-raises anything other than a conflict
            conflicts = list(pool.map(shuttle, [board.x, board.y, board.z, "card-w"]))

        assert sum(conflicts) < 60
        with db_manager.read_session() as db:
            reorderer = card_reorderer(db)
            assert reorderer.check_contiguity(board.a)
            assert reorderer.check_contiguity(board.b)
            assert reorderer.count(board.a) + reorderer.count(board.b) == 4
