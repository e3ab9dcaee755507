"""Card service: create, move, archive, restore and delete cards.

Every write runs in one ``DatabaseManager.transaction()`` and changes
positions only through the card reorderer. Activity entries and
notifications are sent after the commit and never undo it.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.c1_board_enums import ActivityType, CardPriority
from src.c1_board_models import BoardColumn, Card
from src.c1_database_session import DatabaseManager
from src.c2_activity_service import NotificationService
from src.c2_permission_service import (
    CARD_CREATE,
    CARD_DELETE,
    CARD_EDIT,
    CARD_MOVE,
    ContainerPermissionChecker,
    ProjectPermissionChecker,
)
from src.c2_reorder_service import card_reorderer
from src.core.config import BoardDefaults
from src.core.exceptions import (
    ConcurrencyConflict,
    ContainerNotFound,
    ItemNotFound,
    PermissionDenied,
    ValidationFailed,
)

logger = logging.getLogger(__name__)

PermissionFactory = Callable[[Session], ContainerPermissionChecker]


class CardService:
    """Card operations for one database."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        notification_service: Optional[NotificationService] = None,
        board_config: Optional[BoardDefaults] = None,
        permission_factory: PermissionFactory = ProjectPermissionChecker,
    ):
        """Initialize card service.

        Args:
            db_manager: Database manager instance
            notification_service: Receives card events after commit; None disables them
            board_config: Title limits
            permission_factory: Builds the permission checker for a session
        """
        self.db_manager = db_manager
        self.notification_service = notification_service
        self.board_config = board_config or BoardDefaults()
        self.permission_factory = permission_factory

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_mutate(self, checker: ContainerPermissionChecker, user_id: str, column_id: str, permission: str):
        if checker.project_of(column_id) is None or not checker.can_view_container(user_id, column_id):
            raise ContainerNotFound(f"Column not found: {column_id}")
        if not checker.can_mutate_container(user_id, column_id, permission):
            logger.warning(f"[CARD] {user_id} denied {permission} on column {column_id}")
            raise PermissionDenied(f"You do not have permission to change column {column_id}")

    def _require_view(self, checker: ContainerPermissionChecker, user_id: str, column_id: str):
        if not checker.can_view_container(user_id, column_id):
            raise ContainerNotFound(f"Column not found: {column_id}")

    @staticmethod
    def _load_live_card(db: Session, card_id: str) -> Card:
        card = db.get(Card, card_id)
        if card is None or card.is_archived:
            raise ItemNotFound(f"Card not found: {card_id}")
        return card

    def _validate_title(self, title: Optional[str]) -> str:
        title = (title or "").strip()
        if not title:
            raise ValidationFailed("Card title is required")
        if len(title) > self.board_config.max_title_length:
            raise ValidationFailed(
                f"Card title must be at most {self.board_config.max_title_length} characters"
            )
        return title

    def _after_commit(self, label: str, method: str, *args) -> None:
        """Run a side effect; failures are logged and discarded."""
        if self.notification_service is None:
            return
        try:
            getattr(self.notification_service, method)(*args)
        except Exception as e:
            logger.error(f"[CARD_SIDE_EFFECT] {label} failed: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def create_card(
        self,
        user_id: str,
        column_id: str,
        title: str,
        description: Optional[str] = None,
        assignee_id: Optional[str] = None,
        priority: str = "medium",
    ) -> Dict[str, Any]:
        """Create a card at the end of a column.

        Returns:
            Card representation
        """
        title = self._validate_title(title)
        if priority not in {p.value for p in CardPriority}:
            raise ValidationFailed(f"Invalid priority: {priority}")

        with self.db_manager.transaction() as db:
            checker = self.permission_factory(db)
            self._require_mutate(checker, user_id, column_id, CARD_CREATE)

            reorderer = card_reorderer(db)
            reorderer.lock_containers(column_id)
            card = Card(
                title=title,
                description=description,
                assignee_id=assignee_id,
                owner_id=user_id,
                priority=priority,
            )
            reorderer.append(column_id, card)
            result = card.to_dict()

        logger.info(f"[CARD_CREATE] {result['id']} in {column_id} at {result['position']}")
        self._after_commit(
            "card created notice",
            "notify_card_created",
            user_id,
            result["id"],
        )
        return result

    def get_card(self, card_id: str, user_id: Optional[str] = None) -> Dict[str, Any]:
        """Fetch one card, archived or not."""
        with self.db_manager.read_session() as db:
            card = db.get(Card, card_id)
            if card is None:
                raise ItemNotFound(f"Card not found: {card_id}")
            if user_id is not None:
                checker = self.permission_factory(db)
                if not checker.can_view_container(user_id, card.column_id):
                    raise ItemNotFound(f"Card not found: {card_id}")
            return card.to_dict()

    def list_column_cards(
        self, column_id: str, include_archived: bool = False, user_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Cards of a column in board order; archived cards come last when included."""
        with self.db_manager.read_session() as db:
            if db.get(BoardColumn, column_id) is None:
                raise ContainerNotFound(f"Column not found: {column_id}")
            if user_id is not None:
                self._require_view(self.permission_factory(db), user_id, column_id)

            query = select(Card).where(Card.column_id == column_id)
            if not include_archived:
                query = query.where(Card.is_archived.is_(False))
            cards = db.scalars(query.order_by(Card.is_archived, Card.position, Card.id)).all()
            return [card.to_dict() for card in cards]

    def move_card(
        self,
        user_id: str,
        card_id: str,
        new_column_id: Optional[str],
        new_position: Optional[int],
        expected_column_id: Optional[str] = None,
        expected_position: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Move a card within its column or into another column.

        Args:
            user_id: Caller
            card_id: Card to move
            new_column_id: Target column
            new_position: Target position in the target column
            expected_column_id: Column the caller believes the card is in
            expected_position: Position the caller believes the card has

        Returns:
            Updated card representation

        Raises:
            ValidationFailed: target column or position missing
            ItemNotFound: card missing or archived
            ContainerNotFound: target column missing
            PermissionDenied: caller may not change source or target column
            ConcurrencyConflict: card is not where the caller expected it
            InvalidPosition: target position out of range
        """
        if not new_column_id or new_position is None:
            raise ValidationFailed("Missing required fields: newColumnId, newPosition")

        logger.info(f"[CARD_MOVE] {user_id} moving {card_id} -> {new_column_id}:{new_position}")

        with self.db_manager.transaction() as db:
            card = self._load_live_card(db, card_id)
            source_column_id = card.column_id

            checker = self.permission_factory(db)
            self._require_mutate(checker, user_id, new_column_id, CARD_MOVE)
            if source_column_id != new_column_id:
                self._require_mutate(checker, user_id, source_column_id, CARD_MOVE)

            reorderer = card_reorderer(db)
            reorderer.lock_containers(source_column_id, new_column_id)

            # Re-read under the lock; the card may have moved since the first read
            db.refresh(card)
            if card.is_archived:
                raise ItemNotFound(f"Card not found: {card_id}")
            if card.column_id != source_column_id:
                raise ConcurrencyConflict(f"Card {card_id} was moved by another request")
            source_position = card.position

            if expected_column_id is not None and expected_column_id != source_column_id:
                raise ConcurrencyConflict(
                    f"Card {card_id} is in column {source_column_id}, not {expected_column_id}"
                )
            if expected_position is not None and expected_position != source_position:
                raise ConcurrencyConflict(
                    f"Card {card_id} is at position {source_position}, not {expected_position}"
                )

            moved = source_column_id != new_column_id or source_position != new_position
            reorderer.move_across_containers(
                card_id, source_column_id, source_position, new_column_id, new_position
            )
            result = card.to_dict()

        if moved:
            self._after_commit(
                "card moved notice",
                "notify_card_moved",
                user_id,
                card_id,
                source_column_id,
                new_column_id,
                source_position,
                new_position,
            )
        return result

    def archive_card(self, user_id: str, card_id: str) -> Dict[str, Any]:
        """Archive a card and close the gap it leaves."""
        with self.db_manager.transaction() as db:
            card = self._load_live_card(db, card_id)
            checker = self.permission_factory(db)
            self._require_mutate(checker, user_id, card.column_id, CARD_EDIT)

            reorderer = card_reorderer(db)
            reorderer.lock_containers(card.column_id)
            db.refresh(card)
            reorderer.remove(card_id, card.column_id, card.position)
            result = card.to_dict()
            project_id = checker.project_of(card.column_id)

        logger.info(f"[CARD_ARCHIVE] {card_id} archived by {user_id}")
        self._after_commit(
            "card archived entry",
            "record",
            user_id,
            project_id,
            card_id,
            result["title"],
            ActivityType.CARD_ARCHIVED,
        )
        return result

    def restore_card(self, user_id: str, card_id: str) -> Dict[str, Any]:
        """Un-archive a card; it goes to the end of its column."""
        with self.db_manager.transaction() as db:
            card = db.get(Card, card_id)
            if card is None:
                raise ItemNotFound(f"Card not found: {card_id}")
            checker = self.permission_factory(db)
            self._require_mutate(checker, user_id, card.column_id, CARD_EDIT)

            reorderer = card_reorderer(db)
            reorderer.lock_containers(card.column_id)
            reorderer.reinstate(card_id)
            result = card.to_dict()
            project_id = checker.project_of(card.column_id)

        logger.info(f"[CARD_RESTORE] {card_id} restored at {result['position']} by {user_id}")
        self._after_commit(
            "card restored entry",
            "record",
            user_id,
            project_id,
            card_id,
            result["title"],
            ActivityType.CARD_RESTORED,
        )
        return result

    def delete_card(self, user_id: str, card_id: str) -> Dict[str, Any]:
        """Delete a card permanently; live cards close their gap first."""
        with self.db_manager.transaction() as db:
            card = db.get(Card, card_id)
            if card is None:
                raise ItemNotFound(f"Card not found: {card_id}")
            checker = self.permission_factory(db)
            self._require_mutate(checker, user_id, card.column_id, CARD_DELETE)
            result = card.to_dict()
            project_id = checker.project_of(card.column_id)

            if card.is_archived:
                # Archived cards hold no live position
                db.delete(card)
            else:
                reorderer = card_reorderer(db)
                reorderer.lock_containers(card.column_id)
                db.refresh(card)
                reorderer.remove(card_id, card.column_id, card.position, delete_row=True)

        logger.info(f"[CARD_DELETE] {card_id} deleted by {user_id}")
        self._after_commit(
            "card deleted entry",
            "record",
            user_id,
            project_id,
            card_id,
            result["title"],
            ActivityType.CARD_DELETED,
        )
        return {"success": True, "id": card_id}
