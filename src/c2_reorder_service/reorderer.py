"""Dense per-container ordering of board items.

Every card (and column) position change in Flowboard goes through
``PositionReorderer`` so that, inside each container, the positions of live
items are always exactly ``0..count-1``. The reorderer never commits: it runs
inside the caller's ``DatabaseManager.transaction()`` so that the range shifts
and the final reassignment of the moved item land together or not at all.

Moves use shift-range updates: only rows between the old and new position are
touched, never the whole container.
"""

import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional, Set, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from src.c1_board_models import BoardColumn, Card, Project
from src.core.exceptions import ConcurrencyConflict, InvalidPosition, ItemNotFound, ValidationFailed

logger = logging.getLogger(__name__)


class PositionReorderer:
    """Maintains contiguous positions for one kind of item within its containers."""

    def __init__(
        self,
        db: Session,
        model,
        container_attr: str,
        live=None,
        archive_attr: Optional[str] = None,
        container_model=None,
    ):
        """Bind the reorderer to a session and an item model.

        Args:
            db: Session of the enclosing transaction
            model: Mapped class of the ordered items
            container_attr: Name of the foreign key column naming the container
            live: Optional SQL criterion selecting non-removed items
            archive_attr: Boolean attribute set by ``remove`` instead of deleting
            container_model: Mapped class of the container, used for row locks
        """
        self.db = db
        self.model = model
        self.container_attr = container_attr
        self.container_col = getattr(model, container_attr)
        self.live = live
        self.archive_attr = archive_attr
        self.container_model = container_model

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _scope(self, container_id: Any) -> list:
        clauses = [self.container_col == container_id]
        if self.live is not None:
            clauses.append(self.live)
        return clauses

    def next_position(self, container_id: Any) -> int:
        """Position an appended item would get: ``max + 1``, or 0 when empty."""
        max_position = self.db.scalar(
            select(func.coalesce(func.max(self.model.position), -1)).where(*self._scope(container_id))
        )
        return int(max_position) + 1

    def count(self, container_id: Any) -> int:
        """Number of live items in the container."""
        return int(
            self.db.scalar(select(func.count()).select_from(self.model).where(*self._scope(container_id)))
        )

    def positions(self, container_id: Any) -> List[Tuple[Any, int]]:
        """Ordered ``(item_id, position)`` pairs of live items."""
        rows = self.db.execute(
            select(self.model.id, self.model.position)
            .where(*self._scope(container_id))
            .order_by(self.model.position, self.model.id)
        ).all()
        return [(row[0], row[1]) for row in rows]

    def check_contiguity(self, container_id: Any) -> bool:
        """True when live positions are exactly ``0..count-1``."""
        found = [position for _, position in self.positions(container_id)]
        return found == list(range(len(found)))

    def lock_containers(self, *container_ids: Any) -> Set[Any]:
        """Lock container rows for the rest of the transaction.

        Rows are locked in id order so two movers touching the same pair of
        containers cannot deadlock. Dialects without ``FOR UPDATE`` (SQLite)
        rely on the write lock taken when the transaction began.

        Returns:
            The subset of ``container_ids`` that exist
        """
        if self.container_model is None:
            return set(container_ids)
        ids = sorted({cid for cid in container_ids if cid is not None})
        found = self.db.scalars(
            select(self.container_model.id)
            .where(self.container_model.id.in_(ids))
            .order_by(self.container_model.id)
            .with_for_update()
        ).all()
        return set(found)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _shift(self, container_id: Any, delta: int, *criteria) -> int:
        """Add ``delta`` to the position of live items matching ``criteria``."""
        values = {"position": self.model.position + delta}
        if hasattr(self.model, "updated_at"):
            values["updated_at"] = datetime.utcnow()
        result = self.db.execute(
            update(self.model)
            .where(*self._scope(container_id), *criteria)
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0

    def _load(self, item_id: Any):
        item = self.db.get(self.model, item_id)
        if item is None:
            raise ItemNotFound(f"{self.model.__name__} not found: {item_id}")
        if self.archive_attr and getattr(item, self.archive_attr):
            raise ItemNotFound(f"{self.model.__name__} {item_id} is archived")
        return item

    def _expect_at(self, item, container_id: Any, position: int) -> None:
        current_container = getattr(item, self.container_attr)
        if current_container != container_id or item.position != position:
            raise ConcurrencyConflict(
                f"{self.model.__name__} {item.id} is at {current_container}:{item.position}, "
                f"not {container_id}:{position}"
            )

    def append(self, container_id: Any, item) -> Any:
        """Place a new item at the end of the container and add it to the session."""
        setattr(item, self.container_attr, container_id)
        item.position = self.next_position(container_id)
        self.db.add(item)
        self.db.flush()
        logger.debug(f"[REORDER] Appended {item.id} to {container_id} at {item.position}")
        return item

    def move_within_container(
        self, container_id: Any, item_id: Any, old_position: int, new_position: int
    ) -> int:
        """Move an item to another slot of the same container.

        Returns:
            Number of sibling rows shifted (0 for a no-op)

        Raises:
            ItemNotFound: item missing or removed
            ConcurrencyConflict: item is no longer at ``old_position``
            InvalidPosition: ``new_position`` outside ``[0, count-1]``
        """
        item = self._load(item_id)
        self._expect_at(item, container_id, old_position)

        if old_position == new_position:
            return 0

        count = self.count(container_id)
        if not 0 <= new_position < count:
            raise InvalidPosition(new_position, 0, count - 1)

        position = self.model.position
        if new_position > old_position:
            shifted = self._shift(container_id, -1, position > old_position, position <= new_position)
        else:
            shifted = self._shift(container_id, 1, position >= new_position, position < old_position)

        item.position = new_position
        self.db.flush()
        logger.info(
            f"[REORDER] {item_id} moved within {container_id}: {old_position} -> {new_position} "
            f"({shifted} shifted)"
        )
        return shifted

    def move_across_containers(
        self,
        item_id: Any,
        source_container_id: Any,
        source_position: int,
        target_container_id: Any,
        target_position: int,
    ) -> None:
        """Move an item into another container, closing the gap it leaves.

        Raises:
            ItemNotFound: item missing or removed
            ConcurrencyConflict: item is no longer at ``source_position``
            InvalidPosition: ``target_position`` outside ``[0, target_count]``
        """
        if source_container_id == target_container_id:
            self.move_within_container(source_container_id, item_id, source_position, target_position)
            return

        item = self._load(item_id)
        self._expect_at(item, source_container_id, source_position)

        target_count = self.count(target_container_id)
        if not 0 <= target_position <= target_count:
            raise InvalidPosition(target_position, 0, target_count)

        position = self.model.position
        closed = self._shift(
            source_container_id, -1, position > source_position, self.model.id != item_id
        )
        opened = self._shift(
            target_container_id, 1, position >= target_position, self.model.id != item_id
        )

        setattr(item, self.container_attr, target_container_id)
        item.position = target_position
        self.db.flush()
        logger.info(
            f"[REORDER] {item_id} moved {source_container_id}:{source_position} -> "
            f"{target_container_id}:{target_position} (closed {closed}, opened {opened})"
        )

    def remove(self, item_id: Any, container_id: Any, position: int, delete_row: bool = False) -> None:
        """Archive (or delete) an item and close the gap it leaves."""
        item = self._load(item_id)
        self._expect_at(item, container_id, position)

        self._shift(container_id, -1, self.model.position > position, self.model.id != item_id)

        if delete_row or not self.archive_attr:
            self.db.delete(item)
        else:
            setattr(item, self.archive_attr, True)
        self.db.flush()
        logger.info(f"[REORDER] {item_id} removed from {container_id} at {position}")

    def reinstate(self, item_id: Any):
        """Bring an archived item back, appended to the end of its container."""
        item = self.db.get(self.model, item_id)
        if item is None:
            raise ItemNotFound(f"{self.model.__name__} not found: {item_id}")
        if not self.archive_attr or not getattr(item, self.archive_attr):
            raise ValidationFailed(f"{self.model.__name__} {item_id} is not archived")

        container_id = getattr(item, self.container_attr)
        item.position = self.next_position(container_id)
        setattr(item, self.archive_attr, False)
        self.db.flush()
        logger.info(f"[REORDER] {item_id} restored to {container_id} at {item.position}")
        return item

    def renumber(self, container_id: Any) -> int:
        """Rewrite live positions to ``0..count-1`` keeping the current order.

        Ties on position are broken by creation time then id.

        Returns:
            Number of items whose position changed
        """
        order = [self.model.position]
        if hasattr(self.model, "created_at"):
            order.append(self.model.created_at)
        order.append(self.model.id)

        items = self.db.scalars(select(self.model).where(*self._scope(container_id)).order_by(*order)).all()
        changed = 0
        for index, item in enumerate(items):
            if item.position != index:
                item.position = index
                changed += 1
        self.db.flush()
        if changed:
            logger.warning(f"[REORDER] Renumbered {changed} item(s) in {container_id}")
        return changed


def card_reorderer(db: Session) -> PositionReorderer:
    """Reorderer for cards within columns; archived cards are not live."""
    return PositionReorderer(
        db,
        Card,
        "column_id",
        live=Card.is_archived.is_(False),
        archive_attr="is_archived",
        container_model=BoardColumn,
    )


def column_reorderer(db: Session) -> PositionReorderer:
    """Reorderer for columns within projects."""
    return PositionReorderer(db, BoardColumn, "project_id", container_model=Project)


def check_all(reorderer: PositionReorderer, container_ids: Iterable[Any]) -> List[Any]:
    """Container ids whose live positions are not contiguous."""
    return [cid for cid in container_ids if not reorderer.check_contiguity(cid)]
