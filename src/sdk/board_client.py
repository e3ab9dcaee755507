"""HTTP client for Flowboard with an optimistic local board cache.

The client applies a move to its cached board before the server answers. If
the server rejects the move, or the request fails in transit, the cached
board is thrown away and fetched again; the client never tries to undo the
local change by hand.
"""

import copy
import logging
from typing import Any, Dict, Optional, Tuple

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.sdk.exceptions import BoardAPIError, FlowboardClientError, MoveRejected

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (requests.ConnectionError, requests.Timeout)


def locate_card(board: Dict[str, Any], card_id: str) -> Optional[Tuple[str, int]]:
    """``(column_id, position)`` of a card in a board payload, or None."""
    for column in board["columns"]:
        for card in column["cards"]:
            if card["id"] == card_id:
                return column["id"], card["position"]
    return None


def apply_local_move(board: Dict[str, Any], card_id: str, column_id: str, position: int) -> Dict[str, Any]:
    """Return a copy of ``board`` with one card moved.

    Siblings shift exactly as they do on the server, so a move the server
    accepts leaves the copy equal to what a re-fetch would return.

    Raises:
        ValueError: unknown card or column, or position out of range
    """
    updated = copy.deepcopy(board)
    columns = {column["id"]: column for column in updated["columns"]}
    if column_id not in columns:
        raise ValueError(f"Unknown column: {column_id}")

    source = None
    for column in updated["columns"]:
        for index, card in enumerate(column["cards"]):
            if card["id"] == card_id:
                source = column
                moving = column["cards"].pop(index)
                break
        if source is not None:
            break
    if source is None:
        raise ValueError(f"Unknown card: {card_id}")

    target = columns[column_id]
    if not 0 <= position <= len(target["cards"]):
        raise ValueError(f"Invalid position {position}: must be between 0 and {len(target['cards'])}")

    moving["columnId"] = column_id
    target["cards"].insert(position, moving)
    for column in {id(source): source, id(target): target}.values():
        for index, card in enumerate(column["cards"]):
            card["position"] = index
    return updated


class BoardClient:
    """Client for one user of a Flowboard server."""

    def __init__(
        self,
        base_url: str,
        user_id: str,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
        user_header: str = "X-User-ID",
    ):
        self.base_url = base_url.rstrip("/")
        self.user_id = user_id
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers[user_header] = user_id
        self._boards: Dict[str, Dict[str, Any]] = {}

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    @staticmethod
    def _json_or_raise(response: requests.Response) -> Any:
        if response.status_code >= 400:
            try:
                message = response.json().get("error", response.text)
            except ValueError:
                message = response.text
            raise BoardAPIError(response.status_code, message)
        return response.json()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(min=1, max=10),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        reraise=True,
    )
    def _get(self, path: str) -> Any:
        response = self.session.get(self._url(path), timeout=self.timeout)
        return self._json_or_raise(response)

    def fetch_board(self, project_id: str) -> Dict[str, Any]:
        """Load a board from the server and make it the cached copy."""
        board = self._get(f"/api/projects/{project_id}/board")
        self._boards[project_id] = board
        logger.debug(f"Fetched board {project_id} ({len(board['columns'])} columns)")
        return board

    def cached_board(self, project_id: str) -> Optional[Dict[str, Any]]:
        return self._boards.get(project_id)

    def invalidate(self, project_id: Optional[str] = None):
        """Drop one cached board, or all of them."""
        if project_id is None:
            self._boards.clear()
        else:
            self._boards.pop(project_id, None)

    def _project_of(self, card_id: str) -> Optional[str]:
        for project_id, board in self._boards.items():
            if locate_card(board, card_id) is not None:
                return project_id
        return None

    def move_card(self, card_id: str, column_id: str, position: int) -> Dict[str, Any]:
        """Move a card, updating the cached board first.

        Returns:
            The card as stored by the server

        Raises:
            MoveRejected: the server refused the move or could not be reached;
                the cached board has been re-fetched
        """
        project_id = self._project_of(card_id)
        body: Dict[str, Any] = {"newColumnId": column_id, "newPosition": position}

        if project_id is not None:
            board = self._boards[project_id]
            expected_column_id, expected_position = locate_card(board, card_id)
            body["expectedColumnId"] = expected_column_id
            body["expectedPosition"] = expected_position
            try:
                self._boards[project_id] = apply_local_move(board, card_id, column_id, position)
            except ValueError as e:
                # Cache cannot express the move; let the server decide
                logger.debug(f"Local move of {card_id} skipped: {e}")
                self._boards.pop(project_id, None)

        try:
            response = self.session.patch(
                self._url(f"/api/cards/{card_id}/move"), json=body, timeout=self.timeout
            )
            return self._json_or_raise(response)
        except BoardAPIError as e:
            self._resync(project_id)
            raise MoveRejected(e.status_code, e.message) from e
        except requests.RequestException as e:
            self._resync(project_id)
            raise MoveRejected(None, str(e)) from e

    def _resync(self, project_id: Optional[str]):
        """Discard the optimistic copy and load the server's board."""
        if project_id is None:
            return
        self._boards.pop(project_id, None)
        try:
            self.fetch_board(project_id)
        except (BoardAPIError, requests.RequestException) as e:
            logger.warning(f"Could not re-fetch board {project_id} after a failed move: {e}")


class MoveCoalescer:
    """Collapses a drag gesture into a single move request per card.

    ``hover`` only records where the card currently is under the pointer;
    nothing is sent until ``drop``.
    """

    def __init__(self, client: BoardClient):
        self.client = client
        self._pending: Dict[str, Tuple[str, int]] = {}

    def hover(self, card_id: str, column_id: str, position: int):
        self._pending[card_id] = (column_id, position)

    def drop(self, card_id: str, column_id: Optional[str] = None, position: Optional[int] = None) -> Dict[str, Any]:
        """Send the last recorded position for ``card_id``.

        Raises:
            FlowboardClientError: nothing was recorded for the card
            MoveRejected: the server refused the move
        """
        if column_id is not None and position is not None:
            self.hover(card_id, column_id, position)
        if card_id not in self._pending:
            raise FlowboardClientError(f"No pending move for card {card_id}")
        target_column_id, target_position = self._pending.pop(card_id)
        return self.client.move_card(card_id, target_column_id, target_position)

    def pending(self) -> Dict[str, Tuple[str, int]]:
        return dict(self._pending)

    def cancel(self, card_id: str) -> bool:
        return self._pending.pop(card_id, None) is not None
