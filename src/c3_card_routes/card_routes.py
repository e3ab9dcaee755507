"""Card routes for the Flowboard API."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from src.core.exceptions import BoardError

logger = logging.getLogger(__name__)


# Request/Response Models
class CreateCardRequest(BaseModel):
    title: str = Field(..., description="Card title")
    description: Optional[str] = Field(None, description="Card description")
    assigneeId: Optional[str] = Field(None, description="User the card is assigned to")
    priority: str = Field("medium", description="Priority: high, medium, low")


class MoveCardRequest(BaseModel):
    newColumnId: Optional[str] = Field(None, description="Target column")
    newPosition: Optional[int] = Field(None, description="Zero-based position in the target column")
    expectedColumnId: Optional[str] = Field(None, description="Column the caller last saw the card in")
    expectedPosition: Optional[int] = Field(None, description="Position the caller last saw the card at")


def current_user_factory(header_name: str):
    """Build a dependency returning the caller id from ``header_name``."""

    def current_user(request: Request) -> str:
        user_id = request.headers.get(header_name)
        if not user_id:
            raise HTTPException(status_code=401, detail="Unauthorized")
        return user_id

    return current_user


def create_card_router(server_state):
    """Create card router with server_state dependency.

    Args:
        server_state: ServerState instance with card_service and settings

    Returns:
        APIRouter: Configured router with card endpoints
    """
    router = APIRouter(tags=["cards"])
    current_user = current_user_factory(server_state.settings.server.user_header)

    @router.post("/api/columns/{column_id}/cards", status_code=201)
    def create_card_endpoint(column_id: str, request: CreateCardRequest, user_id: str = Depends(current_user)):
        """Create a card at the end of a column."""
        return server_state.card_service.create_card(
            user_id,
            column_id,
            request.title,
            description=request.description,
            assignee_id=request.assigneeId,
            priority=request.priority,
        )

    @router.get("/api/columns/{column_id}/cards")
    def list_cards_endpoint(column_id: str, include_archived: bool = False, user_id: str = Depends(current_user)):
        cards = server_state.card_service.list_column_cards(
            column_id, include_archived=include_archived, user_id=user_id
        )
        return {"cards": cards, "total_count": len(cards)}

    @router.get("/api/cards/{card_id}")
    def get_card_endpoint(card_id: str, user_id: str = Depends(current_user)):
        return server_state.card_service.get_card(card_id, user_id=user_id)

    @router.patch("/api/cards/{card_id}/move")
    def move_card_endpoint(card_id: str, request: MoveCardRequest, user_id: str = Depends(current_user)):
        """Move a card to a column and position.

        The card comes back as stored after the move. Any error leaves every
        position untouched; callers should re-fetch the board.
        """
        try:
            return server_state.card_service.move_card(
                user_id,
                card_id,
                request.newColumnId,
                request.newPosition,
                expected_column_id=request.expectedColumnId,
                expected_position=request.expectedPosition,
            )
        except BoardError as e:
            logger.warning(f"[CARD_MOVE] {card_id} rejected ({e.status_code}): {e.message}")
            raise

    @router.post("/api/cards/{card_id}/archive")
    def archive_card_endpoint(card_id: str, user_id: str = Depends(current_user)):
        return server_state.card_service.archive_card(user_id, card_id)

    @router.post("/api/cards/{card_id}/restore")
    def restore_card_endpoint(card_id: str, user_id: str = Depends(current_user)):
        return server_state.card_service.restore_card(user_id, card_id)

    @router.delete("/api/cards/{card_id}")
    def delete_card_endpoint(card_id: str, user_id: str = Depends(current_user)):
        return server_state.card_service.delete_card(user_id, card_id)

    return router
