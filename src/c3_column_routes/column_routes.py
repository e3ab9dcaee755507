"""Board and column routes for the Flowboard API."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from src.c3_card_routes.card_routes import current_user_factory

logger = logging.getLogger(__name__)


class CreateColumnRequest(BaseModel):
    name: str = Field(..., description="Column name")
    color: Optional[str] = Field(None, description="Display color")


class MoveColumnRequest(BaseModel):
    newPosition: int = Field(..., description="Zero-based position among the project's columns")


def create_column_router(server_state):
    """Create column router with server_state dependency.

    Args:
        server_state: ServerState instance with column_service and settings

    Returns:
        APIRouter: Configured router with board and column endpoints
    """
    router = APIRouter(tags=["columns"])
    current_user = current_user_factory(server_state.settings.server.user_header)

    @router.get("/api/projects/{project_id}/board")
    def get_board_endpoint(project_id: str, user_id: str = Depends(current_user)):
        """Full board: ordered columns, each with its ordered live cards."""
        return server_state.column_service.list_board(user_id, project_id)

    @router.post("/api/projects/{project_id}/columns", status_code=201)
    def create_column_endpoint(project_id: str, request: CreateColumnRequest, user_id: str = Depends(current_user)):
        return server_state.column_service.create_column(user_id, project_id, request.name, color=request.color)

    @router.patch("/api/columns/{column_id}/move")
    def move_column_endpoint(column_id: str, request: MoveColumnRequest, user_id: str = Depends(current_user)):
        return server_state.column_service.move_column(user_id, column_id, request.newPosition)

    @router.delete("/api/columns/{column_id}")
    def delete_column_endpoint(column_id: str, user_id: str = Depends(current_user)):
        return server_state.column_service.delete_column(user_id, column_id)

    return router
