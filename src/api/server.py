"""FastAPI application for Flowboard."""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src import __version__
from src.c1_database_session import DatabaseManager
from src.c2_activity_service import NotificationService
from src.c2_card_service import CardService
from src.c2_column_service import ColumnService
from src.c3_card_routes import create_card_router
from src.c3_column_routes import create_column_router
from src.c3_health_routes import router as health_router
from src.core.config import Settings, get_settings
from src.core.exceptions import BoardError

logger = logging.getLogger(__name__)


class ServerState:
    """Services shared by all request handlers."""

    def __init__(self, settings: Settings, db_manager: Optional[DatabaseManager] = None):
        self.settings = settings
        if db_manager is None:
            db_manager = DatabaseManager(
                settings.database.url,
                echo=settings.database.echo,
                busy_timeout_seconds=settings.database.busy_timeout_seconds,
            )
        self.db_manager = db_manager
        self.notification_service = NotificationService(db_manager, settings.notifications)
        self.card_service = CardService(db_manager, self.notification_service, settings.board)
        self.column_service = ColumnService(db_manager, self.notification_service, settings.board)

    def initialize(self):
        """Create tables if they are missing."""
        self.db_manager.create_tables()


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def register_exception_handlers(app: FastAPI):
    """Answer every failure with ``{"error": message}``."""

    @app.exception_handler(BoardError)
    async def board_error_handler(request, exc: BoardError):
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request, exc: RequestValidationError):
        fields = ", ".join(".".join(str(p) for p in err.get("loc", ())[1:]) for err in exc.errors())
        return _error_response(400, f"Invalid request: {fields}" if fields else "Invalid request")

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return _error_response(500, "Internal server error")


def create_app(settings: Optional[Settings] = None, db_manager: Optional[DatabaseManager] = None) -> FastAPI:
    """Build the Flowboard application.

    Args:
        settings: Settings to use; defaults to the global settings
        db_manager: Database to serve; defaults to one built from settings

    Returns:
        FastAPI: Configured application
    """
    settings = settings or get_settings()
    server_state = ServerState(settings, db_manager)
    server_state.initialize()

    app = FastAPI(
        title="Flowboard API",
        description="Kanban boards with transactional card ordering",
        version=__version__,
        debug=settings.debug,
    )
    app.state.server_state = server_state

    if settings.server.enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(create_card_router(server_state))
    app.include_router(create_column_router(server_state))

    logger.info(f"Flowboard API ready (database: {server_state.db_manager.engine.url.render_as_string(hide_password=True)})")
    return app
