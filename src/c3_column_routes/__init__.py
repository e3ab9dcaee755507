"""C3 Column Routes - board and column endpoints."""
from src.c3_column_routes.column_routes import create_column_router
__all__ = ["create_column_router"]
