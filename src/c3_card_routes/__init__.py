"""C3 Card Routes - card endpoints."""
from src.c3_card_routes.card_routes import create_card_router, current_user_factory
__all__ = ["create_card_router", "current_user_factory"]
