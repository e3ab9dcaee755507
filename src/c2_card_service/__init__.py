"""C2 Card Service - card lifecycle and moves."""
from src.c2_card_service.card_service import CardService

__all__ = ["CardService"]
