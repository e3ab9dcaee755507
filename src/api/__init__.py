"""Flowboard HTTP application."""
from src.api.server import ServerState, create_app

__all__ = ["ServerState", "create_app"]
