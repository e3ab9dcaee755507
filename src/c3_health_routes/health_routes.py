"""Health check routes for the Flowboard API."""

from datetime import datetime
from fastapi import APIRouter

from src import __version__

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Health check endpoint.

    Returns:
        dict: Health status, service name, timestamp, and version
    """
    return {
        "status": "healthy",
        "service": "flowboard",
        "timestamp": datetime.utcnow().isoformat(),
        "version": __version__,
    }
