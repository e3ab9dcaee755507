#!/usr/bin/env python3
"""Start the Flowboard API server.

Usage:
    python run_server.py [--host HOST] [--port PORT]

Settings come from the environment and .env (see src/core/config.py).
"""

import argparse
import logging

import uvicorn

from src.api import create_app
from src.core.config import get_settings
from src.core.logging_config import configure_logging

logger = logging.getLogger(__name__)


def main():
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Run the Flowboard API server")
    parser.add_argument("--host", default=settings.server.host, help="Host to bind")
    parser.add_argument("--port", type=int, default=settings.server.port, help="Port to bind")
    args = parser.parse_args()

    configure_logging(settings.log_level)
    logger.info(f"Starting Flowboard on {args.host}:{args.port}")

    app = create_app(settings)
    uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
