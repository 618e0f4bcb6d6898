"""
Main application entry point.
Builds the FastAPI app and serves it with uvicorn.
"""
import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from app.api.routes import create_app, exchange_map
from app.config.settings import settings

# Configure logging for stdout/stderr collectors
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
    force=True,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Market Price Gateway...")
    logger.info(f"Serving {len(exchange_map)} exchanges: {', '.join(sorted(exchange_map))}")
    try:
        yield
    finally:
        logger.info("Shutdown complete")


api = create_app()
api.router.lifespan_context = lifespan


def main():
    """Run the application."""
    logger.info(
        "Configuration loaded",
        extra={
            "host": settings.host,
            "port": settings.port,
            "log_level": settings.log_level,
            "data_service_url": settings.data_service_url,
            "request_timeout_seconds": settings.request_timeout_seconds,
        },
    )

    uvicorn.run(
        api,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        lifespan="on",
        access_log=True,
    )


if __name__ == "__main__":
    main()
