"""Main application entry point."""

import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI

from rentledger.api.ledger import router as ledger_router
from rentledger.models import Base
from rentledger.services.config import settings
from rentledger.services.db import engine
from rentledger.services.logging import setup_server_logging

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Create missing tables."""
    Base.metadata.create_all(engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Rent ledger API started (database=%s)", settings.database_url.split("://")[0])
    yield


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    app = FastAPI(
        title=settings.api_title,
        description="Rent schedule, lease balance and annual charge settlement",
        version=settings.api_version,
        lifespan=lifespan,
    )
    app.include_router(ledger_router)
    return app


app = create_app()


def main() -> None:
    """Run the API server."""
    setup_server_logging(settings.log_file, settings.log_level)
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    logger.info("Starting rent ledger API on %s:%s", host, port)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
