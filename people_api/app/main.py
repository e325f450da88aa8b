"""
Main entrypoint for the People API.

This module assembles the FastAPI application, sets up logging, error
handlers and the MongoDB client, and includes the versioned routers.
The ``create_app`` function builds and configures the app, which is
then instantiated at module import time as ``app``, so it can be run
with uvicorn or any other ASGI server, e.g.::

    uvicorn people_api.app.main:app --reload

The application title and version are provided via ``Settings`` from
``core.config``.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api.v1.router import router as v1_router
from .core.config import settings
from .core.db import create_client, init_db
from .core.errors import register_error_handlers
from .core.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the MongoDB client on startup and close it on shutdown."""
    client = create_client()
    database = client[settings.mongodb_database]
    app.state.mongo_client = client
    app.state.database = database
    logger.info("Using MongoDB database %s", settings.mongodb_database)
    await init_db(database)
    try:
        yield
    finally:
        await client.close()
        logger.info("MongoDB client closed")


def create_app() -> FastAPI:
    """Create and configure a FastAPI application.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    # Initialise logging before anything else so that the setup below
    # can log.
    setup_logging(settings.log_level, settings.log_file)

    app = FastAPI(
        title=settings.project_name,
        version=settings.api_version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    register_error_handlers(app)

    # Mount versioned routes under /api/v1.
    app.include_router(v1_router, prefix="/api/v1")

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
