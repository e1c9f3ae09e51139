"""routinely - access control, visibility and dependency rules for shared routines."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from routinely.core.db_client import close_connection, init_db
from routinely.core.logging import configure_logfire, instrument_fastapi
from routinely.interface.access_router import register_error_handlers
from routinely.interface.access_router import router as access_router


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Configure logging first so startup logs are captured
    configure_logfire()

    await init_db()
    logger.info("Database initialized")

    yield

    await close_connection()


app = FastAPI(
    title="routinely",
    description="Access control, visibility and dependency rules for shared routines",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

register_error_handlers(app)
app.include_router(access_router)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy"}, status_code=200)
