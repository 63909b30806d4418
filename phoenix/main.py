"""FastAPI application entry point."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from phoenix.api.v1.endpoints import health
from phoenix.api.v1.router import api_router
from phoenix.core.config import settings
from phoenix.core.database import async_session_maker, close_database, init_database
from phoenix.core.tracing import configure_tracing, shutdown_tracing
from phoenix.services.enrichment.factory import build_ingestion_loop, build_pipeline
from phoenix.utils.logging import get_logger, quiet_third_party_loggers

LOGGER = get_logger(__name__, level=settings.log_level)

DB_INIT_TIMEOUT_SECONDS = 30.0


class RootResponse(BaseModel):
    """Root endpoint response payload."""

    message: str = Field(..., description="Service status message")
    version: str = Field(..., description="Running application version")
    docs: str = Field(..., description="Path to the interactive API docs")
    health: str = Field(..., description="Path to the health check endpoint")


async def _stop_ingestion(task: Optional[asyncio.Task]) -> None:
    """Cancel the CDC reader; its shutdown path drains in-flight claims."""
    if task is None:
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        LOGGER.info("CDC ingestion task cancelled")
    except Exception as e:
        LOGGER.error(f"CDC ingestion task ended with error: {e}", exc_info=True)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    quiet_third_party_loggers()
    configure_tracing(settings)

    LOGGER.info(
        "Starting application",
        extra={
            "app_name": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
        },
    )

    LOGGER.info("Starting database initialization...")
    try:
        await asyncio.wait_for(init_database(), timeout=DB_INIT_TIMEOUT_SECONDS)
        LOGGER.info("Database initialized successfully")
    except asyncio.TimeoutError:
        LOGGER.error(f"Database initialization timed out after {DB_INIT_TIMEOUT_SECONDS}s")
    except Exception as e:
        LOGGER.error(f"Database initialization failed: {e}", exc_info=True)

    pipeline = build_pipeline(settings, async_session_maker)
    app.state.pipeline = pipeline

    ingestion_task: Optional[asyncio.Task] = None
    if settings.cdc.enabled:
        ingestion_loop = build_ingestion_loop(pipeline, settings)
        app.state.ingestion_loop = ingestion_loop
        ingestion_task = asyncio.create_task(ingestion_loop.run(), name="cdc-ingestion")
    else:
        LOGGER.info("CDC ingestion disabled via configuration")

    yield

    LOGGER.info("Shutting down application")
    await _stop_ingestion(ingestion_task)

    try:
        await close_database()
    except Exception as e:
        LOGGER.error(
            "Error closing database",
            exc_info=True,
            extra={"error": str(e)}
        )
    shutdown_tracing()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Enriches legacy insurance claims with AI summaries and fraud scores via CDC",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)


@app.middleware("http")
async def add_correlation_id(request: Request, call_next):
    correlation_id = request.headers.get("X-Correlation-ID", str(uuid4()))
    request.state.correlation_id = correlation_id
    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID"],
)

app.include_router(api_router, prefix=settings.api_v1_prefix)
app.include_router(health.router, prefix="/health", tags=["Health"])


@app.get(
    "/",
    response_model=RootResponse,
    tags=["Root"],
    summary="Root endpoint",
    description="Get basic information about the API",
    operation_id="get_public_root_metadata",
)
async def root() -> RootResponse:
    return RootResponse(
        message="Server is running",
        version=settings.app_version,
        docs="/docs",
        health="/health",
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "phoenix.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
