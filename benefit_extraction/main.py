"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, List, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from benefit_extraction.api.main import v1_router, worker_router
from benefit_extraction.api.v1.middleware.auth import SharedSecretMiddleware
from benefit_extraction.config import Settings, settings as default_settings
from benefit_extraction.core.database import (
    DatabaseClient,
    create_engine_from_settings,
    init_database,
)
from benefit_extraction.core.exceptions import AppError
from benefit_extraction.core.llm_client import create_llm_client
from benefit_extraction.core.storage_client import StorageClient
from benefit_extraction.services.extraction.extraction_service import ExtractionService
from benefit_extraction.services.worker_pool import ExtractionWorkerPool
from benefit_extraction.utils.logging import get_logger

LOGGER = get_logger(__name__, level=default_settings.log_level)


class RootResponse(BaseModel):
    """Root endpoint response payload."""

    name: str = Field(..., description="Service name")
    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Running application version")
    endpoints: List[str] = Field(..., description="Public entry points")


def build_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager.

        Builds the process-wide collaborators, stores them on ``app.state``
        and tears them down on shutdown.
        """
        LOGGER.info(
            "Starting application",
            extra={
                "app_name": settings.app_name,
                "version": settings.app_version,
                "environment": settings.environment,
            },
        )

        db_client = DatabaseClient(create_engine_from_settings(settings))
        try:
            await init_database(db_client, auto_migrate=settings.database_auto_migrate)
        except Exception as e:
            LOGGER.error("Failed to initialize database", exc_info=True, extra={"error": str(e)})

        try:
            llm_client = create_llm_client(settings)
        except (AppError, ValueError) as e:
            LOGGER.error(f"LLM client unavailable: {e}")
            llm_client = None
        if llm_client is None:
            LOGGER.warning("No LLM provider configured; extraction jobs will fail")

        storage_client = StorageClient(
            url=settings.supabase_url,
            service_role_key=settings.supabase_service_role_key,
            timeout=settings.http_timeout,
        )
        worker_pool = ExtractionWorkerPool(
            max_concurrent_jobs=settings.max_concurrent_extractions,
            max_queued_jobs=settings.max_queued_extractions,
        )

        app.state.db_client = db_client
        app.state.storage_client = storage_client
        app.state.worker_pool = worker_pool
        app.state.extraction_service = ExtractionService(
            session_factory=db_client.session_factory,
            llm_client=llm_client,
            storage_client=storage_client,
            bucket=settings.storage_bucket,
            worker_pool=worker_pool,
        )

        yield

        LOGGER.info("Shutting down application")
        await worker_pool.shutdown(timeout=settings.shutdown_grace_seconds)
        try:
            await db_client.disconnect()
        except Exception as e:
            LOGGER.error("Error closing database", exc_info=True, extra={"error": str(e)})

    return lifespan


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Settings to run with, the environment's by default

    Returns:
        FastAPI: Configured application
    """
    settings = settings or default_settings

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Background LLM extraction of benefit guides with human review",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=build_lifespan(settings),
    )
    app.state.settings = settings

    app.add_middleware(SharedSecretMiddleware, settings=settings)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(worker_router)
    app.include_router(v1_router, prefix=settings.api_v1_prefix)

    @app.get(
        "/",
        response_model=RootResponse,
        tags=["Root"],
        summary="Root endpoint",
        operation_id="get_public_root_metadata",
    )
    async def root() -> RootResponse:
        return RootResponse(
            name=settings.app_name,
            status="running",
            version=settings.app_version,
            endpoints=["POST /extract", "GET /health", f"{settings.api_v1_prefix}/documents"],
        )

    return app


app = create_app()


def main() -> None:
    uvicorn.run(
        "benefit_extraction.main:app",
        host=default_settings.host,
        port=default_settings.port,
        log_level=default_settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
