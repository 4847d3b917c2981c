"""Dependency providers for the FastAPI application.

Long-lived collaborators are built once in the application lifespan and kept
on ``app.state``; request-scoped services are assembled here around a
per-request database session.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from benefit_extraction.config import Settings
from benefit_extraction.core.database import get_async_session
from benefit_extraction.services.extraction.extraction_service import ExtractionService
from benefit_extraction.services.review_service import ReviewService


def get_app_settings(request: Request) -> Settings:
    """Settings the application was started with."""
    return request.app.state.settings


def get_extraction_service(request: Request) -> ExtractionService:
    """Process-wide extraction service.

    Returns:
        ExtractionService: Service bound to the worker pool
    """
    return request.app.state.extraction_service


async def get_review_service(
    request: Request,
    db_session: Annotated[AsyncSession, Depends(get_async_session)],
) -> ReviewService:
    """Get review service instance.

    Args:
        request: Incoming request
        db_session: Database session from dependency injection

    Returns:
        ReviewService: Service for review operations
    """
    settings: Settings = request.app.state.settings
    return ReviewService(
        db_session,
        storage_client=request.app.state.storage_client,
        bucket=settings.storage_bucket,
        record_revisions=settings.record_benefit_revisions,
    )
