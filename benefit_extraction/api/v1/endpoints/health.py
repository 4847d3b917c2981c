from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends

from benefit_extraction.config import Settings
from benefit_extraction.dependencies import get_app_settings
from benefit_extraction.schemas.extraction import HealthCheckResponse, HealthConfig

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthCheckResponse,
    summary="Health check endpoint",
    description="Check if the worker is running and which collaborators are configured",
    operation_id="get_service_health_status",
)
async def health_check(
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> HealthCheckResponse:
    """Health check endpoint.

    Returns:
        HealthCheckResponse: Liveness plus configuration flags
    """
    return HealthCheckResponse(
        status="ok",
        version=settings.app_version,
        timestamp=datetime.now(timezone.utc),
        config=HealthConfig(
            llm_configured=settings.llm_configured,
            storage_configured=settings.storage_configured,
            secret_configured=settings.secret_configured,
        ),
    )
