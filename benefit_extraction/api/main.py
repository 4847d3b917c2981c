from fastapi import APIRouter

from benefit_extraction.api.v1.endpoints import extraction, health
from benefit_extraction.api.v1.router import api_router as v1_router

# Worker endpoints live at the root; the review API is versioned.
worker_router = APIRouter()
worker_router.include_router(health.router, tags=["Health"])
worker_router.include_router(extraction.router, tags=["Extraction"])

__all__ = ["v1_router", "worker_router"]
