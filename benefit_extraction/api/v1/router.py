from fastapi import APIRouter

from benefit_extraction.api.v1.endpoints import benefits, documents

# Review API, mounted under the v1 prefix
api_router = APIRouter()

api_router.include_router(documents.router, prefix="/documents", tags=["Documents"])
api_router.include_router(benefits.router, prefix="/benefits", tags=["Benefits"])

__all__ = ["api_router"]
