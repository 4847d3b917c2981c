from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from benefit_extraction.core.exceptions import DatabaseError, DocumentNotFoundError
from benefit_extraction.dependencies import get_review_service
from benefit_extraction.schemas.review import (
    ApproveAllResponse,
    BenefitResponse,
    DeleteDocumentResponse,
    DocumentListResponse,
    DocumentResponse,
    DocumentStatusResponse,
    ReviewDecisionRequest,
)
from benefit_extraction.services.review_service import ReviewService
from benefit_extraction.services.status_machine import ProcessingStatus
from benefit_extraction.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


def _not_found(e: DocumentNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


@router.get(
    "",
    response_model=DocumentListResponse,
    summary="List documents",
    operation_id="list_documents",
)
async def list_documents(
    review_service: Annotated[ReviewService, Depends(get_review_service)],
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    processing_status: Optional[ProcessingStatus] = Query(None, alias="status"),
) -> DocumentListResponse:
    """List documents newest first."""
    documents, total = await review_service.list_documents(
        limit=limit, offset=offset, status=processing_status
    )
    return DocumentListResponse(
        total=total,
        documents=[DocumentResponse.model_validate(d) for d in documents],
    )


@router.get(
    "/{document_id}",
    response_model=DocumentResponse,
    summary="Get document details",
    operation_id="get_document",
)
async def get_document(
    document_id: UUID,
    review_service: Annotated[ReviewService, Depends(get_review_service)],
) -> DocumentResponse:
    try:
        document = await review_service.get_document(document_id)
    except DocumentNotFoundError as e:
        raise _not_found(e)
    return DocumentResponse.model_validate(document)


@router.get(
    "/{document_id}/status",
    response_model=DocumentStatusResponse,
    summary="Get document processing status",
    operation_id="get_document_status",
)
async def get_document_status(
    document_id: UUID,
    review_service: Annotated[ReviewService, Depends(get_review_service)],
) -> DocumentStatusResponse:
    """Status endpoint used by polling clients."""
    try:
        status_row = await review_service.get_document_status(document_id)
    except DocumentNotFoundError as e:
        raise _not_found(e)
    return DocumentStatusResponse(**status_row)


@router.get(
    "/{document_id}/benefits",
    response_model=List[BenefitResponse],
    summary="List benefits extracted from a document",
    operation_id="get_document_benefits",
)
async def get_document_benefits(
    document_id: UUID,
    review_service: Annotated[ReviewService, Depends(get_review_service)],
) -> List[BenefitResponse]:
    try:
        benefits = await review_service.get_document_benefits(document_id)
    except DocumentNotFoundError as e:
        raise _not_found(e)
    return [BenefitResponse.model_validate(b) for b in benefits]


@router.post(
    "/{document_id}/benefits/approve-all",
    response_model=ApproveAllResponse,
    summary="Approve every unreviewed benefit of a document",
    operation_id="approve_all_benefits",
)
async def approve_all_benefits(
    document_id: UUID,
    body: ReviewDecisionRequest,
    review_service: Annotated[ReviewService, Depends(get_review_service)],
) -> ApproveAllResponse:
    try:
        approved = await review_service.approve_all_pending(document_id, body.reviewer_id)
    except DocumentNotFoundError as e:
        raise _not_found(e)
    return ApproveAllResponse(document_id=document_id, approved=approved)


@router.delete(
    "/{document_id}",
    response_model=DeleteDocumentResponse,
    summary="Delete a document with its benefits and stored file",
    operation_id="delete_document",
)
async def delete_document(
    document_id: UUID,
    review_service: Annotated[ReviewService, Depends(get_review_service)],
    actor_id: Optional[UUID] = Query(None),
) -> DeleteDocumentResponse:
    try:
        await review_service.delete_document(document_id, actor_id=actor_id)
    except DocumentNotFoundError as e:
        raise _not_found(e)
    except DatabaseError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    return DeleteDocumentResponse(document_id=document_id)
