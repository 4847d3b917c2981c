from typing import Annotated, List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from benefit_extraction.core.exceptions import BenefitNotFoundError
from benefit_extraction.dependencies import get_review_service
from benefit_extraction.schemas.review import (
    BenefitDataUpdateRequest,
    BenefitResponse,
    BenefitRevisionResponse,
    ReviewDecisionRequest,
)
from benefit_extraction.services.review_service import ReviewService

router = APIRouter()


def _not_found(e: BenefitNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


@router.post(
    "/{benefit_id}/approve",
    response_model=BenefitResponse,
    summary="Approve an extracted benefit",
    operation_id="approve_benefit",
)
async def approve_benefit(
    benefit_id: UUID,
    body: ReviewDecisionRequest,
    review_service: Annotated[ReviewService, Depends(get_review_service)],
) -> BenefitResponse:
    try:
        benefit = await review_service.approve(benefit_id, body.reviewer_id)
    except BenefitNotFoundError as e:
        raise _not_found(e)
    return BenefitResponse.model_validate(benefit)


@router.post(
    "/{benefit_id}/reject",
    response_model=BenefitResponse,
    summary="Reject an extracted benefit",
    operation_id="reject_benefit",
)
async def reject_benefit(
    benefit_id: UUID,
    body: ReviewDecisionRequest,
    review_service: Annotated[ReviewService, Depends(get_review_service)],
) -> BenefitResponse:
    try:
        benefit = await review_service.reject(benefit_id, body.reviewer_id)
    except BenefitNotFoundError as e:
        raise _not_found(e)
    return BenefitResponse.model_validate(benefit)


@router.patch(
    "/{benefit_id}",
    response_model=BenefitResponse,
    summary="Correct an extracted benefit's data",
    operation_id="update_benefit_data",
)
async def update_benefit_data(
    benefit_id: UUID,
    body: BenefitDataUpdateRequest,
    review_service: Annotated[ReviewService, Depends(get_review_service)],
) -> BenefitResponse:
    """Replace the payload; the approval decision is left as it was."""
    try:
        benefit = await review_service.update_benefit_data(
            benefit_id, body.extracted_data, editor_id=body.editor_id
        )
    except BenefitNotFoundError as e:
        raise _not_found(e)
    return BenefitResponse.model_validate(benefit)


@router.get(
    "/{benefit_id}/revisions",
    response_model=List[BenefitRevisionResponse],
    summary="List manual corrections of a benefit",
    operation_id="get_benefit_revisions",
)
async def get_benefit_revisions(
    benefit_id: UUID,
    review_service: Annotated[ReviewService, Depends(get_review_service)],
) -> List[BenefitRevisionResponse]:
    try:
        revisions = await review_service.get_benefit_revisions(benefit_id)
    except BenefitNotFoundError as e:
        raise _not_found(e)
    return [BenefitRevisionResponse.model_validate(r) for r in revisions]
