from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from benefit_extraction.core.exceptions import WorkerPoolFullError
from benefit_extraction.dependencies import get_extraction_service
from benefit_extraction.schemas.extraction import ExtractAcceptedResponse, ExtractRequest
from benefit_extraction.services.extraction.extraction_service import ExtractionService
from benefit_extraction.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


@router.post(
    "/extract",
    response_model=ExtractAcceptedResponse,
    summary="Start benefit extraction for a document",
    operation_id="start_extraction",
)
async def start_extraction(
    background_tasks: BackgroundTasks,
    extraction_service: Annotated[ExtractionService, Depends(get_extraction_service)],
    body: Optional[ExtractRequest] = None,
) -> ExtractAcceptedResponse:
    """Accept an extraction job and run it after the response is sent.

    The acknowledgement only means the job was accepted; progress is
    observed by polling the document's status.
    """
    if body is None or not body.document_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing documentId")

    try:
        document_id = UUID(body.document_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="documentId must be a valid UUID",
        )

    try:
        handle = extraction_service.extract(document_id)
    except WorkerPoolFullError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)

    background_tasks.add_task(extraction_service.worker_pool.launch, handle)
    LOGGER.info(
        "Extraction accepted",
        extra={"document_id": str(document_id), "job_id": str(handle.job_id)},
    )
    return ExtractAcceptedResponse(document_id=document_id, job_id=handle.job_id)
