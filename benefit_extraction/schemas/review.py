"""Schemas for document status and the review API."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from benefit_extraction.services.status_machine import ProcessingStatus


class DocumentStatusResponse(BaseModel):
    """The polling contract: status plus stored failure message."""

    processing_status: ProcessingStatus
    error_message: Optional[str] = None


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    issuer: Optional[str] = None
    card_id: Optional[str] = None
    card_name: Optional[str] = None
    file_path: str
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    processing_status: ProcessingStatus
    error_message: Optional[str] = None
    extraction_started_at: Optional[datetime] = None
    extraction_completed_at: Optional[datetime] = None
    uploaded_by: Optional[UUID] = None
    created_at: Optional[datetime] = None


class DocumentListResponse(BaseModel):
    total: int
    documents: List[DocumentResponse]


class BenefitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    document_id: UUID
    card_id: str
    benefit_type: str
    extracted_data: Dict[str, Any]
    confidence_score: float
    source_excerpts: Optional[List[str]] = None
    requires_review: bool
    is_approved: Optional[bool] = None
    reviewed_by: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class BenefitRevisionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    benefit_id: UUID
    previous_data: Optional[Dict[str, Any]] = None
    new_data: Dict[str, Any]
    edited_by: Optional[UUID] = None
    created_at: Optional[datetime] = None


class ReviewDecisionRequest(BaseModel):
    reviewer_id: UUID = Field(..., description="User recording the decision")


class BenefitDataUpdateRequest(BaseModel):
    extracted_data: Dict[str, Any] = Field(..., description="Replacement payload")
    editor_id: Optional[UUID] = Field(default=None, description="User making the correction")


class ApproveAllResponse(BaseModel):
    document_id: UUID
    approved: int


class DeleteDocumentResponse(BaseModel):
    document_id: UUID
    deleted: bool = True
