"""Human review of extracted benefits."""

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from benefit_extraction.core.exceptions import (
    BenefitNotFoundError,
    DatabaseError,
    DocumentNotFoundError,
)
from benefit_extraction.core.storage_client import StorageClient
from benefit_extraction.database.models import BenefitRevision, Document, ExtractedBenefit
from benefit_extraction.repositories.audit_repository import AuditRepository
from benefit_extraction.repositories.benefit_repository import BenefitRepository
from benefit_extraction.repositories.document_repository import DocumentRepository
from benefit_extraction.services.status_machine import ProcessingStatus
from benefit_extraction.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ReviewService:
    """Approval, rejection, correction and deletion of extraction results.

    Operates on a request-scoped session; each mutating call commits its own
    transaction.
    """

    def __init__(
        self,
        session: AsyncSession,
        storage_client: StorageClient,
        bucket: str,
        record_revisions: bool = True,
    ):
        self.session = session
        self.storage_client = storage_client
        self.bucket = bucket
        self.record_revisions = record_revisions
        self.documents = DocumentRepository(session)
        self.benefits = BenefitRepository(session)
        self.audit = AuditRepository(session)

    async def _require_benefit(self, benefit_id: UUID) -> ExtractedBenefit:
        benefit = await self.benefits.get_by_id(benefit_id)
        if benefit is None:
            raise BenefitNotFoundError(f"Benefit {benefit_id} not found")
        return benefit

    async def _require_document(self, document_id: UUID) -> Document:
        document = await self.documents.get_by_id(document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return document

    async def _set_approval(
        self, benefit_id: UUID, approved: bool, reviewer_id: UUID
    ) -> ExtractedBenefit:
        await self._require_benefit(benefit_id)
        benefit = await self.benefits.set_approval(benefit_id, approved, reviewer_id)
        await self.session.commit()
        LOGGER.info(
            "Benefit reviewed",
            extra={
                "benefit_id": str(benefit_id),
                "approved": approved,
                "reviewer_id": str(reviewer_id),
            },
        )
        return benefit

    async def approve(self, benefit_id: UUID, reviewer_id: UUID) -> ExtractedBenefit:
        """Mark a benefit approved by ``reviewer_id``; the payload is untouched.

        Raises:
            BenefitNotFoundError: If the benefit does not exist
        """
        return await self._set_approval(benefit_id, True, reviewer_id)

    async def reject(self, benefit_id: UUID, reviewer_id: UUID) -> ExtractedBenefit:
        """Mark a benefit rejected by ``reviewer_id``; the payload is untouched.

        Raises:
            BenefitNotFoundError: If the benefit does not exist
        """
        return await self._set_approval(benefit_id, False, reviewer_id)

    async def update_benefit_data(
        self,
        benefit_id: UUID,
        new_payload: Dict[str, Any],
        editor_id: Optional[UUID] = None,
    ) -> ExtractedBenefit:
        """Replace a benefit's payload, keeping its approval state.

        Args:
            benefit_id: Benefit to correct
            new_payload: Replacement payload
            editor_id: User making the correction

        Returns:
            ExtractedBenefit: The updated benefit

        Raises:
            BenefitNotFoundError: If the benefit does not exist
        """
        benefit = await self._require_benefit(benefit_id)
        previous = benefit.extracted_data

        benefit = await self.benefits.update(benefit_id, extracted_data=new_payload)
        if self.record_revisions:
            await self.benefits.add_revision(
                benefit_id=benefit_id,
                previous_data=previous,
                new_data=new_payload,
                edited_by=editor_id,
            )
        await self.session.commit()

        LOGGER.info(
            "Benefit data updated",
            extra={"benefit_id": str(benefit_id), "editor_id": str(editor_id) if editor_id else None},
        )
        return benefit

    async def delete_document(self, document_id: UUID, actor_id: Optional[UUID] = None) -> None:
        """Delete a document with its benefits and stored file.

        Benefit and file removal are best-effort: failures are logged and the
        deletion continues. Removing the document row itself must succeed.

        Raises:
            DocumentNotFoundError: If the document does not exist
            DatabaseError: If the document row cannot be removed
        """
        document = await self._require_document(document_id)
        file_path = document.file_path
        file_name = document.file_name

        try:
            async with self.session.begin_nested():
                removed = await self.benefits.delete_by_document(document_id)
            LOGGER.info(
                "Deleted benefits for document",
                extra={"document_id": str(document_id), "count": removed},
            )
        except Exception as e:
            LOGGER.error(
                f"Failed to delete benefits: {e}",
                extra={"document_id": str(document_id)},
                exc_info=True,
            )

        if file_path:
            try:
                await self.storage_client.remove(self.bucket, [file_path])
            except Exception as e:
                LOGGER.error(
                    f"Failed to delete stored file: {e}",
                    extra={"document_id": str(document_id), "file_path": file_path},
                    exc_info=True,
                )

        try:
            await self.documents.delete(document_id)
            await self.audit.record(
                action="delete",
                entity_type="benefit_guide_document",
                entity_id=str(document_id),
                details={"file_path": file_path, "file_name": file_name},
                performed_by=actor_id,
            )
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            LOGGER.error(
                f"Failed to delete document: {e}",
                extra={"document_id": str(document_id)},
                exc_info=True,
            )
            raise DatabaseError(f"Failed to delete document {document_id}", original_error=e) from e

        LOGGER.info("Document deleted", extra={"document_id": str(document_id)})

    async def get_document(self, document_id: UUID) -> Document:
        return await self._require_document(document_id)

    async def get_document_status(self, document_id: UUID) -> Dict[str, Any]:
        """Polling view of a document: status and stored failure message."""
        status = await self.documents.get_status(document_id)
        if status is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return status

    async def list_documents(
        self,
        limit: int = 50,
        offset: int = 0,
        status: Optional[ProcessingStatus] = None,
    ) -> tuple[List[Document], int]:
        """Documents newest first, with the total count for the filter."""
        documents = await self.documents.list_documents(limit=limit, offset=offset, status=status)
        total = await self.documents.count(
            filters={"processing_status": status.value} if status else None
        )
        return documents, total

    async def get_document_benefits(self, document_id: UUID) -> List[ExtractedBenefit]:
        """Benefits of a document, oldest first."""
        await self._require_document(document_id)
        return await self.benefits.list_by_document(document_id)

    async def approve_all_pending(self, document_id: UUID, reviewer_id: UUID) -> int:
        """Approve every benefit of a document that has no decision yet.

        Returns:
            int: Number of benefits approved
        """
        await self._require_document(document_id)
        pending = await self.benefits.list_unreviewed(document_id)
        for benefit in pending:
            await self.benefits.set_approval(benefit.id, True, reviewer_id)
        await self.session.commit()

        LOGGER.info(
            "Approved pending benefits",
            extra={"document_id": str(document_id), "count": len(pending)},
        )
        return len(pending)

    async def get_benefit_revisions(self, benefit_id: UUID) -> List[BenefitRevision]:
        await self._require_benefit(benefit_id)
        return await self.benefits.list_revisions(benefit_id)
