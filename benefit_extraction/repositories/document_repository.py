from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from benefit_extraction.database.models import Document
from benefit_extraction.repositories.base_repository import BaseRepository
from benefit_extraction.services.status_machine import (
    ProcessingStatus,
    source_states,
    truncate_error_message,
)
from benefit_extraction.utils.logging import get_logger

LOGGER = get_logger(__name__)


class DocumentRepository(BaseRepository[Document]):
    """Repository for benefit guide documents.

    Status changes go through :meth:`transition_status`, a conditional UPDATE
    that only matches rows currently in a legal source state.
    """

    def __init__(self, session: AsyncSession):
        """Initialize document repository.

        Args:
            session: SQLAlchemy async session
        """
        super().__init__(session, Document)

    async def transition_status(
        self,
        document_id: UUID,
        target: ProcessingStatus,
        **values: Any,
    ) -> bool:
        """Move a document to ``target`` if its current status allows it.

        Args:
            document_id: Document ID
            target: Desired status
            **values: Extra columns to write alongside the status

        Returns:
            True if the row was updated, False if it does not exist or its
            current status forbids the transition
        """
        sources = [state.value for state in source_states(target)]
        stmt = (
            update(Document)
            .where(Document.id == document_id, Document.processing_status.in_(sources))
            .values(
                processing_status=target.value,
                updated_at=datetime.now(timezone.utc),
                **values,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        updated = (result.rowcount or 0) > 0

        if not updated:
            LOGGER.warning(
                "Status transition rejected",
                extra={"document_id": str(document_id), "target": target.value},
            )
        return updated

    async def mark_processing(self, document_id: UUID) -> bool:
        """``pending -> processing``, clearing any previous error."""
        return await self.transition_status(
            document_id,
            ProcessingStatus.PROCESSING,
            error_message=None,
            extraction_started_at=datetime.now(timezone.utc),
        )

    async def mark_completed(self, document_id: UUID) -> bool:
        """``processing -> completed``."""
        return await self.transition_status(
            document_id,
            ProcessingStatus.COMPLETED,
            error_message=None,
            extraction_completed_at=datetime.now(timezone.utc),
        )

    async def mark_failed(self, document_id: UUID, error_message: Optional[str]) -> bool:
        """``processing -> failed`` with a message clamped to 500 characters."""
        return await self.transition_status(
            document_id,
            ProcessingStatus.FAILED,
            error_message=truncate_error_message(error_message),
            extraction_completed_at=datetime.now(timezone.utc),
        )

    async def get_status(self, document_id: UUID) -> Optional[Dict[str, Any]]:
        """Fetch only the polling contract columns for a document.

        Returns:
            Dict with ``processing_status`` and ``error_message`` or None
        """
        query = select(Document.processing_status, Document.error_message).where(
            Document.id == document_id
        )
        row = (await self.session.execute(query)).first()
        if row is None:
            return None
        return {"processing_status": row.processing_status, "error_message": row.error_message}

    async def list_documents(
        self,
        limit: int = 50,
        offset: int = 0,
        status: Optional[ProcessingStatus] = None,
    ) -> List[Document]:
        """List documents newest first, optionally filtered by status."""
        filters = {"processing_status": status.value} if status else None
        return await self.get_all(
            skip=offset,
            limit=limit,
            filters=filters,
            order_by=Document.created_at.desc(),
        )
