from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from benefit_extraction.database.models import BenefitRevision, ExtractedBenefit
from benefit_extraction.repositories.base_repository import BaseRepository
from benefit_extraction.utils.logging import get_logger

LOGGER = get_logger(__name__)


class BenefitRepository(BaseRepository[ExtractedBenefit]):
    """Repository for extracted benefit rows and their edit history."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ExtractedBenefit)

    async def create_benefit(
        self,
        document_id: UUID,
        card_id: str,
        benefit_type: str,
        extracted_data: Dict[str, Any],
        confidence_score: float,
        requires_review: bool,
        source_excerpts: Optional[List[str]] = None,
    ) -> ExtractedBenefit:
        """Insert one benefit row; approval starts unset."""
        return await self.create(
            document_id=document_id,
            card_id=card_id,
            benefit_type=benefit_type,
            extracted_data=extracted_data,
            confidence_score=Decimal(str(confidence_score)),
            requires_review=requires_review,
            source_excerpts=source_excerpts,
            is_approved=None,
        )

    async def list_by_document(self, document_id: UUID) -> List[ExtractedBenefit]:
        """All benefits of a document in insertion order."""
        query = (
            select(ExtractedBenefit)
            .where(ExtractedBenefit.document_id == document_id)
            .order_by(ExtractedBenefit.created_at.asc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_unreviewed(self, document_id: UUID) -> List[ExtractedBenefit]:
        """Benefits of a document whose approval is still unset."""
        query = (
            select(ExtractedBenefit)
            .where(
                ExtractedBenefit.document_id == document_id,
                ExtractedBenefit.is_approved.is_(None),
            )
            .order_by(ExtractedBenefit.created_at.asc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def set_approval(
        self,
        benefit_id: UUID,
        approved: bool,
        reviewer_id: UUID,
    ) -> Optional[ExtractedBenefit]:
        """Record a review decision without touching the payload."""
        return await self.update(
            benefit_id,
            is_approved=approved,
            reviewed_by=reviewer_id,
            reviewed_at=datetime.now(timezone.utc),
        )

    async def delete_by_document(self, document_id: UUID) -> int:
        """Delete every benefit of a document.

        Returns:
            Number of rows removed
        """
        result = await self.session.execute(
            delete(ExtractedBenefit).where(ExtractedBenefit.document_id == document_id)
        )
        return result.rowcount or 0

    async def add_revision(
        self,
        benefit_id: UUID,
        previous_data: Optional[Dict[str, Any]],
        new_data: Dict[str, Any],
        edited_by: Optional[UUID] = None,
    ) -> BenefitRevision:
        revision = BenefitRevision(
            benefit_id=benefit_id,
            previous_data=previous_data,
            new_data=new_data,
            edited_by=edited_by,
        )
        self.session.add(revision)
        await self.session.flush()
        return revision

    async def list_revisions(self, benefit_id: UUID) -> List[BenefitRevision]:
        query = (
            select(BenefitRevision)
            .where(BenefitRevision.benefit_id == benefit_id)
            .order_by(BenefitRevision.created_at.asc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())
