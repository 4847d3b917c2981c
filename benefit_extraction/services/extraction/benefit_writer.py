"""Turns a parsed extraction into per-category benefit rows."""

from typing import Any, List, Optional

from benefit_extraction.database.models import Document, ExtractedBenefit
from benefit_extraction.repositories.benefit_repository import BenefitRepository
from benefit_extraction.schemas.extraction import BENEFIT_TYPES, ExtractionOutput
from benefit_extraction.services.extraction.confidence import ConfidenceEvaluation
from benefit_extraction.utils.logging import get_logger

LOGGER = get_logger(__name__)

NEW_CARD_ID = "new"


def normalize_excerpts(value: Any) -> Optional[List[str]]:
    """Coerce a category's excerpts into a list of strings."""
    if value is None:
        return None
    if isinstance(value, str):
        return [value] if value.strip() else None
    if isinstance(value, list):
        excerpts = [str(item) for item in value if item is not None and str(item).strip()]
        return excerpts or None
    return [str(value)]


class BenefitRecordWriter:
    """Writes one ExtractedBenefit per known category in the model output.

    Rows are added to the caller's transaction; nothing is committed here.
    """

    def __init__(self, benefit_repository: BenefitRepository):
        self.benefit_repository = benefit_repository

    async def write(
        self,
        document: Document,
        output: ExtractionOutput,
        evaluation: ConfidenceEvaluation,
    ) -> List[ExtractedBenefit]:
        """Insert benefit rows for a document.

        Args:
            document: Source document
            output: Parsed model output
            evaluation: Confidence evaluation of ``output``

        Returns:
            List[ExtractedBenefit]: Rows added to the session
        """
        card_id = document.card_id or NEW_CARD_ID
        created: List[ExtractedBenefit] = []

        for benefit_type, category in evaluation.categories.items():
            if benefit_type not in BENEFIT_TYPES:
                LOGGER.warning(
                    "Skipping unknown benefit category",
                    extra={"document_id": str(document.id), "benefit_type": benefit_type},
                )
                continue

            payload = output.benefits.get(benefit_type)
            if not isinstance(payload, dict):
                payload = {"value": payload}

            benefit = await self.benefit_repository.create_benefit(
                document_id=document.id,
                card_id=card_id,
                benefit_type=benefit_type,
                extracted_data=payload,
                confidence_score=category.confidence,
                requires_review=category.requires_review,
                source_excerpts=normalize_excerpts(output.source_excerpts.get(benefit_type)),
            )
            created.append(benefit)

        LOGGER.info(
            "Benefit rows written",
            extra={
                "document_id": str(document.id),
                "count": len(created),
                "requires_review": sum(1 for b in created if b.requires_review),
            },
        )
        return created
