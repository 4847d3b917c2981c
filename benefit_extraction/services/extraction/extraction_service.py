"""Background extraction of benefits from an uploaded document."""

import asyncio
import time
from typing import Any, Callable, Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from benefit_extraction.core.exceptions import (
    AppError,
    ConfigurationError,
    InvalidStatusTransitionError,
)
from benefit_extraction.core.llm_client import ExtractionLLMClient, LLMResponse
from benefit_extraction.core.storage_client import StorageClient
from benefit_extraction.database.models import Document
from benefit_extraction.prompts.extraction_prompts import (
    EXTRACTION_SYSTEM_PROMPT,
    build_extraction_prompt,
)
from benefit_extraction.repositories.audit_repository import AuditRepository
from benefit_extraction.repositories.benefit_repository import BenefitRepository
from benefit_extraction.repositories.document_repository import DocumentRepository
from benefit_extraction.services.extraction.benefit_writer import BenefitRecordWriter
from benefit_extraction.services.extraction.confidence import (
    ConfidenceEvaluation,
    evaluate_confidence,
)
from benefit_extraction.services.extraction.output_parser import parse_extraction_output
from benefit_extraction.services.status_machine import ProcessingStatus
from benefit_extraction.services.worker_pool import ExtractionWorkerPool, JobHandle
from benefit_extraction.utils.logging import get_logger

LOGGER = get_logger(__name__)

DEFAULT_MIME_TYPE = "application/pdf"
PROCESSOR_NAME = "benefit-extraction-worker"
CANCELLED_MESSAGE = "Extraction cancelled during shutdown"


def _failure_message(error: Exception) -> str:
    if isinstance(error, AppError):
        return error.message
    return str(error) or type(error).__name__


class ExtractionService:
    """Runs the download -> model -> score -> persist pipeline for a document.

    ``extract`` only reserves a pool slot; the pipeline itself is
    :meth:`process_document`, which never raises. Every failure after the
    document is claimed ends as a ``failed`` status with a stored message.
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        llm_client: Optional[ExtractionLLMClient],
        storage_client: StorageClient,
        bucket: str,
        worker_pool: ExtractionWorkerPool,
    ):
        """Initialize extraction service.

        Args:
            session_factory: Factory producing async sessions
            llm_client: Configured model client, None when no provider is set
            storage_client: Storage collaborator client
            bucket: Bucket holding uploaded documents
            worker_pool: Pool the jobs run in
        """
        self.session_factory = session_factory
        self.llm_client = llm_client
        self.storage_client = storage_client
        self.bucket = bucket
        self.worker_pool = worker_pool

    def extract(self, document_id: UUID) -> JobHandle:
        """Accept an extraction request and reserve a pool slot.

        Args:
            document_id: Document to extract

        Returns:
            JobHandle: Handle to pass to ``worker_pool.launch``

        Raises:
            WorkerPoolFullError: If the pool cannot take another job
        """
        return self.worker_pool.submit(document_id, lambda: self.process_document(document_id))

    async def process_document(self, document_id: UUID) -> None:
        """Job body: extract benefits and drive the document to a terminal status."""
        started = time.monotonic()

        async with self.session_factory() as session:
            documents = DocumentRepository(session)
            document = await documents.get_by_id(document_id)
            if document is None:
                LOGGER.warning(
                    "Document not found, skipping extraction",
                    extra={"document_id": str(document_id)},
                )
                return

            current_status = document.processing_status
            claimed = await documents.mark_processing(document_id)
            if not claimed:
                await session.rollback()
                LOGGER.warning(
                    "Document is not pending, skipping extraction",
                    extra={"document_id": str(document_id), "processing_status": current_status},
                )
                return
            await session.commit()

        LOGGER.info(
            "Extraction started",
            extra={"document_id": str(document_id), "file_path": document.file_path},
        )

        try:
            await self._run_pipeline(document, started)
        except asyncio.CancelledError:
            LOGGER.warning(
                "Extraction cancelled",
                extra={"document_id": str(document_id)},
            )
            await asyncio.shield(self._record_failure(document_id, CANCELLED_MESSAGE))
            raise
        except Exception as e:
            LOGGER.error(
                f"Extraction failed: {e}",
                extra={"document_id": str(document_id)},
                exc_info=True,
            )
            await self._record_failure(document_id, _failure_message(e))

    async def _run_pipeline(self, document: Document, started: float) -> None:
        if self.llm_client is None:
            raise ConfigurationError("No LLM provider is configured")

        content = await self.storage_client.download(self.bucket, document.file_path)
        response = await self.llm_client.extract_from_document(
            content=content,
            mime_type=document.mime_type or DEFAULT_MIME_TYPE,
            system_instruction=EXTRACTION_SYSTEM_PROMPT,
            prompt=build_extraction_prompt(document.card_name, document.issuer),
        )
        output = parse_extraction_output(response.text)
        evaluation = evaluate_confidence(output)

        async with self.session_factory() as session:
            try:
                writer = BenefitRecordWriter(BenefitRepository(session))
                benefits = await writer.write(document, output, evaluation)

                completed = await DocumentRepository(session).mark_completed(document.id)
                if not completed:
                    raise InvalidStatusTransitionError(
                        ProcessingStatus.PROCESSING.value, ProcessingStatus.COMPLETED.value
                    )

                await AuditRepository(session).record(
                    action="extract_benefits",
                    entity_type="benefit_guide_document",
                    entity_id=str(document.id),
                    details=self._audit_details(
                        output.card_name or document.card_name,
                        output.issuer or document.issuer,
                        len(benefits),
                        evaluation,
                        response,
                        time.monotonic() - started,
                    ),
                    performed_by=document.uploaded_by,
                )
                await session.commit()
            except Exception:
                await session.rollback()
                raise

        LOGGER.info(
            "Extraction completed",
            extra={
                "document_id": str(document.id),
                "benefits_extracted": len(benefits),
                "overall_confidence": evaluation.overall,
                "requires_review": evaluation.review_count,
            },
        )

    @staticmethod
    def _audit_details(
        card_name: Optional[str],
        issuer: Optional[str],
        count: int,
        evaluation: ConfidenceEvaluation,
        response: LLMResponse,
        duration: float,
    ) -> Dict[str, Any]:
        return {
            "card_name": card_name,
            "issuer": issuer,
            "benefits_extracted": count,
            "overall_confidence": round(evaluation.overall, 4),
            "overall_derived": evaluation.overall_derived,
            "input_tokens": response.input_tokens,
            "output_tokens": response.output_tokens,
            "duration_seconds": round(duration, 2),
            "model": response.model,
            "provider": response.provider,
            "processor": PROCESSOR_NAME,
        }

    async def _record_failure(self, document_id: UUID, message: str) -> None:
        # Runs in its own session so the failed status survives the rollback.
        try:
            async with self.session_factory() as session:
                await DocumentRepository(session).mark_failed(document_id, message)
                await session.commit()
        except Exception as e:
            LOGGER.error(
                f"Could not record extraction failure: {e}",
                extra={"document_id": str(document_id)},
                exc_info=True,
            )
