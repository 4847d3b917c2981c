"""Benefit extraction pipeline."""

from benefit_extraction.services.extraction.benefit_writer import BenefitRecordWriter
from benefit_extraction.services.extraction.confidence import (
    REVIEW_CONFIDENCE_THRESHOLD,
    ConfidenceEvaluation,
    derive_overall_confidence,
    evaluate_confidence,
    requires_review,
)
from benefit_extraction.services.extraction.extraction_service import ExtractionService
from benefit_extraction.services.extraction.output_parser import parse_extraction_output

__all__ = [
    "REVIEW_CONFIDENCE_THRESHOLD",
    "BenefitRecordWriter",
    "ConfidenceEvaluation",
    "ExtractionService",
    "derive_overall_confidence",
    "evaluate_confidence",
    "parse_extraction_output",
    "requires_review",
]
