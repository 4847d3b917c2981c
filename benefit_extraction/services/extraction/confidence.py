"""Confidence scoring and review gating for extracted categories."""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from benefit_extraction.schemas.extraction import ExtractionOutput

REVIEW_CONFIDENCE_THRESHOLD = 0.8
OVERALL_KEY = "overall"
# Decimal places of the stored confidence_score column
CONFIDENCE_PRECISION = 2


@dataclass(frozen=True)
class CategoryConfidence:
    benefit_type: str
    confidence: float
    requires_review: bool


@dataclass
class ConfidenceEvaluation:
    """Per-category and overall confidence for one extraction."""

    overall: float
    overall_derived: bool
    categories: Dict[str, CategoryConfidence] = field(default_factory=dict)

    @property
    def review_count(self) -> int:
        return sum(1 for item in self.categories.values() if item.requires_review)


def _as_score(value: Any) -> float | None:
    # bool is an int subclass and never a valid score
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return min(1.0, max(0.0, float(value)))


def requires_review(confidence: float) -> bool:
    """A category needs human confirmation below the review threshold."""
    return confidence < REVIEW_CONFIDENCE_THRESHOLD


def derive_overall_confidence(confidence: Mapping[str, Any]) -> float:
    """Mean of every per-category score present, or 0 when there are none."""
    scores = [
        score
        for key, value in confidence.items()
        if key != OVERALL_KEY and (score := _as_score(value)) is not None
    ]
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


def category_confidence(confidence: Mapping[str, Any], benefit_type: str) -> float:
    """Stated confidence for one category, 0 when missing or not numeric.

    Rounded to the stored precision so the review flag and the persisted
    score are computed from the same number.
    """
    score = _as_score(confidence.get(benefit_type))
    return 0.0 if score is None else round(score, CONFIDENCE_PRECISION)


def evaluate_confidence(output: ExtractionOutput) -> ConfidenceEvaluation:
    """Score every category present in the model output.

    Categories whose payload is null are not part of the evaluation; they
    produce no benefit row.
    """
    stated_overall = _as_score(output.confidence.get(OVERALL_KEY))
    if stated_overall is None:
        overall = derive_overall_confidence(output.confidence)
    else:
        overall = stated_overall

    categories: Dict[str, CategoryConfidence] = {}
    for benefit_type, payload in output.benefits.items():
        if payload is None:
            continue
        score = category_confidence(output.confidence, benefit_type)
        categories[benefit_type] = CategoryConfidence(
            benefit_type=benefit_type,
            confidence=score,
            requires_review=requires_review(score),
        )

    return ConfidenceEvaluation(
        overall=overall,
        overall_derived=stated_overall is None,
        categories=categories,
    )
