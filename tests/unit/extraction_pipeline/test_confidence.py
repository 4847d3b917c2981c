import pytest

from benefit_extraction.schemas.extraction import ExtractionOutput
from benefit_extraction.services.extraction.confidence import (
    REVIEW_CONFIDENCE_THRESHOLD,
    derive_overall_confidence,
    evaluate_confidence,
    requires_review,
)


def _output(benefits, confidence):
    return ExtractionOutput.model_validate({"benefits": benefits, "confidence": confidence})


def test_threshold_boundary():
    assert REVIEW_CONFIDENCE_THRESHOLD == 0.8
    assert requires_review(0.79) is True
    assert requires_review(0.8) is False
    assert requires_review(1.0) is False


def test_derived_overall_is_mean_of_categories():
    assert derive_overall_confidence({"rental": 0.9, "tripProtection": 0.5}) == pytest.approx(0.7)


def test_derived_overall_ignores_stated_overall_key_and_non_numbers():
    confidence = {"overall": 0.1, "rental": 0.6, "baggageProtection": "high", "travelPerks": True}
    assert derive_overall_confidence(confidence) == pytest.approx(0.6)


def test_derived_overall_without_categories_is_zero():
    assert derive_overall_confidence({}) == 0.0


def test_stated_overall_is_kept():
    evaluation = evaluate_confidence(
        _output({"rental": {"coverage": "primary"}}, {"overall": 0.85, "rental": 0.6})
    )

    assert evaluation.overall == pytest.approx(0.85)
    assert evaluation.overall_derived is False


def test_missing_overall_is_derived():
    evaluation = evaluate_confidence(
        _output(
            {"rental": {"coverage": "primary"}, "tripProtection": {"maxAmount": 10000}},
            {"rental": 0.9, "tripProtection": 0.5},
        )
    )

    assert evaluation.overall == pytest.approx(0.7)
    assert evaluation.overall_derived is True


def test_categories_flagged_below_threshold():
    evaluation = evaluate_confidence(
        _output(
            {"rental": {"coverage": "primary"}, "tripProtection": {"maxAmount": 10000}},
            {"rental": 0.9, "tripProtection": 0.5},
        )
    )

    assert evaluation.categories["rental"].requires_review is False
    assert evaluation.categories["tripProtection"].requires_review is True
    assert evaluation.review_count == 1


def test_missing_category_confidence_counts_as_zero():
    evaluation = evaluate_confidence(_output({"extendedWarranty": {"years": 1}}, {}))

    category = evaluation.categories["extendedWarranty"]
    assert category.confidence == 0.0
    assert category.requires_review is True


def test_out_of_range_confidence_is_clamped():
    evaluation = evaluate_confidence(
        _output({"rental": {}, "travelPerks": {}}, {"rental": 1.4, "travelPerks": -0.2})
    )

    assert evaluation.categories["rental"].confidence == 1.0
    assert evaluation.categories["travelPerks"].confidence == 0.0


def test_null_categories_are_not_evaluated():
    evaluation = evaluate_confidence(
        _output({"rental": {"coverage": "secondary"}, "returnProtection": None}, {"rental": 0.95})
    )

    assert list(evaluation.categories) == ["rental"]


@pytest.mark.parametrize(
    "stated, stored, flagged",
    [(0.799, 0.8, False), (0.794, 0.79, True), (0.801, 0.8, False)],
)
def test_category_score_is_rounded_before_review_gate(stated, stored, flagged):
    evaluation = evaluate_confidence(_output({"rental": {"coverage": "primary"}}, {"rental": stated}))

    rental = evaluation.categories["rental"]
    assert rental.confidence == stored
    assert rental.requires_review is flagged
    assert rental.requires_review == requires_review(rental.confidence)
