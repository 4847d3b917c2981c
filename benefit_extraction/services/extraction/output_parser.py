"""Strict parsing of the model's extraction response."""

import json

from pydantic import ValidationError as PydanticValidationError

from benefit_extraction.core.exceptions import MalformedModelOutputError
from benefit_extraction.schemas.extraction import ExtractionOutput
from benefit_extraction.utils.logging import get_logger

LOGGER = get_logger(__name__)

PARSE_FAILURE_MESSAGE = "Failed to parse extraction result"


def parse_extraction_output(text: str) -> ExtractionOutput:
    """Parse model text as the extraction JSON document.

    No repair is attempted: the model is asked for JSON-only output and any
    deviation fails the job.

    Args:
        text: Raw model response text

    Returns:
        ExtractionOutput: Validated top-level document

    Raises:
        MalformedModelOutputError: If the text is not a JSON object of the
            expected shape
    """
    try:
        payload = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        LOGGER.error(
            "Model returned invalid JSON",
            extra={"response_preview": (text or "")[:500]},
        )
        raise MalformedModelOutputError(
            f"{PARSE_FAILURE_MESSAGE} - model returned invalid JSON: {e}", original_error=e
        ) from e

    if not isinstance(payload, dict):
        raise MalformedModelOutputError(
            f"{PARSE_FAILURE_MESSAGE} - expected a JSON object, got {type(payload).__name__}"
        )

    try:
        return ExtractionOutput.model_validate(payload)
    except PydanticValidationError as e:
        raise MalformedModelOutputError(
            f"{PARSE_FAILURE_MESSAGE} - unexpected structure: {e.error_count()} validation error(s)",
            original_error=e,
        ) from e
