"""Client-side helpers for starting extractions and polling their status."""

from benefit_extraction.client.api_client import ExtractionApiClient
from benefit_extraction.client.polling import DocumentPollingCoordinator

__all__ = ["DocumentPollingCoordinator", "ExtractionApiClient"]
