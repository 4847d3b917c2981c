"""HTTP client for the extraction worker's own API."""

from typing import Any, Dict, Optional
from uuid import UUID

import httpx

from benefit_extraction.core.exceptions import APIClientError, PollingTransientError
from benefit_extraction.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ExtractionApiClient:
    """Starts extractions and reads document status over HTTP.

    ``get_document_status`` is shaped to be used directly as the status
    reader of :class:`DocumentPollingCoordinator`.
    """

    def __init__(
        self,
        base_url: str,
        worker_secret: Optional[str] = None,
        timeout: float = 30.0,
        api_prefix: str = "/api/v1",
    ):
        """Initialize the API client.

        Args:
            base_url: Root URL of the worker service
            worker_secret: Shared secret sent as a bearer token
            timeout: Request timeout in seconds
            api_prefix: Prefix of the review API
        """
        self.base_url = base_url.rstrip("/")
        self.api_prefix = api_prefix
        self.timeout = timeout
        self.headers = {"Content-Type": "application/json"}
        if worker_secret:
            self.headers["Authorization"] = f"Bearer {worker_secret}"

    async def start_extraction(self, document_id: UUID | str) -> Dict[str, Any]:
        """Ask the worker to extract a document.

        Returns:
            The acknowledgement body (``success``, ``documentId``, ``jobId``)

        Raises:
            APIClientError: If the request fails or is rejected
        """
        url = f"{self.base_url}/extract"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    url, headers=self.headers, json={"documentId": str(document_id)}
                )
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            LOGGER.error(
                f"Extraction request rejected: {e.response.status_code}",
                extra={"document_id": str(document_id), "body": e.response.text[:200]},
            )
            raise APIClientError(
                f"Extraction request failed with status {e.response.status_code}",
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            LOGGER.error(f"Extraction request error: {e}", extra={"document_id": str(document_id)})
            raise APIClientError(f"Extraction request error: {e}", original_error=e) from e

    async def get_document_status(self, document_id: UUID | str) -> Dict[str, Any]:
        """Read ``processing_status`` and ``error_message`` for a document.

        Raises:
            PollingTransientError: On any transport or HTTP error
        """
        url = f"{self.base_url}{self.api_prefix}/documents/{document_id}/status"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, headers=self.headers)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            raise PollingTransientError(
                f"Status query failed with status {e.response.status_code}", original_error=e
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise PollingTransientError(f"Status query error: {e}", original_error=e) from e
