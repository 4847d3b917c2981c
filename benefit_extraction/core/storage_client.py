"""Client for the Supabase Storage REST API."""

from typing import List, Optional

import httpx

from benefit_extraction.core.exceptions import StorageError
from benefit_extraction.utils.logging import get_logger

LOGGER = get_logger(__name__)


class StorageClient:
    """Downloads and removes stored documents in Supabase storage."""

    def __init__(self, url: str, service_role_key: str, timeout: int = 60):
        """Initialize the storage client.

        Args:
            url: Supabase project URL
            service_role_key: Service role key used for both auth headers
            timeout: Request timeout in seconds
        """
        self.url = url.rstrip("/")
        self.service_role_key = service_role_key
        self.timeout = timeout
        self.base_api_url = f"{self.url}/storage/v1"
        self.headers = {
            "Authorization": f"Bearer {self.service_role_key}",
            "apikey": self.service_role_key,
        }

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.service_role_key)

    async def download(self, bucket: str, path: str) -> bytes:
        """Download an object's bytes.

        Args:
            bucket: Bucket name
            path: Object path within the bucket

        Returns:
            Raw file content

        Raises:
            StorageError: If the object cannot be fetched
        """
        object_url = f"{self.base_api_url}/object/{bucket}/{path}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(object_url, headers=self.headers)
        except httpx.HTTPError as e:
            LOGGER.error(f"Error downloading file from Supabase: {str(e)}", exc_info=True)
            raise StorageError(f"Failed to download file: {str(e)}", original_error=e) from e

        if response.status_code != 200:
            LOGGER.error(
                f"Failed to download file from Supabase: {response.text}",
                extra={"bucket": bucket, "path": path, "status_code": response.status_code}
            )
            raise StorageError(f"Failed to download file: {response.status_code} {response.text[:200]}")

        content = response.content
        if not content:
            raise StorageError("Failed to download file: empty object")

        LOGGER.info(
            "Downloaded document from storage",
            extra={"bucket": bucket, "path": path, "size_bytes": len(content)}
        )
        return content

    async def remove(self, bucket: str, paths: List[str]) -> Optional[list]:
        """Remove one or more objects from a bucket.

        Args:
            bucket: Bucket name
            paths: Object paths to remove

        Returns:
            The list of removed objects reported by Supabase

        Raises:
            StorageError: If the removal request fails
        """
        bucket_url = f"{self.base_api_url}/object/{bucket}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    "DELETE",
                    bucket_url,
                    headers=self.headers,
                    json={"prefixes": paths},
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Error removing files from Supabase: {str(e)}", exc_info=True)
            raise StorageError(f"Storage removal error: {str(e)}", original_error=e) from e

        if response.status_code != 200:
            LOGGER.error(
                f"Failed to remove files from Supabase: {response.text}",
                extra={"bucket": bucket, "paths": paths, "status_code": response.status_code}
            )
            raise StorageError(f"Removal failed: {response.text}")

        try:
            return response.json()
        except ValueError as e:
            raise StorageError(f"Unexpected removal response: {response.text}", original_error=e) from e
