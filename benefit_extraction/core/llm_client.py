"""LLM clients used for document extraction.

Both providers accept the raw document bytes and return the model text
together with token usage, so the extraction pipeline does not care which
provider is configured.
"""

import asyncio
import base64
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

import httpx
from google import genai
from google.genai import types
from httpx import HTTPStatusError, TimeoutException

from benefit_extraction.config import Settings
from benefit_extraction.core.exceptions import APIClientError, APITimeoutError
from benefit_extraction.utils.logging import get_logger

LOGGER = get_logger(__name__)


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    GEMINI = "gemini"
    OPENROUTER = "openrouter"


@dataclass
class LLMResponse:
    """Model output plus accounting data for the audit log."""

    text: str
    input_tokens: int = 0
    output_tokens: int = 0
    model: Optional[str] = None
    provider: Optional[str] = None


class BaseLLMClient:
    """Base client for HTTP LLM API interactions.

    Handles request dispatch, retries with exponential backoff, timeout
    management and error logging.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: int = 60,
        max_retries: int = 1,
        retry_delay: int = 2
    ):
        """Initialize the LLM client.

        Args:
            api_key: API key for authentication
            base_url: Base URL for the API
            timeout: Request timeout in seconds
            max_retries: Total number of attempts
            retry_delay: Base delay for exponential backoff
        """
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay

    async def call_api(
        self,
        payload: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """POST a JSON payload with retry logic.

        Args:
            payload: JSON payload
            headers: Additional headers

        Returns:
            Parsed JSON response

        Raises:
            APIClientError: If the API call fails after retries
            APITimeoutError: If the API call times out after retries
        """
        request_headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if headers:
            request_headers.update(headers)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for attempt in range(self.max_retries):
                last_attempt = attempt == self.max_retries - 1
                try:
                    response = await client.post(self.base_url, headers=request_headers, json=payload)
                    response.raise_for_status()
                    return response.json()

                except HTTPStatusError as e:
                    status_code = e.response.status_code
                    LOGGER.warning(
                        f"API HTTP error (Attempt {attempt + 1}/{self.max_retries})",
                        extra={"url": self.base_url, "status_code": status_code, "error_body": e.response.text[:500]}
                    )
                    # Client errors other than rate limiting are never retried
                    if (400 <= status_code < 500 and status_code != 429) or last_attempt:
                        raise APIClientError(
                            f"LLM API error {status_code}: {e.response.text[:200]}", original_error=e
                        ) from e

                except TimeoutException as e:
                    LOGGER.warning(f"API Timeout (Attempt {attempt + 1}/{self.max_retries})", extra={"url": self.base_url})
                    if last_attempt:
                        raise APITimeoutError(
                            f"LLM API timeout after {self.max_retries} attempts", original_error=e
                        ) from e

                except httpx.HTTPError as e:
                    LOGGER.warning(
                        f"API transport error (Attempt {attempt + 1}/{self.max_retries})",
                        extra={"url": self.base_url, "error": str(e)}
                    )
                    if last_attempt:
                        raise APIClientError(f"LLM API error: {str(e)}", original_error=e) from e

                await asyncio.sleep(self.retry_delay * (2 ** attempt))

        raise APIClientError(f"Failed to call API {self.base_url} after {self.max_retries} attempts")


class GeminiClient:
    """Wrapper for the Google Gemini API client."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        timeout: int = 300,
        max_retries: int = 1,
        max_output_tokens: int = 8192,
    ):
        """Initialize Gemini client.

        Args:
            api_key: Gemini API key
            model: Model name to use
            timeout: Request timeout in seconds
            max_retries: Total number of attempts
            max_output_tokens: Output token cap per call
        """
        self.model = model
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.max_output_tokens = max_output_tokens

        try:
            self.client = genai.Client(
                api_key=api_key,
                http_options=types.HttpOptions(timeout=timeout * 1000),
            )
            LOGGER.info(f"Initialized Gemini client with model {self.model}")
        except Exception as e:
            LOGGER.error(f"Failed to initialize Gemini client: {e}")
            raise APIClientError(f"Failed to initialize Gemini client: {e}", original_error=e) from e

    async def extract_from_document(
        self,
        content: bytes,
        mime_type: str,
        system_instruction: str,
        prompt: str,
    ) -> LLMResponse:
        """Run a JSON-mode extraction over an inline document.

        Args:
            content: Raw document bytes
            mime_type: Document MIME type
            system_instruction: System prompt
            prompt: User prompt sent alongside the document

        Returns:
            LLMResponse with text and token usage

        Raises:
            APIClientError: If generation fails
        """
        config = types.GenerateContentConfig(
            temperature=0.0,
            max_output_tokens=self.max_output_tokens,
            response_mime_type="application/json",
            system_instruction=system_instruction,
        )
        contents = [types.Part.from_bytes(data=content, mime_type=mime_type), prompt]

        for attempt in range(self.max_retries):
            try:
                response = await self.client.aio.models.generate_content(
                    model=self.model,
                    contents=contents,
                    config=config,
                )
                usage = response.usage_metadata
                return LLMResponse(
                    text=response.text or "",
                    input_tokens=(usage.prompt_token_count or 0) if usage else 0,
                    output_tokens=(usage.candidates_token_count or 0) if usage else 0,
                    model=self.model,
                    provider=LLMProvider.GEMINI.value,
                )
            except Exception as e:
                LOGGER.warning(
                    f"Gemini API error (Attempt {attempt + 1}/{self.max_retries}): {e}"
                )
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(2 ** attempt)
                else:
                    raise APIClientError(f"Gemini generation failed: {e}", original_error=e) from e

        raise APIClientError("Gemini generation failed")


class OpenRouterClient:
    """OpenRouter chat-completions client with file/image content parts."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://openrouter.ai/api/v1/chat/completions",
        timeout: int = 300,
        max_retries: int = 1,
        max_output_tokens: int = 8192,
    ):
        self.model = model
        self.max_output_tokens = max_output_tokens
        self.client = BaseLLMClient(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )
        LOGGER.info(f"Initialized OpenRouter client with model {self.model}")

    @staticmethod
    def _document_part(content: bytes, mime_type: str) -> Dict[str, Any]:
        data_url = f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}"
        if mime_type.startswith("image/"):
            return {"type": "image_url", "image_url": {"url": data_url}}
        return {"type": "file", "file": {"filename": "document.pdf", "file_data": data_url}}

    async def extract_from_document(
        self,
        content: bytes,
        mime_type: str,
        system_instruction: str,
        prompt: str,
    ) -> LLMResponse:
        """Run a JSON-mode extraction over a base64-encoded document."""
        user_content: List[Dict[str, Any]] = [
            self._document_part(content, mime_type),
            {"type": "text", "text": prompt},
        ]
        payload = {
            "model": self.model,
            "temperature": 0.0,
            "max_tokens": self.max_output_tokens,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": user_content},
            ],
        }

        response = await self.client.call_api(payload)

        choices = response.get("choices") or []
        if not choices:
            LOGGER.error(f"Unexpected OpenRouter response format: {str(response)[:500]}")
            raise APIClientError("Invalid response format from OpenRouter")

        usage = response.get("usage") or {}
        return LLMResponse(
            text=choices[0].get("message", {}).get("content") or "",
            input_tokens=usage.get("prompt_tokens", 0),
            output_tokens=usage.get("completion_tokens", 0),
            model=response.get("model", self.model),
            provider=LLMProvider.OPENROUTER.value,
        )


ExtractionLLMClient = Union[GeminiClient, OpenRouterClient]


def create_llm_client(settings: Settings) -> Optional[ExtractionLLMClient]:
    """Build the configured provider client, or None when it has no key.

    Raises:
        ValueError: If the provider name is unknown
    """
    provider = LLMProvider(settings.llm_provider)

    if not settings.llm_configured:
        LOGGER.warning(f"LLM provider '{provider.value}' has no API key; extraction jobs will fail")
        return None

    if provider == LLMProvider.GEMINI:
        return GeminiClient(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            timeout=settings.llm_timeout,
            max_retries=settings.llm_max_retries,
            max_output_tokens=settings.llm_max_output_tokens,
        )

    return OpenRouterClient(
        api_key=settings.openrouter_api_key,
        model=settings.openrouter_model,
        base_url=settings.openrouter_api_url,
        timeout=settings.llm_timeout,
        max_retries=settings.llm_max_retries,
        max_output_tokens=settings.llm_max_output_tokens,
    )
