"""
Infrastructure layer: base HTTP client with retry logic.

Concrete clients (data store, brigade registry, identity service) extend
ExternalAPIClient and share its retry and error translation behaviour.
"""
from typing import Any, Dict, Optional
import logging

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from app.config import settings
from app.infrastructure.api_constants import APIConstants

logger = logging.getLogger(__name__)


class ExternalAPIError(Exception):
    """Raised when an external service call fails."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ExternalAPIClient:
    """
    Base client for external HTTP services.
    Implements retry logic with exponential backoff.

    Server errors (5xx) and transport errors are retried; client errors
    (4xx) fail immediately with ExternalAPIError.
    """

    service_name = "External API"

    def __init__(
        self,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = APIConstants.DEFAULT_TIMEOUT,
    ):
        """
        Initialize the API client.

        Args:
            base_url: Service base URL
            headers: Default headers sent with every request
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "accept": APIConstants.CONTENT_TYPE_JSON,
                **(headers or {}),
            },
            timeout=timeout,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    @retry(
        stop=stop_after_attempt(settings.max_retry_attempts),
        wait=wait_exponential(
            multiplier=settings.retry_backoff_multiplier,
            min=settings.retry_min_wait,
            max=settings.retry_max_wait,
        ),
        retry=retry_if_exception_type((httpx.HTTPStatusError, httpx.RequestError)),
        reraise=True,
    )
    async def _send(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        """
        Send one request, retrying server and transport failures.

        Raises:
            ExternalAPIError: On client errors (4xx)
            httpx.HTTPStatusError: On server errors once retries are exhausted
            httpx.RequestError: On transport errors once retries are exhausted
        """
        response = await self.client.request(method, endpoint, **kwargs)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            # Retry on server errors (5xx)
            if e.response.status_code >= 500:
                logger.warning(f"{self.service_name} returned {e.response.status_code} for {method} {endpoint}")
                raise
            # Don't retry on client errors (4xx)
            raise ExternalAPIError(
                f"{self.service_name} request failed: {e.response.status_code} - {e.response.text}",
                status_code=e.response.status_code,
            )
        return response

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> Any:
        """
        Make an HTTP request with retry logic.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            **kwargs: Additional arguments for the request

        Returns:
            Decoded JSON body, or None for empty responses

        Raises:
            ExternalAPIError: If the request fails after retries
        """
        try:
            response = await self._send(method, endpoint, **kwargs)
        except httpx.HTTPStatusError as e:
            raise ExternalAPIError(
                f"{self.service_name} unavailable: {e.response.status_code} - {e.response.text}",
                status_code=502,
            )
        except httpx.RequestError as e:
            raise ExternalAPIError(
                f"{self.service_name} request error: {str(e)}",
                status_code=503,
            )

        if response.status_code == 204 or not response.content:
            return None
        return response.json()
