import asyncio
from typing import Any, Dict, Optional

import httpx
from httpx import HTTPStatusError, TimeoutException

from docintel.core.config import settings
from docintel.core.exceptions import APIClientError, APITimeoutError, InvalidResponseError
from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ProviderHTTPClient:
    """JSON-over-HTTPS client shared by the provider adapters.

    Handles retries with exponential backoff, timeout management and error
    logging. Client errors other than 429 are not retried: a bad key or a
    malformed request will not get better on the second attempt.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            timeout: Request timeout in seconds
            max_retries: Maximum number of attempts per call
            retry_delay: Base delay for exponential backoff
            transport: Optional httpx transport (tests inject ``httpx.MockTransport``)
        """
        self.timeout = timeout if timeout is not None else settings.providers.timeout_seconds
        self.max_retries = max(1, max_retries if max_retries is not None else settings.providers.max_retries)
        self.retry_delay = retry_delay if retry_delay is not None else settings.providers.retry_delay
        self.transport = transport
        self.logger = LOGGER

    async def post_json(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """POST a JSON payload and return the decoded JSON response.

        Args:
            url: Endpoint URL
            payload: JSON body
            headers: Extra headers (auth headers are provider specific)
            params: Query parameters, kept out of log lines

        Returns:
            Parsed JSON response

        Raises:
            APIClientError: If the call fails after retries or with a non-retryable status
            APITimeoutError: If every attempt timed out
        """
        request_headers = {"Content-Type": "application/json"}
        if headers:
            request_headers.update(headers)

        self.logger.debug(
            f"Calling provider API: {url}",
            extra={"timeout": self.timeout, "max_retries": self.max_retries},
        )

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            for attempt in range(self.max_retries):
                try:
                    response = await client.post(
                        url, headers=request_headers, params=params, json=payload
                    )
                    response.raise_for_status()
                    return response.json()

                except HTTPStatusError as e:
                    await self._handle_http_error(e, attempt, url)

                except TimeoutException as e:
                    await self._handle_timeout_error(e, attempt, url)

                except httpx.HTTPError as e:
                    await self._handle_transport_error(e, attempt, url)

                except ValueError as e:
                    raise InvalidResponseError(
                        f"Provider returned a non-JSON body from {url}",
                        status_code=response.status_code,
                        response_body=response.text[:500],
                        original_error=e,
                    ) from e

        raise APIClientError(f"Failed to call API {url} after {self.max_retries} attempts")

    async def _handle_http_error(self, error: HTTPStatusError, attempt: int, url: str):
        status_code = error.response.status_code
        error_body = error.response.text[:500]

        self.logger.warning(
            f"Provider HTTP error (Attempt {attempt + 1}/{self.max_retries})",
            extra={"url": url, "status_code": status_code, "error_body": error_body},
        )

        if 400 <= status_code < 500 and status_code != 429:
            raise APIClientError(
                f"API Client Error {status_code}",
                status_code=status_code,
                response_body=error_body,
                original_error=error,
            ) from error

        if attempt < self.max_retries - 1:
            await self._wait_before_retry(attempt)
        else:
            raise APIClientError(
                f"API HTTP Error {status_code} after retries",
                status_code=status_code,
                response_body=error_body,
                original_error=error,
            ) from error

    async def _handle_timeout_error(self, error: TimeoutException, attempt: int, url: str):
        self.logger.warning(
            f"Provider timeout (Attempt {attempt + 1}/{self.max_retries})",
            extra={"url": url},
        )

        if attempt < self.max_retries - 1:
            await self._wait_before_retry(attempt)
        else:
            raise APITimeoutError(
                f"API Timeout after {self.max_retries} attempts", original_error=error
            ) from error

    async def _handle_transport_error(self, error: httpx.HTTPError, attempt: int, url: str):
        self.logger.warning(
            f"Provider transport error (Attempt {attempt + 1}/{self.max_retries})",
            extra={"url": url, "error": str(error)},
        )

        if attempt < self.max_retries - 1:
            await self._wait_before_retry(attempt)
        else:
            raise APIClientError(f"API Error: {error}", original_error=error) from error

    async def _wait_before_retry(self, attempt: int):
        """Exponential backoff wait."""
        await asyncio.sleep(self.retry_delay * (2 ** attempt))
