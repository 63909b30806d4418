"""HTTP transport with retry and backoff for OpenAI-compatible JSON APIs."""

import asyncio
from typing import Any, Dict, Optional

import httpx

from phoenix.core.exceptions import APIClientError, APITimeoutError
from phoenix.utils.logging import get_logger

LOGGER = get_logger(__name__)


def _is_retryable(error: httpx.HTTPError) -> bool:
    # Client errors are final, except rate limiting
    if isinstance(error, httpx.HTTPStatusError):
        status_code = error.response.status_code
        return status_code == 429 or status_code >= 500
    return isinstance(error, httpx.TransportError)


class BaseLLMClient:
    """Bearer-authenticated JSON POSTs with exponential backoff.

    Timeouts and connection failures are retried, and so are 429 and 5xx
    responses. Any other 4xx fails on the first attempt.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: int = 60,
        max_retries: int = 3,
        retry_delay: int = 2
    ):
        """Initialize the transport.

        Args:
            api_key: API key sent as a bearer token
            base_url: Base URL that endpoints are appended to
            timeout: Request timeout in seconds
            max_retries: Total attempts per call
            retry_delay: Base delay for exponential backoff
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def post_json(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST ``payload`` to ``endpoint`` and return the decoded response.

        Args:
            endpoint: Path appended to base_url (e.g. "/chat/completions")
            payload: JSON body

        Returns:
            Parsed JSON response

        Raises:
            APIClientError: On a non-retryable response or once retries run out
            APITimeoutError: If the last attempt timed out
        """
        url = f"{self.base_url}{endpoint}"
        last_error: Optional[httpx.HTTPError] = None

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for attempt in range(1, self.max_retries + 1):
                try:
                    response = await client.post(url, headers=self.headers, json=payload)
                    response.raise_for_status()
                    return response.json()
                except httpx.HTTPError as e:
                    last_error = e
                    self._log_failure(e, attempt, url)
                    if not _is_retryable(e):
                        raise self._as_app_error(e)

                if attempt < self.max_retries:
                    await asyncio.sleep(self.retry_delay * (2 ** (attempt - 1)))

        raise self._as_app_error(last_error)

    def _log_failure(self, error: httpx.HTTPError, attempt: int, url: str) -> None:
        extra: Dict[str, Any] = {"url": url}
        if isinstance(error, httpx.HTTPStatusError):
            extra["status_code"] = error.response.status_code
            extra["error_body"] = error.response.text[:500]
        LOGGER.warning(
            f"LLM API call failed (attempt {attempt}/{self.max_retries}): {type(error).__name__}",
            extra=extra,
        )

    def _as_app_error(self, error: Optional[httpx.HTTPError]) -> APIClientError:
        if isinstance(error, httpx.TimeoutException):
            return APITimeoutError(f"LLM API timed out after {self.max_retries} attempts", original_error=error)
        if isinstance(error, httpx.HTTPStatusError):
            return APIClientError(
                f"LLM API error {error.response.status_code}: {error.response.text[:500]}",
                original_error=error,
            )
        return APIClientError(f"LLM API call failed: {error}", original_error=error)
