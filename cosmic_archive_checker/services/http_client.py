"""HTTP client service with retry logic and timeout handling."""

import asyncio
from typing import Any

import httpx
import structlog

from .errors import NetworkError

log = structlog.stdlib.get_logger()

USER_AGENT = "cosmic-archive-checker/0.1.0 (+https://github.com/CRModders/CosmicArchive)"


class HttpClientService:
    """HTTP client service with retry logic and timeout handling.

    Every request must end in a 2xx response; anything else, and any
    transport failure that survives the retries, is raised as NetworkError.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP client service.

        Args:
            timeout: Request timeout in seconds
            max_retries: Maximum number of retry attempts
            base_delay: Base delay for exponential backoff in seconds
            max_delay: Maximum delay between retries in seconds
            transport: Optional transport override (used for offline runs)
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay

        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            transport=transport,
        )

        log.debug(
            "HTTP client service initialized",
            timeout=timeout,
            max_retries=max_retries,
        )

    async def get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
        retries: int | None = None
    ) -> httpx.Response:
        """Make a GET request with retry logic.

        The body is fully read before returning.

        Args:
            url: The URL to request
            headers: Optional additional headers
            params: Optional query parameters
            retries: Retry budget for this call (defaults to max_retries)

        Returns:
            HTTP response object with a 2xx status

        Raises:
            NetworkError: If all retry attempts fail or the status is not 2xx
        """
        return await self.request("GET", url, headers=headers, params=params, retries=retries)

    async def post(
        self,
        url: str,
        data: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
        retries: int | None = None
    ) -> httpx.Response:
        """Make a form-encoded POST request with retry logic.

        Raises:
            NetworkError: If all retry attempts fail or the status is not 2xx
        """
        return await self.request("POST", url, data=data, headers=headers, params=params, retries=retries)

    async def request(
        self,
        method: str,
        url: str,
        data: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
        retries: int | None = None
    ) -> httpx.Response:
        """Send a request, retrying transient failures with exponential backoff.

        Client errors (4xx) other than 429 are not retried. ``retries=0``
        sends exactly one request.
        """
        max_retries = self.max_retries if retries is None else retries
        for attempt in range(max_retries + 1):
            try:
                log.debug(
                    "Making HTTP request",
                    method=method,
                    url=url,
                    attempt=attempt + 1,
                    max_attempts=max_retries + 1
                )

                response = await self._client.request(
                    method,
                    url,
                    data=data,
                    headers=headers,
                    params=params,
                )
                response.raise_for_status()

                log.debug(
                    "HTTP request successful",
                    method=method,
                    url=url,
                    status_code=response.status_code,
                    content_length=len(response.content)
                )
                return response

            except httpx.HTTPError as e:
                log.warning(
                    "HTTP request failed",
                    method=method,
                    url=url,
                    attempt=attempt + 1,
                    error=str(e),
                    error_type=type(e).__name__
                )

                status_code = e.response.status_code if isinstance(e, httpx.HTTPStatusError) else None

                if status_code == 429:
                    retry_after = e.response.headers.get("retry-after")
                    if retry_after and attempt < max_retries:
                        try:
                            delay = float(retry_after)
                        except ValueError:
                            delay = None
                        if delay is not None:
                            log.info("Rate limited, waiting", delay=delay)
                            await asyncio.sleep(min(delay, self.max_delay))
                            continue
                elif status_code is not None and 400 <= status_code < 500:
                    log.error("Client error, not retrying", url=url, status_code=status_code)
                    raise NetworkError(
                        f"Non-success response status: {status_code}",
                        original_error=e,
                        url=url,
                        status_code=status_code,
                    ) from e

                if attempt == max_retries:
                    log.error(
                        "HTTP request failed after all retries",
                        method=method,
                        url=url,
                        total_attempts=max_retries + 1
                    )
                    if status_code is not None:
                        message = f"Non-success response status: {status_code}"
                    else:
                        message = f"Failed to send {method} request"
                    raise NetworkError(
                        message,
                        original_error=e,
                        url=url,
                        status_code=status_code,
                    ) from e

                delay = min(self.base_delay * (2 ** attempt), self.max_delay)
                log.info("Retrying after delay", delay=delay)
                await asyncio.sleep(delay)

        # This should never be reached, but satisfy type checker
        raise RuntimeError("Unexpected end of retry loop")

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        await self._client.aclose()
        log.debug("HTTP client closed")

    async def __aenter__(self) -> "HttpClientService":
        return self

    async def __aexit__(self, exc_type: type[Exception] | None, exc_val: Exception | None, exc_tb: Any) -> None:
        await self.close()
