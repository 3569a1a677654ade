"""
Base extractor with rate-limit retries and error classification.

Every Steam call goes through ``BaseExtractor.fetch_json``, which turns
transport failures, non-200 answers and malformed bodies into a small
exception hierarchy. Only HTTP 429 is retried: the client waits a fixed
cooldown and tries again up to ``RetryConfig.max_attempts`` times.
"""

import json
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict, Field
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from steam_catalog.config import RetryConfig, SteamAPIConfig, get_settings
from steam_catalog.logger import get_logger

# Type variable for response models
T = TypeVar("T")


class ExtractionError(Exception):
    """Base exception for extraction errors."""

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        endpoint: str | None = None,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.source = source
        self.endpoint = endpoint
        self.status_code = status_code
        self.original_error = original_error
        self.timestamp = datetime.now(timezone.utc)


class NetworkError(ExtractionError):
    """Raised on connection, DNS or timeout failures."""

    pass


class HttpStatusError(ExtractionError):
    """Raised when the API answers with a non-200 status."""

    pass


class RateLimitError(HttpStatusError):
    """Raised when the API answers 429 and retries are exhausted."""

    pass


class ParseError(ExtractionError):
    """Raised when the response body is not valid JSON."""

    pass


class ValidationError(ExtractionError):
    """Raised when a response does not match its contract."""

    pass


class CatalogListError(ExtractionError):
    """Raised when neither the primary nor the fallback app list is available."""

    pass


class ExtractionResult(BaseModel, Generic[T]):
    """
    Wrapper for extraction results with metadata.

    Provides consistent structure for all extraction outputs,
    including timing, source tracking, and error information.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool
    data: T | None = None
    error_message: str | None = None
    error_type: str | None = None
    extracted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source: str
    endpoint: str
    duration_ms: float | None = None


class BaseExtractor(ABC):
    """
    Abstract base class for all Steam extractors.

    Owns one ``httpx.AsyncClient`` (created lazily, closed on context exit)
    configured with the request timeout and identifying headers.

    Subclasses must implement:
    - source_name: Identifier for the data source
    """

    def __init__(
        self,
        *,
        steam_config: SteamAPIConfig | None = None,
        retry_config: RetryConfig | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the extractor.

        Args:
            steam_config: Endpoint configuration (uses settings if None)
            retry_config: Custom retry configuration (uses settings if None)
            timeout: HTTP request timeout in seconds
            client: Shared HTTP client; the extractor will not close it
        """
        settings = get_settings()
        self._steam_config = steam_config or settings.steam
        self._retry_config = retry_config or settings.retry
        self._timeout = timeout or self._steam_config.timeout_seconds
        self._logger = get_logger(
            self.__class__.__name__,
            component="extractor",
            source=self.source_name,
        )
        self._client = client
        self._owns_client = client is None

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Return identifier for this data source."""
        ...

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
                headers={
                    "User-Agent": self._steam_config.user_agent,
                    "Accept": "application/json",
                },
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close HTTP client and release resources."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "BaseExtractor":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    def _log_retry_attempt(self, retry_state: RetryCallState) -> None:
        """Log rate-limit retries for observability."""
        self._logger.warning(
            "Rate limited, cooling down",
            attempt=retry_state.attempt_number,
            max_attempts=self._retry_config.max_attempts,
            wait_seconds=retry_state.next_action.sleep if retry_state.next_action else 0,
        )

    async def _get_once(self, url: str, params: dict[str, Any] | None) -> Any:
        """Issue a single GET and classify the outcome."""
        self._logger.debug("Making request", url=url, params=params)

        try:
            response = await self.client.get(url, params=params)
        except httpx.RequestError as e:
            raise NetworkError(
                f"Network error: {e.__class__.__name__}: {e}",
                source=self.source_name,
                endpoint=url,
                original_error=e,
            ) from e

        if response.status_code == 429:
            raise RateLimitError(
                "Rate limit exceeded",
                source=self.source_name,
                endpoint=url,
                status_code=429,
            )

        if response.status_code != 200:
            raise HttpStatusError(
                f"API error: {response.status_code}",
                source=self.source_name,
                endpoint=url,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ParseError(
                f"Malformed JSON body: {e}",
                source=self.source_name,
                endpoint=url,
                status_code=response.status_code,
                original_error=e,
            ) from e

    async def fetch_json(self, url: str, *, params: dict[str, Any] | None = None) -> Any:
        """
        GET a URL and return the decoded JSON body.

        Args:
            url: Request URL
            params: Query string parameters

        Returns:
            Any: Parsed JSON body

        Raises:
            NetworkError: Connection, DNS, timeout, redirect or decoding failure
            RateLimitError: HTTP 429 on every allowed attempt
            HttpStatusError: Any other non-200 status
            ParseError: Body is not valid JSON
        """
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(RateLimitError),
            stop=stop_after_attempt(self._retry_config.max_attempts),
            wait=wait_fixed(self._retry_config.rate_limit_cooldown_seconds),
            before_sleep=self._log_retry_attempt,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    return await self._get_once(url, params)
        except RateLimitError:
            self._logger.error(
                "Request still rate limited after retries",
                url=url,
                attempts=self._retry_config.max_attempts,
            )
            raise

        # AsyncRetrying either returns or raises above
        raise ExtractionError(f"Retry loop ended without a result for {url}")
