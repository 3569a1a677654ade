"""
Steam Store API extractor.

Fetches the raw /appdetails entry of a game. Interpreting the entry
(success flag, type, prices, tags) is left to the normalizer.
"""

import asyncio
import time
from typing import Any

from steam_catalog.ingestion.contracts import AppId
from steam_catalog.ingestion.extractors.base import (
    BaseExtractor,
    ExtractionError,
    ExtractionResult,
    ParseError,
)
from steam_catalog.ingestion.utils.rate_limiter import RateLimiter


class SteamStoreExtractor(BaseExtractor):
    """
    Extractor for Steam Store API.

    Example:
        >>> async with SteamStoreExtractor() as extractor:
        ...     result = await extractor.extract(app_id=1091500)
        ...     if result.success:
        ...         print(result.data["success"])
    """

    def __init__(
        self,
        *,
        rate_limiter: RateLimiter | None = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize Steam Store extractor.

        Args:
            rate_limiter: Optional limiter acquired before every request
            **kwargs: Arguments passed to BaseExtractor
        """
        super().__init__(**kwargs)
        self._store_url = self._steam_config.store_url.rstrip("/")
        self._rate_limiter = rate_limiter

    @property
    def source_name(self) -> str:
        """Return source identifier."""
        return "steam_store_api"

    def _build_url(self) -> str:
        """Build API URL for app details."""
        return f"{self._store_url}/appdetails"

    async def extract(
        self,
        app_id: AppId,
        *,
        country_code: str | None = None,
        language: str | None = None,
    ) -> ExtractionResult[dict[str, Any]]:
        """
        Fetch the /appdetails entry of one app.

        Args:
            app_id: Steam application ID
            country_code: Region for pricing (defaults to settings)
            language: Locale for descriptions (defaults to settings)

        Returns:
            ExtractionResult with ``data`` set to ``{"success": ..., "data": ...}``
            on success, or the error class name and message on failure.
        """
        url = self._build_url()
        endpoint = f"{url}?appids={app_id}"
        start_time = time.perf_counter()

        try:
            if self._rate_limiter is not None:
                await self._rate_limiter.acquire()

            raw_data = await self.fetch_json(
                url,
                params={
                    "appids": app_id,
                    "cc": country_code or self._steam_config.country_code,
                    "l": language or self._steam_config.language,
                },
            )
            duration_ms = (time.perf_counter() - start_time) * 1000

            if not isinstance(raw_data, dict):
                raise ParseError(
                    f"Expected a JSON object, got {type(raw_data).__name__}",
                    source=self.source_name,
                    endpoint=endpoint,
                )

            # Steam returns {app_id: {success: bool, data: {...}}}; null for unknown ids
            entry = raw_data.get(str(app_id)) or {"success": False}
            if not isinstance(entry, dict):
                raise ParseError(
                    f"Unexpected entry for app_id={app_id}",
                    source=self.source_name,
                    endpoint=endpoint,
                )

            self._logger.debug(
                "Extraction successful",
                app_id=app_id,
                upstream_success=bool(entry.get("success")),
                duration_ms=round(duration_ms, 2),
            )

            return ExtractionResult(
                success=True,
                data=entry,
                source=self.source_name,
                endpoint=endpoint,
                duration_ms=duration_ms,
            )

        except ExtractionError as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self._logger.warning(
                "Extraction failed",
                app_id=app_id,
                error=str(e),
                error_type=e.__class__.__name__,
                status_code=e.status_code,
            )
            return ExtractionResult(
                success=False,
                error_message=str(e),
                error_type=e.__class__.__name__,
                source=self.source_name,
                endpoint=endpoint,
                duration_ms=duration_ms,
            )
        except Exception as e:
            self._logger.exception("Unexpected extraction error", app_id=app_id, error=str(e))
            return ExtractionResult(
                success=False,
                error_message=str(e),
                error_type=e.__class__.__name__,
                source=self.source_name,
                endpoint=endpoint,
                duration_ms=(time.perf_counter() - start_time) * 1000,
            )

    async def extract_batch(
        self,
        app_ids: list[AppId],
        *,
        country_code: str | None = None,
        language: str | None = None,
    ) -> list[ExtractionResult[dict[str, Any]]]:
        """
        Fetch a small batch of apps concurrently.

        The Store API only answers one app per request for full details,
        so callers keep batches small (3-5 ids) to respect the rate limit.

        Returns:
            Results in the same order as ``app_ids``
        """
        self._logger.debug("Starting batch extraction", total_apps=len(app_ids))

        results = await asyncio.gather(
            *(
                self.extract(app_id, country_code=country_code, language=language)
                for app_id in app_ids
            )
        )
        return list(results)
