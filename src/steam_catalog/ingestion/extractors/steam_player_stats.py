"""
Current player count extractor.

The only signal the sync has for a game's ``dau`` field. The endpoint is
keyless and answers ``result != 1`` for apps without stats.
"""

import time

from pydantic import ValidationError as PydanticValidationError

from steam_catalog.ingestion.contracts import AppId, PlayerCountAPIResponse, PlayerCountResponse
from steam_catalog.ingestion.extractors.base import (
    BaseExtractor,
    ExtractionError,
    ExtractionResult,
    ValidationError,
)


class SteamPlayerStatsExtractor(BaseExtractor):
    """
    Looks up current player counts.

    Example:
        >>> async with SteamPlayerStatsExtractor() as extractor:
        ...     dau = await extractor.get_player_count(570)
    """

    @property
    def source_name(self) -> str:
        return "steam_player_stats_api"

    async def extract(self, app_id: AppId) -> ExtractionResult[PlayerCountResponse]:
        """
        Fetch the player count of one app.

        An app without stats is reported as an unsuccessful result, not an
        error.
        """
        url = self._steam_config.player_count_url
        endpoint = f"{url}?appid={app_id}"
        started = time.perf_counter()

        try:
            payload = await self.fetch_json(url, params={"appid": app_id})
            try:
                counts = PlayerCountAPIResponse.model_validate(payload).response
            except PydanticValidationError as e:
                raise ValidationError(
                    f"Unexpected player count payload: {e.error_count()} errors",
                    source=self.source_name,
                    endpoint=endpoint,
                ) from e
        except ExtractionError as e:
            self._logger.warning(
                "Player count unavailable",
                app_id=app_id,
                error=str(e),
                error_type=e.__class__.__name__,
            )
            return ExtractionResult(
                success=False,
                error_message=str(e),
                error_type=e.__class__.__name__,
                source=self.source_name,
                endpoint=endpoint,
                duration_ms=(time.perf_counter() - started) * 1000,
            )

        return ExtractionResult(
            success=counts.is_successful,
            data=counts if counts.is_successful else None,
            error_message=None if counts.is_successful else f"result={counts.result}",
            source=self.source_name,
            endpoint=endpoint,
            duration_ms=(time.perf_counter() - started) * 1000,
        )

    async def get_player_count(self, app_id: AppId) -> int:
        """Current players of an app, 0 when unknown."""
        result = await self.extract(app_id)
        return result.data.player_count if result.data is not None else 0
