"""
Catalog sync orchestrator.

Drives one bounded run: fetch the app list, diff it against the local
store, then visit new ids (newest first) and stale records in small
paced batches until the list is exhausted or the time budget runs out.
Store and cursor are saved after every batch, so an interrupted run
loses at most the batch in flight.
"""

import asyncio
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from steam_catalog.catalog.differ import CatalogDiffer
from steam_catalog.catalog.normalizer import RecordNormalizer
from steam_catalog.catalog.progress import ProgressTracker
from steam_catalog.catalog.schemas import GameRecord, ProgressState
from steam_catalog.catalog.storage import PersistenceError
from steam_catalog.catalog.store import CatalogStore, UpsertOutcome
from steam_catalog.config import Settings, get_settings
from steam_catalog.ingestion.extractors import (
    AppListExtractor,
    CatalogListError,
    ExtractionResult,
    SteamPlayerStatsExtractor,
    SteamStoreExtractor,
)
from steam_catalog.ingestion.utils.rate_limiter import RateLimiter, RateLimiterConfig
from steam_catalog.logger import get_logger

# Failed items kept in SyncResult.errors; the counters stay exact
MAX_REPORTED_ERRORS = 100


class SyncState(str, Enum):
    """Orchestrator states."""

    IDLE = "idle"
    FETCHING_LIST = "fetching_list"
    DIFFING = "diffing"
    ITERATING = "iterating"
    SAVING = "saving"
    DONE = "done"
    FAILED = "failed"


class SyncPhase(str, Enum):
    """Which candidate list is being iterated."""

    DISCOVER = "discover"
    REFRESH = "refresh"


@dataclass
class SyncProgress:
    """Tracks progress of a sync run."""

    total: int = 0
    completed: int = 0
    inserted: int = 0
    replaced: int = 0
    kept: int = 0
    skipped: int = 0
    failed: int = 0
    current_app_id: int | None = None
    current_phase: str | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def percentage(self) -> float:
        """Get completion percentage."""
        if self.total == 0:
            return 100.0
        return (self.completed / self.total) * 100

    @property
    def elapsed_seconds(self) -> float:
        """Get elapsed time in seconds."""
        return (datetime.now(timezone.utc) - self.started_at).total_seconds()


@dataclass
class SyncResult:
    """Result of a complete sync run."""

    run_id: UUID
    started_at: datetime
    completed_at: datetime
    state: SyncState
    upstream_total: int = 0
    fresh_total: int = 0
    stale_total: int = 0
    processed: int = 0
    inserted: int = 0
    replaced: int = 0
    kept: int = 0
    skipped: int = 0
    failed: int = 0
    budget_exhausted: bool = False
    walk_complete: bool = False
    errors: list[dict[str, Any]] = field(default_factory=list)
    error_message: str | None = None

    @property
    def success(self) -> bool:
        return self.state == SyncState.DONE

    @property
    def duration_seconds(self) -> float:
        """Get total duration in seconds."""
        return (self.completed_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": str(self.run_id),
            "state": self.state.value,
            "success": self.success,
            "duration_seconds": round(self.duration_seconds, 2),
            "upstream_total": self.upstream_total,
            "fresh_total": self.fresh_total,
            "stale_total": self.stale_total,
            "processed": self.processed,
            "inserted": self.inserted,
            "replaced": self.replaced,
            "kept": self.kept,
            "skipped": self.skipped,
            "failed": self.failed,
            "budget_exhausted": self.budget_exhausted,
            "walk_complete": self.walk_complete,
            "errors": self.errors[:10],
            "error_message": self.error_message,
        }


class SyncOrchestrator:
    """
    Orchestrates one catalog sync run.

    Every collaborator can be injected; defaults are built from settings.

    Example:
        >>> result = await SyncOrchestrator().run()
        >>> result.success, result.inserted
    """

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        store: CatalogStore | None = None,
        progress_tracker: ProgressTracker | None = None,
        differ: CatalogDiffer | None = None,
        normalizer: RecordNormalizer | None = None,
        app_list_extractor: AppListExtractor | None = None,
        store_extractor: SteamStoreExtractor | None = None,
        player_stats_extractor: SteamPlayerStatsExtractor | None = None,
        rate_limiter: RateLimiter | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings or get_settings()
        sync_config = self._settings.sync
        self._sync_config = sync_config
        self._store = store or CatalogStore(self._settings.storage.catalog_path)
        self._tracker = progress_tracker or ProgressTracker(self._settings.storage.progress_path)
        self._differ = differ or CatalogDiffer(stale_after_hours=sync_config.stale_after_hours)
        self._normalizer = normalizer or RecordNormalizer()

        extractor_kwargs: dict[str, Any] = {
            "steam_config": self._settings.steam,
            "retry_config": self._settings.retry,
        }
        self._app_list = app_list_extractor or AppListExtractor(**extractor_kwargs)
        self._store_extractor = store_extractor or SteamStoreExtractor(**extractor_kwargs)
        self._player_stats: SteamPlayerStatsExtractor | None = None
        if sync_config.include_player_counts:
            self._player_stats = player_stats_extractor or SteamPlayerStatsExtractor(
                **extractor_kwargs
            )

        self._rate_limiter = rate_limiter or RateLimiter(
            RateLimiterConfig(min_interval_seconds=sync_config.delay_seconds)
        )
        self._clock = clock
        self._state = SyncState.IDLE
        self._started: float = 0.0
        self._logger = get_logger(__name__, component="orchestrator")

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def store(self) -> CatalogStore:
        return self._store

    def _transition(self, state: SyncState) -> None:
        self._logger.debug("State transition", from_state=self._state.value, to_state=state.value)
        self._state = state

    def _budget_exceeded(self) -> bool:
        return self._clock() - self._started >= self._sync_config.max_runtime_seconds

    async def run(
        self,
        *,
        on_progress: Callable[[SyncProgress], None] | None = None,
    ) -> SyncResult:
        """
        Execute one sync run.

        Args:
            on_progress: Called after every processed item

        Returns:
            SyncResult; ``success`` is False when the app list could not be
            fetched from either source or the store could not be written.
        """
        run_id = uuid4()
        started_at = datetime.now(timezone.utc)
        self._started = self._clock()
        self._state = SyncState.IDLE
        progress = SyncProgress()
        errors: list[dict[str, Any]] = []
        result = SyncResult(
            run_id=run_id,
            started_at=started_at,
            completed_at=started_at,
            state=self._state,
            errors=errors,
        )

        self._logger.info(
            "Starting sync",
            run_id=str(run_id),
            batch_size=self._sync_config.batch_size,
            max_runtime_minutes=self._sync_config.max_runtime_minutes,
        )

        try:
            await self._run(result, progress, on_progress)
        except CatalogListError as e:
            self._transition(SyncState.FAILED)
            result.error_message = str(e)
            self._logger.error("Sync failed: app list unavailable", run_id=str(run_id), error=str(e))
        except PersistenceError as e:
            self._transition(SyncState.FAILED)
            result.error_message = str(e)
            self._logger.error("Sync failed: cannot persist", run_id=str(run_id), error=str(e))
        finally:
            await self._close_extractors()

        result.state = self._state
        result.completed_at = datetime.now(timezone.utc)
        result.processed = progress.completed
        result.inserted = progress.inserted
        result.replaced = progress.replaced
        result.kept = progress.kept
        result.skipped = progress.skipped
        result.failed = progress.failed

        self._logger.info(
            "Sync complete" if result.success else "Sync aborted",
            run_id=str(run_id),
            state=result.state.value,
            duration_seconds=round(result.duration_seconds, 2),
            processed=result.processed,
            inserted=result.inserted,
            replaced=result.replaced,
            kept=result.kept,
            skipped=result.skipped,
            failed=result.failed,
            budget_exhausted=result.budget_exhausted,
        )
        return result

    async def _run(
        self,
        result: SyncResult,
        progress: SyncProgress,
        on_progress: Callable[[SyncProgress], None] | None,
    ) -> None:
        # Nothing is written before the list is in hand
        self._transition(SyncState.FETCHING_LIST)
        apps = await self._app_list.get_all_apps()
        if self._sync_config.skip_non_game_names:
            apps = self._app_list.filter_likely_games(apps)
        result.upstream_total = len(apps)

        self._transition(SyncState.DIFFING)
        self._store.load()
        cursor = self._tracker.load()
        partition = self._differ.partition(
            (app.app_id for app in apps),
            self._store.updated_at_by_id(),
        )
        fresh = self._differ.apply_cursor(partition.fresh, cursor)
        stale = partition.stale_candidates if self._sync_config.refresh_existing else []
        result.fresh_total = len(fresh)
        result.stale_total = len(stale)
        progress.total = len(fresh) + len(stale)

        self._transition(SyncState.ITERATING)
        result.walk_complete = await self._discover(
            fresh, cursor, len(partition.fresh), progress, result, on_progress
        )

        if result.walk_complete and stale:
            await self._refresh(stale, progress, result, on_progress)

        self._transition(SyncState.SAVING)
        self._store.save()
        if result.walk_complete:
            self._tracker.reset(len(partition.fresh))

        self._transition(SyncState.DONE)

    async def _discover(
        self,
        fresh: list[int],
        cursor: ProgressState,
        total_count: int,
        progress: SyncProgress,
        result: SyncResult,
        on_progress: Callable[[SyncProgress], None] | None,
    ) -> bool:
        """
        Visit new ids newest first, saving the cursor after each batch.

        Returns:
            True when every id was visited, False when the budget ran out
        """
        progress.current_phase = SyncPhase.DISCOVER.value

        if cursor.in_progress:
            walk_start = cursor.walk_start_app_id
            last_app_id = cursor.last_app_id
            cursor_index = cursor.cursor_index
        else:
            walk_start = fresh[0] if fresh else None
            last_app_id = None
            cursor_index = 0

        for batch in _chunks(fresh, self._sync_config.batch_size):
            if self._budget_exceeded():
                result.budget_exhausted = True
                self._logger.info("Run budget exhausted", phase=progress.current_phase)
                return False

            await self._process_batch(batch, progress, result, on_progress)

            cursor_index += len(batch)
            lowest = min(batch)
            # Ids released after the walk started sit above walk_start and do not move the cursor
            if walk_start is not None and lowest <= walk_start:
                last_app_id = lowest if last_app_id is None else min(last_app_id, lowest)
            self._tracker.save(
                cursor_index,
                total_count,
                last_app_id=last_app_id,
                walk_start_app_id=walk_start,
            )

        return True

    async def _refresh(
        self,
        stale: list[int],
        progress: SyncProgress,
        result: SyncResult,
        on_progress: Callable[[SyncProgress], None] | None,
    ) -> None:
        """Re-fetch existing records while time remains."""
        progress.current_phase = SyncPhase.REFRESH.value
        self._logger.info("Refreshing existing records", candidates=len(stale))

        for batch in _chunks(stale, self._sync_config.batch_size):
            if self._budget_exceeded():
                result.budget_exhausted = True
                self._logger.info("Run budget exhausted", phase=progress.current_phase)
                return
            await self._process_batch(batch, progress, result, on_progress)

    async def _process_batch(
        self,
        batch: Sequence[int],
        progress: SyncProgress,
        result: SyncResult,
        on_progress: Callable[[SyncProgress], None] | None,
    ) -> None:
        """Pace, fetch, normalize and upsert one batch, then save the store."""
        await self._rate_limiter.acquire()

        fetched = await self._store_extractor.extract_batch(list(batch))
        records = await self._normalize_batch(batch, fetched, progress, result)
        if self._player_stats is not None and records:
            records = await self._with_player_counts(records, self._player_stats)

        changed = False
        for record in records:
            progress.current_app_id = record.id
            try:
                outcome = self._store.upsert(self._carry_over_dau(record))
            except Exception as e:
                progress.failed += 1
                self._record_error(result, record.id, type(e).__name__, str(e))
                self._logger.error("Upsert failed", app_id=record.id, error=str(e))
                continue

            if outcome == UpsertOutcome.INSERTED:
                progress.inserted += 1
                self._logger.info("Added game", app_id=record.id, title=record.title)
            elif outcome == UpsertOutcome.REPLACED:
                progress.replaced += 1
                self._logger.debug("Updated game", app_id=record.id, title=record.title)
            else:
                progress.kept += 1
            changed = changed or outcome != UpsertOutcome.KEPT

        progress.completed += len(batch)
        if on_progress:
            on_progress(progress)

        if changed:
            self._store.save()

    async def _normalize_batch(
        self,
        batch: Sequence[int],
        fetched: Sequence[ExtractionResult[dict[str, Any]]],
        progress: SyncProgress,
        result: SyncResult,
    ) -> list[GameRecord]:
        records: list[GameRecord] = []
        for app_id, extraction in zip(batch, fetched, strict=True):
            progress.current_app_id = app_id

            if not extraction.success:
                progress.failed += 1
                self._record_error(
                    result, app_id, extraction.error_type, extraction.error_message
                )
                continue

            try:
                record = self._normalizer.normalize(extraction.data)
            except Exception as e:
                progress.failed += 1
                self._record_error(result, app_id, type(e).__name__, str(e))
                self._logger.error("Normalization failed", app_id=app_id, error=str(e))
                continue

            if record is None:
                progress.skipped += 1
                continue
            records.append(record)
        return records

    async def _with_player_counts(
        self,
        records: list[GameRecord],
        player_stats: SteamPlayerStatsExtractor,
    ) -> list[GameRecord]:
        counts = await asyncio.gather(
            *(player_stats.get_player_count(record.id) for record in records)
        )
        return [
            record.model_copy(update={"dau": count}) if count else record
            for record, count in zip(records, counts, strict=True)
        ]

    def _carry_over_dau(self, record: GameRecord) -> GameRecord:
        """The detail endpoint has no player data; keep a known dau over 0."""
        if record.dau:
            return record
        existing = self._store.get(record.id)
        if existing is not None and existing.dau:
            return record.model_copy(update={"dau": existing.dau})
        return record

    def _record_error(
        self,
        result: SyncResult,
        app_id: int,
        error_type: str | None,
        message: str | None,
    ) -> None:
        if len(result.errors) < MAX_REPORTED_ERRORS:
            result.errors.append(
                {"app_id": app_id, "error_type": error_type, "error": message or ""}
            )

    async def _close_extractors(self) -> None:
        await self._app_list.close()
        await self._store_extractor.close()
        if self._player_stats is not None:
            await self._player_stats.close()


def _chunks(items: Sequence[int], size: int) -> list[list[int]]:
    return [list(items[i : i + size]) for i in range(0, len(items), size)]
