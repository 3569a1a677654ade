"""
Sync progress tracker.

Persists the cursor of the walk over new ids so an interrupted run is
resumed by the next one instead of starting over.
"""

import time
from collections.abc import Callable
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from steam_catalog.catalog.schemas import ProgressState
from steam_catalog.catalog.storage import PersistenceCorruptionError, read_json, write_json_atomic
from steam_catalog.config import get_settings
from steam_catalog.logger import get_logger


class ProgressTracker:
    """
    Loads and saves the singleton ``ProgressState``.

    Only one sync run is expected at a time; nothing guards against two
    runs writing the same file.
    """

    def __init__(
        self,
        path: Path | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._path = path or get_settings().storage.progress_path
        self._clock = clock
        self._logger = get_logger(__name__, component="progress_tracker")

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> ProgressState:
        """
        Read the saved cursor.

        Missing or corrupt state yields a zeroed default; corruption is
        logged, never raised.
        """
        try:
            document = read_json(self._path)
        except PersistenceCorruptionError as e:
            self._logger.warning("Progress file unreadable, starting over", error=str(e))
            return ProgressState()

        if document is None:
            return ProgressState()

        try:
            state = ProgressState.model_validate(document)
        except PydanticValidationError as e:
            self._logger.warning(
                "Progress file invalid, starting over",
                path=str(self._path),
                error_count=e.error_count(),
            )
            return ProgressState()

        self._logger.info(
            "Progress loaded",
            cursor_index=state.cursor_index,
            total_count=state.total_count,
            last_app_id=state.last_app_id,
        )
        return state

    def save(
        self,
        cursor_index: int,
        total_count: int,
        *,
        last_app_id: int | None = None,
        walk_start_app_id: int | None = None,
    ) -> ProgressState:
        """
        Persist the cursor synchronously.

        Raises:
            PersistenceError: The progress file could not be written
        """
        state = ProgressState(
            cursor_index=cursor_index,
            total_count=total_count,
            last_app_id=last_app_id,
            walk_start_app_id=walk_start_app_id,
            updated_at=int(self._clock() * 1000),
        )
        write_json_atomic(self._path, state.model_dump(mode="json"), indent=None)
        return state

    def reset(self, total_count: int = 0) -> ProgressState:
        """Mark the walk over new ids as complete."""
        self._logger.info("Walk complete, resetting cursor", total_count=total_count)
        return self.save(0, total_count)
