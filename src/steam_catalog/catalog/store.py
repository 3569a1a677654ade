"""
Catalog store and reconciler.

Owns the authoritative id -> ``GameRecord`` mapping, arbitrates refreshes
with a completeness score, and persists the catalog as a JSON array sorted
by descending rating (the default order the front end shows).
"""

import time
from collections.abc import Callable, Iterator
from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import ValidationError as PydanticValidationError

from steam_catalog.catalog.schemas import GameRecord, is_valid_price
from steam_catalog.catalog.storage import (
    PersistenceCorruptionError,
    quarantine,
    read_json,
    write_json_atomic,
)
from steam_catalog.config import get_settings
from steam_catalog.logger import get_logger


class UpsertOutcome(str, Enum):
    """What ``CatalogStore.upsert`` did with the incoming record."""

    INSERTED = "inserted"
    REPLACED = "replaced"
    KEPT = "kept"


def quality_score(record: GameRecord) -> int:
    """
    Completeness heuristic used to arbitrate merge conflicts.

    cover: 1, valid price: 2, at least one tag: 1, rating: 1.
    """
    score = 0
    if record.cover:
        score += 1
    if is_valid_price(record.base_price):
        score += 2
    if record.tags:
        score += 1
    if record.rating > 0:
        score += 1
    return score


def _now_ms() -> int:
    return int(time.time() * 1000)


class CatalogStore:
    """
    Id-keyed catalog with quality-based reconciliation.

    Example:
        >>> store = CatalogStore(Path("data/steam_games.json"))
        >>> store.load()
        >>> store.upsert(record)
        <UpsertOutcome.INSERTED: 'inserted'>
        >>> store.save()
    """

    def __init__(
        self,
        path: Path | None = None,
        *,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        """
        Initialize the store.

        Args:
            path: Catalog file (defaults to the configured storage path)
            clock: Epoch-millisecond clock used for ``updated_at``
        """
        self._path = path or get_settings().storage.catalog_path
        self._clock = clock
        self._records: dict[int, GameRecord] = {}
        self._logger = get_logger(__name__, component="catalog_store")

    @property
    def path(self) -> Path:
        return self._path

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, app_id: object) -> bool:
        return app_id in self._records

    def get(self, app_id: int) -> GameRecord | None:
        return self._records.get(app_id)

    def ids(self) -> set[int]:
        return set(self._records)

    def updated_at_by_id(self) -> dict[int, int]:
        """Last upsert time of every record, for the differ."""
        return {app_id: record.updated_at for app_id, record in self._records.items()}

    def records(self, order: Literal["rating", "id"] = "rating") -> Iterator[GameRecord]:
        """
        Iterate records.

        Args:
            order: ``"rating"`` (descending, ties by id) or ``"id"`` (ascending)
        """
        if order == "id":
            keys = sorted(self._records)
            return (self._records[k] for k in keys)
        return iter(sorted(self._records.values(), key=lambda r: (-r.rating, r.id)))

    def upsert(self, record: GameRecord) -> UpsertOutcome:
        """
        Insert or reconcile a record.

        An existing record is replaced only when the incoming one scores at
        least as high (ties favor the fresher data). Accepted records get a
        new ``updated_at`` strictly greater than the previous one.

        Returns:
            UpsertOutcome describing the decision
        """
        existing = self._records.get(record.id)

        if existing is not None:
            incoming_score = quality_score(record)
            existing_score = quality_score(existing)
            if incoming_score < existing_score:
                self._logger.debug(
                    "Keeping richer existing record",
                    app_id=record.id,
                    existing_score=existing_score,
                    incoming_score=incoming_score,
                )
                return UpsertOutcome.KEPT

        previous = existing.updated_at if existing is not None else 0
        updated_at = max(self._clock(), previous + 1)
        self._records[record.id] = record.model_copy(update={"updated_at": updated_at})

        return UpsertOutcome.INSERTED if existing is None else UpsertOutcome.REPLACED

    def load(self, *, quarantine_corrupt: bool = True) -> int:
        """
        Replace in-memory content with the catalog file.

        A missing file gives an empty store. An unreadable file is moved
        aside and also gives an empty store; invalid entries are skipped.
        Duplicate ids in the file are reconciled like upserts.

        Args:
            quarantine_corrupt: Move an unreadable file to ``*.corrupt``;
                readers pass False to leave the file untouched

        Returns:
            Number of records loaded
        """
        self._records = {}

        try:
            document = read_json(self._path)
        except PersistenceCorruptionError as e:
            moved_to = quarantine(self._path) if quarantine_corrupt else None
            self._logger.error(
                "Catalog file is corrupt, starting empty",
                path=str(self._path),
                error=str(e),
                moved_to=str(moved_to) if moved_to else None,
            )
            return 0

        if document is None:
            self._logger.info("No catalog file yet", path=str(self._path))
            return 0

        if not isinstance(document, list):
            moved_to = quarantine(self._path) if quarantine_corrupt else None
            self._logger.error(
                "Catalog file is not a JSON array, starting empty",
                path=str(self._path),
                moved_to=str(moved_to) if moved_to else None,
            )
            return 0

        skipped = 0
        for item in document:
            try:
                record = GameRecord.model_validate(item)
            except PydanticValidationError:
                skipped += 1
                continue
            existing = self._records.get(record.id)
            if existing is None or quality_score(record) >= quality_score(existing):
                self._records[record.id] = record

        self._logger.info(
            "Catalog loaded",
            path=str(self._path),
            records=len(self._records),
            skipped=skipped,
        )
        return len(self._records)

    def save(self) -> Path:
        """
        Write the catalog atomically, sorted by descending rating.

        Raises:
            PersistenceError: The file could not be written
        """
        documents = [record.to_document() for record in self.records()]
        write_json_atomic(self._path, documents)

        self._logger.debug("Catalog saved", path=str(self._path), records=len(documents))
        return self._path
