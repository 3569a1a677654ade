"""
Catalog differ.

Splits the upstream id list against the local store into ids to discover
(newest first) and existing ids due for a refresh.
"""

import random
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field

import structlog

from steam_catalog.catalog.schemas import ProgressState
from steam_catalog.config import get_settings

logger = structlog.get_logger(__name__)


@dataclass
class CatalogPartition:
    """Result of ``CatalogDiffer.partition``."""

    fresh: list[int] = field(default_factory=list)
    stale_candidates: list[int] = field(default_factory=list)
    unchanged: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "fresh": len(self.fresh),
            "stale_candidates": len(self.stale_candidates),
            "unchanged": len(self.unchanged),
        }


class CatalogDiffer:
    """
    Computes which ids a run should visit.

    Upstream ids are assigned monotonically, so descending id order is
    used as a proxy for "newest release first".
    """

    def __init__(
        self,
        *,
        stale_after_hours: float | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Args:
            stale_after_hours: Freshness window (defaults to settings)
            rng: Source of randomness for shuffling refresh candidates
            clock: Epoch-seconds clock
        """
        if stale_after_hours is None:
            stale_after_hours = get_settings().sync.stale_after_hours
        self._stale_after_ms = int(stale_after_hours * 3600 * 1000)
        self._rng = rng or random.Random()
        self._clock = clock

    def partition(
        self,
        upstream_ids: Iterable[int],
        existing_updated_at: Mapping[int, int],
    ) -> CatalogPartition:
        """
        Partition ids into fresh, stale candidates and unchanged.

        Args:
            upstream_ids: Every id in the upstream list (duplicates allowed)
            existing_updated_at: Local ids mapped to their last upsert (epoch ms)

        Returns:
            CatalogPartition where ``fresh`` is sorted by descending id and
            ``stale_candidates`` is shuffled. Local ids absent upstream are
            still refresh candidates; nothing is ever dropped.
        """
        fresh = sorted(
            {app_id for app_id in upstream_ids if app_id > 0 and app_id not in existing_updated_at},
            reverse=True,
        )

        threshold = int(self._clock() * 1000) - self._stale_after_ms
        stale: list[int] = []
        unchanged: list[int] = []
        for app_id in sorted(existing_updated_at):
            if existing_updated_at[app_id] > threshold:
                unchanged.append(app_id)
            else:
                stale.append(app_id)
        self._rng.shuffle(stale)

        partition = CatalogPartition(fresh=fresh, stale_candidates=stale, unchanged=unchanged)
        logger.info("Catalog partitioned", **partition.to_dict())
        return partition

    @staticmethod
    def apply_cursor(fresh: list[int], progress: ProgressState) -> list[int]:
        """
        Skip ids an interrupted walk already visited.

        The walk visits ids from ``walk_start_app_id`` downward and has
        reached ``last_app_id``; ids in that closed range are dropped. Ids
        released after the walk started (above its start) stay in front.
        """
        if not progress.in_progress:
            return list(fresh)

        upper = progress.walk_start_app_id
        lower = progress.last_app_id
        remaining = [app_id for app_id in fresh if not lower <= app_id <= upper]

        logger.info(
            "Resuming interrupted walk",
            skipped=len(fresh) - len(remaining),
            last_app_id=lower,
            walk_start_app_id=upper,
        )
        return remaining
