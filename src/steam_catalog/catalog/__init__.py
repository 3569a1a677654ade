"""
Game catalog management.

Canonical records, normalization of Store API entries, diffing against
the upstream list, reconciliation and durable persistence.
"""

from steam_catalog.catalog.differ import CatalogDiffer, CatalogPartition
from steam_catalog.catalog.normalizer import RecordNormalizer, infer_tags, normalize
from steam_catalog.catalog.progress import ProgressTracker
from steam_catalog.catalog.schemas import (
    PRICE_CEILING,
    GameRecord,
    Platform,
    ProgressState,
)
from steam_catalog.catalog.storage import PersistenceCorruptionError, PersistenceError
from steam_catalog.catalog.store import CatalogStore, UpsertOutcome, quality_score

__all__ = [
    "PRICE_CEILING",
    "CatalogDiffer",
    "CatalogPartition",
    "CatalogStore",
    "GameRecord",
    "PersistenceCorruptionError",
    "PersistenceError",
    "Platform",
    "ProgressState",
    "ProgressTracker",
    "RecordNormalizer",
    "UpsertOutcome",
    "infer_tags",
    "normalize",
    "quality_score",
]
