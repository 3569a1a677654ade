"""
Read path over the synchronized catalog.
"""

from steam_catalog.query.cache import SnapshotCache
from steam_catalog.query.service import (
    DemandFlag,
    QueryFilters,
    QueryResult,
    QueryService,
    RankedGame,
    SortKey,
    match_score,
)

__all__ = [
    "DemandFlag",
    "QueryFilters",
    "QueryResult",
    "QueryService",
    "RankedGame",
    "SnapshotCache",
    "SortKey",
    "match_score",
]
