"""
Steam Catalog Sync.

Incremental mirror of the Steam game catalog into a local JSON store,
with a query service for filtering, scoring and paging the result.
"""

from steam_catalog.config import Settings, get_settings
from steam_catalog.logger import get_logger, setup_logging

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "get_settings",
    "get_logger",
    "setup_logging",
    "__version__",
]
