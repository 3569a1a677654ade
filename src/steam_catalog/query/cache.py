"""
Snapshot cache for the query layer.

Holds one loaded value for a bounded lifetime so consecutive queries do
not re-read the catalog file, without keeping state shared across
service instances.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

V = TypeVar("V")


@dataclass
class SnapshotCache(Generic[V]):
    """
    Single-value cache with a time-to-live.

    Example:
        >>> cache = SnapshotCache(loader=load_records, ttl_seconds=300)
        >>> records = cache.get()
    """

    loader: Callable[[], V]
    ttl_seconds: float = 300.0
    clock: Callable[[], float] = time.monotonic
    _value: V | None = field(init=False, default=None)
    _loaded_at: float | None = field(init=False, default=None)

    @property
    def is_fresh(self) -> bool:
        if self._loaded_at is None:
            return False
        return self.clock() - self._loaded_at < self.ttl_seconds

    def get(self) -> V:
        """Return the cached value, reloading it when expired."""
        if not self.is_fresh or self._value is None:
            self._value = self.loader()
            self._loaded_at = self.clock()
        return self._value

    def invalidate(self) -> None:
        self._value = None
        self._loaded_at = None
