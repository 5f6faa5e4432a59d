"""
Short-lived snapshot cache.

Configuration changes are rare and a stale read only affects default
allowances, never ledger invariants, so callers may hold a snapshot for a
few minutes.  There is no push invalidation: whoever edits configuration
calls ``invalidate()``.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import datetime, timedelta

from fuel_config.schema import FuelConfigSnapshot
from fuel_kernel.domain.clock import Clock, SystemClock
from fuel_kernel.logging_config import get_logger

logger = get_logger("config.cache")

DEFAULT_TTL_SECONDS = 300


class ConfigSnapshotCache:
    """
    Time-bounded holder for one FuelConfigSnapshot.

    Contract:
        ``get()`` returns the cached snapshot while it is younger than the
        TTL and reloads through ``loader`` otherwise.

    Guarantees:
        - ``invalidate()`` forces the next ``get()`` to reload.
        - Loader failures propagate and leave the previous snapshot
          cached but expired.
    """

    def __init__(
        self,
        loader: Callable[[], FuelConfigSnapshot],
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Clock | None = None,
    ):
        self._loader = loader
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock or SystemClock()
        self._snapshot: FuelConfigSnapshot | None = None
        self._loaded_at: datetime | None = None
        self._lock = threading.Lock()

    def get(self) -> FuelConfigSnapshot:
        with self._lock:
            now = self._clock.now()
            if (
                self._snapshot is None
                or self._loaded_at is None
                or now - self._loaded_at >= self._ttl
            ):
                self._snapshot = self._loader()
                self._loaded_at = now
                logger.debug(
                    "config_snapshot_loaded",
                    extra={
                        "config_version": self._snapshot.version,
                        "checksum": self._snapshot.checksum,
                    },
                )
            return self._snapshot

    def invalidate(self) -> None:
        with self._lock:
            self._loaded_at = None
        logger.info("config_snapshot_invalidated")

    @property
    def is_fresh(self) -> bool:
        if self._snapshot is None or self._loaded_at is None:
            return False
        return self._clock.now() - self._loaded_at < self._ttl
