"""NetworkStore - process-wide cache of the transit network snapshot.

The network is built once (at startup or on first use) and kept in memory,
so route searches never touch the schedule store.

Reloads build a complete new NetworkSnapshot off to the side and publish it
with a single reference assignment:
- Readers holding the old snapshot keep a consistent view until they finish
- Readers never wait on a reload
- A failed reload leaves the last good snapshot in place
"""

import logging
import threading
import time
from datetime import datetime
from typing import Dict, Optional

from src.transit_bc.exceptions import DataUnavailableError, InvalidCoordinatesError
from src.transit_bc.line.domain.entities.line import Line
from src.transit_bc.routing.network import WALK_THRESHOLD_KM, NetworkSnapshot, build_snapshot
from src.transit_bc.routing.schedule_sources import ScheduleSource
from src.transit_bc.stop.domain.entities.stop import Stop

logger = logging.getLogger(__name__)


class NetworkStore:
    """Singleton holding the current NetworkSnapshot.

    Thread-safe: builds are serialized by a private lock, reads are lock-free.
    """

    _instance: Optional["NetworkStore"] = None
    _lock = threading.Lock()

    def __init__(
        self,
        source: Optional[ScheduleSource] = None,
        walk_threshold_km: float = WALK_THRESHOLD_KM,
    ):
        self.source = source
        self.walk_threshold_km = walk_threshold_km

        self._snapshot: Optional[NetworkSnapshot] = None
        self._build_lock = threading.Lock()

        self.load_time_seconds = 0.0
        self.loaded_at: Optional[datetime] = None

    @classmethod
    def get_instance(cls) -> "NetworkStore":
        """Get the singleton instance (thread-safe)."""
        if cls._instance is None:
            with cls._lock:
                # Double-check locking
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the singleton (tests, full restart)."""
        with cls._lock:
            cls._instance = None

    @property
    def is_loaded(self) -> bool:
        return self._snapshot is not None

    @property
    def stats(self) -> Dict[str, int]:
        snapshot = self._snapshot
        return snapshot.stats if snapshot is not None else {}

    def load(self, source: Optional[ScheduleSource] = None) -> NetworkSnapshot:
        """Build the first snapshot. No-op when one is already published.

        Raises:
            DataUnavailableError: if the source fails or has no stops
        """
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot

        with self._build_lock:
            snapshot = self._snapshot
            if snapshot is not None:  # Double-check
                return snapshot
            return self._build_and_publish(source)

    def reload(self, source: Optional[ScheduleSource] = None) -> NetworkSnapshot:
        """Rebuild the network and atomically replace the current snapshot.

        Raises:
            DataUnavailableError: if the source fails or has no stops; the
                previous snapshot stays published
        """
        with self._build_lock:
            try:
                return self._build_and_publish(source)
            except DataUnavailableError as e:
                if self._snapshot is not None:
                    logger.error(f"Network reload failed, keeping previous snapshot: {e}")
                else:
                    logger.error(f"Network reload failed: {e}")
                raise

    def get_snapshot(self) -> NetworkSnapshot:
        """Current snapshot, loading it on first use."""
        snapshot = self._snapshot
        if snapshot is None:
            snapshot = self.load()
        return snapshot

    def get_stop_by_id(self, stop_id: str) -> Stop:
        """Raises StopNotFoundError for unknown IDs."""
        return self.get_snapshot().get_stop(stop_id)

    def get_line_by_id(self, line_id: str) -> Line:
        """Raises LineNotFoundError for unknown IDs."""
        return self.get_snapshot().get_line(line_id)

    def _build_and_publish(self, source: Optional[ScheduleSource]) -> NetworkSnapshot:
        # Caller holds _build_lock
        if source is not None:
            self.source = source
        if self.source is None:
            raise DataUnavailableError("No schedule source configured")

        start = time.time()
        logger.info("Loading transit network...")

        try:
            stops = self.source.list_stops()
            lines = self.source.list_lines()
        except DataUnavailableError:
            raise
        except Exception as e:
            raise DataUnavailableError(f"Schedule source failed: {e}") from e

        if not stops:
            raise DataUnavailableError("Schedule source returned no stops")

        try:
            snapshot = build_snapshot(stops, lines, self.walk_threshold_km)
        except InvalidCoordinatesError as e:
            raise DataUnavailableError(f"Schedule source returned invalid stop data: {e}") from e

        # Publish: one reference assignment
        self._snapshot = snapshot
        self.load_time_seconds = time.time() - start
        self.loaded_at = snapshot.built_at

        logger.info(f"Transit network loaded in {self.load_time_seconds:.2f}s: {snapshot.stats}")
        return snapshot
