"""
fuel_services.auto_fill_service -- Direction resolution and LPO auto-fill over the database.

Responsibility:
    Fetches a truck's recent delivery orders and fuel records through a
    ``JourneyDataSource`` and runs the pure journey and auto-fill engines
    against the current configuration snapshot.

Architecture position:
    Services -- orchestration over engines + kernel selectors.

Invariants enforced:
    - Read only: nothing is written or flushed.
    - Only orders inside the snapshot's lookback window are fetched.
    - The same database state and snapshot always give the same answer.
"""

from __future__ import annotations

from datetime import timedelta

from sqlalchemy.orm import Session

from fuel_config.cache import ConfigSnapshotCache
from fuel_config.schema import FuelConfigSnapshot
from fuel_engines.auto_fill import AutoFillResult, compute_auto_fill
from fuel_engines.journey import DirectionResult, resolve_direction
from fuel_kernel.domain.clock import Clock, SystemClock
from fuel_kernel.domain.truck_number import normalize_truck_no
from fuel_kernel.logging_config import get_logger
from fuel_kernel.selectors.journey_selector import JourneyDataSource, JourneySelector

logger = get_logger("services.auto_fill")


class AutoFillService:
    """
    Journey direction and LPO proposals for a truck at a station.

    Contract:
        Receives a Session (or any ``JourneyDataSource``) and either a
        fixed snapshot or a ``ConfigSnapshotCache``.
    """

    def __init__(
        self,
        session: Session | None,
        config: FuelConfigSnapshot | ConfigSnapshotCache,
        clock: Clock | None = None,
        data_source: JourneyDataSource | None = None,
    ):
        if data_source is None:
            if session is None:
                raise ValueError("AutoFillService needs a session or a data source")
            data_source = JourneySelector(session)
        self._source = data_source
        self._config = config
        self._clock = clock or SystemClock()

    def _snapshot(self) -> FuelConfigSnapshot:
        if isinstance(self._config, ConfigSnapshotCache):
            return self._config.get()
        return self._config

    def _journey_data(self, snapshot: FuelConfigSnapshot, truck_no: str):
        today = self._clock.today()
        date_from = today - timedelta(days=snapshot.lookback_days)
        orders = self._source.query_delivery_orders(truck_no, date_from, True)
        records = self._source.query_fuel_records(truck_no, date_from, True)
        return today, orders, records

    def resolve_direction(self, truck_no: str, station: str) -> DirectionResult | None:
        snapshot = self._snapshot()
        truck = normalize_truck_no(truck_no)
        today, orders, records = self._journey_data(snapshot, truck)
        return resolve_direction(snapshot, station, orders, records, as_of=today)

    def auto_fill(self, truck_no: str, station: str) -> AutoFillResult | None:
        """Proposed LPO line for ``truck_no`` at ``station``, or None."""
        snapshot = self._snapshot()
        truck = normalize_truck_no(truck_no)
        today, orders, records = self._journey_data(snapshot, truck)
        direction = resolve_direction(snapshot, station, orders, records, as_of=today)
        result = compute_auto_fill(snapshot, truck, station, direction, records)
        if result is None:
            logger.info(
                "auto_fill_unresolved",
                extra={"truck_no": truck, "station": station, "has_direction": direction is not None},
            )
        return result
