"""
fuel_services.lpo_service -- Local purchase order entries and their ledger effect.

Responsibility:
    Writes LPO entries (one truck, one station, some liters) and applies
    each to the truck's fuel record as a checkpoint debit.  Owns the
    duplicate guard, cash-mode auto-cancellation, LPO forwarding and
    entry cancellation.

Architecture position:
    Services -- orchestration over engines + kernel.
    Persists ``LPOEntry`` rows directly and debits through
    ``LedgerService``.

Invariants enforced:
    - An active entry for the same truck and station with the same liters
      is a duplicate and is refused; different liters are a top-up.
    - Driver's-account entries never touch the ledger.
    - An entry records exactly which field of which record it debited, and
      cancelling it gives exactly that back.
    - A cash purchase naming a cancellation point cancels the truck's
      active entries at that point's station before the new entry is
      written, in the same flush sequence.
    - Forwarding copies entries to the target station and leaves the
      source entries untouched.
    - Station names are stored normalised.

Failure modes:
    - DuplicateAllocationError: same liters already allocated.
    - UnknownStationError: a ledger-debiting entry names an unmapped station.
    - LPOEntryNotFoundError: unknown entry id.
    - InvalidForwardingError: nothing to forward, same station, or no liters.

Audit relevance:
    ``lpo_entry_created``, ``lpo_auto_cancelled``, ``lpo_entry_cancelled``
    and ``lpo_forwarded`` carry the LPO number, truck, station and the
    debited field.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from fuel_config.schema import FuelConfigSnapshot, StationDef
from fuel_kernel.domain.clock import Clock, SystemClock
from fuel_kernel.domain.dtos import FuelRecordInfo, LPOEntryInfo
from fuel_kernel.domain.truck_number import normalize_truck_no
from fuel_kernel.domain.values import (
    CheckpointField,
    Direction,
    JourneyLeg,
    PaymentMode,
    StationDirection,
    normalize_key,
)
from fuel_kernel.exceptions import (
    DuplicateAllocationError,
    InvalidForwardingError,
    LPOEntryNotFoundError,
    UnknownStationError,
)
from fuel_kernel.logging_config import LogContext, get_logger
from fuel_kernel.models.lpo_entry import LPOEntry
from fuel_kernel.selectors.journey_selector import JourneySelector
from fuel_kernel.selectors.lpo_selector import LPOSelector
from fuel_kernel.services.ledger_service import LedgerService

logger = get_logger("services.lpo")

_ZERO = Decimal("0")


class AllocationVerdict(str, Enum):
    NEW = "new"
    TOP_UP = "top_up"


@dataclass(frozen=True)
class DuplicateCheck:
    """Outcome of the duplicate guard for an allowed entry."""

    verdict: AllocationVerdict
    existing: tuple[LPOEntryInfo, ...] = ()


def _leg_for_station(station: StationDef) -> JourneyLeg:
    if station.direction is StationDirection.RETURNING:
        return JourneyLeg.RETURNING
    return JourneyLeg.GOING


def _field_for_leg(station: StationDef, leg: JourneyLeg) -> CheckpointField | None:
    if leg is JourneyLeg.RETURNING:
        return station.returning_field or station.going_field
    return station.going_field or station.returning_field


class LPOService:
    """
    LPO entry lifecycle.

    Contract:
        Receives a Session and a configuration snapshot.  Every method
        flushes; none commits.
    """

    def __init__(
        self,
        session: Session,
        snapshot: FuelConfigSnapshot,
        clock: Clock | None = None,
    ):
        self._session = session
        self._snapshot = snapshot
        self._clock = clock or SystemClock()
        self._ledger = LedgerService(session, self._clock)
        self._entries = LPOSelector(session)
        self._journeys = JourneySelector(session)

    # ------------------------------------------------------------------
    # Duplicate guard
    # ------------------------------------------------------------------

    def check_duplicate(self, truck_no: str, station: str, liters: Decimal) -> DuplicateCheck:
        """
        Classify a proposed entry against the truck's active entries at the station.

        Raises:
            DuplicateAllocationError: an active entry has the same liters.
        """
        existing = tuple(self._entries.active_entries(truck_no, station))
        for entry in existing:
            if entry.liters == liters:
                logger.warning(
                    "lpo_duplicate_rejected",
                    extra={
                        "truck_no": normalize_truck_no(truck_no),
                        "station": normalize_key(station),
                        "liters": liters,
                        "existing_lpo_no": entry.lpo_no,
                    },
                )
                raise DuplicateAllocationError(
                    normalize_truck_no(truck_no),
                    normalize_key(station),
                    liters,
                    entry.lpo_no,
                )
        if existing:
            return DuplicateCheck(AllocationVerdict.TOP_UP, existing)
        return DuplicateCheck(AllocationVerdict.NEW)

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def _load_for_update(self, entry_id: UUID) -> LPOEntry:
        entry = self._session.execute(
            select(LPOEntry)
            .where(LPOEntry.id == entry_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if entry is None:
            raise LPOEntryNotFoundError(str(entry_id))
        return entry

    def _target_record(
        self,
        truck_no: str,
        do_number: str,
        leg: JourneyLeg,
    ) -> FuelRecordInfo | None:
        direction = Direction.IMPORT if leg is JourneyLeg.GOING else Direction.EXPORT
        record = self._journeys.find_record_for_do(do_number, direction, truck_no)
        if record is not None:
            return record
        # Unlinked DO: only the open journey may take the debit.
        record = self._journeys.find_open_record(truck_no)
        if record is not None:
            logger.warning(
                "lpo_debit_fallback_to_open_record",
                extra={"do_number": do_number, "fuel_record_id": str(record.id), "going_do": record.going_do},
            )
        return record

    def _resolve_leg(self, station: StationDef, do_number: str, leg: JourneyLeg | None) -> JourneyLeg:
        if leg is not None:
            return leg
        order = self._journeys.find_delivery_order(do_number)
        if order is not None:
            return order.direction.leg
        return _leg_for_station(station)

    def _auto_cancel_at(self, truck_no: str, cancellation_point: str, actor: str | None) -> list[LPOEntryInfo]:
        station = self._snapshot.cancellation_station(cancellation_point)
        if station is None:
            logger.warning(
                "lpo_unknown_cancellation_point",
                extra={"cancellation_point": cancellation_point},
            )
            return []
        cancelled = []
        for entry in self._entries.active_entries(truck_no, station):
            cancelled.append(
                self.cancel_entry(
                    entry.id,
                    reason=f"Replaced by cash purchase ({normalize_key(cancellation_point)})",
                    actor=actor,
                )
            )
            logger.info(
                "lpo_auto_cancelled",
                extra={
                    "lpo_no": entry.lpo_no,
                    "station": station,
                    "cancellation_point": normalize_key(cancellation_point),
                },
            )
        return cancelled

    def create_entry(
        self,
        *,
        station: str,
        truck_no: str,
        liters: Decimal,
        do_number: str,
        destination: str = "",
        rate: Decimal | None = None,
        entry_date: date | None = None,
        lpo_no: str | None = None,
        payment_mode: PaymentMode = PaymentMode.LPO,
        cancellation_point: str | None = None,
        leg: JourneyLeg | None = None,
        forwarded_from_id: UUID | None = None,
        actor: str | None = None,
    ) -> LPOEntryInfo:
        """
        Write one LPO entry and debit the truck's ledger.

        The debited field comes from the station's mapping for the DO's
        leg.  The record is the one linked to the DO, or the truck's
        open record when the DO has none.  Otherwise the entry is stored
        without a debit.

        Raises:
            ValueError: non-positive liters.
            DuplicateAllocationError: see ``check_duplicate``.
            UnknownStationError: the station has no checkpoint mapping.
        """
        if liters <= _ZERO:
            raise ValueError(f"LPO liters must be positive, got {liters}")
        truck = normalize_truck_no(truck_no)
        driver_account = payment_mode is PaymentMode.DRIVER_ACCOUNT
        station_def = self._snapshot.find_station(station)
        if station_def is None and not driver_account:
            raise UnknownStationError(normalize_key(station))
        station_key = station_def.station if station_def is not None else normalize_key(station)

        with LogContext.bind(truck_no=truck, do_number=do_number, actor_id=actor):
            self.check_duplicate(truck, station_key, liters)

            if payment_mode is PaymentMode.CASH and cancellation_point:
                self._auto_cancel_at(truck, cancellation_point, actor)

            if rate is None:
                if station_def is not None and station_def.rate is not None:
                    rate = station_def.rate
                else:
                    rate = self._snapshot.default_rate

            entry = LPOEntry(
                lpo_no=lpo_no or self._entries.next_lpo_no(),
                entry_date=entry_date or self._clock.today(),
                station=station_key,
                truck_no=truck,
                liters=liters,
                rate=rate,
                amount=liters * rate,
                do_number=do_number,
                destination=destination,
                payment_mode=payment_mode.value,
                cancellation_point=normalize_key(cancellation_point) or None,
                is_driver_account=driver_account,
                forwarded_from_id=forwarded_from_id,
                created_by=actor,
            )
            self._session.add(entry)
            self._session.flush()

            if not driver_account:
                resolved_leg = self._resolve_leg(station_def, do_number, leg)
                field = _field_for_leg(station_def, resolved_leg)
                record = self._target_record(truck, do_number, resolved_leg)
                if record is None or field is None:
                    logger.warning(
                        "lpo_without_fuel_record",
                        extra={"lpo_no": entry.lpo_no, "station": entry.station},
                    )
                else:
                    self._ledger.apply_checkpoint_debit(record.id, field, liters, actor=actor)
                    entry.debited_field = field.value
                    entry.fuel_record_id = record.id
                    self._session.flush()

            logger.info(
                "lpo_entry_created",
                extra={
                    "lpo_no": entry.lpo_no,
                    "station": entry.station,
                    "liters": liters,
                    "rate": rate,
                    "payment_mode": payment_mode.value,
                    "debited_field": entry.debited_field,
                },
            )
            return LPOEntryInfo.from_model(entry)

    def cancel_entry(
        self,
        entry_id: UUID,
        reason: str,
        actor: str | None = None,
    ) -> LPOEntryInfo:
        """Soft-cancel an entry and give its debit back to the ledger."""
        entry = self._load_for_update(entry_id)
        if entry.is_cancelled:
            return LPOEntryInfo.from_model(entry)

        if entry.fuel_record_id is not None and entry.debited_field:
            record = self._journeys.get_fuel_record(entry.fuel_record_id)
            if record is not None and not record.is_cancelled:
                self._ledger.revert_checkpoint_debit(
                    entry.fuel_record_id, entry.debited_field, entry.liters, actor=actor
                )
            else:
                logger.info(
                    "lpo_debit_not_reverted",
                    extra={"lpo_no": entry.lpo_no, "fuel_record_id": str(entry.fuel_record_id)},
                )

        entry.is_cancelled = True
        entry.cancellation_reason = reason
        entry.cancelled_at = self._clock.now()
        if actor is not None:
            entry.updated_by = actor
        self._session.flush()

        logger.info(
            "lpo_entry_cancelled",
            extra={
                "lpo_no": entry.lpo_no,
                "truck_no": entry.truck_no,
                "station": entry.station,
                "liters": entry.liters,
                "reason": reason,
            },
        )
        return LPOEntryInfo.from_model(entry)

    def update_entries_for_do(
        self,
        do_number: str,
        *,
        truck_no: str | None = None,
        destination: str | None = None,
        actor: str | None = None,
    ) -> list[LPOEntryInfo]:
        """Carry a delivery order edit onto its active entries."""
        updated = []
        for info in self._entries.entries_for_do(do_number):
            entry = self._load_for_update(info.id)
            if truck_no is not None:
                entry.truck_no = normalize_truck_no(truck_no)
            if destination is not None and not entry.is_driver_account:
                entry.destination = destination
            if actor is not None:
                entry.updated_by = actor
            updated.append(entry)
        self._session.flush()
        if updated:
            logger.info(
                "lpo_entries_updated",
                extra={"do_number": do_number, "count": len(updated)},
            )
        return [LPOEntryInfo.from_model(e) for e in updated]

    # ------------------------------------------------------------------
    # Forwarding
    # ------------------------------------------------------------------

    def forward_lpo(
        self,
        lpo_no: str,
        target_station: str,
        *,
        liters: Decimal | None = None,
        rate: Decimal | None = None,
        actor: str | None = None,
    ) -> list[LPOEntryInfo]:
        """
        Copy an LPO's active entries to the next station on the route.

        Liters and rate default to the configured forwarding route.  The
        copies share one new LPO number and point back at their source
        entry.
        """
        target = normalize_key(target_station)
        sources = self._entries.entries_for_lpo(lpo_no)
        if not sources:
            raise InvalidForwardingError(f"LPO {lpo_no}", target, "no active entries to forward")
        source = sources[0].station
        if normalize_key(source) == target:
            raise InvalidForwardingError(source, target, "source and target are the same station")

        route = self._snapshot.forwarding_route(source, target)
        if liters is None:
            if route is None:
                raise InvalidForwardingError(source, target, "no forwarding route and no liters given")
            liters = route.default_liters
        if liters <= _ZERO:
            raise InvalidForwardingError(source, target, f"liters must be positive, got {liters}")
        if rate is None and route is not None:
            rate = route.rate

        new_lpo_no = self._entries.next_lpo_no()
        forwarded = [
            self.create_entry(
                station=target,
                truck_no=entry.truck_no,
                liters=liters,
                do_number=entry.do_number,
                destination=entry.destination,
                rate=rate,
                lpo_no=new_lpo_no,
                forwarded_from_id=entry.id,
                actor=actor,
            )
            for entry in sources
        ]
        logger.info(
            "lpo_forwarded",
            extra={
                "lpo_no": lpo_no,
                "forwarded_lpo_no": new_lpo_no,
                "source_station": source,
                "target_station": target,
                "liters": liters,
                "entries": len(forwarded),
            },
        )
        return forwarded
