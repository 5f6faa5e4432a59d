"""
fuel_services.consistency -- Cross-entity consistency for delivery order edits.

Responsibility:
    Applies a delivery order edit and carries it to the fuel record and
    LPO entries that depend on the order.  Each edit kind maps to an
    ordered tuple of effects in ``EFFECTS``; each effect is a method that
    can be run and tested on its own.

Architecture position:
    Services -- orchestration over kernel services and the other
    fuel_services.

Effect table:

    TRUCK_NUMBER_CORRECTED  persist_order_fields, relink_fuel_record,
                            update_lpo_trucks
    DESTINATION_CHANGED     persist_order_fields, update_record_locations,
                            update_lpo_destinations, recompute_additional_fuel
    LOADING_POINT_CHANGED   persist_order_fields, update_record_locations
    CANCELLED               cancel_order, cancel_lpo_entries,
                            close_fuel_record

Invariants enforced:
    - Effects run in table order inside the caller's transaction; a
      failing effect propagates and the caller rolls the whole cascade
      back.
    - SDO orders are persisted but never cascade to fuel records or LPOs.
    - LPO debits are reverted before the fuel record is cancelled or its
      return leg detached, so every revert lands on a live record.

Failure modes:
    - DeliveryOrderNotFoundError: unknown order id.
    - OptimisticLockError / FuelRecordCancelledError from the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

from sqlalchemy.orm import Session

from fuel_config.schema import FuelConfigSnapshot
from fuel_kernel.domain.clock import Clock
from fuel_kernel.domain.dtos import DeliveryOrderInfo, FuelRecordInfo
from fuel_kernel.domain.values import Direction, JourneyLeg, OrderType
from fuel_kernel.logging_config import LogContext, get_logger
from fuel_kernel.selectors.journey_selector import JourneySelector
from fuel_kernel.selectors.lpo_selector import LPOSelector
from fuel_kernel.services.delivery_order_service import DeliveryOrderService
from fuel_kernel.services.ledger_service import LedgerService
from fuel_services.journey_service import JourneyService
from fuel_services.lpo_service import LPOService

logger = get_logger("services.consistency")

FLAG_SDO_SKIPPED = "sdo_skipped"
FLAG_NO_FUEL_RECORD = "no_fuel_record"
FLAG_RELINK_REQUIRED = "relink_required"
FLAG_NO_RETURN_LEG = "no_return_leg"


class EditKind(str, Enum):
    TRUCK_NUMBER_CORRECTED = "truck_number_corrected"
    DESTINATION_CHANGED = "destination_changed"
    LOADING_POINT_CHANGED = "loading_point_changed"
    CANCELLED = "cancelled"


EFFECTS: dict[EditKind, tuple[str, ...]] = {
    EditKind.TRUCK_NUMBER_CORRECTED: (
        "persist_order_fields",
        "relink_fuel_record",
        "update_lpo_trucks",
    ),
    EditKind.DESTINATION_CHANGED: (
        "persist_order_fields",
        "update_record_locations",
        "update_lpo_destinations",
        "recompute_additional_fuel",
    ),
    EditKind.LOADING_POINT_CHANGED: (
        "persist_order_fields",
        "update_record_locations",
    ),
    EditKind.CANCELLED: (
        "cancel_order",
        "cancel_lpo_entries",
        "close_fuel_record",
    ),
}


@dataclass
class CascadeOutcome:
    """What a cascade did.  ``applied`` lists effects in run order."""

    kind: EditKind
    order_id: UUID
    before: DeliveryOrderInfo | None = None
    after: DeliveryOrderInfo | None = None
    applied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    flags: list[str] = field(default_factory=list)
    fuel_record: FuelRecordInfo | None = None

    def flag(self, name: str) -> None:
        if name not in self.flags:
            self.flags.append(name)


@dataclass
class EditRequest:
    """The edit being cascaded and the outcome collected so far."""

    kind: EditKind
    order_id: UUID
    value: str | None = None
    actor: str | None = None
    outcome: CascadeOutcome | None = None

    def __post_init__(self) -> None:
        if self.outcome is None:
            self.outcome = CascadeOutcome(kind=self.kind, order_id=self.order_id)


class ConsistencyManager:
    """
    Runs the effect table for delivery order edits.

    Contract:
        Receives a Session and the configuration snapshot.  Flush only:
        the caller commits the cascade as one unit of work.
    """

    def __init__(
        self,
        session: Session,
        snapshot: FuelConfigSnapshot,
        clock: Clock | None = None,
    ):
        self._orders = DeliveryOrderService(session, clock)
        self._ledger = LedgerService(session, clock)
        self._journey = JourneyService(session, snapshot, clock)
        self._lpos = LPOService(session, snapshot, clock)
        self._journeys = JourneySelector(session)
        self._entries = LPOSelector(session)

    # ------------------------------------------------------------------
    # Public edits
    # ------------------------------------------------------------------

    def correct_truck_number(self, order_id: UUID, truck_no: str, actor: str | None = None) -> CascadeOutcome:
        return self.run(EditRequest(EditKind.TRUCK_NUMBER_CORRECTED, order_id, truck_no, actor))

    def change_destination(self, order_id: UUID, destination: str, actor: str | None = None) -> CascadeOutcome:
        return self.run(EditRequest(EditKind.DESTINATION_CHANGED, order_id, destination, actor))

    def change_loading_point(self, order_id: UUID, loading_point: str, actor: str | None = None) -> CascadeOutcome:
        return self.run(EditRequest(EditKind.LOADING_POINT_CHANGED, order_id, loading_point, actor))

    def cancel_delivery_order(self, order_id: UUID, reason: str, actor: str | None = None) -> CascadeOutcome:
        return self.run(EditRequest(EditKind.CANCELLED, order_id, reason, actor))

    def run(self, request: EditRequest) -> CascadeOutcome:
        """Run every effect of ``request.kind`` in table order."""
        outcome = request.outcome
        effects = EFFECTS[request.kind]
        with LogContext.bind(actor_id=request.actor):
            for index, name in enumerate(effects):
                getattr(self, name)(request)
                outcome.applied.append(name)
                if index == 0 and outcome.after is not None and outcome.after.order_type is OrderType.SDO:
                    outcome.flag(FLAG_SDO_SKIPPED)
                    outcome.skipped.extend(effects[1:])
                    break

        logger.info(
            "delivery_order_cascade_applied",
            extra={
                "edit_kind": request.kind.value,
                "do_number": outcome.after.order_number if outcome.after else None,
                "applied": outcome.applied,
                "skipped": outcome.skipped,
                "flags": outcome.flags,
            },
        )
        return outcome

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _linked_record(self, order: DeliveryOrderInfo) -> FuelRecordInfo | None:
        return self._journeys.find_record_for_do(order.order_number, order.direction)

    # ------------------------------------------------------------------
    # Effects
    # ------------------------------------------------------------------

    def persist_order_fields(self, request: EditRequest) -> None:
        changes = {
            EditKind.TRUCK_NUMBER_CORRECTED: "truck_no",
            EditKind.DESTINATION_CHANGED: "destination",
            EditKind.LOADING_POINT_CHANGED: "loading_point",
        }
        before, after = self._orders.update_fields(
            request.order_id,
            actor=request.actor,
            **{changes[request.kind]: request.value},
        )
        request.outcome.before = before
        request.outcome.after = after

    def cancel_order(self, request: EditRequest) -> None:
        before = self._orders.get(request.order_id)
        after = self._orders.cancel_order(request.order_id, request.value or "", request.actor)
        request.outcome.before = before
        request.outcome.after = after

    def relink_fuel_record(self, request: EditRequest) -> None:
        """
        Move the going leg's record to the corrected truck.

        A returning order shares the going order's record; correcting only
        the returning order cannot move it, so the outcome is flagged
        ``relink_required`` when the trucks disagree.
        """
        before, after = request.outcome.before, request.outcome.after
        record = self._linked_record(before)
        if record is None:
            request.outcome.flag(FLAG_NO_FUEL_RECORD)
            return
        if after.is_going:
            request.outcome.fuel_record = self._ledger.relink_truck(record.id, after.truck_no, request.actor)
        elif record.truck_no != after.truck_no:
            request.outcome.flag(FLAG_RELINK_REQUIRED)
            request.outcome.fuel_record = record

    def update_lpo_trucks(self, request: EditRequest) -> None:
        after = request.outcome.after
        self._lpos.update_entries_for_do(after.order_number, truck_no=after.truck_no, actor=request.actor)

    def update_record_locations(self, request: EditRequest) -> None:
        """
        Going order: destination is the record's ``to``, loading point its ``from``.
        Returning order: destination is ``from``, loading point ``to``.
        """
        after = request.outcome.after
        record = self._linked_record(after)
        if record is None:
            request.outcome.flag(FLAG_NO_FUEL_RECORD)
            return

        leg = JourneyLeg.GOING if after.is_going else JourneyLeg.RETURNING
        if request.kind is EditKind.DESTINATION_CHANGED:
            column = "to_location" if after.is_going else "from_location"
            locations = {column: after.destination}
        else:
            column = "from_location" if after.is_going else "to_location"
            locations = {column: after.loading_point}
        request.outcome.fuel_record = self._ledger.update_locations(
            record.id, leg, actor=request.actor, **locations
        )

    def update_lpo_destinations(self, request: EditRequest) -> None:
        after = request.outcome.after
        self._lpos.update_entries_for_do(after.order_number, destination=after.destination, actor=request.actor)

    def recompute_additional_fuel(self, request: EditRequest) -> None:
        """Returning order only: the new return loading point changes the top-up."""
        after = request.outcome.after
        if after.is_going:
            return
        record = self._linked_record(after)
        if record is None:
            request.outcome.flag(FLAG_NO_RETURN_LEG)
            return
        update = self._journey.reprice_return_leg(record.id, after.destination, request.actor)
        request.outcome.fuel_record = update.fuel_record

    def cancel_lpo_entries(self, request: EditRequest) -> None:
        order = request.outcome.after
        for entry in self._entries.entries_for_do(order.order_number):
            self._lpos.cancel_entry(
                entry.id,
                reason=f"Delivery order {order.order_number} cancelled",
                actor=request.actor,
            )

    def close_fuel_record(self, request: EditRequest) -> None:
        """IMPORT: cancel the record.  EXPORT: detach the return leg."""
        order = request.outcome.after
        record = self._linked_record(order)
        if record is None:
            request.outcome.flag(FLAG_NO_FUEL_RECORD)
            return
        if order.direction is Direction.IMPORT:
            request.outcome.fuel_record = self._ledger.cancel_record(
                record.id,
                reason=f"Going delivery order {order.order_number} cancelled",
                actor=request.actor,
            )
        else:
            request.outcome.fuel_record = self._ledger.detach_return_leg(record.id, request.actor)
