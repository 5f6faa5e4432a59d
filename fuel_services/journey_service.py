"""
fuel_services.journey_service -- Delivery orders to fuel records.

Responsibility:
    Records a delivery order and applies it to the truck's ledger: a going
    (IMPORT) order opens a fuel record with the resolved route allocation
    and extra-fuel allowance; a returning (EXPORT) order closes the open
    record and adds the additional fuel the return leg needs.

Architecture position:
    Services -- orchestration over engines + kernel.
    Resolves configuration values with ``fuel_engines`` and writes through
    ``DeliveryOrderService`` and ``LedgerService``.

Invariants enforced:
    - An unresolved route or truck batch never becomes a silent default in
      the ledger: the record is opened with the value unset and locked
      until an administrator supplies it.
    - SDO orders are stored but never touch fuel records.
    - Re-attaching a return leg replaces, never stacks, the additional
      fuel.

Failure modes:
    - ActiveJourneyConflictError from ``DeliveryOrderService.create_order``.
    - OptimisticLockError from the ledger on concurrent updates.

Audit relevance:
    ``journey_leg_opened`` / ``journey_leg_closed`` carry the resolution
    details (match type, suggestions) that explain a locked record.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from fuel_config.schema import FuelConfigSnapshot
from fuel_engines.config_resolver import (
    ExtraFuelResolution,
    RouteResolution,
    resolve_route_liters,
    resolve_truck_extra_fuel,
)
from fuel_engines.fuel_ledger import AdditionalFuelBreakdown, additional_fuel_for_record
from fuel_engines.journey import determine_journey_start
from fuel_kernel.domain.clock import Clock
from fuel_kernel.domain.dtos import DeliveryOrderInfo, FuelRecordInfo
from fuel_kernel.domain.values import Direction, OrderType
from fuel_kernel.exceptions import FuelRecordNotFoundError
from fuel_kernel.logging_config import LogContext, get_logger
from fuel_kernel.selectors.journey_selector import JourneySelector
from fuel_kernel.services.delivery_order_service import DeliveryOrderService
from fuel_kernel.services.ledger_service import LedgerService

logger = get_logger("services.journey")


@dataclass(frozen=True)
class JourneyUpdate:
    """What recording a delivery order did to the ledger."""

    order: DeliveryOrderInfo | None
    fuel_record: FuelRecordInfo | None = None
    route: RouteResolution | None = None
    extra_fuel: ExtraFuelResolution | None = None
    additional_fuel: AdditionalFuelBreakdown | None = None

    @property
    def needs_configuration(self) -> bool:
        return self.fuel_record is not None and self.fuel_record.pending_config_reason is not None


class JourneyService:
    """
    Opens and closes the fuel ledger of a truck's round trip.

    Contract:
        Receives a Session and the configuration snapshot to resolve
        against.  Flush only.
    """

    def __init__(
        self,
        session: Session,
        snapshot: FuelConfigSnapshot,
        clock: Clock | None = None,
    ):
        self._session = session
        self._snapshot = snapshot
        self._orders = DeliveryOrderService(session, clock)
        self._ledger = LedgerService(session, clock)
        self._journeys = JourneySelector(session)

    def record_delivery_order(
        self,
        *,
        order_number: str,
        truck_no: str,
        direction: Direction,
        loading_point: str,
        destination: str,
        order_date: date,
        order_type: OrderType = OrderType.DO,
        actor: str | None = None,
    ) -> JourneyUpdate:
        """Create the order and apply it to the truck's ledger."""
        order = self._orders.create_order(
            order_number=order_number,
            truck_no=truck_no,
            direction=direction,
            loading_point=loading_point,
            destination=destination,
            order_date=order_date,
            order_type=order_type,
            actor=actor,
        )
        if order.order_type is OrderType.SDO:
            return JourneyUpdate(order=order)
        with LogContext.bind(truck_no=order.truck_no, do_number=order.order_number, actor_id=actor):
            if order.is_going:
                return self.open_going_leg(order, actor=actor)
            return self.close_with_return_leg(order, actor=actor)

    def open_going_leg(
        self,
        order: DeliveryOrderInfo,
        actor: str | None = None,
    ) -> JourneyUpdate:
        """Open a fuel record for an IMPORT order."""
        route = resolve_route_liters(self._snapshot, order.destination)
        extra = resolve_truck_extra_fuel(self._snapshot, order.truck_no, order.destination)

        record = self._ledger.open_record(
            truck_no=order.truck_no,
            going_do=order.order_number,
            record_date=order.date,
            from_location=order.loading_point,
            to_location=order.destination,
            start=determine_journey_start(order.loading_point),
            total_liters=route.liters if route.matched else None,
            extra=extra.liters if extra.matched else None,
            actor=actor,
        )
        logger.info(
            "journey_leg_opened",
            extra={
                "fuel_record_id": str(record.id),
                "route_match": route.match_type.value,
                "route_suggestions": list(route.suggestions),
                "batch": extra.batch,
                "suffix_suggestions": list(extra.suggestions),
                "is_locked": record.is_locked,
            },
        )
        return JourneyUpdate(order=order, fuel_record=record, route=route, extra_fuel=extra)

    def close_with_return_leg(
        self,
        order: DeliveryOrderInfo,
        actor: str | None = None,
    ) -> JourneyUpdate:
        """
        Attach an EXPORT order to the truck's open record.

        A returning order with no open going record is stored without a
        ledger effect; LPOs written against it debit only the truck's
        open record, if it has one.
        """
        open_record = self._journeys.find_open_record(order.truck_no)
        if open_record is None:
            logger.warning(
                "return_order_without_open_record",
                extra={"do_number": order.order_number, "truck_no": order.truck_no},
            )
            return JourneyUpdate(order=order)

        breakdown = additional_fuel_for_record(self._snapshot, open_record, order.destination)
        record = self._ledger.attach_return_leg(
            open_record.id,
            return_do=order.order_number,
            return_loading_point=order.destination,
            additional_fuel=breakdown.additional,
            actor=actor,
        )
        logger.info(
            "journey_leg_closed",
            extra={
                "fuel_record_id": str(record.id),
                "return_do": order.order_number,
                "required_total": breakdown.required_total,
                "delta": breakdown.delta,
                "loading_point_surcharge": breakdown.loading_point_surcharge,
                "destination_surcharge": breakdown.destination_surcharge,
                "additional_fuel": breakdown.additional,
            },
        )
        return JourneyUpdate(order=order, fuel_record=record, additional_fuel=breakdown)

    def reprice_return_leg(
        self,
        record_id: UUID,
        return_loading_point: str,
        actor: str | None = None,
    ) -> JourneyUpdate:
        """Recompute the additional fuel after the return loading point changed."""
        record = self._journeys.get_fuel_record(record_id)
        if record is None:
            raise FuelRecordNotFoundError(str(record_id))
        if not record.return_do:
            raise ValueError(f"Fuel record {record_id} has no return leg to reprice")

        breakdown = additional_fuel_for_record(self._snapshot, record, return_loading_point)
        updated = self._ledger.attach_return_leg(
            record.id,
            return_do=record.return_do,
            return_loading_point=return_loading_point,
            additional_fuel=breakdown.additional,
            actor=actor,
        )
        order = self._journeys.find_delivery_order(record.return_do)
        logger.info(
            "return_leg_repriced",
            extra={
                "fuel_record_id": str(record.id),
                "previous_additional_fuel": record.additional_fuel,
                "additional_fuel": breakdown.additional,
            },
        )
        return JourneyUpdate(order=order, fuel_record=updated, additional_fuel=breakdown)

    def supply_configuration(
        self,
        record_id: UUID,
        *,
        total_liters: Decimal | None = None,
        extra: Decimal | None = None,
        actor: str | None = None,
    ) -> JourneyUpdate:
        """
        Record administrator-supplied allocation values for a locked record.

        A closed record's top-up was computed without the going total when
        that total was missing, so the return leg is repriced from its
        stored loading point once the values are in.
        """
        record = self._ledger.supply_configuration(
            record_id, total_liters=total_liters, extra=extra, actor=actor
        )
        if not record.return_do:
            return JourneyUpdate(order=self._journeys.find_delivery_order(record.going_do), fuel_record=record)
        return self.reprice_return_leg(record.id, record.from_location, actor)
