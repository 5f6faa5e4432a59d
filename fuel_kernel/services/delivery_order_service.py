"""
DeliveryOrderService -- persistence of delivery orders.

Responsibility:
    Creates delivery orders, applies field edits and soft-cancels them.
    Cascading the edit to fuel records and LPO entries is NOT done here:
    ``fuel_services.consistency.ConsistencyManager`` drives that, using the
    before/after pair this service returns.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - Truck numbers are stored normalised.
    - A truck has at most one active going order per open journey: an
      IMPORT order is refused while the truck has an open fuel record.
    - A truck has at most one active returning order per journey: an
      EXPORT order is refused when the newest active record is already
      closed and no open record exists.
    - SDO orders bypass the journey rule; they never touch fuel records.
    - Orders are never deleted.

Failure modes:
    - DeliveryOrderNotFoundError: unknown order id.
    - ActiveJourneyConflictError: the leg is already taken.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import select

from fuel_kernel.domain.dtos import DeliveryOrderInfo
from fuel_kernel.domain.truck_number import normalize_truck_no
from fuel_kernel.domain.values import Direction, OrderType
from fuel_kernel.exceptions import ActiveJourneyConflictError, DeliveryOrderNotFoundError
from fuel_kernel.logging_config import get_logger
from fuel_kernel.models.delivery_order import DeliveryOrder
from fuel_kernel.models.fuel_record import FuelRecord
from fuel_kernel.services.base import BaseService

logger = get_logger("services.delivery_order")


class DeliveryOrderService(BaseService[DeliveryOrder]):
    """Delivery order writes."""

    def _load_for_update(self, order_id: UUID) -> DeliveryOrder:
        order = self.session.execute(
            select(DeliveryOrder)
            .where(DeliveryOrder.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if order is None:
            raise DeliveryOrderNotFoundError(str(order_id))
        return order

    def _active_records(self, truck_no: str) -> list[FuelRecord]:
        return list(
            self.session.scalars(
                select(FuelRecord)
                .where(
                    FuelRecord.truck_no == truck_no,
                    FuelRecord.is_cancelled.is_(False),
                )
                .order_by(FuelRecord.record_date.desc(), FuelRecord.created_at.desc())
            )
        )

    def _check_journey_slot(self, truck_no: str, direction: Direction) -> None:
        records = self._active_records(truck_no)
        open_records = [r for r in records if not r.return_do]
        if direction is Direction.IMPORT:
            if open_records:
                raise ActiveJourneyConflictError(
                    truck_no, direction.value, open_records[0].going_do
                )
        elif records and not open_records:
            raise ActiveJourneyConflictError(
                truck_no, direction.value, records[0].return_do
            )

    def get(self, order_id: UUID) -> DeliveryOrderInfo:
        order = self.session.get(DeliveryOrder, order_id)
        if order is None:
            raise DeliveryOrderNotFoundError(str(order_id))
        return DeliveryOrderInfo.from_model(order)

    def create_order(
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
    ) -> DeliveryOrderInfo:
        """
        Persist a new delivery order.

        Raises:
            ActiveJourneyConflictError: DO-type order for a leg the truck's
                current journey already has.
        """
        normalized = normalize_truck_no(truck_no)
        if order_type is OrderType.DO:
            self._check_journey_slot(normalized, direction)

        order = DeliveryOrder(
            order_number=order_number,
            order_type=order_type.value,
            truck_no=normalized,
            direction=direction.value,
            loading_point=loading_point,
            destination=destination,
            order_date=order_date,
            created_by=actor,
        )
        self.session.add(order)
        self.session.flush()

        logger.info(
            "delivery_order_created",
            extra={
                "do_number": order_number,
                "order_type": order_type.value,
                "truck_no": normalized,
                "direction": direction.value,
                "destination": destination,
            },
        )
        return DeliveryOrderInfo.from_model(order)

    def update_fields(
        self,
        order_id: UUID,
        *,
        truck_no: str | None = None,
        loading_point: str | None = None,
        destination: str | None = None,
        actor: str | None = None,
    ) -> tuple[DeliveryOrderInfo, DeliveryOrderInfo]:
        """
        Apply field edits and return the (before, after) views.

        Raises:
            ActiveJourneyConflictError: a DO-type order is moved to a truck
                whose current journey already has that leg.
        """
        order = self._load_for_update(order_id)
        before = DeliveryOrderInfo.from_model(order)

        if truck_no is not None:
            normalized = normalize_truck_no(truck_no)
            if (
                normalized != order.truck_no
                and order.order_type == OrderType.DO.value
                and not order.is_cancelled
            ):
                self._check_journey_slot(normalized, Direction(order.direction))
            order.truck_no = normalized
        if loading_point is not None:
            order.loading_point = loading_point
        if destination is not None:
            order.destination = destination
        if actor is not None:
            order.updated_by = actor
        self.session.flush()

        after = DeliveryOrderInfo.from_model(order)
        changed = [
            name
            for name in ("truck_no", "loading_point", "destination")
            if getattr(before, name) != getattr(after, name)
        ]
        logger.info(
            "delivery_order_updated",
            extra={"do_number": order.order_number, "changed_fields": changed},
        )
        return before, after

    def cancel_order(
        self,
        order_id: UUID,
        reason: str,
        actor: str | None = None,
    ) -> DeliveryOrderInfo:
        """Soft-cancel an order.  Cancelling twice is a no-op."""
        order = self._load_for_update(order_id)
        if order.is_cancelled:
            return DeliveryOrderInfo.from_model(order)

        order.is_cancelled = True
        order.cancellation_reason = reason
        order.cancelled_at = self.clock.now()
        order.cancelled_by = actor
        if actor is not None:
            order.updated_by = actor
        self.session.flush()

        logger.info(
            "delivery_order_cancelled",
            extra={
                "do_number": order.order_number,
                "truck_no": order.truck_no,
                "reason": reason,
            },
        )
        return DeliveryOrderInfo.from_model(order)
