"""
Module: fuel_kernel.selectors.journey_selector
Responsibility: Read-only queries over a truck's delivery orders and fuel
    records.  Implements the JourneyDataSource collaborator contract the
    journey direction resolver is fed from.
Architecture position: Kernel > Selectors.  May import from models/,
    domain/ and selectors/base.py.

Invariants enforced:
    - Truck numbers are compared in normalised form ("T991EFN").
    - Results are newest first (date DESC, then created_at DESC) so the
      first element of each list is the truck's current journey.
"""

from datetime import date
from typing import Protocol
from uuid import UUID

from sqlalchemy import or_, select

from fuel_kernel.domain.dtos import DeliveryOrderInfo, FuelRecordInfo
from fuel_kernel.domain.truck_number import normalize_truck_no
from fuel_kernel.domain.values import Direction, OrderType
from fuel_kernel.models.delivery_order import DeliveryOrder
from fuel_kernel.models.fuel_record import FuelRecord
from fuel_kernel.selectors.base import BaseSelector


class JourneyDataSource(Protocol):
    """What the journey resolver needs to know about a truck."""

    def query_delivery_orders(
        self,
        truck_no: str,
        date_from: date | None = None,
        active_only: bool = True,
    ) -> list[DeliveryOrderInfo]: ...

    def query_fuel_records(
        self,
        truck_no: str,
        date_from: date | None = None,
        active_only: bool = True,
    ) -> list[FuelRecordInfo]: ...


class JourneySelector(BaseSelector[DeliveryOrder]):
    """
    Delivery-order and fuel-record reads for one truck at a time.

    Guarantees:
        - ``query_delivery_orders`` with ``active_only`` excludes cancelled
          orders; SDO orders are included and left to the caller to skip.
        - ``query_fuel_records`` with ``active_only`` excludes cancelled
          records.
    """

    def query_delivery_orders(
        self,
        truck_no: str,
        date_from: date | None = None,
        active_only: bool = True,
    ) -> list[DeliveryOrderInfo]:
        stmt = select(DeliveryOrder).where(
            DeliveryOrder.truck_no == normalize_truck_no(truck_no)
        )
        if date_from is not None:
            stmt = stmt.where(DeliveryOrder.order_date >= date_from)
        if active_only:
            stmt = stmt.where(DeliveryOrder.is_cancelled.is_(False))
        stmt = stmt.order_by(DeliveryOrder.order_date.desc(), DeliveryOrder.created_at.desc())
        return [DeliveryOrderInfo.from_model(o) for o in self.session.scalars(stmt)]

    def query_fuel_records(
        self,
        truck_no: str,
        date_from: date | None = None,
        active_only: bool = True,
    ) -> list[FuelRecordInfo]:
        stmt = select(FuelRecord).where(
            FuelRecord.truck_no == normalize_truck_no(truck_no)
        )
        if date_from is not None:
            stmt = stmt.where(FuelRecord.record_date >= date_from)
        if active_only:
            stmt = stmt.where(FuelRecord.is_cancelled.is_(False))
        stmt = stmt.order_by(FuelRecord.record_date.desc(), FuelRecord.created_at.desc())
        return [FuelRecordInfo.from_model(r) for r in self.session.scalars(stmt)]

    def get_delivery_order(self, order_id: UUID) -> DeliveryOrderInfo | None:
        order = self.session.get(DeliveryOrder, order_id)
        return DeliveryOrderInfo.from_model(order) if order is not None else None

    def find_delivery_order(
        self,
        order_number: str,
        order_type: OrderType = OrderType.DO,
    ) -> DeliveryOrderInfo | None:
        order = self.session.scalars(
            select(DeliveryOrder).where(
                DeliveryOrder.order_number == order_number,
                DeliveryOrder.order_type == order_type.value,
            )
        ).first()
        return DeliveryOrderInfo.from_model(order) if order is not None else None

    def get_fuel_record(self, record_id: UUID) -> FuelRecordInfo | None:
        record = self.session.get(FuelRecord, record_id)
        return FuelRecordInfo.from_model(record) if record is not None else None

    def find_record_for_do(
        self,
        do_number: str,
        direction: Direction,
        truck_no: str | None = None,
    ) -> FuelRecordInfo | None:
        """Active record linked to a DO: by going_do for IMPORT, by return_do for EXPORT."""
        column = FuelRecord.going_do if direction is Direction.IMPORT else FuelRecord.return_do
        stmt = select(FuelRecord).where(
            column == do_number,
            FuelRecord.is_cancelled.is_(False),
        )
        if truck_no is not None:
            stmt = stmt.where(FuelRecord.truck_no == normalize_truck_no(truck_no))
        stmt = stmt.order_by(FuelRecord.record_date.desc())
        record = self.session.scalars(stmt).first()
        return FuelRecordInfo.from_model(record) if record is not None else None

    def find_open_record(self, truck_no: str) -> FuelRecordInfo | None:
        """Newest active record without a return DO."""
        record = self.session.scalars(
            select(FuelRecord)
            .where(
                FuelRecord.truck_no == normalize_truck_no(truck_no),
                FuelRecord.is_cancelled.is_(False),
                or_(FuelRecord.return_do.is_(None), FuelRecord.return_do == ""),
            )
            .order_by(FuelRecord.record_date.desc(), FuelRecord.created_at.desc())
        ).first()
        return FuelRecordInfo.from_model(record) if record is not None else None

    def active_orders_for_truck(
        self,
        truck_no: str,
        direction: Direction,
    ) -> list[DeliveryOrderInfo]:
        """Active DO-type orders of one direction, newest first."""
        stmt = (
            select(DeliveryOrder)
            .where(
                DeliveryOrder.truck_no == normalize_truck_no(truck_no),
                DeliveryOrder.direction == direction.value,
                DeliveryOrder.order_type == OrderType.DO.value,
                DeliveryOrder.is_cancelled.is_(False),
            )
            .order_by(DeliveryOrder.order_date.desc(), DeliveryOrder.created_at.desc())
        )
        return [DeliveryOrderInfo.from_model(o) for o in self.session.scalars(stmt)]
