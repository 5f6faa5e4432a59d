"""
Module: fuel_kernel.models.delivery_order
Responsibility: ORM persistence for delivery orders, one row per journey leg.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/values.py only.

Invariants enforced:
    - (order_type, order_number) is unique (uq_delivery_order_number).
    - truck_no is stored normalised ("T991EFN"); services normalise on write.
    - Rows are never deleted; cancellation sets is_cancelled and a reason.

Failure modes:
    - IntegrityError on duplicate order number within a type.
"""

from datetime import date, datetime

from sqlalchemy import Boolean, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fuel_kernel.db.base import TrackedBase
from fuel_kernel.domain.values import Direction, OrderType


class DeliveryOrder(TrackedBase):
    """
    One leg (IMPORT = going, EXPORT = returning) of a truck's round trip.

    Non-goals:
        - Does NOT enforce the one-active-leg-per-direction rule at the ORM
          level; DeliveryOrderService checks it on create.
    """

    __tablename__ = "delivery_orders"

    __table_args__ = (
        UniqueConstraint("order_type", "order_number", name="uq_delivery_order_number"),
        Index("idx_do_truck_date", "truck_no", "order_date"),
        Index("idx_do_active", "is_cancelled"),
    )

    order_number: Mapped[str] = mapped_column(String(50), nullable=False)

    order_type: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=OrderType.DO.value,
    )

    truck_no: Mapped[str] = mapped_column(String(20), nullable=False)

    direction: Mapped[str] = mapped_column(String(10), nullable=False)

    loading_point: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    destination: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    order_date: Mapped[date] = mapped_column(nullable=False)

    is_cancelled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    cancelled_at: Mapped[datetime | None] = mapped_column(nullable=True)

    cancelled_by: Mapped[str | None] = mapped_column(String(100), nullable=True)

    @property
    def is_going(self) -> bool:
        return self.direction == Direction.IMPORT.value

    @property
    def affects_fuel_records(self) -> bool:
        """SDO orders are tracked separately and never touch fuel records."""
        return self.order_type != OrderType.SDO.value

    def __repr__(self) -> str:
        return f"<DeliveryOrder {self.order_type} {self.order_number}: {self.truck_no} {self.direction}>"
