"""
Module: fuel_kernel.models.lpo_entry
Responsibility: ORM persistence for fuel purchase lines (one truck, one
    station, one amount of liters).
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/values.py only.

Invariants enforced:
    - debited_field / fuel_record_id record exactly what the entry took from
      the ledger so a cancellation can give it back.  Driver's-account
      entries leave both NULL.
    - Rows are never deleted; cancellation sets is_cancelled and a reason.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fuel_kernel.db.base import TrackedBase, UUIDString
from fuel_kernel.domain.values import PaymentMode


class LPOEntry(TrackedBase):
    """One line of a local purchase order."""

    __tablename__ = "lpo_entries"

    __table_args__ = (
        Index("idx_lpo_truck_station", "truck_no", "station"),
        Index("idx_lpo_do_number", "do_number"),
        Index("idx_lpo_lpo_no", "lpo_no"),
    )

    lpo_no: Mapped[str] = mapped_column(String(50), nullable=False)

    entry_date: Mapped[date] = mapped_column(nullable=False)

    station: Mapped[str] = mapped_column(String(100), nullable=False)

    truck_no: Mapped[str] = mapped_column(String(20), nullable=False)

    liters: Mapped[Decimal] = mapped_column(nullable=False)

    rate: Mapped[Decimal] = mapped_column(nullable=False)

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    do_number: Mapped[str] = mapped_column(String(50), nullable=False)

    destination: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    payment_mode: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentMode.LPO.value,
    )

    # Checkpoint name whose active entries a cash purchase replaces
    cancellation_point: Mapped[str | None] = mapped_column(String(50), nullable=True)

    is_driver_account: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # What this entry debited
    debited_field: Mapped[str | None] = mapped_column(String(30), nullable=True)
    fuel_record_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("fuel_records.id"),
        nullable=True,
    )

    forwarded_from_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("lpo_entries.id"),
        nullable=True,
    )

    is_cancelled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<LPOEntry {self.lpo_no}: {self.truck_no} {self.liters}L @ {self.station}>"
