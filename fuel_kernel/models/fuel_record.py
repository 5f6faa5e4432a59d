"""
Module: fuel_kernel.models.fuel_record
Responsibility: ORM persistence for a truck's round-trip fuel ledger: route
    allocation, extra-fuel allowance, one signed-liter column per checkpoint
    and the stored balance.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/values.py only.

Invariants enforced:
    - Checkpoint columns are NOT NULL (default 0); debits are negative.
    - version is the SQLAlchemy version_id_col.  Every UPDATE carries
      ``WHERE version = :old`` and a concurrent writer gets StaleDataError,
      which LedgerService translates to OptimisticLockError.
    - The balance sum invariant is NOT enforced here; LedgerService owns it.

Failure modes:
    - StaleDataError on flush when another transaction bumped version.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fuel_kernel.db.base import TrackedBase
from fuel_kernel.domain.values import CheckpointField, FuelRecordState

_ZERO = Decimal("0")


class FuelRecord(TrackedBase):
    """
    Ledger for one truck's round trip.

    Contract:
        Created when the going DO is recorded.  Attaching a return DO sets
        return_do and re-points from/to (the going values are preserved in
        original_going_from / original_going_to).

    Guarantees:
        - Each CheckpointField value is a column of the same name.
        - is_locked with pending_config_reason flags records that need
          administrator action.
    """

    __tablename__ = "fuel_records"

    __table_args__ = (
        Index("idx_fuel_record_truck_date", "truck_no", "record_date"),
        Index("idx_fuel_record_going_do", "going_do"),
        Index("idx_fuel_record_return_do", "return_do"),
    )

    truck_no: Mapped[str] = mapped_column(String(20), nullable=False)

    record_date: Mapped[date] = mapped_column(nullable=False)

    going_do: Mapped[str] = mapped_column(String(50), nullable=False)

    return_do: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Journey locations
    start: Mapped[str] = mapped_column(String(100), nullable=False, default="DAR")
    from_location: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    to_location: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    original_going_from: Mapped[str | None] = mapped_column(String(100), nullable=True)
    original_going_to: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Allocation
    total_liters: Mapped[Decimal | None] = mapped_column(nullable=True)
    extra: Mapped[Decimal | None] = mapped_column(nullable=True)
    additional_fuel: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)
    balance: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)

    # Yard dispenses
    mmsa_yard: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)
    tanga_yard: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)
    dar_yard: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)

    # Going leg
    dar_going: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)
    moro_going: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)
    mbeya_going: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)
    tdm_going: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)
    zambia_going: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)
    congo_fuel: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)

    # Returning leg
    zambia_return: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)
    tunduma_return: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)
    mbeya_return: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)
    moro_return: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)
    dar_return: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)
    tanga_return: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)

    # Pending configuration
    is_locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    pending_config_reason: Mapped[str | None] = mapped_column(String(30), nullable=True)

    # Cancellation
    is_cancelled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(nullable=True)
    cancelled_by: Mapped[str | None] = mapped_column(String(100), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}

    def get_checkpoint(self, checkpoint: CheckpointField) -> Decimal:
        return getattr(self, checkpoint.value) or _ZERO

    def set_checkpoint(self, checkpoint: CheckpointField, liters: Decimal) -> None:
        setattr(self, checkpoint.value, liters)

    def checkpoint_values(self) -> dict[CheckpointField, Decimal]:
        return {f: self.get_checkpoint(f) for f in CheckpointField}

    @property
    def state(self) -> FuelRecordState:
        if self.is_cancelled:
            return FuelRecordState.CANCELLED
        if self.return_do:
            return FuelRecordState.CLOSED
        return FuelRecordState.OPEN

    def __repr__(self) -> str:
        return f"<FuelRecord {self.truck_no} {self.going_do}/{self.return_do}: balance={self.balance}>"
