"""
Module: fuel_kernel.models.configuration
Responsibility: ORM persistence for administrator-maintained fuel
    configuration: truck batches and their suffixes, per-suffix destination
    overrides, route allocations, special-location surcharges and the
    station checkpoint map.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/values.py only.

Invariants enforced:
    - A suffix belongs to at most one batch (uq_truck_batch_member_suffix),
      so batch classification cannot be ambiguous.
    - Keys (batch name, route destination, surcharge kind+name, station) are
      stored normalised and unique.

Failure modes:
    - IntegrityError on duplicate keys.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fuel_kernel.db.base import TrackedBase, UUIDString


class TruckBatch(TrackedBase):
    """Extra-fuel tier.  Lower priority values are checked first."""

    __tablename__ = "truck_batches"

    __table_args__ = (
        UniqueConstraint("name", name="uq_truck_batch_name"),
    )

    name: Mapped[str] = mapped_column(String(50), nullable=False)

    liters: Mapped[Decimal] = mapped_column(nullable=False)

    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    members: Mapped[list["TruckBatchMember"]] = relationship(
        back_populates="batch",
        cascade="all, delete-orphan",
        order_by="TruckBatchMember.suffix",
    )


class TruckBatchMember(TrackedBase):
    """Truck suffix (lower-case) assigned to a batch."""

    __tablename__ = "truck_batch_members"

    __table_args__ = (
        UniqueConstraint("suffix", name="uq_truck_batch_member_suffix"),
    )

    batch_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("truck_batches.id"),
        nullable=False,
    )

    suffix: Mapped[str] = mapped_column(String(10), nullable=False)

    batch: Mapped[TruckBatch] = relationship(back_populates="members")


class BatchDestinationRule(TrackedBase):
    """Extra liters for one suffix travelling to one destination."""

    __tablename__ = "batch_destination_rules"

    __table_args__ = (
        UniqueConstraint("suffix", "destination", name="uq_batch_destination_rule"),
    )

    suffix: Mapped[str] = mapped_column(String(10), nullable=False)

    destination: Mapped[str] = mapped_column(String(100), nullable=False)

    liters: Mapped[Decimal] = mapped_column(nullable=False)


class FuelRoute(TrackedBase):
    """Total-liters allocation for a destination."""

    __tablename__ = "fuel_routes"

    __table_args__ = (
        UniqueConstraint("destination", name="uq_fuel_route_destination"),
    )

    destination: Mapped[str] = mapped_column(String(100), nullable=False)

    liters: Mapped[Decimal] = mapped_column(nullable=False)

    aliases: Mapped[list] = mapped_column(JSON, nullable=False, default=list)


class FuelSurcharge(TrackedBase):
    """Extra liters for a special loading point or final destination."""

    __tablename__ = "fuel_surcharges"

    __table_args__ = (
        UniqueConstraint("kind", "name", name="uq_fuel_surcharge_kind_name"),
    )

    kind: Mapped[str] = mapped_column(String(20), nullable=False)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    liters: Mapped[Decimal] = mapped_column(nullable=False)

    synonyms: Mapped[list] = mapped_column(JSON, nullable=False, default=list)


class StationCheckpoint(TrackedBase):
    """Station to ledger-field mapping with the station's default fills."""

    __tablename__ = "station_checkpoints"

    __table_args__ = (
        UniqueConstraint("station", name="uq_station_checkpoint_station"),
    )

    station: Mapped[str] = mapped_column(String(100), nullable=False)

    direction: Mapped[str] = mapped_column(String(10), nullable=False)

    going_field: Mapped[str | None] = mapped_column(String(30), nullable=True)

    returning_field: Mapped[str | None] = mapped_column(String(30), nullable=True)

    going_liters: Mapped[Decimal | None] = mapped_column(nullable=True)

    returning_liters: Mapped[Decimal | None] = mapped_column(nullable=True)

    rate: Mapped[Decimal | None] = mapped_column(nullable=True)

    aliases: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
