"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable snapshots of delivery orders, fuel records and
    LPO entries that the pure engines consume.  Engines never see ORM
    entities; selectors and services convert at the boundary with
    ``from_model()``.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    from_model() class methods exist as boundary converters but are only
    invoked from selectors and services (never from engine logic).

Invariants enforced:
    - Checkpoint maps are read-only (MappingProxyType) and always carry
      every CheckpointField, with unset values as Decimal("0").
    - FuelRecordInfo.state is derived, never stored.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from typing import TYPE_CHECKING
from uuid import UUID

from fuel_kernel.domain.values import (
    CheckpointField,
    Direction,
    FuelRecordState,
    OrderType,
    PaymentMode,
    PendingConfigReason,
    StationDirection,
    SurchargeKind,
)

if TYPE_CHECKING:
    from fuel_kernel.models.configuration import (
        FuelRoute,
        FuelSurcharge,
        StationCheckpoint,
        TruckBatch,
    )
    from fuel_kernel.models.delivery_order import DeliveryOrder as DeliveryOrderModel
    from fuel_kernel.models.fuel_record import FuelRecord as FuelRecordModel
    from fuel_kernel.models.lpo_entry import LPOEntry as LPOEntryModel

_ZERO = Decimal("0")


def _frozen_checkpoints(
    values: Mapping[CheckpointField, Decimal | None] | None,
) -> Mapping[CheckpointField, Decimal]:
    values = values or {}
    return MappingProxyType({
        f: Decimal(values.get(f) or _ZERO) for f in CheckpointField
    })


@dataclass(frozen=True)
class DeliveryOrderInfo:
    """Immutable view of one journey leg."""

    id: UUID
    order_number: str
    truck_no: str
    direction: Direction
    loading_point: str
    destination: str
    date: date
    order_type: OrderType = OrderType.DO
    is_cancelled: bool = False
    cancellation_reason: str | None = None

    @property
    def is_going(self) -> bool:
        return self.direction is Direction.IMPORT

    @classmethod
    def from_model(cls, model: DeliveryOrderModel) -> DeliveryOrderInfo:
        return cls(
            id=model.id,
            order_number=model.order_number,
            truck_no=model.truck_no,
            direction=Direction(model.direction),
            loading_point=model.loading_point or "",
            destination=model.destination or "",
            date=model.order_date,
            order_type=OrderType(model.order_type),
            is_cancelled=model.is_cancelled,
            cancellation_reason=model.cancellation_reason,
        )


@dataclass(frozen=True)
class FuelRecordInfo:
    """
    Immutable view of a truck's round-trip fuel ledger.

    Contract:
        ``checkpoints`` holds the signed liters per ledger field (debits
        negative).  ``total_liters`` and ``extra`` may be None when the
        route or truck batch is not configured.

    Guarantees:
        - ``expected_balance`` applies the sum invariant to the stored
          fields; ``balance`` is what was stored.
    """

    id: UUID
    truck_no: str
    date: date
    going_do: str
    return_do: str | None = None
    start: str = "DAR"
    from_location: str = ""
    to_location: str = ""
    original_going_from: str | None = None
    original_going_to: str | None = None
    total_liters: Decimal | None = None
    extra: Decimal | None = None
    additional_fuel: Decimal = _ZERO
    balance: Decimal = _ZERO
    checkpoints: Mapping[CheckpointField, Decimal] = field(
        default_factory=lambda: _frozen_checkpoints(None)
    )
    is_locked: bool = False
    pending_config_reason: PendingConfigReason | None = None
    is_cancelled: bool = False
    version: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "checkpoints", _frozen_checkpoints(self.checkpoints))

    @property
    def state(self) -> FuelRecordState:
        if self.is_cancelled:
            return FuelRecordState.CANCELLED
        if self.return_do:
            return FuelRecordState.CLOSED
        return FuelRecordState.OPEN

    def debit_at(self, checkpoint: CheckpointField) -> Decimal:
        return self.checkpoints[checkpoint]

    @property
    def expected_balance(self) -> Decimal:
        return (
            (self.total_liters or _ZERO)
            + (self.extra or _ZERO)
            + sum(self.checkpoints.values(), _ZERO)
        )

    @property
    def going_destination(self) -> str:
        """Going-leg destination, even after a return DO re-pointed from/to."""
        return self.original_going_to or self.to_location

    @classmethod
    def from_model(cls, model: FuelRecordModel) -> FuelRecordInfo:
        return cls(
            id=model.id,
            truck_no=model.truck_no,
            date=model.record_date,
            going_do=model.going_do,
            return_do=model.return_do,
            start=model.start,
            from_location=model.from_location,
            to_location=model.to_location,
            original_going_from=model.original_going_from,
            original_going_to=model.original_going_to,
            total_liters=model.total_liters,
            extra=model.extra,
            additional_fuel=model.additional_fuel or _ZERO,
            balance=model.balance,
            checkpoints=model.checkpoint_values(),
            is_locked=model.is_locked,
            pending_config_reason=(
                PendingConfigReason(model.pending_config_reason)
                if model.pending_config_reason else None
            ),
            is_cancelled=model.is_cancelled,
            version=model.version,
        )


@dataclass(frozen=True)
class LPOEntryInfo:
    """Immutable view of one fuel purchase line."""

    id: UUID
    lpo_no: str
    station: str
    truck_no: str
    liters: Decimal
    rate: Decimal
    amount: Decimal
    do_number: str
    destination: str
    payment_mode: PaymentMode = PaymentMode.LPO
    cancellation_point: str | None = None
    is_driver_account: bool = False
    is_cancelled: bool = False
    debited_field: CheckpointField | None = None
    fuel_record_id: UUID | None = None
    forwarded_from_id: UUID | None = None

    @property
    def display_do_number(self) -> str:
        return "NIL" if self.is_driver_account else self.do_number

    @property
    def display_destination(self) -> str:
        return "NIL" if self.is_driver_account else self.destination

    @classmethod
    def from_model(cls, model: LPOEntryModel) -> LPOEntryInfo:
        return cls(
            id=model.id,
            lpo_no=model.lpo_no,
            station=model.station,
            truck_no=model.truck_no,
            liters=model.liters,
            rate=model.rate,
            amount=model.amount,
            do_number=model.do_number,
            destination=model.destination,
            payment_mode=PaymentMode(model.payment_mode),
            cancellation_point=model.cancellation_point,
            is_driver_account=model.is_driver_account,
            is_cancelled=model.is_cancelled,
            debited_field=(
                CheckpointField(model.debited_field) if model.debited_field else None
            ),
            fuel_record_id=model.fuel_record_id,
            forwarded_from_id=model.forwarded_from_id,
        )


# ---------------------------------------------------------------------------
# Configuration rows
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DestinationRuleInfo:
    suffix: str
    destination: str
    liters: Decimal


@dataclass(frozen=True)
class TruckBatchInfo:
    """A configured extra-fuel tier with its member suffixes."""

    name: str
    liters: Decimal
    priority: int
    suffixes: tuple[str, ...] = ()
    destination_rules: tuple[DestinationRuleInfo, ...] = ()

    @classmethod
    def from_model(
        cls,
        model: TruckBatch,
        rules: tuple[DestinationRuleInfo, ...] = (),
    ) -> TruckBatchInfo:
        return cls(
            name=model.name,
            liters=model.liters,
            priority=model.priority,
            suffixes=tuple(m.suffix for m in model.members),
            destination_rules=rules,
        )


@dataclass(frozen=True)
class RouteInfo:
    destination: str
    liters: Decimal
    aliases: tuple[str, ...] = ()

    @classmethod
    def from_model(cls, model: FuelRoute) -> RouteInfo:
        return cls(
            destination=model.destination,
            liters=model.liters,
            aliases=tuple(model.aliases or ()),
        )


@dataclass(frozen=True)
class SurchargeInfo:
    kind: SurchargeKind
    name: str
    liters: Decimal
    synonyms: tuple[str, ...] = ()

    @classmethod
    def from_model(cls, model: FuelSurcharge) -> SurchargeInfo:
        return cls(
            kind=SurchargeKind(model.kind),
            name=model.name,
            liters=model.liters,
            synonyms=tuple(model.synonyms or ()),
        )


@dataclass(frozen=True)
class StationCheckpointInfo:
    """Station -> ledger field mapping as stored."""

    station: str
    direction: StationDirection
    going_field: CheckpointField | None = None
    returning_field: CheckpointField | None = None
    going_liters: Decimal | None = None
    returning_liters: Decimal | None = None
    rate: Decimal | None = None
    aliases: tuple[str, ...] = ()

    @classmethod
    def from_model(cls, model: StationCheckpoint) -> StationCheckpointInfo:
        return cls(
            station=model.station,
            direction=StationDirection(model.direction),
            going_field=CheckpointField(model.going_field) if model.going_field else None,
            returning_field=(
                CheckpointField(model.returning_field) if model.returning_field else None
            ),
            going_liters=model.going_liters,
            returning_liters=model.returning_liters,
            rate=model.rate,
            aliases=tuple(model.aliases or ()),
        )
