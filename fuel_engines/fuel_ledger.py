"""
fuel_engines.fuel_ledger -- Fuel record projections and return-leg top-up.

Responsibility:
    Predict what a checkpoint debit does to a fuel record (new balance,
    lock reason) and compute the additional fuel a return leg needs.
    ``LedgerService`` applies the same arithmetic, from
    ``fuel_kernel.domain.balance``, to the persisted record.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - balance = (total_liters or 0) + (extra or 0) + sum(checkpoint fields).
    - Additional fuel is never negative: the going total is never refunded.

Failure modes:
    - ValueError for a non-positive debit.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from fuel_config.schema import FuelConfigSnapshot
from fuel_engines.config_resolver import (
    RouteResolution,
    resolve_destination_surcharge,
    resolve_loading_point_surcharge,
    resolve_route_liters,
)
from fuel_engines.tracer import traced_engine
from fuel_kernel.domain.balance import (
    debited_value,
    expected_balance,
    lock_reason,
    missing_configuration,
)
from fuel_kernel.domain.dtos import FuelRecordInfo
from fuel_kernel.domain.values import CheckpointField, PendingConfigReason

_ZERO = Decimal("0")

__all__ = [
    "AdditionalFuelBreakdown",
    "DebitProjection",
    "additional_fuel_for_record",
    "compute_additional_fuel",
    "expected_balance",
    "going_total_of",
    "lock_reason",
    "missing_configuration",
    "project_debit",
]


@dataclass(frozen=True)
class DebitProjection:
    """A fuel record's state after a proposed debit."""

    checkpoint_field: CheckpointField
    liters: Decimal
    checkpoint_value: Decimal
    balance: Decimal
    lock_reason: PendingConfigReason | None

    @property
    def locks(self) -> bool:
        return self.lock_reason is not None


def project_debit(
    record: FuelRecordInfo,
    checkpoint_field: CheckpointField,
    liters: Decimal,
) -> DebitProjection:
    """What ``LedgerService.apply_checkpoint_debit`` would leave behind."""
    new_value = debited_value(record.debit_at(checkpoint_field), liters)
    values = dict(record.checkpoints)
    values[checkpoint_field] = new_value
    balance = expected_balance(record.total_liters, record.extra, values.values())
    return DebitProjection(
        checkpoint_field=checkpoint_field,
        liters=liters,
        checkpoint_value=new_value,
        balance=balance,
        lock_reason=lock_reason(record.total_liters, record.extra, balance),
    )


# ---------------------------------------------------------------------------
# Additional fuel
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AdditionalFuelBreakdown:
    """How the top-up for a return leg was computed."""

    return_loading_point: str
    final_destination: str
    going_total: Decimal | None
    required_total: Decimal
    route: RouteResolution
    delta: Decimal
    loading_point_surcharge: Decimal
    destination_surcharge: Decimal

    @property
    def additional(self) -> Decimal:
        return self.delta + self.loading_point_surcharge + self.destination_surcharge


@traced_engine(
    "additional_fuel",
    "1.0",
    fingerprint_fields=("going_total", "return_loading_point", "final_destination"),
)
def compute_additional_fuel(
    snapshot: FuelConfigSnapshot,
    going_total: Decimal | None,
    return_loading_point: str,
    final_destination: str | None = None,
) -> AdditionalFuelBreakdown:
    """
    Additional liters a return leg needs on top of the going allocation.

        delta      = max(0, T_ret - T_go)
        additional = delta + S_load + S_dest

    ``T_ret`` is the route total of the return loading point looked up as
    a destination.  An unknown going total gives no delta: only the
    surcharges are added until an administrator supplies the total.
    """
    final = final_destination or snapshot.default_final_destination
    route = resolve_route_liters(snapshot, return_loading_point)
    if going_total is None:
        delta = _ZERO
    else:
        delta = max(_ZERO, route.liters - going_total)
    return AdditionalFuelBreakdown(
        return_loading_point=return_loading_point,
        final_destination=final,
        going_total=going_total,
        required_total=route.liters,
        route=route,
        delta=delta,
        loading_point_surcharge=resolve_loading_point_surcharge(snapshot, return_loading_point),
        destination_surcharge=resolve_destination_surcharge(snapshot, final),
    )


def going_total_of(record: FuelRecordInfo) -> Decimal | None:
    """The going-leg total of a record, excluding any return top-up already applied."""
    if record.total_liters is None:
        return None
    return record.total_liters - record.additional_fuel


def additional_fuel_for_record(
    snapshot: FuelConfigSnapshot,
    record: FuelRecordInfo,
    return_loading_point: str,
) -> AdditionalFuelBreakdown:
    """Additional fuel for attaching a return leg loaded at ``return_loading_point`` to ``record``."""
    return compute_additional_fuel(
        snapshot,
        going_total_of(record),
        return_loading_point,
        record.start or None,
    )
