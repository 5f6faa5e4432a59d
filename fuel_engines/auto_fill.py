"""
fuel_engines.auto_fill -- LPO auto-fill proposal.

Responsibility:
    Turn a resolved journey direction into the values an LPO form is
    pre-filled with: liters, rate, ledger field, the record's allocation
    and, for return legs, the additional fuel the return DO needs.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    ``fuel_services.auto_fill_service`` resolves the direction and calls
    ``compute_auto_fill``.

Invariants enforced:
    - The proposal is advisory: ``allow_custom`` is always True.
    - Going fills at the reserve checkpoint use
      ``(total_liters + extra) - going_reserve_liters`` when positive,
      unless a going-fill override matches the DO destination.
    - Identical inputs always give the identical proposal.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from fuel_config.schema import FuelConfigSnapshot, StationDef
from fuel_engines.config_resolver import resolve_route_liters, resolve_truck_extra_fuel
from fuel_engines.fuel_ledger import additional_fuel_for_record
from fuel_engines.journey import DirectionResult
from fuel_engines.tracer import traced_engine
from fuel_kernel.domain.dtos import FuelRecordInfo
from fuel_kernel.domain.values import (
    CheckpointField,
    Confidence,
    JourneyLeg,
    normalize_key,
)

_ZERO = Decimal("0")


@dataclass(frozen=True)
class AutoFillResult:
    """Proposed LPO line for a truck at a station."""

    do_number: str
    direction: JourneyLeg
    station: str
    liters: Decimal
    rate: Decimal
    destination: str
    checkpoint_field: CheckpointField | None
    total_liters: Decimal | None
    extra_fuel: Decimal | None
    additional_fuel: Decimal | None
    confidence: Confidence
    reason: str
    fuel_record_id: UUID | None = None
    allow_custom: bool = True


def _default_liters(station: StationDef, leg: JourneyLeg) -> Decimal:
    value = station.returning_liters if leg is JourneyLeg.RETURNING else station.going_liters
    return value if value is not None else _ZERO


def _going_fill(
    snapshot: FuelConfigSnapshot,
    station: StationDef,
    record: FuelRecordInfo,
    destination: str,
    default: Decimal,
) -> Decimal:
    if station.going_field is not snapshot.reserve_checkpoint:
        return default
    dest = normalize_key(destination)
    for override in snapshot.going_fill_overrides:
        if any(name and name in dest for name in override.names):
            return override.liters
    calculated = (record.total_liters or _ZERO) + (record.extra or _ZERO) - snapshot.going_reserve_liters
    if calculated > _ZERO:
        return calculated
    return default


def _open_going_record(fuel_records: Sequence[FuelRecordInfo]) -> FuelRecordInfo | None:
    open_records = [r for r in fuel_records if not r.is_cancelled and not r.return_do]
    open_records.sort(key=lambda r: r.date, reverse=True)
    return open_records[0] if open_records else None


@traced_engine("auto_fill", "1.0", fingerprint_fields=("truck_no", "station"))
def compute_auto_fill(
    snapshot: FuelConfigSnapshot,
    truck_no: str,
    station: str,
    direction: DirectionResult | None,
    fuel_records: Sequence[FuelRecordInfo] = (),
) -> AutoFillResult | None:
    """
    Build the LPO proposal for ``truck_no`` at ``station``.

    Returns None when the direction is unresolved or the station has no
    default fills configured.  For a return leg whose DO is not yet
    attached, the additional fuel is computed against the truck's open
    going record in ``fuel_records``.
    """
    if direction is None:
        return None
    station_def = snapshot.find_station(station)
    if station_def is None or (
        station_def.going_liters is None and station_def.returning_liters is None
    ):
        return None

    leg = direction.direction
    order = direction.delivery_order
    record = direction.fuel_record
    liters = _default_liters(station_def, leg)

    if leg is JourneyLeg.GOING and record is not None:
        liters = _going_fill(snapshot, station_def, record, order.destination, liters)

    additional: Decimal | None = None
    if leg is JourneyLeg.RETURNING:
        base = record or _open_going_record(fuel_records)
        if base is not None:
            additional = additional_fuel_for_record(snapshot, base, order.destination).additional

    if record is not None:
        total_liters, extra = record.total_liters, record.extra
    else:
        total_liters = resolve_route_liters(snapshot, order.destination).liters
        extra = resolve_truck_extra_fuel(snapshot, truck_no, order.destination).liters

    field = station_def.returning_field if leg is JourneyLeg.RETURNING else station_def.going_field
    return AutoFillResult(
        do_number=direction.do_number,
        direction=leg,
        station=station_def.station,
        liters=liters,
        rate=station_def.rate if station_def.rate is not None else snapshot.default_rate,
        destination=order.destination,
        checkpoint_field=field,
        total_liters=total_liters,
        extra_fuel=extra,
        additional_fuel=additional,
        confidence=direction.confidence,
        reason=direction.reason,
        fuel_record_id=record.id if record is not None else None,
    )
