"""
fuel_engines.journey -- Journey direction resolver.

Responsibility:
    Decide whether a truck refuelling at a station is on its going
    (outbound) or returning (inbound) leg, and which delivery order the
    fill belongs to.  Works over plain snapshots of the truck's recent
    delivery orders and fuel records.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    The caller (``fuel_services.auto_fill_service``) fetches the orders
    and records through a ``JourneyDataSource``.

Invariants enforced:
    - Cancelled orders and SDO orders never take part.
    - Orders are considered newest first; equal dates keep input order.
    - Identical inputs always give the identical result.

Decision table (bidirectional station, going and returning DO active):

    station on the below-checkpoint allowlist       -> going,     high
    going record already debited at going field     -> returning, high
    otherwise                                       -> going,     high

The allowlist is checked before prior-debit evidence: a station below the
shared checkpoint cannot be the return fill of that checkpoint.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from fuel_config.schema import FuelConfigSnapshot
from fuel_engines.config_resolver import StationRoute, resolve_station_checkpoint
from fuel_engines.tracer import traced_engine
from fuel_kernel.domain.dtos import DeliveryOrderInfo, FuelRecordInfo
from fuel_kernel.domain.values import (
    Confidence,
    Direction,
    JourneyLeg,
    OrderType,
    StationDirection,
)
from fuel_kernel.logging_config import get_logger

logger = get_logger("engines.journey")

REASON_UNKNOWN_STATION = "unknown station, defaulting to going DO"
REASON_GOING_ONLY = "going-only station"
REASON_RETURNING_ONLY = "returning-only station"
REASON_BELOW_CHECKPOINT = "station precedes checkpoint"
REASON_ALREADY_FUELED = "already fueled going here"
REASON_FIRST_FILL = "first fill at checkpoint"
REASON_ONLY_GOING = "only going DO available"
REASON_ONLY_RETURNING = "only returning DO available"


@dataclass(frozen=True)
class DirectionResult:
    """Which leg and delivery order a fill belongs to."""

    do_number: str
    direction: JourneyLeg
    confidence: Confidence
    reason: str
    delivery_order: DeliveryOrderInfo
    fuel_record: FuelRecordInfo | None = None
    station_route: StationRoute | None = None

    @property
    def is_going(self) -> bool:
        return self.direction is JourneyLeg.GOING


def determine_journey_start(loading_point: str | None) -> str:
    """Origin of the round trip: TANGA when loaded at Tanga, DAR otherwise."""
    if loading_point and "tanga" in loading_point.lower():
        return "TANGA"
    return "DAR"


def active_orders(
    delivery_orders: Sequence[DeliveryOrderInfo],
    as_of: date | None = None,
    lookback_days: int = 120,
) -> list[DeliveryOrderInfo]:
    """Active DO-type orders inside the lookback window, newest first."""
    date_from = as_of - timedelta(days=lookback_days) if as_of is not None else None
    kept = [
        order for order in delivery_orders
        if not order.is_cancelled
        and order.order_type is OrderType.DO
        and (date_from is None or order.date >= date_from)
    ]
    return sorted(kept, key=lambda o: o.date, reverse=True)


def find_record_for_order(
    order: DeliveryOrderInfo,
    fuel_records: Sequence[FuelRecordInfo],
) -> FuelRecordInfo | None:
    """Active fuel record linked to ``order``: by going DO for IMPORT, by return DO for EXPORT."""
    candidates = [r for r in fuel_records if not r.is_cancelled]
    candidates.sort(key=lambda r: r.date, reverse=True)
    for record in candidates:
        linked = record.going_do if order.is_going else record.return_do
        if linked == order.order_number:
            return record
    return None


def _result(
    order: DeliveryOrderInfo,
    confidence: Confidence,
    reason: str,
    fuel_records: Sequence[FuelRecordInfo],
    station_route: StationRoute | None,
) -> DirectionResult:
    return DirectionResult(
        do_number=order.order_number,
        direction=order.direction.leg,
        confidence=confidence,
        reason=reason,
        delivery_order=order,
        fuel_record=find_record_for_order(order, fuel_records),
        station_route=station_route,
    )


@traced_engine("journey_direction", "1.0", fingerprint_fields=("station", "as_of"))
def resolve_direction(
    snapshot: FuelConfigSnapshot,
    station: str,
    delivery_orders: Sequence[DeliveryOrderInfo],
    fuel_records: Sequence[FuelRecordInfo],
    as_of: date | None = None,
) -> DirectionResult | None:
    """
    Classify a fill at ``station`` as going or returning.

    Args:
        snapshot: Configuration to resolve the station against.
        station: Station name as entered.
        delivery_orders: The truck's delivery orders.  Cancelled and SDO
            orders are ignored.
        fuel_records: The truck's fuel records.  Cancelled ones are ignored.
        as_of: When given, orders older than ``snapshot.lookback_days``
            before this date are ignored.

    Returns:
        DirectionResult, or None when the fill cannot be attributed
        (no active orders, or no order for the leg the station serves).
    """
    orders = active_orders(delivery_orders, as_of, snapshot.lookback_days)
    if not orders:
        return None

    going = [o for o in orders if o.direction is Direction.IMPORT]
    returning = [o for o in orders if o.direction is Direction.EXPORT]

    route = resolve_station_checkpoint(snapshot, station)
    if route is None:
        if going:
            logger.info(
                "direction_unknown_station",
                extra={"station": station, "do_number": going[0].order_number},
            )
            return _result(going[0], Confidence.LOW, REASON_UNKNOWN_STATION, fuel_records, None)
        return None

    if route.direction is StationDirection.GOING:
        if not going:
            return None
        return _result(going[0], Confidence.HIGH, REASON_GOING_ONLY, fuel_records, route)

    if route.direction is StationDirection.RETURNING:
        if not returning:
            return None
        return _result(returning[0], Confidence.HIGH, REASON_RETURNING_ONLY, fuel_records, route)

    if going and returning:
        going_order = going[0]
        if snapshot.is_below_checkpoint(station):
            return _result(going_order, Confidence.HIGH, REASON_BELOW_CHECKPOINT, fuel_records, route)

        going_record = find_record_for_order(going_order, fuel_records)
        if (
            going_record is not None
            and route.going_field is not None
            and going_record.debit_at(route.going_field) != 0
        ):
            return _result(returning[0], Confidence.HIGH, REASON_ALREADY_FUELED, fuel_records, route)
        return _result(going_order, Confidence.HIGH, REASON_FIRST_FILL, fuel_records, route)

    if going:
        return _result(going[0], Confidence.MEDIUM, REASON_ONLY_GOING, fuel_records, route)
    return _result(returning[0], Confidence.MEDIUM, REASON_ONLY_RETURNING, fuel_records, route)
