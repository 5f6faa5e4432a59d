"""
Pure domain layer.

This module contains pure data transfer objects and value types
with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O

All domain objects are immutable and deterministic.
"""

from fuel_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from fuel_kernel.domain.dtos import (
    DeliveryOrderInfo,
    DestinationRuleInfo,
    FuelRecordInfo,
    LPOEntryInfo,
    RouteInfo,
    StationCheckpointInfo,
    SurchargeInfo,
    TruckBatchInfo,
)
from fuel_kernel.domain.truck_number import (
    format_truck_no_display,
    is_truck_no_match,
    is_valid_truck_no,
    normalize_truck_no,
    truck_suffix,
)
from fuel_kernel.domain.values import (
    GOING_FIELDS,
    RETURN_FIELDS,
    YARD_FIELDS,
    CheckpointField,
    Confidence,
    Direction,
    FuelRecordState,
    JourneyLeg,
    MatchType,
    OrderType,
    PaymentMode,
    PendingConfigReason,
    StationDirection,
    SurchargeKind,
    normalize_key,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "DeliveryOrderInfo",
    "FuelRecordInfo",
    "LPOEntryInfo",
    "DestinationRuleInfo",
    "RouteInfo",
    "StationCheckpointInfo",
    "SurchargeInfo",
    "TruckBatchInfo",
    "format_truck_no_display",
    "is_truck_no_match",
    "is_valid_truck_no",
    "normalize_truck_no",
    "truck_suffix",
    "GOING_FIELDS",
    "RETURN_FIELDS",
    "YARD_FIELDS",
    "CheckpointField",
    "Confidence",
    "Direction",
    "FuelRecordState",
    "JourneyLeg",
    "MatchType",
    "OrderType",
    "PaymentMode",
    "PendingConfigReason",
    "StationDirection",
    "SurchargeKind",
    "normalize_key",
]
