"""
Module: fuel_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for
    ``fuel_services``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May import fuel_kernel.domain, fuel_kernel.exceptions,
    fuel_kernel.logging_config and fuel_config.schema.
    MUST NOT import fuel_services or touch the database.

Invariants enforced:
    - Purity: engines never read the clock.  Dates are passed in by the
      caller.
    - Decimal-only arithmetic for liters, rates and amounts.  Similarity
      scores are floats in [0, 1].
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine entry points are wrapped by ``@traced_engine`` (see
    ``fuel_engines.tracer``), emitting FUEL_ENGINE_TRACE records with the
    engine name, version, input fingerprint and duration.
"""

from fuel_engines.auto_fill import AutoFillResult, compute_auto_fill
from fuel_engines.config_resolver import (
    ExtraFuelResolution,
    RouteResolution,
    StationRoute,
    resolve_destination_surcharge,
    resolve_loading_point_surcharge,
    resolve_route_liters,
    resolve_station_checkpoint,
    resolve_truck_extra_fuel,
)
from fuel_engines.fuel_ledger import (
    AdditionalFuelBreakdown,
    DebitProjection,
    additional_fuel_for_record,
    compute_additional_fuel,
    expected_balance,
    lock_reason,
    missing_configuration,
    project_debit,
)
from fuel_engines.journey import (
    DirectionResult,
    determine_journey_start,
    resolve_direction,
)
from fuel_engines.similarity import fuzzy_match, rank_candidates, similarity

__all__ = [
    "AutoFillResult",
    "compute_auto_fill",
    "ExtraFuelResolution",
    "RouteResolution",
    "StationRoute",
    "resolve_destination_surcharge",
    "resolve_loading_point_surcharge",
    "resolve_route_liters",
    "resolve_station_checkpoint",
    "resolve_truck_extra_fuel",
    "AdditionalFuelBreakdown",
    "DebitProjection",
    "additional_fuel_for_record",
    "compute_additional_fuel",
    "expected_balance",
    "lock_reason",
    "missing_configuration",
    "project_debit",
    "DirectionResult",
    "determine_journey_start",
    "resolve_direction",
    "fuzzy_match",
    "rank_candidates",
    "similarity",
]
