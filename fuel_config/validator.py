"""
Configuration Validator (``fuel_config.validator``).

Responsibility
--------------
Validates a ``FuelConfigSnapshot`` before it is handed to resolvers, so
structural mistakes surface at load time rather than as wrong liters on
a fuel record.

Invariants enforced
-------------------
* Batches are disjoint: a suffix in two batches is an error.
* Batch, route, surcharge and station names are unique.
* Liters are never negative; the going reserve and default route liters
  are positive.
* A station that serves a leg has the field for that leg.
* Forwarding routes and cancellation points reference known stations.

Failure modes
-------------
* Validation errors (``ConfigValidationResult.errors``)  -> the snapshot
  MUST NOT be used.
* Validation warnings  -> usable but should be reviewed.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal

from fuel_config.schema import FuelConfigSnapshot, normalize_key
from fuel_kernel.domain.values import StationDirection


@dataclass
class ConfigValidationResult:
    """
    Result of configuration validation.

    Contract
    --------
    * ``is_valid`` returns ``True`` only when ``errors`` is empty.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def _duplicates(names: list[str]) -> list[str]:
    return sorted(n for n, c in Counter(names).items() if c > 1)


def validate_snapshot(config: FuelConfigSnapshot) -> ConfigValidationResult:
    """
    Validate a configuration snapshot.

    Postconditions:
        - Returns a ConfigValidationResult; never raises.
    """
    result = ConfigValidationResult()

    # Batches
    for name in _duplicates([b.name for b in config.truck_batches]):
        result.add_error(f"Duplicate truck batch: {name}")
    for suffix in _duplicates(list(config.all_suffixes())):
        result.add_error(f"Truck suffix {suffix!r} is in more than one batch")
    for batch in config.truck_batches:
        if batch.liters < 0:
            result.add_error(f"Truck batch {batch.name} has negative liters")
        if not batch.suffixes:
            result.add_warning(f"Truck batch {batch.name} has no members")
        for rule in batch.destination_rules:
            if rule.suffix not in batch.suffixes:
                result.add_warning(
                    f"Destination rule for {rule.suffix!r} in {batch.name} "
                    "references a suffix outside the batch"
                )

    # Routes
    route_names = [n for r in config.routes for n in r.names]
    for name in _duplicates(route_names):
        result.add_error(f"Route name {name!r} is configured more than once")
    for route in config.routes:
        if route.liters < 0:
            result.add_error(f"Route {route.destination} has negative liters")
    if config.default_route_liters <= 0:
        result.add_error("Default route liters must be positive")

    # Surcharges
    for kind in {s.kind for s in config.surcharges}:
        names = [n for s in config.surcharges if s.kind is kind for n in s.names]
        for name in _duplicates(names):
            result.add_error(f"{kind.value} surcharge {name!r} is configured more than once")
    for surcharge in config.surcharges:
        if surcharge.liters < 0:
            result.add_error(f"Surcharge {surcharge.name} has negative liters")

    # Stations
    station_names = [n for s in config.stations for n in (s.station, *s.aliases)]
    for name in _duplicates(station_names):
        result.add_error(f"Station {name!r} is configured more than once")
    for station in config.stations:
        serves_going = station.direction in (StationDirection.GOING, StationDirection.BOTH)
        serves_return = station.direction in (StationDirection.RETURNING, StationDirection.BOTH)
        if serves_going and station.going_field is None:
            result.add_error(f"Station {station.station} serves going trucks but has no going field")
        if serves_return and station.returning_field is None:
            result.add_error(
                f"Station {station.station} serves returning trucks but has no returning field"
            )
        for liters in (station.going_liters, station.returning_liters, station.rate):
            if liters is not None and liters < 0:
                result.add_error(f"Station {station.station} has a negative default")

    # Cross references
    for route in config.forwarding_routes:
        for name in (route.source_station, route.target_station):
            if config.find_station(name) is None:
                result.add_error(f"Forwarding route references unknown station {name!r}")
        if normalize_key(route.source_station) == normalize_key(route.target_station):
            result.add_error(f"Forwarding route {route.source_station} forwards to itself")
        if route.default_liters <= 0:
            result.add_error(
                f"Forwarding route {route.source_station} -> {route.target_station} "
                "must forward a positive amount"
            )
    for point, station in config.cancellation_points:
        if config.find_station(station) is None:
            result.add_error(f"Cancellation point {point} references unknown station {station!r}")

    if config.going_reserve_liters < Decimal("0"):
        result.add_error("Going reserve liters must not be negative")
    if config.lookback_days <= 0:
        result.add_error("Lookback days must be positive")

    return result
