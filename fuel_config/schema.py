"""
FuelConfigSnapshot schema.

The immutable configuration snapshot that every resolver takes as an
explicit argument.  YAML sets are parsed into these types by the loader;
database tables are materialised into them by
``fuel_services.configuration_service``.
Holding a snapshot fixes the configuration for the duration of a request:
resolving against the same snapshot always gives the same answer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from fuel_kernel.domain.values import (
    CheckpointField,
    StationDirection,
    SurchargeKind,
    normalize_key,
)


# ---------------------------------------------------------------------------
# Truck batches
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BatchDestinationRuleDef:
    """Per-suffix override of the batch allowance for one destination."""

    suffix: str
    destination: str
    liters: Decimal


@dataclass(frozen=True)
class TruckBatchDef:
    """Extra-fuel tier and its member suffixes (lower-case)."""

    name: str
    liters: Decimal
    suffixes: tuple[str, ...] = ()
    destination_rules: tuple[BatchDestinationRuleDef, ...] = ()


# ---------------------------------------------------------------------------
# Routes and surcharges
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RouteDef:
    """Total liters allocated for a destination, with alternative spellings."""

    destination: str
    liters: Decimal
    aliases: tuple[str, ...] = ()

    @property
    def names(self) -> tuple[str, ...]:
        return (self.destination, *self.aliases)


@dataclass(frozen=True)
class SurchargeDef:
    """Extra liters for a special loading point or final destination."""

    kind: SurchargeKind
    name: str
    liters: Decimal
    synonyms: tuple[str, ...] = ()

    @property
    def names(self) -> tuple[str, ...]:
        return (self.name, *self.synonyms)


# ---------------------------------------------------------------------------
# Stations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StationDef:
    """
    A fuel station, the ledger fields it debits and its default fills.

    ``going_field`` is debited by going-leg fills and is the field checked
    for prior fuel evidence at bidirectional stations; ``returning_field``
    is debited by returning-leg fills.
    """

    station: str
    direction: StationDirection
    going_field: CheckpointField | None = None
    returning_field: CheckpointField | None = None
    going_liters: Decimal | None = None
    returning_liters: Decimal | None = None
    rate: Decimal | None = None
    aliases: tuple[str, ...] = ()

    @property
    def checkpoint_field(self) -> CheckpointField | None:
        """The station's primary field: going unless it only serves returns."""
        if self.direction is StationDirection.RETURNING:
            return self.returning_field or self.going_field
        return self.going_field or self.returning_field


@dataclass(frozen=True)
class ForwardingRouteDef:
    """A station that forwards unconsumed orders to the next one."""

    source_station: str
    target_station: str
    default_liters: Decimal
    rate: Decimal
    currency: str = "USD"


@dataclass(frozen=True)
class GoingFillOverrideDef:
    """Fixed going fill at the reserve checkpoint for matching destinations."""

    destination: str
    liters: Decimal
    aliases: tuple[str, ...] = ()

    @property
    def names(self) -> tuple[str, ...]:
        return (self.destination, *self.aliases)


# ---------------------------------------------------------------------------
# Root snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FuelConfigSnapshot:
    """
    Root configuration snapshot.

    Contract:
        Frozen; never mutated after load.  ``truck_batches`` order is the
        lookup priority.  ``stations`` is keyed by ``normalize_key``.

    Guarantees:
        - ``default_extra_fuel`` falls back to the lowest batch allowance
          when not set explicitly.
    """

    version: str = "1"
    truck_batches: tuple[TruckBatchDef, ...] = ()
    routes: tuple[RouteDef, ...] = ()
    surcharges: tuple[SurchargeDef, ...] = ()
    stations: tuple[StationDef, ...] = ()
    forwarding_routes: tuple[ForwardingRouteDef, ...] = ()
    going_fill_overrides: tuple[GoingFillOverrideDef, ...] = ()
    below_checkpoint_stations: frozenset[str] = frozenset()
    cancellation_points: tuple[tuple[str, str], ...] = ()
    default_route_liters: Decimal = Decimal("2200")
    explicit_default_extra_fuel: Decimal | None = None
    default_rate: Decimal = Decimal("1450")
    default_final_destination: str = "DAR"
    reserve_checkpoint: CheckpointField = CheckpointField.ZAMBIA_GOING
    going_reserve_liters: Decimal = Decimal("900")
    lookback_days: int = 120
    checksum: str = ""
    _station_index: dict[str, StationDef] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        index: dict[str, StationDef] = {}
        for station in self.stations:
            for name in (station.station, *station.aliases):
                index.setdefault(normalize_key(name), station)
        object.__setattr__(self, "_station_index", index)
        object.__setattr__(
            self,
            "below_checkpoint_stations",
            frozenset(normalize_key(s) for s in self.below_checkpoint_stations),
        )

    @property
    def default_extra_fuel(self) -> Decimal:
        if self.explicit_default_extra_fuel is not None:
            return self.explicit_default_extra_fuel
        if not self.truck_batches:
            return Decimal("0")
        return min(b.liters for b in self.truck_batches)

    def find_station(self, station: str | None) -> StationDef | None:
        return self._station_index.get(normalize_key(station))

    def is_below_checkpoint(self, station: str | None) -> bool:
        return normalize_key(station) in self.below_checkpoint_stations

    def cancellation_station(self, point: str | None) -> str | None:
        """Station whose entries a cancellation checkpoint name refers to."""
        key = normalize_key(point)
        for name, station in self.cancellation_points:
            if normalize_key(name) == key:
                return station
        return None

    def forwarding_route(self, source_station: str, target_station: str) -> ForwardingRouteDef | None:
        source, target = normalize_key(source_station), normalize_key(target_station)
        for route in self.forwarding_routes:
            if normalize_key(route.source_station) == source and normalize_key(route.target_station) == target:
                return route
        return None

    def all_suffixes(self) -> tuple[str, ...]:
        return tuple(s for b in self.truck_batches for s in b.suffixes)
