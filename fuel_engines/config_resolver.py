"""
fuel_engines.config_resolver -- Numeric configuration resolution.

Responsibility:
    Resolve the values the ledger needs from a ``FuelConfigSnapshot``: a
    truck's extra-fuel allowance from its fleet suffix, a destination's
    route total liters, loading-point and destination surcharges, and the
    station -> ledger-field mapping.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Reads ``fuel_config.schema.FuelConfigSnapshot``; never loads it.

Invariants enforced:
    - "No match" is a typed result (``matched=False`` or ``None``), never
      an exception.
    - Batches are searched in configured order; the first batch holding
      the suffix wins.
    - Route resolution order is exact -> partial -> fuzzy -> default.
    - Identical snapshot and input always give the identical result.

Failure modes:
    - None.  Unknown stations return ``None``; callers that must debit a
      ledger field raise ``UnknownStationError`` themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from fuel_config.schema import FuelConfigSnapshot, RouteDef, StationDef
from fuel_engines.similarity import fuzzy_match, rank_candidates
from fuel_engines.tracer import traced_engine
from fuel_kernel.domain.truck_number import truck_suffix
from fuel_kernel.domain.values import (
    CheckpointField,
    JourneyLeg,
    MatchType,
    StationDirection,
    SurchargeKind,
    normalize_key,
)

SUGGESTION_LIMIT = 3
SUFFIX_SUGGESTION_THRESHOLD = 0.5
ROUTE_CANDIDATE_THRESHOLD = 0.6
ROUTE_ACCEPT_THRESHOLD = 0.8
SURCHARGE_THRESHOLD = 0.5

_ZERO = Decimal("0")


@dataclass(frozen=True)
class ExtraFuelResolution:
    """Extra-fuel allowance for one truck."""

    liters: Decimal
    matched: bool
    suffix: str
    batch: str | None = None
    suggestions: tuple[str, ...] = ()
    destination_override: bool = False


@dataclass(frozen=True)
class RouteResolution:
    """Total liters for a destination and how they were found."""

    liters: Decimal
    matched: bool
    match_type: MatchType
    matched_route: str | None = None
    similarity: float | None = None
    suggestions: tuple[str, ...] = ()


@dataclass(frozen=True)
class StationRoute:
    """Ledger mapping of a station."""

    station: str
    checkpoint_field: CheckpointField | None
    direction: StationDirection
    going_field: CheckpointField | None
    returning_field: CheckpointField | None

    def field_for(self, leg: JourneyLeg) -> CheckpointField | None:
        if leg is JourneyLeg.RETURNING:
            return self.returning_field
        return self.going_field

    @classmethod
    def from_station(cls, station: StationDef) -> StationRoute:
        return cls(
            station=station.station,
            checkpoint_field=station.checkpoint_field,
            direction=station.direction,
            going_field=station.going_field,
            returning_field=station.returning_field,
        )


# ---------------------------------------------------------------------------
# Truck batches
# ---------------------------------------------------------------------------


@traced_engine("truck_extra_fuel", "1.0", fingerprint_fields=("truck_no", "destination"))
def resolve_truck_extra_fuel(
    snapshot: FuelConfigSnapshot,
    truck_no: str,
    destination: str | None = None,
) -> ExtraFuelResolution:
    """
    Extra-fuel allowance for ``truck_no``.

    A batch destination rule whose destination contains, or is contained
    in, ``destination`` replaces the batch allowance.  An unmatched truck
    gets ``snapshot.default_extra_fuel`` and up to three similar suffixes.
    """
    suffix = truck_suffix(truck_no)
    if not suffix:
        return ExtraFuelResolution(
            liters=snapshot.default_extra_fuel, matched=False, suffix="",
        )

    for batch in snapshot.truck_batches:
        if suffix not in batch.suffixes:
            continue
        dest = normalize_key(destination)
        if dest:
            for rule in batch.destination_rules:
                if rule.suffix == suffix and (rule.destination in dest or dest in rule.destination):
                    return ExtraFuelResolution(
                        liters=rule.liters,
                        matched=True,
                        suffix=suffix,
                        batch=batch.name,
                        destination_override=True,
                    )
        return ExtraFuelResolution(
            liters=batch.liters, matched=True, suffix=suffix, batch=batch.name,
        )

    ranked = rank_candidates(
        suffix,
        [s for s in snapshot.all_suffixes() if s != suffix],
        SUFFIX_SUGGESTION_THRESHOLD,
        limit=SUGGESTION_LIMIT,
    )
    return ExtraFuelResolution(
        liters=snapshot.default_extra_fuel,
        matched=False,
        suffix=suffix,
        suggestions=tuple(s for s, _ in ranked),
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


def _route_names(routes: tuple[RouteDef, ...]) -> list[tuple[str, RouteDef]]:
    return [(normalize_key(name), route) for route in routes for name in route.names]


@traced_engine("route_liters", "1.0", fingerprint_fields=("destination",))
def resolve_route_liters(
    snapshot: FuelConfigSnapshot,
    destination: str | None,
) -> RouteResolution:
    """
    Total liters for ``destination``.

    Order: exact name or alias; a configured name contained in the input;
    the best fuzzy candidate when it scores at least 0.8; otherwise the
    default route liters with up to three suggestions scoring 0.6 or more.
    """
    default = RouteResolution(
        liters=snapshot.default_route_liters,
        matched=False,
        match_type=MatchType.DEFAULT,
    )
    value = normalize_key(destination)
    if not value:
        return default

    names = _route_names(snapshot.routes)

    for name, route in names:
        if name == value:
            return RouteResolution(
                liters=route.liters,
                matched=True,
                match_type=MatchType.EXACT,
                matched_route=route.destination,
                similarity=1.0,
            )

    for name, route in names:
        if name and name in value:
            return RouteResolution(
                liters=route.liters,
                matched=True,
                match_type=MatchType.PARTIAL,
                matched_route=route.destination,
            )

    by_name = dict(reversed(names))
    ranked = rank_candidates(value, [n for n, _ in names], ROUTE_CANDIDATE_THRESHOLD)
    if ranked and ranked[0][1] >= ROUTE_ACCEPT_THRESHOLD:
        best, score = ranked[0]
        route = by_name[best]
        return RouteResolution(
            liters=route.liters,
            matched=True,
            match_type=MatchType.FUZZY,
            matched_route=route.destination,
            similarity=score,
        )

    suggestions: list[str] = []
    for name, _ in ranked:
        route_name = by_name[name].destination
        if route_name not in suggestions:
            suggestions.append(route_name)
    return RouteResolution(
        liters=snapshot.default_route_liters,
        matched=False,
        match_type=MatchType.DEFAULT,
        suggestions=tuple(suggestions[:SUGGESTION_LIMIT]),
    )


# ---------------------------------------------------------------------------
# Surcharges
# ---------------------------------------------------------------------------


def _resolve_surcharge(
    snapshot: FuelConfigSnapshot,
    kind: SurchargeKind,
    location: str | None,
) -> Decimal:
    value = normalize_key(location)
    if not value:
        return _ZERO
    for surcharge in snapshot.surcharges:
        if surcharge.kind is not kind:
            continue
        if any(fuzzy_match(value, name, SURCHARGE_THRESHOLD) for name in surcharge.names):
            return surcharge.liters
    return _ZERO


@traced_engine("loading_point_surcharge", "1.0", fingerprint_fields=("loading_point",))
def resolve_loading_point_surcharge(
    snapshot: FuelConfigSnapshot,
    loading_point: str | None,
) -> Decimal:
    """Extra liters for a special loading point (KAMOA, NMI, KALONGWE); 0 otherwise."""
    return _resolve_surcharge(snapshot, SurchargeKind.LOADING_POINT, loading_point)


@traced_engine("destination_surcharge", "1.0", fingerprint_fields=("destination",))
def resolve_destination_surcharge(
    snapshot: FuelConfigSnapshot,
    destination: str | None,
) -> Decimal:
    """Extra liters for a special final destination (MOSHI); 0 otherwise."""
    return _resolve_surcharge(snapshot, SurchargeKind.DESTINATION, destination)


# ---------------------------------------------------------------------------
# Stations
# ---------------------------------------------------------------------------


def resolve_station_checkpoint(
    snapshot: FuelConfigSnapshot,
    station: str | None,
) -> StationRoute | None:
    """Exact lookup of a station (or alias) in the checkpoint map."""
    found = snapshot.find_station(station)
    if found is None:
        return None
    return StationRoute.from_station(found)
