"""
Configuration Loader (``fuel_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into the frozen
``fuel_config.schema`` dataclasses.  Runtime callers go through
``fuel_config.get_active_config()``; this module is the parsing step
behind it.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Liters and rates become ``Decimal`` via ``str()`` so YAML floats such
  as ``1.2`` keep their written value.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys in parsed dict  -> ``KeyError`` propagates.
* Unknown checkpoint field  -> ``UnknownCheckpointError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from fuel_config.schema import (
    BatchDestinationRuleDef,
    ForwardingRouteDef,
    FuelConfigSnapshot,
    GoingFillOverrideDef,
    RouteDef,
    StationDef,
    SurchargeDef,
    TruckBatchDef,
    normalize_key,
)
from fuel_kernel.domain.values import (
    CheckpointField,
    StationDirection,
    SurchargeKind,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_liters(value: Any) -> Decimal:
    """Parse a liter or rate value from YAML (int, float or string)."""
    if isinstance(value, Decimal):
        return value
    if value is None or isinstance(value, bool):
        raise ValueError(f"Cannot parse liters from {value!r}")
    return Decimal(str(value))


def _optional_liters(value: Any) -> Decimal | None:
    return None if value is None else parse_liters(value)


def _optional_field(value: Any) -> CheckpointField | None:
    return None if value is None else CheckpointField.parse(value)


def parse_truck_batch(data: dict[str, Any]) -> TruckBatchDef:
    """Parse a TruckBatchDef.  Suffixes are lower-cased."""
    rules = tuple(
        BatchDestinationRuleDef(
            suffix=str(r["suffix"]).lower().strip(),
            destination=normalize_key(r["destination"]),
            liters=parse_liters(r["liters"]),
        )
        for r in data.get("destination_rules", ())
    )
    return TruckBatchDef(
        name=data["name"],
        liters=parse_liters(data["liters"]),
        suffixes=tuple(str(s).lower().strip() for s in data.get("suffixes", ())),
        destination_rules=rules,
    )


def parse_route(data: dict[str, Any]) -> RouteDef:
    return RouteDef(
        destination=normalize_key(data["destination"]),
        liters=parse_liters(data["liters"]),
        aliases=tuple(normalize_key(a) for a in data.get("aliases", ())),
    )


def parse_surcharge(kind: SurchargeKind, data: dict[str, Any]) -> SurchargeDef:
    return SurchargeDef(
        kind=kind,
        name=normalize_key(data["name"]),
        liters=parse_liters(data["liters"]),
        synonyms=tuple(normalize_key(s) for s in data.get("synonyms", ())),
    )


def parse_station(data: dict[str, Any]) -> StationDef:
    """
    Parse a StationDef from a dict.

    Preconditions:
        - ``data`` has ``station`` and ``direction`` keys; ``direction`` is
          one of going / returning / both.
    Raises:
        KeyError: if a required key is missing.
        ValueError: if direction is not a StationDirection value.
        UnknownCheckpointError: if a field name is not a ledger field.
    """
    return StationDef(
        station=normalize_key(data["station"]),
        direction=StationDirection(str(data["direction"]).lower()),
        going_field=_optional_field(data.get("going_field")),
        returning_field=_optional_field(data.get("returning_field")),
        going_liters=_optional_liters(data.get("going_liters")),
        returning_liters=_optional_liters(data.get("returning_liters")),
        rate=_optional_liters(data.get("rate")),
        aliases=tuple(normalize_key(a) for a in data.get("aliases", ())),
    )


def parse_forwarding_route(data: dict[str, Any]) -> ForwardingRouteDef:
    return ForwardingRouteDef(
        source_station=normalize_key(data["source"]),
        target_station=normalize_key(data["target"]),
        default_liters=parse_liters(data["liters"]),
        rate=parse_liters(data["rate"]),
        currency=data.get("currency", "USD"),
    )


def parse_going_fill_override(data: dict[str, Any]) -> GoingFillOverrideDef:
    return GoingFillOverrideDef(
        destination=normalize_key(data["destination"]),
        liters=parse_liters(data["liters"]),
        aliases=tuple(normalize_key(a) for a in data.get("aliases", ())),
    )


def parse_snapshot(data: dict[str, Any]) -> FuelConfigSnapshot:
    """
    Parse a complete configuration set into a FuelConfigSnapshot.

    Postconditions:
        - The snapshot's ``checksum`` is ``compute_checksum(data)``.
    """
    defaults = data.get("defaults", {})
    surcharges = data.get("surcharges", {})
    explicit_extra = defaults.get("extra_fuel")

    return FuelConfigSnapshot(
        version=str(data.get("version", "1")),
        truck_batches=tuple(parse_truck_batch(b) for b in data.get("truck_batches", ())),
        routes=tuple(parse_route(r) for r in data.get("routes", ())),
        surcharges=(
            tuple(
                parse_surcharge(SurchargeKind.LOADING_POINT, s)
                for s in surcharges.get("loading_points", ())
            )
            + tuple(
                parse_surcharge(SurchargeKind.DESTINATION, s)
                for s in surcharges.get("destinations", ())
            )
        ),
        stations=tuple(parse_station(s) for s in data.get("stations", ())),
        forwarding_routes=tuple(
            parse_forwarding_route(f) for f in data.get("forwarding_routes", ())
        ),
        going_fill_overrides=tuple(
            parse_going_fill_override(o) for o in data.get("going_fill_overrides", ())
        ),
        below_checkpoint_stations=frozenset(data.get("below_checkpoint_stations", ())),
        cancellation_points=tuple(
            (normalize_key(name), normalize_key(station))
            for name, station in (data.get("cancellation_points") or {}).items()
        ),
        default_route_liters=parse_liters(defaults.get("route_liters", 2200)),
        explicit_default_extra_fuel=_optional_liters(explicit_extra),
        default_rate=parse_liters(defaults.get("fuel_rate", 1450)),
        default_final_destination=normalize_key(defaults.get("final_destination", "DAR")),
        reserve_checkpoint=CheckpointField.parse(
            defaults.get("reserve_checkpoint", CheckpointField.ZAMBIA_GOING.value)
        ),
        going_reserve_liters=parse_liters(defaults.get("going_reserve_liters", 900)),
        lookback_days=int(defaults.get("lookback_days", 120)),
        checksum=compute_checksum(data),
    )


def load_snapshot(path: Path) -> FuelConfigSnapshot:
    """Load and parse a YAML configuration set."""
    return parse_snapshot(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Postconditions:
        - Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
