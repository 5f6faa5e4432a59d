"""
fuel_services.configuration_service -- Administrator configuration tables.

Responsibility:
    CRUD over truck batches, batch destination rules, routes, surcharges
    and station checkpoints, and materialisation of the tables into a
    ``FuelConfigSnapshot`` the resolvers can take.

Architecture position:
    Services -- orchestration over kernel models and fuel_config.
    Writes kernel configuration models directly (as the kernel has no
    configuration write service) and reads back through
    ``ConfigurationSelector``.

Invariants enforced:
    - A suffix belongs to at most one batch: assigning a suffix removes
      it from every other batch in the same flush.
    - Keys are stored normalised (``normalize_key``); suffixes are stored
      lower-case.
    - Flush only.  The caller commits and then calls
      ``ConfigSnapshotCache.invalidate()``.

Failure modes:
    - KeyError from ``assign_suffix`` when the batch does not exist.
    - UnknownCheckpointError for a station field that is not a ledger field.

Audit relevance:
    Every mutation logs ``config_*`` events with the key and new value.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from fuel_config.loader import compute_checksum
from fuel_config.schema import (
    BatchDestinationRuleDef,
    FuelConfigSnapshot,
    RouteDef,
    StationDef,
    SurchargeDef,
    TruckBatchDef,
)
from fuel_kernel.domain.values import (
    CheckpointField,
    StationDirection,
    SurchargeKind,
    normalize_key,
)
from fuel_kernel.logging_config import get_logger
from fuel_kernel.models.configuration import (
    BatchDestinationRule,
    FuelRoute,
    FuelSurcharge,
    StationCheckpoint,
    TruckBatch,
    TruckBatchMember,
)
from fuel_kernel.selectors.config_selector import ConfigurationSelector

logger = get_logger("services.configuration")


def _suffix_key(suffix: str) -> str:
    return suffix.strip().lower()


def _field_value(value: CheckpointField | str | None) -> str | None:
    return CheckpointField.parse(value).value if value else None


class ConfigurationService:
    """
    Configuration CRUD and snapshot materialisation.

    Contract:
        Receives a Session; every mutation flushes and returns nothing.
        ``snapshot()`` reads the tables and returns a frozen snapshot.
    """

    def __init__(self, session: Session, actor: str | None = None):
        self._session = session
        self._actor = actor
        self._selector = ConfigurationSelector(session)

    # ------------------------------------------------------------------
    # Truck batches
    # ------------------------------------------------------------------

    def _batch(self, name: str) -> TruckBatch | None:
        return self._session.scalars(
            select(TruckBatch).where(TruckBatch.name == name)
        ).first()

    def upsert_batch(self, name: str, liters: Decimal, priority: int = 0) -> None:
        batch = self._batch(name)
        if batch is None:
            batch = TruckBatch(name=name, liters=liters, priority=priority, created_by=self._actor)
            self._session.add(batch)
        else:
            batch.liters = liters
            batch.priority = priority
            batch.updated_by = self._actor
        self._session.flush()
        logger.info(
            "config_batch_upserted",
            extra={"batch": name, "liters": liters, "priority": priority},
        )

    def assign_suffix(self, batch_name: str, suffix: str) -> None:
        """Put ``suffix`` in ``batch_name``, taking it out of any other batch."""
        batch = self._batch(batch_name)
        if batch is None:
            raise KeyError(f"Unknown truck batch: {batch_name}")
        key = _suffix_key(suffix)

        existing = self._session.scalars(
            select(TruckBatchMember).where(TruckBatchMember.suffix == key)
        ).first()
        if existing is not None:
            if existing.batch_id == batch.id:
                return
            previous = existing.batch.name
            existing.batch.members.remove(existing)
            self._session.flush()
            logger.info(
                "config_suffix_removed",
                extra={"suffix": key, "batch": previous},
            )

        batch.members.append(TruckBatchMember(suffix=key, created_by=self._actor))
        self._session.flush()
        logger.info("config_suffix_assigned", extra={"suffix": key, "batch": batch_name})

    def remove_suffix(self, suffix: str) -> bool:
        key = _suffix_key(suffix)
        member = self._session.scalars(
            select(TruckBatchMember).where(TruckBatchMember.suffix == key)
        ).first()
        if member is None:
            return False
        batch_name = member.batch.name
        member.batch.members.remove(member)
        self._session.flush()
        logger.info("config_suffix_removed", extra={"suffix": key, "batch": batch_name})
        return True

    def upsert_destination_rule(self, suffix: str, destination: str, liters: Decimal) -> None:
        key, dest = _suffix_key(suffix), normalize_key(destination)
        rule = self._session.scalars(
            select(BatchDestinationRule).where(
                BatchDestinationRule.suffix == key,
                BatchDestinationRule.destination == dest,
            )
        ).first()
        if rule is None:
            self._session.add(
                BatchDestinationRule(
                    suffix=key, destination=dest, liters=liters, created_by=self._actor
                )
            )
        else:
            rule.liters = liters
            rule.updated_by = self._actor
        self._session.flush()
        logger.info(
            "config_destination_rule_upserted",
            extra={"suffix": key, "destination": dest, "liters": liters},
        )

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    def upsert_route(
        self,
        destination: str,
        liters: Decimal,
        aliases: Sequence[str] = (),
    ) -> None:
        key = normalize_key(destination)
        route = self._session.scalars(
            select(FuelRoute).where(FuelRoute.destination == key)
        ).first()
        alias_keys = [normalize_key(a) for a in aliases]
        if route is None:
            self._session.add(
                FuelRoute(destination=key, liters=liters, aliases=alias_keys, created_by=self._actor)
            )
        else:
            route.liters = liters
            route.aliases = alias_keys
            route.updated_by = self._actor
        self._session.flush()
        logger.info("config_route_upserted", extra={"destination": key, "liters": liters})

    def remove_route(self, destination: str) -> bool:
        key = normalize_key(destination)
        result = self._session.execute(delete(FuelRoute).where(FuelRoute.destination == key))
        self._session.flush()
        if result.rowcount:
            logger.info("config_route_removed", extra={"destination": key})
        return bool(result.rowcount)

    # ------------------------------------------------------------------
    # Surcharges
    # ------------------------------------------------------------------

    def upsert_surcharge(
        self,
        kind: SurchargeKind,
        name: str,
        liters: Decimal,
        synonyms: Sequence[str] = (),
    ) -> None:
        key = normalize_key(name)
        surcharge = self._session.scalars(
            select(FuelSurcharge).where(
                FuelSurcharge.kind == kind.value,
                FuelSurcharge.name == key,
            )
        ).first()
        synonym_keys = [normalize_key(s) for s in synonyms]
        if surcharge is None:
            self._session.add(
                FuelSurcharge(
                    kind=kind.value,
                    name=key,
                    liters=liters,
                    synonyms=synonym_keys,
                    created_by=self._actor,
                )
            )
        else:
            surcharge.liters = liters
            surcharge.synonyms = synonym_keys
            surcharge.updated_by = self._actor
        self._session.flush()
        logger.info(
            "config_surcharge_upserted",
            extra={"kind": kind.value, "surcharge_name": key, "liters": liters},
        )

    def remove_surcharge(self, kind: SurchargeKind, name: str) -> bool:
        key = normalize_key(name)
        result = self._session.execute(
            delete(FuelSurcharge).where(
                FuelSurcharge.kind == kind.value,
                FuelSurcharge.name == key,
            )
        )
        self._session.flush()
        if result.rowcount:
            logger.info("config_surcharge_removed", extra={"kind": kind.value, "surcharge_name": key})
        return bool(result.rowcount)

    # ------------------------------------------------------------------
    # Stations
    # ------------------------------------------------------------------

    def upsert_station(
        self,
        station: str,
        direction: StationDirection,
        *,
        going_field: CheckpointField | str | None = None,
        returning_field: CheckpointField | str | None = None,
        going_liters: Decimal | None = None,
        returning_liters: Decimal | None = None,
        rate: Decimal | None = None,
        aliases: Sequence[str] = (),
    ) -> None:
        key = normalize_key(station)
        values: dict[str, Any] = {
            "direction": direction.value,
            "going_field": _field_value(going_field),
            "returning_field": _field_value(returning_field),
            "going_liters": going_liters,
            "returning_liters": returning_liters,
            "rate": rate,
            "aliases": [normalize_key(a) for a in aliases],
        }
        row = self._session.scalars(
            select(StationCheckpoint).where(StationCheckpoint.station == key)
        ).first()
        if row is None:
            self._session.add(StationCheckpoint(station=key, created_by=self._actor, **values))
        else:
            for name, value in values.items():
                setattr(row, name, value)
            row.updated_by = self._actor
        self._session.flush()
        logger.info(
            "config_station_upserted",
            extra={"station": key, "direction": direction.value},
        )

    def remove_station(self, station: str) -> bool:
        key = normalize_key(station)
        result = self._session.execute(
            delete(StationCheckpoint).where(StationCheckpoint.station == key)
        )
        self._session.flush()
        if result.rowcount:
            logger.info("config_station_removed", extra={"station": key})
        return bool(result.rowcount)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def seed_from_snapshot(self, snapshot: FuelConfigSnapshot) -> None:
        """Write a snapshot's batches, routes, surcharges and stations to the tables."""
        for priority, batch in enumerate(snapshot.truck_batches):
            self.upsert_batch(batch.name, batch.liters, priority)
            for suffix in batch.suffixes:
                self.assign_suffix(batch.name, suffix)
            for rule in batch.destination_rules:
                self.upsert_destination_rule(rule.suffix, rule.destination, rule.liters)
        for route in snapshot.routes:
            self.upsert_route(route.destination, route.liters, route.aliases)
        for surcharge in snapshot.surcharges:
            self.upsert_surcharge(
                surcharge.kind, surcharge.name, surcharge.liters, surcharge.synonyms
            )
        for station in snapshot.stations:
            self.upsert_station(
                station.station,
                station.direction,
                going_field=station.going_field,
                returning_field=station.returning_field,
                going_liters=station.going_liters,
                returning_liters=station.returning_liters,
                rate=station.rate,
                aliases=station.aliases,
            )
        logger.info(
            "config_seeded",
            extra={"config_version": snapshot.version, "checksum": snapshot.checksum},
        )

    def snapshot(self, base: FuelConfigSnapshot) -> FuelConfigSnapshot:
        """
        The tables as a snapshot.

        Batches, routes, surcharges and stations come from the tables;
        every other setting (defaults, forwarding routes, cancellation
        points, the below-checkpoint allowlist) comes from ``base``.
        """
        batches = tuple(
            TruckBatchDef(
                name=b.name,
                liters=b.liters,
                suffixes=b.suffixes,
                destination_rules=tuple(
                    BatchDestinationRuleDef(r.suffix, r.destination, r.liters)
                    for r in b.destination_rules
                ),
            )
            for b in self._selector.list_truck_batches()
        )
        routes = tuple(
            RouteDef(r.destination, r.liters, r.aliases)
            for r in self._selector.list_routes()
        )
        surcharges = tuple(
            SurchargeDef(s.kind, s.name, s.liters, s.synonyms)
            for s in self._selector.list_surcharges()
        )
        stations = tuple(
            StationDef(
                station=s.station,
                direction=s.direction,
                going_field=s.going_field,
                returning_field=s.returning_field,
                going_liters=s.going_liters,
                returning_liters=s.returning_liters,
                rate=s.rate,
                aliases=s.aliases,
            )
            for s in self._selector.list_station_checkpoints()
        )
        checksum = compute_checksum({
            "base": base.checksum,
            "truck_batches": [(b.name, b.liters, b.suffixes) for b in batches],
            "routes": [(r.destination, r.liters, r.aliases) for r in routes],
            "surcharges": [(s.kind.value, s.name, s.liters, s.synonyms) for s in surcharges],
            "stations": [(s.station, s.direction.value, s.checkpoint_field) for s in stations],
        })
        return replace(
            base,
            truck_batches=batches,
            routes=routes,
            surcharges=surcharges,
            stations=stations,
            checksum=checksum,
        )
