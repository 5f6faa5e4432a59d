"""
Module: fuel_kernel.selectors.config_selector
Responsibility: Read-only listing of the administrator-maintained
    configuration tables: truck batches, routes, surcharges and station
    checkpoints.
Architecture position: Kernel > Selectors.  May import from models/,
    domain/ and selectors/base.py.  Building a FuelConfigSnapshot from these
    rows is done above the kernel (fuel_services.configuration_service).
"""

from collections import defaultdict

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from fuel_kernel.domain.dtos import (
    DestinationRuleInfo,
    RouteInfo,
    StationCheckpointInfo,
    SurchargeInfo,
    TruckBatchInfo,
)
from fuel_kernel.models.configuration import (
    BatchDestinationRule,
    FuelRoute,
    FuelSurcharge,
    StationCheckpoint,
    TruckBatch,
)
from fuel_kernel.selectors.base import BaseSelector


class ConfigurationSelector(BaseSelector[TruckBatch]):
    """Selector for configuration tables."""

    def list_truck_batches(self) -> list[TruckBatchInfo]:
        """Batches in lookup order (priority, then name)."""
        rules: dict[str, list[DestinationRuleInfo]] = defaultdict(list)
        for rule in self.session.scalars(
            select(BatchDestinationRule).order_by(
                BatchDestinationRule.suffix, BatchDestinationRule.destination
            )
        ):
            rules[rule.suffix].append(
                DestinationRuleInfo(rule.suffix, rule.destination, rule.liters)
            )

        batches = self.session.scalars(
            select(TruckBatch)
            .options(selectinload(TruckBatch.members))
            .order_by(TruckBatch.priority, TruckBatch.name)
        )
        result = []
        for batch in batches:
            batch_rules = tuple(
                r for m in batch.members for r in rules.get(m.suffix, ())
            )
            result.append(TruckBatchInfo.from_model(batch, batch_rules))
        return result

    def list_routes(self) -> list[RouteInfo]:
        return [
            RouteInfo.from_model(r)
            for r in self.session.scalars(select(FuelRoute).order_by(FuelRoute.destination))
        ]

    def list_surcharges(self) -> list[SurchargeInfo]:
        return [
            SurchargeInfo.from_model(s)
            for s in self.session.scalars(
                select(FuelSurcharge).order_by(FuelSurcharge.kind, FuelSurcharge.name)
            )
        ]

    def list_station_checkpoints(self) -> list[StationCheckpointInfo]:
        return [
            StationCheckpointInfo.from_model(s)
            for s in self.session.scalars(
                select(StationCheckpoint).order_by(StationCheckpoint.station)
            )
        ]
