"""ORM models for the fuel kernel."""

from fuel_kernel.models.configuration import (
    BatchDestinationRule,
    FuelRoute,
    FuelSurcharge,
    StationCheckpoint,
    TruckBatch,
    TruckBatchMember,
)
from fuel_kernel.models.delivery_order import DeliveryOrder
from fuel_kernel.models.fuel_record import FuelRecord
from fuel_kernel.models.lpo_entry import LPOEntry

__all__ = [
    "BatchDestinationRule",
    "DeliveryOrder",
    "FuelRecord",
    "FuelRoute",
    "FuelSurcharge",
    "LPOEntry",
    "StationCheckpoint",
    "TruckBatch",
    "TruckBatchMember",
]
