"""
Typed Exception Hierarchy for the Fuel Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Fuel bookkeeping errors must be handled precisely. Callers catch by type
and read structured attributes instead of parsing message strings:

    try:
        ledger.apply_checkpoint_debit(record_id, field, liters)
    except BalanceInvariantViolationError as e:
        alert_admin(e.fuel_record_id, e.stored_balance, e.expected_balance)

Every exception has a ``code`` class attribute (machine-readable, API-safe)
and carries the context it was raised with as attributes.

"No match" conditions are NOT exceptions: resolvers return typed results
(``matched=False``) or ``None``.  Exceptions are reserved for requests the
engine must refuse.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    FuelKernelError (base)
    |
    +-- ConfigurationError
    |   +-- UnknownStationError
    |   +-- ConfigurationValidationError
    |
    +-- LedgerError
    |   +-- FuelRecordNotFoundError
    |   +-- UnknownCheckpointError
    |   +-- FuelRecordCancelledError
    |   +-- BalanceInvariantViolationError
    |
    +-- DeliveryOrderError
    |   +-- DeliveryOrderNotFoundError
    |   +-- ActiveJourneyConflictError
    |
    +-- PurchaseOrderError
    |   +-- DuplicateAllocationError
    |   +-- LPOEntryNotFoundError
    |   +-- InvalidForwardingError
    |
    +-- ConcurrencyError
        +-- OptimisticLockError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|----------------------------------
Configuration   | UNKNOWN_STATION               | Station has no checkpoint mapping
                | CONFIGURATION_INVALID         | Config set fails validation
----------------|-------------------------------|----------------------------------
Ledger          | FUEL_RECORD_NOT_FOUND         | Record ID / DO has no record
                | UNKNOWN_CHECKPOINT            | Field name is not a ledger field
                | FUEL_RECORD_CANCELLED         | Mutating a cancelled record
                | BALANCE_INVARIANT_VIOLATION   | Stored balance != recomputed sum
----------------|-------------------------------|----------------------------------
Delivery order  | DELIVERY_ORDER_NOT_FOUND      | DO number / ID doesn't exist
                | ACTIVE_JOURNEY_CONFLICT       | Second active leg in open journey
----------------|-------------------------------|----------------------------------
Purchase order  | DUPLICATE_ALLOCATION          | Same truck+station+liters active
                | LPO_ENTRY_NOT_FOUND           | Entry ID doesn't exist
                | INVALID_FORWARDING            | Forwarding request rejected
----------------|-------------------------------|----------------------------------
Concurrency     | OPTIMISTIC_LOCK_CONFLICT      | Concurrent modification detected
"""

from decimal import Decimal


class FuelKernelError(Exception):
    """
    Base exception for all fuel kernel errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "FUEL_KERNEL_ERROR"


# Configuration-related exceptions


class ConfigurationError(FuelKernelError):
    """Base exception for configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class UnknownStationError(ConfigurationError):
    """Station is not present in the station checkpoint map."""

    code: str = "UNKNOWN_STATION"

    def __init__(self, station: str):
        self.station = station
        super().__init__(f"Station has no checkpoint mapping: {station!r}")


class ConfigurationValidationError(ConfigurationError):
    """A configuration set failed structural validation."""

    code: str = "CONFIGURATION_INVALID"

    def __init__(self, errors: list[str], source: str | None = None):
        self.errors = list(errors)
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(
            f"Configuration invalid{where}: " + "; ".join(self.errors)
        )


# Ledger-related exceptions


class LedgerError(FuelKernelError):
    """Base exception for fuel ledger errors."""

    code: str = "LEDGER_ERROR"


class FuelRecordNotFoundError(LedgerError):
    """Fuel record with given ID (or for given DO) was not found."""

    code: str = "FUEL_RECORD_NOT_FOUND"

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"Fuel record not found: {reference}")


class UnknownCheckpointError(LedgerError):
    """Checkpoint field name is not one of the ledger fields."""

    code: str = "UNKNOWN_CHECKPOINT"

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Unknown checkpoint field: {field_name!r}")


class FuelRecordCancelledError(LedgerError):
    """Attempted to mutate a cancelled fuel record."""

    code: str = "FUEL_RECORD_CANCELLED"

    def __init__(self, fuel_record_id: str):
        self.fuel_record_id = fuel_record_id
        super().__init__(f"Fuel record {fuel_record_id} is cancelled")


class BalanceInvariantViolationError(LedgerError):
    """Stored balance disagrees with the checkpoint sum.

    The record refuses further debits until reconciled.
    """

    code: str = "BALANCE_INVARIANT_VIOLATION"

    def __init__(
        self,
        fuel_record_id: str,
        stored_balance: Decimal,
        expected_balance: Decimal,
    ):
        self.fuel_record_id = fuel_record_id
        self.stored_balance = stored_balance
        self.expected_balance = expected_balance
        super().__init__(
            f"Fuel record {fuel_record_id} balance {stored_balance} does not "
            f"match checkpoint sum {expected_balance}; reconcile before debiting"
        )


# Delivery-order-related exceptions


class DeliveryOrderError(FuelKernelError):
    """Base exception for delivery order errors."""

    code: str = "DELIVERY_ORDER_ERROR"


class DeliveryOrderNotFoundError(DeliveryOrderError):
    """Delivery order with given number or ID was not found."""

    code: str = "DELIVERY_ORDER_NOT_FOUND"

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"Delivery order not found: {reference}")


class ActiveJourneyConflictError(DeliveryOrderError):
    """The truck already has an active order for this leg of its open journey."""

    code: str = "ACTIVE_JOURNEY_CONFLICT"

    def __init__(self, truck_no: str, direction: str, existing_do: str):
        self.truck_no = truck_no
        self.direction = direction
        self.existing_do = existing_do
        super().__init__(
            f"Truck {truck_no} already has active {direction} order {existing_do} "
            "in its open journey"
        )


# Purchase-order-related exceptions


class PurchaseOrderError(FuelKernelError):
    """Base exception for LPO errors."""

    code: str = "PURCHASE_ORDER_ERROR"


class DuplicateAllocationError(PurchaseOrderError):
    """An active LPO already allocates the same liters to this truck and station."""

    code: str = "DUPLICATE_ALLOCATION"

    def __init__(
        self,
        truck_no: str,
        station: str,
        liters: Decimal,
        existing_lpo_no: str,
    ):
        self.truck_no = truck_no
        self.station = station
        self.liters = liters
        self.existing_lpo_no = existing_lpo_no
        self.reason = "duplicate"
        super().__init__(
            f"Truck {truck_no} already has {liters}L at {station} "
            f"on active LPO {existing_lpo_no}"
        )


class LPOEntryNotFoundError(PurchaseOrderError):
    """LPO entry with given ID was not found."""

    code: str = "LPO_ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"LPO entry not found: {entry_id}")


class InvalidForwardingError(PurchaseOrderError):
    """Forwarding request cannot be applied."""

    code: str = "INVALID_FORWARDING"

    def __init__(self, source_station: str, target_station: str, reason: str):
        self.source_station = source_station
        self.target_station = target_station
        self.reason = reason
        super().__init__(
            f"Cannot forward {source_station} -> {target_station}: {reason}"
        )


# Concurrency-related exceptions


class ConcurrencyError(FuelKernelError):
    """Base exception for concurrency errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )
