"""
Balance -- Fuel record balance arithmetic.

Responsibility:
    The sum invariant, lock reasons and debit/revert arithmetic shared by
    LedgerService (which applies them) and the engines (which predict
    them).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - balance = (total_liters or 0) + (extra or 0) + sum(checkpoint fields).
    - Debits are stored negative and accumulate at a checkpoint.

Failure modes:
    - ValueError for non-positive debit or revert liters.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from fuel_kernel.domain.values import PendingConfigReason

_ZERO = Decimal("0")


def expected_balance(
    total_liters: Decimal | None,
    extra: Decimal | None,
    checkpoint_values: Iterable[Decimal],
) -> Decimal:
    """The balance the sum invariant requires."""
    return (total_liters or _ZERO) + (extra or _ZERO) + sum(checkpoint_values, _ZERO)


def missing_configuration(
    total_liters: Decimal | None,
    extra: Decimal | None,
) -> PendingConfigReason | None:
    """Which allocation values an administrator still has to supply."""
    if total_liters is None and extra is None:
        return PendingConfigReason.BOTH
    if total_liters is None:
        return PendingConfigReason.MISSING_TOTAL_LITERS
    if extra is None:
        return PendingConfigReason.MISSING_EXTRA_FUEL
    return None


def lock_reason(
    total_liters: Decimal | None,
    extra: Decimal | None,
    balance: Decimal,
) -> PendingConfigReason | None:
    """
    Reason to lock a record after a mutation, or None.

    A negative balance locks the record.  The reason names the missing
    configuration, or ``overdrawn`` when the configuration is complete and
    the fills simply exceed the allocation.
    """
    if balance >= _ZERO:
        return None
    return missing_configuration(total_liters, extra) or PendingConfigReason.OVERDRAWN


def debited_value(current: Decimal, liters: Decimal) -> Decimal:
    """Checkpoint value after debiting ``liters``."""
    if liters <= _ZERO:
        raise ValueError(f"Debit must be positive, got {liters}")
    return current - liters


def reverted_value(current: Decimal, liters: Decimal) -> Decimal:
    """Checkpoint value after giving ``liters`` back."""
    if liters <= _ZERO:
        raise ValueError(f"Reverted liters must be positive, got {liters}")
    return current + liters
