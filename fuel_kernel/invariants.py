"""
Kernel Invariants Contract.

These invariants are structural law for the fuel ledger. No configuration
set may override them.

This module exists solely to declare these invariants explicitly. The
enforcement is distributed across LedgerService, LPOService and the
ConsistencyManager.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel.

    Configuration may influence *how many* liters are allocated, but
    never *whether* these rules apply.
    """

    BALANCE_SUM = "balance_sum"
    """balance == total_liters + extra + sum(checkpoint fields), with unset
    totals counted as zero. Recomputed by LedgerService after every write
    and verified before every debit."""

    NEGATIVE_BALANCE_LOCK = "negative_balance_lock"
    """A record whose balance is negative is locked with a pending
    configuration reason. The debit is still recorded."""

    SINGLE_ACTIVE_LEG = "single_active_leg"
    """At most one active going and one active returning DO per truck per
    open journey. A fuel record holds one going_do and at most one
    return_do."""

    NO_DUPLICATE_ALLOCATION = "no_duplicate_allocation"
    """A truck may not hold two active LPO entries at the same station with
    the same liters. Different liters are a top-up. Enforced by
    LPOService.check_duplicate."""

    SOFT_CANCEL = "soft_cancel"
    """Delivery orders, fuel records and LPO entries are never deleted;
    cancellation sets a flag and a reason."""

    RECORD_LOCKING = "record_locking"
    """Every ledger mutation loads the record with SELECT ... FOR UPDATE
    and is version-checked on flush."""


# All invariants as a frozenset for programmatic checks.
ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)

# The kernel package may not import from these packages.
# This is enforced by tests/architecture/test_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "fuel_services",
    "fuel_config",
    "fuel_engines",
)
