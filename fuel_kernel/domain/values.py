"""
Values -- Tagged domain enums for the fuel ledger.

Responsibility:
    Provides the closed vocabularies that every layer matches on: DO
    direction, journey leg, station direction, resolution confidence,
    fuel record state, pending-configuration reasons, match types and the
    fixed set of ledger checkpoint fields.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by models, engines, config and services.

Invariants enforced:
    - Checkpoint fields are a closed set; any other field name is rejected
      by CheckpointField.parse (UnknownCheckpointError).
    - Every DO direction maps to exactly one journey leg.

Failure modes:
    - UnknownCheckpointError from CheckpointField.parse.
"""

from __future__ import annotations

from enum import Enum, unique

from fuel_kernel.exceptions import UnknownCheckpointError


@unique
class Direction(str, Enum):
    """Delivery order direction as written on the order."""

    IMPORT = "IMPORT"
    EXPORT = "EXPORT"

    @property
    def leg(self) -> JourneyLeg:
        return JourneyLeg.GOING if self is Direction.IMPORT else JourneyLeg.RETURNING


@unique
class JourneyLeg(str, Enum):
    """Outbound (going) or inbound (returning) half of a round trip."""

    GOING = "going"
    RETURNING = "returning"


@unique
class StationDirection(str, Enum):
    """Which legs a fuel station serves."""

    GOING = "going"
    RETURNING = "returning"
    BOTH = "both"


@unique
class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@unique
class OrderType(str, Enum):
    """Delivery order family. SDO orders never touch fuel records."""

    DO = "DO"
    SDO = "SDO"


@unique
class FuelRecordState(str, Enum):
    """Journey state of a fuel record.

    LOCKED is not a state: it is the orthogonal ``is_locked`` flag.
    """

    OPEN = "open"
    CLOSED = "closed"
    CANCELLED = "cancelled"


@unique
class PendingConfigReason(str, Enum):
    """Why a fuel record is locked awaiting administrator action."""

    MISSING_TOTAL_LITERS = "missing_total_liters"
    MISSING_EXTRA_FUEL = "missing_extra_fuel"
    BOTH = "both"
    OVERDRAWN = "overdrawn"


@unique
class MatchType(str, Enum):
    EXACT = "exact"
    PARTIAL = "partial"
    FUZZY = "fuzzy"
    DEFAULT = "default"


@unique
class SurchargeKind(str, Enum):
    LOADING_POINT = "loading_point"
    DESTINATION = "destination"


@unique
class PaymentMode(str, Enum):
    """How an LPO entry is paid.

    DRIVER_ACCOUNT entries are charged to the driver and never debit the
    truck's ledger.
    """

    LPO = "LPO"
    CASH = "CASH"
    DRIVER_ACCOUNT = "DRIVER_ACCOUNT"


@unique
class CheckpointField(str, Enum):
    """Ledger fields of a fuel record, in route order.

    Values are the persisted column names.
    """

    MMSA_YARD = "mmsa_yard"
    TANGA_YARD = "tanga_yard"
    DAR_YARD = "dar_yard"
    DAR_GOING = "dar_going"
    MORO_GOING = "moro_going"
    MBEYA_GOING = "mbeya_going"
    TDM_GOING = "tdm_going"
    ZAMBIA_GOING = "zambia_going"
    CONGO_FUEL = "congo_fuel"
    ZAMBIA_RETURN = "zambia_return"
    TUNDUMA_RETURN = "tunduma_return"
    MBEYA_RETURN = "mbeya_return"
    MORO_RETURN = "moro_return"
    DAR_RETURN = "dar_return"
    TANGA_RETURN = "tanga_return"

    @classmethod
    def parse(cls, value: str | CheckpointField) -> CheckpointField:
        """Accept a member, its column name, or the camelCase wire name."""
        if isinstance(value, CheckpointField):
            return value
        key = _CAMEL_ALIASES.get(value, value)
        try:
            return cls(key)
        except ValueError:
            raise UnknownCheckpointError(str(value)) from None

    @property
    def leg(self) -> JourneyLeg | None:
        """Journey leg this field belongs to; None for yard dispenses."""
        if self in YARD_FIELDS:
            return None
        if self in RETURN_FIELDS:
            return JourneyLeg.RETURNING
        return JourneyLeg.GOING


YARD_FIELDS: frozenset[CheckpointField] = frozenset({
    CheckpointField.MMSA_YARD,
    CheckpointField.TANGA_YARD,
    CheckpointField.DAR_YARD,
})

GOING_FIELDS: frozenset[CheckpointField] = frozenset({
    CheckpointField.DAR_GOING,
    CheckpointField.MORO_GOING,
    CheckpointField.MBEYA_GOING,
    CheckpointField.TDM_GOING,
    CheckpointField.ZAMBIA_GOING,
    CheckpointField.CONGO_FUEL,
})

RETURN_FIELDS: frozenset[CheckpointField] = frozenset({
    CheckpointField.ZAMBIA_RETURN,
    CheckpointField.TUNDUMA_RETURN,
    CheckpointField.MBEYA_RETURN,
    CheckpointField.MORO_RETURN,
    CheckpointField.DAR_RETURN,
    CheckpointField.TANGA_RETURN,
})

_CAMEL_ALIASES: dict[str, str] = {
    "mmsaYard": "mmsa_yard",
    "tangaYard": "tanga_yard",
    "darYard": "dar_yard",
    "darGoing": "dar_going",
    "moroGoing": "moro_going",
    "mbeyaGoing": "mbeya_going",
    "tdmGoing": "tdm_going",
    "zambiaGoing": "zambia_going",
    "congoFuel": "congo_fuel",
    "zambiaReturn": "zambia_return",
    "tundumaReturn": "tunduma_return",
    "mbeyaReturn": "mbeya_return",
    "moroReturn": "moro_return",
    "darReturn": "dar_return",
    "tangaReturn": "tanga_return",
}


def normalize_key(value: str | None) -> str:
    """Configuration key form: upper-case, "_" as space, single spaces."""
    if not value:
        return ""
    return " ".join(value.replace("_", " ").upper().split())
