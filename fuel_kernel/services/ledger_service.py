"""
LedgerService -- the only writer of fuel records.

Responsibility:
    Opens fuel records, applies and reverts checkpoint debits, attaches
    and detaches return legs, records administrator-supplied
    configuration, cancels records and repairs a drifted balance.  Every
    mutation recomputes the balance from the sum invariant and re-evaluates
    the lock flag.

Architecture position:
    Kernel > Services -- imperative shell.
    Callers resolve configuration values (route liters, extra fuel,
    additional fuel) above the kernel and pass them in as plain Decimals.

Invariants enforced:
    - balance = (total_liters or 0) + (extra or 0) + sum(checkpoint fields)
      after every mutation.
    - Before a debit the stored balance is checked against the stored
      fields; a mismatch refuses the debit (BalanceInvariantViolationError)
      until ``reconcile_balance`` runs.
    - A negative balance locks the record with a reason; the debit is
      still recorded.
    - Every mutation loads the record with SELECT ... FOR UPDATE and is
      guarded by the version column.

Failure modes:
    - FuelRecordNotFoundError: unknown record id.
    - FuelRecordCancelledError: mutating a cancelled record.
    - UnknownCheckpointError: field name is not a ledger field.
    - BalanceInvariantViolationError: stored balance has drifted.
    - OptimisticLockError: a concurrent transaction updated the record.

Audit relevance:
    Each mutation logs a snake_case event (``checkpoint_debited``,
    ``fuel_record_locked``, ``return_leg_attached``, ...) with the record
    id, truck and liters.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm.exc import StaleDataError

from fuel_kernel.domain.balance import (
    debited_value,
    expected_balance,
    lock_reason,
    missing_configuration,
    reverted_value,
)
from fuel_kernel.domain.dtos import FuelRecordInfo
from fuel_kernel.domain.truck_number import normalize_truck_no
from fuel_kernel.domain.values import (
    RETURN_FIELDS,
    CheckpointField,
    JourneyLeg,
    PendingConfigReason,
)
from fuel_kernel.exceptions import (
    BalanceInvariantViolationError,
    FuelRecordCancelledError,
    FuelRecordNotFoundError,
    OptimisticLockError,
)
from fuel_kernel.logging_config import LogContext, get_logger
from fuel_kernel.models.fuel_record import FuelRecord
from fuel_kernel.services.base import BaseService

logger = get_logger("services.ledger")

_ZERO = Decimal("0")


class LedgerService(BaseService[FuelRecord]):
    """
    Fuel record mutations.

    Contract:
        Every public method takes a record id (or the values for a new
        record), performs one mutation, flushes, and returns the updated
        FuelRecordInfo.  Nothing is committed.

    Guarantees:
        - The sum invariant holds on every record this service flushes.
        - Locks set for a configuration gap are cleared only by
          ``supply_configuration``; ``overdrawn`` locks clear as soon as
          the balance is back at or above zero.
    """

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load_for_update(self, record_id: UUID) -> FuelRecord:
        record = self.session.execute(
            select(FuelRecord)
            .where(FuelRecord.id == record_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if record is None:
            raise FuelRecordNotFoundError(str(record_id))
        return record

    def _load_active(self, record_id: UUID) -> FuelRecord:
        record = self._load_for_update(record_id)
        if record.is_cancelled:
            raise FuelRecordCancelledError(str(record_id))
        return record

    def _flush(self, record: FuelRecord) -> None:
        try:
            self.session.flush()
        except StaleDataError as exc:
            raise OptimisticLockError("FuelRecord", str(record.id)) from exc

    def _verify_balance(self, record: FuelRecord) -> None:
        expected = expected_balance(
            record.total_liters, record.extra, record.checkpoint_values().values()
        )
        if record.balance != expected:
            logger.error(
                "balance_invariant_violated",
                extra={
                    "fuel_record_id": str(record.id),
                    "truck_no": record.truck_no,
                    "stored_balance": record.balance,
                    "expected_balance": expected,
                },
            )
            raise BalanceInvariantViolationError(str(record.id), record.balance, expected)

    def _recompute(self, record: FuelRecord) -> None:
        """Apply the sum invariant and re-evaluate the lock flag."""
        record.balance = expected_balance(
            record.total_liters, record.extra, record.checkpoint_values().values()
        )
        reason = lock_reason(record.total_liters, record.extra, record.balance)
        if reason is not None:
            if not record.is_locked or record.pending_config_reason != reason.value:
                logger.warning(
                    "fuel_record_locked",
                    extra={
                        "fuel_record_id": str(record.id),
                        "truck_no": record.truck_no,
                        "reason": reason.value,
                        "balance": record.balance,
                    },
                )
            record.is_locked = True
            record.pending_config_reason = reason.value
        elif record.is_locked and record.pending_config_reason == PendingConfigReason.OVERDRAWN.value:
            record.is_locked = False
            record.pending_config_reason = None
            logger.info(
                "fuel_record_unlocked",
                extra={"fuel_record_id": str(record.id), "truck_no": record.truck_no},
            )

    def _touch(self, record: FuelRecord, actor: str | None) -> None:
        if actor is not None:
            record.updated_by = actor

    # ------------------------------------------------------------------
    # Record lifecycle
    # ------------------------------------------------------------------

    def open_record(
        self,
        *,
        truck_no: str,
        going_do: str,
        record_date: date,
        from_location: str,
        to_location: str,
        start: str,
        total_liters: Decimal | None,
        extra: Decimal | None,
        actor: str | None = None,
    ) -> FuelRecordInfo:
        """
        Open the ledger for a going delivery order.

        ``total_liters`` / ``extra`` are None when the route or truck batch
        is not configured; the record is then locked with the matching
        reason until ``supply_configuration`` fills it in.
        """
        record = FuelRecord(
            truck_no=normalize_truck_no(truck_no),
            record_date=record_date,
            going_do=going_do,
            start=start,
            from_location=from_location,
            to_location=to_location,
            total_liters=total_liters,
            extra=extra,
            additional_fuel=_ZERO,
            balance=expected_balance(total_liters, extra, ()),
            created_by=actor,
        )
        for field in CheckpointField:
            record.set_checkpoint(field, _ZERO)

        reason = missing_configuration(total_liters, extra)
        if reason is not None:
            record.is_locked = True
            record.pending_config_reason = reason.value

        self.session.add(record)
        self._flush(record)

        logger.info(
            "fuel_record_opened",
            extra={
                "fuel_record_id": str(record.id),
                "truck_no": record.truck_no,
                "going_do": going_do,
                "total_liters": total_liters,
                "extra": extra,
                "balance": record.balance,
            },
        )
        if reason is not None:
            logger.warning(
                "fuel_record_locked",
                extra={
                    "fuel_record_id": str(record.id),
                    "truck_no": record.truck_no,
                    "reason": reason.value,
                    "balance": record.balance,
                },
            )
        return FuelRecordInfo.from_model(record)

    def cancel_record(
        self,
        record_id: UUID,
        reason: str,
        actor: str | None = None,
    ) -> FuelRecordInfo:
        """Soft-cancel a record.  Cancelling a cancelled record is a no-op."""
        record = self._load_for_update(record_id)
        if record.is_cancelled:
            return FuelRecordInfo.from_model(record)

        record.is_cancelled = True
        record.cancellation_reason = reason
        record.cancelled_at = self.clock.now()
        record.cancelled_by = actor
        self._touch(record, actor)
        self._flush(record)

        logger.info(
            "fuel_record_cancelled",
            extra={
                "fuel_record_id": str(record.id),
                "truck_no": record.truck_no,
                "reason": reason,
            },
        )
        return FuelRecordInfo.from_model(record)

    def relink_truck(
        self,
        record_id: UUID,
        truck_no: str,
        actor: str | None = None,
    ) -> FuelRecordInfo:
        """Re-point a record to a corrected truck number."""
        record = self._load_active(record_id)
        old_truck_no = record.truck_no
        record.truck_no = normalize_truck_no(truck_no)
        self._touch(record, actor)
        self._flush(record)

        logger.info(
            "fuel_record_relinked",
            extra={
                "fuel_record_id": str(record.id),
                "old_truck_no": old_truck_no,
                "new_truck_no": record.truck_no,
            },
        )
        return FuelRecordInfo.from_model(record)

    def update_locations(
        self,
        record_id: UUID,
        leg: JourneyLeg,
        *,
        from_location: str | None = None,
        to_location: str | None = None,
        actor: str | None = None,
    ) -> FuelRecordInfo:
        """
        Change the from/to of one leg.

        Going-leg locations live in ``original_going_from/to`` once a
        return leg has re-pointed from/to; otherwise in from/to.
        """
        record = self._load_active(record_id)
        going_preserved = record.original_going_from is not None or record.original_going_to is not None
        if leg is JourneyLeg.GOING and going_preserved:
            if from_location is not None:
                record.original_going_from = from_location
            if to_location is not None:
                record.original_going_to = to_location
        else:
            if from_location is not None:
                record.from_location = from_location
            if to_location is not None:
                record.to_location = to_location
        self._touch(record, actor)
        self._flush(record)

        logger.info(
            "fuel_record_locations_updated",
            extra={
                "fuel_record_id": str(record.id),
                "leg": leg.value,
                "from_location": from_location,
                "to_location": to_location,
            },
        )
        return FuelRecordInfo.from_model(record)

    # ------------------------------------------------------------------
    # Debits
    # ------------------------------------------------------------------

    def apply_checkpoint_debit(
        self,
        record_id: UUID,
        checkpoint_field: CheckpointField | str,
        liters: Decimal,
        actor: str | None = None,
    ) -> FuelRecordInfo:
        """
        Debit ``liters`` at a checkpoint.

        The field is decreased by ``liters`` (repeated debits accumulate)
        and the balance recomputed.  A negative balance locks the record;
        the debit is recorded regardless.

        Raises:
            BalanceInvariantViolationError: stored balance has drifted;
                nothing is written.
        """
        field = CheckpointField.parse(checkpoint_field)
        record = self._load_active(record_id)
        self._verify_balance(record)

        record.set_checkpoint(field, debited_value(record.get_checkpoint(field), liters))
        self._recompute(record)
        self._touch(record, actor)
        self._flush(record)

        with LogContext.bind(fuel_record_id=str(record.id), truck_no=record.truck_no):
            logger.info(
                "checkpoint_debited",
                extra={
                    "checkpoint_field": field.value,
                    "liters": liters,
                    "checkpoint_value": record.get_checkpoint(field),
                    "balance": record.balance,
                    "is_locked": record.is_locked,
                },
            )
        return FuelRecordInfo.from_model(record)

    def revert_checkpoint_debit(
        self,
        record_id: UUID,
        checkpoint_field: CheckpointField | str,
        liters: Decimal,
        actor: str | None = None,
    ) -> FuelRecordInfo:
        """Give back ``liters`` previously debited at a checkpoint."""
        field = CheckpointField.parse(checkpoint_field)
        record = self._load_active(record_id)
        self._verify_balance(record)

        record.set_checkpoint(field, reverted_value(record.get_checkpoint(field), liters))
        self._recompute(record)
        self._touch(record, actor)
        self._flush(record)

        logger.info(
            "checkpoint_debit_reverted",
            extra={
                "fuel_record_id": str(record.id),
                "checkpoint_field": field.value,
                "liters": liters,
                "balance": record.balance,
            },
        )
        return FuelRecordInfo.from_model(record)

    # ------------------------------------------------------------------
    # Return leg
    # ------------------------------------------------------------------

    def attach_return_leg(
        self,
        record_id: UUID,
        *,
        return_do: str,
        return_loading_point: str,
        additional_fuel: Decimal,
        actor: str | None = None,
    ) -> FuelRecordInfo:
        """
        Close the journey with its return DO.

        The going from/to are preserved once, from/to become
        return loading point -> journey start, and ``additional_fuel``
        replaces any previously applied top-up in the total.  Attaching
        again with new values (a changed return destination) is therefore
        idempotent in the total.
        """
        if additional_fuel < _ZERO:
            raise ValueError(f"Additional fuel must not be negative, got {additional_fuel}")
        record = self._load_active(record_id)

        if record.original_going_from is None and record.original_going_to is None:
            record.original_going_from = record.from_location
            record.original_going_to = record.to_location
        record.from_location = return_loading_point
        record.to_location = record.start

        previous = record.additional_fuel or _ZERO
        if record.total_liters is not None:
            record.total_liters = record.total_liters - previous + additional_fuel
        record.additional_fuel = additional_fuel
        record.return_do = return_do
        self._recompute(record)
        self._touch(record, actor)
        self._flush(record)

        logger.info(
            "return_leg_attached",
            extra={
                "fuel_record_id": str(record.id),
                "truck_no": record.truck_no,
                "return_do": return_do,
                "return_loading_point": return_loading_point,
                "additional_fuel": additional_fuel,
                "total_liters": record.total_liters,
                "balance": record.balance,
            },
        )
        return FuelRecordInfo.from_model(record)

    def detach_return_leg(
        self,
        record_id: UUID,
        actor: str | None = None,
    ) -> FuelRecordInfo:
        """
        Reopen the journey: remove the return DO and everything it added.

        The top-up leaves the total, return-leg fields are cleared and
        from/to go back to the going values.
        """
        record = self._load_active(record_id)
        return_do = record.return_do

        if record.total_liters is not None:
            record.total_liters = record.total_liters - (record.additional_fuel or _ZERO)
        record.additional_fuel = _ZERO
        for field in RETURN_FIELDS:
            record.set_checkpoint(field, _ZERO)
        if record.original_going_from is not None:
            record.from_location = record.original_going_from
        if record.original_going_to is not None:
            record.to_location = record.original_going_to
        record.original_going_from = None
        record.original_going_to = None
        record.return_do = None
        self._recompute(record)
        self._touch(record, actor)
        self._flush(record)

        logger.info(
            "return_leg_detached",
            extra={
                "fuel_record_id": str(record.id),
                "truck_no": record.truck_no,
                "return_do": return_do,
                "total_liters": record.total_liters,
                "balance": record.balance,
            },
        )
        return FuelRecordInfo.from_model(record)

    # ------------------------------------------------------------------
    # Administrator actions
    # ------------------------------------------------------------------

    def supply_configuration(
        self,
        record_id: UUID,
        *,
        total_liters: Decimal | None = None,
        extra: Decimal | None = None,
        actor: str | None = None,
    ) -> FuelRecordInfo:
        """
        Fill in missing allocation values and clear the lock when possible.

        Values left as None keep what is stored.  The record unlocks when
        both values are present and the balance is not negative.
        """
        record = self._load_active(record_id)
        if total_liters is not None:
            record.total_liters = total_liters + (record.additional_fuel or _ZERO)
        if extra is not None:
            record.extra = extra

        record.balance = expected_balance(
            record.total_liters, record.extra, record.checkpoint_values().values()
        )
        reason = missing_configuration(record.total_liters, record.extra)
        if reason is None:
            reason = lock_reason(record.total_liters, record.extra, record.balance)
        record.is_locked = reason is not None
        record.pending_config_reason = reason.value if reason is not None else None
        self._touch(record, actor)
        self._flush(record)

        logger.info(
            "fuel_record_configuration_supplied",
            extra={
                "fuel_record_id": str(record.id),
                "total_liters": record.total_liters,
                "extra": record.extra,
                "balance": record.balance,
                "is_locked": record.is_locked,
                "reason": record.pending_config_reason,
            },
        )
        return FuelRecordInfo.from_model(record)

    def reconcile_balance(
        self,
        record_id: UUID,
        actor: str | None = None,
    ) -> FuelRecordInfo:
        """Rewrite the stored balance from the stored fields."""
        record = self._load_for_update(record_id)
        stored = record.balance
        self._recompute(record)
        self._touch(record, actor)
        self._flush(record)

        if stored != record.balance:
            logger.warning(
                "balance_reconciled",
                extra={
                    "fuel_record_id": str(record.id),
                    "stored_balance": stored,
                    "balance": record.balance,
                },
            )
        return FuelRecordInfo.from_model(record)
