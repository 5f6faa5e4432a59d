"""
Tests for JourneyService.

Covers:
- Going orders open a fuel record with the resolved allocation
- Unmatched route or truck batch opens the record locked, never defaulted
- Return orders close the record with additional fuel
- Repricing a return leg replaces the top-up
- SDO orders and return orders without an open journey
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from fuel_kernel.domain.values import (
    Direction,
    FuelRecordState,
    MatchType,
    OrderType,
    PendingConfigReason,
)
from fuel_kernel.exceptions import FuelRecordNotFoundError
from fuel_kernel.selectors.journey_selector import JourneySelector


class TestGoingLeg:

    def test_opens_record_with_route_and_batch(self, record_going):
        update = record_going()

        record = update.fuel_record
        assert record.total_liters == Decimal("2100")
        assert record.extra == Decimal("100")
        assert record.balance == Decimal("2200")
        assert record.start == "DAR"
        assert record.from_location == "DAR ES SALAAM"
        assert record.to_location == "LUBUMBASHI"
        assert record.going_do == "DO-1001"
        assert update.route.match_type is MatchType.EXACT
        assert not update.needs_configuration

    def test_tanga_loading_point_starts_at_tanga(self, record_going):
        update = record_going(loading_point="TANGA PORT")

        assert update.fuel_record.start == "TANGA"

    def test_unmatched_route_locks_with_suggestions(self, record_going, captured_logs):
        update = record_going(destination="KAMBOWI")

        record = update.fuel_record
        assert record.total_liters is None
        assert record.is_locked
        assert record.pending_config_reason is PendingConfigReason.MISSING_TOTAL_LITERS
        assert update.needs_configuration
        assert "KAMBOVE" in update.route.suggestions

        opened = [r for r in captured_logs() if r["message"] == "journey_leg_opened"]
        assert opened[0]["route_match"] == "default"

    def test_unknown_suffix_locks(self, record_going):
        update = record_going(truck_no="T555 ZZZ")

        assert update.fuel_record.extra is None
        assert update.fuel_record.pending_config_reason is PendingConfigReason.MISSING_EXTRA_FUEL

    def test_both_unmatched(self, record_going):
        update = record_going(truck_no="T555 ZZZ", destination="TANGA")

        assert update.fuel_record.pending_config_reason is PendingConfigReason.BOTH

    def test_log_context_carries_order(self, record_going, captured_logs):
        record_going()

        opened = [r for r in captured_logs() if r["message"] == "journey_leg_opened"]
        assert opened[0]["do_number"] == "DO-1001"
        assert opened[0]["truck_no"] == "T103DNH"
        assert opened[0]["actor_id"] == "test-clerk"


class TestReturnLeg:

    def test_closes_with_additional_fuel(self, record_going, record_return):
        record_going()

        update = record_return()

        record = update.fuel_record
        # LUBUMBASHI 2100 going, KAMOA 2440 required: 340 delta + 40 surcharge
        assert update.additional_fuel.additional == Decimal("380")
        assert record.additional_fuel == Decimal("380")
        assert record.total_liters == Decimal("2480")
        assert record.balance == Decimal("2580")
        assert record.state is FuelRecordState.CLOSED
        assert record.return_do == "DO-2001"
        assert record.from_location == "KAMOA"
        assert record.to_location == "DAR"
        assert record.going_destination == "LUBUMBASHI"

    def test_destination_surcharge_for_tanga_journey(self, record_going, record_return):
        record_going(destination="KOLWEZI", loading_point="TANGA")

        update = record_return(destination="KAMOA")

        # 2440 - 2400 + 40; TANGA carries no destination surcharge
        assert update.additional_fuel.final_destination == "TANGA"
        assert update.additional_fuel.additional == Decimal("80")

    def test_return_without_open_record_has_no_ledger_effect(self, record_return, captured_logs):
        update = record_return()

        assert update.order.direction is Direction.EXPORT
        assert update.fuel_record is None
        assert any(r["message"] == "return_order_without_open_record" for r in captured_logs())

    def test_reprice_replaces_top_up(self, journey, record_going, record_return):
        record_going()
        closed = record_return().fuel_record

        update = journey.reprice_return_leg(closed.id, "KALONGWE")

        # 2440 - 2100 + 60
        assert update.additional_fuel.additional == Decimal("400")
        assert update.fuel_record.total_liters == Decimal("2500")
        assert update.fuel_record.from_location == "KALONGWE"
        assert update.order.order_number == "DO-2001"

    def test_reprice_is_idempotent(self, journey, record_going, record_return):
        record_going()
        closed = record_return().fuel_record

        first = journey.reprice_return_leg(closed.id, "KAMOA")
        second = journey.reprice_return_leg(closed.id, "KAMOA")

        assert first.fuel_record.total_liters == second.fuel_record.total_liters == Decimal("2480")

    def test_reprice_requires_return_leg(self, journey, record_going):
        record = record_going().fuel_record

        with pytest.raises(ValueError):
            journey.reprice_return_leg(record.id, "KAMOA")

    def test_reprice_unknown_record(self, journey):
        with pytest.raises(FuelRecordNotFoundError):
            journey.reprice_return_leg(uuid4(), "KAMOA")


class TestSupplyConfiguration:

    def test_open_record_unlocks(self, journey, record_going):
        record = record_going(destination="NOWHEREVILLE").fuel_record

        update = journey.supply_configuration(record.id, total_liters=Decimal("2300"))

        assert update.fuel_record.total_liters == Decimal("2300")
        assert update.fuel_record.balance == Decimal("2400")
        assert not update.fuel_record.is_locked
        assert update.order.order_number == "DO-1001"

    def test_closed_record_gets_delta_once_going_total_is_known(self, journey, record_going, record_return):
        record_going(destination="NOWHEREVILLE")
        closed = record_return().fuel_record
        # going total unknown at attach: only the KAMOA surcharge
        assert closed.additional_fuel == Decimal("40")

        update = journey.supply_configuration(closed.id, total_liters=Decimal("2300"), extra=Decimal("100"))

        # 2440 - 2300 + 40
        assert update.additional_fuel.delta == Decimal("140")
        assert update.fuel_record.additional_fuel == Decimal("180")
        assert update.fuel_record.total_liters == Decimal("2480")
        assert update.fuel_record.balance == Decimal("2580")
        assert not update.fuel_record.is_locked


class TestSDO:

    def test_sdo_never_touches_fuel_records(self, journey, session, today, actor):
        update = journey.record_delivery_order(
            order_number="SDO-12",
            truck_no="T103 DNH",
            direction=Direction.IMPORT,
            loading_point="DAR ES SALAAM",
            destination="LUBUMBASHI",
            order_date=today,
            order_type=OrderType.SDO,
            actor=actor,
        )

        assert update.fuel_record is None
        assert JourneySelector(session).find_open_record("T103DNH") is None
