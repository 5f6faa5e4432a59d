"""
Tests for ConsistencyManager cascades.

Covers:
- Truck number correction: record relink, LPO trucks, relink_required
- Destination change: record locations, LPO destinations, return repricing
- Loading point change
- Cancellation of going and returning orders
- SDO orders skip every cascade effect
- Effect table order
"""

from decimal import Decimal

import pytest

from fuel_kernel.domain.values import (
    CheckpointField,
    Direction,
    FuelRecordState,
    OrderType,
)
from fuel_kernel.exceptions import ActiveJourneyConflictError
from fuel_kernel.selectors.journey_selector import JourneySelector
from fuel_kernel.selectors.lpo_selector import LPOSelector
from fuel_services.consistency import (
    EFFECTS,
    FLAG_NO_FUEL_RECORD,
    FLAG_RELINK_REQUIRED,
    FLAG_SDO_SKIPPED,
    EditKind,
)


def _fill(lpo_service, station, liters, do_number, destination="LUBUMBASHI"):
    return lpo_service.create_entry(
        station=station,
        truck_no="T103 DNH",
        liters=Decimal(liters),
        do_number=do_number,
        destination=destination,
    )


class TestEffectTable:

    def test_cancel_reverts_lpos_before_closing_record(self):
        effects = EFFECTS[EditKind.CANCELLED]

        assert effects.index("cancel_lpo_entries") < effects.index("close_fuel_record")

    def test_every_kind_starts_by_persisting_the_order(self):
        for kind, effects in EFFECTS.items():
            assert effects[0] in ("persist_order_fields", "cancel_order"), kind


class TestTruckNumberCorrection:

    def test_going_order_relinks_record_and_lpos(self, session, consistency, lpo_service, record_going, actor):
        update = record_going()
        entry = _fill(lpo_service, "INFINITY", "450", "DO-1001")

        outcome = consistency.correct_truck_number(update.order.id, "T103 DNY", actor)

        assert outcome.applied == list(EFFECTS[EditKind.TRUCK_NUMBER_CORRECTED])
        assert outcome.before.truck_no == "T103DNH"
        assert outcome.after.truck_no == "T103DNY"
        assert outcome.fuel_record.truck_no == "T103DNY"
        assert LPOSelector(session).get(entry.id).truck_no == "T103DNY"

    def test_returning_order_flags_relink(self, consistency, record_going, record_return):
        record_going()
        update = record_return()

        outcome = consistency.correct_truck_number(update.order.id, "T103 DNY")

        assert FLAG_RELINK_REQUIRED in outcome.flags
        assert outcome.fuel_record.truck_no == "T103DNH"

    def test_going_order_cannot_move_onto_truck_with_open_journey(
        self, session, consistency, order_service, record_going
    ):
        moved = record_going(order_number="DO-A", truck_no="T103 DNH")
        record_going(order_number="DO-B", truck_no="T200 DNY")

        with pytest.raises(ActiveJourneyConflictError) as exc_info:
            consistency.correct_truck_number(moved.order.id, "T200 DNY")

        assert exc_info.value.existing_do == "DO-B"
        assert order_service.get(moved.order.id).truck_no == "T103DNH"
        records = JourneySelector(session).query_fuel_records("T200 DNY")
        assert [r.going_do for r in records] == ["DO-B"]

    def test_going_order_moves_onto_truck_after_its_journey_closed(
        self, consistency, record_going, record_return
    ):
        moved = record_going(order_number="DO-A", truck_no="T103 DNH")
        record_going(order_number="DO-B", truck_no="T200 DNY")
        record_return(order_number="DO-C", truck_no="T200 DNY")

        outcome = consistency.correct_truck_number(moved.order.id, "T200 DNY")

        assert outcome.fuel_record.truck_no == "T200DNY"
        assert outcome.fuel_record.going_do == "DO-A"

    def test_order_without_record(self, consistency, order_service, today):
        order = order_service.create_order(
            order_number="DO-3001",
            truck_no="T103 DNH",
            direction=Direction.EXPORT,
            loading_point="KOLWEZI",
            destination="KAMOA",
            order_date=today,
        )

        outcome = consistency.correct_truck_number(order.id, "T103 DNY")

        assert FLAG_NO_FUEL_RECORD in outcome.flags
        assert outcome.after.truck_no == "T103DNY"


class TestDestinationChange:

    def test_going_destination_moves_record_to(self, session, consistency, lpo_service, record_going):
        update = record_going()
        entry = _fill(lpo_service, "INFINITY", "450", "DO-1001")

        outcome = consistency.change_destination(update.order.id, "LIKASI")

        assert outcome.fuel_record.to_location == "LIKASI"
        assert LPOSelector(session).get(entry.id).destination == "LIKASI"
        assert "recompute_additional_fuel" in outcome.applied

    def test_going_destination_after_close_updates_preserved_going_to(self, consistency, record_going, record_return):
        going = record_going()
        record_return()

        outcome = consistency.change_destination(going.order.id, "LIKASI")

        assert outcome.fuel_record.original_going_to == "LIKASI"
        assert outcome.fuel_record.to_location == "DAR"

    def test_return_destination_reprices_additional_fuel(self, consistency, record_going, record_return):
        record_going()
        update = record_return()

        outcome = consistency.change_destination(update.order.id, "KALONGWE")

        record = outcome.fuel_record
        assert record.from_location == "KALONGWE"
        # 2440 - 2100 + 60 replaces 2440 - 2100 + 40
        assert record.additional_fuel == Decimal("400")
        assert record.total_liters == Decimal("2500")


class TestLoadingPointChange:

    def test_going_loading_point_moves_record_from(self, consistency, record_going):
        update = record_going()

        outcome = consistency.change_loading_point(update.order.id, "TANGA PORT")

        assert outcome.fuel_record.from_location == "TANGA PORT"
        assert outcome.applied == list(EFFECTS[EditKind.LOADING_POINT_CHANGED])


class TestCancellation:

    def test_cancel_going_order_cancels_record_and_lpos(self, session, consistency, lpo_service, record_going):
        update = record_going()
        entry = _fill(lpo_service, "LAKE CHILABOMBWE", "260", "DO-1001")

        outcome = consistency.cancel_delivery_order(update.order.id, "Duplicate order")

        assert outcome.after.is_cancelled
        assert LPOSelector(session).get(entry.id).is_cancelled
        assert outcome.fuel_record.state is FuelRecordState.CANCELLED
        assert outcome.fuel_record.debit_at(CheckpointField.ZAMBIA_GOING) == Decimal("0")

    def test_cancel_return_order_reopens_journey(self, session, consistency, lpo_service, record_going, record_return):
        record_going()
        update = record_return()
        _fill(lpo_service, "LAKE NDOLA", "50", "DO-2001", destination="KAMOA")

        outcome = consistency.cancel_delivery_order(update.order.id, "Wrong truck")

        record = outcome.fuel_record
        assert record.state is FuelRecordState.OPEN
        assert record.return_do is None
        assert record.total_liters == Decimal("2100")
        assert record.debit_at(CheckpointField.ZAMBIA_RETURN) == Decimal("0")
        assert record.balance == Decimal("2200")
        assert JourneySelector(session).find_open_record("T103DNH").id == record.id


class TestSDO:

    def test_sdo_skips_cascade(self, consistency, journey, today):
        update = journey.record_delivery_order(
            order_number="SDO-5",
            truck_no="T103 DNH",
            direction=Direction.IMPORT,
            loading_point="DAR ES SALAAM",
            destination="LUBUMBASHI",
            order_date=today,
            order_type=OrderType.SDO,
        )

        outcome = consistency.change_destination(update.order.id, "LIKASI")

        assert outcome.applied == ["persist_order_fields"]
        assert FLAG_SDO_SKIPPED in outcome.flags
        assert outcome.skipped == list(EFFECTS[EditKind.DESTINATION_CHANGED][1:])
        assert outcome.after.destination == "LIKASI"

    def test_sdo_cancel_skips_cascade(self, consistency, journey, today):
        update = journey.record_delivery_order(
            order_number="SDO-6",
            truck_no="T103 DNH",
            direction=Direction.IMPORT,
            loading_point="DAR ES SALAAM",
            destination="LUBUMBASHI",
            order_date=today,
            order_type=OrderType.SDO,
        )

        outcome = consistency.cancel_delivery_order(update.order.id, "void")

        assert outcome.applied == ["cancel_order"]
        assert outcome.fuel_record is None
