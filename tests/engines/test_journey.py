"""
Tests for the journey direction resolver.

Covers:
- Direction-exclusive stations
- Bidirectional stations: prior fuel evidence and the below-checkpoint allowlist
- Single-leg (medium confidence) and unknown-station (low confidence) results
- Filtering of cancelled, SDO and out-of-window orders
- Determinism
"""

from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from fuel_engines.journey import (
    REASON_ALREADY_FUELED,
    REASON_BELOW_CHECKPOINT,
    REASON_FIRST_FILL,
    REASON_GOING_ONLY,
    REASON_ONLY_GOING,
    REASON_ONLY_RETURNING,
    REASON_RETURNING_ONLY,
    REASON_UNKNOWN_STATION,
    determine_journey_start,
    resolve_direction,
)
from fuel_kernel.domain.dtos import DeliveryOrderInfo, FuelRecordInfo
from fuel_kernel.domain.values import (
    CheckpointField,
    Confidence,
    Direction,
    JourneyLeg,
    OrderType,
)

AS_OF = date(2025, 3, 1)
TRUCK = "T103DNH"


def _order(
    number: str,
    direction: Direction,
    days_ago: int = 0,
    destination: str = "LUBUMBASHI",
    order_type: OrderType = OrderType.DO,
    is_cancelled: bool = False,
) -> DeliveryOrderInfo:
    return DeliveryOrderInfo(
        id=uuid4(),
        order_number=number,
        truck_no=TRUCK,
        direction=direction,
        loading_point="DAR ES SALAAM" if direction is Direction.IMPORT else "KOLWEZI",
        destination=destination,
        date=AS_OF - timedelta(days=days_ago),
        order_type=order_type,
        is_cancelled=is_cancelled,
    )


def _record(
    going_do: str,
    return_do: str | None = None,
    checkpoints: dict | None = None,
    is_cancelled: bool = False,
) -> FuelRecordInfo:
    return FuelRecordInfo(
        id=uuid4(),
        truck_no=TRUCK,
        date=AS_OF - timedelta(days=5),
        going_do=going_do,
        return_do=return_do,
        total_liters=Decimal("2100"),
        extra=Decimal("100"),
        checkpoints=checkpoints or {},
        is_cancelled=is_cancelled,
    )


@pytest.fixture
def going():
    return _order("DO-1001", Direction.IMPORT, days_ago=10)


@pytest.fixture
def returning():
    return _order("DO-2001", Direction.EXPORT, days_ago=2, destination="KAMOA")


class TestNoActiveOrders:

    def test_no_orders_is_unresolvable(self, config):
        assert resolve_direction(config, "LAKE CHILABOMBWE", [], [], as_of=AS_OF) is None

    def test_cancelled_orders_are_ignored(self, config):
        order = _order("DO-1001", Direction.IMPORT, is_cancelled=True)

        assert resolve_direction(config, "INFINITY", [order], [], as_of=AS_OF) is None

    def test_sdo_orders_are_ignored(self, config):
        order = _order("SDO-1", Direction.IMPORT, order_type=OrderType.SDO)

        assert resolve_direction(config, "INFINITY", [order], [], as_of=AS_OF) is None

    def test_orders_outside_lookback_window_are_ignored(self, config):
        stale = _order("DO-0001", Direction.IMPORT, days_ago=config.lookback_days + 1)

        assert resolve_direction(config, "INFINITY", [stale], [], as_of=AS_OF) is None

    def test_no_window_without_as_of(self, config):
        stale = _order("DO-0001", Direction.IMPORT, days_ago=config.lookback_days + 1)

        result = resolve_direction(config, "INFINITY", [stale], [])

        assert result.do_number == "DO-0001"


class TestDirectionExclusiveStations:

    def test_going_only_station(self, config, going, returning):
        result = resolve_direction(config, "MBEYA STATION", [going, returning], [], as_of=AS_OF)

        assert result.direction is JourneyLeg.GOING
        assert result.do_number == "DO-1001"
        assert result.confidence is Confidence.HIGH
        assert result.reason == REASON_GOING_ONLY

    def test_returning_only_station(self, config, going, returning):
        result = resolve_direction(config, "LAKE NDOLA", [going, returning], [], as_of=AS_OF)

        assert result.direction is JourneyLeg.RETURNING
        assert result.do_number == "DO-2001"
        assert result.confidence is Confidence.HIGH
        assert result.reason == REASON_RETURNING_ONLY

    def test_returning_only_station_without_returning_order(self, config, going):
        assert resolve_direction(config, "LAKE NDOLA", [going], [], as_of=AS_OF) is None

    def test_going_only_station_without_going_order(self, config, returning):
        assert resolve_direction(config, "MBEYA STATION", [returning], [], as_of=AS_OF) is None


class TestBidirectionalStation:

    def test_first_fill_is_going(self, config, going, returning):
        record = _record("DO-1001")

        result = resolve_direction(
            config, "LAKE CHILABOMBWE", [going, returning], [record], as_of=AS_OF
        )

        assert result.direction is JourneyLeg.GOING
        assert result.confidence is Confidence.HIGH
        assert result.reason == REASON_FIRST_FILL
        assert result.fuel_record == record

    def test_prior_going_debit_means_returning(self, config, going, returning):
        record = _record(
            "DO-1001",
            return_do="DO-2001",
            checkpoints={CheckpointField.ZAMBIA_GOING: Decimal("-260")},
        )

        result = resolve_direction(
            config, "LAKE CHILABOMBWE", [going, returning], [record], as_of=AS_OF
        )

        assert result.direction is JourneyLeg.RETURNING
        assert result.do_number == "DO-2001"
        assert result.reason == REASON_ALREADY_FUELED
        assert result.fuel_record == record

    def test_debit_at_other_field_is_not_evidence(self, config, going, returning):
        record = _record("DO-1001", checkpoints={CheckpointField.MBEYA_GOING: Decimal("-450")})

        result = resolve_direction(
            config, "LAKE CHILABOMBWE", [going, returning], [record], as_of=AS_OF
        )

        assert result.direction is JourneyLeg.GOING

    def test_cancelled_record_is_not_evidence(self, config, going, returning):
        record = _record(
            "DO-1001",
            checkpoints={CheckpointField.ZAMBIA_GOING: Decimal("-260")},
            is_cancelled=True,
        )

        result = resolve_direction(
            config, "LAKE CHILABOMBWE", [going, returning], [record], as_of=AS_OF
        )

        assert result.direction is JourneyLeg.GOING
        assert result.fuel_record is None

    def test_below_checkpoint_station_forces_going(self, config, going, returning):
        snapshot = replace(config, below_checkpoint_stations=frozenset({"lake chilabombwe"}))
        record = _record("DO-1001", checkpoints={CheckpointField.ZAMBIA_GOING: Decimal("-260")})

        result = resolve_direction(
            snapshot, "LAKE CHILABOMBWE", [going, returning], [record], as_of=AS_OF
        )

        assert result.direction is JourneyLeg.GOING
        assert result.confidence is Confidence.HIGH
        assert result.reason == REASON_BELOW_CHECKPOINT

    def test_only_going_order_is_medium(self, config, going):
        result = resolve_direction(config, "INFINITY", [going], [], as_of=AS_OF)

        assert result.direction is JourneyLeg.GOING
        assert result.confidence is Confidence.MEDIUM
        assert result.reason == REASON_ONLY_GOING

    def test_only_returning_order_is_medium(self, config, returning):
        result = resolve_direction(config, "INFINITY", [returning], [], as_of=AS_OF)

        assert result.direction is JourneyLeg.RETURNING
        assert result.confidence is Confidence.MEDIUM
        assert result.reason == REASON_ONLY_RETURNING

    def test_newest_going_order_wins(self, config):
        older = _order("DO-0900", Direction.IMPORT, days_ago=30)
        newer = _order("DO-1001", Direction.IMPORT, days_ago=3)

        result = resolve_direction(config, "INFINITY", [older, newer], [], as_of=AS_OF)

        assert result.do_number == "DO-1001"


class TestUnknownStation:

    def test_defaults_to_going_with_low_confidence(self, config, going, returning):
        result = resolve_direction(config, "ROADSIDE PUMP", [going, returning], [], as_of=AS_OF)

        assert result.direction is JourneyLeg.GOING
        assert result.confidence is Confidence.LOW
        assert result.reason == REASON_UNKNOWN_STATION
        assert result.station_route is None

    def test_no_going_order_is_unresolvable(self, config, returning):
        assert resolve_direction(config, "ROADSIDE PUMP", [returning], [], as_of=AS_OF) is None


class TestDeterminism:

    def test_same_inputs_same_result(self, config, going, returning):
        record = _record("DO-1001", checkpoints={CheckpointField.ZAMBIA_GOING: Decimal("-260")})
        args = (config, "LAKE CHILABOMBWE", [going, returning], [record])

        assert resolve_direction(*args, as_of=AS_OF) == resolve_direction(*args, as_of=AS_OF)


class TestJourneyStart:

    @pytest.mark.parametrize(
        "loading_point, start",
        [
            ("TANGA PORT", "TANGA"),
            ("tanga", "TANGA"),
            ("DAR ES SALAAM", "DAR"),
            ("", "DAR"),
            (None, "DAR"),
        ],
    )
    def test_start(self, loading_point, start):
        assert determine_journey_start(loading_point) == start
