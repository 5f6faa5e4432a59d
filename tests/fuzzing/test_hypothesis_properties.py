"""
Property-based tests for the pure engines.

Properties:
- similarity is bounded in [0, 1], symmetric, and 1.0 for equal strings
- a projected debit always satisfies the sum invariant
- a projected debit locks exactly when the balance goes negative
- additional fuel is never negative and never grows with the going total
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

from hypothesis import given, settings
from hypothesis import strategies as st

from fuel_engines.fuel_ledger import compute_additional_fuel, expected_balance, project_debit
from fuel_engines.similarity import levenshtein_distance, similarity
from fuel_kernel.domain.dtos import FuelRecordInfo
from fuel_kernel.domain.values import CheckpointField

names = st.text(alphabet="ABCDEFGHIJKLMNOPQRSTUVWXYZ ", max_size=16)
liters = st.decimals(min_value=1, max_value=5000, places=0)
optional_liters = st.one_of(st.none(), st.decimals(min_value=0, max_value=3000, places=0))
fields = st.sampled_from(list(CheckpointField))
loading_points = st.sampled_from(["KAMOA", "NMI", "KALONGWE", "LUBUMBASHI", "KOLWEZI", ""])
final_destinations = st.sampled_from(["DAR", "TANGA", "MOSHI", "MSA"])


def _record(total_liters, extra, checkpoints):
    return FuelRecordInfo(
        id=uuid4(),
        truck_no="T103DNH",
        date=date(2025, 3, 1),
        going_do="DO-1001",
        total_liters=total_liters,
        extra=extra,
        checkpoints=checkpoints,
    )


class TestSimilarityProperties:

    @given(names, names)
    def test_bounded(self, first, second):
        assert 0.0 <= similarity(first, second) <= 1.0

    @given(names, names)
    def test_symmetric(self, first, second):
        assert similarity(first, second) == similarity(second, first)
        assert levenshtein_distance(first, second) == levenshtein_distance(second, first)

    @given(names)
    def test_identity(self, value):
        assert similarity(value, value) == 1.0
        assert levenshtein_distance(value, value) == 0


class TestDebitProperties:

    @given(
        optional_liters,
        optional_liters,
        st.dictionaries(fields, st.decimals(min_value=-3000, max_value=0, places=0), max_size=5),
        fields,
        liters,
    )
    @settings(max_examples=200)
    def test_sum_invariant(self, total, extra, checkpoints, field, amount):
        record = _record(total, extra, checkpoints)

        projection = project_debit(record, field, amount)

        new_values = dict(record.checkpoints)
        new_values[field] = projection.checkpoint_value
        assert projection.balance == expected_balance(total, extra, new_values.values())
        assert projection.balance == record.expected_balance - amount

    @given(optional_liters, optional_liters, fields, liters)
    def test_locks_exactly_when_negative(self, total, extra, field, amount):
        projection = project_debit(_record(total, extra, {}), field, amount)

        assert projection.locks == (projection.balance < 0)


class TestAdditionalFuelProperties:

    @given(st.decimals(min_value=0, max_value=4000, places=0), loading_points, final_destinations)
    def test_never_negative(self, config, going_total, loading_point, final_destination):
        breakdown = compute_additional_fuel(config, going_total, loading_point, final_destination)

        assert breakdown.additional >= 0
        assert breakdown.delta >= 0

    @given(
        st.decimals(min_value=0, max_value=4000, places=0),
        st.decimals(min_value=0, max_value=1000, places=0),
        loading_points,
    )
    def test_monotonic_in_going_total(self, config, going_total, increase, loading_point):
        lower = compute_additional_fuel(config, going_total, loading_point)
        higher = compute_additional_fuel(config, going_total + increase, loading_point)

        assert higher.additional <= lower.additional
