"""
Tests for loading configuration sets.

Covers:
- The shipped default set parses and validates
- Decimal parsing keeps written values
- Checksums are deterministic and change with content
- get_active_config emits FUEL_CONFIG_TRACE and refuses invalid sets
"""

from decimal import Decimal

import pytest
import yaml

from fuel_config import DEFAULT_CONFIG_PATH, get_active_config
from fuel_config.loader import (
    compute_checksum,
    load_snapshot,
    parse_liters,
    parse_snapshot,
    parse_station,
)
from fuel_kernel.domain.values import (
    CheckpointField,
    StationDirection,
    SurchargeKind,
)
from fuel_kernel.exceptions import ConfigurationValidationError, UnknownCheckpointError

MINIMAL_SET = {
    "version": "test-1",
    "truck_batches": [{"name": "batch_100", "liters": 100, "suffixes": ["DNH"]}],
    "routes": [{"destination": "kamoa", "liters": 2440}],
    "stations": [
        {
            "station": "lake chilabombwe",
            "direction": "both",
            "going_field": "zambia_going",
            "returning_field": "zambiaReturn",
            "going_liters": 260,
        }
    ],
}


def _write(tmp_path, data, name="set.yaml"):
    path = tmp_path / name
    path.write_text(yaml.safe_dump(data))
    return path


class TestDefaultSet:

    def test_loads(self, config):
        assert config.version == "2025.1"
        assert config.default_final_destination == "DAR"
        assert config.reserve_checkpoint is CheckpointField.ZAMBIA_GOING
        assert config.going_reserve_liters == Decimal("900")

    def test_default_extra_fuel_is_lowest_batch(self, config):
        assert config.default_extra_fuel == Decimal("60")

    def test_surcharges_keep_file_order(self, config):
        loading_points = [s.name for s in config.surcharges if s.kind is SurchargeKind.LOADING_POINT]

        assert loading_points == ["KAMOA", "NMI", "KALONGWE"]

    def test_cancellation_points_are_normalised(self, config):
        assert config.cancellation_station("zambia_going") == "LAKE CHILABOMBWE"

    def test_forwarding_rate_keeps_written_value(self, config):
        route = config.forwarding_route("LAKE NDOLA", "LAKE KAPIRI")

        assert route.rate == Decimal("1.2")
        assert route.default_liters == Decimal("350")


class TestParsing:

    @pytest.mark.parametrize(
        "raw, expected",
        [(260, Decimal("260")), (1.2, Decimal("1.2")), ("2757", Decimal("2757"))],
    )
    def test_parse_liters(self, raw, expected):
        assert parse_liters(raw) == expected

    @pytest.mark.parametrize("raw", [None, True])
    def test_parse_liters_rejects(self, raw):
        with pytest.raises(ValueError):
            parse_liters(raw)

    def test_keys_normalised_and_suffixes_lower_case(self):
        snapshot = parse_snapshot(MINIMAL_SET)

        assert snapshot.truck_batches[0].suffixes == ("dnh",)
        assert snapshot.routes[0].destination == "KAMOA"
        station = snapshot.find_station("Lake Chilabombwe")
        assert station.returning_field is CheckpointField.ZAMBIA_RETURN
        assert station.direction is StationDirection.BOTH

    def test_unknown_station_field(self):
        with pytest.raises(UnknownCheckpointError):
            parse_station({"station": "X", "direction": "going", "going_field": "lusaka_going"})

    def test_missing_required_key(self):
        with pytest.raises(KeyError):
            parse_snapshot({"routes": [{"liters": 100}]})


class TestChecksum:

    def test_deterministic(self):
        assert compute_checksum(MINIMAL_SET) == compute_checksum(dict(MINIMAL_SET))

    def test_changes_with_content(self):
        changed = dict(MINIMAL_SET, version="test-2")

        assert compute_checksum(changed) != compute_checksum(MINIMAL_SET)

    def test_same_file_same_checksum(self):
        assert load_snapshot(DEFAULT_CONFIG_PATH).checksum == load_snapshot(DEFAULT_CONFIG_PATH).checksum


class TestGetActiveConfig:

    def test_emits_config_trace(self, tmp_path, captured_logs):
        snapshot = get_active_config(_write(tmp_path, MINIMAL_SET))

        traces = [r for r in captured_logs() if r["message"] == "FUEL_CONFIG_TRACE"]
        assert traces[0]["config_version"] == "test-1"
        assert traces[0]["checksum"] == snapshot.checksum
        assert traces[0]["station_count"] == 1

    def test_invalid_set_refused(self, tmp_path):
        data = dict(
            MINIMAL_SET,
            truck_batches=[
                {"name": "a", "liters": 100, "suffixes": ["dnh"]},
                {"name": "b", "liters": 60, "suffixes": ["dnh"]},
            ],
        )
        path = _write(tmp_path, data)

        with pytest.raises(ConfigurationValidationError) as exc_info:
            get_active_config(path)

        assert exc_info.value.source == str(path)
        assert any("dnh" in e for e in exc_info.value.errors)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "missing.yaml")

    def test_warnings_logged(self, tmp_path, captured_logs):
        data = dict(MINIMAL_SET, truck_batches=[{"name": "empty", "liters": 100}])

        get_active_config(_write(tmp_path, data))

        assert any(r["message"] == "config_validation_warning" for r in captured_logs())
