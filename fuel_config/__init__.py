"""
fuel_config -- single public entrypoint for fuel configuration.

Responsibility:
    Provides the ONLY way to obtain a configuration snapshot from a YAML
    set at runtime through ``get_active_config()``.  Returns a frozen
    ``FuelConfigSnapshot`` that every resolver takes as an explicit
    argument.  Snapshots materialised from the configuration tables come
    from ``fuel_services.configuration_service.ConfigurationService``.

Architecture position:
    Configuration -- YAML-driven, validated at load time.
    This package sits above ``fuel_kernel`` and below ``fuel_engines`` /
    ``fuel_services``.  The kernel MUST NEVER import from ``fuel_config``.

Invariants enforced:
    - Load-time validation: a snapshot with validation errors is never
      returned.
    - Deterministic loading: the same YAML always produces the same
      snapshot checksum.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``ConfigurationValidationError`` -- structural validation failed.
    - ``UnknownCheckpointError`` -- a station names a field the ledger
      does not have.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``FUEL_CONFIG_TRACE`` log entry with the version and checksum, tying
    each allocation back to the configuration that produced it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fuel_config.cache import ConfigSnapshotCache
from fuel_config.loader import load_snapshot
from fuel_config.schema import FuelConfigSnapshot
from fuel_config.validator import validate_snapshot
from fuel_kernel.exceptions import ConfigurationValidationError

_logger = logging.getLogger("fuel_kernel.config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"
DEFAULT_CONFIG_PATH = _DEFAULT_CONFIG_DIR / "default.yaml"


def get_active_config(path: Path | None = None) -> FuelConfigSnapshot:
    """The public configuration entrypoint.

    Guarantees:
        - The returned snapshot has passed ``validate_snapshot``.
        - A ``FUEL_CONFIG_TRACE`` log entry is emitted on every
          successful call.

    Non-goals:
        - This function does NOT cache snapshots; wrap it in a
          ``ConfigSnapshotCache`` to hold one for a few minutes.

    Args:
        path: YAML configuration set.  Defaults to
            fuel_config/sets/default.yaml.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationValidationError: If validation reports errors.
    """
    source = path or DEFAULT_CONFIG_PATH
    snapshot = load_snapshot(source)

    validation = validate_snapshot(snapshot)
    if not validation.is_valid:
        raise ConfigurationValidationError(validation.errors, source=str(source))
    for warning in validation.warnings:
        _logger.warning("config_validation_warning", extra={"detail": warning})

    _logger.info(
        "FUEL_CONFIG_TRACE",
        extra={
            "trace_type": "FUEL_CONFIG_TRACE",
            "config_version": snapshot.version,
            "checksum": snapshot.checksum,
            "truck_batch_count": len(snapshot.truck_batches),
            "route_count": len(snapshot.routes),
            "station_count": len(snapshot.stations),
        },
    )
    return snapshot


__all__ = [
    "ConfigSnapshotCache",
    "FuelConfigSnapshot",
    "get_active_config",
]
