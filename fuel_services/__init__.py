"""
fuel_services -- Package init and public API.

Responsibility:
    Orchestration services that compose the pure engines (fuel_engines/)
    with database sessions, configuration snapshots and the kernel's
    flush-only services.  This is the only layer that combines engines
    with persistence.

Architecture position:
    Services -- stateful orchestration over engines + kernel.

    Dependency direction (enforced by tests/architecture/test_kernel_boundary.py):
        fuel_services/ -> fuel_engines/  (allowed)
        fuel_services/ -> fuel_kernel/   (allowed)
        fuel_engines/  -> fuel_services/ (FORBIDDEN)
        fuel_kernel/   -> fuel_services/ (FORBIDDEN)

Invariants enforced:
    - Layer isolation: fuel_kernel and fuel_engines never import from
      this package.
    - Services flush; the caller's ``session_scope()`` commits.

Failure modes:
    - ImportError at startup if a service's dependency graph is broken.
"""

from fuel_services.auto_fill_service import AutoFillService
from fuel_services.configuration_service import ConfigurationService
from fuel_services.consistency import (
    EFFECTS,
    CascadeOutcome,
    ConsistencyManager,
    EditKind,
)
from fuel_services.journey_service import JourneyService, JourneyUpdate
from fuel_services.lpo_service import AllocationVerdict, DuplicateCheck, LPOService

__all__ = [
    "AllocationVerdict",
    "AutoFillService",
    "CascadeOutcome",
    "ConfigurationService",
    "ConsistencyManager",
    "DuplicateCheck",
    "EFFECTS",
    "EditKind",
    "JourneyService",
    "JourneyUpdate",
    "LPOService",
]
