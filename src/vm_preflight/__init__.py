"""
vm-preflight: Preflight checks for hypervisor-backed VM provisioning.

Runs driver checks before a VM is created and network/storage checks once it
is reachable over SSH, with per-check skip and warn overrides.
"""

__version__ = "0.1.0"

from vm_preflight.config import PreflightConfig
from vm_preflight.drivers import Driver, DriverError, SSHDriver
from vm_preflight.preflight import (
    CheckDescriptor,
    CheckResult,
    DriverKind,
    Outcome,
    PhaseResults,
    PreflightOrchestrator,
    run_check,
)

__all__ = [
    "PreflightConfig",
    "Driver",
    "DriverError",
    "SSHDriver",
    "CheckDescriptor",
    "CheckResult",
    "DriverKind",
    "Outcome",
    "PhaseResults",
    "PreflightOrchestrator",
    "run_check",
]
