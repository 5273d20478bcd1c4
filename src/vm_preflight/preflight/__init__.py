"""
Preflight checks for VM provisioning.

Checks run at two points in the workflow:
- Before the host is created (hypervisor driver installed and configured)
- After the host is up (IPv4 address, outbound ping/HTTP, storage volume)

Every check can be skipped or downgraded to a warning through configuration.
"""

from vm_preflight.preflight.types import (
    CheckContext,
    CheckDescriptor,
    CheckResult,
    Outcome,
)
from vm_preflight.preflight.runner import PhaseResults, run_check, run_phase
from vm_preflight.preflight.phases import (
    AFTER_HOST_CHECKS,
    BEFORE_HOST_CHECKS,
    DriverKind,
    PreflightOrchestrator,
    all_checks,
    before_host_check,
)

__all__ = [
    # Types
    "CheckContext",
    "CheckDescriptor",
    "CheckResult",
    "Outcome",
    # Runner
    "PhaseResults",
    "run_check",
    "run_phase",
    # Phases
    "AFTER_HOST_CHECKS",
    "BEFORE_HOST_CHECKS",
    "DriverKind",
    "PreflightOrchestrator",
    "all_checks",
    "before_host_check",
]
