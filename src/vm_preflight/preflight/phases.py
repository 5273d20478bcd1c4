"""
Phase orchestration for preflight checks.

Two fixed points in the provisioning workflow run checks:
- before the host is created: one hypervisor driver check, chosen by the
  configured driver kind
- after the host is up: a fixed, ordered list of network and storage checks
"""

import logging
from enum import Enum
from typing import Optional

from rich.console import Console

from vm_preflight.config import keys
from vm_preflight.config.settings import PreflightConfig
from vm_preflight.drivers.base import Driver
from vm_preflight.preflight import checks
from vm_preflight.preflight.runner import PhaseResults, run_phase
from vm_preflight.preflight.types import CheckContext, CheckDescriptor

logger = logging.getLogger(__name__)

BEFORE_HOST = "before-host-creation"
AFTER_HOST = "after-host-creation"

DRIVER_PLUGIN_HINT = "See the 'Setting Up the Driver Plug-in' topic for more information"


class DriverKind(Enum):
    """Hypervisor driver kinds a VM can be created with."""
    XHYVE = "xhyve"
    KVM = "kvm"
    HYPERV = "hyperv"
    VIRTUALBOX = "virtualbox"
    VMWAREFUSION = "vmwarefusion"

    @classmethod
    def parse(cls, name: str | None) -> Optional["DriverKind"]:
        """Exact match on the driver name. Returns None for unknown names."""
        for kind in cls:
            if kind.value == name:
                return kind
        return None


XHYVE_DRIVER_CHECK = CheckDescriptor(
    name="xhyve-driver",
    message="Checking if xhyve driver is installed",
    skip_key=keys.SKIP_CHECK_XHYVE_DRIVER,
    warn_key=keys.WARN_CHECK_XHYVE_DRIVER,
    failure_hint=DRIVER_PLUGIN_HINT,
    predicate=checks.check_xhyve_driver,
)

KVM_DRIVER_CHECK = CheckDescriptor(
    name="kvm-driver",
    message="Checking if KVM driver is installed",
    skip_key=keys.SKIP_CHECK_KVM_DRIVER,
    warn_key=keys.WARN_CHECK_KVM_DRIVER,
    failure_hint=DRIVER_PLUGIN_HINT,
    predicate=checks.check_kvm_driver,
)

HYPERV_DRIVER_CHECK = CheckDescriptor(
    name="hyperv-driver",
    message="Checking if Hyper-V driver is configured",
    skip_key=keys.SKIP_CHECK_HYPERV_DRIVER,
    warn_key=keys.WARN_CHECK_HYPERV_DRIVER,
    failure_hint="Hyper-V virtual switch is not set",
    predicate=checks.check_hyperv_driver,
)

# VirtualBox and VMware Fusion ship with their own tooling and need no check
BEFORE_HOST_CHECKS: dict[DriverKind, CheckDescriptor | None] = {
    DriverKind.XHYVE: XHYVE_DRIVER_CHECK,
    DriverKind.KVM: KVM_DRIVER_CHECK,
    DriverKind.HYPERV: HYPERV_DRIVER_CHECK,
    DriverKind.VIRTUALBOX: None,
    DriverKind.VMWAREFUSION: None,
}

AFTER_HOST_CHECKS: tuple[CheckDescriptor, ...] = (
    CheckDescriptor(
        name="instance-ip",
        message="Checking for IP address",
        skip_key=keys.SKIP_INSTANCE_IP,
        warn_key=keys.WARN_INSTANCE_IP,
        failure_hint="Error determining IP address",
        predicate=checks.check_instance_ip,
    ),
    CheckDescriptor(
        name="network-ping",
        message="Checking if external host is reachable from the VM",
        skip_key=keys.SKIP_CHECK_NETWORK_PING,
        warn_key=keys.WARN_CHECK_NETWORK_PING,
        failure_hint="VM is unable to ping external host",
        predicate=checks.check_ip_connectivity,
        treat_as_warning=True,
    ),
    CheckDescriptor(
        name="network-http",
        message="Checking HTTP connectivity from the VM",
        skip_key=keys.SKIP_CHECK_NETWORK_HTTP,
        warn_key=keys.WARN_CHECK_NETWORK_HTTP,
        failure_hint="VM cannot connect to external URL with HTTP",
        predicate=checks.check_http_connectivity,
        treat_as_warning=True,
    ),
    CheckDescriptor(
        name="storage-mount",
        message="Checking if persistent storage volume is mounted",
        skip_key=keys.SKIP_CHECK_STORAGE_MOUNT,
        warn_key=keys.WARN_CHECK_STORAGE_MOUNT,
        failure_hint="Persistent volume storage is not mounted",
        predicate=checks.check_storage_mounted,
    ),
    CheckDescriptor(
        name="storage-usage",
        message="Checking available disk space",
        skip_key=keys.SKIP_CHECK_STORAGE_USAGE,
        warn_key=keys.WARN_CHECK_STORAGE_USAGE,
        failure_hint="Insufficient disk space on the persistent storage volume",
        predicate=checks.check_storage_usage,
    ),
)


def before_host_check(kind: DriverKind | None) -> CheckDescriptor | None:
    """The single driver check for ``kind``, or None if it has none."""
    if kind is None:
        return None
    return BEFORE_HOST_CHECKS.get(kind)


def all_checks() -> list[CheckDescriptor]:
    """Every known check, before-host checks first."""
    before = [d for d in BEFORE_HOST_CHECKS.values() if d is not None]
    return before + list(AFTER_HOST_CHECKS)


class PreflightOrchestrator:
    """
    Runs the preflight checks for each workflow phase.

    Configuration is passed in at construction; a fatal check failure is
    returned in the PhaseResults and the caller decides whether to exit.
    """

    def __init__(self, config: PreflightConfig, console: Optional[Console] = None):
        self.config = config
        self.console = console or Console(highlight=False, soft_wrap=True)

    def run_before_host_creation(self, driver_name: str | None = None) -> PhaseResults:
        """
        Run the driver check for the configured driver kind.

        Args:
            driver_name: Driver kind name. Defaults to the ``vm-driver`` setting.

        Returns:
            PhaseResults with at most one result. Empty, with no output, for
            driver kinds that have no check.
        """
        if driver_name is None:
            driver_name = self.config.lookup_string(keys.VM_DRIVER)

        descriptor = before_host_check(DriverKind.parse(driver_name))
        if descriptor is None:
            logger.debug("no before-host check for driver %r", driver_name)
            return PhaseResults(phase=BEFORE_HOST)

        context = CheckContext(config=self.config, console=self.console)
        return run_phase(BEFORE_HOST, [descriptor], context)

    def run_after_host_creation(self, driver: Driver) -> PhaseResults:
        """Run the network and storage checks against the running VM, in order."""
        context = CheckContext(config=self.config, console=self.console, driver=driver)
        return run_phase(AFTER_HOST, list(AFTER_HOST_CHECKS), context)
