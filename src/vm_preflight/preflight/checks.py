"""
Preflight check predicates.

Each predicate takes a CheckContext and returns True when the condition
holds. Supplementary diagnostic text is printed by the predicate itself;
the runner only sees the boolean.

Before host creation:
- xhyve, KVM and Hyper-V driver availability

After host creation:
- IPv4 address, outbound ping, outbound HTTP
- persistent storage mount and usage
"""

import ipaddress
import logging
import os
import shlex
import shutil
import stat

from vm_preflight.config import keys
from vm_preflight.drivers.base import Driver, DriverError
from vm_preflight.preflight.types import CheckContext

logger = logging.getLogger(__name__)

STORAGE_DISK = "/mnt/sda1"

XHYVE_DRIVER_BINARY = "docker-machine-driver-xhyve"
KVM_DRIVER_BINARY = "docker-machine-driver-kvm"
HYPERV_SWITCH_ENV = "HYPERV_VIRTUAL_SWITCH"

DEFAULT_PING_HOST = "8.8.8.8"
DEFAULT_HTTP_URL = "http://minishift.io/index.html"

USAGE_WARNING_PERCENT = 80
USAGE_LIMIT_PERCENT = 98


def _echo(context: CheckContext, text: str, end: str = "") -> None:
    context.console.print(text, end=end, highlight=False, markup=False)


def _require_driver(context: CheckContext) -> Driver:
    if context.driver is None:
        raise DriverError("No driver available for this check")
    return context.driver


# Driver-free checks

def check_xhyve_driver(context: CheckContext) -> bool:
    """
    Check the xhyve driver plug-in is installed with the setuid bit set.

    The plug-in needs root to create the VM network, hence the setuid bit.
    """
    path = shutil.which(XHYVE_DRIVER_BINARY)
    if path is None:
        return False

    if os.path.islink(path):
        path = os.path.realpath(path)

    _echo(context, f"\n   Driver is available at {path}", end="\n")
    _echo(context, "   Checking for setuid bit ... ")

    mode = os.stat(path).st_mode
    return bool(mode & stat.S_ISUID)


def check_kvm_driver(context: CheckContext) -> bool:
    """Check the KVM driver plug-in is on PATH."""
    path = shutil.which(KVM_DRIVER_BINARY)
    if path is None:
        return False

    _echo(context, f"\n   Driver is available at {path} ... ")
    return True


def check_hyperv_driver(context: CheckContext) -> bool:
    """Check a Hyper-V virtual switch has been configured."""
    return bool(context.config.environ.get(HYPERV_SWITCH_ENV, ""))


# Checks that need the running VM

def check_instance_ip(context: CheckContext) -> bool:
    """
    Check the instance has an IPv4 address.

    Hyper-V issues IPv6 addresses on an internal virtual switch, which
    provisioning cannot use.
    """
    ip = _require_driver(context).get_ip()
    try:
        ipaddress.IPv4Address(ip.strip())
    except ValueError:
        logger.debug("instance address %r is not IPv4", ip)
        return False
    return True


def is_ip_reachable(driver: Driver, host: str) -> bool:
    """Ping ``host`` once from inside the VM."""
    try:
        driver.run_ssh_command(f"ping -c1 -W2 {shlex.quote(host)}")
    except DriverError as e:
        logger.debug("ping %s failed: %s", host, e)
        return False
    return True


def is_retrievable(driver: Driver, url: str) -> bool:
    """Fetch the headers of ``url`` from inside the VM."""
    try:
        driver.run_ssh_command(f"curl -s -f --head {shlex.quote(url)}")
    except DriverError as e:
        logger.debug("retrieving %s failed: %s", url, e)
        return False
    return True


def check_ip_connectivity(context: CheckContext) -> bool:
    """Check the VM can reach an external host."""
    driver = _require_driver(context)
    host = context.config.lookup_string(keys.CHECK_NETWORK_PING_HOST) or DEFAULT_PING_HOST

    _echo(context, f"\n   Pinging {host} ... ")
    return is_ip_reachable(driver, host)


def check_http_connectivity(context: CheckContext) -> bool:
    """Check outside HTTP connectivity from the VM, which also exercises proxy settings."""
    driver = _require_driver(context)
    url = context.config.lookup_string(keys.CHECK_NETWORK_HTTP_HOST) or DEFAULT_HTTP_URL

    _echo(context, f"\n   Retrieving {url} ... ")
    return is_retrievable(driver, url)


def is_mounted(driver: Driver, mountpoint: str) -> bool:
    """
    Check ``mountpoint`` appears in the VM's /proc/mounts.

    Raises:
        DriverError: The remote command failed.
    """
    cmd = f"if grep -qs {mountpoint} /proc/mounts; then echo '1'; else echo '0'; fi"
    out = driver.run_ssh_command(cmd)
    return out.strip() == "1"


def get_disk_usage(driver: Driver, mountpoint: str) -> str:
    """
    Get the used percentage of ``mountpoint``, e.g. "45%".

    Returns "ERR" if the remote command fails.
    """
    cmd = f"df -h {mountpoint} | awk 'FNR > 1 {{print $5}}'"
    try:
        out = driver.run_ssh_command(cmd)
    except DriverError as e:
        logger.debug("df on %s failed: %s", mountpoint, e)
        return "ERR"
    return out.strip("\n")


def parse_usage_percent(usage: str) -> int | None:
    """Parse "45%" into 45. Returns None unless it is an integer from 0 to 100."""
    value = usage.strip().rstrip("%")
    try:
        percent = int(value)
    except ValueError:
        return None
    if not 0 <= percent <= 100:
        return None
    return percent


def check_storage_mounted(context: CheckContext) -> bool:
    """Check the persistent storage volume is mounted."""
    return is_mounted(_require_driver(context), STORAGE_DISK)


def check_storage_usage(context: CheckContext) -> bool:
    """
    Check the persistent storage volume has room left.

    Prints the usage figure, plus a "!!!" marker above 80%. Fails at 98%
    or above, or when the figure can't be read.
    """
    usage = get_disk_usage(_require_driver(context), STORAGE_DISK)
    _echo(context, f"{usage} ")

    percent = parse_usage_percent(usage)
    if percent is None:
        return False

    if USAGE_WARNING_PERCENT < percent < USAGE_LIMIT_PERCENT:
        _echo(context, "!!! ")

    return percent < USAGE_LIMIT_PERCENT
