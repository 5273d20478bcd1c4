"""
VM drivers used by the after-host checks.
"""

from vm_preflight.drivers.base import Driver, DriverError
from vm_preflight.drivers.ssh import SSHDriver

__all__ = [
    "Driver",
    "DriverError",
    "SSHDriver",
]
