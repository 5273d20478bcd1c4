"""
Driver interface consumed by the after-host checks.

A driver knows the VM's network address and can run a shell command on it.
"""

from typing import Protocol


class DriverError(Exception):
    """Raised when the driver cannot reach the VM or a remote command fails."""

    def __init__(self, message: str, output: str = "", returncode: int | None = None):
        super().__init__(message)
        self.output = output
        self.returncode = returncode


class Driver(Protocol):
    """Capability needed by checks that run after the host is created."""

    def get_ip(self) -> str:
        """Return the VM's address. Raises DriverError if it is unknown."""
        ...

    def run_ssh_command(self, command: str) -> str:
        """Run a shell command on the VM and return its combined output."""
        ...
