"""
SSH-backed driver.

Runs remote commands through the system ``ssh`` client so the checks can be
pointed at any VM that is already up and reachable.
"""

import logging
import subprocess
from pathlib import Path
from typing import Optional

from vm_preflight.drivers.base import DriverError

logger = logging.getLogger(__name__)


class SSHDriver:
    """
    Driver for a VM reachable over SSH.

    Commands run in batch mode (no password prompts) with strict host key
    checking disabled, as freshly provisioned VMs have unknown host keys.
    There is no timeout unless one is given.
    """

    def __init__(
        self,
        host: str,
        user: str = "docker",
        port: int = 22,
        identity_file: Optional[Path] = None,
        timeout: Optional[float] = None,
        ssh_binary: str = "ssh",
    ):
        self.host = host
        self.user = user
        self.port = port
        self.identity_file = identity_file
        self.timeout = timeout
        self.ssh_binary = ssh_binary

    def get_ip(self) -> str:
        if not self.host:
            raise DriverError("VM address is not known")
        return self.host

    def _build_command(self, command: str) -> list[str]:
        """Build the ssh invocation for a remote command."""
        cmd = [
            self.ssh_binary,
            "-o", "BatchMode=yes",
            "-o", "StrictHostKeyChecking=no",
            "-o", "UserKnownHostsFile=/dev/null",
            "-o", "LogLevel=quiet",
            "-p", str(self.port),
        ]
        if self.identity_file is not None:
            cmd.extend(["-i", str(self.identity_file)])

        cmd.append(f"{self.user}@{self.get_ip()}")
        cmd.append(command)

        return cmd

    def run_ssh_command(self, command: str) -> str:
        """
        Run a shell command on the VM.

        Args:
            command: Shell command line, executed by the remote login shell.

        Returns:
            Combined stdout and stderr of the command.

        Raises:
            DriverError: ssh is missing, timed out, or the command exited
                non-zero.
        """
        cmd = self._build_command(command)
        logger.debug("running on %s: %s", self.host, command)

        try:
            result = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise DriverError(f"ssh client not found: {self.ssh_binary}") from e
        except subprocess.TimeoutExpired as e:
            raise DriverError(f"Command timed out after {self.timeout}s: {command}") from e

        if result.returncode != 0:
            raise DriverError(
                f"Command exited with status {result.returncode}: {command}",
                output=result.stdout,
                returncode=result.returncode,
            )

        return result.stdout
