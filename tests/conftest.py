"""Shared fixtures for vm-preflight tests."""

import io
import subprocess

import pytest
from rich.console import Console

from vm_preflight.config import PreflightConfig
from vm_preflight.drivers import DriverError
from vm_preflight.preflight import CheckContext


class FakeDriver:
    """Driver that answers remote commands from a table of substrings."""

    def __init__(self, ip="10.0.2.15", responses=None):
        self.ip = ip
        self.responses = responses or {}
        self.commands: list[str] = []

    def get_ip(self) -> str:
        if isinstance(self.ip, Exception):
            raise self.ip
        return self.ip

    def run_ssh_command(self, command: str) -> str:
        self.commands.append(command)
        for fragment, response in self.responses.items():
            if fragment in command:
                if isinstance(response, Exception):
                    raise response
                return response
        raise DriverError(f"unexpected command: {command}")


class ShellDriver:
    """Driver that runs remote commands in a local shell."""

    def __init__(self, ip="10.0.2.15"):
        self.ip = ip
        self.commands: list[str] = []

    def get_ip(self) -> str:
        return self.ip

    def run_ssh_command(self, command: str) -> str:
        self.commands.append(command)
        result = subprocess.run(
            ["sh", "-c", command],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=30,
        )
        if result.returncode != 0:
            raise DriverError(f"exit {result.returncode}", output=result.stdout, returncode=result.returncode)
        return result.stdout


def healthy_responses(usage="45%"):
    return {
        "ping": "",
        "curl": "HTTP/1.1 200 OK\n",
        "/proc/mounts": "1\n",
        "df -h": f"{usage}\n",
    }


def make_console() -> Console:
    return Console(file=io.StringIO(), force_terminal=False, color_system=None, width=200, soft_wrap=True)


def output_of(console: Console) -> str:
    return console.file.getvalue()


@pytest.fixture
def console():
    return make_console()


@pytest.fixture
def make_config(tmp_path):
    """Build a config isolated from the user's home and environment."""
    def _make(overrides=None, environ=None):
        return PreflightConfig(
            path=tmp_path / "config.toml",
            overrides=overrides,
            environ=environ or {},
        )
    return _make


@pytest.fixture
def make_context(make_config, console):
    def _make(overrides=None, driver=None, environ=None):
        return CheckContext(config=make_config(overrides, environ), console=console, driver=driver)
    return _make
