"""
Shared types for the preflight module.

This module exists to avoid circular imports between runner.py, checks.py
and phases.py.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from rich.console import Console

if TYPE_CHECKING:
    from vm_preflight.config.settings import PreflightConfig
    from vm_preflight.drivers.base import Driver


class Outcome(Enum):
    """Terminal outcome of running a single check."""
    SKIPPED = "skipped"
    PASSED = "passed"
    WARNED = "warned"
    FAILED_FATAL = "failed"

    @property
    def token(self) -> str:
        """Status token printed after the check message."""
        if self is Outcome.SKIPPED:
            return "SKIP"
        if self is Outcome.PASSED:
            return "OK"
        return "FAIL"


@dataclass
class CheckContext:
    """
    Everything a predicate may need while it runs.

    Driver-free checks (the hypervisor driver checks) ignore ``driver``;
    checks run after the host is up read it from here.
    """
    config: "PreflightConfig"
    console: Console
    driver: Optional["Driver"] = None


Predicate = Callable[[CheckContext], bool]


@dataclass(frozen=True)
class CheckDescriptor:
    """Declarative binding of a predicate to its overrides and messages."""
    name: str
    message: str
    skip_key: str
    warn_key: str
    failure_hint: str
    predicate: Predicate
    treat_as_warning: bool = False


@dataclass
class CheckResult:
    """Result of running one check descriptor."""
    check: str
    outcome: Outcome
    message: str
    failure_hint: str | None = None

    @property
    def passed(self) -> bool:
        return self.outcome == Outcome.PASSED

    @property
    def is_fatal(self) -> bool:
        return self.outcome == Outcome.FAILED_FATAL
