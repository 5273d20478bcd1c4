"""
Check runner for preflight checks.

Applies the skip/warn/fail policy uniformly to every check descriptor.
Predicates only return a boolean; everything else happens here.
"""

import logging
from dataclasses import dataclass, field

from vm_preflight.drivers.base import DriverError
from vm_preflight.preflight.types import (
    CheckContext,
    CheckDescriptor,
    CheckResult,
    Outcome,
)

logger = logging.getLogger(__name__)

_TOKEN_STYLES = {
    Outcome.SKIPPED: "yellow",
    Outcome.PASSED: "green",
    Outcome.WARNED: "red",
    Outcome.FAILED_FATAL: "red",
}


@dataclass
class PhaseResults:
    """Collection of check results for one workflow phase."""
    phase: str
    results: list[CheckResult] = field(default_factory=list)

    @property
    def fatal(self) -> CheckResult | None:
        """The check that stopped the phase, if any."""
        for r in self.results:
            if r.is_fatal:
                return r
        return None

    @property
    def has_fatal(self) -> bool:
        return self.fatal is not None

    @property
    def warnings(self) -> list[CheckResult]:
        return [r for r in self.results if r.outcome == Outcome.WARNED]

    @property
    def skipped(self) -> list[CheckResult]:
        return [r for r in self.results if r.outcome == Outcome.SKIPPED]

    def add(self, result: CheckResult) -> None:
        self.results.append(result)

    def summary(self) -> str:
        """Get summary string."""
        total = len(self.results)
        passed = sum(1 for r in self.results if r.passed)
        warnings = len(self.warnings)
        skipped = len(self.skipped)

        if self.has_fatal:
            status = "FAILED"
        elif warnings > 0:
            status = "PASSED with warnings"
        else:
            status = "PASSED"

        return (
            f"{status}: {passed}/{total} checks passed "
            f"({warnings} warnings, {skipped} skipped)"
        )


def _print_token(context: CheckContext, outcome: Outcome) -> None:
    context.console.print(outcome.token, style=_TOKEN_STYLES[outcome], highlight=False, markup=False)


def run_check(descriptor: CheckDescriptor, context: CheckContext) -> CheckResult:
    """
    Run a single check and apply the skip/warn/fail policy.

    Setting the descriptor's skip key to true skips the check entirely, the
    predicate is not invoked. Setting ``treat_as_warning`` and/or the warn
    key to true reports a failure as a warning instead of a fatal failure.

    Console protocol::

        -- <message> ... SKIP|OK|FAIL
           <failure hint>            (FAIL only)

    Args:
        descriptor: The check to run.
        context: Config, console and (for after-host checks) the driver.

    Returns:
        CheckResult whose outcome is one of SKIPPED, PASSED, WARNED or
        FAILED_FATAL. A fatal result is returned, never raised; the caller
        decides whether to stop.
    """
    console = context.console
    console.print(f"-- {descriptor.message} ... ", end="", highlight=False, markup=False)

    is_configured_to_skip = context.config.lookup_bool(descriptor.skip_key)
    is_configured_to_warn = context.config.lookup_bool(descriptor.warn_key)
    logger.debug(
        "check %s: %s=%s %s=%s",
        descriptor.name,
        descriptor.skip_key, is_configured_to_skip,
        descriptor.warn_key, is_configured_to_warn,
    )

    if is_configured_to_skip:
        _print_token(context, Outcome.SKIPPED)
        return CheckResult(check=descriptor.name, outcome=Outcome.SKIPPED, message=descriptor.message)

    try:
        holds = descriptor.predicate(context)
    except (DriverError, OSError) as e:
        # Driver and OS errors are check failures, not a separate error class
        logger.debug("check %s raised %s: %s", descriptor.name, type(e).__name__, e)
        holds = False

    if holds:
        _print_token(context, Outcome.PASSED)
        return CheckResult(check=descriptor.name, outcome=Outcome.PASSED, message=descriptor.message)

    if is_configured_to_warn or descriptor.treat_as_warning:
        outcome = Outcome.WARNED
    else:
        outcome = Outcome.FAILED_FATAL

    _print_token(context, outcome)
    console.print(f"   {descriptor.failure_hint}", highlight=False, markup=False)

    return CheckResult(
        check=descriptor.name,
        outcome=outcome,
        message=descriptor.message,
        failure_hint=descriptor.failure_hint,
    )


def run_phase(
    phase: str,
    descriptors: list[CheckDescriptor],
    context: CheckContext,
) -> PhaseResults:
    """
    Run descriptors strictly in order, stopping at the first fatal failure.

    Args:
        phase: Phase name, used for reporting only.
        descriptors: Ordered checks for this phase.
        context: Shared check context.

    Returns:
        PhaseResults for the checks that actually ran.
    """
    results = PhaseResults(phase=phase)

    for descriptor in descriptors:
        result = run_check(descriptor, context)
        results.add(result)
        if result.is_fatal:
            logger.debug("phase %s stopped by fatal check %s", phase, descriptor.name)
            break

    return results
