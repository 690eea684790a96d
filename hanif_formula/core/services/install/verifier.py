"""
Verifier: post-install smoke test of the installed executable.

Each check runs the executable with fixed arguments and asserts that
stdout contains an expected substring. All checks run even when an
earlier one fails, so the report shows every broken contract at once.
Only ``Cancelled`` stops the run early.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from hanif_formula.core.errors import AssertionFailed, ExecutionFailed, FormulaError
from hanif_formula.core.models.formula import TestCheck
from hanif_formula.core.services.install.subprocess_runner import run_captured

logger = logging.getLogger(__name__)

DEFAULT_CHECKS: tuple[TestCheck, ...] = (
    TestCheck(name="version", args=["version"], expect="hanif CLI v"),
    TestCheck(name="help", args=["help"], expect="Usage: hanif"),
)


@dataclass
class CheckOutcome:
    """Result of one check."""

    check: str
    status: Literal["passed", "assertion_failed", "execution_failed"]
    command: list[str] = field(default_factory=list)
    output: str = ""
    elapsed_ms: int = 0
    error: FormulaError | None = None

    @property
    def passed(self) -> bool:
        return self.status == "passed"

    def to_dict(self) -> dict:
        return {
            "check": self.check,
            "status": self.status,
            "command": self.command,
            "elapsed_ms": self.elapsed_ms,
            "error": str(self.error) if self.error else None,
        }


@dataclass
class VerificationReport:
    """All check outcomes for one executable."""

    executable: str = ""
    outcomes: list[CheckOutcome] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(o.passed for o in self.outcomes)

    @property
    def failures(self) -> list[CheckOutcome]:
        return [o for o in self.outcomes if not o.passed]

    @property
    def errors(self) -> list[FormulaError]:
        return [o.error for o in self.outcomes if o.error is not None]

    def outcome(self, check: str) -> CheckOutcome | None:
        for o in self.outcomes:
            if o.check == check:
                return o
        return None

    def raise_for_failures(self) -> None:
        """Raise the first recorded error, if any."""
        errors = self.errors
        if errors:
            raise errors[0]

    def summary(self) -> str:
        passed = sum(1 for o in self.outcomes if o.passed)
        return f"{passed}/{len(self.outcomes)} checks passed"

    def to_dict(self) -> dict:
        return {
            "executable": self.executable,
            "passed": self.passed,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


def run_check(
    executable: Path,
    check: TestCheck,
    *,
    timeout: float | None = None,
    cancel_event: threading.Event | None = None,
) -> CheckOutcome:
    """Run one check and classify the result.

    A launch failure is ``execution_failed``. A non-zero exit or a
    missing substring is ``assertion_failed``: the binary exists but
    breaks its contract.

    Raises:
        Cancelled: The run was killed.
    """
    cmd = [str(executable), *check.args]
    label = check.label
    try:
        res = run_captured(cmd, step=f"test:{label}", timeout=timeout, cancel_event=cancel_event)
    except OSError as e:
        err = ExecutionFailed(label, str(e))
        logger.error("%s", err)
        return CheckOutcome(check=label, status="execution_failed", command=cmd, error=err)

    outcome = CheckOutcome(
        check=label,
        status="passed",
        command=cmd,
        output=res["stdout"],
        elapsed_ms=res["elapsed_ms"],
    )

    if res["rc"] != 0:
        detail = res["stderr"].strip().splitlines()[-1:] or [""]
        reason = f"exit status {res['rc']}" + (f": {detail[0]}" if detail[0] else "")
        outcome.status = "assertion_failed"
        outcome.error = AssertionFailed(label, check.expect, res["stdout"], reason=reason)
    elif check.expect not in res["stdout"]:
        outcome.status = "assertion_failed"
        outcome.error = AssertionFailed(label, check.expect, res["stdout"])

    if outcome.error is not None:
        logger.error("%s", outcome.error)
    else:
        logger.info("✓ %s (%dms)", label, outcome.elapsed_ms)
    return outcome


def verify(
    executable: Path,
    checks: list[TestCheck] | tuple[TestCheck, ...] = DEFAULT_CHECKS,
    *,
    timeout: float | None = None,
    cancel_event: threading.Event | None = None,
) -> VerificationReport:
    """Run every check against ``executable``.

    Failures are accumulated; one failing check never prevents the rest
    from running.

    Raises:
        Cancelled: A check was killed; remaining checks are not run.
    """
    report = VerificationReport(executable=str(executable))
    for check in checks:
        report.outcomes.append(
            run_check(executable, check, timeout=timeout, cancel_event=cancel_event)
        )
    logger.info("Verification of %s: %s", executable, report.summary())
    return report
