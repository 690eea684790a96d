"""
Lifecycle engine: drives a formula through install, then test.

Flow:
    install → (on success) test → collect receipts → report

An install failure aborts the run and the test phase is recorded as
skipped. A test failure leaves the installed files in place; the
report status becomes "partial" and the caller decides what to do about it.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

from hanif_formula.core.errors import Cancelled, FormulaError
from hanif_formula.core.models.install_context import InstallContext
from hanif_formula.core.models.receipt import Receipt
from hanif_formula.core.services.install.verifier import VerificationReport
from hanif_formula.formulae.base import Formula

logger = logging.getLogger(__name__)


@dataclass
class LifecycleReport:
    """Result of running a formula lifecycle."""

    operation_id: str = ""
    formula: str = ""
    version: str = ""
    prefix: str = ""
    receipts: list[Receipt] = field(default_factory=list)
    caveats: str = ""

    @property
    def total(self) -> int:
        return len(self.receipts)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.receipts if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.receipts if r.failed)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.receipts if r.skipped)

    @property
    def all_ok(self) -> bool:
        return self.failed == 0

    @property
    def status(self) -> str:
        if self.failed == 0:
            return "ok"
        if self.succeeded > 0:
            return "partial"
        return "failed"

    @property
    def warnings(self) -> list[str]:
        return [w for r in self.receipts for w in r.warnings]

    def receipt(self, phase: str) -> Receipt | None:
        for r in self.receipts:
            if r.phase == phase:
                return r
        return None

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "formula": self.formula,
            "version": self.version,
            "prefix": self.prefix,
            "status": self.status,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "warnings": self.warnings,
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }


def run_install_phase(formula: Formula, ctx: InstallContext, operation_id: str) -> Receipt:
    """Run ``formula.install`` and wrap the outcome in a receipt."""
    start = time.monotonic()
    try:
        result = formula.install(ctx)
    except FormulaError as e:
        logger.error("Install of %s failed: %s", formula.name, e)
        return Receipt.from_error("install", operation_id, e, duration_ms=_elapsed_ms(start))

    metadata = result.to_dict() if hasattr(result, "to_dict") else {}
    return Receipt.success(
        phase="install",
        operation_id=operation_id,
        output=f"Installed {formula.name} into {ctx.prefix}",
        duration_ms=_elapsed_ms(start),
        warnings=list(getattr(result, "warnings", [])),
        metadata=metadata,
    )


def run_test_phase(
    formula: Formula,
    ctx: InstallContext,
    operation_id: str,
    cancel_event: threading.Event | None = None,
) -> Receipt:
    """Run ``formula.test`` and wrap the outcome in a receipt.

    ``Cancelled`` becomes a failed receipt with ``error_type="Cancelled"``.
    """
    start = time.monotonic()
    try:
        report = formula.test(ctx, cancel_event=cancel_event)
    except Cancelled as e:
        logger.error("Test of %s cancelled: %s", formula.name, e)
        return Receipt.from_error("test", operation_id, e, duration_ms=_elapsed_ms(start))
    except FormulaError as e:
        return Receipt.from_error("test", operation_id, e, duration_ms=_elapsed_ms(start))

    if isinstance(report, VerificationReport):
        metadata = report.to_dict()
        if not report.passed:
            errors = report.errors
            return Receipt.failure(
                phase="test",
                operation_id=operation_id,
                error="\n".join(str(e) for e in errors),
                error_type=type(errors[0]).__name__ if errors else None,
                output=report.summary(),
                duration_ms=_elapsed_ms(start),
                metadata=metadata,
            )
        return Receipt.success(
            phase="test",
            operation_id=operation_id,
            output=report.summary(),
            duration_ms=_elapsed_ms(start),
            metadata=metadata,
        )

    return Receipt.success(phase="test", operation_id=operation_id, duration_ms=_elapsed_ms(start))


def run_lifecycle(
    formula: Formula,
    ctx: InstallContext,
    *,
    skip_test: bool = False,
    cancel_event: threading.Event | None = None,
    operation_id: str | None = None,
) -> LifecycleReport:
    """Install ``formula`` into ``ctx.prefix`` and, unless skipped, test it.

    Args:
        formula: The formula to run.
        ctx: Resolved paths for this install.
        skip_test: Record the test phase as skipped instead of running it.
        cancel_event: Passed to the test phase; setting it kills running checks.
        operation_id: Optional id (default: generated).

    Returns:
        LifecycleReport with one receipt per phase. Never raises FormulaError.
    """
    operation_id = operation_id or generate_operation_id()
    report = LifecycleReport(
        operation_id=operation_id,
        formula=formula.name,
        version=formula.spec.version,
        prefix=ctx.prefix,
    )

    install_receipt = run_install_phase(formula, ctx, operation_id)
    report.receipts.append(install_receipt)
    _log_receipt(install_receipt)

    if install_receipt.failed:
        report.receipts.append(
            Receipt.skip(phase="test", operation_id=operation_id, reason="install failed")
        )
        return report

    if skip_test:
        report.receipts.append(
            Receipt.skip(phase="test", operation_id=operation_id, reason="skipped by request")
        )
    else:
        test_receipt = run_test_phase(formula, ctx, operation_id, cancel_event)
        report.receipts.append(test_receipt)
        _log_receipt(test_receipt)

    report.caveats = formula.caveats()
    return report


def _log_receipt(receipt: Receipt) -> None:
    marker = "✓" if receipt.ok else "✗" if receipt.failed else "⊘"
    logger.info("%s %s", marker, receipt.headline())


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"op-{now}-{short}"
