"""
Install use case: the vertical slice from CLI intent to lifecycle report.

Loads the formula, resolves the prefix and runtime dependencies,
registers the install context, and runs the lifecycle.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path

from hanif_formula.core.config.loader import ConfigError, load_formula
from hanif_formula.core.context import set_install_context
from hanif_formula.core.engine.lifecycle import (
    LifecycleReport,
    generate_operation_id,
    run_lifecycle,
    run_test_phase,
)
from hanif_formula.core.errors import DependencyMissing
from hanif_formula.core.models.formula import FormulaSpec
from hanif_formula.core.models.install_context import InstallContext
from hanif_formula.core.models.receipt import Receipt
from hanif_formula.core.services.install.dependencies import resolve_dependencies
from hanif_formula.formulae.hanif_cli import HanifCliFormula

logger = logging.getLogger(__name__)


@dataclass
class InstallRunResult:
    """Result of an install (or test-only) run."""

    report: LifecycleReport | None = None
    test_receipt: Receipt | None = None
    formula: FormulaSpec | None = None
    prefix: Path | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        if self.error:
            return False
        if self.report is not None:
            return self.report.all_ok
        if self.test_receipt is not None:
            return self.test_receipt.ok
        return False

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        result["formula"] = self.formula.name if self.formula else ""
        result["version"] = self.formula.version if self.formula else ""
        result["prefix"] = str(self.prefix)
        if self.report:
            result["report"] = self.report.to_dict()
        if self.test_receipt:
            result["test"] = self.test_receipt.model_dump(mode="json")
        return result


def default_prefix(formula: FormulaSpec, env: dict[str, str] | None = None) -> Path | None:
    """``HANIF_PREFIX``, else ``$HOMEBREW_PREFIX/Cellar/<name>/<version>``, else None."""
    environ = os.environ if env is None else env
    explicit = environ.get("HANIF_PREFIX")
    if explicit:
        return Path(explicit).expanduser()
    brew_prefix = environ.get("HOMEBREW_PREFIX")
    if brew_prefix:
        return Path(brew_prefix) / "Cellar" / formula.name / formula.version
    return None


def _build_context(
    formula: FormulaSpec,
    prefix: Path,
    buildpath: Path,
    dep_overrides: dict[str, str] | None,
    timeout_seconds: float | None,
) -> InstallContext:
    required = [formula.shebang.runtime] if formula.shebang.enabled else []
    deps = resolve_dependencies(formula.depends_on, dep_overrides, required=required)
    return InstallContext(
        name=formula.name,
        version=formula.version,
        buildpath=str(buildpath.resolve()),
        prefix=str(prefix.resolve()),
        dependencies=deps,
        timeout_seconds=timeout_seconds,
    )


def run_install(
    source: Path,
    prefix: Path | None = None,
    formula_path: Path | None = None,
    dep_overrides: dict[str, str] | None = None,
    skip_test: bool = False,
    timeout_seconds: float | None = None,
    cancel_event: threading.Event | None = None,
) -> InstallRunResult:
    """Install the formula from a staged source tree.

    Args:
        source: Unpacked source tree (the package manager's buildpath).
        prefix: Installation prefix (default: see ``default_prefix``).
        formula_path: Optional explicit formula YAML.
        dep_overrides: ``{name: opt_prefix}`` for runtime dependencies.
        skip_test: Do not run the post-install test.
        timeout_seconds: Deadline for each test subprocess.
        cancel_event: Set to kill running test subprocesses.

    Returns:
        InstallRunResult with the lifecycle report.
    """
    result = InstallRunResult()

    try:
        formula = load_formula(formula_path)
    except ConfigError as e:
        result.error = str(e)
        return result
    result.formula = formula

    prefix = prefix or default_prefix(formula)
    if prefix is None:
        result.error = "No install prefix. Pass --prefix or set HANIF_PREFIX / HOMEBREW_PREFIX."
        return result
    result.prefix = prefix

    try:
        ctx = _build_context(formula, prefix, source, dep_overrides, timeout_seconds)
    except DependencyMissing as e:
        result.error = str(e)
        return result

    logger.debug("Install context: %s", ctx.model_dump())
    set_install_context(ctx)
    result.report = run_lifecycle(
        HanifCliFormula(formula),
        ctx,
        skip_test=skip_test,
        cancel_event=cancel_event,
    )
    return result


def run_test(
    prefix: Path | None = None,
    formula_path: Path | None = None,
    timeout_seconds: float | None = None,
    cancel_event: threading.Event | None = None,
) -> InstallRunResult:
    """Run only the post-install test against an existing prefix."""
    result = InstallRunResult()

    try:
        formula = load_formula(formula_path)
    except ConfigError as e:
        result.error = str(e)
        return result
    result.formula = formula

    prefix = prefix or default_prefix(formula)
    if prefix is None:
        result.error = "No install prefix. Pass --prefix or set HANIF_PREFIX / HOMEBREW_PREFIX."
        return result
    result.prefix = prefix

    executable = prefix / "bin" / formula.bin_name
    if not executable.exists():
        result.error = f"{formula.name} is not installed: {executable} does not exist"
        return result

    ctx = InstallContext(
        name=formula.name,
        version=formula.version,
        prefix=str(prefix.resolve()),
        timeout_seconds=timeout_seconds,
    )
    set_install_context(ctx)
    result.test_receipt = run_test_phase(
        HanifCliFormula(formula), ctx, generate_operation_id(), cancel_event
    )
    return result
