"""
Tests for the formula entry points and the lifecycle engine.
"""

import threading
from pathlib import Path

import pytest

from hanif_formula.core.config.loader import load_formula
from hanif_formula.core.context import get_install_context, set_install_context
from hanif_formula.core.data import DEFAULT_FORMULA_FILE
from hanif_formula.core.engine.lifecycle import (
    LifecycleReport,
    generate_operation_id,
    run_lifecycle,
)
from hanif_formula.core.errors import DependencyMissing, SourceMissing
from hanif_formula.core.models import InstallContext, Receipt
from hanif_formula.core.services.install.verifier import VerificationReport
from hanif_formula.formulae import HanifCliFormula
from tests.helpers import write_script


@pytest.fixture
def formula() -> HanifCliFormula:
    return HanifCliFormula(load_formula(DEFAULT_FORMULA_FILE))


# ── Formula entry points ─────────────────────────────────────────────


class TestHanifCliFormula:
    def test_install_reads_ambient_context(self, formula, install_ctx: InstallContext):
        set_install_context(install_ctx)
        result = formula.install()
        assert result.shebang_rewritten
        exe = install_ctx.bin / "hanif"
        assert exe.read_text().splitlines()[0] == f"#!{install_ctx.dependencies['bash'].opt_bin}/bash"
        assert (install_ctx.libexec / "lib" / "sub" / "b.sh").is_file()

    def test_test_after_install(self, formula, install_ctx: InstallContext):
        set_install_context(install_ctx)
        formula.install()
        report = formula.test()
        assert isinstance(report, VerificationReport)
        assert report.passed

    def test_no_context(self, formula):
        assert get_install_context() is None
        with pytest.raises(RuntimeError, match="No install context"):
            formula.install()

    def test_install_requires_bash(self, formula, install_ctx: InstallContext):
        ctx = install_ctx.model_copy(update={"dependencies": {}})
        with pytest.raises(DependencyMissing):
            formula.install(ctx)

    def test_caveats(self, formula):
        text = formula.caveats()
        assert "hanif help" in text
        assert "https://github.com/hanif-mianjee/hanif-cli-tools" in text

    def test_repr(self, formula):
        assert "hanif-cli" in repr(formula)


# ── Lifecycle ────────────────────────────────────────────────────────


class TestRunLifecycle:
    def test_install_then_test(self, formula, install_ctx: InstallContext):
        report = run_lifecycle(formula, install_ctx)
        assert report.status == "ok"
        assert [r.phase for r in report.receipts] == ["install", "test"]
        assert report.receipt("install").metadata["shebang_rewritten"] is True
        assert report.receipt("test").output == "2/2 checks passed"
        assert "hanif help" in report.caveats

    def test_install_failure_skips_test(self, formula, install_ctx: InstallContext, tmp_path: Path):
        ctx = install_ctx.model_copy(update={"buildpath": str(tmp_path / "missing")})
        report = run_lifecycle(formula, ctx)
        install = report.receipt("install")
        assert install.failed
        assert install.error_type == SourceMissing.__name__
        assert report.receipt("test").status == "skipped"
        assert report.status == "failed"

    def test_test_failure_keeps_install(self, formula, install_ctx: InstallContext, staged_source: Path):
        write_script(
            staged_source / "bin" / "hanif",
            "#!/usr/bin/env bash\necho 'unknown tool'\n",
        )
        report = run_lifecycle(formula, install_ctx)
        assert report.receipt("install").ok
        test = report.receipt("test")
        assert test.failed
        assert test.error_type == "AssertionFailed"
        assert "AssertionFailed(version)" in test.error
        assert "AssertionFailed(help)" in test.error
        assert report.status == "partial"
        assert (install_ctx.bin / "hanif").exists()

    def test_skip_test(self, formula, install_ctx: InstallContext):
        report = run_lifecycle(formula, install_ctx, skip_test=True)
        assert report.receipt("test").status == "skipped"
        assert report.all_ok

    def test_pattern_miss_warning_surfaces(self, formula, install_ctx: InstallContext, staged_source: Path):
        write_script(staged_source / "bin" / "hanif", "#!/bin/sh\necho 'hanif CLI v1'\necho 'Usage: hanif'\n")
        report = run_lifecycle(formula, install_ctx)
        assert report.status == "ok"
        assert len(report.warnings) == 1
        assert "not found" in report.warnings[0]

    def test_cancel(self, formula, install_ctx: InstallContext, staged_source: Path):
        write_script(staged_source / "bin" / "hanif", "#!/usr/bin/env bash\nexec sleep 30\n")
        event = threading.Event()
        event.set()
        report = run_lifecycle(formula, install_ctx, cancel_event=event)
        test = report.receipt("test")
        assert test.failed
        assert test.error_type == "Cancelled"

    def test_braced_caveats_do_not_break_report(self, formula, install_ctx: InstallContext):
        spec = formula.spec.model_copy(update={"caveats": "export PATH=${HOME}/bin:$PATH\n"})
        report = run_lifecycle(HanifCliFormula(spec), install_ctx, skip_test=True)
        assert report.all_ok
        assert report.caveats == "export PATH=${HOME}/bin:$PATH\n"

    def test_to_dict(self, formula, install_ctx: InstallContext):
        report = run_lifecycle(formula, install_ctx, operation_id="op-test")
        d = report.to_dict()
        assert d["operation_id"] == "op-test"
        assert d["status"] == "ok"
        assert d["total"] == 2
        assert d["receipts"][0]["phase"] == "install"


class TestLifecycleReport:
    def test_counts(self):
        report = LifecycleReport(receipts=[
            Receipt.success(phase="install", operation_id="x"),
            Receipt.failure(phase="test", operation_id="x", error="boom"),
        ])
        assert report.succeeded == 1
        assert report.failed == 1
        assert report.status == "partial"

    def test_empty_is_ok(self):
        assert LifecycleReport().status == "ok"


class TestOperationId:
    def test_format(self):
        op = generate_operation_id()
        assert op.startswith("op-")
        assert op != generate_operation_id()


class TestReceipt:
    def test_from_error(self):
        receipt = Receipt.from_error("install", "op", SourceMissing(Path("/x/lib"), kind="directory"))
        assert receipt.failed
        assert receipt.error_type == "SourceMissing"
        assert receipt.headline().endswith("[SourceMissing]")

    def test_skip_reason_is_output(self):
        receipt = Receipt.skip("test", "op", reason="install failed")
        assert receipt.skipped
        assert receipt.output == "install failed"
