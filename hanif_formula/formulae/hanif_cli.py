"""
hanif-cli formula.

install: lib/ → <prefix>/libexec/lib, bin/hanif → <prefix>/bin/hanif,
then ``#!/usr/bin/env bash`` → ``#!<bash opt_bin>/bash``.

test: ``hanif version`` mentions "hanif CLI v", ``hanif help`` mentions
"Usage: hanif".
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from hanif_formula.core.models.install_context import InstallContext
from hanif_formula.core.services.install.installer import InstallResult, install_layout, require_runtime
from hanif_formula.core.services.install.verifier import DEFAULT_CHECKS, VerificationReport, verify
from hanif_formula.formulae.base import Formula

logger = logging.getLogger(__name__)


class HanifCliFormula(Formula):
    """Installs the hanif shell CLI from its staged source tarball."""

    def install(self, ctx: InstallContext | None = None) -> InstallResult:
        ctx = self.context(ctx)
        layout = self.spec.layout

        runtime = None
        if self.spec.shebang.enabled:
            name = self.spec.shebang.runtime
            runtime = require_runtime(ctx.dependency(name), name)

        logger.info("Installing %s %s into %s", self.name, self.spec.version, ctx.prefix)
        return install_layout(
            Path(ctx.buildpath),
            ctx.libexec,
            ctx.bin,
            lib_dir=layout.lib_dir,
            executable=layout.executable,
            bin_name=self.spec.bin_name,
            runtime=runtime,
        )

    def test(
        self,
        ctx: InstallContext | None = None,
        *,
        cancel_event: threading.Event | None = None,
    ) -> VerificationReport:
        ctx = self.context(ctx)
        checks = self.spec.test or list(DEFAULT_CHECKS)
        return verify(
            ctx.bin / self.spec.bin_name,
            checks,
            timeout=ctx.timeout_seconds,
            cancel_event=cancel_event,
        )
