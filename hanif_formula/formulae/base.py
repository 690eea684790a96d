"""
Formula base: the capability contract between the lifecycle engine and a formula.

The engine only talks to formulas through this interface. A formula
declares metadata (its FormulaSpec) and implements two operations,
``install`` and ``test``, plus optional ``caveats`` text.

Unlike receipts, formula operations DO raise: FormulaError subclasses
signal failure, and the engine turns them into failed receipts.

To create a new formula:
    1. Subclass Formula
    2. Implement install and test
    3. Hand an instance to ``run_lifecycle``
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Any

from hanif_formula.core.context import get_install_context
from hanif_formula.core.models.formula import FormulaSpec
from hanif_formula.core.models.install_context import InstallContext


class Formula(ABC):
    """Abstract base class for all formulas."""

    def __init__(self, spec: FormulaSpec) -> None:
        self.spec = spec

    @property
    def name(self) -> str:
        return self.spec.name

    def context(self, ctx: InstallContext | None = None) -> InstallContext:
        """The explicit context, else the ambient one registered by the host.

        Raises:
            RuntimeError: Neither is available.
        """
        ctx = ctx or get_install_context()
        if ctx is None:
            raise RuntimeError(
                f"No install context for formula '{self.name}'. "
                "Call set_install_context() or pass one explicitly."
            )
        return ctx

    @abstractmethod
    def install(self, ctx: InstallContext | None = None) -> Any:
        """Place files into ``ctx.prefix``.

        Invoked once per installation. Raises a FormulaError on fatal failure.
        """

    @abstractmethod
    def test(
        self,
        ctx: InstallContext | None = None,
        *,
        cancel_event: threading.Event | None = None,
    ) -> Any:
        """Smoke-test the installed files. Invoked after ``install`` succeeds."""

    def caveats(self) -> str:
        """Post-install notes shown to the user."""
        return self.spec.render_caveats()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r} version={self.spec.version!r}>"
