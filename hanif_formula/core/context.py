"""
Install context registry: "which keg are we installing right now."

A formula's ``install()`` and ``test()`` entry points take no arguments;
they read the context the orchestrator registered here:

    - CLI:     use_cases.install  → context.set_install_context(ctx)
    - Tests:   set it directly, or pass a context explicitly

Module-level singleton, not a class. One install runs per process.
"""

from __future__ import annotations

from typing import Optional

from hanif_formula.core.models.install_context import InstallContext

_install_context: Optional[InstallContext] = None


def set_install_context(ctx: InstallContext) -> None:
    """Register the install context for the current process."""
    global _install_context
    _install_context = ctx


def get_install_context() -> Optional[InstallContext]:
    """Return the current install context, or None if not yet set."""
    return _install_context


def clear_install_context() -> None:
    global _install_context
    _install_context = None
