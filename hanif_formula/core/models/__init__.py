"""
Domain models: pydantic types for formulas and their lifecycle.

All models are re-exported here for convenient access:

    from hanif_formula.core.models import FormulaSpec, InstallContext, Receipt
"""

from hanif_formula.core.models.formula import (
    FormulaLayout,
    FormulaSpec,
    ShebangRewrite,
    TestCheck,
)
from hanif_formula.core.models.install_context import InstallContext, ResolvedDependency
from hanif_formula.core.models.receipt import Receipt

__all__ = [
    # formula.py
    "FormulaLayout",
    "FormulaSpec",
    # install_context.py
    "InstallContext",
    # receipt.py
    "Receipt",
    "ResolvedDependency",
    "ShebangRewrite",
    "TestCheck",
]
