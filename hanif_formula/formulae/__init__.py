"""Formulas: install recipes driven by the lifecycle engine.

Public re-exports for convenient access.
"""

from hanif_formula.formulae.base import Formula
from hanif_formula.formulae.hanif_cli import HanifCliFormula

__all__ = [
    "Formula",
    "HanifCliFormula",
]
