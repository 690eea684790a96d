"""Bundled formula definitions."""

from __future__ import annotations

from pathlib import Path

DATA_DIR = Path(__file__).parent

DEFAULT_FORMULA_FILE = DATA_DIR / "hanif-cli.yml"
