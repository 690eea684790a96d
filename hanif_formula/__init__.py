"""hanif-formula: install recipe and smoke test for the hanif CLI."""

__version__ = "1.0.0"
