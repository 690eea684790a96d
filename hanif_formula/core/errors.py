"""
Formula errors: the failure taxonomy of install and verification.

Installer errors are fatal and abort the install, except
``PatternNotFound`` which the installer logs and records as a warning.
Verifier errors are collected per check; ``Cancelled`` always propagates.
"""

from __future__ import annotations

from pathlib import Path


class FormulaError(Exception):
    """Base class for every install or verification failure."""


# ── Install phase ───────────────────────────────────────────────


class SourceMissing(FormulaError):
    """The staged source tree lacks an expected file or directory."""

    def __init__(self, path: Path, kind: str = "file") -> None:
        self.path = Path(path)
        self.kind = kind
        super().__init__(f"Staged source is missing {kind}: {self.path}")


class WriteFailure(FormulaError):
    """A write into the installation prefix failed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Cannot write {self.path}: {reason}")


class PatternNotFound(FormulaError):
    """A text substitution found nothing to replace (recoverable)."""

    def __init__(self, path: Path, pattern: str) -> None:
        self.path = Path(path)
        self.pattern = pattern
        super().__init__(f"Pattern {pattern!r} not found in {self.path}; left unmodified")


class DependencyMissing(FormulaError):
    """A declared runtime dependency could not be resolved or is not executable."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Runtime dependency '{name}' unavailable: {reason}")


# ── Verification phase ──────────────────────────────────────────


class ExecutionFailed(FormulaError):
    """The installed executable could not be launched."""

    def __init__(self, check: str, reason: str) -> None:
        self.check = check
        self.reason = reason
        super().__init__(f"ExecutionFailed({check}): {reason}")


class AssertionFailed(FormulaError):
    """The executable ran but its output broke the expected contract."""

    def __init__(self, check: str, expected: str, output: str = "", reason: str = "") -> None:
        self.check = check
        self.expected = expected
        self.output = output
        self.reason = reason or f"output does not contain {expected!r}"
        super().__init__(f"AssertionFailed({check}): {self.reason}")


class Cancelled(FormulaError):
    """A running step was killed on cancellation or deadline."""

    def __init__(self, step: str, reason: str = "cancelled") -> None:
        self.step = step
        self.reason = reason
        super().__init__(f"Cancelled({step}): {reason}")
