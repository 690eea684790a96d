"""
Receipt model: the outcome of one lifecycle phase.

The lifecycle engine runs ``install`` and ``test`` phases and records
each as a Receipt. Phases raise FormulaError subclasses; the engine
converts them with ``Receipt.from_error`` so the report never raises.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

Phase = Literal["install", "test"]
Status = Literal["ok", "skipped", "failed"]


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class Receipt(BaseModel):
    """Result of running one phase of a formula lifecycle."""

    phase: Phase
    operation_id: str
    status: Status = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None
    error_type: str | None = None   # FormulaError subclass name
    warnings: list[str] = Field(default_factory=list)

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    def headline(self) -> str:
        """One line for logs: ``install ok (12ms)``."""
        text = f"{self.phase} {self.status} ({self.duration_ms}ms)"
        if self.failed and self.error_type:
            text += f" [{self.error_type}]"
        return text

    @classmethod
    def success(cls, phase: Phase, operation_id: str, output: str = "", **kwargs: Any) -> Receipt:
        return cls(phase=phase, operation_id=operation_id, output=output, **kwargs)

    @classmethod
    def failure(cls, phase: Phase, operation_id: str, error: str, **kwargs: Any) -> Receipt:
        return cls(phase=phase, operation_id=operation_id, status="failed", error=error, **kwargs)

    @classmethod
    def from_error(cls, phase: Phase, operation_id: str, exc: BaseException, **kwargs: Any) -> Receipt:
        """Failed receipt carrying the exception text and class name."""
        return cls.failure(phase, operation_id, str(exc), error_type=type(exc).__name__, **kwargs)

    @classmethod
    def skip(cls, phase: Phase, operation_id: str, reason: str = "", **kwargs: Any) -> Receipt:
        """The phase did not run; ``reason`` goes into ``output``."""
        return cls(phase=phase, operation_id=operation_id, status="skipped", output=reason, **kwargs)
