"""Execution result entities.

This module contains entities returned by executors:
- ErrorKind: Failure taxonomy shared by every executor
- UnitResult: Outcome of one unit in a multi-unit batch
- ExecutionResult: Terminal value of an executor call
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ErrorKind(Enum):
    """Why an execution did not succeed."""

    TRANSPILE_FAILED = "transpile_failed"
    TOOL_FAILED = "tool_failed"
    INVOCATION_FAILED = "invocation_failed"
    TIMEOUT = "timeout"
    TOOL_NOT_INSTALLED = "tool_not_installed"
    NOT_FOUND = "not_found"
    UNHANDLED = "unhandled"


@dataclass
class UnitResult:
    """Outcome of a single unit (manifest, git command, SQL statement).

    Attributes:
        unit: Human-readable unit label
        ok: Whether the unit succeeded
        output: Combined stdout/stderr or mock note
        code: Exit code (-1 when the process never ran)
        error: Failure kind for failed units
    """

    unit: str
    ok: bool
    output: str = ""
    code: int = 0
    error: ErrorKind | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {
            "unit": self.unit,
            "ok": self.ok,
            "output": self.output,
            "code": self.code,
        }
        if self.error is not None:
            result["error"] = self.error.value
        return result


@dataclass
class ExecutionResult:
    """Terminal value of an executor call. Never partially constructed.

    Successful results carry target-specific fields in ``details`` (``image``,
    ``plan``, ``applied``/``failed``, ``git_output``, ``output``/``exit_code``).
    Failed results carry ``code`` and ``output`` in ``details`` so callers see
    one failure shape per target.

    Attributes:
        target: Executor name (docker, terraform, ..., noop)
        ok: Whether the call succeeded
        details: Target-specific payload
        error: Failure kind when ``ok`` is False
        mock: Whether the result was produced without running the tool
        units: Per-unit outcomes for multi-unit targets
        finished_at: Completion timestamp (UTC)
    """

    target: str
    ok: bool
    details: dict[str, Any] = field(default_factory=dict)
    error: ErrorKind | None = None
    mock: bool = False
    units: list[UnitResult] = field(default_factory=list)
    finished_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        """Ensure timestamp is timezone-aware UTC."""
        if self.finished_at.tzinfo is None:
            self.finished_at = self.finished_at.replace(tzinfo=UTC)

    @classmethod
    def success(cls, target: str, mock: bool = False, **details: Any) -> "ExecutionResult":
        """Create a successful result."""
        return cls(target=target, ok=True, details=details, mock=mock)

    @classmethod
    def failure(
        cls,
        target: str,
        error: ErrorKind,
        output: str,
        code: int = -1,
        **details: Any,
    ) -> "ExecutionResult":
        """Create a failed result with the shared ``code``/``output`` shape."""
        return cls(
            target=target,
            ok=False,
            error=error,
            details={"code": code, "output": output, **details},
        )

    @classmethod
    def batch(
        cls,
        target: str,
        units: list[UnitResult],
        mock: bool = False,
        **details: Any,
    ) -> "ExecutionResult":
        """Create a multi-unit result reporting applied/failed counts.

        Partial failure never aborts the batch: the result is ok as long as
        the batch itself ran, and callers decide on aggregation policy.
        """
        applied = sum(1 for u in units if u.ok)
        return cls(
            target=target,
            ok=True,
            details={
                "applied": applied,
                "failed": len(units) - applied,
                "results": [u.to_dict() for u in units],
                **details,
            },
            mock=mock,
            units=list(units),
        )

    @property
    def applied(self) -> int:
        """Number of successful units (multi-unit targets)."""
        return int(self.details.get("applied", 0))

    @property
    def failed(self) -> int:
        """Number of failed units (multi-unit targets)."""
        return int(self.details.get("failed", 0))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {
            "target": self.target,
            "ok": self.ok,
            "mock": self.mock,
            "details": self.details,
            "finished_at": self.finished_at.isoformat(),
        }
        if self.error is not None:
            result["error"] = self.error.value
        return result
