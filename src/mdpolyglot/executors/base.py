"""Abstract base class for executors.

Every executor follows the same pattern:
1. Transpile the document (or accept an already transpiled configuration)
2. Look up the external binary; when absent, return a mock success
3. Run the tool in an isolated workspace with a timeout
4. Collapse every outcome into an ExecutionResult

``execute`` never raises: transpile errors, tool failures, invocation errors,
timeouts and unexpected exceptions all come back as failed results.
"""

import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from contextlib import AbstractContextManager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from mdpolyglot.config import PolyglotConfig
from mdpolyglot.executors.workspace import WorkspaceAllocator
from mdpolyglot.models.polyglot import Polyglot, Target
from mdpolyglot.models.results import ErrorKind, ExecutionResult, UnitResult
from mdpolyglot.transpilers import (
    TranspileDefaults,
    TranspiledConfig,
    TranspileError,
    transpile_artifacts,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Child processes
# =============================================================================


class ProcessOutcome(Enum):
    """How a child-process invocation ended."""

    ABSENT = "absent"
    COMPLETED = "completed"
    RAISED = "raised"
    TIMEOUT = "timeout"


_FAILURE_KINDS = {
    ProcessOutcome.ABSENT: ErrorKind.INVOCATION_FAILED,
    ProcessOutcome.COMPLETED: ErrorKind.TOOL_FAILED,
    ProcessOutcome.RAISED: ErrorKind.INVOCATION_FAILED,
    ProcessOutcome.TIMEOUT: ErrorKind.TIMEOUT,
}


@dataclass(frozen=True)
class ProcessRun:
    """Result of one child-process invocation.

    Attributes:
        outcome: How the invocation ended
        code: Exit code (-1 unless the process completed)
        output: Combined stdout/stderr, or the error message
        command: Argument vector that was run
    """

    outcome: ProcessOutcome
    code: int
    output: str
    command: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        """Whether the process ran and exited 0."""
        return self.outcome is ProcessOutcome.COMPLETED and self.code == 0

    @property
    def error(self) -> ErrorKind | None:
        """Failure kind, None on success."""
        return None if self.ok else _FAILURE_KINDS[self.outcome]

    def to_failure(self, target: str, **details: Any) -> ExecutionResult:
        """Collapse into the shared ``{code, output}`` failure shape."""
        return ExecutionResult.failure(
            target,
            self.error or ErrorKind.TOOL_FAILED,
            self.output,
            code=self.code,
            **details,
        )

    def to_unit(self, unit: str) -> UnitResult:
        """Record as one unit of a batch."""
        return UnitResult(unit=unit, ok=self.ok, output=self.output, code=self.code, error=self.error)


def _text(output: str | bytes | None) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output


def run_process(
    command: Sequence[str],
    cwd: Path | None = None,
    input: str | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float = 300,
) -> ProcessRun:
    """Run a command, capturing combined output. Never raises.

    Args:
        command: Argument vector (no shell interpolation)
        cwd: Working directory
        input: Text piped to standard input
        env: Full environment for the child
        timeout: Seconds before the child is killed

    Returns:
        ProcessRun describing the outcome
    """
    argv = tuple(command)
    if shutil.which(argv[0]) is None:
        return ProcessRun(ProcessOutcome.ABSENT, -1, f"{argv[0]}: command not found", argv)

    try:
        completed = subprocess.run(
            argv,
            cwd=cwd,
            input=input,
            env=dict(env) if env is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        partial = _text(e.output)
        message = f"{argv[0]} timed out after {timeout}s"
        return ProcessRun(
            ProcessOutcome.TIMEOUT, -1, f"{partial}\n{message}" if partial else message, argv
        )
    except (OSError, subprocess.SubprocessError) as e:
        return ProcessRun(ProcessOutcome.RAISED, -1, f"{argv[0]} failed to start: {e}", argv)

    return ProcessRun(ProcessOutcome.COMPLETED, completed.returncode, completed.stdout or "", argv)


# =============================================================================
# Executors
# =============================================================================


class Executor(ABC):
    """Abstract interface for target executors.

    Attributes:
        name: Executor identifier (docker, terraform, ..., noop)
        target: Transpilation target, None for executors without one
        binaries: Candidate binaries, any one of which makes the tool available
    """

    name: str = "executor"
    target: Target | None = None
    binaries: tuple[str, ...] = ()

    def __init__(self, config: PolyglotConfig | None = None) -> None:
        """Initialize the executor.

        Args:
            config: Configuration (defaults used if None)
        """
        self.config = config or PolyglotConfig()
        self._workspaces = WorkspaceAllocator(
            prefix=f"polyglot_{self.name}_",
            root=self.config.execution.workspace_root,
        )

    # =========================================================================
    # Probing
    # =========================================================================

    def find_binary(self) -> str | None:
        """Return the first candidate binary found on PATH."""
        for binary in self.binaries:
            if shutil.which(binary) is not None:
                return binary
        return None

    def check_available(self) -> bool:
        """Verify the tool is installed (always True without binaries)."""
        return not self.binaries or self.find_binary() is not None

    def get_version(self) -> str | None:
        """Return the first line of ``<binary> --version``, if any."""
        binary = self.find_binary()
        if binary is None:
            return None
        run = run_process([binary, "--version"], timeout=10)
        if not run.ok or not run.output.strip():
            return None
        return run.output.strip().split("\n")[0]

    def get_metadata(self) -> dict[str, Any]:
        """Get executor metadata for logging and the CLI."""
        return {
            "name": self.name,
            "target": self.target.value if self.target else None,
            "binaries": list(self.binaries),
            "available": self.check_available(),
        }

    # =========================================================================
    # Execution
    # =========================================================================

    def transpile(self, polyglot: Polyglot) -> TranspiledConfig | TranspileError:
        """Transpile a classified document for this executor's target."""
        if self.target is None:
            raise TypeError(f"{self.name} executor has no transpilation target")
        return transpile_artifacts(
            self.target,
            polyglot.artifacts,
            polyglot.metadata,
            TranspileDefaults.from_config(self.config),
        )

    def execute(self, source: Polyglot | TranspiledConfig) -> ExecutionResult:
        """Run a document or an already transpiled configuration.

        Args:
            source: Classified document, or configuration for this target

        Returns:
            ExecutionResult (never raises)
        """
        try:
            if isinstance(source, Polyglot):
                transpiled = self.transpile(source)
            else:
                transpiled = source

            if isinstance(transpiled, TranspileError):
                logger.error("Cannot execute %s: %s", self.name, transpiled.reason)
                return ExecutionResult.failure(
                    self.name, ErrorKind.TRANSPILE_FAILED, transpiled.reason
                )
            if transpiled.target is not self.target:
                return ExecutionResult.failure(
                    self.name,
                    ErrorKind.TRANSPILE_FAILED,
                    f"{transpiled.target.value} configuration given to {self.name} executor",
                )

            return self.run(transpiled)
        except Exception as e:
            logger.exception("%s executor failed unexpectedly", self.name)
            return ExecutionResult.failure(self.name, ErrorKind.UNHANDLED, str(e))

    @abstractmethod
    def run(self, transpiled: Any) -> ExecutionResult:
        """Run the transpiled configuration for this target.

        Args:
            transpiled: Configuration produced by this target's transpiler

        Returns:
            ExecutionResult
        """

    # =========================================================================
    # Helpers for subclasses
    # =========================================================================

    def workspace(self) -> AbstractContextManager[Path]:
        """Acquire an isolated workspace (removed on exit)."""
        return self._workspaces.acquire()

    def run_tool(
        self,
        command: Sequence[str],
        cwd: Path | None = None,
        input: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ProcessRun:
        """Run one command with the configured timeout, logging the outcome."""
        logger.info("Running %s", " ".join(command))
        run = run_process(
            command, cwd=cwd, input=input, env=env, timeout=self.config.execution.timeout
        )
        if not run.ok:
            logger.error(
                "%s exited with %s (%s)", command[0], run.code, run.outcome.value
            )
        return run

    def mock(self, would_run: str, **details: Any) -> ExecutionResult:
        """Result for a missing tool: mock success, or an error when mocking is off."""
        tool = self.binaries[0] if self.binaries else self.name
        if not self.config.execution.mock_missing_tools:
            logger.error("%s is not installed", tool)
            return ExecutionResult.failure(
                self.name, ErrorKind.TOOL_NOT_INSTALLED, f"{tool} not installed"
            )

        note = f"{tool} not installed - would execute: {would_run}"
        logger.warning(note)
        return ExecutionResult.success(self.name, mock=True, note=note, **details)
