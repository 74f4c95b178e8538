"""No-op executor for plain documentation."""

from typing import Any

from mdpolyglot.executors.base import Executor
from mdpolyglot.models.polyglot import Polyglot
from mdpolyglot.models.results import ExecutionResult

DOCUMENTATION_ONLY = "documentation only"


class NoopExecutor(Executor):
    """Always succeeds without side effects."""

    name = "noop"

    def execute(self, source: Polyglot | Any) -> ExecutionResult:
        """Return the documentation-only result."""
        return self.run(source)

    def run(self, transpiled: Any) -> ExecutionResult:
        return ExecutionResult.success(self.name, message=DOCUMENTATION_ONLY)
