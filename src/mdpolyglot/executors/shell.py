"""Shell executor: ``bash -c <script>``, falling back to ``sh -c``."""

import logging
import os

from mdpolyglot.config import PolyglotConfig
from mdpolyglot.executors.base import Executor
from mdpolyglot.models.polyglot import Target
from mdpolyglot.models.results import ExecutionResult
from mdpolyglot.transpilers.base import ShellScript

logger = logging.getLogger(__name__)


class ShellExecutor(Executor):
    """Runs the document's merged script inside an isolated directory."""

    name = "shell"
    target = Target.BASH

    def __init__(self, config: PolyglotConfig | None = None) -> None:
        """Initialize the executor with the preferred shell first."""
        super().__init__(config)
        self.binaries = tuple(dict.fromkeys([self.config.shell.preferred, "bash", "sh"]))

    def run(self, transpiled: ShellScript) -> ExecutionResult:
        """Run the script.

        Args:
            transpiled: Script and environment

        Returns:
            ExecutionResult with ``output``, ``exit_code`` and ``shell``
        """
        shell = self.find_binary()
        if shell is None:
            return self.mock(f"bash -c <script of {len(transpiled.script)} chars>")

        env = {**os.environ, **transpiled.environment}
        with self.workspace() as directory:
            run = self.run_tool([shell, "-c", transpiled.script], cwd=directory, env=env)

        if not run.ok:
            return run.to_failure(self.name, exit_code=run.code, shell=shell)
        return ExecutionResult.success(self.name, output=run.output, exit_code=0, shell=shell)
