"""Git executor: materialize files, then run the init commands."""

import logging
import os

from mdpolyglot.executors.base import Executor
from mdpolyglot.executors.workspace import resolve_inside
from mdpolyglot.models.polyglot import Target
from mdpolyglot.models.results import ExecutionResult, UnitResult
from mdpolyglot.transpilers.base import GitRepository

logger = logging.getLogger(__name__)


class GitExecutor(Executor):
    """Builds a throwaway repository from ``file:`` blocks.

    Each init command is a unit of the batch; a failing command is recorded
    and the remaining commands still run.
    """

    name = "git"
    target = Target.GIT
    binaries = ("git",)

    def _environment(self) -> dict[str, str]:
        author = self.config.git
        return {
            **os.environ,
            "GIT_AUTHOR_NAME": author.author_name,
            "GIT_AUTHOR_EMAIL": author.author_email,
            "GIT_COMMITTER_NAME": author.author_name,
            "GIT_COMMITTER_EMAIL": author.author_email,
        }

    def run(self, transpiled: GitRepository) -> ExecutionResult:
        """Write files and run ``init_commands`` through ``sh -c``.

        Only the init commands are units of the batch. A file that cannot be
        written (or whose path escapes the workspace) is listed in
        ``file_errors`` and the commands still run.

        Args:
            transpiled: Files and init commands

        Returns:
            Batch ExecutionResult with ``files_created``, ``file_errors`` and
            ``git_output``
        """
        if not self.check_available():
            return self.mock(
                "; ".join(transpiled.init_commands),
                files_created=0,
                files=sorted(transpiled.files),
            )

        units: list[UnitResult] = []
        git_output: list[str] = []
        file_errors: list[dict[str, str]] = []
        created = 0
        env = self._environment()

        with self.workspace() as repository:
            for path, content in transpiled.files.items():
                destination = resolve_inside(repository, path)
                if destination is None:
                    logger.error("Refusing to write %s: path escapes the workspace", path)
                    file_errors.append({"path": path, "error": "path escapes the workspace"})
                    continue
                try:
                    destination.parent.mkdir(parents=True, exist_ok=True)
                    destination.write_text(content)
                except OSError as e:
                    logger.error("Cannot write %s: %s", path, e)
                    file_errors.append({"path": path, "error": str(e)})
                    continue
                created += 1

            for command in transpiled.init_commands:
                run = self.run_tool(["sh", "-c", command], cwd=repository, env=env)
                units.append(run.to_unit(command))
                git_output.append(run.output)

        return ExecutionResult.batch(
            self.name,
            units,
            files_created=created,
            file_errors=file_errors,
            git_output=git_output,
        )
