"""SQL executor: one client invocation per statement."""

import logging
from pathlib import Path

from mdpolyglot.executors.base import Executor
from mdpolyglot.models.polyglot import Target
from mdpolyglot.models.results import ExecutionResult, UnitResult
from mdpolyglot.transpilers.base import SQLBatch

logger = logging.getLogger(__name__)

SCRATCH_DATABASE = "polyglot.db"


def statement_label(statement: str, limit: int = 60) -> str:
    """First line of a statement, truncated for display."""
    first = statement.strip().split("\n")[0]
    return first if len(first) <= limit else first[: limit - 3] + "..."


class SQLExecutor(Executor):
    """Runs statements with sqlite3 or psql.

    Without a configured database, sqlite3 works on a scratch database file
    inside the workspace, shared by all statements of the batch. psql
    connects through the usual ``PG*`` environment when no database is set.
    """

    name = "sql"
    target = Target.SQL

    @property
    def binaries(self) -> tuple[str, ...]:  # type: ignore[override]
        return (self.config.sql.client,)

    def _command(self, statement: str, database: str | None) -> tuple[list[str], str | None]:
        if self.config.sql.client == "psql":
            command = ["psql", "-X", "-q", "-v", "ON_ERROR_STOP=1"]
            if database:
                command += ["-d", database]
            return [*command, "-c", statement], None
        return ["sqlite3", "-batch", "-bail", database or SCRATCH_DATABASE], statement

    def run(self, transpiled: SQLBatch) -> ExecutionResult:
        """Execute each statement independently.

        Args:
            transpiled: Statements and target database

        Returns:
            Batch ExecutionResult with ``applied``/``failed`` and ``executed``
        """
        labels = [statement_label(s) for s in transpiled.statements]

        if not self.check_available():
            mocked = self.mock(f"{len(labels)} statement(s) via {self.config.sql.client}")
            if not mocked.ok:
                return mocked
            units = [
                UnitResult(unit=label, ok=True, output=f"{self.config.sql.client} not installed - mock execution")
                for label in labels
            ]
            return ExecutionResult.batch(
                self.name, units, mock=True, executed=len(units), note=mocked.details["note"]
            )

        units = []
        with self.workspace() as directory:
            database = transpiled.database
            if database is None and self.config.sql.client == "sqlite3":
                database = str(Path(directory) / SCRATCH_DATABASE)
            for label, statement in zip(labels, transpiled.statements, strict=True):
                command, stdin = self._command(statement, database)
                run = self.run_tool(command, cwd=directory, input=stdin)
                units.append(run.to_unit(label))

        return ExecutionResult.batch(
            self.name,
            units,
            executed=len(units),
            database=transpiled.database,
        )
