"""Stand-ins for child processes used by executor tests."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from mdpolyglot.executors.base import ProcessOutcome, ProcessRun


def completed(output: str = "", code: int = 0) -> ProcessRun:
    """A process that ran to completion."""
    return ProcessRun(ProcessOutcome.COMPLETED, code, output)


@dataclass
class FakeProcesses:
    """Replaces ``run_process``: records calls and replays results.

    Attributes:
        results: Results returned in order; the last one repeats
        calls: Recorded (command, kwargs) pairs
        workspaces: Working directories the calls ran in
    """

    results: list[ProcessRun] = field(default_factory=list)
    calls: list[tuple[list[str], dict[str, Any]]] = field(default_factory=list)
    workspaces: list[Path] = field(default_factory=list)

    def queue(self, *runs: ProcessRun) -> None:
        self.results.extend(runs)

    def __call__(self, command: Sequence[str], **kwargs: Any) -> ProcessRun:
        self.calls.append((list(command), kwargs))
        cwd = kwargs.get("cwd")
        if cwd is not None:
            self.workspaces.append(Path(cwd))
        if len(self.results) > 1:
            return self.results.pop(0)
        if self.results:
            return self.results[0]
        return completed("ok\n")
