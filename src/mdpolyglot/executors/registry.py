"""Executor lookup by document language.

The mapping is a closed match over Language: every language resolves to
exactly one executor class and there is no fallback. The registry adds the
introspection used by ``mdpolyglot check``.
"""

from typing import Any, assert_never

from mdpolyglot.config import PolyglotConfig
from mdpolyglot.executors.base import Executor
from mdpolyglot.executors.docker import DockerExecutor
from mdpolyglot.executors.git import GitExecutor
from mdpolyglot.executors.kubernetes import KubernetesExecutor
from mdpolyglot.executors.noop import NoopExecutor
from mdpolyglot.executors.shell import ShellExecutor
from mdpolyglot.executors.sql import SQLExecutor
from mdpolyglot.executors.terraform import TerraformExecutor
from mdpolyglot.models.polyglot import Language, Target


def executor_class(language: Language) -> type[Executor]:
    """Return the executor class for a language (total over Language)."""
    match language:
        case Language.DOCKERFILE:
            return DockerExecutor
        case Language.TERRAFORM:
            return TerraformExecutor
        case Language.KUBERNETES:
            return KubernetesExecutor
        case Language.EXECUTABLE:
            return ShellExecutor
        case Language.GIT:
            return GitExecutor
        case Language.SQL:
            return SQLExecutor
        case Language.NONE:
            return NoopExecutor
        case _:
            assert_never(language)


def target_for(language: Language) -> Target | None:
    """Transpilation target that drives execution of a language."""
    return executor_class(language).target


class ExecutorRegistry:
    """Creates configured executors and reports on their tools.

    Attributes:
        config: Configuration handed to every executor
    """

    def __init__(self, config: PolyglotConfig | None = None) -> None:
        """Initialize registry.

        Args:
            config: Configuration (defaults used if None)
        """
        self.config = config or PolyglotConfig()

    def get_executor(self, language: Language) -> Executor:
        """Get an executor instance for a document language."""
        return executor_class(language)(self.config)

    def list_executors(self) -> list[str]:
        """Get executor names in language order."""
        return [executor_class(language).name for language in Language]

    def check_tool_availability(self) -> dict[str, bool]:
        """Check tool availability for every executor.

        Returns:
            Dictionary mapping executor name to availability
        """
        return {
            executor.name: executor.check_available()
            for executor in (self.get_executor(language) for language in Language)
        }

    def get_metadata(self) -> dict[str, Any]:
        """Get registry metadata for logging and debugging."""
        return {
            "executors": {
                language.value: self.get_executor(language).get_metadata()
                for language in Language
            },
            "mock_missing_tools": self.config.execution.mock_missing_tools,
            "timeout": self.config.execution.timeout,
        }
