"""Docker executor: ``docker build`` of the document's Dockerfile."""

import logging
from datetime import UTC, datetime

from mdpolyglot.executors.base import Executor
from mdpolyglot.models.polyglot import Target
from mdpolyglot.models.results import ExecutionResult
from mdpolyglot.transpilers.base import DockerBuild
from mdpolyglot.transpilers.docker import DOCKERFILE_NAME

logger = logging.getLogger(__name__)


class DockerExecutor(Executor):
    """Builds an image from a Dockerfile written into an empty build context."""

    name = "docker"
    target = Target.DOCKER
    binaries = ("docker",)

    def run(self, transpiled: DockerBuild) -> ExecutionResult:
        """Build the image.

        Args:
            transpiled: Dockerfile, tag and build command

        Returns:
            ExecutionResult with ``image``, ``output`` and ``built_at``
        """
        if not self.check_available():
            return self.mock(" ".join(transpiled.command), image=transpiled.tag)

        with self.workspace() as context:
            (context / DOCKERFILE_NAME).write_text(transpiled.dockerfile)
            run = self.run_tool(transpiled.command, cwd=context)

        if not run.ok:
            return run.to_failure(self.name)

        logger.info("Built image %s", transpiled.tag)
        return ExecutionResult.success(
            self.name,
            image=transpiled.tag,
            output=run.output,
            built_at=datetime.now(UTC).isoformat(),
        )
