"""Docker transpiler: the first ``dockerfile`` artifact becomes a build."""

from typing import Any

from mdpolyglot.models.polyglot import Artifact, ArtifactType, Target
from mdpolyglot.transpilers.base import (
    DockerBuild,
    TranspileDefaults,
    TranspileError,
    document_params,
)

DOCKERFILE_NAME = "Dockerfile"


def build_command(tag: str, dockerfile: str = DOCKERFILE_NAME) -> list[str]:
    """``docker build`` argument vector, run from the build context."""
    return ["docker", "build", "-f", dockerfile, "-t", tag, "."]


def transpile_docker(
    artifacts: list[Artifact],
    metadata: dict[str, Any],
    defaults: TranspileDefaults,
) -> DockerBuild | TranspileError:
    """Select the Dockerfile to build.

    Only the first ``dockerfile`` artifact is built; later ones are ignored.
    The image tag comes from a ``polyglot:tag=...`` directive when present.
    """
    dockerfiles = [a for a in artifacts if a.type is ArtifactType.DOCKERFILE]
    if not dockerfiles:
        return TranspileError(Target.DOCKER, "no_dockerfile_found")

    tag = str(document_params(metadata).get("tag") or defaults.docker_tag)
    return DockerBuild(
        dockerfile=dockerfiles[0].content,
        tag=tag,
        command=build_command(tag),
    )
