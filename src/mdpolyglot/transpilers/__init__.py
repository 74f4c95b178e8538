"""Transpilers: artifacts + metadata -> target configuration.

Dispatch is a closed match over Target. Adding a target means adding an enum
member and a case here; a type checker flags the missing case through
``assert_never``.
"""

from typing import Any, assert_never

from mdpolyglot.models.polyglot import Artifact, Target
from mdpolyglot.transpilers.base import (
    DockerBuild,
    GitRepository,
    KubernetesApply,
    ShellScript,
    SQLBatch,
    TerraformPlan,
    TranspileDefaults,
    TranspiledConfig,
    TranspileError,
    Transpiler,
    TranspileResult,
)
from mdpolyglot.transpilers.bash import transpile_bash
from mdpolyglot.transpilers.docker import transpile_docker
from mdpolyglot.transpilers.git import transpile_git
from mdpolyglot.transpilers.kubernetes import transpile_kubernetes
from mdpolyglot.transpilers.sql import transpile_sql
from mdpolyglot.transpilers.terraform import transpile_terraform

__all__ = [
    "DockerBuild",
    "GitRepository",
    "KubernetesApply",
    "SQLBatch",
    "ShellScript",
    "TerraformPlan",
    "TranspileDefaults",
    "TranspileError",
    "TranspileResult",
    "TranspiledConfig",
    "Transpiler",
    "get_transpiler",
    "transpile_artifacts",
]


def get_transpiler(target: Target) -> Transpiler:
    """Return the transpiler for a target (total over Target)."""
    match target:
        case Target.DOCKER:
            return transpile_docker
        case Target.TERRAFORM:
            return transpile_terraform
        case Target.KUBERNETES:
            return transpile_kubernetes
        case Target.GIT:
            return transpile_git
        case Target.BASH:
            return transpile_bash
        case Target.SQL:
            return transpile_sql
        case _:
            assert_never(target)


def transpile_artifacts(
    target: Target,
    artifacts: list[Artifact],
    metadata: dict[str, Any],
    defaults: TranspileDefaults | None = None,
) -> TranspileResult:
    """Run the transpiler for ``target``."""
    return get_transpiler(target)(artifacts, metadata, defaults or TranspileDefaults())
