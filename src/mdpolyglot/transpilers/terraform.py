"""Terraform transpiler: all ``terraform`` blocks merge into one ``main.tf``."""

from typing import Any

from mdpolyglot.models.polyglot import Artifact, ArtifactType, Target
from mdpolyglot.transpilers.base import TerraformPlan, TranspileDefaults, TranspileError


def var_args(variables: dict[str, str]) -> list[str]:
    """``-var`` arguments for each document variable, in sorted order."""
    return [f"-var={name}={value}" for name, value in sorted(variables.items())]


def transpile_terraform(
    artifacts: list[Artifact],
    metadata: dict[str, Any],
    defaults: TranspileDefaults,
) -> TerraformPlan | TranspileError:
    """Merge Terraform blocks and derive the plan/apply commands.

    Variables come from ``polyglot:tfvar`` directives.
    """
    blocks = [a for a in artifacts if a.type is ArtifactType.TERRAFORM]
    if not blocks:
        return TranspileError(Target.TERRAFORM, "no_terraform_found")

    variables = {str(k): str(v) for k, v in (metadata.get("terraform_vars") or {}).items()}
    args = var_args(variables)
    return TerraformPlan(
        configuration="\n\n".join(block.content for block in blocks),
        variables=variables,
        plan_command=["terraform", "plan", "-input=false", *args],
        apply_command=["terraform", "apply", "-input=false", "-auto-approve", *args],
    )
