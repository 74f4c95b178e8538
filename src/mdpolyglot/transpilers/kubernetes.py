"""Kubernetes transpiler: one manifest per ``kubernetes`` artifact."""

from typing import Any

from mdpolyglot.models.polyglot import Artifact, ArtifactType, Target
from mdpolyglot.transpilers.base import (
    KubernetesApply,
    TranspileDefaults,
    TranspileError,
    document_params,
)


def apply_command(namespace: str | None = None, context: str | None = None) -> list[str]:
    """``kubectl apply`` argument vector reading the manifest from stdin."""
    command = ["kubectl"]
    if context:
        command += ["--context", context]
    command += ["apply", "-f", "-"]
    if namespace:
        command += ["-n", namespace]
    return command


def transpile_kubernetes(
    artifacts: list[Artifact],
    metadata: dict[str, Any],
    defaults: TranspileDefaults,
) -> KubernetesApply | TranspileError:
    """Collect manifests, keeping each as its own apply unit.

    The namespace comes from a ``polyglot:namespace=...`` directive, falling
    back to the configured default. Manifests that set their own
    ``metadata.namespace`` keep it; kubectl rejects a mismatch per unit.
    """
    manifests = [a.content for a in artifacts if a.type is ArtifactType.KUBERNETES]
    if not manifests:
        return TranspileError(Target.KUBERNETES, "no_manifests_found")

    namespace = document_params(metadata).get("namespace") or defaults.namespace
    namespace = str(namespace) if namespace else None
    return KubernetesApply(
        manifests=manifests,
        namespace=namespace,
        apply_command=apply_command(namespace),
    )
