"""Kubernetes executor: ``kubectl apply -f -`` once per manifest."""

import logging

import yaml

from mdpolyglot.executors.base import Executor
from mdpolyglot.models.polyglot import Target
from mdpolyglot.models.results import ExecutionResult, UnitResult
from mdpolyglot.transpilers.base import KubernetesApply
from mdpolyglot.transpilers.kubernetes import apply_command

logger = logging.getLogger(__name__)

MOCK_OUTPUT = "kubectl not installed - mock execution"


def manifest_label(manifest: str, index: int) -> str:
    """Human-readable ``kind/name`` label for a manifest."""
    try:
        document = next(
            (d for d in yaml.safe_load_all(manifest) if isinstance(d, dict)), None
        )
    except yaml.YAMLError:
        document = None

    if document is None:
        return f"manifest-{index}"

    kind = str(document.get("kind", "manifest")).lower()
    meta = document.get("metadata")
    name = meta.get("name") if isinstance(meta, dict) else None
    return f"{kind}/{name}" if name else f"{kind}-{index}"


class KubernetesExecutor(Executor):
    """Applies each manifest independently; one failure never aborts the batch."""

    name = "kubernetes"
    target = Target.KUBERNETES
    binaries = ("kubectl",)

    def run(self, transpiled: KubernetesApply) -> ExecutionResult:
        """Apply the manifests.

        Args:
            transpiled: Manifests and namespace

        Returns:
            Batch ExecutionResult with ``applied``/``failed`` counts
        """
        labels = [manifest_label(m, i) for i, m in enumerate(transpiled.manifests, 1)]
        command = apply_command(transpiled.namespace, self.config.kubernetes.context)

        if not self.check_available():
            mocked = self.mock(" ".join(command))
            if not mocked.ok:
                return mocked
            units = [UnitResult(unit=label, ok=True, output=MOCK_OUTPUT) for label in labels]
            return ExecutionResult.batch(
                self.name, units, mock=True, note=mocked.details["note"]
            )

        units = []
        for label, manifest in zip(labels, transpiled.manifests, strict=True):
            run = self.run_tool(command, input=manifest)
            units.append(run.to_unit(label))

        result = ExecutionResult.batch(self.name, units, namespace=transpiled.namespace)
        logger.info("Applied %d manifest(s), %d failed", result.applied, result.failed)
        return result
