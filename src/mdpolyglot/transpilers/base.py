"""Transpiled configuration shapes and the shared transpiler contract.

A transpiler is a pure function ``(artifacts, metadata, defaults) -> config``.
It performs no I/O. When the artifact type its target needs is absent it
returns a TranspileError value instead of raising.
"""

from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from typing import Any

from mdpolyglot.config import DEFAULT_COMMIT_MESSAGE, DEFAULT_TAG, PolyglotConfig
from mdpolyglot.models.polyglot import Artifact, Target

DEFAULT_SHEBANG = "#!/bin/bash"


@dataclass(frozen=True)
class TranspileError:
    """Typed transpilation failure (returned, never raised).

    Attributes:
        target: Requested target
        reason: Machine-readable reason (e.g. "no_dockerfile_found")
    """

    target: Target
    reason: str

    @property
    def ok(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"ok": False, "target": self.target.value, "error": self.reason}


@dataclass(frozen=True)
class TranspileDefaults:
    """Configuration-derived defaults; document params take precedence.

    Attributes:
        docker_tag: Image tag
        namespace: Kubernetes namespace
        commit_message: Git commit message
        database: SQL database path or connection string
    """

    docker_tag: str = DEFAULT_TAG
    namespace: str | None = None
    commit_message: str = DEFAULT_COMMIT_MESSAGE
    database: str | None = None

    @classmethod
    def from_config(cls, config: PolyglotConfig) -> "TranspileDefaults":
        """Build defaults from the loaded configuration."""
        return cls(
            docker_tag=config.docker.tag,
            namespace=config.kubernetes.namespace,
            commit_message=config.git.commit_message,
            database=config.sql.database,
        )


class _Config:
    """Mixin giving every transpiled configuration the same surface."""

    target: Target

    @property
    def ok(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = asdict(self)  # type: ignore[call-overload]
        data.pop("target", None)
        return {"ok": True, "target": self.target.value, **data}


@dataclass(frozen=True)
class DockerBuild(_Config):
    """``docker build`` input."""

    dockerfile: str
    tag: str = DEFAULT_TAG
    command: list[str] = field(default_factory=list)
    target: Target = field(default=Target.DOCKER, repr=False)


@dataclass(frozen=True)
class TerraformPlan(_Config):
    """Terraform configuration plus the commands that would run it."""

    configuration: str
    variables: dict[str, str] = field(default_factory=dict)
    plan_command: list[str] = field(default_factory=list)
    apply_command: list[str] = field(default_factory=list)
    target: Target = field(default=Target.TERRAFORM, repr=False)


@dataclass(frozen=True)
class KubernetesApply(_Config):
    """One YAML string per manifest, applied independently."""

    manifests: list[str]
    namespace: str | None = None
    apply_command: list[str] = field(default_factory=list)
    target: Target = field(default=Target.KUBERNETES, repr=False)


@dataclass(frozen=True)
class GitRepository(_Config):
    """Files to materialize and the shell commands that turn them into a repo."""

    files: dict[str, str]
    init_commands: list[str] = field(default_factory=list)
    target: Target = field(default=Target.GIT, repr=False)


@dataclass(frozen=True)
class ShellScript(_Config):
    """Script run with ``bash -c`` (or ``sh -c``)."""

    script: str
    shebang: str = DEFAULT_SHEBANG
    environment: dict[str, str] = field(default_factory=dict)
    target: Target = field(default=Target.BASH, repr=False)


@dataclass(frozen=True)
class SQLBatch(_Config):
    """Statements executed one client invocation each."""

    statements: list[str]
    database: str | None = None
    target: Target = field(default=Target.SQL, repr=False)


TranspiledConfig = DockerBuild | TerraformPlan | KubernetesApply | GitRepository | ShellScript | SQLBatch

TranspileResult = TranspiledConfig | TranspileError

Transpiler = Callable[[list[Artifact], dict[str, Any], TranspileDefaults], TranspileResult]


def document_params(metadata: dict[str, Any]) -> dict[str, Any]:
    """``polyglot:key=value`` parameters collected by the classifier."""
    params = metadata.get("params")
    return params if isinstance(params, dict) else {}
