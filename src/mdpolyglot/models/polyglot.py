"""Classification result entities.

This module contains the entities produced by the classifier:
- Language: Single dominant classification of a document
- ArtifactType: Kind of an extracted payload
- Target: Transpilation target (one per executor family)
- Artifact: One typed payload found inside a document
- Polyglot: Top-level classification result
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from mdpolyglot.models.ast import Root


class Language(Enum):
    """Dominant classification of a document, chosen by priority."""

    DOCKERFILE = "dockerfile"
    TERRAFORM = "terraform"
    KUBERNETES = "kubernetes"
    EXECUTABLE = "executable"
    GIT = "git"
    SQL = "sql"
    NONE = "none"


class ArtifactType(Enum):
    """Kind of an extracted artifact."""

    DOCKERFILE = "dockerfile"
    TERRAFORM = "terraform"
    KUBERNETES = "kubernetes"
    SQL = "sql"
    FILE = "file"
    BASH = "bash"
    EXECUTABLE = "executable"


class Target(Enum):
    """Transpilation target."""

    DOCKER = "docker"
    TERRAFORM = "terraform"
    KUBERNETES = "kubernetes"
    GIT = "git"
    BASH = "bash"
    SQL = "sql"


@dataclass(frozen=True)
class Artifact:
    """One extracted, typed payload.

    Attributes:
        type: Artifact kind
        content: Payload text (fence content without the fences)
        location: Target path (``file:<path>`` blocks only)
        executable: Whether the payload is meant to be run directly
        line: 1-based line of the opening fence
        kind: Sub-kind (Kubernetes ``kind``, SQL operation)
    """

    type: ArtifactType
    content: str
    location: str | None = None
    executable: bool = False
    line: int | None = None
    kind: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {
            "type": self.type.value,
            "content": self.content,
            "executable": self.executable,
        }
        if self.location is not None:
            result["location"] = self.location
        if self.line is not None:
            result["line"] = self.line
        if self.kind is not None:
            result["kind"] = self.kind
        return result


@dataclass
class Polyglot:
    """Top-level classification result for one document.

    ``language`` is a single dominant classification, not an aggregate:
    several artifact types may coexist but only one drives execution routing.

    Attributes:
        language: Dominant classification
        artifacts: All extracted artifacts, in document order per detector
        ast: Enhanced mdast root
        metadata: Directive, link and hidden-payload metadata
        source: Original document text
    """

    language: Language
    artifacts: list[Artifact] = field(default_factory=list)
    ast: Root = field(default_factory=Root)
    metadata: dict[str, Any] = field(default_factory=dict)
    source: str = ""

    def artifacts_of(self, *types: ArtifactType) -> list[Artifact]:
        """Get artifacts matching any of the given types."""
        return [a for a in self.artifacts if a.type in types]

    @property
    def artifact_count(self) -> int:
        """Return total number of artifacts."""
        return len(self.artifacts)

    def to_dict(self, include_ast: bool = True) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {
            "language": self.language.value,
            "artifacts": [a.to_dict() for a in self.artifacts],
            "metadata": self.metadata,
        }
        if include_ast:
            result["ast"] = self.ast.to_dict()
        return result
