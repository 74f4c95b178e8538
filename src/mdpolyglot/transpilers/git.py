"""Git transpiler: ``file:<path>`` blocks become a small repository."""

import shlex
from typing import Any

from mdpolyglot.models.polyglot import Artifact, ArtifactType, Target
from mdpolyglot.transpilers.base import (
    GitRepository,
    TranspileDefaults,
    TranspileError,
    document_params,
)


def transpile_git(
    artifacts: list[Artifact],
    metadata: dict[str, Any],
    defaults: TranspileDefaults,
) -> GitRepository | TranspileError:
    """Map each file block to its path and build the init commands.

    A later block for the same path replaces an earlier one. Paths are not
    validated here; the executor refuses paths that leave the workspace.
    """
    blocks = [a for a in artifacts if a.type is ArtifactType.FILE and a.location]
    if not blocks:
        return TranspileError(Target.GIT, "no_files_found")

    files = {block.location: block.content for block in blocks if block.location}
    message = str(document_params(metadata).get("commit_message") or defaults.commit_message)
    return GitRepository(
        files=files,
        init_commands=[
            "git init",
            "git add .",
            f"git commit -m {shlex.quote(message)}",
        ],
    )
